"""
Retrieval dispatcher for message search.

Runs the semantic (embedding similarity) and lexical (full-text) branches
for a search request. Each branch maps raw hits onto a common score scale
and contains its own failures: a failed branch yields no candidates and a
RetrievalDegradedError on its result, never an exception.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, get_args

from supabase import Client

from app.core.config import settings
from app.core.exceptions import RetrievalDegradedError
from app.core.logging import get_logger
from app.db.vector import MessageFilters, match_messages, search_messages_text
from app.models.search import MatchedField, SearchMode
from app.services.embedding import generate_embedding
from app.services.fusion import Candidate
from app.utils.timestamps import parse_timestamp

logger = get_logger(__name__)

Branch = Literal["semantic", "lexical"]

MATCHED_FIELDS = set(get_args(MatchedField))
SEMANTIC_MODES = {"semantic", "hybrid"}
LEXICAL_MODES = {"text", "hybrid"}


@dataclass
class BranchResult:
    """Outcome of one retrieval branch."""

    branch: Branch
    candidates: List[Candidate] = field(default_factory=list)
    error: Optional[RetrievalDegradedError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def usable_candidates(self) -> List[Candidate]:
        """Candidates to fuse; a failed branch contributes nothing."""
        return self.candidates if self.ok else []


def _matched_field(row: Dict[str, Any]) -> MatchedField:
    value = row.get("matched_field") or row.get("matchedField")
    return value if value in MATCHED_FIELDS else "content"


def _to_candidate(row: Dict[str, Any], score: float, **metrics: Optional[float]) -> Optional[Candidate]:
    # RPCs return the column unquoted, so Postgres lowercases it
    created_at = parse_timestamp(row.get("createdat") or row.get("createdAt"))
    if created_at is None or not row.get("id"):
        logger.warning(f"Skipping retrieval row without id or createdAt: id={row.get('id')}")
        return None

    return Candidate(
        id=row["id"],
        score=score,
        matched_field=_matched_field(row),
        created_at=created_at,
        **metrics,
    )


def semantic_candidates(rows: List[Dict[str, Any]]) -> List[Candidate]:
    """Map match_messages rows to candidates scored similarity x multiplier."""
    candidates = []
    for row in rows:
        similarity = row.get("similarity")
        if similarity is None:
            continue
        candidate = _to_candidate(
            row,
            score=similarity * settings.search_semantic_score_multiplier,
            similarity=similarity,
        )
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def lexical_candidates(rows: List[Dict[str, Any]]) -> List[Candidate]:
    """Map search_messages_text rows to candidates scored rank x multiplier."""
    candidates = []
    for row in rows:
        rank = row.get("rank")
        effective_rank = rank or settings.search_lexical_rank_floor
        candidate = _to_candidate(
            row,
            score=effective_rank * settings.search_lexical_score_multiplier,
            rank=rank,
        )
        if candidate is not None:
            candidates.append(candidate)
    return candidates


async def run_semantic_branch(
    db: Client, query: str, filters: MessageFilters, match_count: int, log_context: Dict[str, Any]
) -> BranchResult:
    """Embed the query and run the similarity RPC."""
    try:
        query_embedding = await generate_embedding(query)
        rows = await match_messages(
            db,
            query_embedding,
            filters,
            match_threshold=settings.search_semantic_threshold,
            match_count=match_count,
        )
    except Exception as e:
        error = RetrievalDegradedError("semantic", e)
        logger.error(f"Semantic branch failed, continuing without it: {e}", extra=log_context)
        return BranchResult(branch="semantic", error=error)

    candidates = semantic_candidates(rows)
    logger.info(f"Semantic branch: {len(candidates)} candidates", extra=log_context)
    return BranchResult(branch="semantic", candidates=candidates)


async def run_lexical_branch(
    db: Client, query: str, filters: MessageFilters, match_count: int, log_context: Dict[str, Any]
) -> BranchResult:
    """Run the full-text RPC."""
    try:
        rows = await search_messages_text(db, query, filters, match_count=match_count)
    except Exception as e:
        error = RetrievalDegradedError("lexical", e)
        logger.error(f"Lexical branch failed, continuing without it: {e}", extra=log_context)
        return BranchResult(branch="lexical", error=error)

    candidates = lexical_candidates(rows)
    logger.info(f"Lexical branch: {len(candidates)} candidates", extra=log_context)
    return BranchResult(branch="lexical", candidates=candidates)


async def dispatch_retrieval(
    db: Client,
    query: str,
    mode: SearchMode,
    filters: MessageFilters,
    limit: int,
    user_id: str,
) -> List[BranchResult]:
    """
    Run the branches enabled by `mode` concurrently.

    Both branches over-fetch (limit x search_overfetch_multiplier) so that
    deduplication and truncation still leave a full page.

    Returns:
        Branch results in fixed order: semantic first, then lexical
    """
    match_count = limit * settings.search_overfetch_multiplier
    log_context = {"user_id": user_id, "search_mode": mode, "query": query}

    branches = []
    if mode in SEMANTIC_MODES:
        branches.append(run_semantic_branch(db, query, filters, match_count, log_context))
    if mode in LEXICAL_MODES:
        branches.append(run_lexical_branch(db, query, filters, match_count, log_context))

    logger.info(
        f"Dispatching {len(branches)} retrieval branch(es) for query '{query}' "
        f"(mode={mode}, match_count={match_count})",
        extra=log_context,
    )
    return list(await asyncio.gather(*branches))
