"""
Candidate fusion and page selection.

Relevance decides which messages surface at all (per-branch thresholds and
over-fetch); recency decides the order they are shown in.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from app.models.search import MatchedField


@dataclass
class Candidate:
    """Per-request scoring record for one message."""

    id: str
    score: float
    matched_field: MatchedField
    created_at: datetime
    similarity: Optional[float] = None
    rank: Optional[float] = None


def _max_optional(current: Optional[float], new: Optional[float]) -> Optional[float]:
    if new is None:
        return current
    if current is None:
        return new
    return max(current, new)


def fuse_candidates(*streams: Iterable[Candidate]) -> Dict[str, Candidate]:
    """
    Merge candidate streams by message id.

    A message found by more than one stream gets the sum of its scores, the
    best similarity and rank seen, and keeps the matched-field label of the
    stream that found it first.

    Args:
        streams: Candidate lists, fused in the order given

    Returns:
        Fused candidates keyed by message id
    """
    fused: Dict[str, Candidate] = {}

    for stream in streams:
        for candidate in stream:
            existing = fused.get(candidate.id)
            if existing is None:
                # Copy so the caller's branch results are never mutated
                fused[candidate.id] = Candidate(
                    id=candidate.id,
                    score=candidate.score,
                    matched_field=candidate.matched_field,
                    created_at=candidate.created_at,
                    similarity=candidate.similarity,
                    rank=candidate.rank,
                )
                continue

            existing.score += candidate.score
            existing.similarity = _max_optional(existing.similarity, candidate.similarity)
            existing.rank = _max_optional(existing.rank, candidate.rank)

    return fused


def select_page(candidates: Iterable[Candidate], limit: int) -> List[Candidate]:
    """
    Order candidates newest first and cut to one page.

    Ties on created_at are broken by id (descending) so identical inputs
    always produce the identical page.
    """
    ordered = sorted(candidates, key=lambda c: (c.created_at, c.id), reverse=True)
    return ordered[: max(limit, 0)]
