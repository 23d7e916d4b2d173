"""
Backfill embeddings for messages that predate semantic search.

Messages without an embedding are invisible to the semantic branch; this
job embeds them in batches. Per-message and per-batch failures are logged
and counted; a failed fetch ends the run early with `aborted` set.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from supabase import Client

from app.core.config import settings
from app.core.logging import get_logger
from app.db.messages import fetch_messages_missing_embeddings, update_message_embedding
from app.db.supabase import get_supabase_client
from app.services.embedding import generate_embedding_with_retry, generate_embeddings_batch
from app.services.message_encryption import decrypt_messages

logger = get_logger(__name__)


@dataclass
class BackfillStats:
    """Counters for one backfill run."""

    processed: int = 0
    embedded: int = 0
    skipped: int = 0
    failed: int = 0
    aborted: bool = False


async def _embed_texts(texts: List[str]) -> List[Optional[List[float]]]:
    """Embed in one request; fall back to per-text retries if that fails."""
    try:
        return list(await generate_embeddings_batch(texts))
    except Exception as e:
        logger.warning(f"Batch embedding failed ({e}), falling back to one-by-one")

    embeddings: List[Optional[List[float]]] = []
    for text in texts:
        try:
            embeddings.append(await generate_embedding_with_retry(text))
        except Exception as e:
            logger.error(f"Embedding failed after retries: {e}")
            embeddings.append(None)
    return embeddings


async def backfill_message_embeddings(
    batch_size: Optional[int] = None,
    db: Optional[Client] = None,
    max_batches: Optional[int] = None,
) -> BackfillStats:
    """
    Embed every message that has content but no embedding.

    Messages are walked in id order, so a skipped or failed message is never
    fetched again in the same run and nothing accumulates between batches.

    Args:
        batch_size: Messages per batch (defaults to settings.embedding_backfill_batch_size)
        db: Supabase client (defaults to the shared client)
        max_batches: Stop after this many batches (None = until done)

    Returns:
        BackfillStats for the run
    """
    batch_size = batch_size or settings.embedding_backfill_batch_size
    if db is None:
        db = get_supabase_client()

    stats = BackfillStats()
    last_id: Optional[str] = None
    batches = 0

    while max_batches is None or batches < max_batches:
        try:
            rows = await fetch_messages_missing_embeddings(db, batch_size, after_id=last_id)
        except Exception as e:
            logger.error(f"Failed to fetch messages after id {last_id}, stopping backfill: {e}")
            stats.aborted = True
            break
        if not rows:
            break
        batches += 1
        last_id = rows[-1]["id"]
        stats.processed += len(rows)

        try:
            rows = await decrypt_messages(db, rows)
        except Exception as e:
            logger.error(f"Failed to decrypt backfill batch {batches} ({len(rows)} messages): {e}")
            stats.failed += len(rows)
            continue

        pending: Dict[str, str] = {}
        for row in rows:
            content = (row.get("content") or "").strip()
            if content:
                pending[row["id"]] = content
            else:
                stats.skipped += 1

        if pending:
            embeddings = await _embed_texts(list(pending.values()))
            for message_id, embedding in zip(pending.keys(), embeddings):
                if embedding is None:
                    stats.failed += 1
                    continue
                try:
                    await update_message_embedding(db, message_id, embedding)
                    stats.embedded += 1
                except Exception as e:
                    logger.error(f"Failed to store embedding for message {message_id}: {e}")
                    stats.failed += 1

        logger.info(
            f"Backfill batch {batches}: processed={stats.processed} embedded={stats.embedded} "
            f"skipped={stats.skipped} failed={stats.failed}"
        )

    logger.info(f"Backfill complete: {stats}")
    return stats
