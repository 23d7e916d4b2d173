"""
Generate embeddings for messages that don't have one yet.

Messages without an embedding never show up in semantic search results.

Usage:
    python scripts/backfill_embeddings.py [batch_size] [max_batches]

Example:
    python scripts/backfill_embeddings.py 50 10
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.config import settings
from app.core.logging import setup_logging
from app.services.embedding_backfill import backfill_message_embeddings


async def main(batch_size: int, max_batches: int | None) -> bool:
    print(f"🔗 Supabase: {settings.supabase_url}")
    print(f"🧠 Model: {settings.openai_embedding_model} ({settings.openai_embedding_dimensions} dims)")
    print(f"📦 Batch size: {batch_size}, max batches: {max_batches or 'unlimited'}")

    try:
        stats = await backfill_message_embeddings(batch_size=batch_size, max_batches=max_batches)
    except Exception as e:
        print(f"❌ Backfill failed: {e}")
        return False

    print("\n" + "=" * 60)
    print(f"   Processed: {stats.processed}")
    print(f"   Embedded:  {stats.embedded}")
    print(f"   Skipped:   {stats.skipped} (no text content)")
    print(f"   Failed:    {stats.failed}")
    print("=" * 60)

    if stats.aborted:
        print("❌ Stopped early: could not fetch the next batch (see logs)")
    elif stats.failed:
        print("⚠️  Some messages failed; rerun to retry them")
    else:
        print("✅ Backfill completed successfully!")
    return stats.failed == 0 and not stats.aborted


if __name__ == "__main__":
    try:
        batch_size = int(sys.argv[1]) if len(sys.argv) > 1 else settings.embedding_backfill_batch_size
        max_batches = int(sys.argv[2]) if len(sys.argv) > 2 else None
    except ValueError:
        print("Usage: python scripts/backfill_embeddings.py [batch_size] [max_batches]")
        sys.exit(1)

    setup_logging()
    success = asyncio.run(main(batch_size, max_batches))
    sys.exit(0 if success else 1)
