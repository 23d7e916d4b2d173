"""
Message read service: batch fetch by ids.

Used by the client for gap recovery after reconnecting.
"""

from typing import List, Optional

from supabase import Client

from app.core.config import settings
from app.core.logging import get_logger
from app.db.supabase import get_supabase_client
from app.models.messages import HydratedMessage
from app.services.hydration import build_hydrated_message, load_messages

logger = get_logger(__name__)


async def get_messages_batch(
    message_ids: List[str], db: Optional[Client] = None
) -> List[HydratedMessage]:
    """
    Fetch several hydrated, decrypted messages by id.

    Args:
        message_ids: Between 1 and settings.message_batch_max_ids ids
        db: Supabase client (defaults to the shared client)

    Returns:
        Hydrated messages in the order the store returned them

    Raises:
        ValueError: No ids, or more than the batch limit
        HydrationError: The messages could not be loaded
    """
    if not message_ids:
        raise ValueError("messageIds array is required")
    if len(message_ids) > settings.message_batch_max_ids:
        raise ValueError(f"Maximum {settings.message_batch_max_ids} messages per batch request")

    if db is None:
        db = get_supabase_client()

    # Duplicates add nothing but query length
    unique_ids = list(dict.fromkeys(message_ids))
    rows = await load_messages(db, unique_ids)

    logger.info(f"Batch fetched {len(rows)}/{len(unique_ids)} messages")
    return [build_hydrated_message(row) for row in rows]
