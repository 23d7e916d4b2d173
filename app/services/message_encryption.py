"""
Message content decryption.

Content is encrypted at rest by a database trigger; the key never leaves
the database, so decryption goes through the `decrypt_message_content` RPC.
Only rows flagged `is_encrypted` with non-empty content are sent.
"""

import asyncio
from typing import Any, Dict, List

from supabase import Client

from app.core.logging import get_logger
from app.db.messages import decrypt_message_content

logger = get_logger(__name__)


def _needs_decryption(row: Dict[str, Any] | None) -> bool:
    return bool(row and row.get("is_encrypted") and row.get("content"))


async def _decrypt_row(db: Client, row: Dict[str, Any]) -> Dict[str, Any]:
    decrypted = await decrypt_message_content(db, row["content"])
    # A null result means legacy plaintext stored with the flag set
    if decrypted is None:
        logger.debug(f"Decryption returned no data for message {row.get('id')}, keeping stored content")
        return row
    return {**row, "content": decrypted}


async def decrypt_message(db: Client, row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Decrypt a message row and the message it replies to.

    Returns:
        A new row; the input is not modified
    """
    result = await _decrypt_row(db, row) if _needs_decryption(row) else dict(row)

    reply_to = result.get("replyTo")
    if _needs_decryption(reply_to):
        result["replyTo"] = await _decrypt_row(db, reply_to)

    return result


async def decrypt_messages(db: Client, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Decrypt many message rows concurrently, preserving order.

    Raises:
        Whatever the decryption RPC raises; callers decide how to surface it
    """
    if not rows:
        return []

    encrypted = sum(1 for row in rows if _needs_decryption(row) or _needs_decryption(row.get("replyTo")))
    if encrypted:
        logger.debug(f"Decrypting {encrypted} of {len(rows)} messages")

    return list(await asyncio.gather(*(decrypt_message(db, row) for row in rows)))
