"""
Shared Supabase client for the message store.

The service role key bypasses row-level security, so every read that must
respect chat membership goes through `app.services.scope` first.
"""

from typing import Optional

from supabase import Client, create_client

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class SupabaseClient:
    """Process-wide client, created on first use and dropped at shutdown."""

    _instance: Optional[Client] = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._instance is None:
            cls._instance = create_client(settings.supabase_url, settings.supabase_service_role_key)
            logger.info(f"Connected to Supabase at {settings.supabase_url}")
        return cls._instance

    @classmethod
    async def close(cls) -> None:
        # supabase-py has no close(); forgetting the client is enough
        if cls._instance is not None:
            cls._instance = None
            logger.info("Supabase client released")


def get_supabase_client() -> Client:
    """Client used by services when none is passed in."""
    return SupabaseClient.get_client()
