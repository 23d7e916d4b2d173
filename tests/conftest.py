"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Settings are read at import time
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")

import pytest
from fastapi.testclient import TestClient

from app.db.supabase import SupabaseClient
from app.services import (
    global_search,
    hydration,
    message_encryption,
    retrieval,
    scope,
)
from tests.factories import FakeMessageStore


@pytest.fixture
def store(monkeypatch) -> FakeMessageStore:
    """Fake store wired into every service that reads from Supabase."""
    fake = FakeMessageStore()

    monkeypatch.setattr(scope, "get_chat_membership", fake.get_chat_membership)
    monkeypatch.setattr(scope, "list_user_chat_ids", fake.list_user_chat_ids)
    monkeypatch.setattr(retrieval, "generate_embedding", fake.generate_embedding)
    monkeypatch.setattr(retrieval, "match_messages", fake.match_messages)
    monkeypatch.setattr(retrieval, "search_messages_text", fake.search_messages_text)
    monkeypatch.setattr(hydration, "fetch_messages_by_ids", fake.fetch_messages_by_ids)
    monkeypatch.setattr(message_encryption, "decrypt_message_content", fake.decrypt_message_content)
    monkeypatch.setattr(global_search, "search_chats_by_name", fake.search_chats_by_name)
    monkeypatch.setattr(global_search, "search_users", fake.search_users)

    # Never build a real client in tests
    monkeypatch.setattr(SupabaseClient, "_instance", object())

    return fake


@pytest.fixture
def db() -> object:
    """Opaque client handle; the fake store ignores it."""
    return object()


@pytest.fixture
def client(store: FakeMessageStore) -> TestClient:
    """HTTP client against the app with the fake store installed."""
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client
