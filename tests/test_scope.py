"""
Tests for chat scope resolution.
"""

import pytest

from app.core.exceptions import NotAuthorizedError
from app.services.scope import resolve_chat_scope


@pytest.mark.asyncio
async def test_all_member_chats_when_no_chat_given(store, db):
    store.add_member("u1", "chat-a")
    store.add_member("u1", "chat-b")
    store.add_member("u2", "chat-c")

    assert await resolve_chat_scope("u1", db=db) == ["chat-a", "chat-b"]


@pytest.mark.asyncio
async def test_explicit_chat_requires_membership(store, db):
    store.add_member("u2", "chat-c")

    with pytest.raises(NotAuthorizedError) as exc_info:
        await resolve_chat_scope("u1", "chat-c", db=db)

    assert exc_info.value.message == "Not a member of this chat"
    assert exc_info.value.chat_id == "chat-c"


@pytest.mark.asyncio
async def test_explicit_chat_member(store, db):
    store.add_member("u1", "chat-a")
    store.add_member("u1", "chat-b")

    assert await resolve_chat_scope("u1", "chat-b", db=db) == ["chat-b"]


@pytest.mark.asyncio
async def test_user_without_chats(store, db):
    assert await resolve_chat_scope("lonely", db=db) == []
