"""
Tests for the unified search screen endpoint.
"""

import pytest

from app.core.exceptions import NotAuthorizedError
from app.models.search import GlobalSearchRequest
from app.services.global_search import global_search

from tests.factories import at


@pytest.fixture
def seeded(store):
    store.add_chat("chat-a", name="Pizza Club", creator_id="u1")
    store.add_chat("chat-b", name="Pizza Lovers")
    store.add_chat("chat-c", name="Work")
    store.add_member("u1", "chat-a")
    store.add_member("u2", "chat-a")
    store.add_member("u1", "chat-c")
    store.add_member("u2", "chat-b")
    store.add_user("u1", name="Me")
    store.add_user("u2", name="Pizzaiolo Sam", phone="+15550001")
    store.add_message("m1", "chat-a", at(1), content="pizza friday?")
    store.add_message("m2", "chat-c", at(2), content="pizza for the team")
    store.add_message("m3", "chat-b", at(3), content="pizza is life", user_id="u2")
    return store


@pytest.mark.asyncio
async def test_returns_chats_users_and_messages(seeded, db):
    response = await global_search(GlobalSearchRequest(userId="u1", query="pizza"), db=db)

    assert [c.id for c in response.chats] == ["chat-a"]
    assert response.chats[0].is_creator is True
    assert response.chats[0].member_count == 2
    assert [u.id for u in response.users] == ["u2"]
    # chat-b is not one of u1's chats
    assert [r.message.id for r in response.messages] == ["m2", "m1"]
    assert all(r.matched_field == "content" for r in response.messages)


@pytest.mark.asyncio
async def test_chat_scoped_search_skips_chats_and_users(seeded, db):
    response = await global_search(
        GlobalSearchRequest(userId="u1", query="pizza", chatId="chat-c"), db=db
    )

    assert response.chats == []
    assert response.users == []
    assert [r.message.id for r in response.messages] == ["m2"]


@pytest.mark.asyncio
async def test_chat_scoped_search_requires_membership(seeded, db):
    with pytest.raises(NotAuthorizedError):
        await global_search(GlobalSearchRequest(userId="u1", query="pizza", chatId="chat-b"), db=db)

    assert seeded.retrieval_calls == 0


@pytest.mark.asyncio
async def test_blank_query(seeded, db):
    response = await global_search(GlobalSearchRequest(userId="u1", query=" "), db=db)

    assert response.chats == [] and response.users == [] and response.messages == []


@pytest.mark.asyncio
async def test_message_hits_respect_limit(seeded, db):
    response = await global_search(GlobalSearchRequest(userId="u1", query="pizza", limit=1), db=db)

    assert [r.message.id for r in response.messages] == ["m2"]


def test_endpoint_forbids_foreign_chat(client, seeded):
    response = client.post(
        "/api/search/global",
        json={"userId": "u1", "query": "pizza", "chatId": "chat-b"},
    )

    assert response.status_code == 403


def test_endpoint_serializes_camel_case(client, seeded):
    response = client.post("/api/search/global", json={"userId": "u1", "query": "pizza"})

    assert response.status_code == 200
    data = response.json()
    assert data["chats"][0]["memberCount"] == 2
    assert data["users"][0]["phone"] == "+15550001"
    assert data["messages"][0]["message"]["createdAt"] == "2025-11-03T12:02:00.000Z"
