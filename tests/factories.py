"""
Test factories: timestamps, user rows and an in-memory message store.

FakeMessageStore stands in for the Supabase tables and RPCs; its async
methods share names and signatures with the `app.db` wrappers they replace.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from app.db.vector import MessageFilters

BASE_TIME = datetime(2025, 11, 3, 12, 0, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """A timestamp `minutes` after BASE_TIME."""
    return BASE_TIME + timedelta(minutes=minutes)


def make_user(user_id: str, name: str = "Alex") -> Dict[str, Any]:
    return {
        "id": user_id,
        "name": name,
        "phone": None,
        "bio": None,
        "image": None,
        "hasCompletedOnboarding": True,
        "createdAt": "2025-01-01T00:00:00",
        "updatedAt": "2025-01-01T00:00:00",
    }


class FakeMessageStore:
    """In-memory stand-in for the message tables and search RPCs."""

    def __init__(self) -> None:
        self.messages: Dict[str, Dict[str, Any]] = {}
        self.memberships: set[tuple[str, str]] = set()
        self.chats: Dict[str, Dict[str, Any]] = {}
        self.users: Dict[str, Dict[str, Any]] = {}
        self.similarity: Dict[str, float] = {}
        self.rank: Dict[str, float] = {}
        self.calls: Dict[str, int] = {
            "embedding": 0,
            "match_messages": 0,
            "search_messages_text": 0,
            "fetch_messages_by_ids": 0,
            "decrypt": 0,
        }
        self.fetched_ids: List[List[str]] = []
        self.semantic_error: Optional[Exception] = None
        self.embedding_error: Optional[Exception] = None
        self.lexical_error: Optional[Exception] = None
        self.fetch_error: Optional[Exception] = None

    # -- seeding -----------------------------------------------------------

    def add_chat(self, chat_id: str, name: str = "Friends", creator_id: str | None = None) -> None:
        self.chats[chat_id] = {
            "id": chat_id,
            "name": name,
            "image": None,
            "bio": None,
            "creatorId": creator_id,
        }

    def add_member(self, user_id: str, chat_id: str) -> None:
        if chat_id not in self.chats:
            self.add_chat(chat_id)
        self.memberships.add((user_id, chat_id))

    def add_user(self, user_id: str, name: str = "Alex", phone: str | None = None) -> None:
        self.users[user_id] = {**make_user(user_id, name), "phone": phone}

    def add_message(
        self,
        message_id: str,
        chat_id: str,
        created_at: datetime,
        content: str = "hello",
        user_id: str | None = "u1",
        similarity: float | None = None,
        rank: float | None = None,
        message_type: str = "text",
        encrypted: bool = False,
        **extra: Any,
    ) -> None:
        self.messages[message_id] = {
            "id": message_id,
            "chatId": chat_id,
            "userId": user_id,
            "content": content,
            "messageType": message_type,
            "createdAt": created_at.replace(tzinfo=None).isoformat(),
            "is_encrypted": encrypted,
            **extra,
        }
        if similarity is not None:
            self.similarity[message_id] = similarity
        if rank is not None:
            self.rank[message_id] = rank

    # -- filtering ---------------------------------------------------------

    def _created_at(self, message_id: str) -> datetime:
        raw = self.messages[message_id]["createdAt"]
        return datetime.fromisoformat(raw).replace(tzinfo=timezone.utc)

    def _in_scope(self, message_id: str, filters: MessageFilters) -> bool:
        row = self.messages[message_id]
        created_at = self._created_at(message_id)
        if row["chatId"] not in filters.chat_ids:
            return False
        if filters.from_user_id and row["userId"] != filters.from_user_id:
            return False
        if filters.message_types and row["messageType"] not in filters.message_types:
            return False
        if filters.date_from and created_at < filters.date_from:
            return False
        if filters.date_to and created_at > filters.date_to:
            return False
        return True

    def _rpc_rows(self, ids: List[str], metric: str, values: Dict[str, float], count: int):
        ids = sorted(ids, key=self._created_at, reverse=True)[:count]
        return [
            {
                "id": message_id,
                "content": self.messages[message_id]["content"],
                metric: values.get(message_id),
                "createdat": self.messages[message_id]["createdAt"],
            }
            for message_id in ids
        ]

    # -- fakes for app.db wrappers ------------------------------------------

    async def generate_embedding(self, text: str) -> List[float]:
        self.calls["embedding"] += 1
        if self.embedding_error:
            raise self.embedding_error
        return [0.1, 0.2, 0.3]

    async def match_messages(self, db, query_embedding, filters, match_threshold, match_count):
        self.calls["match_messages"] += 1
        if self.semantic_error:
            raise self.semantic_error
        ids = [
            message_id
            for message_id, similarity in self.similarity.items()
            if similarity > match_threshold and self._in_scope(message_id, filters)
        ]
        return self._rpc_rows(ids, "similarity", self.similarity, match_count)

    async def search_messages_text(self, db, search_query, filters, match_count):
        self.calls["search_messages_text"] += 1
        if self.lexical_error:
            raise self.lexical_error
        needle = search_query.lower()
        ids = [
            message_id
            for message_id, row in self.messages.items()
            if needle in (row["content"] or "").lower() and self._in_scope(message_id, filters)
        ]
        return self._rpc_rows(ids, "rank", self.rank, match_count)

    async def get_chat_membership(self, db, user_id, chat_id):
        return {"id": f"{user_id}:{chat_id}"} if (user_id, chat_id) in self.memberships else None

    async def list_user_chat_ids(self, db, user_id):
        return sorted(chat_id for member, chat_id in self.memberships if member == user_id)

    async def fetch_messages_by_ids(self, db, message_ids):
        self.calls["fetch_messages_by_ids"] += 1
        self.fetched_ids.append(list(message_ids))
        if self.fetch_error:
            raise self.fetch_error
        rows = []
        for message_id in message_ids:
            row = self.messages.get(message_id)
            if row is None:
                continue
            sender = row["userId"]
            chat = self.chats.get(row["chatId"], {"id": row["chatId"], "name": None, "image": None})
            rows.append(
                {
                    **row,
                    "user": make_user(sender) if sender else None,
                    "chat": {key: chat[key] for key in ("id", "name", "image")},
                    "aiFriend": None,
                    "replyTo": row.get("replyTo"),
                    "reactions": row.get("reactions", []),
                    "mentions": row.get("mentions", []),
                }
            )
        # The store does not promise any order
        return list(reversed(rows))

    async def decrypt_message_content(self, db, encrypted_text):
        self.calls["decrypt"] += 1
        if encrypted_text.startswith("enc:"):
            return encrypted_text[len("enc:"):]
        return None

    async def search_chats_by_name(self, db, user_id, query, limit=5):
        rows = [
            {**chat, "members": [{"count": sum(1 for _, c in self.memberships if c == chat_id)}]}
            for chat_id, chat in self.chats.items()
            if (user_id, chat_id) in self.memberships and query.lower() in chat["name"].lower()
        ]
        return rows[:limit]

    async def search_users(self, db, user_id, query, limit=5):
        needle = query.lower()
        rows = [
            user
            for uid, user in self.users.items()
            if uid != user_id
            and (needle in (user["name"] or "").lower() or needle in (user["phone"] or ""))
        ]
        return rows[:limit]

    @property
    def retrieval_calls(self) -> int:
        return self.calls["embedding"] + self.calls["match_messages"] + self.calls["search_messages_text"]


