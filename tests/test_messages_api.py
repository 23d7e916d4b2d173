"""
Tests for the message and search HTTP endpoints.
"""

from app.services import hydration

from tests.factories import at


class TestSearchEndpoint:
    def test_returns_results_and_next_cursor(self, client, store):
        store.add_member("u1", "chat-a")
        store.add_message("m1", "chat-a", at(1), content="pizza", rank=0.4)
        store.add_message("m2", "chat-a", at(2), content="pizza", rank=0.4)

        response = client.post(
            "/api/messages/search",
            json={"userId": "u1", "query": "pizza", "mode": "text", "limit": 1},
        )

        assert response.status_code == 200
        data = response.json()
        assert [r["message"]["id"] for r in data] == ["m2"]
        assert data[0]["matchedField"] == "content"
        assert data[0]["chat"]["id"] == "chat-a"
        assert response.headers["X-Next-Cursor"] == "2025-11-03T12:02:00.000Z"

    def test_empty_query_returns_empty_list(self, client, store):
        response = client.post("/api/messages/search", json={"userId": "u1", "query": ""})

        assert response.status_code == 200
        assert response.json() == []
        assert "X-Next-Cursor" not in response.headers

    def test_foreign_chat_is_forbidden(self, client, store):
        store.add_member("u2", "chat-b")

        response = client.post(
            "/api/messages/search",
            json={"userId": "u1", "query": "pizza", "chatId": "chat-b"},
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Not a member of this chat"

    def test_internal_errors_are_generic(self, client, store):
        store.add_member("u1", "chat-a")
        store.add_message("m1", "chat-a", at(1), content="pizza", rank=0.4)
        store.fetch_error = RuntimeError("password authentication failed for user postgres")

        response = client.post("/api/messages/search", json={"userId": "u1", "query": "pizza"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Search failed"
        assert "postgres" not in response.text

    def test_limit_above_maximum_is_rejected(self, client, store):
        response = client.post(
            "/api/messages/search",
            json={"userId": "u1", "query": "pizza", "limit": 101},
        )

        assert response.status_code == 422

    def test_unknown_mode_is_rejected(self, client, store):
        response = client.post(
            "/api/messages/search",
            json={"userId": "u1", "query": "pizza", "mode": "fuzzy"},
        )

        assert response.status_code == 422


class TestBatchEndpoint:
    def test_fetches_messages(self, client, store):
        store.add_member("u1", "chat-a")
        store.add_message("m1", "chat-a", at(1), content="enc:secret", encrypted=True)
        store.add_message("m2", "chat-a", at(2))

        response = client.post("/api/messages/batch", json={"messageIds": ["m1", "m2", "m1"]})

        assert response.status_code == 200
        by_id = {m["id"]: m for m in response.json()}
        assert set(by_id) == {"m1", "m2"}
        assert by_id["m1"]["content"] == "secret"
        assert store.fetched_ids == [["m1", "m2"]]

    def test_empty_ids_is_bad_request(self, client, store):
        response = client.post("/api/messages/batch", json={"messageIds": []})

        assert response.status_code == 400

    def test_too_many_ids_is_bad_request(self, client, store):
        ids = [f"m{i}" for i in range(101)]

        response = client.post("/api/messages/batch", json={"messageIds": ids})

        assert response.status_code == 400
        assert "100" in response.json()["detail"]

    def test_fetch_failure_is_generic(self, client, store, monkeypatch):
        async def broken(db, message_ids):
            raise RuntimeError("relation does not exist")

        monkeypatch.setattr(hydration, "fetch_messages_by_ids", broken)

        response = client.post("/api/messages/batch", json={"messageIds": ["m1"]})

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to batch fetch messages"


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ping_and_request_id(self, client):
        response = client.get("/api/ping", headers={"X-Request-ID": "req-123"})

        assert response.json() == {"message": "pong", "status": "ok"}
        assert response.headers["X-Request-ID"] == "req-123"
