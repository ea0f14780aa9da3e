"""Tests for the agent chat and conversation routes."""

from tests.helpers import reply_json, tool_call_json

USER = {"X-User-Id": "u1"}


class TestChat:
    """Tests for POST /api/v1/agent/chat."""

    def test_chat_creates_conversation(self, client, provider):
        provider.queue(reply_json("Hello! How can I help?"))

        response = client.post("/api/v1/agent/chat", json={"message": "hi"}, headers=USER)

        assert response.status_code == 200
        data = response.json()
        assert data["conversation_id"]
        assert [m["role"] for m in data["messages"]] == ["user", "agent"]
        assert data["messages"][1]["content"] == "Hello! How can I help?"
        assert data["messages"][1]["sequence"] == 2

    def test_search_returns_items_attachment(self, client, provider):
        provider.queue(tool_call_json("search_catalog", keyword="pens"))

        response = client.post(
            "/api/v1/agent/chat", json={"message": "search for pens"}, headers=USER,
        )

        attachment = response.json()["messages"][-1]["attachment"]
        assert attachment["kind"] == "items"
        assert len(attachment["items"]) == 2

    def test_confirmation_round_trip(self, client, provider, cart_service):
        provider.queue(tool_call_json("add_to_cart", item_id="item-pen-blue", quantity=3))

        first = client.post(
            "/api/v1/agent/chat", json={"message": "add 3 blue pens"}, headers=USER,
        ).json()
        pending = first["messages"][-1]["pending_action"]
        assert pending["call"]["tool"] == "add_to_cart"
        assert pending["call"]["quantity"] == 3

        second = client.post(
            "/api/v1/agent/chat",
            json={"message": "yes", "conversationId": first["conversation_id"]},
            headers=USER,
        ).json()

        agent = second["messages"][-1]
        assert agent["attachment"]["kind"] == "cart"
        assert agent["attachment"]["cart"]["item_count"] == 3
        assert agent["pending_action"] is None

    def test_empty_message_is_400(self, client, provider):
        response = client.post("/api/v1/agent/chat", json={"message": "   "}, headers=USER)

        assert response.status_code == 400
        assert response.json()["error_code"] == "E-1001"
        assert provider.calls == []

    def test_missing_message_is_400(self, client):
        response = client.post("/api/v1/agent/chat", json={}, headers=USER)
        assert response.status_code == 400

    def test_oversized_message_is_400(self, client, provider):
        response = client.post(
            "/api/v1/agent/chat", json={"message": "x" * 4001}, headers=USER,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "E-1002"
        assert "message" in body["message"]
        assert "xxxx" not in response.text
        assert "detail" not in body
        assert provider.calls == []

    def test_non_string_message_is_400(self, client):
        response = client.post("/api/v1/agent/chat", json={"message": 123}, headers=USER)

        assert response.status_code == 400
        assert response.json()["error_code"] == "E-1002"
        assert "123" not in response.json()["message"]

    def test_malformed_body_is_400(self, client):
        response = client.post(
            "/api/v1/agent/chat",
            content="{not json",
            headers={**USER, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "E-1002"

    def test_unknown_conversation_is_404(self, client):
        response = client.post(
            "/api/v1/agent/chat",
            json={"message": "hi", "conversation_id": "does-not-exist"},
            headers=USER,
        )

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "E-2004"
        assert "does-not-exist" in body["message"]

    def test_other_users_conversation_is_404(self, client, provider):
        provider.queue(reply_json("Hi"))
        created = client.post(
            "/api/v1/agent/chat", json={"message": "hi"}, headers=USER,
        ).json()

        response = client.post(
            "/api/v1/agent/chat",
            json={"message": "hi", "conversation_id": created["conversation_id"]},
            headers={"X-User-Id": "u2"},
        )

        assert response.status_code == 404


class TestConversations:
    """Tests for /api/v1/agent/conversations."""

    def test_create_conversation(self, client):
        response = client.post("/api/v1/agent/conversations", headers=USER)

        assert response.status_code == 201
        conversation = response.json()["conversation"]
        assert conversation["status"] == "in_progress"
        assert conversation["messages"] == []

    def test_list_conversations(self, client, provider):
        provider.queue(reply_json("Hi"))
        client.post("/api/v1/agent/chat", json={"message": "find pens"}, headers=USER)
        client.post("/api/v1/agent/conversations", headers={"X-User-Id": "u2"})

        response = client.get("/api/v1/agent/conversations", headers=USER)

        assert response.status_code == 200
        conversations = response.json()["conversations"]
        assert len(conversations) == 1
        assert conversations[0]["title"] == "find pens"
        assert conversations[0]["message_count"] == 2

    def test_list_anonymous_is_empty(self, client):
        client.post("/api/v1/agent/conversations")
        response = client.get("/api/v1/agent/conversations")
        assert response.json()["conversations"] == []

    def test_list_limit_validated(self, client):
        response = client.get("/api/v1/agent/conversations?limit=500", headers=USER)

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "E-1002"
        assert "limit" in body["message"]

    def test_get_conversation(self, client, provider):
        provider.queue(reply_json("Hi"))
        created = client.post(
            "/api/v1/agent/chat", json={"message": "hello"}, headers=USER,
        ).json()

        response = client.get(
            f"/api/v1/agent/conversations/{created['conversation_id']}", headers=USER,
        )

        assert response.status_code == 200
        messages = response.json()["conversation"]["messages"]
        assert [m["content"] for m in messages] == ["hello", "Hi"]

    def test_get_unknown_conversation(self, client):
        response = client.get("/api/v1/agent/conversations/missing", headers=USER)
        assert response.status_code == 404

    def test_complete_conversation(self, client):
        created = client.post("/api/v1/agent/conversations", headers=USER).json()
        conversation_id = created["conversation"]["id"]

        response = client.post(
            f"/api/v1/agent/conversations/{conversation_id}/complete", headers=USER,
        )

        assert response.status_code == 200
        assert response.json()["conversation"]["status"] == "completed"

    def test_complete_other_users_conversation_is_404(self, client):
        created = client.post("/api/v1/agent/conversations", headers=USER).json()

        response = client.post(
            f"/api/v1/agent/conversations/{created['conversation']['id']}/complete",
            headers={"X-User-Id": "u2"},
        )

        assert response.status_code == 404


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["uptime_seconds"] >= 0


class TestUsage:
    """Tests for GET /api/v1/agent/usage."""

    def test_usage_after_chat(self, client, provider):
        provider.queue(reply_json("Hi"), reply_json("Again"))
        first = client.post("/api/v1/agent/chat", json={"message": "hi"}, headers=USER).json()
        client.post(
            "/api/v1/agent/chat",
            json={"message": "hi again", "conversation_id": first["conversation_id"]},
            headers=USER,
        )

        response = client.get("/api/v1/agent/usage", headers=USER)

        assert response.status_code == 200
        data = response.json()
        assert data["request_count"] == 2
        assert data["prompt_tokens"] == 200
        assert data["completion_tokens"] == 40
        assert data["total_tokens"] == 240
        assert len(data["recent"]) == 2

    def test_usage_filtered_by_conversation(self, client, provider):
        provider.queue(reply_json("One"), reply_json("Two"))
        first = client.post("/api/v1/agent/chat", json={"message": "a"}, headers=USER).json()
        client.post("/api/v1/agent/chat", json={"message": "b"}, headers=USER)

        response = client.get(
            f"/api/v1/agent/usage?conversation_id={first['conversation_id']}",
            headers=USER,
        )

        data = response.json()
        assert data["request_count"] == 1
        assert data["conversation_id"] == first["conversation_id"]

    def test_usage_is_per_user(self, client, provider):
        provider.queue(reply_json("Hi"))
        client.post("/api/v1/agent/chat", json={"message": "hi"}, headers=USER)

        response = client.get("/api/v1/agent/usage", headers={"X-User-Id": "u2"})

        assert response.json()["request_count"] == 0

    def test_anonymous_usage_is_empty(self, client, provider):
        provider.queue(reply_json("Hi"))
        client.post("/api/v1/agent/chat", json={"message": "hi"})

        response = client.get("/api/v1/agent/usage")

        assert response.status_code == 200
        assert response.json()["request_count"] == 0
