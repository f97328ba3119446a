"""HTTP-level tests for chat streaming and conversation endpoints."""

from __future__ import annotations

import json
from typing import Any

import httpx
from fastapi.testclient import TestClient

from streamchat.core import ErrorCode


def parse_sse(body: str) -> list[tuple[str, dict[str, Any]]]:
    """Split an SSE body into (event, data) pairs."""
    events = []
    for frame in body.split("\n\n"):
        if not frame.strip():
            continue
        fields = dict(line.split(": ", 1) for line in frame.splitlines())
        events.append((fields["event"], json.loads(fields["data"])))
    return events


def stream_chat(client: TestClient, **payload: Any) -> list[tuple[str, dict[str, Any]]]:
    response = client.post("/api/chat/stream", json=payload)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"
    return parse_sse(response.text)


def test_chat_stream_emits_start_content_done(client: TestClient) -> None:
    events = stream_chat(client, message="Hello")

    kinds = [kind for kind, _ in events]
    assert kinds == ["start", "content", "content", "content", "done"]

    conversation_id = events[0][1]["conversation_id"]
    assert events[0][1] == {"type": "start", "conversation_id": conversation_id}
    assert [data["content"] for kind, data in events if kind == "content"] == ["Hello", ", ", "world"]
    assert events[-1][1] == {"type": "done", "conversation_id": conversation_id}


def test_chat_stream_persists_exchange(client: TestClient) -> None:
    events = stream_chat(client, message="What is 2+2?")
    conversation_id = events[0][1]["conversation_id"]

    response = client.get(f"/api/conversations/{conversation_id}/messages")

    assert response.status_code == 200
    body = response.json()
    assert body["conversation_id"] == conversation_id
    assert [(m["role"], m["content"]) for m in body["messages"]] == [
        ("user", "What is 2+2?"),
        ("assistant", "Hello, world"),
    ]


def test_chat_stream_continues_conversation(client: TestClient, provider_handler) -> None:
    first = stream_chat(client, message="one")
    conversation_id = first[0][1]["conversation_id"]

    second = stream_chat(client, message="two", conversation_id=conversation_id)

    assert second[0][1]["conversation_id"] == conversation_id
    payload = json.loads(provider_handler.requests[-1].content)
    assert [m["role"] for m in payload["messages"]] == ["system", "user", "assistant", "user"]


def test_chat_stream_provider_error_becomes_error_event(client: TestClient, provider_handler) -> None:
    provider_handler.respond = lambda request: httpx.Response(401, json={"error": "bad key"})

    events = stream_chat(client, message="Hello")

    assert [kind for kind, _ in events] == ["start", "error"]
    assert events[-1][1]["code"] == ErrorCode.PROVIDER_AUTH_FAILED.value
    assert events[-1][1]["error"] == "Provider authentication failed"

    conversation_id = events[0][1]["conversation_id"]
    messages = client.get(f"/api/conversations/{conversation_id}/messages").json()["messages"]
    assert [m["role"] for m in messages] == ["user"]


def test_chat_stream_unknown_conversation(client: TestClient, provider_handler) -> None:
    events = stream_chat(client, message="Hello", conversation_id=4242)

    assert events == [
        (
            "error",
            {
                "type": "error",
                "error": "Conversation not found",
                "code": ErrorCode.CONVERSATION_NOT_FOUND.value,
            },
        )
    ]
    assert provider_handler.requests == []


def test_chat_stream_validation(client: TestClient) -> None:
    response = client.post("/api/chat/stream", json={"message": ""})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == ErrorCode.VALIDATION_ERROR.value

    response = client.post("/api/chat/stream", json={"message": "hi", "conversation_id": -1})
    assert response.status_code == 422


def test_blank_message_rejected_before_stream_opens(client: TestClient, provider_handler) -> None:
    response = client.post("/api/chat/stream", json={"message": "  \n\t "})

    assert response.status_code == 422
    assert response.headers["content-type"].startswith("application/json")
    error = response.json()["error"]
    assert error["code"] == ErrorCode.VALIDATION_ERROR.value
    assert "Message must not be empty" in str(error["details"])
    assert provider_handler.requests == []


def test_request_too_large(client: TestClient) -> None:
    response = client.post("/api/chat/stream", json={"message": "x" * (1024 * 1024 + 1)})

    assert response.status_code == 413
    assert response.json()["error"]["code"] == ErrorCode.REQUEST_TOO_LARGE.value


def test_list_and_delete_conversations(client: TestClient) -> None:
    first = stream_chat(client, message="first question")[0][1]["conversation_id"]
    second = stream_chat(client, message="second question")[0][1]["conversation_id"]

    conversations = client.get("/api/conversations").json()["conversations"]
    assert {c["id"] for c in conversations} == {first, second}
    assert {c["title"] for c in conversations} == {"first question", "second question"}

    response = client.delete(f"/api/conversations/{first}")
    assert response.status_code == 200

    conversations = client.get("/api/conversations").json()["conversations"]
    assert [c["id"] for c in conversations] == [second]
    assert client.get(f"/api/conversations/{first}/messages").json()["messages"] == []

    response = client.delete(f"/api/conversations/{first}")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == ErrorCode.CONVERSATION_NOT_FOUND.value


def test_request_id_is_echoed(client: TestClient) -> None:
    response = client.get("/api/conversations", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
