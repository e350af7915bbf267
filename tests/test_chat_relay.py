"""
tests/test_chat_relay.py
pytest tests for POST /api/chat.
Run: pytest tests/ -v
"""

import json

import httpx
import pytest

from relay.services.chat_relay import (
    FALLBACK_REPLY,
    FEW_SHOT_MESSAGES,
    SYSTEM_PROMPT,
    build_messages,
    extract_path,
    language_hint,
)


def ollama_reply(content):
    return lambda request: httpx.Response(
        200, json={"model": "qwen2.5:7b", "message": {"role": "assistant", "content": content}, "done": True}
    )


def test_reply_from_backend(make_client, upstream):
    upstream.handler = ollama_reply("Bill higher because of extra data.")
    client = make_client()

    resp = client.post("/api/chat", json={"message": "Why my bill so high one?"})

    assert resp.status_code == 200
    assert resp.json() == {"reply": "Bill higher because of extra data."}

    assert len(upstream.requests) == 1
    sent = upstream.requests[0]
    assert str(sent.url) == "http://llm.test/api/chat"
    payload = json.loads(sent.content)
    assert payload["model"] == "qwen2.5:7b"
    assert payload["stream"] is False
    assert payload["messages"][-1] == {"role": "user", "content": "Why my bill so high one?"}


def test_language_hint_reaches_system_prompt(make_client, upstream):
    upstream.handler = ollama_reply("Ho lah.")
    client = make_client()

    client.post("/api/chat", json={"message": "Eh how ah?", "language": "hokkien"})

    system = json.loads(upstream.requests[0].content)["messages"][0]
    assert system["role"] == "system"
    assert system["content"].startswith(SYSTEM_PROMPT)
    assert "User selected language/dialect: hokkien." in system["content"]


@pytest.mark.parametrize("body", [
    {},
    {"language": "english"},
    {"message": ""},
    {"message": 42},
    {"message": None},
])
def test_bad_message_never_calls_backend(make_client, upstream, body):
    client = make_client()

    resp = client.post("/api/chat", json=body)

    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing message"
    assert upstream.requests == []


def test_unknown_language_is_bad_request(make_client, upstream):
    client = make_client()

    resp = client.post("/api/chat", json={"message": "hi", "language": "klingon"})

    assert resp.status_code == 400
    assert upstream.requests == []


def test_invalid_json_is_bad_request(make_client, upstream):
    client = make_client()

    resp = client.post("/api/chat", content=b"{not json", headers={"Content-Type": "application/json"})

    assert resp.status_code == 400
    assert upstream.requests == []


def test_missing_server_url_is_misconfigured(make_client, upstream):
    client = make_client(LLM_SERVER_URL="")

    resp = client.post("/api/chat", json={"message": "hello"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "LLM_SERVER_URL is not configured"}
    assert upstream.requests == []


def test_backend_failure_is_upstream_error_with_detail(make_client, upstream):
    upstream.handler = lambda request: httpx.Response(500, text="model 'qwen2.5:7b' not found")
    client = make_client()

    resp = client.post("/api/chat", json={"message": "hello"})

    assert resp.status_code == 502
    assert resp.json() == {"error": "LLM server error", "detail": "model 'qwen2.5:7b' not found"}
    assert len(upstream.requests) == 1   # no retries


def test_unreachable_backend_is_network_failure(make_client, upstream):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream.handler = refuse
    client = make_client()

    resp = client.post("/api/chat", json={"message": "hello"})

    assert resp.status_code == 502
    assert resp.json()["error"] == "LLM server unreachable"


def test_missing_reply_content_uses_fallback(make_client, upstream):
    upstream.handler = lambda request: httpx.Response(200, json={"done": True})
    client = make_client()

    resp = client.post("/api/chat", json={"message": "hello"})

    assert resp.status_code == 200
    assert resp.json() == {"reply": FALLBACK_REPLY}


def test_custom_reply_path(make_client, upstream):
    upstream.handler = lambda request: httpx.Response(200, json={"output": [{"text": "Can lah."}]})
    client = make_client(LLM_REPLY_PATH="output.0.text")

    resp = client.post("/api/chat", json={"message": "hello"})

    assert resp.json() == {"reply": "Can lah."}


def test_openai_provider(make_client, upstream):
    def completion(request):
        return httpx.Response(200, json={
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "qwen2.5-7b-instruct",
            "choices": [{
                "index": 0,
                "message": {"role": "assistant", "content": "Roaming charge lor."},
                "finish_reason": "stop",
            }],
        })

    upstream.handler = completion
    client = make_client(LLM_PROVIDER="openai", LLM_SERVER_URL="http://llm.test/v1")

    resp = client.post("/api/chat", json={"message": "Why got roaming charge?"})

    assert resp.status_code == 200
    assert resp.json() == {"reply": "Roaming charge lor."}
    sent = upstream.requests[0]
    assert sent.url.path == "/v1/chat/completions"
    payload = json.loads(sent.content)
    assert payload["stream"] is False
    assert payload["messages"][-1]["content"] == "Why got roaming charge?"


def test_openai_provider_backend_failure(make_client, upstream):
    upstream.handler = lambda request: httpx.Response(503, text="overloaded")
    client = make_client(LLM_PROVIDER="openai", LLM_SERVER_URL="http://llm.test/v1")

    resp = client.post("/api/chat", json={"message": "hello"})

    assert resp.status_code == 502
    assert resp.json() == {"error": "LLM server error", "detail": "overloaded"}
    assert len(upstream.requests) == 1


@pytest.mark.parametrize("body", ["oops", "<html>gateway busy</html>"])
def test_openai_provider_non_json_body(make_client, upstream, body):
    upstream.handler = lambda request: httpx.Response(200, text=body)
    client = make_client(LLM_PROVIDER="openai", LLM_SERVER_URL="http://llm.test/v1")

    resp = client.post("/api/chat", json={"message": "hello"})

    assert resp.status_code == 502
    assert resp.json() == {"error": "Invalid response from LLM server"}


# ── Prompt assembly ───────────────────────────────────────────────────────────

@pytest.mark.parametrize("language", [None, "auto"])
def test_auto_language_hint(language):
    assert language_hint(language) == "User language may change; auto-detect and match the user."


def test_build_messages_order():
    msgs = build_messages("Plan can downgrade or not?", "cantonese")

    assert msgs[0]["role"] == "system"
    assert msgs[1:-1] == FEW_SHOT_MESSAGES
    assert msgs[-1] == {"role": "user", "content": "Plan can downgrade or not?"}
    assert len(FEW_SHOT_MESSAGES) == 6


def test_extract_path():
    data = {"choices": [{"message": {"content": "hi"}}], "message": None}
    assert extract_path(data, "choices.0.message.content") == "hi"
    assert extract_path(data, "choices.3.message.content") is None
    assert extract_path(data, "message.content") is None
