"""
tests/test_ui_client.py
RelayClient against a fake relay.
"""

import asyncio
import json

import httpx
import pytest

from chat_ui.client import FALLBACK_REPLY, EmptyResult, NetworkFailure, RelayClient, UpstreamError


def client_for(handler, calls=None):
    def record(request):
        if calls is not None:
            calls.append(request)
        return handler(request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(record))
    return RelayClient("http://relay.test/", http=http)


def test_chat_sends_language_except_auto():
    calls = []
    client = client_for(lambda r: httpx.Response(200, json={"reply": "Can lah."}), calls)

    assert asyncio.run(client.chat("hello", "auto")) == "Can lah."
    assert asyncio.run(client.chat("hello", "teochew")) == "Can lah."

    assert str(calls[0].url) == "http://relay.test/api/chat"
    assert json.loads(calls[0].content) == {"message": "hello"}
    assert json.loads(calls[1].content) == {"message": "hello", "language": "teochew"}


def test_chat_empty_reply_falls_back():
    client = client_for(lambda r: httpx.Response(200, json={"reply": ""}))

    assert asyncio.run(client.chat("hello")) == FALLBACK_REPLY


def test_chat_error_status_carries_relay_error():
    client = client_for(lambda r: httpx.Response(502, json={"error": "LLM server error", "detail": "boom"}))

    with pytest.raises(UpstreamError) as info:
        asyncio.run(client.chat("hello"))

    assert info.value.status_code == 502
    assert info.value.error == "LLM server error"


def test_chat_error_status_without_json_body():
    client = client_for(lambda r: httpx.Response(503, text="<html>bad gateway</html>"))

    with pytest.raises(UpstreamError) as info:
        asyncio.run(client.chat("hello"))

    assert info.value.error is None


def test_connection_refused_is_network_failure():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = client_for(refuse)

    with pytest.raises(NetworkFailure):
        asyncio.run(client.chat("hello"))


def test_transcribe_posts_audio_field():
    calls = []
    client = client_for(lambda r: httpx.Response(200, json={"text": " wah lau "}), calls)

    assert asyncio.run(client.transcribe(b"wav-bytes")) == "wah lau"
    assert str(calls[0].url) == "http://relay.test/api/asr"
    assert b'name="audio"; filename="audio.wav"' in calls[0].content


@pytest.mark.parametrize("body", [{"text": ""}, {"text": "   "}, {}])
def test_transcribe_empty_result(body):
    client = client_for(lambda r: httpx.Response(200, json=body))

    with pytest.raises(EmptyResult):
        asyncio.run(client.transcribe(b"wav-bytes"))
