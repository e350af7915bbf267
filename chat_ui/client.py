"""
chat_ui/client.py
HTTP client for the two relay endpoints.

Every failure is raised as a RelayClientError subclass so the controller
can show a different message per category.
"""

from typing import Optional

import httpx

FALLBACK_REPLY = "Sorry, I am temporarily unable to respond. Please try again later."


class RelayClientError(Exception):
    pass


class NetworkFailure(RelayClientError):
    """Relay could not be reached."""


class UpstreamError(RelayClientError):
    """Relay answered with a non-2xx status."""

    def __init__(self, status_code: int, error: Optional[str] = None):
        super().__init__(error or f"HTTP {status_code}")
        self.status_code = status_code
        self.error = error


class EmptyResult(RelayClientError):
    """Transcription came back with no usable text."""


class RelayClient:
    def __init__(self, base_url: str, timeout: float = 120.0, http: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.api = http or httpx.AsyncClient(timeout=timeout)

    async def chat(self, message: str, language: Optional[str] = None) -> str:
        body: dict = {"message": message}
        if language and language != "auto":
            body["language"] = language

        resp = await self._post("/api/chat", json=body)
        data = _json_or_empty(resp)
        reply = data.get("reply")
        return reply if isinstance(reply, str) and reply else FALLBACK_REPLY

    async def transcribe(self, audio: bytes, filename: str = "audio.wav", content_type: str = "audio/wav") -> str:
        resp = await self._post("/api/asr", files={"audio": (filename, audio, content_type)})
        text = _json_or_empty(resp).get("text")
        text = text.strip() if isinstance(text, str) else ""
        if not text:
            raise EmptyResult("Empty transcription")
        return text

    async def aclose(self) -> None:
        await self.api.aclose()

    async def _post(self, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self.api.post(f"{self.base_url}{path}", **kwargs)
        except httpx.TransportError as e:
            raise NetworkFailure(str(e) or type(e).__name__) from e

        if resp.is_error:
            error = _json_or_empty(resp).get("error")
            raise UpstreamError(resp.status_code, error if isinstance(error, str) else None)
        return resp


def _json_or_empty(resp: httpx.Response) -> dict:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
