"""
services/asr_relay.py

Transcription relay: re-wraps an uploaded audio clip under the field name
the ASR server expects and returns the trimmed transcript.

ASR server contract:
  POST ASR_SERVER_URL  multipart {ASR_UPSTREAM_FIELD: <audio>}  ->  {"text": "..."}
"""

import time

import httpx

from relay.core.config import Settings
from relay.core.errors import InvalidResponse, Misconfigured, NetworkFailure, UpstreamError
from relay.core.logger import get_logger

logger = get_logger(__name__)


class AsrRelay:
    def __init__(self, cfg: Settings, http: httpx.AsyncClient):
        self.cfg = cfg
        self.http = http

    async def transcribe(self, audio: bytes, content_type: str = "application/octet-stream") -> str:
        if not self.cfg.asr_configured:
            logger.error("ASR_SERVER_URL is not set in env")
            raise Misconfigured("ASR_SERVER_URL is not configured")

        url = self.cfg.ASR_SERVER_URL.strip()
        files = {
            self.cfg.ASR_UPSTREAM_FIELD: (self.cfg.ASR_UPLOAD_FILENAME, audio, content_type),
        }
        logger.info(f"Forwarding {len(audio)} bytes of audio to {url}")
        t0 = time.perf_counter()

        try:
            res = await self.http.post(url, files=files)
        except httpx.TransportError as e:
            logger.error(f"ASR unreachable at {url}: {type(e).__name__}: {e}")
            raise NetworkFailure("ASR backend unreachable", detail=str(e) or type(e).__name__)

        if res.is_error:
            logger.error(f"ASR backend returned {res.status_code}: {res.text[:300]}")
            raise UpstreamError(
                "ASR backend error",
                detail=res.text,
                backend_status=res.status_code,
            )

        try:
            data = res.json()
        except ValueError:
            data = None

        if not isinstance(data, dict) or not isinstance(data.get("text"), str):
            logger.error(f"ASR backend response missing 'text': {res.text[:300]}")
            raise InvalidResponse("Invalid response from ASR backend")

        text = data["text"].strip()
        latency_ms = int((time.perf_counter() - t0) * 1000)
        logger.info(f"Transcription OK [{latency_ms}ms]: {text[:120]!r}")
        return text
