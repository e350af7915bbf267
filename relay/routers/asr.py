"""
routers/asr.py

POST /api/asr
Takes multipart form data with one binary field "audio" (what the chat UI
records) and returns {"text": "..."} from the ASR server.
"""

import httpx
from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from relay.core.config import Settings, get_settings
from relay.core.errors import BadRequest
from relay.core.http import get_http_client
from relay.models.response import ErrorResponse, TranscriptionResponse
from relay.services.asr_relay import AsrRelay

router = APIRouter(prefix="/api", tags=["asr"])

AUDIO_FIELD = "audio"


def get_asr_relay(
    cfg: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> AsrRelay:
    return AsrRelay(cfg, http)


@router.post(
    "/asr",
    response_model=TranscriptionResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def transcribe(request: Request, relay: AsrRelay = Depends(get_asr_relay)):
    form = await request.form()
    try:
        audio = form.get(AUDIO_FIELD)

        # A plain text field arrives as str, not UploadFile
        if not isinstance(audio, UploadFile):
            raise BadRequest("Missing audio file")

        data = await audio.read()
        content_type = audio.content_type or "application/octet-stream"
    finally:
        await form.close()

    text = await relay.transcribe(data, content_type)
    return TranscriptionResponse(text=text)
