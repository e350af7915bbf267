"""
routers/chat.py

POST /api/chat
Flow:
  1. Validate body (message required, language optional)
  2. Wrap in persona prompt + few-shot examples
  3. One call to the LLM server
  4. Return {"reply": "..."}
"""

import httpx
from fastapi import APIRouter, Depends

from relay.core.config import Settings, get_settings
from relay.core.http import get_http_client
from relay.core.logger import get_logger
from relay.models.request import ChatRequest
from relay.models.response import ChatResponse, ErrorResponse
from relay.services.chat_relay import ChatRelay

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["chat"])


def get_chat_relay(
    cfg: Settings = Depends(get_settings),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> ChatRelay:
    return ChatRelay(cfg, http)


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def chat(req: ChatRequest, relay: ChatRelay = Depends(get_chat_relay)):
    logger.info(f"Chat [{req.language or 'auto'}]: '{req.message[:80]}'")
    reply = await relay.reply(req.message, req.language)
    return ChatResponse(reply=reply)
