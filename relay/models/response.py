"""
models/response.py
All outgoing response schemas.
The chat UI reads these and renders them.
"""

from typing import Optional
from pydantic import BaseModel


class ChatResponse(BaseModel):
    reply: str


class TranscriptionResponse(BaseModel):
    text: str


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
    backend_status: Optional[int] = None   # ASR upstream status, diagnostics only


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    llm_provider: str
    llm_model: str
    llm_configured: bool
    asr_configured: bool
