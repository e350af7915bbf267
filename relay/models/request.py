"""
models/request.py
All incoming request schemas.
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field, StrictStr


# ── Reply language the user picked in the UI ─────────────────────────────────
Language = Literal[
    "auto",
    "english",
    "mandarin",
    "cantonese",
    "hokkien",
    "teochew",
]


class ChatRequest(BaseModel):
    message: StrictStr = Field(..., min_length=1, description="What the user typed or said")
    language: Optional[Language] = Field(
        None, description="Preferred reply language; omitted or 'auto' = detect from message"
    )
