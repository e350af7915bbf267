"""
chat_ui/models.py
Conversation entries and reply-language options shown in the UI.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal


Role = Literal["user", "assistant"]


@dataclass
class ChatMessage:
    role: Role
    content: str
    timestamp: str = field(default_factory=lambda: datetime.now().strftime("%H:%M"))


# (value sent to the relay, label shown in the dropdown)
LANGUAGE_OPTIONS: list[tuple[str, str]] = [
    ("auto", "Auto detect"),
    ("english", "English / Singlish"),
    ("mandarin", "Mandarin"),
    ("cantonese", "Cantonese"),
    ("hokkien", "Hokkien"),
    ("teochew", "Teochew"),
]

LANGUAGES: set[str] = {value for value, _ in LANGUAGE_OPTIONS}
