"""
chat_ui/controller.py
UI state for one chat session and the two user actions that change it.

Guards:
  - at most one chat request in flight   (loading)
  - at most one microphone recording     (recording_state)
The Flet view only reads this state and forwards clicks/keys.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from chat_ui.client import EmptyResult, NetworkFailure, RelayClient, RelayClientError, UpstreamError
from chat_ui.models import LANGUAGES, ChatMessage
from chat_ui.recorder import MicrophoneError, RecordingSession

logger = logging.getLogger(__name__)

NETWORK_ERROR = "Network request failed. Please check your connection or try again."
SERVER_BUSY = "Server is busy. Please try again later."
VOICE_FAILED = "Voice recognition failed. Please try again or type your message."
NO_SPEECH = "No speech detected. Please try again or type your message."
MIC_ERROR = "Could not access microphone ({reason}). Please check permissions and try again."


class RecordingState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


class ChatController:
    def __init__(
        self,
        client: RelayClient,
        recorder_factory: Callable[[], RecordingSession] = RecordingSession,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.client = client
        self.recorder_factory = recorder_factory
        self.on_change = on_change

        self.messages: list[ChatMessage] = []
        self.input_text = ""
        self.language = "auto"
        self.loading = False
        self.recording_state = RecordingState.IDLE
        self.error_text = ""
        self.recording_error = ""

        self._session: Optional[RecordingSession] = None

    # ── Derived state for the view ────────────────────────────────────────

    @property
    def thinking(self) -> bool:
        return self.loading or self.recording_state == RecordingState.TRANSCRIBING

    @property
    def can_send(self) -> bool:
        return not self.loading and bool(self.input_text.strip())

    @property
    def mic_enabled(self) -> bool:
        return not self.loading and self.recording_state != RecordingState.TRANSCRIBING

    @property
    def volume_level(self) -> float:
        if self._session is None:
            return 0.0
        return self._session.level

    # ── Inputs ────────────────────────────────────────────────────────────

    def set_input(self, text: str) -> None:
        self.input_text = text or ""

    def set_language(self, language: str) -> None:
        if language not in LANGUAGES:
            raise ValueError(f"Unknown language: {language}")
        self.language = language
        self._notify()

    # ── Chat ──────────────────────────────────────────────────────────────

    async def submit(self, text: Optional[str] = None) -> bool:
        """Send `text`, or the input box when None. Returns False when ignored."""
        from_input = text is None
        content = (self.input_text if from_input else text).strip()
        if not content or self.loading:
            return False

        # Optimistic: show the user's message before the reply arrives
        self.messages.append(ChatMessage("user", content))
        if from_input:
            self.input_text = ""
        self.error_text = ""
        self.loading = True
        self._notify()

        try:
            reply = await self.client.chat(content, self.language)
        except NetworkFailure as e:
            logger.warning(f"Chat network failure: {e}")
            self.error_text = NETWORK_ERROR
        except UpstreamError as e:
            logger.warning(f"Chat relay returned {e.status_code}: {e.error}")
            self.error_text = e.error or SERVER_BUSY
        except RelayClientError as e:
            logger.warning(f"Chat failed: {e}")
            self.error_text = SERVER_BUSY
        else:
            self.messages.append(ChatMessage("assistant", reply))
        finally:
            self.loading = False
            self._notify()

        return True

    # ── Voice ─────────────────────────────────────────────────────────────

    async def toggle_recording(self) -> None:
        if self.recording_state == RecordingState.RECORDING:
            await self.stop_recording()
        else:
            await self.start_recording()

    async def start_recording(self) -> bool:
        if self.recording_state != RecordingState.IDLE or self.loading:
            return False

        self.recording_error = ""
        session = self.recorder_factory()
        try:
            session.start()
        except MicrophoneError as e:
            logger.error(f"Microphone error: {e}")
            self.recording_error = MIC_ERROR.format(reason=e)
            self._notify()
            return False

        self._session = session
        self.recording_state = RecordingState.RECORDING
        self._notify()
        return True

    async def stop_recording(self) -> None:
        """Stop capture, transcribe, and send the transcript as a user message."""
        if self.recording_state != RecordingState.RECORDING or self._session is None:
            return

        session, self._session = self._session, None
        self.recording_state = RecordingState.TRANSCRIBING
        self._notify()

        text = ""
        try:
            audio = await asyncio.to_thread(session.stop)
            text = await self.client.transcribe(audio)
        except EmptyResult:
            self.recording_error = NO_SPEECH
        except NetworkFailure as e:
            logger.warning(f"Transcription network failure: {e}")
            self.recording_error = NETWORK_ERROR
        except RelayClientError as e:
            logger.warning(f"Transcription failed: {e}")
            self.recording_error = VOICE_FAILED
        finally:
            self.recording_state = RecordingState.IDLE
            self._notify()

        # A typed message may have gone out while transcribing; keep the
        # transcript in the input box instead of dropping it
        if text and not await self.submit(text):
            self.input_text = text
            self._notify()

    # ──────────────────────────────────────────────────────────────────────

    def _notify(self) -> None:
        if self.on_change:
            self.on_change()
