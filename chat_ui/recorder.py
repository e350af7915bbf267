"""
chat_ui/recorder.py
Microphone capture for one voice message.

A RecordingSession reads 16 kHz mono PCM from PyAudio on a background
thread into a list of chunks, then stop() hands back a single WAV clip.
One session = one clip; make a new session for the next recording.
"""

import io
import logging
import math
import threading
import wave
from array import array
from typing import Callable, Optional

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000        # what most ASR servers resample to anyway
CHANNELS = 1
SAMPLE_WIDTH = 2           # paInt16
FRAMES_PER_BUFFER = 1024
VOLUME_REFERENCE = 12800   # RMS that shows as a full meter


class MicrophoneError(Exception):
    pass


def rms_level(chunk: bytes) -> float:
    """Normalized loudness of one int16 chunk, 0..1."""
    samples = array("h")
    samples.frombytes(chunk[: len(chunk) - len(chunk) % SAMPLE_WIDTH])
    if not samples:
        return 0.0
    rms = math.sqrt(sum(s * s for s in samples) / len(samples))
    return min(1.0, rms / VOLUME_REFERENCE)


def to_wav(chunks: list[bytes], sample_rate: int = SAMPLE_RATE) -> bytes:
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(CHANNELS)
        wf.setsampwidth(SAMPLE_WIDTH)
        wf.setframerate(sample_rate)
        wf.writeframes(b"".join(chunks))
    return buf.getvalue()


class RecordingSession:
    def __init__(
        self,
        mic_index: Optional[int] = None,
        sample_rate: int = SAMPLE_RATE,
        on_level: Optional[Callable[[float], None]] = None,
    ):
        self.mic_index = mic_index
        self.sample_rate = sample_rate
        self.on_level = on_level
        self.chunks: list[bytes] = []
        self.level = 0.0

        self._pa = None
        self._stream = None
        self._running = False
        self._consumed = False
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        return self._running

    # ── Start ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        if self._running:
            raise RuntimeError("Recording already in progress")
        if self._consumed:
            raise RuntimeError("Recording session already used")

        self._stream = self._open_stream()
        self.chunks = []
        self._running = True
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()
        logger.info("Recorder started")

    def _open_stream(self):
        try:
            import pyaudio
        except ImportError as e:
            raise MicrophoneError("PyAudio not installed") from e

        try:
            self._pa = pyaudio.PyAudio()
            return self._pa.open(
                format=pyaudio.paInt16,
                channels=CHANNELS,
                rate=self.sample_rate,
                input=True,
                input_device_index=self.mic_index,
                frames_per_buffer=FRAMES_PER_BUFFER,
            )
        except OSError as e:
            self._terminate()
            raise MicrophoneError(str(e) or "no input device") from e

    # ── Capture loop (background thread) ──────────────────────────────────

    def _capture_loop(self) -> None:
        while self._running:
            try:
                data = self._stream.read(FRAMES_PER_BUFFER, exception_on_overflow=False)
            except OSError as e:
                logger.error(f"Recorder read error: {e}")
                self._running = False
                break
            if not data:
                continue
            self.chunks.append(data)
            self.level = rms_level(data)
            if self.on_level:
                self.on_level(self.level)

    # ── Stop ──────────────────────────────────────────────────────────────

    def stop(self) -> bytes:
        """Stop capture, release the mic, and return the clip as WAV bytes."""
        if self._consumed:
            raise RuntimeError("Recording session already used")

        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None

        try:
            if self._stream is not None:
                self._stream.stop_stream()
                self._stream.close()
        except OSError as e:
            logger.warning(f"Recorder close error: {e}")
        finally:
            self._stream = None
            self._terminate()

        self._consumed = True
        self.level = 0.0
        audio = to_wav(self.chunks, self.sample_rate)
        logger.info(f"Recorder stopped: {len(self.chunks)} chunks, {len(audio)} bytes")
        self.chunks = []
        return audio

    def _terminate(self) -> None:
        if self._pa is not None:
            self._pa.terminate()
            self._pa = None
