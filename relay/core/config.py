"""
core/config.py
All environment variables and settings in one place.
Chat backend: Ollama native /api/chat  +  any OpenAI-compatible endpoint
ASR backend : any HTTP endpoint that takes multipart audio and returns {"text": ...}
"""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ─── App ───────────────────────────────────────────────
    APP_NAME: str = "Zero1 Dialect Relay"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: list[str] = ["*"]   # tighten in production

    # ─── LLM Provider ──────────────────────────────────────
    # Options: "ollama" | "openai"
    LLM_PROVIDER: Literal["ollama", "openai"] = "ollama"

    # ─── LLM Server ────────────────────────────────────────
    # ollama: "http://gpu-vm:11434"      (relay calls {url}/api/chat)
    # openai: "http://gpu-vm:8001/v1"    (vLLM / LM Studio / OpenRouter)
    LLM_SERVER_URL: str = ""
    LLM_MODEL_NAME: str = "qwen2.5:7b"
    LLM_API_KEY: str = "none"
    # Dotted path to the reply inside the ollama response body
    LLM_REPLY_PATH: str = "message.content"

    # ─── ASR Server ────────────────────────────────────────
    ASR_SERVER_URL: str = ""
    ASR_UPSTREAM_FIELD: str = "file"         # field name the ASR server expects
    ASR_UPLOAD_FILENAME: str = "input.wav"

    # ─── Upstream transport ────────────────────────────────
    UPSTREAM_TIMEOUT: float = 120.0    # seconds; cold GPU models can be slow

    @property
    def llm_configured(self) -> bool:
        return bool(self.LLM_SERVER_URL.strip())

    @property
    def asr_configured(self) -> bool:
        return bool(self.ASR_SERVER_URL.strip())

    @property
    def llm_base_url(self) -> str:
        return self.LLM_SERVER_URL.strip().rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
