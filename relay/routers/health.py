"""
routers/health.py
Docker / load balancer health probe.
"""

from fastapi import APIRouter, Depends
from relay.models.response import HealthResponse
from relay.core.config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(cfg: Settings = Depends(get_settings)):
    return HealthResponse(
        status="ok",
        version=cfg.APP_VERSION,
        llm_provider=cfg.LLM_PROVIDER,
        llm_model=cfg.LLM_MODEL_NAME,
        llm_configured=cfg.llm_configured,
        asr_configured=cfg.asr_configured,
    )


@router.get("/")
async def root(cfg: Settings = Depends(get_settings)):
    return {
        "name": cfg.APP_NAME,
        "version": cfg.APP_VERSION,
        "status": "online",
        "docs": "/docs",
    }
