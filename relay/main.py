"""
main.py
FastAPI application — Zero1 Dialect Chat relay backend
Forwards chat to an external LLM server and voice clips to an external ASR server
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
import time

from relay.core.config import settings
from relay.core.errors import RelayError
from relay.core.http import build_http_client
from relay.core.logger import get_logger
from relay.routers import asr, chat, health

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# LIFESPAN
# ─────────────────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 60)
    logger.info(f"  {settings.APP_NAME}  v{settings.APP_VERSION}")
    logger.info("=" * 60)
    logger.info(f"  LLM Provider  : {settings.LLM_PROVIDER}")
    logger.info(f"  LLM Model     : {settings.LLM_MODEL_NAME}")
    logger.info(f"  LLM Server    : {settings.LLM_SERVER_URL or '(not set)'}")
    logger.info(f"  ASR Server    : {settings.ASR_SERVER_URL or '(not set)'}")
    logger.info(f"  Host          : {settings.HOST}:{settings.PORT}")
    logger.info(f"  Debug         : {settings.DEBUG}")
    logger.info("=" * 60)

    app.state.http_client = build_http_client(settings)
    try:
        yield
    finally:
        await app.state.http_client.aclose()
        logger.info("Shutting down relay backend...")


# ─────────────────────────────────────────────────────────────────────────────
# APP
# ─────────────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "Zero1 Dialect Chat — relay backend\n\n"
        "POST /api/chat forwards to an Ollama or OpenAI-compatible LLM server.\n"
        "POST /api/asr forwards recorded audio to a speech-recognition server."
    ),
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ─────────────────────────────────────────────────────────────────────────────
# MIDDLEWARE
# ─────────────────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log every request with method, path, status, and latency."""
    t0 = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = int((time.perf_counter() - t0) * 1000)

    response.headers["X-Latency-Ms"] = str(elapsed_ms)

    log_level = "warning" if response.status_code >= 400 else "info"
    getattr(logger, log_level)(
        f"{request.method} {request.url.path} → {response.status_code} [{elapsed_ms}ms]"
    )

    return response


# ─────────────────────────────────────────────────────────────────────────────
# EXCEPTION HANDLERS
# ─────────────────────────────────────────────────────────────────────────────

@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Every relay input problem is a plain 400, never FastAPI's 422
    fields = {str(err["loc"][-1]) for err in exc.errors() if err.get("loc")}
    error = "Missing message" if fields & {"message", "body"} else "Bad request"
    return JSONResponse(
        status_code=400,
        content={
            "error": error,
            "detail": "; ".join(err.get("msg", "") for err in exc.errors()),
        },
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "status_code": exc.status_code,
            "path": str(request.url.path),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.DEBUG else "Something went wrong.",
        },
    )


# ─────────────────────────────────────────────────────────────────────────────
# ROUTERS
# ─────────────────────────────────────────────────────────────────────────────

app.include_router(health.router, tags=["Health"])
app.include_router(chat.router, tags=["Chat"])
app.include_router(asr.router, tags=["ASR"])


# ─────────────────────────────────────────────────────────────────────────────
# DEV RUN
# ─────────────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "relay.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
        workers=1,
        access_log=False,  # handled by our middleware
    )
