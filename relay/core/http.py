"""
core/http.py
One httpx.AsyncClient per process, opened in the app lifespan.
Relays get it through Depends(get_http_client) so tests can swap in a
client backed by httpx.MockTransport.
"""

import httpx
from fastapi import Request

from relay.core.config import Settings


def build_http_client(cfg: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(cfg.UPSTREAM_TIMEOUT))


async def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client
