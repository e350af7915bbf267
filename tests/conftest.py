"""
tests/conftest.py
Shared fixtures: a relay app wired to an in-process fake upstream.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from relay.core.config import Settings, get_settings
from relay.core.http import get_http_client
from relay.main import app


class Upstream:
    """Records every request the relay makes and answers with `handler`."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler = lambda request: httpx.Response(200, json={})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def make_client(upstream):
    """make_client(**settings) -> TestClient against the relay app."""

    def _make(**overrides) -> TestClient:
        values = {
            "LLM_SERVER_URL": "http://llm.test",
            "ASR_SERVER_URL": "http://asr.test/transcribe",
        }
        values.update(overrides)
        cfg = Settings(**values)
        http = httpx.AsyncClient(transport=httpx.MockTransport(upstream))

        app.dependency_overrides[get_settings] = lambda: cfg
        app.dependency_overrides[get_http_client] = lambda: http
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()
