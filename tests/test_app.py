"""
tests/test_app.py
Flet view wiring: keyboard contract and render rules, on a stub page.
"""

import asyncio
import importlib
import logging

import pytest

pytest.importorskip("flet")

from chat_ui import app as chat_app  # noqa: E402


class StubPage:
    def __init__(self):
        self.controls = []
        self.updates = 0
        self.tasks = []

    def add(self, *controls):
        self.controls.extend(controls)

    def update(self):
        self.updates += 1

    def run_task(self, handler, *args):
        self.tasks.append(handler)


class FakeClient:
    def __init__(self):
        self.chat_calls = []

    async def chat(self, message, language=None):
        self.chat_calls.append((message, language))
        return "Can lah."

    async def transcribe(self, audio):
        return "hello"


@pytest.fixture
def view(monkeypatch):
    client = FakeClient()
    monkeypatch.setattr(chat_app, "get_client", lambda: client)
    page = StubPage()
    return chat_app.ChatApp(page), page, client


def test_enter_sends_shift_enter_newline(view):
    app, _, _ = view

    assert app.input_field.multiline is True
    assert app.input_field.shift_enter is True
    assert app.input_field.on_submit == app._on_send
    assert app.send_btn.on_click == app._on_send


def test_initial_render(view):
    app, page, _ = view

    assert page.controls and page.updates >= 1
    assert app.welcome.visible is True
    assert app.thinking_row.visible is False
    assert app.send_btn.disabled is True
    assert app.error_banner.visible is False
    assert app.mic_label.value == "Tap to speak"


def test_send_renders_bubbles_and_hides_welcome(view):
    app, _, client = view
    app.input_field.value = "Why my bill so high one?"

    asyncio.run(app._on_send(None))

    assert client.chat_calls == [("Why my bill so high one?", "auto")]
    assert len(app.chat_column.controls) == 2
    assert app.welcome.visible is False
    assert app.input_field.value == ""
    assert app.send_btn.disabled is True


def test_blank_input_keeps_send_disabled(view):
    app, _, client = view
    app.input_field.value = "   "

    asyncio.run(app._on_send(None))

    assert client.chat_calls == []
    assert app.send_btn.disabled is True
    assert app.welcome.visible is True


def test_logging_configured_only_by_run(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    module = importlib.reload(chat_app)
    assert calls == []

    monkeypatch.setattr(module.ft, "run", lambda *args, **kwargs: None)
    module.run()
    assert len(calls) == 1
