import asyncio
import logging
import os
from typing import Optional

import flet as ft

from chat_ui.client import RelayClient
from chat_ui.controller import ChatController, RecordingState
from chat_ui.models import LANGUAGE_OPTIONS, ChatMessage
from chat_ui.recorder import RecordingSession

# ─────────────────────────────────────────────
# CONFIG
# ─────────────────────────────────────────────

RELAY_URL     = os.getenv("RELAY_URL", "http://127.0.0.1:8000")
RELAY_TIMEOUT = float(os.getenv("RELAY_TIMEOUT", "120"))
MIC_INDEX     = int(os.environ["MIC_INDEX"]) if os.getenv("MIC_INDEX") else None   # None = system default
UI_PORT       = int(os.getenv("UI_PORT", "3000"))
UI_VIEW       = os.getenv("UI_VIEW", "web")        # "web" = browser tab, "desktop" = native window

ACCENT   = "#10B981"
BG       = "#0B1120"
PANEL    = "#111827"
BORDER   = "#1F2937"
MUTED    = "#64748B"

_client: Optional[RelayClient] = None


def get_client() -> RelayClient:
    global _client
    if _client is None:
        _client = RelayClient(RELAY_URL, timeout=RELAY_TIMEOUT)
    return _client


# ─────────────────────────────────────────────
# CHAT APP
# ─────────────────────────────────────────────

class ChatApp:
    def __init__(self, page: ft.Page):
        self.page = page
        self.page.title = "Zero1 Multilingual Dialect Support Demo"
        self.page.theme_mode = ft.ThemeMode.DARK
        self.page.bgcolor = BG
        self.page.padding = 0

        self.controller = ChatController(
            get_client(),
            recorder_factory=lambda: RecordingSession(mic_index=MIC_INDEX),
            on_change=self.render,
        )
        self._rendered = 0

        self._build_ui()
        self.render()

    # ──────────────────────────────────────────
    # UI BUILDER
    # ──────────────────────────────────────────

    def _build_ui(self):
        # ── Header ──
        self.header = ft.Container(
            content=ft.Row(
                [
                    ft.Column([
                        ft.Text("Zero1 Multilingual Dialect Support Demo", color="#FFFFFF",
                                size=18, weight=ft.FontWeight.W_600),
                        ft.Text(
                            "Type or speak in English, Singlish, Mandarin, Cantonese, Hokkien or Teochew. "
                            "The AI will try to reply in a matching language or dialect.",
                            color=MUTED, size=11,
                        ),
                    ], spacing=2, expand=True),
                    ft.Column([
                        ft.Text("PROTOTYPE", color=MUTED, size=10),
                        ft.Text("Backend: GPU-enabled local LLM + ASR", color=ACCENT, size=11),
                    ], spacing=2, horizontal_alignment=ft.CrossAxisAlignment.END),
                ],
                alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
            ),
            padding=ft.Padding.symmetric(horizontal=24, vertical=16),
            border=ft.Border.only(bottom=ft.BorderSide(1, BORDER)),
        )

        # ── Chat area ──
        self.thinking_row = ft.Row([
            ft.Container(width=8, height=8, border_radius=4, bgcolor=ACCENT),
            ft.Text("Zero1 Dialect AI is thinking of a better solution...", color="#6EE7B7", size=12),
        ], spacing=8, visible=False)

        self.welcome = ft.Container(
            content=ft.Column([
                ft.Text("👋 Welcome to the Zero1 Dialect AI prototype.", color="#94A3B8", size=14),
                ft.Text("You can try messages like:", color="#94A3B8", size=13),
                ft.Text(
                    "\"Why my bill so high one?\" or \"Why did my data finish so fast this month?\"",
                    color="#CBD5E1", size=13, italic=True,
                ),
                ft.Text(
                    "You can also mix languages or use Cantonese / Hokkien / Teochew text. "
                    "Or tap the microphone to speak.",
                    color=MUTED, size=11,
                ),
            ], horizontal_alignment=ft.CrossAxisAlignment.CENTER, spacing=6),
            alignment=ft.Alignment(0, 0),
            expand=True,
        )

        self.chat_column = ft.Column(
            controls=[],
            spacing=12,
            scroll=ft.ScrollMode.AUTO,
            auto_scroll=True,
            expand=True,
        )

        self.chat_container = ft.Container(
            content=ft.Column([self.thinking_row, self.welcome, self.chat_column], spacing=8, expand=True),
            padding=ft.Padding.symmetric(horizontal=24, vertical=16),
            expand=True,
        )

        # ── Error banners ──
        self.error_banner = ft.Text("", color="#F87171", size=12, visible=False)
        self.recording_banner = ft.Text("", color="#FBBF24", size=12, visible=False)
        self.banners = ft.Container(
            content=ft.Column([self.error_banner, self.recording_banner], spacing=2),
            padding=ft.Padding.symmetric(horizontal=24, vertical=0),
        )

        # ── Language chips ──
        self.language_chips = ft.Row(
            [self._chip(value, label) for value, label in LANGUAGE_OPTIONS],
            scroll=ft.ScrollMode.AUTO,
            spacing=8,
        )

        # ── Mic button + volume bar ──
        self.mic_dot = ft.Container(width=8, height=8, border_radius=4, bgcolor=ACCENT)
        self.mic_label = ft.Text("Tap to speak", color="#6EE7B7", size=12)
        self.mic_btn = ft.Container(
            content=ft.Row([self.mic_dot, self.mic_label], spacing=8, tight=True),
            padding=ft.Padding.symmetric(horizontal=12, vertical=8),
            border_radius=20,
            bgcolor=PANEL,
            border=ft.Border.all(1, ACCENT),
            on_click=self._on_mic_click,
            tooltip="Voice Input",
        )
        self.volume_bar = ft.ProgressBar(value=0, width=96, color=ACCENT, bgcolor=BORDER)

        # ── Input row ──
        self.input_field = ft.TextField(
            hint_text=(
                "Type your question here, for example: Why is my bill higher this month? "
                "You can also try Singlish or dialect phrases."
            ),
            hint_style=ft.TextStyle(color="#334155", size=13),
            text_style=ft.TextStyle(color="#FFFFFF", size=14),
            multiline=True,
            shift_enter=True,          # Enter sends, Shift+Enter = new line
            min_lines=1,
            max_lines=4,
            expand=True,
            border_radius=16,
            border_color=BORDER,
            focused_border_color=ACCENT,
            cursor_color=ACCENT,
            on_change=self._on_input_change,
            on_submit=self._on_send,
        )

        self.send_btn = ft.IconButton(
            icon=ft.Icons.SEND_ROUNDED,
            icon_color=BG,
            icon_size=18,
            tooltip="Send",
            on_click=self._on_send,
            style=ft.ButtonStyle(
                shape=ft.CircleBorder(),
                bgcolor={"": ACCENT},
            ),
            width=44, height=44,
        )

        self.input_bar = ft.Container(
            content=ft.Column([
                ft.Row([
                    ft.Text("Preferred reply language:", color="#CBD5E1", size=12),
                    ft.Container(content=self.language_chips, expand=True),
                    ft.Text("Press Enter to send, Shift + Enter for a new line", color=MUTED, size=10),
                ], spacing=8),
                ft.Row([
                    ft.Column([self.mic_btn, self.volume_bar], spacing=4, tight=True),
                    self.input_field,
                    self.send_btn,
                ], spacing=12, vertical_alignment=ft.CrossAxisAlignment.END),
            ], spacing=10),
            padding=ft.Padding.symmetric(horizontal=24, vertical=14),
            bgcolor=PANEL,
            border=ft.Border.only(top=ft.BorderSide(1, BORDER)),
        )

        # ── Main layout ──
        self.page.add(
            ft.Column([
                self.header,
                self.chat_container,
                self.banners,
                self.input_bar,
            ], spacing=0, expand=True)
        )

    def _chip(self, value, label):
        return ft.GestureDetector(
            content=ft.Container(
                content=ft.Text(label, size=12),
                padding=ft.Padding.symmetric(horizontal=12, vertical=6),
                border_radius=16,
                data=value,
            ),
            on_tap=lambda e, v=value: self.controller.set_language(v),
        )

    # ──────────────────────────────────────────
    # CHAT BUBBLES
    # ──────────────────────────────────────────

    def _bubble(self, msg: ChatMessage):
        is_user = msg.role == "user"

        bubble = ft.Container(
            content=ft.Column([
                ft.Text(msg.content, color=BG if is_user else "#E2E8F0", size=14, selectable=True),
                ft.Text(msg.timestamp, color="#064E3B" if is_user else "#475569", size=10),
            ], spacing=4, tight=True),
            padding=ft.Padding.symmetric(horizontal=14, vertical=10),
            border_radius=ft.BorderRadius(
                top_left=16,
                top_right=16,
                bottom_left=16 if is_user else 4,
                bottom_right=4 if is_user else 16,
            ),
            bgcolor=ACCENT if is_user else "#1E293B",
            border=None if is_user else ft.Border.all(1, "#334155"),
            width=520,
        )

        return ft.Row(
            [bubble],
            alignment=ft.MainAxisAlignment.END if is_user else ft.MainAxisAlignment.START,
        )

    # ──────────────────────────────────────────
    # RENDER (controller → controls)
    # ──────────────────────────────────────────

    def render(self):
        c = self.controller

        for msg in c.messages[self._rendered:]:
            self.chat_column.controls.append(self._bubble(msg))
        self._rendered = len(c.messages)

        self.thinking_row.visible = c.thinking
        self.welcome.visible = not c.messages and not c.thinking

        self.error_banner.value = c.error_text
        self.error_banner.visible = bool(c.error_text)
        self.recording_banner.value = c.recording_error
        self.recording_banner.visible = bool(c.recording_error)

        for chip in self.language_chips.controls:
            selected = chip.content.data == c.language
            chip.content.bgcolor = "#064E3B" if selected else BG
            chip.content.border = ft.Border.all(1, ACCENT if selected else BORDER)
            chip.content.content.color = "#6EE7B7" if selected else MUTED

        recording = c.recording_state == RecordingState.RECORDING
        if recording:
            self.mic_label.value = "Listening... Tap to stop"
        elif c.recording_state == RecordingState.TRANSCRIBING:
            self.mic_label.value = "Transcribing..."
        else:
            self.mic_label.value = "Tap to speak"
        self.mic_label.color = "#FCA5A5" if recording else "#6EE7B7"
        self.mic_dot.bgcolor = "#F87171" if recording else ACCENT
        self.mic_btn.border = ft.Border.all(1, "#F87171" if recording else ACCENT)
        self.mic_btn.disabled = not c.mic_enabled
        self.mic_btn.opacity = 1.0 if c.mic_enabled else 0.5

        self.input_field.value = c.input_text
        self.send_btn.disabled = not c.can_send
        self.send_btn.tooltip = "Thinking of a better solution..." if c.loading else "Send"

        self.page.update()

    async def _meter_loop(self):
        while self.controller.recording_state == RecordingState.RECORDING:
            self.volume_bar.value = self.controller.volume_level
            self.volume_bar.update()
            await asyncio.sleep(0.08)
        self.volume_bar.value = 0
        self.volume_bar.update()

    # ──────────────────────────────────────────
    # EVENT HANDLERS
    # ──────────────────────────────────────────

    def _on_input_change(self, e):
        self.controller.set_input(e.control.value)
        self.send_btn.disabled = not self.controller.can_send
        self.send_btn.update()

    async def _on_send(self, e):
        self.controller.set_input(self.input_field.value)
        await self.controller.submit()

    async def _on_mic_click(self, e):
        was_idle = self.controller.recording_state == RecordingState.IDLE
        await self.controller.toggle_recording()
        if was_idle and self.controller.recording_state == RecordingState.RECORDING:
            self.page.run_task(self._meter_loop)


# ─────────────────────────────────────────────
# ENTRY POINT
# ─────────────────────────────────────────────

async def main(page: ft.Page):
    page.fonts = {
        "Sora": "https://fonts.gstatic.com/s/sora/v12/xMQOuFFYT72X5wkB_18qmnndmSe3dY.woff2",
    }
    page.theme = ft.Theme(font_family="Sora")
    ChatApp(page)


def run():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    if UI_VIEW == "desktop":
        ft.run(main)
    else:
        ft.run(main, view=ft.AppView.WEB_BROWSER, port=UI_PORT)


if __name__ == "__main__":
    run()
