"""Tests for ui.widgets.content_view rendering (no terminal needed)."""
from __future__ import annotations

from rich.console import Console

from player.layout import build_layout
from player.reveal import LoadingProgress
from player.state import new_content_state
from screens.validator import validate_screen
from ui.widgets.content_view import render_layout


def _render(content: list, mutate=None, focus: int | None = None) -> str:
    screen = validate_screen({"id": "s1", "content": content})
    state = new_content_state(screen.content)
    if mutate is not None:
        mutate(state)
    console = Console(width=80, record=True, color_system=None)
    console.print(render_layout(build_layout(screen, state), state, focus))
    return console.export_text()


class TestRenderLayout:
    def test_text_and_heading(self) -> None:
        out = _render([{"type": "heading", "content": "Welcome"}, {"type": "text", "content": "Body copy"}])
        assert "Welcome" in out
        assert "Body copy" in out

    def test_hidden_content_not_rendered(self) -> None:
        out = _render([
            {"type": "loading", "message": "Crunching"},
            {"type": "text", "content": "Secret"},
            {"type": "button", "text": "Go"},
        ])
        assert "Crunching" in out
        assert "Secret" not in out
        assert "Go" not in out

    def test_selected_option_and_card(self) -> None:
        def pick(state) -> None:
            state.selections[0] = ["a"]

        out = _render([{
            "type": "selection",
            "options": [{"variant": "flat", "text": "Apples", "id": "a"}, {"variant": "flat", "text": "Pears", "id": "p"}],
            "responseCards": {"a": {"title": "Crunchy", "message": "Good pick"}},
        }], mutate=pick, focus=0)
        assert "◉ Apples" in out
        assert "○ Pears" in out
        assert "1 " in out
        assert "Good pick" in out

    def test_open_popup_lists_options(self) -> None:
        def open_popup(state) -> None:
            state.loading[0] = LoadingProgress(progress=50, paused=True, popup_open=True)

        out = _render([{"type": "loading", "popup": {
            "triggerAtPercent": 50, "title": "Vegan?", "options": [{"text": "Yes", "value": "y"}],
        }}], mutate=open_popup)
        assert "Vegan?" in out
        assert "1 Yes" in out

    def test_button_shown_when_ready(self) -> None:
        out = _render([{"type": "text", "content": "x"}, {"type": "button", "text": "Next step"}])
        assert "Next step" in out

    def test_nested_carousel(self) -> None:
        out = _render([{"type": "carousel", "direction": "vertical", "items": [
            {"type": "text", "content": "Slide one"},
            {"type": "card", "variant": "quotation", "quote": "Be bold", "author": "Ana"},
        ]}])
        assert "Slide one" in out
        assert "Be bold" in out
