"""Tests for player.layout.build_layout."""
from __future__ import annotations

from player.layout import build_layout
from player.reveal import LoadingProgress
from player.state import new_content_state
from screens.validator import validate_screen


def _make_screen(content: list):
    return validate_screen({"id": "s1", "content": content})


def _selection(**extra) -> dict:
    return {
        "type": "selection",
        "options": [{"variant": "flat", "text": "A", "id": "a"}, {"variant": "flat", "text": "B", "id": "b"}],
        **extra,
    }


def _layout(content: list, state=None):
    screen = _make_screen(content)
    return build_layout(screen, state or new_content_state(screen.content))


class TestPositions:
    def test_default_bottom_without_button(self) -> None:
        layout = _layout([{"type": "heading", "content": "H"}, _selection(), {"type": "text", "content": "T"}])
        assert layout.selection_position == "bottom"
        assert [r.item.type for r in layout.top] == ["heading", "text"]
        assert [r.index for r in layout.bottom] == [1]

    def test_default_top_with_button(self) -> None:
        layout = _layout([{"type": "heading", "content": "H"}, _selection(), {"type": "button"}])
        assert layout.selection_position == "top"
        assert [r.index for r in layout.top] == [0, 1]
        assert layout.bottom == []

    def test_explicit_middle(self) -> None:
        layout = _layout([_selection(position="middle"), {"type": "text", "content": "T"}])
        assert [r.index for r in layout.middle] == [0]
        assert [r.index for r in layout.top] == [1]

    def test_only_first_selection_is_moved(self) -> None:
        layout = _layout([_selection(), _selection()])
        assert [r.index for r in layout.bottom] == [0]
        assert [r.index for r in layout.top] == [1]

    def test_display_order(self) -> None:
        layout = _layout([_selection(position="bottom"), {"type": "text", "content": "T"}])
        assert [r.index for r in layout.items] == [1, 0]


class TestButtonAndGates:
    def test_button_hidden_until_gates_complete(self) -> None:
        screen = _make_screen([{"type": "loading"}, {"type": "text", "content": "T"}, {"type": "button"}])
        state = new_content_state(screen.content)
        layout = build_layout(screen, state)
        assert layout.button is not None
        assert not layout.button_visible
        assert [r.index for r in layout.items] == [0]

        state.completed_gates.add(0)
        layout = build_layout(screen, state)
        assert layout.button_visible
        assert [r.index for r in layout.items] == [0, 1]

    def test_open_popup_exposed(self) -> None:
        screen = _make_screen([{"type": "loading", "popup": {
            "triggerAtPercent": 10, "title": "Q", "options": [{"text": "Y", "value": "y"}],
        }}])
        state = new_content_state(screen.content)
        state.loading[0] = LoadingProgress(progress=10, paused=True, popup_open=True)
        index, popup = build_layout(screen, state).popup
        assert index == 0
        assert popup.title == "Q"


class TestResponseCards:
    def test_card_for_latest_pick(self) -> None:
        screen = _make_screen([_selection(
            mode="checkbox",
            responseCards={"a": {"message": "A!"}, "b": {"message": "B!"}},
        )])
        state = new_content_state(screen.content)
        state.selections[0] = ["b", "a"]
        assert build_layout(screen, state).response_cards[0].message == "A!"

    def test_no_card_without_pick(self) -> None:
        layout = _layout([_selection(responseCards={"a": {"message": "A!"}})])
        assert layout.response_cards == {}
