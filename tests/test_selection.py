"""Tests for player.selection."""
from __future__ import annotations

from screens.models import ResponseCard, SelectionItem
from player.selection import (
    current_response_card,
    displayed_options,
    find_option,
    initial_selection,
    option_identity,
    select,
    should_auto_advance,
)


def _make_selection(**overrides) -> SelectionItem:
    data = {
        "type": "selection",
        "options": [
            {"variant": "flat", "text": "A", "id": "a"},
            {"variant": "flat", "text": "B", "value": 5},
            {"variant": "flat", "text": "C"},
        ],
    }
    data.update(overrides)
    return SelectionItem.model_validate(data)


class TestIdentity:
    def test_id_then_value_then_index(self) -> None:
        selection = _make_selection()
        assert [ident for ident, _ in displayed_options(selection)] == ["a", 5, 2]

    def test_option_identity_index_fallback(self) -> None:
        option = _make_selection().options[2]
        assert option_identity(option, 7) == 7


class TestDisplayedOptions:
    def test_grid_truncates(self) -> None:
        selection = _make_selection(layout="1x2")
        assert len(displayed_options(selection)) == 2

    def test_option_outside_grid_not_found(self) -> None:
        selection = _make_selection(layout="1x1")
        assert find_option(selection, "a") == "a"
        assert find_option(selection, 5) is None

    def test_string_form_match(self) -> None:
        assert find_option(_make_selection(), "5") == 5

    def test_unknown(self) -> None:
        assert find_option(_make_selection(), "zzz") is None


class TestSelect:
    def test_radio_replaces(self) -> None:
        assert select("radio", "b", ["a"]) == ["b"]

    def test_radio_reselect_is_stable(self) -> None:
        assert select("radio", "a", ["a"]) == ["a"]

    def test_checkbox_toggles_on(self) -> None:
        assert select("checkbox", "b", ["a"]) == ["a", "b"]

    def test_checkbox_toggles_off(self) -> None:
        assert select("checkbox", "a", ["a", "b"]) == ["b"]

    def test_does_not_mutate(self) -> None:
        current = ["a"]
        select("checkbox", "b", current)
        assert current == ["a"]


class TestResponseCards:
    def test_latest_pick_wins(self) -> None:
        cards = {"a": ResponseCard(message="A!"), "b": ResponseCard(message="B!")}
        assert current_response_card(["a", "b"], cards).message == "B!"

    def test_keyed_by_string_form(self) -> None:
        cards = {"2": ResponseCard(message="two")}
        assert current_response_card([2], cards).message == "two"

    def test_no_card_for_latest(self) -> None:
        cards = {"a": ResponseCard(message="A!")}
        assert current_response_card(["a", "b"], cards) is None

    def test_empty_selection(self) -> None:
        assert current_response_card([], {"a": ResponseCard(message="A!")}) is None


class TestAutoAdvance:
    def test_radio_without_button(self) -> None:
        assert should_auto_advance(_make_selection(), has_button=False)

    def test_button_blocks(self) -> None:
        assert not should_auto_advance(_make_selection(), has_button=True)

    def test_checkbox_never(self) -> None:
        assert not should_auto_advance(_make_selection(mode="checkbox"), has_button=False)

    def test_branches_block(self) -> None:
        selection = _make_selection(conditionalScreens={"a": {"id": "x", "content": []}})
        assert not should_auto_advance(selection, has_button=False)


class TestInitialSelection:
    def test_defaults_filtered(self) -> None:
        selection = _make_selection(mode="checkbox", defaultSelected=["a", "missing", "5"])
        assert initial_selection(selection) == ["a", 5]

    def test_radio_keeps_last(self) -> None:
        selection = _make_selection(defaultSelected=["a", 5])
        assert initial_selection(selection) == [5]
