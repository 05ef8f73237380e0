"""Tests for screens.models."""
from __future__ import annotations

import json

from player.reveal import split_button, visible_prefix
from screens.models import (
    ButtonItem,
    CarouselItem,
    ContainerCard,
    FlatOption,
    InfoCard,
    InputItem,
    LoadingItem,
    ScreenContent,
    SelectionItem,
    SquareOption,
    TextItem,
)


def _make_screen() -> dict:
    return {
        "id": "intro",
        "category": "about_you",
        "content": [
            {"type": "heading", "content": "Welcome"},
            {"type": "text", "content": [{"content": "Read "}, {"content": "this", "url": "https://x"}]},
            {"type": "input", "responseKey": "email", "required": True, "inputType": "email"},
            {
                "type": "selection",
                "mode": "checkbox",
                "layout": "2x2",
                "responseKey": "goals",
                "options": [
                    {"variant": "flat", "text": "Lose weight", "id": "lose"},
                    {"variant": "square", "character": "A", "value": 2},
                    {"variant": "imageCard", "text": "Run", "imageSrc": "run.png"},
                ],
                "responseCards": {"lose": {"title": "Nice", "message": "Good goal"}},
            },
            {
                "type": "carousel",
                "items": [
                    {"type": "image", "src": "a.png"},
                    {"type": "carousel", "items": [{"type": "text", "content": "deep"}]},
                ],
            },
            {"type": "card", "variant": "info", "content": [{"type": "text", "content": "fact"}]},
            {"type": "card", "variant": "container", "content": [{"type": "heading", "content": "Inside"}]},
            {"type": "loading", "duration": 1500, "popup": {
                "triggerAtPercent": 40,
                "title": "Quick question",
                "options": [{"text": "Yes", "value": "yes"}],
            }},
            {"type": "button", "text": "Next", "bgColor": "#000"},
        ],
    }


class TestParsing:
    def test_items_are_dispatched_on_type(self) -> None:
        screen = ScreenContent.model_validate(_make_screen())
        kinds = [item.type for item in screen.content]
        assert kinds == [
            "heading", "text", "input", "selection", "carousel", "card", "card", "loading", "button",
        ]

    def test_camel_case_keys_map_to_attributes(self) -> None:
        screen = ScreenContent.model_validate(_make_screen())
        assert isinstance(screen.content[2], InputItem)
        assert screen.content[2].response_key == "email"
        assert screen.content[2].input_type == "email"
        loading = screen.content[7]
        assert isinstance(loading, LoadingItem)
        assert loading.popup.trigger_at_percent == 40
        assert screen.category == "about_you"

    def test_option_variants(self) -> None:
        screen = ScreenContent.model_validate(_make_screen())
        selection = screen.content[3]
        assert isinstance(selection, SelectionItem)
        assert isinstance(selection.options[0], FlatOption)
        assert isinstance(selection.options[1], SquareOption)
        assert selection.options[1].value == 2
        assert selection.options[2].image_src == "run.png"
        assert selection.response_cards["lose"].title == "Nice"

    def test_card_variants(self) -> None:
        screen = ScreenContent.model_validate(_make_screen())
        assert isinstance(screen.content[5], InfoCard)
        assert isinstance(screen.content[6], ContainerCard)
        assert screen.content[6].content[0].content == "Inside"

    def test_carousel_is_recursive(self) -> None:
        screen = ScreenContent.model_validate(_make_screen())
        carousel = screen.content[4]
        assert isinstance(carousel, CarouselItem)
        inner = carousel.items[1]
        assert isinstance(inner, CarouselItem)
        assert inner.items[0].plain_text == "deep"

    def test_defaults(self) -> None:
        assert ButtonItem().text == "Continue"
        assert LoadingItem().duration == 3000
        assert LoadingItem().message == "Loading..."
        screen = ScreenContent(id="s")
        assert screen.gap == 16
        assert screen.padding == 24

    def test_text_segments_plain_text(self) -> None:
        screen = ScreenContent.model_validate(_make_screen())
        assert isinstance(screen.content[1], TextItem)
        assert screen.content[1].plain_text == "Read this"


class TestRoundTrip:
    def test_dump_parse_is_lossless(self) -> None:
        first = ScreenContent.model_validate(_make_screen())
        second = ScreenContent.model_validate(first.to_json_dict())
        assert second == first

    def test_json_text_round_trip_keeps_reveal(self) -> None:
        first = ScreenContent.model_validate(_make_screen())
        text = json.dumps(first.to_json_dict())
        second = ScreenContent.model_validate(json.loads(text))
        assert second == first
        assert json.loads(json.dumps(second.to_json_dict())) == json.loads(text)

        regular_first, button_first = split_button(first.content)
        regular_second, button_second = split_button(second.content)
        assert button_second == button_first
        for completed in (set(), {7}):
            assert visible_prefix(regular_second, completed) == visible_prefix(regular_first, completed)
        assert len(visible_prefix(regular_second, set())) == 8

    def test_unknown_presentational_keys_survive(self) -> None:
        raw = {"id": "s", "content": [{"type": "text", "content": "hi", "shadow": "soft"}]}
        dumped = ScreenContent.model_validate(raw).to_json_dict()
        assert dumped["content"][0]["shadow"] == "soft"

    def test_dump_uses_camel_case(self) -> None:
        dumped = ScreenContent.model_validate(_make_screen()).to_json_dict()
        assert dumped["content"][2]["responseKey"] == "email"
        assert dumped["content"][7]["popup"]["triggerAtPercent"] == 40
        assert "hideCategoryBar" in dumped


class TestSelectionGrid:
    def test_layout_rows_by_cols(self) -> None:
        assert SelectionItem(layout="2x3").grid == (2, 3)

    def test_zero_dimension_counts_as_one(self) -> None:
        assert SelectionItem(layout="0x4").grid == (1, 4)

    def test_no_layout_is_one_column(self) -> None:
        selection = SelectionItem.model_validate({
            "options": [{"variant": "flat", "text": t} for t in "abc"],
        })
        assert selection.grid == (3, 1)

    def test_input_key_defaults_to_index(self) -> None:
        assert InputItem().key_for(3) == "input-3"
        assert InputItem(response_key="name").key_for(3) == "name"
