"""Layout derivation — where each visible item goes on the screen.

Pure functions of (content, content state); recomputed on every render.

1. The button is pulled out of the list and rendered last (if eligible).
2. The visible prefix is computed by the reveal engine.
3. The first ``selection`` in the visible prefix is *the* screen selection.
   Its position is explicit, else ``bottom`` when there is no button, else
   ``top``.  ``top`` keeps it in place; ``middle``/``bottom`` move it to its
   own region below the top content.  Other selections stay in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, NamedTuple

from player.reveal import button_eligible, split_button, visible_count
from player.selection import current_response_card
from player.state import ContentState
from screens.models import ButtonItem, LoadingPopup, ResponseCard, ScreenContent, SelectionItem

Position = Literal["top", "middle", "bottom"]


class RenderedItem(NamedTuple):
    index: int
    item: Any


@dataclass
class ScreenLayout:
    screen_id: str
    top: list[RenderedItem] = field(default_factory=list)
    middle: list[RenderedItem] = field(default_factory=list)
    bottom: list[RenderedItem] = field(default_factory=list)
    button: ButtonItem | None = None
    button_visible: bool = False
    selection_index: int | None = None
    selection_position: Position | None = None
    response_cards: dict[int, ResponseCard] = field(default_factory=dict)
    popup: tuple[int, LoadingPopup] | None = None
    in_branch: bool = False
    gap: int = 16
    padding: int = 24

    @property
    def items(self) -> list[RenderedItem]:
        """All rendered items in display order (button excluded)."""
        return [*self.top, *self.middle, *self.bottom]


def resolve_position(selection: SelectionItem, has_button: bool) -> Position:
    if selection.position:
        return selection.position
    return "top" if has_button else "bottom"


def screen_selection_index(visible: list[Any]) -> int | None:
    return next((i for i, item in enumerate(visible) if item.type == "selection"), None)


def build_layout(
    screen: ScreenContent,
    state: ContentState,
    in_branch: bool = False,
) -> ScreenLayout:
    regular, button = split_button(screen.content)
    visible = regular[: visible_count(regular, state.completed_gates)]

    layout = ScreenLayout(
        screen_id=screen.id,
        button=button,
        button_visible=button is not None and button_eligible(regular, state.completed_gates),
        in_branch=in_branch,
        gap=screen.gap,
        padding=screen.padding,
    )

    sel_index = screen_selection_index(visible)
    if sel_index is not None:
        layout.selection_index = sel_index
        layout.selection_position = resolve_position(visible[sel_index], button is not None)

    for index, item in enumerate(visible):
        rendered = RenderedItem(index, item)
        if index == sel_index and layout.selection_position == "middle":
            layout.middle.append(rendered)
        elif index == sel_index and layout.selection_position == "bottom":
            layout.bottom.append(rendered)
        else:
            layout.top.append(rendered)

        if item.type == "selection":
            card = current_response_card(state.selections.get(index, []), item.response_cards)
            if card is not None:
                layout.response_cards[index] = card
        elif item.type == "loading" and item.popup is not None:
            progress = state.loading.get(index)
            if progress is not None and progress.popup_open:
                layout.popup = (index, item.popup)

    return layout
