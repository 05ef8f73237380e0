"""Sequential reveal — which part of a screen is visible right now.

Content is revealed left to right.  Every item up to and including the first
*uncompleted* ``loading`` item is visible; everything after it is withheld.
The trailing button is only shown once the whole list is visible and every
loading gate has completed.  The completed-gate set only ever grows, so
content that has been revealed is never hidden again.

Gate indices refer to the content list with button items removed.

Loading progress is modelled by ``LoadingProgress`` and advanced by timer
ticks (``advance_loading``).  A loading item with a popup pauses at
``trigger_at_percent`` and stays paused until ``respond_to_popup``.
"""

from __future__ import annotations

from typing import Any, Sequence

from pydantic import BaseModel

from screens.models import ButtonItem, LoadingItem


def split_button(content: Sequence[Any]) -> tuple[list[Any], ButtonItem | None]:
    """Separate the call-to-action from the rest of the content.

    The first button wins; any further buttons are dropped.
    """
    regular = [item for item in content if item.type != "button"]
    button = next((item for item in content if item.type == "button"), None)
    return regular, button


def visible_count(regular: Sequence[Any], completed: set[int]) -> int:
    """Length of the visible prefix."""
    for index, item in enumerate(regular):
        if item.type == "loading" and index not in completed:
            return index + 1
    return len(regular)


def visible_prefix(regular: Sequence[Any], completed: set[int]) -> list[Any]:
    return list(regular[: visible_count(regular, completed)])


def frontier_gate(regular: Sequence[Any], completed: set[int]) -> int | None:
    """Index of the loading item currently blocking reveal, if any."""
    for index, item in enumerate(regular):
        if item.type == "loading" and index not in completed:
            return index
    return None


def button_eligible(regular: Sequence[Any], completed: set[int]) -> bool:
    """True once everything is visible and every gate is done."""
    return frontier_gate(regular, completed) is None


# ── Loading progress ────────────────────────────────────────────────────────


class LoadingProgress(BaseModel):
    """Progress of one loading gate (0–100)."""

    progress: float = 0.0
    paused: bool = False
    popup_open: bool = False
    popup_answered: bool = False

    def is_complete(self, item: LoadingItem) -> bool:
        if self.progress < 100:
            return False
        return item.popup is None or self.popup_answered


def advance_loading(
    item: LoadingItem,
    state: LoadingProgress,
    elapsed_ms: float,
) -> LoadingProgress:
    """Advance a gate by one timer tick of ``elapsed_ms``.

    Crossing the popup threshold clamps progress to the threshold, pauses and
    opens the popup.  A zero ``duration`` jumps straight to 100.
    """
    if state.paused or state.is_complete(item):
        return state

    step = 100.0 if item.duration == 0 else 100.0 * elapsed_ms / item.duration
    previous = state.progress
    following = min(100.0, previous + step)

    popup = item.popup
    if (
        popup is not None
        and not state.popup_answered
        and not state.popup_open
        and previous <= popup.trigger_at_percent <= following
    ):
        return state.model_copy(update={
            "progress": popup.trigger_at_percent,
            "paused": True,
            "popup_open": True,
        })

    return state.model_copy(update={"progress": following})


def respond_to_popup(state: LoadingProgress) -> LoadingProgress:
    """Close the popup and resume progress."""
    return state.model_copy(update={
        "paused": False,
        "popup_open": False,
        "popup_answered": True,
    })
