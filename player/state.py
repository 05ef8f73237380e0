"""Per-play screen state.

A ``ScreenState`` is created fresh every time a screen is entered and thrown
away when the player leaves it.  It never leaks between screens: entering the
same screen id again starts from ``new_screen_state`` rather than resuming.

- ``original``     — selections, input text, loading progress and completed
                     gates for the authored content.
- ``branch``       — the active conditional screen (if any) with its own
                     independent ``ContentState``.  The original state stays
                     underneath so clearing the branch reverts cleanly.
- ``branch_error`` — message for the last branch that failed validation.
- ``completed``    — terminal flag; set by a button press or auto-advance.
"""

from __future__ import annotations

from typing import Literal, Sequence

from pydantic import BaseModel, Field

from player.reveal import LoadingProgress, split_button
from player.selection import initial_selection
from screens.models import OptionId, ScreenContent

ScreenStatus = Literal["playing", "ready", "completed"]


class ContentState(BaseModel):
    """Interactive state for one content list (indices exclude the button)."""

    selections: dict[int, list[OptionId]] = Field(default_factory=dict)
    inputs: dict[int, str] = Field(default_factory=dict)
    loading: dict[int, LoadingProgress] = Field(default_factory=dict)
    completed_gates: set[int] = Field(default_factory=set)


class BranchState(BaseModel):
    source_index: int               # index of the selection that activated it
    value: OptionId                 # raw selected value, reported as ``branch``
    screen: ScreenContent
    content: ContentState


class ScreenState(BaseModel):
    screen_id: str
    original: ContentState
    branch: BranchState | None = None
    branch_error: str | None = None
    completed: bool = False

    @property
    def active(self) -> ContentState:
        return self.branch.content if self.branch else self.original

    @property
    def active_branch(self) -> OptionId | None:
        return self.branch.value if self.branch else None


def new_content_state(content: Sequence) -> ContentState:
    """Seed selections from ``default_selected`` and inputs from ``value``."""
    regular, _ = split_button(content)
    state = ContentState()
    for index, item in enumerate(regular):
        if item.type == "selection":
            state.selections[index] = initial_selection(item)
        elif item.type == "input":
            state.inputs[index] = item.value
    return state


def new_screen_state(screen: ScreenContent) -> ScreenState:
    return ScreenState(screen_id=screen.id, original=new_content_state(screen.content))
