"""Player commands and the outward ``ScreenResponse`` event.

Commands describe one discrete thing that happened on a screen (a click, a
keystroke, a timer tick).  They are consumed by ``player.reducer.reduce``.

Item indices address the *active* content list (the branch screen while a
branch is shown) with button items removed.  ``SelectOption`` can set
``target="original"`` to address the original content underneath a branch.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from screens.models import ContentModel, OptionId


# ── Commands ────────────────────────────────────────────────────────────────


class SelectOption(BaseModel):
    kind: Literal["select"] = "select"
    item_index: int
    option_id: OptionId
    target: Literal["active", "original"] = "active"


class EditInput(BaseModel):
    kind: Literal["input"] = "input"
    item_index: int
    value: str


class PressButton(BaseModel):
    kind: Literal["button"] = "button"


class RespondToPopup(BaseModel):
    kind: Literal["popup"] = "popup"
    item_index: int
    value: OptionId


class Tick(BaseModel):
    """Timer tick; advances the loading gate currently blocking reveal."""

    kind: Literal["tick"] = "tick"
    elapsed_ms: float = Field(ge=0)


class CompleteLoading(BaseModel):
    """Force a loading gate to finish (hosts that animate loading themselves)."""

    kind: Literal["loading_complete"] = "loading_complete"
    item_index: int


class ClearBranch(BaseModel):
    kind: Literal["clear_branch"] = "clear_branch"


Command = Annotated[
    Union[SelectOption, EditInput, PressButton, RespondToPopup, Tick, CompleteLoading, ClearBranch],
    Field(discriminator="kind"),
]

_command_adapter: TypeAdapter[Any] = TypeAdapter(Command)


def parse_command(raw: Any) -> Any:
    """Build a command from a plain dict such as ``{"kind": "tick", "elapsed_ms": 50}``."""
    return _command_adapter.validate_python(raw)


# ── Outgoing event ──────────────────────────────────────────────────────────


class ScreenResponse(ContentModel):
    """What the user did on a screen, shaped for JSON storage.

    ``response_key`` defaults to the screen id when the acting item has none.
    ``is_intermediate`` marks responses that do not finish the screen.
    """

    response_key: str
    selected: list[OptionId] | None = None
    branch: OptionId | None = None
    button: str | None = None
    input_values: dict[str, str] | None = None
    is_intermediate: bool | None = None
