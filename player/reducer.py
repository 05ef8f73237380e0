"""Screen reducer — the single transition function of the player.

``reduce(screen, state, command)`` returns ``(new_state, response)`` where
``response`` is the ``ScreenResponse`` to persist, or None when the command
changed nothing worth reporting (a plain timer tick, an ignored click).

The input state is never mutated: every transition works on a deep copy, so a
command that raises (``RequiredInputError``) leaves the caller's state intact.

Commands that cannot apply (index out of the visible prefix, wrong item type,
option outside the grid, anything after completion) are ignored and logged at
DEBUG.  A malformed conditional screen is recorded on ``state.branch_error``
and the original screen stays on display.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from player.branch import BranchContentError, resolve_branch
from player.events import (
    ClearBranch,
    CompleteLoading,
    EditInput,
    PressButton,
    RespondToPopup,
    ScreenResponse,
    SelectOption,
    Tick,
)
from player.reveal import (
    LoadingProgress,
    advance_loading,
    button_eligible,
    frontier_gate,
    respond_to_popup,
    split_button,
    visible_count,
)
from player.selection import find_option, select, should_auto_advance
from player.state import (
    BranchState,
    ContentState,
    ScreenState,
    ScreenStatus,
    new_content_state,
)
from screens.models import ScreenContent, SelectionItem
from screens.validator import DEFAULT_MAX_NESTING_DEPTH

logger = logging.getLogger(__name__)

Transition = tuple[ScreenState, "ScreenResponse | None"]


class RequiredInputError(ValueError):
    """A button was pressed while required inputs are blank."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Required input missing: {', '.join(missing)}")


# ── Helpers ─────────────────────────────────────────────────────────────────


def _active(screen: ScreenContent, state: ScreenState) -> tuple[ScreenContent, ContentState, bool]:
    if state.branch is not None:
        return state.branch.screen, state.branch.content, True
    return screen, state.original, False


def _visible_item(content: ScreenContent, cstate: ContentState, index: int, kind: str) -> Any:
    """Return the visible item at ``index`` if it has type ``kind``."""
    regular, _ = split_button(content.content)
    if not 0 <= index < visible_count(regular, cstate.completed_gates):
        logger.debug("Item %d of screen '%s' is not visible", index, content.id)
        return None
    item = regular[index]
    if item.type != kind:
        logger.debug("Item %d of screen '%s' is %s, not %s", index, content.id, item.type, kind)
        return None
    return item


def _input_values(regular: list[Any], cstate: ContentState) -> dict[str, str]:
    return {
        item.key_for(index): cstate.inputs.get(index, "")
        for index, item in enumerate(regular)
        if item.type == "input"
    }


def _missing_required(regular: list[Any], cstate: ContentState) -> list[str]:
    return [
        item.key_for(index)
        for index, item in enumerate(regular)
        if item.type == "input" and item.required and not cstate.inputs.get(index, "").strip()
    ]


def _complete_gate(screen: ScreenContent, cstate: ContentState, index: int, item: Any) -> ScreenResponse:
    cstate.completed_gates.add(index)
    logger.debug("Loading gate %d of screen '%s' completed", index, screen.id)
    return ScreenResponse(
        response_key=item.response_key or screen.id,
        is_intermediate=True,
    )


def _apply_branch(
    state: ScreenState,
    item: SelectionItem,
    index: int,
    selected: list,
    max_depth: int,
) -> None:
    owns_branch = state.branch is not None and state.branch.source_index == index
    try:
        outcome = resolve_branch(item, selected, max_depth)
    except BranchContentError as exc:
        logger.warning("Conditional screen rejected: %s", exc)
        state.branch_error = str(exc)
        if owns_branch:
            state.branch = None
        return

    state.branch_error = None
    if outcome.screen is None:
        if owns_branch:
            state.branch = None
        return
    if owns_branch and str(state.branch.value) == str(outcome.branch):
        return
    state.branch = BranchState(
        source_index=index,
        value=outcome.branch,
        screen=outcome.screen,
        content=new_content_state(outcome.screen.content),
    )


# ── Handlers ────────────────────────────────────────────────────────────────


def _on_select(screen: ScreenContent, state: ScreenState, event: SelectOption, max_depth: int) -> Transition:
    if event.target == "original":
        content, cstate, in_branch = screen, state.original, False
    else:
        content, cstate, in_branch = _active(screen, state)

    item = _visible_item(content, cstate, event.item_index, "selection")
    if item is None:
        return state, None
    option = find_option(item, event.option_id)
    if option is None:
        logger.debug("Option %r is not displayed in selection %d", event.option_id, event.item_index)
        return state, None

    selected = select(item.mode, option, cstate.selections.get(event.item_index, []))
    cstate.selections[event.item_index] = selected
    response = ScreenResponse(
        response_key=item.response_key or screen.id,
        selected=selected,
        is_intermediate=True,
    )

    if item.has_branches and not in_branch:
        _apply_branch(state, item, event.item_index, selected, max_depth)
        response.branch = state.active_branch
    elif item.has_branches:
        logger.debug("Ignoring conditional screens nested inside a branch")

    _, button = split_button(content.content)
    if should_auto_advance(item, button is not None):
        state.completed = True
        response.is_intermediate = False
    return state, response


def _on_input(screen: ScreenContent, state: ScreenState, event: EditInput, max_depth: int) -> Transition:
    content, cstate, _ = _active(screen, state)
    item = _visible_item(content, cstate, event.item_index, "input")
    if item is None:
        return state, None
    cstate.inputs[event.item_index] = event.value
    return state, ScreenResponse(
        response_key=item.response_key or screen.id,
        input_values={item.key_for(event.item_index): event.value},
        is_intermediate=True,
    )


def _on_button(screen: ScreenContent, state: ScreenState, event: PressButton, max_depth: int) -> Transition:
    content, cstate, in_branch = _active(screen, state)
    regular, button = split_button(content.content)
    if button is None or not button_eligible(regular, cstate.completed_gates):
        logger.debug("Button on screen '%s' is not available", content.id)
        return state, None

    missing = _missing_required(regular, cstate)
    if missing:
        raise RequiredInputError(missing)

    if in_branch:
        branch = state.branch
        original, _ = split_button(screen.content)
        source = original[branch.source_index]
        response = ScreenResponse(
            response_key=source.response_key or screen.id,
            selected=state.original.selections.get(branch.source_index),
            branch=branch.value,
            button=button.text,
            is_intermediate=False,
        )
        state.branch = None
    else:
        sel_index = next((i for i, item in enumerate(regular) if item.type == "selection"), None)
        response = ScreenResponse(
            response_key=button.response_key or screen.id,
            selected=cstate.selections.get(sel_index) if sel_index is not None else None,
            button=button.text,
            input_values=_input_values(regular, cstate) or None,
            is_intermediate=False,
        )

    state.completed = True
    return state, response


def _on_popup(screen: ScreenContent, state: ScreenState, event: RespondToPopup, max_depth: int) -> Transition:
    content, cstate, _ = _active(screen, state)
    item = _visible_item(content, cstate, event.item_index, "loading")
    if item is None or item.popup is None:
        return state, None
    progress = cstate.loading.get(event.item_index)
    if progress is None or not progress.popup_open:
        logger.debug("Popup of loading item %d is not open", event.item_index)
        return state, None

    value = next(
        (opt.value for opt in item.popup.options if str(opt.value) == str(event.value)),
        None,
    )
    if value is None:
        logger.debug("Popup answer %r is not one of the options", event.value)
        return state, None

    progress = respond_to_popup(progress)
    cstate.loading[event.item_index] = progress
    if progress.is_complete(item):
        cstate.completed_gates.add(event.item_index)

    return state, ScreenResponse(
        response_key=item.popup.response_key or item.response_key or screen.id,
        selected=[value],
        is_intermediate=True,
    )


def _on_tick(screen: ScreenContent, state: ScreenState, event: Tick, max_depth: int) -> Transition:
    content, cstate, _ = _active(screen, state)
    regular, _ = split_button(content.content)
    gate = frontier_gate(regular, cstate.completed_gates)
    if gate is None:
        return state, None

    item = regular[gate]
    progress = advance_loading(item, cstate.loading.get(gate, LoadingProgress()), event.elapsed_ms)
    cstate.loading[gate] = progress
    if progress.is_complete(item):
        return state, _complete_gate(screen, cstate, gate, item)
    return state, None


def _on_complete_loading(
    screen: ScreenContent, state: ScreenState, event: CompleteLoading, max_depth: int
) -> Transition:
    content, cstate, _ = _active(screen, state)
    item = _visible_item(content, cstate, event.item_index, "loading")
    if item is None or event.item_index in cstate.completed_gates:
        return state, None
    progress = cstate.loading.get(event.item_index, LoadingProgress())
    if item.popup is not None and not progress.popup_answered:
        logger.debug("Loading item %d still waits for its popup", event.item_index)
        return state, None
    cstate.loading[event.item_index] = progress.model_copy(update={"progress": 100.0})
    return state, _complete_gate(screen, cstate, event.item_index, item)


def _on_clear_branch(screen: ScreenContent, state: ScreenState, event: ClearBranch, max_depth: int) -> Transition:
    state.branch = None
    return state, None


_HANDLERS: dict[str, Callable[..., Transition]] = {
    "select": _on_select,
    "input": _on_input,
    "button": _on_button,
    "popup": _on_popup,
    "tick": _on_tick,
    "loading_complete": _on_complete_loading,
    "clear_branch": _on_clear_branch,
}


# ── Public API ──────────────────────────────────────────────────────────────


def reduce(
    screen: ScreenContent,
    state: ScreenState,
    event: Any,
    max_depth: int = DEFAULT_MAX_NESTING_DEPTH,
) -> Transition:
    """Apply one command to a screen's state.

    Raises ``RequiredInputError`` when a button press is blocked by blank
    required inputs; ``state`` is left untouched in that case.
    """
    if state.completed:
        logger.debug("Screen '%s' is completed; ignoring %s", screen.id, event.kind)
        return state, None
    handler = _HANDLERS.get(event.kind)
    if handler is None:
        logger.debug("Unknown command %r", event.kind)
        return state, None
    return handler(screen, state.model_copy(deep=True), event, max_depth)


def screen_status(screen: ScreenContent, state: ScreenState) -> ScreenStatus:
    """``playing`` until every gate of the active content is done, then ``ready``."""
    if state.completed:
        return "completed"
    content, cstate, _ = _active(screen, state)
    regular, _ = split_button(content.content)
    return "ready" if button_eligible(regular, cstate.completed_gates) else "playing"
