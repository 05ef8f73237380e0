"""Selection engine — radio/checkbox semantics and response-card lookup.

All functions are pure: they take the current selection list and return a
new one, never mutating their arguments.
"""

from __future__ import annotations

import logging
from typing import Any

from screens.models import OptionId, ResponseCard, SelectionItem

logger = logging.getLogger(__name__)


def option_identity(option: Any, index: int) -> OptionId:
    """An option is identified by ``id``, else ``value``, else its index."""
    if option.id is not None:
        return option.id
    if option.value is not None:
        return option.value
    return index


def displayed_options(selection: SelectionItem) -> list[tuple[OptionId, Any]]:
    """Options that fit the ``rows x cols`` grid, paired with their identity."""
    rows, cols = selection.grid
    return [
        (option_identity(option, i), option)
        for i, option in enumerate(selection.options[: rows * cols])
    ]


def find_option(selection: SelectionItem, option_id: OptionId) -> OptionId | None:
    """Resolve an incoming id to a displayed option's canonical identity.

    Matches exactly first, then by string form (``"2"`` finds option ``2``).
    Returns None for ids outside the displayed grid.
    """
    options = displayed_options(selection)
    for ident, _ in options:
        if ident == option_id and type(ident) is type(option_id):
            return ident
    for ident, _ in options:
        if str(ident) == str(option_id):
            return ident
    return None


def select(mode: str, option_id: OptionId, current: list[OptionId]) -> list[OptionId]:
    """Apply one click.

    radio    — the selection becomes ``[option_id]`` (re-clicking is a no-op).
    checkbox — ``option_id`` is toggled: removed if present, appended if not.
    """
    if mode == "radio":
        return [option_id]
    if option_id in current:
        return [s for s in current if s != option_id]
    return [*current, option_id]


def current_response_card(
    selected: list[OptionId],
    response_cards: dict[str, ResponseCard],
) -> ResponseCard | None:
    """Card for the most recently added pick (latest wins, never merged)."""
    if not selected or not response_cards:
        return None
    return response_cards.get(str(selected[-1]))


def should_auto_advance(selection: SelectionItem, has_button: bool) -> bool:
    """Radio picks complete the screen when nothing else needs to happen."""
    return selection.mode == "radio" and not has_button and not selection.has_branches


def initial_selection(selection: SelectionItem) -> list[OptionId]:
    """``default_selected`` filtered to displayed options (radio keeps one)."""
    picked: list[OptionId] = []
    for option_id in selection.default_selected:
        ident = find_option(selection, option_id)
        if ident is None:
            logger.debug("Ignoring default selection %r: no such option", option_id)
            continue
        picked = select(selection.mode, ident, picked) if ident not in picked else picked
    return picked
