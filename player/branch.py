"""Branch resolver — swaps a whole screen for a conditional sub-screen.

A selection may declare ``conditionalScreens``: a map from the *string form*
of an option identity to a full screen.  Whenever that selection changes, the
latest picked value is looked up:

- match    -> the branch activates (content validated on the spot);
- no match -> any active branch is cleared, so changing the answer away from a
              branching option always reverts to the normal screen.

Branch content that fails validation raises ``BranchContentError``; the
reducer absorbs it and keeps the original screen on display.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from screens.models import OptionId, ScreenContent, SelectionItem
from screens.validator import DEFAULT_MAX_NESTING_DEPTH, ScreenValidationError, validate_screen

logger = logging.getLogger(__name__)


class BranchContentError(ScreenValidationError):
    """A conditional screen exists for the picked value but is malformed."""


class BranchOutcome(NamedTuple):
    screen: ScreenContent | None
    branch: OptionId | None


NO_BRANCH = BranchOutcome(None, None)


def resolve_branch(
    selection: SelectionItem,
    selected: list[OptionId],
    max_depth: int = DEFAULT_MAX_NESTING_DEPTH,
) -> BranchOutcome:
    """Resolve the latest pick against ``selection.conditional_screens``."""
    if not selection.conditional_screens or not selected:
        return NO_BRANCH

    value = selected[-1]
    key = str(value)
    raw = selection.conditional_screens.get(key)
    if raw is None:
        logger.debug("No conditional screen for %r", key)
        return NO_BRANCH
    if isinstance(raw, dict) and "id" not in raw:
        raw = {**raw, "id": f"branch-{key}"}

    try:
        screen = validate_screen(raw, f"conditionalScreens[{key!r}]", max_depth)
    except ScreenValidationError as exc:
        raise BranchContentError(str(exc)) from exc
    return BranchOutcome(screen, value)
