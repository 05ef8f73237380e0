"""Quiz flow — navigation across screens and per-screen response records.

``QuizFlow`` is the layer above ``ScreenPlayer``.  It owns the ordered screen
list, the current index and a fresh player per screen entry.  Every response
a player emits is merged into ``responses[index]`` (later keys win), and
leaving a screen appends a ``ScreenRecord`` with entry/exit timestamps.

Navigation mirrors a linear funnel:
- ``go_next``      — next screen, or finish the quiz on the last one;
- ``go_previous``  — one back (no-op on the first screen);
- ``go_to`` / ``go_to_id`` — jump; out-of-range targets are ignored;
- ``reset``        — back to the first screen.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, NamedTuple

from player.engine import ScreenPlayer
from player.events import ScreenResponse
from player.settings import PlayerSettings, load_settings
from screens.models import ContentModel, ScreenContent
from screens.preprocess import apply_placeholders, inject_branch_buttons
from screens.validator import ScreenValidationError, normalize_screens_input

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScreenRecord(ContentModel):
    """One visit to a screen, as stored alongside the quiz response."""

    screen_id: str
    index: int
    response: dict[str, Any] | None = None
    time_taken_ms: int
    entered_at: datetime
    exited_at: datetime


class CategoryStep(NamedTuple):
    key: str
    label: str


class CategoryProgress(NamedTuple):
    steps: list[CategoryStep]
    active_index: int          # -1 when the current screen has no category
    fill: float                # completed categories + fraction of the active one
    show_bar: bool


# ── Preparation ─────────────────────────────────────────────────────────────


def _with_branch_buttons(raws: list[Any], settings: PlayerSettings) -> list[Any]:
    last = len(raws) - 1
    return [
        inject_branch_buttons(
            raw, i == last, settings.continue_label, settings.finish_label
        ) if isinstance(raw, dict) else raw
        for i, raw in enumerate(raws)
    ]


def prepare_screens(
    parsed: Any,
    placeholders: dict[str, str] | None = None,
    settings: PlayerSettings | None = None,
) -> list[ScreenContent]:
    """Turn decoded quiz JSON into validated screens.

    Placeholders are substituted and conditional screens get their default
    button before validation.
    """
    settings = settings or load_settings()
    parsed = apply_placeholders(parsed, placeholders)

    if isinstance(parsed, list):
        parsed = _with_branch_buttons(parsed, settings)
    elif isinstance(parsed, dict) and isinstance(parsed.get("screens"), list):
        parsed = {**parsed, "screens": _with_branch_buttons(parsed["screens"], settings)}
    elif isinstance(parsed, dict):
        parsed = _with_branch_buttons([parsed], settings)[0]

    screens, mode = normalize_screens_input(parsed, settings.max_nesting_depth)
    logger.info("Loaded %d screen(s) from %s input", len(screens), mode)
    return screens


def category_label(key: str) -> str:
    """``"body_type"`` -> ``"Body type"``."""
    normalized = key.replace("-", " ").replace("_", " ")
    normalized = " ".join(normalized.split())
    if not normalized:
        return key
    return normalized[0].upper() + normalized[1:]


# ── Flow ────────────────────────────────────────────────────────────────────


class QuizFlow:
    """Plays an ordered list of screens."""

    def __init__(
        self,
        screens: list[ScreenContent],
        settings: PlayerSettings | None = None,
        start_at: str | None = None,
        clock: Clock | None = None,
    ) -> None:
        if not screens:
            raise ScreenValidationError("Screens array cannot be empty.")
        self.screens = screens
        self.settings = settings or load_settings()
        self._clock = clock or _utcnow

        self.responses: dict[int, dict[str, Any]] = {}
        self.records: list[ScreenRecord] = []
        self.finished = False

        self.on_screen_change: Callable[[int, str], None] | None = None
        self.on_record: Callable[[ScreenRecord], None] | None = None
        self.on_complete: Callable[[], None] | None = None

        self.index = 0
        self.player: ScreenPlayer = self._enter(self._start_index(start_at))

    @classmethod
    def from_json(
        cls,
        parsed: Any,
        placeholders: dict[str, str] | None = None,
        settings: PlayerSettings | None = None,
        **kwargs: Any,
    ) -> QuizFlow:
        settings = settings or load_settings()
        return cls(prepare_screens(parsed, placeholders, settings), settings, **kwargs)

    # ── Queries ─────────────────────────────────────────────────────────────

    @property
    def current_screen(self) -> ScreenContent:
        return self.screens[self.index]

    @property
    def total(self) -> int:
        return len(self.screens)

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.index == len(self.screens) - 1

    def index_of(self, screen_id: str) -> int | None:
        return next((i for i, s in enumerate(self.screens) if s.id == screen_id), None)

    def category_progress(self) -> CategoryProgress:
        """Category steps in first-seen order and the bar fill for this screen."""
        steps: list[CategoryStep] = []
        by_category: dict[str, list[int]] = {}
        for i, screen in enumerate(self.screens):
            if not screen.category:
                continue
            if screen.category not in by_category:
                steps.append(CategoryStep(screen.category, category_label(screen.category)))
            by_category.setdefault(screen.category, []).append(i)

        current = self.current_screen
        active = next((i for i, step in enumerate(steps) if step.key == current.category), -1)
        show_bar = active >= 0 and not current.hide_category_bar
        if not show_bar:
            return CategoryProgress(steps, active, 0.0, False)

        indices = by_category[current.category]
        if len(indices) <= 1:
            fraction = 1.0
        else:
            fraction = indices.index(self.index) / (len(indices) - 1)
        return CategoryProgress(steps, active, active + fraction, True)

    # ── Navigation ──────────────────────────────────────────────────────────

    def go_next(self) -> None:
        if self.finished:
            return
        if self.is_last:
            self._exit()
            self.finished = True
            logger.info("Quiz finished after %d record(s)", len(self.records))
            if self.on_complete is not None:
                self.on_complete()
            return
        self._change(self.index + 1)

    def go_previous(self) -> None:
        if self.index > 0:
            self._change(self.index - 1)

    def go_to(self, index: int) -> bool:
        if not 0 <= index < len(self.screens):
            logger.debug("Ignoring jump to out-of-range screen %d", index)
            return False
        self._change(index)
        return True

    def go_to_id(self, screen_id: str) -> bool:
        index = self.index_of(screen_id)
        if index is None:
            logger.debug("Ignoring jump to unknown screen '%s'", screen_id)
            return False
        self._change(index)
        return True

    def reset(self) -> None:
        self._change(0)

    # ── Internals ───────────────────────────────────────────────────────────

    def _start_index(self, screen_id: str | None) -> int:
        if screen_id is None:
            return 0
        index = self.index_of(screen_id)
        if index is None:
            logger.warning("Start screen '%s' not found; starting at the first screen", screen_id)
            return 0
        return index

    def _enter(self, index: int) -> ScreenPlayer:
        self.index = index
        self.finished = False
        self._entered_at = self._clock()
        self.player = ScreenPlayer(
            self.screens[index],
            self.settings,
            on_response=self._merge_response,
        )
        logger.debug("Entered screen %d ('%s')", index, self.screens[index].id)
        return self.player

    def _merge_response(self, response: ScreenResponse) -> None:
        merged = self.responses.setdefault(self.index, {})
        merged.update(response.to_json_dict())

    def _exit(self) -> ScreenRecord:
        self.player.close()
        exited_at = self._clock()
        record = ScreenRecord(
            screen_id=self.current_screen.id,
            index=self.index,
            response=dict(self.responses[self.index]) if self.index in self.responses else None,
            time_taken_ms=int((exited_at - self._entered_at).total_seconds() * 1000),
            entered_at=self._entered_at,
            exited_at=exited_at,
        )
        self.records.append(record)
        if self.on_record is not None:
            self.on_record(record)
        return record

    def _change(self, index: int) -> None:
        if not self.finished:
            self._exit()
        self._enter(index)
        if self.on_screen_change is not None:
            self.on_screen_change(index, self.current_screen.id)
