from __future__ import annotations

import logging
import time

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical, VerticalScroll
from textual.screen import Screen
from textual.timer import Timer
from textual.widgets import Footer, Input, ProgressBar, Static

from flow.router import QuizFlow
from player.events import (
    ClearBranch,
    EditInput,
    PressButton,
    RespondToPopup,
    SelectOption,
    Tick,
)
from player.reducer import RequiredInputError
from player.selection import displayed_options
from ui.widgets.content_view import ContentView

logger = logging.getLogger(__name__)


class PlayScreen(Screen):
    """Plays the current screen of ``app.flow``.

    The loading timer runs through ``set_interval`` and is stopped whenever
    the screen is left or the quiz finishes.
    """

    BINDINGS = [
        *[Binding(str(n), f"pick({n})", "Pick", show=False) for n in range(1, 10)],
        Binding("up", "move_focus(-1)", "Prev item", priority=True),
        Binding("down", "move_focus(1)", "Next item", priority=True),
        Binding("enter", "press_button", "Continue"),
        Binding("escape", "back", "Back"),
        Binding("q", "quit_quiz", "Quit"),
    ]

    DEFAULT_CSS = """
    PlayScreen {
        layout: vertical;
    }
    #play-header {
        height: auto;
        padding: 0 2;
        border-bottom: solid $primary;
    }
    #category-label {
        text-style: bold;
        color: $accent;
    }
    #play-body {
        height: 1fr;
    }
    #answer {
        margin: 0 2;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._timer: Timer | None = None
        self._advance_timer: Timer | None = None
        self._completing = None
        self._last_tick = 0.0
        self._focus: int | None = None
        self._advancing = False
        self._shown_error: str | None = None

    @property
    def flow(self) -> QuizFlow:
        return self.app.flow

    def compose(self) -> ComposeResult:
        with Vertical(id="play-header"):
            yield Static("", id="category-label")
            yield ProgressBar(total=1, show_eta=False, show_percentage=False, id="category-bar")
        with VerticalScroll(id="play-body"):
            yield ContentView(id="content-view")
        yield Input(id="answer")
        yield Footer()

    def on_mount(self) -> None:
        interval = self.flow.settings.tick_interval_ms / 1000
        self._timer = self.set_interval(interval, self._tick)
        self._load_screen()

    def on_unmount(self) -> None:
        self._cancel_advance()
        self._stop_timer()

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

    def _cancel_advance(self) -> None:
        if self._advance_timer is not None:
            self._advance_timer.stop()
            self._advance_timer = None
        self._completing = None

    # ── Rendering ───────────────────────────────────────────────────────

    def _load_screen(self) -> None:
        """Reset per-screen UI state after the flow moved."""
        self._cancel_advance()
        self._advancing = False
        self._shown_error = None
        self._focus = None
        self._last_tick = time.monotonic()
        self._update_header()
        self._refresh_content()

    def _update_header(self) -> None:
        progress = self.flow.category_progress()
        label = self.query_one("#category-label", Static)
        bar = self.query_one("#category-bar", ProgressBar)
        counter = f"{self.flow.index + 1}/{self.flow.total}"
        if progress.show_bar:
            steps = "  ›  ".join(
                f"[b]{step.label}[/b]" if i == progress.active_index else step.label
                for i, step in enumerate(progress.steps)
            )
            label.update(f"{steps}    [dim]{counter}[/dim]")
            bar.update(total=len(progress.steps), progress=progress.fill)
            bar.display = True
        else:
            label.update(f"[dim]{counter}[/dim]")
            bar.display = False

    def _interactive_indices(self) -> list[int]:
        layout = self.flow.player.layout()
        return sorted(
            r.index for r in layout.items if r.item.type in ("selection", "input")
        )

    def _refresh_content(self) -> None:
        player = self.flow.player
        layout = player.layout()
        interactive = self._interactive_indices()
        if self._focus not in interactive:
            self._focus = interactive[0] if interactive else None

        self.query_one("#content-view", ContentView).show(layout, player.state.active, self._focus)

        answer = self.query_one("#answer", Input)
        focused_item = self._focused_item()
        # An open popup takes the digit keys, so the answer box steps aside.
        if focused_item is not None and focused_item.type == "input" and layout.popup is None:
            value = player.state.active.inputs.get(self._focus, "")
            if answer.value != value:
                with answer.prevent(Input.Changed):
                    answer.value = value
            answer.placeholder = focused_item.placeholder or focused_item.label or ""
            answer.password = focused_item.input_type == "password"
            answer.display = True
            answer.focus()
        else:
            answer.display = False
            self.set_focus(None)

        error = player.branch_error
        if error and error != self._shown_error:
            self.notify(error, title="Branch skipped", severity="warning")
        self._shown_error = error

    def _focused_item(self):
        if self._focus is None:
            return None
        for rendered in self.flow.player.layout().items:
            if rendered.index == self._focus:
                return rendered.item
        return None

    # ── Dispatch ────────────────────────────────────────────────────────

    def _dispatch(self, event) -> None:
        try:
            self.flow.player.dispatch(event)
        except RequiredInputError as exc:
            self.notify(f"Please fill in: {', '.join(exc.missing)}", severity="warning")
            return
        self._refresh_content()
        self._check_completed()

    def _check_completed(self) -> None:
        player = self.flow.player
        if player.status != "completed" or self._advancing:
            return
        self._advancing = True
        self._completing = player
        delay = player.completion_delay_ms
        if delay:
            self._advance_timer = self.set_timer(delay / 1000, self._advance)
        else:
            self.call_later(self._advance)

    def _advance(self) -> None:
        if self._completing is None or self._completing is not self.flow.player:
            logger.debug("Dropping stale advance; the flow moved on")
            return
        self._advance_timer = None
        self._completing = None
        self.flow.go_next()
        logger.debug("Advanced to screen %d (finished=%s)", self.flow.index, self.flow.finished)
        if self.flow.finished:
            self._stop_timer()
            from ui.screens.summary import SummaryScreen

            self.app.switch_screen(SummaryScreen())
            return
        self._load_screen()

    def _tick(self) -> None:
        now = time.monotonic()
        elapsed = (now - self._last_tick) * 1000
        self._last_tick = now
        if self.flow.player.status == "playing":
            self._dispatch(Tick(elapsed_ms=elapsed))

    # ── Actions ─────────────────────────────────────────────────────────

    def action_pick(self, number: int) -> None:
        layout = self.flow.player.layout()
        if layout.popup is not None:
            index, popup = layout.popup
            if number <= len(popup.options):
                self._dispatch(RespondToPopup(item_index=index, value=popup.options[number - 1].value))
            return

        item = self._focused_item()
        if item is None or item.type != "selection":
            return
        options = displayed_options(item)
        if number <= len(options):
            option_id, _ = options[number - 1]
            self._dispatch(SelectOption(item_index=self._focus, option_id=option_id))

    def action_move_focus(self, step: int) -> None:
        interactive = self._interactive_indices()
        if not interactive:
            return
        position = interactive.index(self._focus) if self._focus in interactive else 0
        self._focus = interactive[(position + step) % len(interactive)]
        self._refresh_content()

    def action_press_button(self) -> None:
        self._dispatch(PressButton())

    def action_back(self) -> None:
        if self.flow.player.state.branch is not None:
            self._dispatch(ClearBranch())
            return
        if not self.flow.is_first:
            self._cancel_advance()
            self.flow.go_previous()
            self._load_screen()

    def action_quit_quiz(self) -> None:
        self.app.exit()

    # ── Input events ────────────────────────────────────────────────────

    def on_input_changed(self, event: Input.Changed) -> None:
        item = self._focused_item()
        if item is not None and item.type == "input":
            self._dispatch(EditInput(item_index=self._focus, value=event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.action_press_button()
