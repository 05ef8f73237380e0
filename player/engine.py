"""Screen player — the host-facing wrapper around ``reduce``.

``ScreenPlayer`` owns the state of one screen play.  Hosts feed it commands
through ``dispatch`` and render ``layout()``; every ``ScreenResponse`` is
handed to ``on_response`` and the completing one also to ``on_complete``.

Loading gates advance on timer ticks.  Hosts with their own timer (the
Textual shell uses ``set_interval``) dispatch ``Tick`` themselves; everyone
else can call ``start_ticker()`` inside a running event loop and let
``LoadingTicker`` do it.  ``close()`` stops the ticker and turns every later
dispatch into a no-op.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from player.events import ScreenResponse, Tick
from player.layout import ScreenLayout, build_layout
from player.reducer import reduce, screen_status
from player.reveal import split_button
from player.settings import PlayerSettings, load_settings
from player.state import ScreenState, ScreenStatus, new_screen_state
from screens.models import ScreenContent

logger = logging.getLogger(__name__)

ResponseHook = Callable[[ScreenResponse], None]


class ScreenPlayer:
    """Plays a single screen.

    Instantiated fresh every time a screen is entered; state never carries
    over between plays.
    """

    def __init__(
        self,
        screen: ScreenContent,
        settings: PlayerSettings | None = None,
        on_response: ResponseHook | None = None,
        on_complete: ResponseHook | None = None,
    ) -> None:
        self.screen = screen
        self.settings = settings or load_settings()
        self.state: ScreenState = new_screen_state(screen)
        self.on_response = on_response
        self.on_complete = on_complete
        self.completion_delay_ms = 0
        self.closed = False
        self._ticker: LoadingTicker | None = None

    # ── Queries ─────────────────────────────────────────────────────────────

    @property
    def status(self) -> ScreenStatus:
        return screen_status(self.screen, self.state)

    @property
    def branch_error(self) -> str | None:
        return self.state.branch_error

    def layout(self) -> ScreenLayout:
        branch = self.state.branch
        if branch is not None:
            return build_layout(branch.screen, branch.content, in_branch=True)
        return build_layout(self.screen, self.state.original)

    # ── Commands ────────────────────────────────────────────────────────────

    def dispatch(self, event: Any) -> ScreenResponse | None:
        """Apply one command; returns the emitted response, if any.

        ``RequiredInputError`` propagates to the caller.
        """
        if self.closed:
            logger.debug("Player for '%s' is closed; ignoring %s", self.screen.id, event.kind)
            return None

        was_completed = self.state.completed
        self.state, response = reduce(
            self.screen, self.state, event, self.settings.max_nesting_depth
        )

        if response is not None and self.on_response is not None:
            self.on_response(response)

        if self.state.completed and not was_completed:
            self.completion_delay_ms = self._completion_delay(event)
            logger.info("Screen '%s' completed", self.screen.id)
            self._stop_ticker()
            if self.on_complete is not None:
                self.on_complete(response)
        elif self._ticker is not None and self.status == "playing":
            self._ticker.start()
        return response

    def _completion_delay(self, event: Any) -> int:
        """Reading time before an auto-advancing radio pick moves on.

        Any radio selection that declares response cards gets the delay,
        whether or not the picked option has a card of its own.
        """
        if event.kind != "select":
            return 0
        regular, _ = split_button(self.screen.content)
        if not 0 <= event.item_index < len(regular):
            return 0
        item = regular[event.item_index]
        if item.type == "selection" and item.mode == "radio" and item.response_cards:
            return self.settings.response_card_delay_ms
        return 0

    # ── Ticker ──────────────────────────────────────────────────────────────

    def start_ticker(self) -> LoadingTicker:
        """Drive loading gates from the running asyncio loop."""
        if self._ticker is None:
            self._ticker = LoadingTicker(self, self.settings.tick_interval_ms)
        if self.status == "playing":
            self._ticker.start()
        return self._ticker

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()

    def close(self) -> None:
        self._stop_ticker()
        self.closed = True


class LoadingTicker:
    """Dispatches ``Tick`` to a player every ``interval_ms`` while it plays."""

    def __init__(self, player: ScreenPlayer, interval_ms: int) -> None:
        self.player = player
        self.interval_ms = interval_ms
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        # Stopping from inside the task itself (a tick completing the screen)
        # lets the loop condition end it instead.
        if self.running and self._task is not asyncio.current_task():
            self._task.cancel()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        last = loop.time()
        while not self.player.closed and self.player.status == "playing":
            await asyncio.sleep(self.interval_ms / 1000)
            now = loop.time()
            self.player.dispatch(Tick(elapsed_ms=(now - last) * 1000))
            last = now
        logger.debug("Loading ticker for '%s' stopped", self.player.screen.id)
