"""Summary screen — shown when the last screen of the quiz completes.

Lists every screen record (time taken plus the merged response) and lets the
player restart the quiz or quit.
"""

from __future__ import annotations

import json

from rich.table import Table
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Center, Vertical
from textual.screen import Screen
from textual.widgets import Static

from flow.router import ScreenRecord


def records_table(records: list[ScreenRecord]) -> Table:
    table = Table(expand=True, border_style="bright_black")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Screen", style="bold")
    table.add_column("Time", justify="right")
    table.add_column("Response")
    for record in records:
        response = json.dumps(record.response, ensure_ascii=False) if record.response else "—"
        table.add_row(
            str(record.index + 1),
            record.screen_id,
            f"{record.time_taken_ms / 1000:.1f}s",
            response,
        )
    return table


class SummaryScreen(Screen):
    BINDINGS = [
        Binding("r", "restart", "Restart"),
        Binding("q", "quit_quiz", "Quit"),
    ]

    DEFAULT_CSS = """
    SummaryScreen {
        align: center middle;
    }
    #summary-box {
        width: 90%;
        height: auto;
        padding: 1 2;
        border: double $accent;
        background: $surface;
    }
    #summary-header {
        text-align: center;
        text-style: bold;
        color: $accent;
        margin-bottom: 1;
    }
    #summary-prompt {
        text-align: center;
        margin-top: 1;
    }
    """

    def compose(self) -> ComposeResult:
        flow = self.app.flow
        with Center():
            with Vertical(id="summary-box"):
                yield Static("═══  Quiz complete  ═══", id="summary-header")
                yield Static(records_table(flow.records), id="summary-records")
                yield Static("[R] Play Again    [Q] Quit", id="summary-prompt")

    def action_restart(self) -> None:
        from ui.screens.play import PlayScreen

        self.app.flow.reset()
        self.app.switch_screen(PlayScreen())

    def action_quit_quiz(self) -> None:
        self.app.exit()
