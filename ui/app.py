"""Funnel Player — Textual application entry point.

``QuizPlayerApp`` owns the ``QuizFlow`` instance shared by its screens:

- ``PlayScreen``    — plays the current screen and drives the loading timer.
- ``SummaryScreen`` — shown after the last screen; restart or quit.
"""

from __future__ import annotations

from textual.app import App

from flow.router import QuizFlow


class QuizPlayerApp(App):
    """Root Textual application for the quiz player."""

    TITLE = "Funnel Player"

    def __init__(self, flow: QuizFlow) -> None:
        super().__init__()
        self.flow = flow

    def on_mount(self) -> None:
        from ui.screens.play import PlayScreen

        self.push_screen(PlayScreen())
