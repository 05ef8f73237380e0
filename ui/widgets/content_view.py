"""ContentView widget — renders a ``ScreenLayout`` as rich panels.

Every visible item becomes one renderable, top region first, then middle and
bottom, then the button.  Rendering is a pure function of the layout and the
content state (``render_layout``) so it can be checked without a terminal.

Interactive hints:
  selections  — options are numbered ``1..9`` inside the focused selection.
  inputs      — the focused input is marked with ``›``; typing goes to the
                answer box under the content.
  loading     — a progress bar; an open popup lists its answers as numbers.
"""

from __future__ import annotations

from typing import Any

from rich.align import Align
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text
from textual.widget import Widget

from player.layout import ScreenLayout
from player.reveal import LoadingProgress
from player.selection import displayed_options
from player.state import ContentState

JUSTIFY = {"left": "left", "center": "center", "right": "right"}

CARD_BORDER: dict[str, str] = {
    "quotation": "magenta",
    "message": "cyan",
    "info": "blue",
    "container": "bright_black",
}


def option_label(option: Any) -> str:
    if option.variant == "square":
        return option.character
    return option.text


# ── Item renderers ──────────────────────────────────────────────────────────


def _render_text(item: Any) -> RenderableType:
    justify = JUSTIFY.get(item.align or "", "left")
    if isinstance(item.content, str):
        return Text(item.content, justify=justify)
    text = Text(justify=justify)
    for segment in item.content:
        text.append(segment.content, style=f"underline link {segment.url}" if segment.url else "")
    return text


def _render_heading(item: Any) -> RenderableType:
    return Text(item.content, style="bold", justify=JUSTIFY.get(item.align or "", "center"))


def _render_image(item: Any) -> RenderableType:
    return Text(f"▣ {item.alt or item.src}", style="dim italic", justify=JUSTIFY.get(item.align or "", "center"))


def _render_input(item: Any, index: int, state: ContentState, focused: bool) -> RenderableType:
    value = state.inputs.get(index, "")
    shown = "•" * len(value) if item.input_type == "password" else value
    text = Text()
    text.append("› " if focused else "  ", style="bold cyan")
    if item.label:
        text.append(f"{item.label}{' *' if item.required else ''}: ", style="bold")
    if shown:
        text.append(shown)
    else:
        text.append(item.placeholder or "", style="dim")
    return text


def _render_selection(item: Any, index: int, state: ContentState, focused: bool) -> RenderableType:
    selected = state.selections.get(index, [])
    rows, cols = item.grid
    table = Table.grid(padding=(0, 2))
    for _ in range(cols):
        table.add_column()

    cells: list[Text] = []
    for n, (ident, option) in enumerate(displayed_options(item), start=1):
        picked = ident in selected
        if item.mode == "radio":
            marker = "◉" if picked else "○"
        else:
            marker = "☑" if picked else "☐"
        cell = Text()
        if focused and n <= 9:
            cell.append(f"{n} ", style="bold cyan")
        cell.append(f"{marker} {option_label(option)}", style="bold green" if picked else "")
        cells.append(cell)

    for start in range(0, len(cells), cols):
        table.add_row(*cells[start:start + cols])
    return Panel(table, border_style="cyan" if focused else "bright_black", expand=True)


def _render_loading(item: Any, index: int, state: ContentState) -> RenderableType:
    progress = state.loading.get(index, LoadingProgress())
    done = index in state.completed_gates
    completed = 100.0 if done else progress.progress
    label = Text(f"{item.message}  {completed:.0f}%", style="dim" if done else "bold")
    return Group(label, ProgressBar(total=100, completed=completed))


def _render_card(item: Any, index: int, state: ContentState) -> RenderableType:
    border = CARD_BORDER.get(item.variant, "bright_black")
    if item.variant == "quotation":
        body = Text(justify="center")
        body.append(f"“{item.quote}”", style="italic")
        if item.author:
            body.append(f"\n— {item.author}", style="dim")
        return Panel(Align.center(body), border_style=border, expand=True)
    if item.variant == "message":
        return Panel(Text(item.message), border_style=border, expand=True)
    parts = [render_item(child, -1, state) for child in item.content]
    return Panel(Group(*parts), border_style=border, expand=True)


def _render_carousel(item: Any, state: ContentState) -> RenderableType:
    parts = [render_item(child, -1, state) for child in item.items]
    if item.direction == "horizontal" and parts:
        table = Table.grid(padding=(0, 2))
        for _ in parts:
            table.add_column()
        table.add_row(*parts)
        return table
    return Group(*parts)


def render_item(item: Any, index: int, state: ContentState, focused: bool = False) -> RenderableType:
    """Render one content item.

    ``index`` is -1 for nested (carousel / container) items, which are
    presentational and never read interactive state.
    """
    kind = item.type
    if kind == "text":
        return _render_text(item)
    if kind == "heading":
        return _render_heading(item)
    if kind == "image":
        return _render_image(item)
    if kind == "input":
        return _render_input(item, index, state, focused)
    if kind == "selection":
        return _render_selection(item, index, state, focused)
    if kind == "loading":
        return _render_loading(item, index, state)
    if kind == "card":
        return _render_card(item, index, state)
    if kind == "carousel":
        return _render_carousel(item, state)
    return Text("")


def render_layout(layout: ScreenLayout, state: ContentState, focus: int | None = None) -> Group:
    parts: list[RenderableType] = []
    for rendered in layout.items:
        parts.append(render_item(rendered.item, rendered.index, state, focused=rendered.index == focus))
        card = layout.response_cards.get(rendered.index)
        if card is not None:
            parts.append(Panel(
                Text(card.message),
                title=f"[bold]{card.title}[/]" if card.title else None,
                border_style="green",
                expand=True,
            ))
        parts.append(Text(""))

    if layout.popup is not None:
        _, popup = layout.popup
        body = Text()
        if popup.description:
            body.append(f"{popup.description}\n\n", style="italic")
        for n, option in enumerate(popup.options, start=1):
            body.append(f"{n} ", style="bold cyan")
            body.append(f"{option.text}\n")
        parts.append(Panel(body, title=f"[bold yellow]{popup.title}[/]", border_style="yellow", expand=True))

    if layout.button is not None and layout.button_visible:
        parts.append(Align.center(Text(f"  [Enter] {layout.button.text}  ", style="bold reverse")))
    return Group(*parts)


class ContentView(Widget):
    DEFAULT_CSS = """
    ContentView {
        width: 1fr;
        height: auto;
        padding: 1 2;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._layout: ScreenLayout | None = None
        self._state: ContentState | None = None
        self._focus: int | None = None

    def show(self, layout: ScreenLayout, state: ContentState, focus: int | None = None) -> None:
        self._layout = layout
        self._state = state
        self._focus = focus
        self.refresh(layout=True)

    def render(self) -> RenderableType:
        if self._layout is None or self._state is None:
            return Text("")
        return render_layout(self._layout, self._state, self._focus)
