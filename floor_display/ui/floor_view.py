"""
Floor display TUI using Textual.

Displays:
- Top: title, connection indicator, counters
- Body: one card per table with its active orders

Performance notes:
- Renders at most once per pushed snapshot (~10 FPS)
- Cards are plain Rich renderables, rebuilt from the snapshot each time
"""

from __future__ import annotations

import asyncio
import queue
from typing import TYPE_CHECKING

from rich.columns import Columns
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.style import Style
from rich.text import Text

from textual.app import App, ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Footer, Static

from ..engine.locale import EN, Locale
from ..types import OrderStatus

if TYPE_CHECKING:
    from ..types import FloorSnapshot, TableGroup

# Status badge colours
STATUS_COLORS = {
    OrderStatus.NEW: "#2196F3",
    OrderStatus.ACCEPTED: "#FF9800",
    OrderStatus.PREPARING: "#FF5722",
    OrderStatus.READY: "#4CAF50",
    OrderStatus.UNKNOWN: "#9E9E9E",
}
CONNECTED_COLOR = "#4CAF50"
DISCONNECTED_COLOR = "#F44336"
TABLE_COLOR = "#FFD700"
CARD_BORDER = "#2a5298"
CARD_WIDTH = 44


def status_badge(status: OrderStatus, label: str) -> Text:
    """Coloured status pill."""
    color = STATUS_COLORS.get(status, STATUS_COLORS[OrderStatus.UNKNOWN])
    return Text(f" {label.upper()} ", style=Style(color="white", bgcolor=color, bold=True))


def render_card(group: TableGroup, locale: Locale = EN) -> Panel:
    """One table card: header line, then each order with items and time."""
    parts: list[RenderableType] = []

    for view in group.orders:
        header = Text()
        header.append(f"#{view.position} ", style="bold")
        header.append(f"(ID: {view.order_id}) ", style="dim")
        header.append(status_badge(view.status, view.status_label))
        parts.append(header)

        for line in view.item_lines:
            parts.append(Text(f"  {line}"))

        parts.append(Text(f"  {locale.created_prefix}: {view.created_time}", style="dim"))
        parts.append(Text(""))

    title = Text()
    title.append(group.table_label, style="bold")
    title.append("  ")
    title.append(group.count_label, style=Style(color=TABLE_COLOR, bold=True))

    return Panel(
        Group(*parts),
        title=title,
        title_align="left",
        border_style=CARD_BORDER,
        width=CARD_WIDTH,
    )


class FloorGrid(Static):
    """Grid of table cards."""

    DEFAULT_CSS = """
    FloorGrid {
        width: 100%;
        height: auto;
    }
    """

    def __init__(self, locale: Locale = EN) -> None:
        super().__init__()
        self.locale = locale
        self._snapshot: FloorSnapshot | None = None

    def update_snapshot(self, snapshot: FloorSnapshot) -> None:
        """Update with new floor snapshot."""
        self._snapshot = snapshot
        self.refresh(layout=True)

    def render(self) -> RenderableType:
        if self._snapshot is None:
            return Text("Waiting for data...", style="dim")

        if not self._snapshot.groups:
            return Group(
                Text(self.locale.empty_text, style="bold", justify="center"),
                Text(self.locale.empty_subtext, style="dim", justify="center"),
            )

        return Columns(
            [render_card(g, self.locale) for g in self._snapshot.groups],
            padding=(0, 1),
        )


class StatusBar(Static):
    """Title, connection indicator and counters."""

    DEFAULT_CSS = """
    StatusBar {
        dock: top;
        height: 3;
        padding: 0 2;
        background: #1e3c72;
    }
    """

    def __init__(self, locale: Locale = EN) -> None:
        super().__init__()
        self.locale = locale
        self._snapshot: FloorSnapshot | None = None

    def update_snapshot(self, snapshot: FloorSnapshot) -> None:
        self._snapshot = snapshot
        self.refresh()

    def render(self) -> RenderableType:
        result = Text()
        result.append(f" {self.locale.title} ", style="bold white on #2a5298")
        result.append(f"  {self.locale.subtitle}", style="dim")

        if self._snapshot is None:
            result.append("  │  ", style="dim")
            result.append("Connecting...", style="dim")
            return result

        snap = self._snapshot
        color = CONNECTED_COLOR if snap.connected else DISCONNECTED_COLOR
        result.append("  │  ", style="dim")
        result.append(f" {snap.connection_label} ", style=Style(color="white", bgcolor=color, bold=True))
        result.append("  │  ", style="dim")
        result.append("Active: ", style="dim")
        result.append(str(snap.active_count), style="cyan")
        result.append("  Held: ", style="dim")
        result.append(str(snap.held_count), style="cyan")
        result.append("  Events/s: ", style="dim")
        result.append(f"{snap.events_per_sec:.1f}", style="cyan")
        return result


class FloorApp(App):
    """Main floor display application."""

    CSS = """
    Screen {
        background: #0f172a;
    }

    #main-container {
        width: 100%;
        height: 100%;
        padding: 1 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, snapshot_queue: queue.Queue, locale: Locale = EN) -> None:
        super().__init__()
        self.snapshot_queue = snapshot_queue
        self.locale = locale
        self._status_bar: StatusBar | None = None
        self._grid: FloorGrid | None = None

    def compose(self) -> ComposeResult:
        self._status_bar = StatusBar(self.locale)
        self._grid = FloorGrid(self.locale)

        yield self._status_bar
        yield VerticalScroll(self._grid, id="main-container")
        yield Footer()

    async def on_mount(self) -> None:
        """Start the snapshot consumer task."""
        self.run_worker(self._consume_snapshots(), exclusive=True)

    async def _consume_snapshots(self) -> None:
        """Poll the thread-safe queue and update the UI with the newest snapshot."""
        while True:
            latest = None
            while True:
                try:
                    latest = self.snapshot_queue.get_nowait()
                except queue.Empty:
                    break

            if latest is not None:
                if self._status_bar:
                    self._status_bar.update_snapshot(latest)
                if self._grid:
                    self._grid.update_snapshot(latest)

            try:
                await asyncio.sleep(0.05)
            except asyncio.CancelledError:
                break


async def run_ui(snapshot_queue: queue.Queue, locale: Locale = EN) -> None:
    """Run the TUI application."""
    app = FloorApp(snapshot_queue, locale)
    await app.run_async()
