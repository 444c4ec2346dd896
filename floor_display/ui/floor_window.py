"""
Floor display GUI using PyQt6 - pops out as a standalone (full-screen) window.

Meant for the large TV on the floor:
- Header with title and connection indicator
- One row per active order, grouped by table
"""

from __future__ import annotations

import queue
import sys
from typing import TYPE_CHECKING

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QColor, QFont
from PyQt6.QtWidgets import (
    QApplication, QHBoxLayout, QHeaderView, QLabel, QMainWindow,
    QTableWidget, QTableWidgetItem, QVBoxLayout, QWidget
)

from ..engine.locale import EN, Locale
from ..types import OrderStatus

if TYPE_CHECKING:
    from ..types import FloorSnapshot

# Colors
BG_COLOR = QColor(30, 60, 114)
HEADER_BG = QColor(42, 82, 152)
TEXT_COLOR = QColor(255, 255, 255)
TABLE_COLOR = QColor(255, 215, 0)
CONNECTED_COLOR = QColor(76, 175, 80)
DISCONNECTED_COLOR = QColor(244, 67, 54)
STATUS_COLORS = {
    OrderStatus.NEW: QColor(33, 150, 243),
    OrderStatus.ACCEPTED: QColor(255, 152, 0),
    OrderStatus.PREPARING: QColor(255, 87, 34),
    OrderStatus.READY: QColor(76, 175, 80),
    OrderStatus.UNKNOWN: QColor(158, 158, 158),
}

COLUMNS = 5  # Table | Order | Status | Items | Created


def flatten_rows(snap: FloorSnapshot) -> list[tuple]:
    """
    One row per order: (table_text, order_text, status, status_label, items_text, created).

    The table column is only filled on the first row of each group.
    """
    rows: list[tuple] = []
    for group in snap.groups:
        for view in group.orders:
            table_text = f"{group.table_label} · {group.count_label}" if view.position == 1 else ""
            rows.append((
                table_text,
                f"#{view.position} (ID: {view.order_id})",
                view.status,
                view.status_label,
                ", ".join(view.item_lines),
                view.created_time,
            ))
    return rows


class FloorWindow(QMainWindow):
    """Main floor display window."""

    def __init__(self, snapshot_queue: queue.Queue, locale: Locale = EN) -> None:
        super().__init__()
        self.snapshot_queue = snapshot_queue
        self.locale = locale
        self._last_snapshot: FloorSnapshot | None = None

        self.setWindowTitle(locale.title)
        self.setMinimumSize(1024, 700)
        self.setStyleSheet(f"background-color: {BG_COLOR.name()}; color: {TEXT_COLOR.name()};")

        self._setup_ui()
        self._setup_timer()

    def _setup_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(20, 20, 20, 20)

        # Header: title + connection pill
        header = QHBoxLayout()
        self.title = QLabel(f"{self.locale.title}  ·  {self.locale.subtitle}")
        self.title.setFont(QFont("Arial", 28, QFont.Weight.Bold))
        header.addWidget(self.title)
        header.addStretch(1)

        self.connection = QLabel(self.locale.disconnected_label)
        self.connection.setFont(QFont("Arial", 16, QFont.Weight.Bold))
        self._set_connection(False, self.locale.disconnected_label)
        header.addWidget(self.connection)
        layout.addLayout(header)

        # Empty state
        self.empty = QLabel(f"{self.locale.empty_text}\n{self.locale.empty_subtext}")
        self.empty.setFont(QFont("Arial", 24))
        self.empty.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.empty, 1)

        # Orders table
        self.table = QTableWidget()
        self.table.setColumnCount(COLUMNS)
        self.table.setHorizontalHeaderLabels(["", "", "", "", self.locale.created_prefix])
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.table.verticalHeader().setVisible(False)
        self.table.setShowGrid(False)
        self.table.setFont(QFont("Arial", 16))
        self.table.setStyleSheet(f"""
            QTableWidget {{
                background-color: {BG_COLOR.name()};
                gridline-color: {HEADER_BG.name()};
            }}
            QHeaderView::section {{
                background-color: {HEADER_BG.name()};
                color: {TEXT_COLOR.name()};
                padding: 5px;
                border: none;
            }}
        """)
        self.table.hide()
        layout.addWidget(self.table, 1)

    def _set_connection(self, connected: bool, label: str) -> None:
        color = CONNECTED_COLOR if connected else DISCONNECTED_COLOR
        self.connection.setText(label)
        self.connection.setStyleSheet(
            f"background-color: {color.name()}; color: white; padding: 10px 20px; border-radius: 20px;"
        )

    def _setup_timer(self) -> None:
        """Setup timer to poll snapshot queue."""
        self.timer = QTimer()
        self.timer.timeout.connect(self._poll_snapshots)
        self.timer.start(50)

    def _poll_snapshots(self) -> None:
        """Drain the thread-safe queue, keep only the latest snapshot."""
        latest = None
        while True:
            try:
                latest = self.snapshot_queue.get_nowait()
            except queue.Empty:
                break

        if latest is not None:
            self._last_snapshot = latest
            self._update_display(latest)

    def _update_display(self, snap: FloorSnapshot) -> None:
        self._set_connection(snap.connected, snap.connection_label)

        rows = flatten_rows(snap)
        if not rows:
            self.table.hide()
            self.empty.show()
            return
        self.empty.hide()
        self.table.show()

        self.table.blockSignals(True)
        self.table.setRowCount(len(rows))

        for row, (table_text, order_text, status, status_label, items_text, created) in enumerate(rows):
            cells = [table_text, order_text, status_label.upper(), items_text, created]
            for col, text in enumerate(cells):
                item = QTableWidgetItem(text)
                item.setFlags(item.flags() & ~Qt.ItemFlag.ItemIsEditable)
                if col == 0:
                    item.setForeground(TABLE_COLOR)
                elif col == 2:
                    item.setBackground(STATUS_COLORS.get(status, STATUS_COLORS[OrderStatus.UNKNOWN]))
                    item.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
                self.table.setItem(row, col, item)

        self.table.blockSignals(False)
        self.table.viewport().update()


def run_gui(
    snapshot_queue: queue.Queue,
    locale: Locale = EN,
    fullscreen: bool = False,
) -> None:
    """Run the GUI application (blocking)."""
    app = QApplication(sys.argv)
    app.setStyle("Fusion")

    window = FloorWindow(snapshot_queue, locale)
    if fullscreen:
        window.showFullScreen()
    else:
        window.show()

    app.exec()
