"""
Data types for Floor Display.

Notes:
- Using NamedTuple for immutable records; the store hands these out directly
  and nobody downstream can mutate them
- Order ids are canonicalised to str at the transport boundary
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import NamedTuple, Union

TableNumber = Union[int, str]


class OrderStatus(str, Enum):
    """Order lifecycle states shown on the floor."""
    NEW = "new"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    READY = "ready"
    UNKNOWN = "unknown"  # Anything the backend sends that we don't recognise

    @classmethod
    def parse(cls, value: object) -> OrderStatus:
        """Map a raw payload value onto the closed set. Never raises."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip().lower()
            if text in DONE_ALIASES:
                return cls.READY
            try:
                return cls(text)
            except ValueError:
                pass
        return cls.UNKNOWN


# Backend end-of-life states; the floor treats them like ready
DONE_ALIASES = frozenset({"delivered", "cancelled", "canceled"})

# Statuses the floor still needs to see
ACTIVE_STATUSES = frozenset({OrderStatus.NEW, OrderStatus.ACCEPTED, OrderStatus.PREPARING})

# What the projector renders: active work plus anything unrecognised
VISIBLE_STATUSES = ACTIVE_STATUSES | {OrderStatus.UNKNOWN}


class ConnectionStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class OrderItem(NamedTuple):
    """Single line of an order."""
    name: str
    quantity: int  # Always >= 1


class Order(NamedTuple):
    """
    One order as held by the store.

    Only `status` ever changes after admission (via _replace).
    """
    order_id: str
    table_number: TableNumber | None  # None -> "unassigned" bucket
    status: OrderStatus
    items: tuple[OrderItem, ...]
    created_at: datetime | None  # Display only, never used for ordering


class OrderView(NamedTuple):
    """Everything the UI needs to render one order inside a table card."""
    position: int             # 1-based position inside the table group
    order_id: str
    status: OrderStatus
    status_label: str         # Localized
    items: tuple[OrderItem, ...]
    item_lines: tuple[str, ...]  # "Soup x2"
    created_time: str         # "HH:MM" or "--:--"


class TableGroup(NamedTuple):
    """One card on the floor: all active orders for a table."""
    table_number: TableNumber | None
    table_label: str          # "Table 5" / "Столик 5"
    order_count: int
    count_label: str          # "2 orders" / "2 заказа"
    orders: tuple[OrderView, ...]


class FloorSnapshot(NamedTuple):
    """
    Complete floor state for UI rendering.

    Pushed to the UI queue at most every snapshot_interval_ms.
    """
    groups: tuple[TableGroup, ...]  # Sorted by table
    connected: bool
    connection_label: str
    active_count: int         # Orders visible on the floor
    held_count: int           # Orders held by the store (incl. ready/unknown)
    timestamp_ms: int
    events_per_sec: float
