"""
Floor projection: store snapshot -> grouped, sorted cards for the UI.

Pure functions only. Called once per pushed snapshot (~10 FPS max), so the
whole thing is a single pass over the held orders plus a sort of the tables.

Rules:
1. Only VISIBLE_STATUSES are shown: ready (and delivered/cancelled, which
   parse to ready) stay hidden even if the store still holds them, while
   unrecognised statuses render as "unknown" cards
2. Orders are grouped by table, keeping snapshot (admission) order inside
   each group
3. Tables sort numerically, then by name, unassigned last
"""

from __future__ import annotations

import time
from datetime import tzinfo
from typing import Mapping

from ..types import (
    VISIBLE_STATUSES,
    FloorSnapshot,
    Order,
    OrderItem,
    OrderView,
    TableGroup,
    TableNumber,
)
from .locale import EN, Locale

NO_TIME = "--:--"


def table_sort_key(table: TableNumber | None) -> tuple[int, int, str]:
    """Numeric tables first (ascending), then text tables, then unassigned."""
    if table is None:
        return (2, 0, "")
    if isinstance(table, int):
        return (0, table, "")
    return (1, 0, str(table))


def format_item(item: OrderItem) -> str:
    return f"{item.name} x{item.quantity}"


def format_created(order: Order, tz: tzinfo | None = None) -> str:
    """HH:MM in the given zone (local time if None)."""
    if order.created_at is None:
        return NO_TIME
    try:
        return order.created_at.astimezone(tz).strftime("%H:%M")
    except (ValueError, OverflowError, OSError):
        return NO_TIME


def table_label(table: TableNumber | None, locale: Locale = EN) -> str:
    if table is None:
        return locale.unassigned_label
    return locale.table_label.format(table=table)


def active_orders(snapshot: Mapping[str, Order]) -> list[Order]:
    """Orders the floor should see, in snapshot order."""
    return [o for o in snapshot.values() if o.status in VISIBLE_STATUSES]


def group_by_table(orders: list[Order]) -> dict[TableNumber | None, list[Order]]:
    """Group orders by table. Groups come back sorted by table_sort_key."""
    groups: dict[TableNumber | None, list[Order]] = {}
    for order in orders:
        groups.setdefault(order.table_number, []).append(order)
    return {table: groups[table] for table in sorted(groups, key=table_sort_key)}


def project(
    snapshot: Mapping[str, Order],
    locale: Locale = EN,
    tz: tzinfo | None = None,
) -> tuple[TableGroup, ...]:
    """
    Build the table cards for a store snapshot.

    Args:
        snapshot: From OrderStore.snapshot()
        locale: Label table
        tz: Zone for creation times (None = local time)

    Same snapshot in, same cards out.
    """
    result: list[TableGroup] = []

    for table, orders in group_by_table(active_orders(snapshot)).items():
        views = tuple(
            OrderView(
                position=i,
                order_id=order.order_id,
                status=order.status,
                status_label=locale.status_labels[order.status],
                items=order.items,
                item_lines=tuple(format_item(item) for item in order.items),
                created_time=format_created(order, tz),
            )
            for i, order in enumerate(orders, start=1)
        )
        result.append(TableGroup(
            table_number=table,
            table_label=table_label(table, locale),
            order_count=len(views),
            count_label=locale.order_count(len(views)),
            orders=views,
        ))

    return tuple(result)


def build_floor_snapshot(
    snapshot: Mapping[str, Order],
    connected: bool,
    locale: Locale = EN,
    tz: tzinfo | None = None,
    events_per_sec: float = 0.0,
    timestamp_ms: int | None = None,
) -> FloorSnapshot:
    """Wrap project() with the connection flag and counters for the UI queue."""
    groups = project(snapshot, locale, tz)
    return FloorSnapshot(
        groups=groups,
        connected=connected,
        connection_label=locale.connected_label if connected else locale.disconnected_label,
        active_count=sum(g.order_count for g in groups),
        held_count=len(snapshot),
        timestamp_ms=int(time.time() * 1000) if timestamp_ms is None else timestamp_ms,
        events_per_sec=events_per_sec,
    )
