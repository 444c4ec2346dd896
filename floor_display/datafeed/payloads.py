"""
Payload normalisation at the transport boundary.

The backend is inconsistent about field names (orderId vs id, tableNumber vs
table_number, createdAt vs created_at vs timestamp). Everything is mapped onto
one canonical shape here so the store never sees the aliases.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, NamedTuple

from ..types import Order, OrderItem, OrderStatus, TableNumber

logger = logging.getLogger(__name__)

ORDER_ID_KEYS = ("orderId", "order_id", "id")
TABLE_KEYS = ("tableNumber", "table_number", "table")
CREATED_KEYS = ("createdAt", "created_at", "timestamp")
ITEMS_KEYS = ("items", "orderItems", "order_items")
STATUS_KEYS = ("status", "newStatus", "new_status")

UNKNOWN_ITEM_NAME = "Unknown"


class PayloadError(ValueError):
    """Payload is missing something we can't do without (usually the id)."""


class StatusChange(NamedTuple):
    order_id: str
    status: OrderStatus


def _first(payload: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _require_dict(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise PayloadError(f"expected an object payload, got {type(payload).__name__}")
    return payload


def parse_order_id(payload: Any) -> str:
    """Extract the canonical (str) order id. Raises PayloadError if missing."""
    payload = _require_dict(payload)
    raw = _first(payload, ORDER_ID_KEYS)
    if raw is None or isinstance(raw, (bool, dict, list)):
        raise PayloadError("payload has no order id")
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)  # 1.0 and 1 are the same order
    order_id = str(raw).strip()
    if not order_id:
        raise PayloadError("payload has an empty order id")
    return order_id


def parse_table_number(value: Any) -> TableNumber | None:
    """Ints stay ints, numeric strings become ints, blanks become None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    text = str(value).strip()
    if not text:
        return None
    if text.isdecimal() and text.isascii():
        return int(text)
    return text


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse ISO-8601 strings or epoch numbers (seconds or milliseconds).

    Naive values are taken as UTC. Returns None for anything unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    try:
        if isinstance(value, (int, float)):
            seconds = value / 1000.0 if value > 1e11 else float(value)
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        text = str(value).strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    except (ValueError, OverflowError, OSError):
        logger.debug("Unparseable timestamp %r", value)
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _item_name(raw: dict) -> str:
    name = raw.get("name")
    if not name:
        # Backend REST rows nest the catalogue entry
        for key in ("menuItem", "menu_item"):
            nested = raw.get(key)
            if isinstance(nested, dict) and nested.get("name"):
                name = nested["name"]
                break
    return str(name).strip() if name else UNKNOWN_ITEM_NAME


def parse_items(value: Any, order_id: str = "?") -> tuple[OrderItem, ...]:
    """Normalise an item list. Bad entries are skipped, not fatal."""
    if not isinstance(value, list):
        return ()

    items: list[OrderItem] = []
    for raw in value:
        if not isinstance(raw, dict):
            logger.warning("Order %s: skipping non-object item %r", order_id, raw)
            continue
        qty = raw.get("quantity", raw.get("qty"))
        if isinstance(qty, bool) or not isinstance(qty, (int, float, str)):
            logger.warning("Order %s: skipping item without quantity %r", order_id, raw)
            continue
        try:
            qty_num = float(qty)
        except ValueError:
            logger.warning("Order %s: skipping item with bad quantity %r", order_id, raw)
            continue
        if not qty_num.is_integer() or qty_num < 1:
            logger.warning("Order %s: skipping item with bad quantity %r", order_id, raw)
            continue
        items.append(OrderItem(_item_name(raw), int(qty_num)))
    return tuple(items)


def parse_order(payload: Any) -> Order:
    """
    Normalise an order:new payload (or a REST backfill row) into an Order.

    Expected format (any alias accepted):
        {orderId, tableNumber, items: [{name, quantity}], status, createdAt}

    Missing status means "new".
    """
    payload = _require_dict(payload)
    order_id = parse_order_id(payload)
    raw_status = _first(payload, STATUS_KEYS)
    return Order(
        order_id=order_id,
        table_number=parse_table_number(_first(payload, TABLE_KEYS)),
        status=OrderStatus.NEW if raw_status is None else OrderStatus.parse(raw_status),
        items=parse_items(_first(payload, ITEMS_KEYS), order_id),
        created_at=parse_timestamp(_first(payload, CREATED_KEYS)),
    )


def parse_status_change(payload: Any) -> StatusChange:
    """Normalise an order:updated payload: {orderId, status}."""
    payload = _require_dict(payload)
    order_id = parse_order_id(payload)
    raw_status = _first(payload, STATUS_KEYS)
    if raw_status is None:
        raise PayloadError(f"status update for order {order_id} has no status")
    return StatusChange(order_id, OrderStatus.parse(raw_status))


def parse_backfill(body: Any) -> list[Order]:
    """
    Extract orders from a REST response body.

    Accepts a bare list, {"orders": [...]} or {"success": ..., "data": {"orders": [...]}}.
    Rows without an id are skipped.
    """
    rows = body
    if isinstance(rows, dict):
        data = rows.get("data", rows)
        rows = data.get("orders") if isinstance(data, dict) else data
    if not isinstance(rows, list):
        raise PayloadError("backfill body has no order list")

    orders: list[Order] = []
    for row in rows:
        try:
            orders.append(parse_order(row))
        except PayloadError as e:
            logger.warning("Skipping backfill row: %s", e)
    return orders
