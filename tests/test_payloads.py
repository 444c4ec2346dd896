"""
Payload normalisation tests

Covers the field aliases the backend mixes (orderId/id, tableNumber/table_number,
createdAt/created_at/timestamp) and the malformed-payload edge cases.
"""
from datetime import datetime, timezone

import pytest

from floor_display.datafeed.payloads import (
    PayloadError,
    parse_backfill,
    parse_items,
    parse_order,
    parse_order_id,
    parse_status_change,
    parse_table_number,
    parse_timestamp,
)
from floor_display.types import OrderItem, OrderStatus

T0 = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


# ─── Order ids ─────────────────────────────────────────────────────────────────
@pytest.mark.parametrize("payload", [{"orderId": 1}, {"id": 1}, {"order_id": "1"}, {"orderId": " 1 "}, {"orderId": 1.0}])
def test_order_id_aliases_canonicalise_to_str(payload):
    assert parse_order_id(payload) == "1"


@pytest.mark.parametrize("payload", [{}, {"orderId": None}, {"orderId": ""}, {"id": True}, [], "1", None])
def test_missing_order_id_raises(payload):
    with pytest.raises(PayloadError):
        parse_order_id(payload)


def test_order_id_prefers_order_id_over_id():
    assert parse_order_id({"orderId": 7, "id": 99}) == "7"


def test_fractional_order_id_kept_verbatim():
    assert parse_order_id({"orderId": 1.5}) == "1.5"


# ─── Tables ────────────────────────────────────────────────────────────────────
@pytest.mark.parametrize("raw,expected", [
    (5, 5),
    ("5", 5),
    (5.0, 5),
    ("Bar", "Bar"),
    ("\u00b2", "\u00b2"),  # superscript two is a digit but not a decimal
    ("\u0665", "\u0665"),  # Arabic-Indic five, kept as a name
    ("", None),
    (None, None),
    (True, None),
])
def test_table_number(raw, expected):
    assert parse_table_number(raw) == expected


# ─── Timestamps ────────────────────────────────────────────────────────────────
def test_timestamp_iso_with_z():
    assert parse_timestamp("2024-05-01T12:30:00.000Z") == T0


def test_timestamp_naive_is_utc():
    assert parse_timestamp("2024-05-01T12:30:00") == T0


def test_timestamp_epoch_seconds_and_millis():
    assert parse_timestamp(T0.timestamp()) == T0
    assert parse_timestamp(int(T0.timestamp() * 1000)) == T0


@pytest.mark.parametrize("raw", [None, "", "yesterday", {}, True])
def test_bad_timestamp_is_none(raw):
    assert parse_timestamp(raw) is None


# ─── Items ─────────────────────────────────────────────────────────────────────
def test_items_basic():
    assert parse_items([{"name": "Soup", "quantity": 2}]) == (OrderItem("Soup", 2),)


def test_items_skip_bad_quantities():
    raw = [
        {"name": "Soup", "quantity": 2},
        {"name": "Tea", "quantity": 0},
        {"name": "Salad", "quantity": -1},
        {"name": "Bread", "quantity": 1.5},
        {"name": "Water", "quantity": "lots"},
        {"name": "Juice"},
        "Pie",
        {"name": "Borscht", "quantity": "3"},
    ]
    assert parse_items(raw) == (OrderItem("Soup", 2), OrderItem("Borscht", 3))


def test_items_nested_menu_item_name():
    raw = [{"menuItem": {"name": "Pelmeni"}, "quantity": 1}, {"quantity": 1}]
    assert parse_items(raw) == (OrderItem("Pelmeni", 1), OrderItem("Unknown", 1))


def test_items_not_a_list():
    assert parse_items(None) == ()
    assert parse_items({"name": "Soup"}) == ()


# ─── Orders ────────────────────────────────────────────────────────────────────
def test_parse_order_camel_case():
    order = parse_order({
        "orderId": 1,
        "tableNumber": 5,
        "items": [{"name": "Soup", "quantity": 2}],
        "status": "new",
        "createdAt": "2024-05-01T12:30:00Z",
    })
    assert order.order_id == "1"
    assert order.table_number == 5
    assert order.status is OrderStatus.NEW
    assert order.items == (OrderItem("Soup", 2),)
    assert order.created_at == T0


def test_parse_order_snake_case_backend_shape():
    order = parse_order({
        "id": 12,
        "table_number": 3,
        "status": "accepted",
        "orderItems": [{"name": "Tea", "quantity": 1}],
        "created_at": "2024-05-01T12:30:00Z",
        "timestamp": "2024-05-01T13:00:00Z",
    })
    assert order.order_id == "12"
    assert order.table_number == 3
    assert order.status is OrderStatus.ACCEPTED
    assert order.created_at == T0


def test_parse_order_defaults():
    order = parse_order({"orderId": "a1"})
    assert order.status is OrderStatus.NEW
    assert order.table_number is None
    assert order.items == ()
    assert order.created_at is None


def test_parse_order_unknown_status():
    assert parse_order({"orderId": 1, "status": "on-hold"}).status is OrderStatus.UNKNOWN


@pytest.mark.parametrize("raw", ["delivered", "cancelled", "Canceled"])
def test_parse_order_done_statuses_are_ready(raw):
    assert parse_order({"orderId": 1, "status": raw}).status is OrderStatus.READY


def test_parse_order_without_id_raises():
    with pytest.raises(PayloadError):
        parse_order({"tableNumber": 5, "items": []})


# ─── Status changes ────────────────────────────────────────────────────────────
def test_status_change():
    change = parse_status_change({"orderId": 1, "status": "preparing", "previousStatus": "new"})
    assert change.order_id == "1"
    assert change.status is OrderStatus.PREPARING


def test_status_change_new_status_alias():
    assert parse_status_change({"orderId": 1, "newStatus": "ready"}).status is OrderStatus.READY


def test_status_change_without_status_raises():
    with pytest.raises(PayloadError):
        parse_status_change({"orderId": 1})


# ─── Backfill ──────────────────────────────────────────────────────────────────
def test_backfill_backend_envelope():
    body = {"success": True, "data": {"orders": [{"id": 1, "table_number": 2}, {"table_number": 3}]}}
    orders = parse_backfill(body)
    assert [o.order_id for o in orders] == ["1"]


def test_backfill_bare_list_and_orders_key():
    assert len(parse_backfill([{"id": 1}, {"id": 2}])) == 2
    assert len(parse_backfill({"orders": [{"id": 1}]})) == 1


def test_backfill_without_list_raises():
    with pytest.raises(PayloadError):
        parse_backfill({"success": False, "message": "nope"})
