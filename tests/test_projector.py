"""
Projection tests

Covers filtering of terminal orders, grouping/sorting by table, determinism,
labels and the floor snapshot wrapper.
"""
import random
from datetime import datetime, timezone

import pytest

from floor_display.datafeed.order_store import OrderStore
from floor_display.engine.locale import EN, RU, get_locale
from floor_display.engine.projector import (
    NO_TIME,
    build_floor_snapshot,
    project,
    table_sort_key,
)
from floor_display.types import VISIBLE_STATUSES, OrderItem, OrderStatus

T0 = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def make_store(*orders):
    """orders: (order_id, table, status) tuples."""
    store = OrderStore()
    for order_id, table, status in orders:
        store.admit_or_create(order_id, table, (OrderItem("Soup", 2),), status, T0)
    return store


def order_ids(groups):
    return [view.order_id for g in groups for view in g.orders]


# ─── Filtering ─────────────────────────────────────────────────────────────────
def test_ready_orders_are_hidden():
    store = make_store(("1", 5, OrderStatus.READY), ("2", 5, OrderStatus.PREPARING))
    groups = project(store.snapshot(), tz=timezone.utc)
    assert order_ids(groups) == ["2"]


def test_unknown_orders_are_shown():
    store = make_store(("1", 5, OrderStatus.UNKNOWN), ("2", 6, OrderStatus.NEW))
    groups = project(store.snapshot(), tz=timezone.utc)
    assert [g.table_number for g in groups] == [5, 6]
    assert groups[0].orders[0].status_label == "Unknown"


def test_delivered_orders_are_hidden():
    store = OrderStore()
    store.admit_or_create("1", 5, (), "delivered", None)
    store.admit_or_create("2", 5, (), "cancelled", None)
    assert project(store.snapshot()) == ()


def test_table_with_only_ready_orders_disappears():
    store = make_store(("1", 5, OrderStatus.READY))
    assert project(store.snapshot()) == ()


def test_empty_snapshot():
    assert project(OrderStore().snapshot()) == ()


# ─── Grouping ──────────────────────────────────────────────────────────────────
def test_groups_by_table_in_admission_order():
    store = make_store(
        ("1", 5, OrderStatus.NEW),
        ("2", 3, OrderStatus.ACCEPTED),
        ("3", 5, OrderStatus.PREPARING),
    )
    groups = project(store.snapshot(), tz=timezone.utc)

    assert [g.table_number for g in groups] == [3, 5]
    table5 = groups[1]
    assert table5.order_count == 2
    assert [v.order_id for v in table5.orders] == ["1", "3"]
    assert [v.position for v in table5.orders] == [1, 2]


def test_table_sort_order():
    store = make_store(
        ("1", None, OrderStatus.NEW),
        ("2", "Bar", OrderStatus.NEW),
        ("3", 10, OrderStatus.NEW),
        ("4", 2, OrderStatus.NEW),
        ("5", "Patio", OrderStatus.NEW),
    )
    groups = project(store.snapshot(), tz=timezone.utc)
    assert [g.table_number for g in groups] == [2, 10, "Bar", "Patio", None]


def test_missing_table_goes_to_unassigned_bucket():
    store = make_store(("1", None, OrderStatus.NEW))
    (group,) = project(store.snapshot(), tz=timezone.utc)
    assert group.table_number is None
    assert group.table_label == "Unassigned"


def test_table_sort_key_numbers_before_text():
    assert table_sort_key(2) < table_sort_key(10) < table_sort_key("A") < table_sort_key(None)


@pytest.mark.parametrize("seed", range(5))
def test_grouping_covers_active_subset_exactly(seed):
    rng = random.Random(seed)
    statuses = list(OrderStatus)
    store = make_store(*[
        (str(i), rng.choice([1, 2, 3, None, "Bar"]), rng.choice(statuses))
        for i in range(40)
    ])
    snapshot = store.snapshot()

    ids = order_ids(project(snapshot, tz=timezone.utc))
    expected = {oid for oid, o in snapshot.items() if o.status in VISIBLE_STATUSES}

    assert len(ids) == len(set(ids))
    assert set(ids) == expected


def test_projection_is_deterministic():
    store = make_store(
        ("1", 5, OrderStatus.NEW),
        ("2", 3, OrderStatus.ACCEPTED),
        ("3", None, OrderStatus.PREPARING),
    )
    snapshot = store.snapshot()
    assert project(snapshot, tz=timezone.utc) == project(snapshot, tz=timezone.utc)


# ─── Rendering records ─────────────────────────────────────────────────────────
def test_order_view_fields():
    store = make_store(("1", 5, OrderStatus.PREPARING))
    (group,) = project(store.snapshot(), tz=timezone.utc)
    (view,) = group.orders

    assert group.table_label == "Table 5"
    assert group.count_label == "1 order"
    assert view.status_label == "Preparing"
    assert view.item_lines == ("Soup x2",)
    assert view.created_time == "12:30"


def test_missing_created_at_renders_placeholder():
    store = OrderStore()
    store.admit_or_create("1", 5, (), OrderStatus.NEW, None)
    (group,) = project(store.snapshot(), tz=timezone.utc)
    assert group.orders[0].created_time == NO_TIME


def test_russian_labels():
    store = make_store(("1", 5, OrderStatus.PREPARING), ("2", 5, OrderStatus.NEW))
    (group,) = project(store.snapshot(), locale=RU, tz=timezone.utc)

    assert group.table_label == "Столик 5"
    assert group.count_label == "2 заказа"
    assert [v.status_label for v in group.orders] == ["Готовится", "Новый"]


@pytest.mark.parametrize("n,expected", [
    (1, "1 заказ"),
    (2, "2 заказа"),
    (4, "4 заказа"),
    (5, "5 заказов"),
    (11, "11 заказов"),
    (12, "12 заказов"),
    (21, "21 заказ"),
    (22, "22 заказа"),
])
def test_russian_pluralisation(n, expected):
    assert RU.order_count(n) == expected


def test_get_locale_fallbacks():
    assert get_locale("ru-RU") is RU
    assert get_locale("RU") is RU
    assert get_locale("de") is EN
    assert get_locale(None) is EN


# ─── Floor snapshot ────────────────────────────────────────────────────────────
def test_floor_snapshot_counts_and_connection():
    store = make_store(("1", 5, OrderStatus.NEW), ("2", 6, OrderStatus.READY))
    snap = build_floor_snapshot(store.snapshot(), connected=False, tz=timezone.utc, timestamp_ms=1)

    assert snap.active_count == 1
    assert snap.held_count == 2
    assert snap.connected is False
    assert snap.connection_label == "Disconnected"
    assert snap.timestamp_ms == 1


def test_floor_snapshot_connected_label_localized():
    snap = build_floor_snapshot(OrderStore().snapshot(), connected=True, locale=RU)
    assert snap.connection_label == "Подключено"
    assert snap.groups == ()
