"""
Local order state for the floor display.

HOT PATH: every order event from the websocket ends up in one of the
apply_* methods below.

Strategy:
1. dict[str, Order] keyed by canonical order id, O(1) per event
2. Records are immutable NamedTuples, status changes go through _replace
3. Events are applied strictly in delivery order, last write wins per id
4. No visibility decisions here - the projector filters ready/unknown orders
"""

from __future__ import annotations

import logging
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Mapping

from ..types import Order, OrderItem, OrderStatus, TableNumber

logger = logging.getLogger(__name__)


class OrderStore:
    """
    In-memory order mapping rebuilt from the event stream.

    Thread-safety: NOT thread-safe. Designed for single-threaded async use;
    none of the methods await, so each event is applied atomically.
    """

    __slots__ = ('_orders', 'purge_ready', 'mutation_count')

    def __init__(self, purge_ready: bool = False) -> None:
        # order_id -> Order, insertion order = admission order
        self._orders: dict[str, Order] = {}

        # Drop orders from memory as soon as they turn ready instead of
        # waiting for an explicit removal
        self.purge_ready = purge_ready

        # Bumped on every real change, used for the events/sec indicator
        self.mutation_count: int = 0

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, order_id: object) -> bool:
        return order_id in self._orders

    def get(self, order_id: str) -> Order | None:
        return self._orders.get(order_id)

    def admit_or_create(
        self,
        order_id: str,
        table_number: TableNumber | None,
        items: Iterable[OrderItem],
        status: OrderStatus = OrderStatus.NEW,
        created_at: datetime | None = None,
    ) -> bool:
        """
        Insert an order if the id is unseen.

        Re-delivery of a known id is a no-op, the held record wins.
        Returns True if a record was inserted.
        """
        if order_id in self._orders:
            logger.debug("Order %s already held, ignoring duplicate creation", order_id)
            return False

        order = Order(order_id, table_number, OrderStatus.parse(status), tuple(items), created_at)
        if self.purge_ready and order.status is OrderStatus.READY:
            logger.debug("Order %s admitted already ready, not holding it", order_id)
            return False

        self._orders[order_id] = order
        self.mutation_count += 1
        return True

    def admit(self, order: Order) -> bool:
        """admit_or_create() for an already-normalised Order."""
        return self.admit_or_create(
            order.order_id, order.table_number, order.items, order.status, order.created_at
        )

    def apply_status_transition(self, order_id: str, new_status: OrderStatus | str) -> bool:
        """
        Replace the status of a held order.

        Transitions for orders we never admitted are dropped: the payload has
        no table or items to build a record from.
        Returns True if the store changed.
        """
        current = self._orders.get(order_id)
        if current is None:
            logger.debug("Status %s for unknown order %s dropped", new_status, order_id)
            return False

        status = OrderStatus.parse(new_status)
        if self.purge_ready and status is OrderStatus.READY:
            del self._orders[order_id]
            self.mutation_count += 1
            return True

        if current.status is status:
            return False

        self._orders[order_id] = current._replace(status=status)
        self.mutation_count += 1
        return True

    def apply_removal(self, order_id: str) -> bool:
        """Delete an order. Absent ids are a no-op. Returns True if something was removed."""
        if self._orders.pop(order_id, None) is None:
            return False
        self.mutation_count += 1
        return True

    def reconcile(self, orders: Iterable[Order]) -> bool:
        """
        Replace the held set with an authoritative list (REST backfill).

        - held ids missing from the list are removed
        - unseen ids are admitted
        - held ids take the listed status, other fields are kept

        Returns True if the store changed.
        """
        incoming: dict[str, Order] = {}
        for order in orders:
            incoming[order.order_id] = order

        changed = False
        for order_id in [oid for oid in self._orders if oid not in incoming]:
            changed |= self.apply_removal(order_id)

        for order_id, order in incoming.items():
            if order_id in self._orders:
                changed |= self.apply_status_transition(order_id, order.status)
            else:
                changed |= self.admit(order)

        return changed

    def snapshot(self) -> Mapping[str, Order]:
        """
        Read-only view of all held orders.

        The mapping is a copy, so later events never show through it.
        """
        return MappingProxyType(dict(self._orders))

    def clear(self) -> None:
        """Drop everything."""
        if self._orders:
            self._orders.clear()
            self.mutation_count += 1
