"""
Label tables for the floor display.

The restaurant runs the screen in Russian; English is the default for
everything else.
"""

from __future__ import annotations

from typing import Callable, NamedTuple

from ..types import OrderStatus


class Locale(NamedTuple):
    code: str
    status_labels: dict[OrderStatus, str]
    table_label: str          # format string with {table}
    unassigned_label: str
    order_count: Callable[[int], str]
    connected_label: str
    disconnected_label: str
    title: str
    subtitle: str
    empty_text: str
    empty_subtext: str
    created_prefix: str


def _count_en(n: int) -> str:
    return f"{n} order" if n == 1 else f"{n} orders"


def _count_ru(n: int) -> str:
    """1 заказ, 2 заказа, 5 заказов, 21 заказ, 11 заказов."""
    if n % 10 == 1 and n % 100 != 11:
        word = "заказ"
    elif 2 <= n % 10 <= 4 and not 12 <= n % 100 <= 14:
        word = "заказа"
    else:
        word = "заказов"
    return f"{n} {word}"


EN = Locale(
    code="en",
    status_labels={
        OrderStatus.NEW: "New",
        OrderStatus.ACCEPTED: "Accepted",
        OrderStatus.PREPARING: "Preparing",
        OrderStatus.READY: "Ready",
        OrderStatus.UNKNOWN: "Unknown",
    },
    table_label="Table {table}",
    unassigned_label="Unassigned",
    order_count=_count_en,
    connected_label="Connected",
    disconnected_label="Disconnected",
    title="PectoranAPP",
    subtitle="Restaurant management system",
    empty_text="No active orders",
    empty_subtext="Waiting for new orders from the waiters",
    created_prefix="Created",
)

RU = Locale(
    code="ru",
    status_labels={
        OrderStatus.NEW: "Новый",
        OrderStatus.ACCEPTED: "Принят",
        OrderStatus.PREPARING: "Готовится",
        OrderStatus.READY: "Готов",
        OrderStatus.UNKNOWN: "Неизвестно",
    },
    table_label="Столик {table}",
    unassigned_label="Без столика",
    order_count=_count_ru,
    connected_label="Подключено",
    disconnected_label="Отключено",
    title="PectoranAPP",
    subtitle="Система управления рестораном",
    empty_text="Нет активных заказов",
    empty_subtext="Ожидайте новых заказов от официантов",
    created_prefix="Создан",
)

LOCALES: dict[str, Locale] = {EN.code: EN, RU.code: RU}


def get_locale(code: str | None) -> Locale:
    """Look up a locale by code, falling back to English."""
    if not code:
        return EN
    return LOCALES.get(code.lower().split("-")[0].split("_")[0], EN)
