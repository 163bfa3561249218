"""Order listing, date grouping and dashboard statistics."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable, Sequence

from pizzapos.errors import ValidationError
from pizzapos.models import (
    FILTER_ALL,
    ORDER_STATUSES,
    ORDER_TYPES,
    PENDING,
    OrderFilters,
    OrderStats,
    OrderView,
    to_money,
)
from pizzapos.persistence import Store

# The "today" window stops at 23:59:59 and excludes it; the final second of the
# day falls outside every window.
_DAY_WINDOW_END = time(23, 59, 59)


def day_window(reference_date: date) -> tuple[datetime, datetime]:
    """Return the local-time [start, end) bounds of a calendar day."""
    start = datetime.combine(reference_date, time.min).astimezone()
    end = datetime.combine(reference_date, _DAY_WINDOW_END).astimezone()
    return (start, end)


def in_day_window(created_at: datetime, reference_date: date) -> bool:
    start, end = day_window(reference_date)
    return start <= created_at < end


def _check_filters(filters: OrderFilters) -> None:
    if filters.status != FILTER_ALL and filters.status not in ORDER_STATUSES:
        raise ValidationError(f"Unknown status filter: {filters.status!r}")
    if filters.order_type != FILTER_ALL and filters.order_type not in ORDER_TYPES:
        raise ValidationError(f"Unknown order type filter: {filters.order_type!r}")


def matches_search(order: OrderView, search: str) -> bool:
    """Match free text against the displayed order id prefix."""
    needle = search.strip().lstrip("#").lower()
    if not needle:
        return True
    return order.display_id.lower().startswith(needle)


def filter_orders(orders: Iterable[OrderView], filters: OrderFilters) -> list[OrderView]:
    """Apply status, type and search filters conjunctively, keeping input order."""
    _check_filters(filters)
    result = []
    for order in orders:
        if filters.status != FILTER_ALL and order.status != filters.status:
            continue
        if filters.order_type != FILTER_ALL and order.order_type != filters.order_type:
            continue
        if not matches_search(order, filters.search):
            continue
        result.append(order)
    return result


def list_orders(store: Store, filters: OrderFilters | None = None) -> list[OrderView]:
    """Orders with their lines and creators, newest first."""
    filters = filters or OrderFilters()
    _check_filters(filters)
    orders = store.fetch_orders(
        status=None if filters.status == FILTER_ALL else filters.status,
        order_type=None if filters.order_type == FILTER_ALL else filters.order_type,
    )
    return filter_orders(orders, filters)


def get_order(store: Store, order_id: str) -> OrderView:
    return store.get_order(order_id)


def group_by_date(orders: Sequence[OrderView]) -> list[tuple[date, list[OrderView]]]:
    """Bucket orders by local creation date, newest date first, input order within a bucket."""
    buckets: dict[date, list[OrderView]] = {}
    for order in orders:
        buckets.setdefault(order.created_date, []).append(order)
    return [(day, buckets[day]) for day in sorted(buckets, reverse=True)]


def aggregate_stats(orders: Iterable[OrderView], reference_date: date) -> OrderStats:
    """Count all and pending orders; sum revenue of orders inside the reference day."""
    total_orders = 0
    pending_orders = 0
    revenue = Decimal(0)
    for order in orders:
        total_orders += 1
        if order.status == PENDING:
            pending_orders += 1
        if in_day_window(order.created_at, reference_date):
            revenue += order.total_amount
    return OrderStats(total_orders=total_orders, pending_orders=pending_orders, today_revenue=to_money(revenue))


def dashboard_stats(store: Store, reference_date: date | None = None) -> OrderStats:
    """Same counters as `aggregate_stats`, computed in the database."""
    reference_date = reference_date or date.today()
    total_orders, pending_orders = store.count_orders()
    start, end = day_window(reference_date)
    return OrderStats(
        total_orders=total_orders,
        pending_orders=pending_orders,
        today_revenue=store.sum_order_totals(start, end),
        active_products=store.count_active_products(),
    )


def orders_for_day(store: Store, reference_date: date) -> list[OrderView]:
    start, end = day_window(reference_date)
    return store.fetch_orders(created_from=start, created_before=end)
