"""Tests for order listing, grouping and statistics."""

import sqlite3
from datetime import date
from decimal import Decimal

import pytest

from conftest import local_time, make_order
from pizzapos.cart import Cart
from pizzapos.errors import NotFound, ValidationError
from pizzapos.models import COMPLETED, DELIVERY, DINE_IN, IN_PROGRESS, PENDING, OrderDetails, OrderFilters
from pizzapos.ordering import submit_order
from pizzapos.persistence import Store
from pizzapos.queries import (
    aggregate_stats,
    dashboard_stats,
    day_window,
    filter_orders,
    get_order,
    group_by_date,
    list_orders,
    orders_for_day,
)
from pizzapos.status import advance_order

REFERENCE = date(2025, 7, 27)


def _submit(store, actor, products, details, created_at):
    cart = Cart()
    for product in products:
        cart.add_item(product)
    return submit_order(store, actor, cart, details, created_at=created_at)


def test_aggregate_stats_over_one_day():
    orders = [
        make_order(local_time(2025, 7, 27, 9, 0), "10.00"),
        make_order(local_time(2025, 7, 27, 14, 0), "20.00", status=COMPLETED),
        make_order(local_time(2025, 7, 27, 23, 59, 30), "5.00"),
    ]

    stats = aggregate_stats(orders, REFERENCE)

    assert stats.total_orders == 3
    assert stats.pending_orders == 2
    assert stats.today_revenue == Decimal("35.00")


def test_last_second_of_day_is_outside_the_window():
    orders = [
        make_order(local_time(2025, 7, 27, 23, 59, 30), "5.00"),
        make_order(local_time(2025, 7, 27, 23, 59, 59), "7.00"),
    ]

    stats = aggregate_stats(orders, REFERENCE)

    assert stats.today_revenue == Decimal("5.00")


def test_window_starts_at_midnight():
    start, end = day_window(REFERENCE)
    orders = [
        make_order(start, "4.00"),
        make_order(local_time(2025, 7, 26, 23, 0), "9.00"),
        make_order(local_time(2025, 7, 28, 0, 0), "9.00"),
    ]

    assert aggregate_stats(orders, REFERENCE).today_revenue == Decimal("4.00")
    assert end > start


def test_aggregate_stats_empty():
    stats = aggregate_stats([], REFERENCE)

    assert stats.total_orders == 0
    assert stats.pending_orders == 0
    assert stats.today_revenue == Decimal("0.00")


def test_group_by_date_orders_buckets_descending_and_keeps_input_order():
    a = make_order(local_time(2025, 7, 26, 8, 0), order_id="a" * 32)
    b = make_order(local_time(2025, 7, 27, 18, 0), order_id="b" * 32)
    c = make_order(local_time(2025, 7, 26, 20, 0), order_id="c" * 32)
    d = make_order(local_time(2025, 7, 27, 7, 0), order_id="d" * 32)
    e = make_order(local_time(2025, 7, 25, 12, 0), order_id="e" * 32)

    groups = group_by_date([a, b, c, d, e])

    assert [day for day, _ in groups] == [date(2025, 7, 27), date(2025, 7, 26), date(2025, 7, 25)]
    assert [[o.order_id[0] for o in bucket] for _, bucket in groups] == [["b", "d"], ["a", "c"], ["e"]]
    flattened = [o for _, bucket in groups for o in bucket]
    assert sorted(o.order_id for o in flattened) == sorted(o.order_id for o in [a, b, c, d, e])


def test_group_by_date_empty():
    assert group_by_date([]) == []


def test_filter_orders_is_conjunctive():
    orders = [
        make_order(local_time(2025, 7, 27, 9), order_id="abc12345" + "0" * 24, status=PENDING),
        make_order(local_time(2025, 7, 27, 10), order_id="abd00000" + "0" * 24, status=PENDING, order_type=DELIVERY),
        make_order(local_time(2025, 7, 27, 11), order_id="ffff0000" + "0" * 24, status=COMPLETED),
    ]

    assert len(filter_orders(orders, OrderFilters())) == 3
    assert [o.order_id[:3] for o in filter_orders(orders, OrderFilters(status=PENDING))] == ["abc", "abd"]
    assert [o.order_id[:3] for o in filter_orders(orders, OrderFilters(order_type=DINE_IN))] == ["abc", "fff"]
    assert [o.order_id[:3] for o in filter_orders(orders, OrderFilters(search="#AB"))] == ["abc", "abd"]
    assert filter_orders(orders, OrderFilters(status=PENDING, order_type=DINE_IN, search="abd")) == []


def test_search_only_matches_the_displayed_prefix():
    orders = [make_order(local_time(2025, 7, 27, 9), order_id="12345678" + "abcdef" + "0" * 18)]

    assert filter_orders(orders, OrderFilters(search="abcdef")) == []
    assert len(filter_orders(orders, OrderFilters(search="1234"))) == 1


def test_unknown_filter_values_are_rejected():
    with pytest.raises(ValidationError):
        filter_orders([], OrderFilters(status="shipped"))
    with pytest.raises(ValidationError):
        filter_orders([], OrderFilters(order_type="pickup"))


def test_list_orders_newest_first_with_lines_and_creator(store, employee, margherita, soda):
    first = _submit(store, employee, [margherita], OrderDetails(DINE_IN, table_number=1), local_time(2025, 7, 27, 9))
    second = _submit(
        store,
        employee,
        [soda, soda],
        OrderDetails(DELIVERY, customer_name="Ann", customer_address="1 Main St", customer_location="Park"),
        local_time(2025, 7, 27, 12),
    )

    orders = list_orders(store)

    assert [o.order_id for o in orders] == [second, first]
    assert orders[0].items[0].product_name == "Soda"
    assert orders[0].items[0].quantity == 2
    assert orders[1].creator_name == "Sam Counter"


def test_list_orders_filters_in_store(store, employee, margherita):
    pending = _submit(store, employee, [margherita], OrderDetails(DINE_IN, table_number=1), local_time(2025, 7, 27, 9))
    started = _submit(store, employee, [margherita], OrderDetails(DINE_IN, table_number=2), local_time(2025, 7, 27, 10))
    advance_order(store, started)

    assert [o.order_id for o in list_orders(store, OrderFilters(status=PENDING))] == [pending]
    assert [o.order_id for o in list_orders(store, OrderFilters(status=IN_PROGRESS))] == [started]
    assert [o.order_id for o in list_orders(store, OrderFilters(search=started[:6]))] == [started]


def test_orders_for_day_uses_the_day_window(store, employee, margherita):
    inside = _submit(store, employee, [margherita], OrderDetails(DINE_IN, table_number=1), local_time(2025, 7, 27, 23, 59, 30))
    _submit(store, employee, [margherita], OrderDetails(DINE_IN, table_number=1), local_time(2025, 7, 27, 23, 59, 59))
    _submit(store, employee, [margherita], OrderDetails(DINE_IN, table_number=1), local_time(2025, 7, 26, 12))

    assert [o.order_id for o in orders_for_day(store, REFERENCE)] == [inside]


def test_get_order_missing_raises_not_found(store):
    with pytest.raises(NotFound):
        get_order(store, "does-not-exist")


def test_dashboard_stats_counts_active_products(store, employee, margherita, soda):
    store.set_product_active(soda.product_id, False)
    _submit(store, employee, [margherita], OrderDetails(DINE_IN, table_number=1), local_time(2025, 7, 27, 9))

    stats = dashboard_stats(store, REFERENCE)

    assert stats.total_orders == 1
    assert stats.pending_orders == 1
    assert stats.today_revenue == Decimal("12.99")
    assert stats.active_products == 1


def test_dashboard_stats_agree_with_in_memory_aggregation(store, employee, margherita, soda):
    _submit(store, employee, [margherita], OrderDetails(DINE_IN, table_number=1), local_time(2025, 7, 27, 9))
    done = _submit(store, employee, [soda], OrderDetails(DINE_IN, table_number=2), local_time(2025, 7, 27, 23, 59, 30))
    _submit(store, employee, [soda, soda], OrderDetails(DINE_IN, table_number=3), local_time(2025, 7, 27, 23, 59, 59))
    _submit(store, employee, [margherita], OrderDetails(DINE_IN, table_number=4), local_time(2025, 7, 26, 18))
    advance_order(store, done)

    in_db = dashboard_stats(store, REFERENCE)
    in_memory = aggregate_stats(list_orders(store), REFERENCE)

    assert in_db.total_orders == in_memory.total_orders == 4
    assert in_db.pending_orders == in_memory.pending_orders == 3
    assert in_db.today_revenue == in_memory.today_revenue == Decimal("15.98")


@pytest.mark.skipif(not hasattr(sqlite3.Connection, "setlimit"), reason="needs Connection.setlimit")
def test_order_reads_bind_a_fixed_number_of_variables(store, employee, margherita, monkeypatch):
    for table in range(1, 13):
        _submit(store, employee, [margherita], OrderDetails(DINE_IN, table_number=table), local_time(2025, 7, 27, 9, table))

    connect = Store._connect

    def limited(self):
        conn = connect(self)
        conn.setlimit(sqlite3.SQLITE_LIMIT_VARIABLE_NUMBER, 4)
        return conn

    monkeypatch.setattr(Store, "_connect", limited)

    orders = list_orders(store, OrderFilters(status=PENDING, order_type=DINE_IN))
    assert len(orders) == 12
    assert all(len(order.items) == 1 for order in orders)
    assert len(orders_for_day(store, REFERENCE)) == 12
    assert dashboard_stats(store, REFERENCE).today_revenue == Decimal("155.88")
