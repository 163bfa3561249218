"""Tests for order submission."""

from decimal import Decimal

import pytest

from conftest import make_product
from pizzapos.cart import Cart
from pizzapos.errors import (
    EmptyOrder,
    MissingDeliveryInfo,
    MissingTableNumber,
    PermissionDenied,
    PersistenceError,
    ValidationError,
)
from pizzapos.models import DELIVERY, DINE_IN, PENDING, Actor, OrderDetails
from pizzapos.ordering import submit_order, validate_order


def _cart(*products):
    cart = Cart()
    for product in products:
        cart.add_item(product)
    return cart


def test_empty_cart_fails_and_writes_nothing(store, employee):
    with pytest.raises(EmptyOrder):
        submit_order(store, employee, Cart(), OrderDetails(DINE_IN, table_number="5"))

    assert store.fetch_orders() == []


def test_empty_cart_wins_over_missing_fields():
    with pytest.raises(EmptyOrder):
        validate_order(Cart(), OrderDetails(DELIVERY))


@pytest.mark.parametrize("table_number", [None, "", "  ", "five", "5a"])
def test_dine_in_requires_integer_table_number(table_number):
    cart = _cart(make_product())

    with pytest.raises(MissingTableNumber):
        validate_order(cart, OrderDetails(DINE_IN, table_number=table_number))


@pytest.mark.parametrize(
    "name, address, location",
    [
        (None, "1 Main St", "Downtown"),
        ("Ann", "", "Downtown"),
        ("Ann", "1 Main St", "   "),
        (None, None, None),
    ],
)
def test_delivery_requires_all_contact_fields(name, address, location):
    cart = _cart(make_product())
    details = OrderDetails(DELIVERY, customer_name=name, customer_address=address, customer_location=location)

    with pytest.raises(MissingDeliveryInfo):
        validate_order(cart, details)


def test_unknown_order_type_is_rejected():
    with pytest.raises(ValidationError):
        validate_order(_cart(make_product()), OrderDetails("takeaway"))


def test_fields_of_the_other_type_are_dropped():
    cart = _cart(make_product())
    details = OrderDetails(DINE_IN, table_number=" 7 ", customer_name="Ann", customer_address="x", customer_location="y")

    clean = validate_order(cart, details)

    assert clean == OrderDetails(DINE_IN, table_number=7)


def test_dine_in_end_to_end(store, employee, margherita, soda):
    cart = Cart()
    cart.add_item(margherita)
    cart.add_item(margherita)
    cart.add_item(soda)

    order_id = submit_order(store, employee, cart, OrderDetails(DINE_IN, table_number="5"))
    order = store.get_order(order_id)

    assert order.total_amount == Decimal("28.97")
    assert order.status == PENDING
    assert order.table_number == 5
    assert order.customer_name is None
    assert order.creator_email == "sam@example.com"
    assert [(line.product_name, line.quantity, line.subtotal) for line in order.items] == [
        ("Margherita Pizza", 2, Decimal("25.98")),
        ("Soda", 1, Decimal("2.99")),
    ]


def test_persisted_total_matches_line_subtotals(store, employee, margherita, soda):
    cart = _cart(margherita, soda, soda, soda)

    order_id = submit_order(
        store,
        employee,
        cart,
        OrderDetails(DELIVERY, customer_name="Ann", customer_address="1 Main St", customer_location="Near the park"),
    )
    order = store.get_order(order_id)

    assert order.total_amount == sum(line.subtotal for line in order.items)
    for line in order.items:
        assert line.subtotal == line.unit_price * line.quantity
    assert order.customer_location == "Near the park"
    assert order.table_number is None


def test_order_is_a_price_snapshot(store, employee, admin, margherita):
    from pizzapos.accounts import update_product

    order_id = submit_order(store, employee, _cart(margherita), OrderDetails(DINE_IN, table_number=1))
    update_product(store, admin, margherita.product_id, price="20.00")

    order = store.get_order(order_id)
    assert order.total_amount == Decimal("12.99")
    assert order.items[0].unit_price == Decimal("12.99")


def test_failed_item_write_leaves_no_orphan_order(store, employee, margherita):
    cart = _cart(margherita, make_product("not-in-catalog", "Ghost", "1.00"))

    with pytest.raises(PersistenceError):
        submit_order(store, employee, cart, OrderDetails(DINE_IN, table_number="3"))

    assert store.fetch_orders() == []


def test_unknown_creator_is_rejected_by_the_store(store, margherita):
    ghost = Actor(employee_id="nobody", email="ghost@example.com")

    with pytest.raises(PersistenceError):
        submit_order(store, ghost, _cart(margherita), OrderDetails(DINE_IN, table_number="3"))


def test_actor_without_identity_is_refused(store, margherita):
    with pytest.raises(PermissionDenied):
        submit_order(store, Actor(employee_id="", email=""), _cart(margherita), OrderDetails(DINE_IN, table_number=2))
