"""Order submission: validation, pricing and the persistence write."""

from __future__ import annotations

import logging
from datetime import datetime

from pizzapos.cart import Cart
from pizzapos.errors import (
    EmptyOrder,
    MissingDeliveryInfo,
    MissingTableNumber,
    PermissionDenied,
    ValidationError,
)
from pizzapos.models import DELIVERY, DINE_IN, Actor, OrderDetails
from pizzapos.persistence import Store

logger = logging.getLogger(__name__)


def _parse_table_number(value: str | int | None) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(value.strip())
    except ValueError:
        return None


def _filled(value: str | None) -> bool:
    return bool(value and value.strip())


def validate_order(cart: Cart, details: OrderDetails) -> OrderDetails:
    """Check the draft and return details holding only the fields of its order type.

    Checks run in a fixed order and the first failure wins: empty cart, then
    the dine-in table number, then the delivery contact fields.
    """
    if cart.is_empty:
        raise EmptyOrder()

    if details.order_type == DINE_IN:
        table_number = _parse_table_number(details.table_number)
        if table_number is None:
            raise MissingTableNumber()
        return OrderDetails(order_type=DINE_IN, table_number=table_number)

    if details.order_type == DELIVERY:
        fields = (details.customer_name, details.customer_address, details.customer_location)
        if not all(_filled(value) for value in fields):
            raise MissingDeliveryInfo()
        return OrderDetails(
            order_type=DELIVERY,
            customer_name=details.customer_name.strip(),
            customer_address=details.customer_address.strip(),
            customer_location=details.customer_location.strip(),
        )

    raise ValidationError(f"Unknown order type: {details.order_type!r}")


def submit_order(
    store: Store,
    actor: Actor,
    cart: Cart,
    details: OrderDetails,
    created_at: datetime | None = None,
) -> str:
    """Validate the cart, persist the order with its items and return the new order id."""
    clean = validate_order(cart, details)
    if not actor.employee_id:
        raise PermissionDenied("An authenticated employee is required to submit orders")

    items = list(cart)
    total = cart.total()
    order_id = store.insert_order(actor.employee_id, clean, items, total, created_at=created_at)
    logger.info(
        "order_submitted order_id=%s type=%s lines=%d total=%s employee=%s",
        order_id,
        clean.order_type,
        len(items),
        total,
        actor.employee_id,
    )
    return order_id
