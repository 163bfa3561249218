"""Forward-only order status transitions."""

from __future__ import annotations

import logging

from pizzapos.errors import ValidationError
from pizzapos.models import COMPLETED, IN_PROGRESS, ORDER_STATUSES, PENDING
from pizzapos.persistence import Store

logger = logging.getLogger(__name__)

# pending -> in_progress -> completed. completed and cancelled have no successor.
_NEXT_STATUS: dict[str, str] = {
    PENDING: IN_PROGRESS,
    IN_PROGRESS: COMPLETED,
}

STATUS_LABELS: dict[str, str] = {
    "pending": "Pending",
    "in_progress": "In Progress",
    "completed": "Completed",
    "cancelled": "Cancelled",
}


def next_status(current: str) -> str | None:
    """Return the only status reachable from `current`, or None when terminal."""
    if current not in ORDER_STATUSES:
        raise ValidationError(f"Unknown order status: {current!r}")
    return _NEXT_STATUS.get(current)


def resolve_transition(current: str, requested: str | None = None) -> str:
    """Return the status an order ends in when `requested` is asked for.

    Terminal orders stay where they are whatever is requested. Otherwise only
    the immediate successor may be entered; skipping ahead or going back is
    rejected.
    """
    target = next_status(current)
    if target is None:
        return current
    if requested is not None and requested != target:
        raise ValidationError(f"Cannot move order from {current} to {requested}")
    return target


def advance_order(store: Store, order_id: str, requested: str | None = None) -> str:
    """Move an order one step forward and return its resulting status."""
    order = store.get_order(order_id)
    target = resolve_transition(order.status, requested)
    if target == order.status:
        logger.info("status_noop order_id=%s status=%s", order_id, order.status)
        return order.status

    store.update_order_status(order_id, target)
    logger.info("status_changed order_id=%s from=%s to=%s", order_id, order.status, target)
    return target
