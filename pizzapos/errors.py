"""Error taxonomy shared by the order core, the stores and the UI."""

from __future__ import annotations


class PosError(Exception):
    """Base class for every failure surfaced to the operator."""


class ValidationError(PosError):
    """Input rejected before anything was written."""


class EmptyOrder(ValidationError):
    def __init__(self) -> None:
        super().__init__("Please add items to the order")


class MissingTableNumber(ValidationError):
    def __init__(self) -> None:
        super().__init__("Please enter a table number for dine-in orders")


class MissingDeliveryInfo(ValidationError):
    def __init__(self) -> None:
        super().__init__("Please fill in all delivery information")


class InvalidQuantity(ValidationError):
    def __init__(self, quantity: int) -> None:
        super().__init__(f"Quantity must not be negative (got {quantity})")
        self.quantity = quantity


class PersistenceError(PosError):
    """The database or blob storage rejected or failed a read/write."""


class NotFound(PosError):
    """A requested record or blob does not exist."""


class AuthenticationError(PosError):
    """Credentials did not match an active employee."""


class PermissionDenied(PosError):
    """The acting employee may not perform the operation."""
