"""Domain models for pizzapos."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from pizzapos.config import CURRENCY_PLACES

DINE_IN = "dine_in"
DELIVERY = "delivery"
ORDER_TYPES = (DINE_IN, DELIVERY)

PENDING = "pending"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
CANCELLED = "cancelled"
ORDER_STATUSES = (PENDING, IN_PROGRESS, COMPLETED, CANCELLED)
TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED})

ROLE_EMPLOYEE = "employee"
ROLE_ADMIN = "admin"
ROLES = (ROLE_EMPLOYEE, ROLE_ADMIN)

FILTER_ALL = "all"

_CENT = Decimal(1).scaleb(-CURRENCY_PLACES)


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize a value to the currency precision."""
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Product:
    """A catalog product."""

    product_id: str
    name: str
    price: Decimal
    image_url: str | None = None
    description: str | None = None
    is_active: bool = True
    quantity: int = 0


@dataclass
class OrderItem:
    """A cart line: product reference, quantity and the price captured at add-time."""

    product_id: str
    name: str
    unit_price: Decimal
    quantity: int = 1

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Employee:
    """An employee profile."""

    employee_id: str
    email: str
    full_name: str | None
    role: str = ROLE_EMPLOYEE
    is_active: bool = True
    created_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


@dataclass(frozen=True)
class Actor:
    """The authenticated employee performing an operation."""

    employee_id: str
    email: str
    full_name: str | None = None
    role: str = ROLE_EMPLOYEE

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


@dataclass(frozen=True)
class OrderDetails:
    """Order type plus the fields that type requires."""

    order_type: str
    table_number: str | int | None = None
    customer_name: str | None = None
    customer_address: str | None = None
    customer_location: str | None = None


@dataclass(frozen=True)
class OrderLine:
    """A persisted line item joined with its product name."""

    line_id: str
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class OrderView:
    """A persisted order joined with its line items and creator identity."""

    order_id: str
    employee_id: str
    order_type: str
    total_amount: Decimal
    status: str
    created_at: datetime
    table_number: int | None = None
    customer_name: str | None = None
    customer_address: str | None = None
    customer_location: str | None = None
    creator_name: str | None = None
    creator_email: str | None = None
    items: tuple[OrderLine, ...] = ()

    @property
    def display_id(self) -> str:
        return self.order_id[:8]

    @property
    def created_date(self) -> date:
        return self.created_at.astimezone().date()

    @property
    def creator_label(self) -> str:
        return self.creator_name or self.creator_email or self.employee_id


@dataclass(frozen=True)
class OrderFilters:
    """Conjunctive filters for order listing."""

    status: str = FILTER_ALL
    order_type: str = FILTER_ALL
    search: str = ""


@dataclass(frozen=True)
class OrderStats:
    """Dashboard counters."""

    total_orders: int = 0
    pending_orders: int = 0
    today_revenue: Decimal = field(default_factory=lambda: to_money(0))
    active_products: int = 0


@dataclass(frozen=True)
class SalesReport:
    """Aggregates persisted for one calendar day."""

    report_date: date
    total_orders: int
    total_revenue: Decimal
    file_path: str | None
    report_data: dict


@dataclass(frozen=True)
class ProductListing:
    """A product catalog export."""

    listing_id: str
    listing_name: str
    file_path: str
    listing_data: dict
    created_at: datetime


@dataclass(frozen=True)
class AutoReportSettings:
    """Time-of-day at which the daily report is due."""

    report_time: str = "00:00:00"
    is_active: bool = True
    updated_by: str | None = None
