"""
Shared fixtures for the pizzapos test suite.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from pizzapos.accounts import hash_password
from pizzapos.models import (
    DINE_IN,
    PENDING,
    ROLE_ADMIN,
    ROLE_EMPLOYEE,
    Actor,
    OrderLine,
    OrderView,
    Product,
)
from pizzapos.persistence import Store
from pizzapos.storage import BlobStore


@pytest.fixture
def store(tmp_path):
    db = Store(tmp_path / "pos.db")
    db.bootstrap_schema()
    return db


@pytest.fixture
def blobs(tmp_path):
    return BlobStore(tmp_path / "storage")


@pytest.fixture
def margherita(store):
    return store.insert_product("Margherita Pizza", Decimal("12.99"), description="Tomato, mozzarella, basil", quantity=20)


@pytest.fixture
def soda(store):
    return store.insert_product("Soda", Decimal("2.99"), quantity=50)


@pytest.fixture
def employee(store):
    record = store.insert_employee("sam@example.com", hash_password("pizza-pass"), "Sam Counter", ROLE_EMPLOYEE)
    return Actor(record.employee_id, record.email, record.full_name, record.role)


@pytest.fixture
def admin(store):
    record = store.insert_employee("boss@example.com", hash_password("admin-pass"), "Boss", ROLE_ADMIN)
    return Actor(record.employee_id, record.email, record.full_name, record.role)


def local_time(year, month, day, hour=12, minute=0, second=0):
    """An aware datetime in the machine's local timezone."""
    return datetime(year, month, day, hour, minute, second).astimezone()


def make_product(product_id="p1", name="Margherita Pizza", price="12.99", **kwargs):
    return Product(product_id=product_id, name=name, price=Decimal(price), **kwargs)


def make_order(
    created_at,
    amount="10.00",
    status=PENDING,
    order_type=DINE_IN,
    order_id=None,
    items=(),
):
    order_id = order_id or f"{created_at:%m%d%H%M%S}".ljust(32, "0")
    return OrderView(
        order_id=order_id,
        employee_id="e1",
        order_type=order_type,
        total_amount=Decimal(amount),
        status=status,
        created_at=created_at,
        table_number=1 if order_type == DINE_IN else None,
        items=tuple(items),
    )


def make_line(name="Soda", quantity=1, unit_price="2.99"):
    price = Decimal(unit_price)
    return OrderLine(
        line_id=f"line-{name}",
        product_id=f"id-{name}",
        product_name=name,
        quantity=quantity,
        unit_price=price,
        subtotal=price * quantity,
    )
