"""Employee login, admin bootstrap and admin-only catalog/staff management."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from decimal import Decimal, InvalidOperation

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from pizzapos.errors import AuthenticationError, PermissionDenied, ValidationError
from pizzapos.models import ROLE_ADMIN, ROLES, Actor, AutoReportSettings, Employee, Product, to_money
from pizzapos.persistence import Store

logger = logging.getLogger(__name__)

_hasher = PasswordHasher()

_REPORT_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def _actor_for(employee: Employee) -> Actor:
    return Actor(
        employee_id=employee.employee_id,
        email=employee.email,
        full_name=employee.full_name,
        role=employee.role,
    )


def authenticate(store: Store, email: str, password: str) -> Actor:
    """Return the actor for matching credentials of an active employee."""
    found = store.find_employee_credentials(email)
    if found is None:
        logger.info("login_failed email=%s reason=unknown", email)
        raise AuthenticationError("Invalid email or password")

    employee, password_hash = found
    try:
        _hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        logger.info("login_failed email=%s reason=password", email)
        raise AuthenticationError("Invalid email or password") from None

    if not employee.is_active:
        logger.info("login_failed email=%s reason=inactive", email)
        raise AuthenticationError("This account has been deactivated")

    if _hasher.check_needs_rehash(password_hash):
        store.update_employee(employee.employee_id, password_hash=hash_password(password))

    logger.info("login_ok employee=%s role=%s", employee.employee_id, employee.role)
    return _actor_for(employee)


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise PermissionDenied("You need admin privileges to do that")


def seed_admin(store: Store, email: str, password: str, full_name: str | None = None) -> Employee:
    """Create the bootstrap admin, or promote and reactivate it when it exists."""
    found = store.find_employee_credentials(email)
    if found is None:
        employee = store.insert_employee(email, hash_password(password), full_name, ROLE_ADMIN)
        logger.info("admin_seeded employee=%s", employee.employee_id)
        return employee

    employee, _ = found
    store.update_employee(employee.employee_id, role=ROLE_ADMIN, is_active=True, full_name=full_name or employee.full_name)
    return store.get_employee(employee.employee_id)


# products


def _parse_price(value: Decimal | str | int | float | None) -> Decimal:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Name and price are required")
    try:
        price = to_money(value.strip() if isinstance(value, str) else value)
    except InvalidOperation:
        raise ValidationError(f"Invalid price: {value!r}") from None
    if price < 0:
        raise ValidationError("Price must not be negative")
    return price


def _parse_stock(value: int | str | None) -> int:
    if value is None or value == "":
        return 0
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid quantity: {value!r}") from None
    if quantity < 0:
        raise ValidationError("Quantity must not be negative")
    return quantity


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def add_product(
    store: Store,
    actor: Actor,
    name: str,
    price: Decimal | str | int | float | None,
    image_url: str | None = None,
    description: str | None = None,
    quantity: int | str | None = 0,
) -> Product:
    require_admin(actor)
    if not name or not name.strip():
        raise ValidationError("Name and price are required")
    product = store.insert_product(
        name=name.strip(),
        price=_parse_price(price),
        image_url=_optional_text(image_url),
        description=_optional_text(description),
        quantity=_parse_stock(quantity),
    )
    logger.info("product_added product=%s by=%s", product.product_id, actor.employee_id)
    return product


def update_product(store: Store, actor: Actor, product_id: str, **changes: object) -> Product:
    """Apply editable field changes (name, price, image_url, description, is_active, quantity)."""
    require_admin(actor)
    current = store.get_product(product_id)
    allowed = {"name", "price", "image_url", "description", "is_active", "quantity"}
    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError(f"Cannot edit product fields: {', '.join(sorted(unknown))}")

    if "name" in changes:
        name = str(changes["name"] or "").strip()
        if not name:
            raise ValidationError("Name and price are required")
        changes["name"] = name
    if "price" in changes:
        changes["price"] = _parse_price(changes["price"])  # type: ignore[arg-type]
    if "quantity" in changes:
        changes["quantity"] = _parse_stock(changes["quantity"])  # type: ignore[arg-type]
    for key in ("image_url", "description"):
        if key in changes:
            changes[key] = _optional_text(changes[key])  # type: ignore[arg-type]
    if "is_active" in changes:
        changes["is_active"] = bool(changes["is_active"])

    updated = store.update_product(replace(current, **changes))  # type: ignore[arg-type]
    logger.info("product_updated product=%s fields=%s by=%s", product_id, sorted(changes), actor.employee_id)
    return updated


def deactivate_product(store: Store, actor: Actor, product_id: str) -> None:
    require_admin(actor)
    store.set_product_active(product_id, False)
    logger.info("product_deactivated product=%s by=%s", product_id, actor.employee_id)


def activate_product(store: Store, actor: Actor, product_id: str) -> None:
    require_admin(actor)
    store.set_product_active(product_id, True)
    logger.info("product_activated product=%s by=%s", product_id, actor.employee_id)


# employees


def add_employee(
    store: Store,
    actor: Actor,
    email: str,
    password: str,
    full_name: str | None = None,
    role: str = "employee",
) -> Employee:
    require_admin(actor)
    if not email or "@" not in email:
        raise ValidationError("A valid email is required")
    if not password or len(password) < 6:
        raise ValidationError("Password must be at least 6 characters")
    if role not in ROLES:
        raise ValidationError(f"Unknown role: {role!r}")
    if store.find_employee_credentials(email) is not None:
        raise ValidationError(f"An employee with email {email} already exists")
    employee = store.insert_employee(email, hash_password(password), _optional_text(full_name), role)
    logger.info("employee_added employee=%s role=%s by=%s", employee.employee_id, role, actor.employee_id)
    return employee


def set_employee_active(store: Store, actor: Actor, employee_id: str, is_active: bool) -> None:
    require_admin(actor)
    if not is_active and employee_id == actor.employee_id:
        raise ValidationError("You cannot deactivate your own account")
    store.update_employee(employee_id, is_active=is_active)
    logger.info("employee_active employee=%s active=%s by=%s", employee_id, is_active, actor.employee_id)


def set_employee_role(store: Store, actor: Actor, employee_id: str, role: str) -> None:
    require_admin(actor)
    if role not in ROLES:
        raise ValidationError(f"Unknown role: {role!r}")
    if employee_id == actor.employee_id and role != ROLE_ADMIN:
        raise ValidationError("You cannot remove your own admin role")
    store.update_employee(employee_id, role=role)
    logger.info("employee_role employee=%s role=%s by=%s", employee_id, role, actor.employee_id)


def list_employees(store: Store, actor: Actor) -> list[Employee]:
    require_admin(actor)
    return store.list_employees()


# auto report settings


def get_auto_report_settings(store: Store, actor: Actor) -> AutoReportSettings:
    require_admin(actor)
    return store.get_auto_report_settings()


def set_auto_report_time(store: Store, actor: Actor, report_time: str, is_active: bool = True) -> AutoReportSettings:
    """Store the time of day at which the daily sales report is due."""
    require_admin(actor)
    match = _REPORT_TIME_RE.match(report_time.strip())
    if match is None:
        raise ValidationError(f"Invalid report time {report_time!r}, expected HH:MM or HH:MM:SS")
    hours, minutes, seconds = match.group(1), match.group(2), match.group(3) or "00"
    settings = AutoReportSettings(
        report_time=f"{hours}:{minutes}:{seconds}",
        is_active=is_active,
        updated_by=actor.employee_id,
    )
    store.save_auto_report_settings(settings)
    logger.info("auto_report_time time=%s active=%s by=%s", settings.report_time, is_active, actor.employee_id)
    return settings
