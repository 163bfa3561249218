"""Tests for login, admin bootstrap and admin management operations."""

from decimal import Decimal

import pytest

from pizzapos.accounts import (
    activate_product,
    add_employee,
    add_product,
    authenticate,
    deactivate_product,
    get_auto_report_settings,
    list_employees,
    require_admin,
    seed_admin,
    set_auto_report_time,
    set_employee_active,
    set_employee_role,
    update_product,
)
from pizzapos.admin_screen import product_form_fields
from pizzapos.errors import AuthenticationError, NotFound, PermissionDenied, ValidationError
from pizzapos.models import ROLE_ADMIN, ROLE_EMPLOYEE


def test_authenticate_returns_actor(store, employee):
    actor = authenticate(store, "sam@example.com", "pizza-pass")

    assert actor == employee
    assert not actor.is_admin


@pytest.mark.parametrize(
    "email, password",
    [("sam@example.com", "wrong"), ("nobody@example.com", "pizza-pass")],
)
def test_authenticate_rejects_bad_credentials(store, employee, email, password):
    with pytest.raises(AuthenticationError):
        authenticate(store, email, password)


def test_deactivated_employee_cannot_sign_in(store, employee, admin):
    set_employee_active(store, admin, employee.employee_id, False)

    with pytest.raises(AuthenticationError):
        authenticate(store, "sam@example.com", "pizza-pass")


def test_require_admin(admin, employee):
    require_admin(admin)
    with pytest.raises(PermissionDenied):
        require_admin(employee)


def test_seed_admin_is_idempotent(store):
    first = seed_admin(store, "owner@example.com", "secret-1", "Owner")
    second = seed_admin(store, "owner@example.com", "secret-1")

    assert first.employee_id == second.employee_id
    assert second.role == ROLE_ADMIN
    assert second.full_name == "Owner"
    assert len(store.list_employees()) == 1
    assert authenticate(store, "owner@example.com", "secret-1").is_admin


def test_seed_admin_promotes_existing_employee(store, employee, admin):
    set_employee_active(store, admin, employee.employee_id, False)

    promoted = seed_admin(store, "sam@example.com", "ignored")

    assert promoted.role == ROLE_ADMIN
    assert promoted.is_active


def test_add_product(store, admin):
    product = add_product(store, admin, "  Pepperoni ", "14.5", description=" spicy ", quantity="8")

    assert product.name == "Pepperoni"
    assert product.price == Decimal("14.50")
    assert product.description == "spicy"
    assert product.quantity == 8
    assert product.is_active
    assert store.get_product(product.product_id) == product


@pytest.mark.parametrize(
    "name, price, quantity",
    [("", "1.00", 0), ("Calzone", "", 0), ("Calzone", None, 0), ("Calzone", "abc", 0), ("Calzone", "-1", 0), ("Calzone", "1.00", -2)],
)
def test_add_product_validation(store, admin, name, price, quantity):
    with pytest.raises(ValidationError):
        add_product(store, admin, name, price, quantity=quantity)

    assert store.list_products() == []


def test_product_management_requires_admin(store, employee, margherita):
    with pytest.raises(PermissionDenied):
        add_product(store, employee, "Calzone", "9.00")
    with pytest.raises(PermissionDenied):
        update_product(store, employee, margherita.product_id, price="1.00")
    with pytest.raises(PermissionDenied):
        deactivate_product(store, employee, margherita.product_id)


def test_update_product(store, admin, margherita):
    updated = update_product(store, admin, margherita.product_id, price="13.25", description="")

    assert updated.price == Decimal("13.25")
    assert updated.description is None
    assert updated.name == margherita.name


def test_update_product_rejects_unknown_fields(store, admin, margherita):
    with pytest.raises(ValidationError):
        update_product(store, admin, margherita.product_id, colour="red")


def test_update_missing_product(store, admin):
    with pytest.raises(NotFound):
        update_product(store, admin, "missing", price="1.00")


def test_deactivate_and_activate_product(store, admin, margherita, soda):
    deactivate_product(store, admin, margherita.product_id)

    assert [p.name for p in store.list_products(active_only=True)] == ["Soda"]
    assert store.count_active_products() == 1

    activate_product(store, admin, margherita.product_id)
    assert store.count_active_products() == 2


def test_add_employee(store, admin):
    created = add_employee(store, admin, "new@example.com", "longpass", "New Hire")

    assert created.role == ROLE_EMPLOYEE
    assert authenticate(store, "new@example.com", "longpass").employee_id == created.employee_id
    assert {e.email for e in list_employees(store, admin)} == {"boss@example.com", "new@example.com"}


@pytest.mark.parametrize(
    "email, password, role",
    [
        ("not-an-email", "longpass", ROLE_EMPLOYEE),
        ("a@example.com", "short", ROLE_EMPLOYEE),
        ("a@example.com", "longpass", "manager"),
        ("boss@example.com", "longpass", ROLE_EMPLOYEE),
    ],
)
def test_add_employee_validation(store, admin, email, password, role):
    with pytest.raises(ValidationError):
        add_employee(store, admin, email, password, role=role)


def test_admin_cannot_lock_themselves_out(store, admin):
    with pytest.raises(ValidationError):
        set_employee_active(store, admin, admin.employee_id, False)
    with pytest.raises(ValidationError):
        set_employee_role(store, admin, admin.employee_id, ROLE_EMPLOYEE)

    me = store.get_employee(admin.employee_id)
    assert me.is_active
    assert me.role == ROLE_ADMIN


def test_promote_employee(store, admin, employee):
    set_employee_role(store, admin, employee.employee_id, ROLE_ADMIN)

    assert authenticate(store, "sam@example.com", "pizza-pass").is_admin


def test_employee_management_requires_admin(store, employee, admin):
    with pytest.raises(PermissionDenied):
        list_employees(store, employee)
    with pytest.raises(PermissionDenied):
        set_employee_role(store, employee, employee.employee_id, ROLE_ADMIN)


def test_auto_report_time_defaults_to_midnight(store, admin):
    assert get_auto_report_settings(store, admin).report_time == "00:00:00"


@pytest.mark.parametrize("value, stored", [("23:30", "23:30:00"), (" 07:05:09 ", "07:05:09")])
def test_set_auto_report_time(store, admin, value, stored):
    set_auto_report_time(store, admin, value)

    settings = get_auto_report_settings(store, admin)
    assert settings.report_time == stored
    assert settings.updated_by == admin.employee_id


@pytest.mark.parametrize("value", ["24:00", "7:00", "12:60", "noon", ""])
def test_set_auto_report_time_rejects_bad_values(store, admin, value):
    with pytest.raises(ValidationError):
        set_auto_report_time(store, admin, value)


def test_edit_form_values_apply_through_update_product(store, admin, margherita):
    values = {field.key: field.initial for field in product_form_fields(margherita)}
    assert values == {
        "name": "Margherita Pizza",
        "price": "12.99",
        "quantity": "20",
        "description": "Tomato, mozzarella, basil",
        "image_url": "",
    }

    values.update(price="14", description="", quantity="7")
    updated = update_product(store, admin, margherita.product_id, **values)

    assert updated.name == "Margherita Pizza"
    assert updated.price == Decimal("14.00")
    assert updated.quantity == 7
    assert updated.description is None
    assert updated.image_url is None
    assert store.get_product(margherita.product_id) == updated


def test_store_rejects_unknown_employee_fields(store, employee):
    with pytest.raises(ValidationError):
        store.update_employee(employee.employee_id, nickname="Sammy")
