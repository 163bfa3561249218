"""Admin screen: products, employees, reports and exports."""

from __future__ import annotations

from datetime import date

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.screen import Screen
from textual.widgets import Header, Static

from pizzapos import accounts, reports
from pizzapos.errors import PosError
from pizzapos.form_modal import FormField, FormModal
from pizzapos.models import ROLE_ADMIN, ROLE_EMPLOYEE, Actor, Employee, Product
from pizzapos.persistence import Store
from pizzapos.rendering import format_money
from pizzapos.storage import BlobStore

_PRODUCTS = "products"
_EMPLOYEES = "employees"


def product_form_fields(product: Product | None = None) -> list[FormField]:
    """Editable product fields, prefilled from `product` when editing."""
    if product is None:
        return [
            FormField("name", "Name"),
            FormField("price", "Price"),
            FormField("quantity", "Stock", initial="0"),
            FormField("description", "Description"),
            FormField("image_url", "Image URL"),
        ]
    return [
        FormField("name", "Name", initial=product.name),
        FormField("price", "Price", initial=str(product.price)),
        FormField("quantity", "Stock", initial=str(product.quantity)),
        FormField("description", "Description", initial=product.description or ""),
        FormField("image_url", "Image URL", initial=product.image_url or ""),
    ]


class AdminScreen(Screen[None]):
    """Manage the catalog and staff; generate reports."""

    CSS = """
    #admin-status {
        border: heavy $secondary;
        padding: 0 1;
        height: 4;
    }

    #admin-products, #admin-employees {
        width: 1fr;
        border: round $primary;
        padding: 0 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    BINDINGS = [
        ("escape", "close", "Back"),
        ("tab", "switch_pane", "Switch pane"),
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("up", "move_cursor(-1)", "Previous"),
    ]

    def __init__(self, store: Store, blobs: BlobStore, actor: Actor) -> None:
        super().__init__()
        self.store = store
        self.blobs = blobs
        self.actor = actor
        self.pane = _PRODUCTS
        self.products: list[Product] = []
        self.employees: list[Employee] = []
        self.cursor = {_PRODUCTS: 0, _EMPLOYEES: 0}
        self.status_message = ""

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical():
            yield Static(id="admin-status")
            with Horizontal():
                yield Static(id="admin-products")
                yield Static(id="admin-employees")

    def on_mount(self) -> None:
        self._reload()

    def on_key(self, event: Key) -> None:
        if not event.is_printable or not event.character:
            return
        key = event.character.lower()
        handlers = {
            "a": self._open_add_form,
            "x": self._toggle_active,
            "m": self._toggle_role,
            "g": self._generate_report,
            "e": self._export_listing,
            "t": self._open_report_time_form,
            "u": self._open_edit_form,
        }
        handler = handlers.get(key)
        if handler is None:
            return
        handler()
        event.stop()

    def action_close(self) -> None:
        self.dismiss(None)

    def action_switch_pane(self) -> None:
        self.pane = _EMPLOYEES if self.pane == _PRODUCTS else _PRODUCTS
        self._refresh_panes()

    def action_move_cursor(self, delta: int) -> None:
        rows = self.products if self.pane == _PRODUCTS else self.employees
        if not rows:
            return
        self.cursor[self.pane] = (self.cursor[self.pane] + delta) % len(rows)
        self._refresh_panes()

    def _run(self, success: str, fn, *args, **kwargs) -> None:
        try:
            fn(*args, **kwargs)
        except PosError as exc:
            self.status_message = str(exc)
            self.app.notify(self.status_message, severity="error")
        else:
            self.status_message = success
            self.app.notify(success)
        self._reload()

    def _reload(self) -> None:
        try:
            self.products = self.store.list_products()
            self.employees = accounts.list_employees(self.store, self.actor)
        except PosError as exc:
            self.status_message = f"Failed to load admin data: {exc}"
        for pane, rows in ((_PRODUCTS, self.products), (_EMPLOYEES, self.employees)):
            if self.cursor[pane] >= len(rows):
                self.cursor[pane] = max(0, len(rows) - 1)
        self._refresh_status()
        self._refresh_panes()

    def _selected_product(self) -> Product | None:
        if not self.products:
            return None
        return self.products[self.cursor[_PRODUCTS]]

    def _selected_employee(self) -> Employee | None:
        if not self.employees:
            return None
        return self.employees[self.cursor[_EMPLOYEES]]

    def _toggle_active(self) -> None:
        if self.pane == _PRODUCTS:
            product = self._selected_product()
            if product is None:
                return
            if product.is_active:
                self._run("Product deactivated", accounts.deactivate_product, self.store, self.actor, product.product_id)
            else:
                self._run("Product activated", accounts.activate_product, self.store, self.actor, product.product_id)
            return

        employee = self._selected_employee()
        if employee is None:
            return
        label = "activated" if not employee.is_active else "deactivated"
        self._run(
            f"Employee {label}",
            accounts.set_employee_active,
            self.store,
            self.actor,
            employee.employee_id,
            not employee.is_active,
        )

    def _toggle_role(self) -> None:
        if self.pane != _EMPLOYEES:
            return
        employee = self._selected_employee()
        if employee is None:
            return
        role = ROLE_EMPLOYEE if employee.role == ROLE_ADMIN else ROLE_ADMIN
        self._run(f"Role set to {role}", accounts.set_employee_role, self.store, self.actor, employee.employee_id, role)

    def _open_add_form(self) -> None:
        if self.pane == _PRODUCTS:
            self.app.push_screen(FormModal("Add Product", product_form_fields(), on_confirm=self._add_product))
            return

        fields = [
            FormField("email", "Email"),
            FormField("full_name", "Full name"),
            FormField("password", "Password", secret=True),
            FormField("role", "Role", initial=ROLE_EMPLOYEE),
        ]
        self.app.push_screen(FormModal("Add Employee", fields, on_confirm=self._add_employee))

    def _open_edit_form(self) -> None:
        if self.pane != _PRODUCTS:
            return
        product = self._selected_product()
        if product is None:
            return

        def confirm(values: dict[str, str]) -> str | None:
            return self._edit_product(product.product_id, values)

        self.app.push_screen(FormModal(f"Edit {product.name}", product_form_fields(product), on_confirm=confirm))

    def _edit_product(self, product_id: str, values: dict[str, str]) -> str | None:
        try:
            accounts.update_product(self.store, self.actor, product_id, **values)
        except PosError as exc:
            return str(exc)
        self.status_message = "Product updated successfully"
        self._reload()
        return None

    def _add_product(self, values: dict[str, str]) -> str | None:
        try:
            accounts.add_product(
                self.store,
                self.actor,
                name=values["name"],
                price=values["price"],
                quantity=values["quantity"],
                description=values["description"],
                image_url=values["image_url"],
            )
        except PosError as exc:
            return str(exc)
        self.status_message = "Product added successfully"
        self._reload()
        return None

    def _add_employee(self, values: dict[str, str]) -> str | None:
        try:
            accounts.add_employee(
                self.store,
                self.actor,
                email=values["email"],
                password=values["password"],
                full_name=values["full_name"],
                role=values["role"].strip().lower(),
            )
        except PosError as exc:
            return str(exc)
        self.status_message = "Employee added successfully"
        self._reload()
        return None

    def _open_report_time_form(self) -> None:
        try:
            settings = accounts.get_auto_report_settings(self.store, self.actor)
        except PosError as exc:
            self.status_message = str(exc)
            self._refresh_status()
            return
        fields = [FormField("report_time", "Report time (HH:MM)", initial=settings.report_time[:5])]
        self.app.push_screen(FormModal("Auto Report Time", fields, on_confirm=self._save_report_time))

    def _save_report_time(self, values: dict[str, str]) -> str | None:
        try:
            settings = accounts.set_auto_report_time(self.store, self.actor, values["report_time"])
        except PosError as exc:
            return str(exc)
        self.status_message = f"Daily report time set to {settings.report_time}"
        self._refresh_status()
        return None

    def _generate_report(self) -> None:
        try:
            report = reports.generate_sales_report(self.store, self.blobs, self.actor, date.today())
        except PosError as exc:
            self.status_message = f"Report generation error: {exc}"
            self.app.notify(self.status_message, severity="error")
        else:
            self.status_message = (
                f"Report {report.report_date}: {report.total_orders} orders, "
                f"{format_money(report.total_revenue)} -> {report.file_path}"
            )
            self.app.notify("Sales report generated")
        self._refresh_status()

    def _export_listing(self) -> None:
        try:
            listing = reports.export_product_listing(self.store, self.blobs, self.actor)
        except PosError as exc:
            self.status_message = f"Export error: {exc}"
            self.app.notify(self.status_message, severity="error")
        else:
            self.status_message = f"Exported {listing.listing_name}"
            self.app.notify("Product listing exported")
        self._refresh_status()

    def _refresh_status(self) -> None:
        text = Text()
        text.append("[tab] switch  [a] add  [u] edit  [x] toggle active  [m] toggle role  ", style="dim")
        text.append("[g] today's report  [e] export listing  [t] report time  [esc] back", style="dim")
        text.append(f"\n{self.status_message or 'Ready'}")
        self.query_one("#admin-status", Static).update(text)

    def _refresh_panes(self) -> None:
        products = Text()
        products.append("Products\n", style="bold underline" if self.pane == _PRODUCTS else "bold")
        for idx, product in enumerate(self.products):
            pointer = "➤ " if self.pane == _PRODUCTS and idx == self.cursor[_PRODUCTS] else "  "
            products.append(pointer)
            products.append(product.name, style="" if product.is_active else "dim strike")
            products.append(f"  {format_money(product.price)}", style="green")
            products.append(f"  stock {product.quantity}\n", style="dim")
        if not self.products:
            products.append("(no products yet)", style="dim")
        self.query_one("#admin-products", Static).update(products)

        employees = Text()
        employees.append("Employees\n", style="bold underline" if self.pane == _EMPLOYEES else "bold")
        for idx, employee in enumerate(self.employees):
            pointer = "➤ " if self.pane == _EMPLOYEES and idx == self.cursor[_EMPLOYEES] else "  "
            employees.append(pointer)
            employees.append(employee.display_name, style="" if employee.is_active else "dim strike")
            employees.append(f"  {employee.role}", style="bold" if employee.role == ROLE_ADMIN else "dim")
            employees.append(f"  {employee.email}\n", style="dim")
        self.query_one("#admin-employees", Static).update(employees)
