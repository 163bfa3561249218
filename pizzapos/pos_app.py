"""Main Textual app class."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.widgets import Header, Static

from pizzapos.accounts import authenticate, seed_admin
from pizzapos.admin_screen import AdminScreen
from pizzapos.cart import Cart
from pizzapos.config import DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_NAME
from pizzapos.errors import PosError
from pizzapos.form_modal import ChoiceModal, FormField, FormModal
from pizzapos.models import DELIVERY, DINE_IN, Actor, OrderDetails, Product
from pizzapos.order_summary import OrderSummaryModal
from pizzapos.orders_screen import OrdersScreen
from pizzapos.ordering import submit_order
from pizzapos.persistence import Store
from pizzapos.printer import check_printer_dependencies, print_order_receipt
from pizzapos.queries import dashboard_stats, get_order
from pizzapos.rendering import format_cart_line, format_menu_item, format_money
from pizzapos.storage import BlobStore

logger = logging.getLogger(__name__)


class PizzaPosApp(App):
    """A Textual point-of-sale for building and tracking pizza counter orders."""

    TITLE = "Pizza POS"
    SUB_TITLE = "Counter"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #cart-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #menu-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #search-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 4;
    }

    #results {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #cart-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #cart-total {
        text-style: bold;
        height: 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    input_state = reactive("normal")
    search_query = reactive("")
    selected_index = reactive(0)
    cart_selected_index = reactive(None)

    BINDINGS = [
        ("tab", "cycle_results(1)", "Next result"),
        ("up", "cycle_results(-1)", "Previous result"),
        ("down", "cycle_results(1)", "Next result"),
        ("enter", "add_selected", "Add item"),
        ("backspace", "backspace_query", "Delete query char"),
        Binding("ctrl+s", "checkout", "Checkout", priority=True),
        ("escape", "cancel_active_mode", "Exit search"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, store: Store, blobs: BlobStore) -> None:
        super().__init__()
        self.store = store
        self.blobs = blobs
        self.actor: Actor | None = None
        self.last_order_id: str | None = None
        self.cart = Cart()
        self.products: list[Product] = []
        self.system_status = ""
        self.printer_status = ""
        logger.debug("app_init db=%s", store.db_path)

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="cart-pane"):
                yield Static("Current Order", classes="pane-title")
                yield Static("(no items yet)", id="cart-list")
                yield Static(id="cart-total")
            with Vertical(id="menu-pane"):
                yield Static(id="search-bar")
                yield Static(id="results")

    def on_mount(self) -> None:
        self.store.bootstrap_schema()
        _, self.printer_status = check_printer_dependencies()
        logger.debug("on_mount printer_status=%r", self.printer_status)
        self._refresh_all()
        if not self.store.list_employees():
            self._open_setup_admin()
        else:
            self._open_login()

    # identity

    def _open_setup_admin(self) -> None:
        fields = [
            FormField("email", "Admin email", initial=DEFAULT_ADMIN_EMAIL),
            FormField("full_name", "Full name", initial=DEFAULT_ADMIN_NAME),
            FormField("password", "Password", secret=True),
        ]
        self.push_screen(FormModal("Create Admin Account", fields, on_confirm=self._setup_admin), self._after_setup)

    def _setup_admin(self, values: dict[str, str]) -> str | None:
        if "@" not in values["email"] or len(values["password"]) < 6:
            return "Enter an email and a password of at least 6 characters."
        try:
            seed_admin(self.store, values["email"].strip(), values["password"], values["full_name"].strip() or None)
        except PosError as exc:
            return str(exc)
        return None

    def _after_setup(self, values: dict[str, str] | None) -> None:
        if values is None:
            self.exit()
            return
        self._open_login()

    def _open_login(self) -> None:
        fields = [FormField("email", "Email"), FormField("password", "Password", secret=True)]
        self.push_screen(FormModal("Sign In", fields, on_confirm=self._login), self._after_login)

    def _login(self, values: dict[str, str]) -> str | None:
        try:
            self.actor = authenticate(self.store, values["email"], values["password"])
        except PosError as exc:
            return str(exc)
        return None

    def _after_login(self, values: dict[str, str] | None) -> None:
        if values is None or self.actor is None:
            self.exit()
            return
        self.sub_title = f"{self.actor.display_name} ({self.actor.role})"
        self.system_status = f"Welcome, {self.actor.display_name}"
        self._load_products()
        self._refresh_all()

    def _sign_out(self) -> None:
        logger.info("logout employee=%s", self.actor.employee_id if self.actor else None)
        self.actor = None
        self.cart.clear()
        self.cart_selected_index = None
        self.sub_title = "Counter"
        self._refresh_all()
        self._open_login()

    # keys

    def _main_screen_active(self) -> bool:
        return self.screen is self.screen_stack[0]

    def on_key(self, event: Key) -> None:
        if self.actor is None or not self._main_screen_active():
            return

        if not event.is_printable or not event.character:
            return

        if self.input_state == "active":
            self.search_query += event.character
            self.selected_index = 0
            self._refresh_search()
            event.stop()
            return

        key = event.character
        if key == "/":
            self.input_state = "active"
            self.search_query = ""
            self.selected_index = 0
            self._refresh_search()
        elif key == "j":
            self._move_cart_selection(1)
        elif key == "k":
            self._move_cart_selection(-1)
        elif key in {"+", "="}:
            self._adjust_selected_quantity(1)
        elif key == "-":
            self._adjust_selected_quantity(-1)
        elif key == "d":
            self._delete_selected_line()
        elif key == "o":
            self.push_screen(OrdersScreen(self.store), lambda _: self._refresh_all())
        elif key == "a":
            self._open_admin()
        elif key == "c":
            self.action_checkout()
        elif key == "L":
            self._sign_out()
        else:
            return
        event.stop()

    def action_cancel_active_mode(self) -> None:
        if not self._main_screen_active():
            return
        if self.input_state == "normal":
            return

        self.input_state = "normal"
        self.search_query = ""
        self.selected_index = 0
        self._refresh_search()

    def action_cycle_results(self, delta: int) -> None:
        if not self._main_screen_active():
            return
        if self.input_state != "active":
            return

        results = self._filtered_results()
        if not results:
            self.selected_index = 0
            self._refresh_results(results)
            return
        self.selected_index = (self.selected_index + delta) % len(results)
        self._refresh_results(results)

    def action_add_selected(self) -> None:
        if not self._main_screen_active():
            return
        if self.input_state != "active":
            return

        results = self._filtered_results()
        if not results:
            return

        product = results[self.selected_index]
        self.cart.add_item(product)
        ids = [item.product_id for item in self.cart]
        self.cart_selected_index = ids.index(product.product_id)
        self._refresh_cart()

    def action_backspace_query(self) -> None:
        if not self._main_screen_active():
            return
        if self.input_state != "active":
            return

        if not self.search_query:
            return
        self.search_query = self.search_query[:-1]
        self.selected_index = 0
        self._refresh_search()

    def action_checkout(self) -> None:
        if self.actor is None or not self._main_screen_active():
            return
        if self.input_state != "normal":
            self.system_status = "Checkout only in NORMAL mode (Esc to exit search)"
            self._refresh_search()
            return
        if self.cart.is_empty:
            self.system_status = "Please add items to the order"
            self._refresh_search()
            return
        options = [("1", DINE_IN, "Dine In (table number)"), ("2", DELIVERY, "Delivery (customer details)")]
        self.push_screen(ChoiceModal("Order Type", options), self._open_order_details)

    # checkout

    def _open_order_details(self, order_type: str | None) -> None:
        if order_type is None:
            return
        if order_type == DINE_IN:
            fields = [FormField("table_number", "Table number", max_length=4)]
        else:
            fields = [
                FormField("customer_name", "Customer name"),
                FormField("customer_address", "Address"),
                FormField("customer_location", "Location / landmark"),
            ]

        def confirm(values: dict[str, str]) -> str | None:
            return self._submit(OrderDetails(order_type=order_type, **values))

        self.push_screen(
            FormModal(f"Total {format_money(self.cart.total())}", fields, on_confirm=confirm),
            self._after_checkout,
        )

    def _after_checkout(self, values: dict[str, str] | None) -> None:
        self._refresh_all()
        order_id, self.last_order_id = self.last_order_id, None
        if values is None or order_id is None:
            return
        self.push_screen(OrderSummaryModal(self.store, order_id), lambda _: self._refresh_all())

    def _submit(self, details: OrderDetails) -> str | None:
        if self.actor is None:
            return "Sign in before submitting orders"
        try:
            order_id = submit_order(self.store, self.actor, self.cart, details)
        except PosError as exc:
            logger.info("submit_blocked reason=%r", exc)
            return str(exc)

        self.cart.clear()
        self.cart_selected_index = None
        self.last_order_id = order_id
        self.system_status = f"Order #{order_id[:8]} created"
        self.notify("Order created successfully!")
        self._print_receipt(order_id)
        return None

    def _print_receipt(self, order_id: str) -> None:
        try:
            order = get_order(self.store, order_id)
            print_order_receipt(order)
        except Exception as exc:
            logger.warning("receipt_failed order_id=%s error=%r", order_id, exc)
            self.system_status = f"Saved #{order_id[:8]} but print failed: {exc}"
            return
        self.system_status = f"Saved + printed: #{order_id[:8]}"

    def _open_admin(self) -> None:
        if self.actor is None or not self.actor.is_admin:
            self.system_status = "You need admin privileges to access this page"
            self.notify(self.system_status, severity="error")
            self._refresh_search()
            return
        self.push_screen(AdminScreen(self.store, self.blobs, self.actor), self._after_admin)

    def _after_admin(self, _: None) -> None:
        self._load_products()
        self._refresh_all()

    # state

    def _load_products(self) -> None:
        try:
            self.products = self.store.list_products(active_only=True)
        except PosError as exc:
            self.products = []
            self.system_status = f"Failed to load products: {exc}"

    def _filtered_results(self) -> list[Product]:
        if not self.search_query:
            return self.products
        q = self.search_query.lower()
        return [product for product in self.products if q in product.name.lower()]

    def _move_cart_selection(self, delta: int) -> None:
        if self.cart.is_empty:
            return

        if self.cart_selected_index is None:
            self.cart_selected_index = 0 if delta > 0 else len(self.cart) - 1
        else:
            self.cart_selected_index = (self.cart_selected_index + delta) % len(self.cart)
        self._refresh_cart()

    def _selected_line_id(self) -> str | None:
        if self.cart_selected_index is None:
            return None
        items = list(self.cart)
        if not (0 <= self.cart_selected_index < len(items)):
            return None
        return items[self.cart_selected_index].product_id

    def _adjust_selected_quantity(self, delta: int) -> None:
        product_id = self._selected_line_id()
        if product_id is None:
            return
        item = self.cart.get(product_id)
        if item is None:
            return
        self.cart.set_quantity(product_id, max(0, item.quantity + delta))
        self._clamp_cart_selection()
        self._refresh_cart()

    def _delete_selected_line(self) -> None:
        product_id = self._selected_line_id()
        if product_id is None:
            return
        self.cart.set_quantity(product_id, 0)
        self._clamp_cart_selection()
        self._refresh_cart()

    def _clamp_cart_selection(self) -> None:
        if self.cart.is_empty:
            self.cart_selected_index = None
        elif self.cart_selected_index is not None:
            self.cart_selected_index = min(self.cart_selected_index, len(self.cart) - 1)

    # rendering

    def _refresh_all(self) -> None:
        self._refresh_cart()
        self._refresh_search()

    def _refresh_cart(self) -> None:
        try:
            cart_widget = self.query_one("#cart-list", Static)
            total_widget = self.query_one("#cart-total", Static)
        except NoMatches:
            return
        total_widget.update(f"Total: {format_money(self.cart.total())}  ({self.cart.item_count} items)")
        if self.cart.is_empty:
            self.cart_selected_index = None
            cart_widget.update("(no items yet)")
            return

        lines = Text()
        for idx, item in enumerate(self.cart):
            if idx > 0:
                lines.append("\n")
            pointer = "➤ " if idx == self.cart_selected_index else "  "
            lines.append(pointer)
            lines.append_text(format_cart_line(item))
        cart_widget.update(lines)

    def _refresh_search(self) -> None:
        self._refresh_search_bar()
        if self.input_state == "normal":
            self._refresh_results(self.products)
            return
        self._refresh_results(self._filtered_results())

    def _dashboard_line(self) -> str:
        try:
            stats = dashboard_stats(self.store)
        except PosError as exc:
            logger.warning("stats_failed error=%r", exc)
            return "Stats unavailable"
        return (
            f"Orders {stats.total_orders} · Pending {stats.pending_orders} · "
            f"Today {format_money(stats.today_revenue)} · Products {stats.active_products}"
        )

    def _refresh_search_bar(self) -> None:
        try:
            bar = self.query_one("#search-bar", Static)
        except NoMatches:
            return
        if self.actor is None:
            bar.update("Sign in to start taking orders.")
            return
        if self.input_state == "normal":
            status = self.system_status or "Ready"
            bar.update(
                "/ search  j/k select  +/- qty  d remove  c checkout  o orders  a admin  L sign out\n"
                f"{self._dashboard_line()}\n{status} · {self.printer_status}"
            )
            return

        text = Text()
        text.append(" MENU ", style="bold #ffffff on #b23a48")
        text.append(f": {self.search_query}")
        bar.update(text)

    def _refresh_results(self, results: list[Product]) -> None:
        try:
            results_widget = self.query_one("#results", Static)
        except NoMatches:
            return
        if not results:
            results_widget.update("No products")
            return

        if self.selected_index >= len(results):
            self.selected_index = 0

        lines = Text()
        for idx, product in enumerate(results):
            if idx > 0:
                lines.append("\n")
            active = self.input_state == "active" and idx == self.selected_index
            lines.append("➤ " if active else "  ")
            lines.append_text(format_menu_item(product))
        results_widget.update(lines)
