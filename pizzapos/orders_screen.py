"""Order list screen: filters, date grouping, status changes and receipts."""

from __future__ import annotations

import logging
from datetime import date

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import Key
from textual.screen import Screen
from textual.widgets import Header, Static

from pizzapos.errors import PosError
from pizzapos.models import FILTER_ALL, ORDER_TYPES, OrderFilters, OrderView
from pizzapos.order_summary import OrderSummaryModal
from pizzapos.persistence import Store
from pizzapos.printer import print_order_receipt
from pizzapos.queries import group_by_date, list_orders
from pizzapos.rendering import format_order_items, format_order_label, order_type_label
from pizzapos.status import STATUS_LABELS, advance_order, next_status

logger = logging.getLogger(__name__)

_STATUS_CYCLE = (FILTER_ALL, "pending", "in_progress", "completed")
_TYPE_CYCLE = (FILTER_ALL, *ORDER_TYPES)


def _cycle(options: tuple[str, ...], current: str) -> str:
    idx = options.index(current) if current in options else 0
    return options[(idx + 1) % len(options)]


class OrdersScreen(Screen[None]):
    """Browse persisted orders grouped by day."""

    CSS = """
    #orders-filters {
        border: heavy $secondary;
        padding: 0 1;
        height: 4;
    }

    #orders-body {
        height: 1fr;
        border: round $primary;
        padding: 0 1;
    }
    """

    BINDINGS = [
        ("escape", "close", "Back"),
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("up", "move_cursor(-1)", "Previous"),
    ]

    def __init__(self, store: Store) -> None:
        super().__init__()
        self.store = store
        self.filters = OrderFilters()
        self.orders: list[OrderView] = []
        self.cursor = 0
        self.typing_search = False
        self.status_message = ""

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical():
            yield Static(id="orders-filters")
            yield Static(id="orders-body")

    def on_mount(self) -> None:
        self._reload()

    def on_key(self, event: Key) -> None:
        if self.typing_search:
            self._handle_search_key(event)
            return

        if not event.is_printable or not event.character:
            return

        key = event.character.lower()
        if key == "s":
            self._set_filters(status=_cycle(_STATUS_CYCLE, self.filters.status))
        elif key == "t":
            self._set_filters(order_type=_cycle(_TYPE_CYCLE, self.filters.order_type))
        elif key == "/":
            self.typing_search = True
            self._refresh_filters()
        elif key == "n":
            self._advance_selected()
        elif key == "p":
            self._print_selected()
        elif key == "v":
            self._view_selected()
        elif key == "r":
            self._reload()
        else:
            return
        event.stop()

    def _handle_search_key(self, event: Key) -> None:
        if event.key in {"escape", "enter"}:
            self.typing_search = False
            self._refresh_filters()
        elif event.key == "backspace":
            self._set_filters(search=self.filters.search[:-1])
        elif event.is_printable and event.character:
            self._set_filters(search=self.filters.search + event.character)
        event.stop()

    def action_close(self) -> None:
        if self.typing_search:
            return
        self.dismiss(None)

    def action_move_cursor(self, delta: int) -> None:
        if self.typing_search or not self.orders:
            return
        self.cursor = (self.cursor + delta) % len(self.orders)
        self._refresh_orders()

    def _set_filters(self, **changes: str) -> None:
        current = {
            "status": self.filters.status,
            "order_type": self.filters.order_type,
            "search": self.filters.search,
        }
        current.update(changes)
        self.filters = OrderFilters(**current)
        self.cursor = 0
        self._reload()

    def _reload(self) -> None:
        try:
            self.orders = list_orders(self.store, self.filters)
        except PosError as exc:
            self.orders = []
            self.status_message = f"Failed to load orders: {exc}"
        if self.cursor >= len(self.orders):
            self.cursor = max(0, len(self.orders) - 1)
        self._refresh_filters()
        self._refresh_orders()

    def _selected(self) -> OrderView | None:
        if not self.orders:
            return None
        return self.orders[self.cursor]

    def _advance_selected(self) -> None:
        order = self._selected()
        if order is None:
            return
        if next_status(order.status) is None:
            self.status_message = f"Order #{order.display_id} is already {STATUS_LABELS[order.status].lower()}"
            self._refresh_filters()
            return
        try:
            status = advance_order(self.store, order.order_id)
        except PosError as exc:
            self.status_message = f"Failed to update order status: {exc}"
            self.app.notify(self.status_message, severity="error")
        else:
            self.status_message = f"Order #{order.display_id} status updated to {STATUS_LABELS[status]}"
            self.app.notify(self.status_message)
        self._reload()

    def _view_selected(self) -> None:
        order = self._selected()
        if order is None:
            return
        self.app.push_screen(OrderSummaryModal(self.store, order.order_id), lambda _: self._reload())

    def _print_selected(self) -> None:
        order = self._selected()
        if order is None:
            return
        try:
            print_order_receipt(order)
        except Exception as exc:
            logger.warning("receipt_failed order_id=%s error=%r", order.order_id, exc)
            self.status_message = f"Print failed: {exc}"
        else:
            self.status_message = f"Printed #{order.display_id}"
        self._refresh_filters()

    def _refresh_filters(self) -> None:
        status_label = "All Statuses" if self.filters.status == FILTER_ALL else STATUS_LABELS[self.filters.status]
        type_label = "All Types" if self.filters.order_type == FILTER_ALL else order_type_label(self.filters.order_type)
        text = Text()
        text.append("[s] ", style="bold")
        text.append(f"{status_label}   ")
        text.append("[t] ", style="bold")
        text.append(f"{type_label}   ")
        text.append("[/] ", style="bold")
        text.append(f"#{self.filters.search}")
        if self.typing_search:
            text.append("▏", style="blink")
        text.append("\n[v] view  [n] next status  [p] print  [r] reload  [esc] back", style="dim")
        if self.status_message:
            text.append(f"   {self.status_message}")
        self.query_one("#orders-filters", Static).update(text)

    def _refresh_orders(self) -> None:
        body = self.query_one("#orders-body", Static)
        if not self.orders:
            body.update("No orders found")
            return

        today = date.today()
        lines = Text()
        idx = 0
        for day, bucket in group_by_date(self.orders):
            if lines:
                lines.append("\n")
            heading = "Today" if day == today else day.strftime("%A, %d %B %Y")
            lines.append(f"{heading} ({len(bucket)})\n", style="bold underline")
            for order in bucket:
                pointer = "➤ " if idx == self.cursor else "  "
                lines.append(pointer)
                lines.append_text(format_order_label(order))
                lines.append("\n    ")
                lines.append_text(format_order_items(order))
                lines.append("\n")
                idx += 1
        body.update(lines)
