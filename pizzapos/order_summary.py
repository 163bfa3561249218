"""Modal showing one persisted order in full."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from pizzapos.errors import PosError
from pizzapos.models import OrderView
from pizzapos.persistence import Store
from pizzapos.printer import print_order_receipt
from pizzapos.queries import get_order
from pizzapos.rendering import format_order_summary
from pizzapos.status import STATUS_LABELS, advance_order, next_status

logger = logging.getLogger(__name__)


class OrderSummaryModal(ModalScreen[None]):
    """Lines, subtotals, total and destination of an order; print or advance it."""

    CSS = """
    OrderSummaryModal {
        align: center middle;
        background: $background 60%;
    }

    #summary-dialog {
        width: 72;
        height: auto;
        max-height: 90%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #summary-body {
        color: white;
        margin-bottom: 1;
    }

    #summary-status {
        color: #dddddd;
    }
    """

    def __init__(self, store: Store, order_id: str) -> None:
        super().__init__()
        self.store = store
        self.order_id = order_id
        self.order: OrderView | None = None
        self.status_message = ""

    def compose(self) -> ComposeResult:
        with Container(id="summary-dialog"):
            yield Static(id="summary-body")
            yield Static(id="summary-status")

    def on_mount(self) -> None:
        self._reload()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "enter", "q", "ctrl+c"}:
            self.dismiss(None)
        elif event.key == "p":
            self._print()
        elif event.key == "n":
            self._advance()
        event.stop()

    def _reload(self) -> None:
        try:
            self.order = get_order(self.store, self.order_id)
        except PosError as exc:
            self.order = None
            self.status_message = f"Failed to load order: {exc}"
        self._refresh_content()

    def _print(self) -> None:
        if self.order is None:
            return
        try:
            print_order_receipt(self.order)
        except Exception as exc:
            logger.warning("receipt_failed order_id=%s error=%r", self.order_id, exc)
            self.status_message = f"Print failed: {exc}"
        else:
            self.status_message = f"Printed #{self.order.display_id}"
        self._refresh_content()

    def _advance(self) -> None:
        if self.order is None:
            return
        if next_status(self.order.status) is None:
            self.status_message = f"Already {STATUS_LABELS[self.order.status].lower()}"
            self._refresh_content()
            return
        try:
            status = advance_order(self.store, self.order_id)
        except PosError as exc:
            self.status_message = f"Failed to update order status: {exc}"
        else:
            self.status_message = f"Status updated to {STATUS_LABELS[status]}"
        self._reload()

    def _refresh_content(self) -> None:
        body = self.query_one("#summary-body", Static)
        if self.order is None:
            body.update("Order not available")
        else:
            body.update(format_order_summary(self.order))
        help_text = Text("[p] print  [n] next status  [esc] close", style="dim")
        if self.status_message:
            help_text.append(f"\n{self.status_message}", style="")
        self.query_one("#summary-status", Static).update(help_text)
