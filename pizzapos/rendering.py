"""Rendering helpers for menu, cart and order rows."""

from __future__ import annotations

from decimal import Decimal

from rich.text import Text

from pizzapos.config import CURRENCY_SYMBOL
from pizzapos.models import DINE_IN, OrderItem, OrderView, Product, to_money
from pizzapos.status import STATUS_LABELS

_ORDER_TYPE_LABELS = {"dine_in": "Dine In", "delivery": "Delivery"}


def format_money(amount: Decimal) -> str:
    return f"{CURRENCY_SYMBOL}{to_money(amount)}"


def badge_style(status: str) -> str:
    """Return a consistent badge style for order statuses."""
    if status == "pending":
        return "bold #0b1f0f on #e0c341"
    if status == "in_progress":
        return "bold #ffffff on #2f6db5"
    if status == "completed":
        return "bold #0b1f0f on #5fbf72"
    return "bold #ffffff on #b23a48"


def order_type_label(order_type: str) -> str:
    return _ORDER_TYPE_LABELS.get(order_type, order_type)


def format_menu_item(product: Product) -> Text:
    text = Text(product.name)
    text.append(f"  {format_money(product.price)}", style="green")
    return text


def format_cart_line(item: OrderItem) -> Text:
    text = Text()
    text.append(f"{item.quantity}x ", style="bold")
    text.append(item.name)
    text.append(f"  {format_money(item.subtotal)}", style="green")
    return text


def destination_line(order: OrderView) -> str:
    if order.order_type == DINE_IN:
        return f"Table {order.table_number}"
    return f"{order.customer_name}, {order.customer_address} ({order.customer_location})"


def format_order_label(order: OrderView) -> Text:
    """Render an order header row with a colored status tag."""
    text = Text()
    text.append(f" {STATUS_LABELS.get(order.status, order.status)} ", style=badge_style(order.status))
    text.append(f" #{order.display_id} ", style="bold")
    text.append(f"{order_type_label(order.order_type)} · {destination_line(order)}")
    text.append(f"  {format_money(order.total_amount)}", style="green")
    return text


def format_order_items(order: OrderView, limit: int = 3) -> Text:
    """Render the first few line items, summarizing the rest."""
    text = Text(style="dim")
    shown = order.items[:limit]
    text.append(", ".join(f"{line.quantity}x {line.product_name}" for line in shown))
    hidden = len(order.items) - len(shown)
    if hidden > 0:
        text.append(f" ... and {hidden} more items")
    created = order.created_at.astimezone().strftime("%H:%M")
    text.append(f"  [{created} · {order.creator_label}]")
    return text


def format_order_summary(order: OrderView) -> Text:
    """Render every line of an order with subtotals, the total and where it goes."""
    text = Text()
    text.append(f"Order #{order.display_id}  ", style="bold")
    text.append(f" {STATUS_LABELS.get(order.status, order.status)} ", style=badge_style(order.status))
    created = order.created_at.astimezone().strftime("%Y-%m-%d %H:%M")
    text.append(f"\n{order_type_label(order.order_type)} · {destination_line(order)}")
    text.append(f"\n{created} · {order.creator_label}\n", style="dim")
    for line in order.items:
        text.append(f"\n{line.quantity}x ", style="bold")
        text.append(line.product_name)
        text.append(f"  {format_money(line.subtotal)}", style="green")
        if line.quantity > 1:
            text.append(f"  (@ {format_money(line.unit_price)})", style="dim")
    text.append(f"\n\nTotal: {format_money(order.total_amount)}", style="bold")
    return text
