"""Tests for order summary rendering."""

from dataclasses import replace

from conftest import local_time, make_line, make_order
from pizzapos.models import DELIVERY, IN_PROGRESS
from pizzapos.rendering import format_order_items, format_order_summary


def _order(**kwargs):
    items = (make_line("Margherita Pizza", 2, "12.99"), make_line("Soda", 1, "2.99"))
    return make_order(local_time(2025, 7, 27, 18, 5), "28.97", items=items, order_id="abcdef12" + "0" * 24, **kwargs)


def test_summary_lists_every_line_and_the_total():
    text = format_order_summary(_order()).plain

    assert "Order #abcdef12" in text
    assert "Pending" in text
    assert "Dine In · Table 1" in text
    assert "2025-07-27 18:05" in text
    assert "2x Margherita Pizza  $25.98  (@ $12.99)" in text
    assert "1x Soda  $2.99" in text
    assert "(@ $2.99)" not in text
    assert text.endswith("Total: $28.97")


def test_summary_shows_delivery_destination_and_status():
    order = replace(
        _order(order_type=DELIVERY, status=IN_PROGRESS),
        customer_name="Ann",
        customer_address="1 Main St",
        customer_location="Park",
        creator_name="Sam Counter",
    )

    text = format_order_summary(order).plain

    assert "Delivery · Ann, 1 Main St (Park)" in text
    assert "In Progress" in text
    assert "Sam Counter" in text
    assert "Table" not in text


def test_item_preview_truncates_after_three_lines():
    items = tuple(make_line(f"Item{n}", 1, "1.00") for n in range(5))
    order = make_order(local_time(2025, 7, 27, 18, 5), "5.00", items=items)

    text = format_order_items(order).plain

    assert "1x Item0, 1x Item1, 1x Item2" in text
    assert "Item3" not in text
    assert "... and 2 more items" in text
