"""In-memory order draft built up before submission."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterator

from pizzapos.errors import InvalidQuantity
from pizzapos.models import OrderItem, Product, to_money


class Cart:
    """Ordered mapping of product id to cart line, one line per product."""

    def __init__(self) -> None:
        self._items: dict[str, OrderItem] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[OrderItem]:
        return iter(list(self._items.values()))

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._items

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items.values())

    def get(self, product_id: str) -> OrderItem | None:
        return self._items.get(product_id)

    def add_item(self, product: Product) -> OrderItem:
        """Add one unit of a product, fixing its unit price on first addition."""
        existing = self._items.get(product.product_id)
        if existing is not None:
            existing.quantity += 1
            return existing

        item = OrderItem(product_id=product.product_id, name=product.name, unit_price=product.price)
        self._items[product.product_id] = item
        return item

    def set_quantity(self, product_id: str, quantity: int) -> None:
        """Set a line's quantity; zero removes the line."""
        if quantity < 0:
            raise InvalidQuantity(quantity)
        if quantity == 0:
            self._items.pop(product_id, None)
            return
        item = self._items.get(product_id)
        if item is None:
            return
        item.quantity = quantity

    def remove(self, product_id: str) -> None:
        self._items.pop(product_id, None)

    def clear(self) -> None:
        self._items.clear()

    def total(self) -> Decimal:
        """Sum of quantity x unit price over all lines, at currency precision."""
        return to_money(sum((item.subtotal for item in self._items.values()), Decimal(0)))
