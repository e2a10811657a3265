"""
Read-only menu.

Items are numbered from 1 in the order they were added; that is the number
customers see on the menu and pass back when adding to the cart.
"""

from collections.abc import Iterable
from decimal import Decimal

from tasty_bites.domain.errors import InvalidArgumentError
from tasty_bites.domain.models import MenuItem


class Catalog:
    """A restaurant's menu, looked up by menu number, name or category."""

    def __init__(self, name: str, items: Iterable[MenuItem]) -> None:
        self.name = name
        self._items: list[MenuItem] = []
        self._by_name: dict[str, MenuItem] = {}
        for item in items:
            if item.name in self._by_name:
                raise InvalidArgumentError(f"Duplicate menu item {item.name!r}")
            self._items.append(item)
            self._by_name[item.name] = item

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def item_by_index(self, number: int) -> MenuItem:
        """Look up by 1-based menu number."""
        if not 1 <= number <= len(self._items):
            raise InvalidArgumentError(f"No menu item #{number}; choose 1-{len(self._items)}")
        return self._items[number - 1]

    def item_by_name(self, name: str) -> MenuItem:
        try:
            return self._by_name[name]
        except KeyError:
            raise InvalidArgumentError(f"No menu item named {name!r}") from None

    def items_by_category(self) -> dict[str, list[MenuItem]]:
        """Category -> items, both in menu order."""
        grouped: dict[str, list[MenuItem]] = {}
        for item in self._items:
            grouped.setdefault(item.category, []).append(item)
        return grouped


# Default menu for the restaurant
DEFAULT_MENU: list[tuple[str, str, str]] = [
    ("Chicken Momo", "150", "Appetizers"),
    ("Veg Momo", "120", "Appetizers"),
    ("Chicken Chowmein", "140", "Main Course"),
    ("Veg Chowmein", "110", "Main Course"),
    ("Chicken Burger", "180", "Fast Food"),
    ("Veg Burger", "150", "Fast Food"),
    ("Margherita Pizza", "280", "Pizza"),
    ("Chicken Pizza", "350", "Pizza"),
    ("Coke", "60", "Beverages"),
    ("Lassi", "80", "Beverages"),
]


def default_catalog(name: str = "Tasty Bites") -> Catalog:
    return Catalog(
        name,
        (MenuItem(name=item, price=Decimal(price), category=category) for item, price, category in DEFAULT_MENU),
    )
