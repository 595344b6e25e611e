"""Mock menu database"""

from decimal import Decimal
from typing import Optional

from ..models.menu import MenuItem, MenuItemSize

OUT_OF_STOCK = "Out of Stock"
AVAILABLE = "Available"


def _sizes(*entries: tuple) -> list[MenuItemSize]:
    return [
        MenuItemSize(id=size_id, label=label, price=Decimal(price), available=available)
        for size_id, label, price, available in entries
    ]


# Seed menu, two branches
MENU_ITEMS: dict[int, MenuItem] = {
    1: MenuItem(
        id=1,
        item_name="Caramel Macchiato",
        category="Coffee",
        description="Espresso, steamed milk and vanilla with a caramel drizzle.",
        price=Decimal("150.00"),
        branch_id=1,
        stock=50,
        sizes=_sizes(
            (1, "Small", "120.00", True),
            (2, "Medium", "150.00", True),
            (3, "Large", "180.00", True),
        ),
    ),
    2: MenuItem(
        id=2,
        item_name="Iced Americano",
        category="Coffee",
        description="Double shot over ice.",
        price=Decimal("110.00"),
        branch_id=1,
        stock=40,
        sizes=_sizes(
            (4, "Small", "95.00", True),
            (5, "Medium", "110.00", True),
            (6, "Large", "130.00", False),
        ),
    ),
    3: MenuItem(
        id=3,
        item_name="Matcha Latte",
        category="Non-Coffee",
        description="Ceremonial matcha with milk.",
        price=Decimal("160.00"),
        branch_id=1,
        stock=30,
        sizes=_sizes(
            (7, "Medium", "160.00", True),
            (8, "Large", "190.00", True),
        ),
    ),
    4: MenuItem(
        id=4,
        item_name="Butter Croissant",
        category="Pastry",
        description="Baked every morning.",
        price=Decimal("85.00"),
        branch_id=1,
        stock=20,
    ),
    5: MenuItem(
        id=5,
        item_name="Blueberry Cheesecake",
        category="Pastry",
        description="New York style, by the slice.",
        price=Decimal("145.00"),
        is_available=OUT_OF_STOCK,
        branch_id=1,
        stock=0,
    ),
    6: MenuItem(
        id=6,
        item_name="Spanish Latte",
        category="Coffee",
        description="Espresso with condensed milk.",
        price=Decimal("155.00"),
        branch_id=2,
        stock=35,
        sizes=_sizes(
            (9, "Medium", "155.00", True),
            (10, "Large", "185.00", True),
        ),
    ),
    7: MenuItem(
        id=7,
        item_name="Ensaymada",
        category="Pastry",
        description="Brioche with butter, sugar and cheese.",
        price=Decimal("60.00"),
        branch_id=2,
        stock=25,
    ),
}


class MenuDatabase:
    """In-memory menu with per-item serving stock"""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.items = {item_id: item.model_copy(deep=True) for item_id, item in MENU_ITEMS.items()}

    def get_item(self, item_id: int) -> Optional[MenuItem]:
        return self.items.get(item_id)

    def list_items(self, branch_id: Optional[int] = None) -> list[MenuItem]:
        """All items, or those of one branch"""
        items = list(self.items.values())
        if branch_id is not None:
            items = [item for item in items if item.branch_id == branch_id]
        return items

    def has_stock(self, item_id: int, quantity: int) -> bool:
        item = self.items.get(item_id)
        return item is not None and item.stock >= quantity

    def update_stock(self, item_id: int, quantity_change: int) -> bool:
        """
        Update serving stock.

        Args:
            item_id: Menu item to update
            quantity_change: Positive to add, negative to remove

        Returns:
            True if successful
        """
        item = self.items.get(item_id)
        if not item:
            return False

        new_quantity = item.stock + quantity_change
        if new_quantity < 0:
            return False

        item.stock = new_quantity
        item.is_available = AVAILABLE if new_quantity > 0 else OUT_OF_STOCK
        return True


# Singleton instance
menu_db = MenuDatabase()
