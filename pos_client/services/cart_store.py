"""In-memory cart for the active terminal"""

import logging
from decimal import Decimal
from typing import Optional

from ..models import CartLine, Product
from .errors import InvalidTransitionError, OutOfStockError

logger = logging.getLogger(__name__)


class CartStore:
    """
    Current line items of one terminal.

    Lines are merged by product id alone: adding a product that is already
    in the cart increments its quantity and keeps the modifiers chosen the
    first time.
    """

    def __init__(self):
        self._lines: list[CartLine] = []

    @property
    def lines(self) -> list[CartLine]:
        """Copy of the current lines"""
        return [line.model_copy() for line in self._lines]

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def item_count(self) -> int:
        """Total quantity across all lines"""
        return sum(line.quantity for line in self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def get(self, product_id: int) -> Optional[CartLine]:
        return next(
            (line for line in self._lines if line.product_id == product_id),
            None,
        )

    def add(self, line: CartLine) -> CartLine:
        """Add a line, merging into an existing line for the same product"""
        existing = self.get(line.product_id)

        if existing:
            existing.quantity += 1
            logger.debug(f"Merged {existing.name} into cart, quantity={existing.quantity}")
            return existing

        added = line.model_copy(update={"quantity": 1})
        self._lines.append(added)
        logger.debug(f"Added {added.name} to cart")
        return added

    def add_product(self, product: Product) -> CartLine:
        """Direct-add path for products without selectable sizes"""
        if product.out_of_stock:
            raise OutOfStockError(f"{product.name} is out of stock")
        if product.has_sizes:
            raise InvalidTransitionError(f"Select a size for {product.name} first")

        return self.add(
            CartLine(
                product_id=product.id,
                name=product.name,
                unit_price=product.price,
                category=product.category,
            )
        )

    def remove(self, product_id: int) -> None:
        """Remove every line for the product"""
        self._lines = [line for line in self._lines if line.product_id != product_id]

    def set_quantity(self, product_id: int, quantity: int) -> None:
        """Overwrite a line's quantity; zero or less removes it"""
        if quantity <= 0:
            self.remove(product_id)
            return

        for line in self._lines:
            if line.product_id == product_id:
                line.quantity = quantity

    def clear(self) -> None:
        self._lines = []

    def load(self, lines: list[CartLine]) -> None:
        """Replace the cart contents, e.g. when a held sale is resumed"""
        self._lines = [line.model_copy() for line in lines]

    @property
    def subtotal(self) -> Decimal:
        return sum((line.line_total for line in self._lines), Decimal("0"))
