"""
Modifier Selection

Wizard that forces the operator through Size -> Sweetness before a sized
product becomes a cart line. Products without sizes skip the wizard and
are added straight to the cart at their base price.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Optional

from ..models import CartLine, DEFAULT_SUGAR_LEVEL, Product, SizeOption, SugarLevel
from .cart_store import CartStore
from .errors import InvalidTransitionError, OutOfStockError

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    CLOSED = "closed"
    SIZE_SELECT = "size_select"
    SWEETNESS_SELECT = "sweetness_select"


class ModifierSelectionFlow:
    """Short-lived selection state for one product at a time"""

    def __init__(self, cart: CartStore):
        self.cart = cart
        self.step = WizardStep.CLOSED
        self.product: Optional[Product] = None
        self.size: Optional[SizeOption] = None
        self.sugar_level: Optional[SugarLevel] = None

    @property
    def price(self) -> Optional[Decimal]:
        return self.size.price if self.size else None

    def _require(self, step: WizardStep) -> None:
        if self.step != step:
            raise InvalidTransitionError(
                f"Cannot do that while the wizard is {self.step.value}"
            )

    def _reset(self) -> None:
        self.step = WizardStep.CLOSED
        self.product = None
        self.size = None
        self.sugar_level = None

    def open(self, product: Product) -> Optional[CartLine]:
        """
        Start selection for a product.

        Returns the cart line when the product has no sizes and was added
        directly, otherwise None with the wizard at size selection.
        """
        if product.out_of_stock:
            raise OutOfStockError(f"{product.name} is out of stock")

        if not product.has_sizes:
            return self.cart.add_product(product)

        first_size = product.first_available_size()
        if first_size is None:
            raise OutOfStockError(f"No sizes of {product.name} are available")

        self._reset()
        self.product = product
        self.size = first_size
        self.step = WizardStep.SIZE_SELECT
        logger.debug(f"Size selection opened for {product.name}, preselected {first_size.label}")
        return None

    def select_size(self, size_id: int) -> SizeOption:
        self._require(WizardStep.SIZE_SELECT)

        size = self.product.get_size(size_id)
        if size is None:
            raise InvalidTransitionError(f"Unknown size {size_id} for {self.product.name}")
        if not size.available:
            raise OutOfStockError(f"{size.label} {self.product.name} is not available")

        self.size = size
        return size

    def confirm_size(self) -> None:
        self._require(WizardStep.SIZE_SELECT)
        self.sugar_level = DEFAULT_SUGAR_LEVEL
        self.step = WizardStep.SWEETNESS_SELECT

    def select_sugar(self, level: SugarLevel) -> None:
        self._require(WizardStep.SWEETNESS_SELECT)
        self.sugar_level = SugarLevel(level)

    def confirm(self) -> CartLine:
        """Package the selections into a cart line and add it"""
        self._require(WizardStep.SWEETNESS_SELECT)

        line = CartLine(
            product_id=self.product.id,
            name=self.product.name,
            unit_price=self.size.price,
            category=self.product.category,
            selected_size=self.size.label,
            selected_size_id=self.size.id,
            sugar_level=self.sugar_level or DEFAULT_SUGAR_LEVEL,
        )
        self._reset()
        return self.cart.add(line)

    def cancel(self) -> None:
        """Discard in-progress selections without touching the cart"""
        self._reset()

    def to_dict(self) -> dict:
        return {
            "step": self.step.value,
            "productId": self.product.id if self.product else None,
            "sizeId": self.size.id if self.size else None,
            "size": self.size.label if self.size else None,
            "price": str(self.price) if self.price is not None else None,
            "sugarLevel": self.sugar_level.value if self.sugar_level else None,
        }
