"""Cart models for the cashier terminal"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class SugarLevel(str, Enum):
    """Sweetness options offered by the modifier wizard"""
    FULL = "100%"
    LESS = "75%"
    HALF = "50%"
    SLIGHT = "25%"
    NONE = "0%"


DEFAULT_SUGAR_LEVEL = SugarLevel.FULL


class CartLine(BaseModel):
    """A product instance inside the cart"""
    product_id: int
    name: str
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(default=1, ge=1)
    category: str = ""
    selected_size: Optional[str] = None
    selected_size_id: Optional[int] = None
    sugar_level: Optional[SugarLevel] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity
