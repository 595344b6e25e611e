"""Menu catalog models"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

OUT_OF_STOCK = "out of stock"


class SizeOption(BaseModel):
    """Selectable size of a menu item"""
    id: int
    label: str
    price: Decimal = Field(ge=0)
    available: bool = True

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


class Product(BaseModel):
    """Menu item as fetched from the branch catalog"""
    id: int
    name: str = Field(alias="itemName")
    category: str = ""
    description: str = ""
    price: Decimal = Field(ge=0)
    is_available: str = "Available"
    image: Optional[str] = None
    sizes: list[SizeOption] = []

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True

    @property
    def out_of_stock(self) -> bool:
        return self.is_available.strip().lower() == OUT_OF_STOCK

    @property
    def has_sizes(self) -> bool:
        return len(self.sizes) > 0

    def first_available_size(self) -> Optional[SizeOption]:
        return next((size for size in self.sizes if size.available), None)

    def get_size(self, size_id: int) -> Optional[SizeOption]:
        return next((size for size in self.sizes if size.id == size_id), None)
