"""Menu models for the mock backend"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class MenuItemSize(BaseModel):
    id: int
    label: str
    price: Decimal = Field(ge=0)
    available: bool = True

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class MenuItem(BaseModel):
    """Menu item of one branch; ``stock`` counts servings left"""
    id: int
    item_name: str
    category: str
    description: str = ""
    price: Decimal = Field(ge=0)
    is_available: str = "Available"
    image: Optional[str] = None
    branch_id: int = 1
    stock: int = 0
    sizes: list[MenuItemSize] = []

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def price_for(self, size_id: Optional[int]) -> Optional[Decimal]:
        """Unit price for a size, the base price when no size is given"""
        if size_id is None:
            return self.price
        size = next((s for s in self.sizes if s.id == size_id), None)
        return size.price if size else None

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude={"stock", "branch_id"})
