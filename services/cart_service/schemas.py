from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class CartItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int  # <= 0 removes the line


class CartItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_image_url: Optional[str]
    unit_price: Decimal
    sale_price: Optional[Decimal]
    quantity: int
    total_price: Decimal
    stock_quantity: int


class CartResponse(BaseModel):
    items: List[CartItemResponse] = []
    sub_total: Decimal = Decimal("0.00")
    total_items: int = 0
