from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = ""
    image_url: Optional[str] = None


class CategoryUpdate(CategoryCreate):
    is_active: bool = True


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: str
    image_url: Optional[str]
    is_active: bool
    product_count: int = 0

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    price: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    sale_price: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    stock_quantity: int = Field(default=0, ge=0)
    image_url: Optional[str] = None
    images: List[str] = []
    sku: Optional[str] = None
    is_featured: bool = False
    category_id: int


class ProductUpdate(ProductCreate):
    is_active: bool = True


class StockUpdate(BaseModel):
    stock_quantity: int = Field(ge=0)


class ProductListResponse(BaseModel):
    id: int
    name: str
    price: Decimal
    sale_price: Optional[Decimal]
    image_url: Optional[str]
    stock_quantity: int
    is_active: bool
    is_featured: bool
    category_name: str

    class Config:
        from_attributes = True


class ProductResponse(ProductListResponse):
    description: str
    images: List[str]
    sku: Optional[str]
    category_id: int
    created_at: Optional[datetime]


class ProductQuery(BaseModel):
    category_id: Optional[int] = None
    featured: Optional[bool] = None
    include_inactive: bool = False
    search: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    sort_by: Literal["name", "price", "date"] = "name"
    descending: bool = False
