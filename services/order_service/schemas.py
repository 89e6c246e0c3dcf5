from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .status import OrderStatus, PaymentStatus


def _lower(value):
    return value.strip().lower() if isinstance(value, str) else value


class ShippingInfo(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    address: str = Field(min_length=1, max_length=500)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(default="", max_length=100)
    zip_code: str = Field(default="", max_length=20)
    country: str = Field(min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)


class ShippingInfoResponse(BaseModel):
    name: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str
    phone: Optional[str]


class OrderCreate(BaseModel):
    shipping_info: ShippingInfo
    payment_method: Optional[str] = None
    customer_notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    admin_notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return _lower(value)


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus
    payment_transaction_id: Optional[str] = None

    @field_validator("payment_status", mode="before")
    @classmethod
    def normalize_payment_status(cls, value):
        return _lower(value)


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_image_url: Optional[str]
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class OrderListResponse(BaseModel):
    id: int
    order_number: str
    total_amount: Decimal
    status: OrderStatus
    payment_status: PaymentStatus
    item_count: int
    created_at: datetime

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    order_number: str
    user_id: int
    subtotal: Decimal
    tax: Decimal
    shipping_cost: Decimal
    total_amount: Decimal
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: Optional[str]
    shipping_info: ShippingInfoResponse
    customer_notes: Optional[str]
    items: List[OrderItemResponse]
    created_at: datetime
    shipped_at: Optional[datetime]
    delivered_at: Optional[datetime]

    class Config:
        from_attributes = True


class StatusChangeResponse(BaseModel):
    id: int
    status: OrderStatus
    payment_status: PaymentStatus

    class Config:
        from_attributes = True
