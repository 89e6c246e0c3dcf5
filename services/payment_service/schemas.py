from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from services.order_service.schemas import ShippingInfo


class PaymentIntentRequest(BaseModel):
    shipping_cost: Optional[Decimal] = Field(default=None, ge=0)


class PaymentIntentResponse(BaseModel):
    client_secret: Optional[str]
    payment_intent_id: str
    amount: int
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


class PaymentConfigResponse(BaseModel):
    publishable_key: str


class ConfirmPaymentRequest(BaseModel):
    payment_intent_id: str = Field(min_length=1)
    shipping_info: ShippingInfo
    shipping_cost: Optional[Decimal] = Field(default=None, ge=0)
    customer_notes: Optional[str] = None


class WebhookAck(BaseModel):
    received: bool = True
