from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.schemas import OrderResponse
from shared.config import settings
from shared.config.database import get_db
from shared.security import CurrentUser, get_current_user

from .gateway import StripeGateway, get_payment_gateway
from .schemas import (
    ConfirmPaymentRequest,
    PaymentConfigResponse,
    PaymentIntentRequest,
    PaymentIntentResponse,
    WebhookAck,
)
from .service import PaymentService

router = APIRouter(prefix="/payment", tags=["Payments"])


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    payload: PaymentIntentRequest,
    user: CurrentUser = Depends(get_current_user),
    gateway: StripeGateway = Depends(get_payment_gateway),
    db: AsyncSession = Depends(get_db),
):
    return await PaymentService.create_payment_intent(db, gateway, user.id, payload)


@router.get("/config", response_model=PaymentConfigResponse)
async def payment_config():
    return PaymentConfigResponse(publishable_key=settings.STRIPE_PUBLISHABLE_KEY)


@router.post("/webhook", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    db: AsyncSession = Depends(get_db),
):
    """Raw body is read unparsed; the signature covers the exact bytes."""
    payload = await request.body()
    await PaymentService.handle_webhook(db, payload, stripe_signature)
    return WebhookAck()


@router.post("/confirm-payment", response_model=OrderResponse)
async def confirm_payment(
    payload: ConfirmPaymentRequest,
    user: CurrentUser = Depends(get_current_user),
    gateway: StripeGateway = Depends(get_payment_gateway),
    db: AsyncSession = Depends(get_db),
):
    return await PaymentService.confirm_payment(db, gateway, user.id, payload)
