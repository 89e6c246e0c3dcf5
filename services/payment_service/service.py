import json

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.cart_service.repository import CartRepository
from services.order_service.models import Order
from services.order_service.pricing import compute_totals
from services.order_service.schemas import OrderCreate
from services.order_service.service import OrderService
from services.order_service.status import PaymentStatus
from shared.config import settings
from shared.errors import BusinessRuleError, EmptyCartError, PermissionDeniedError
from shared.observability import ecomm_payment_webhooks_total

from .gateway import StripeGateway, construct_webhook_event
from .schemas import ConfirmPaymentRequest, PaymentIntentRequest, PaymentIntentResponse

logger = structlog.get_logger(__name__)

PAYMENT_METHOD = "stripe"


class PaymentService:

    @staticmethod
    async def create_payment_intent(
        db: AsyncSession, gateway: StripeGateway, user_id: int, data: PaymentIntentRequest
    ) -> PaymentIntentResponse:
        cart_items = await CartRepository.list_for_user(db, user_id)
        if not cart_items:
            raise EmptyCartError()

        totals = compute_totals(
            [(item.unit_price, item.quantity) for item in cart_items],
            data.shipping_cost,
        )
        intent = await gateway.create_payment_intent(
            totals.amount_in_minor_units,
            settings.PAYMENT_CURRENCY,
            metadata={"user_id": str(user_id)},
        )
        logger.info("payment_intent_created", user_id=user_id, intent_id=intent.id, amount=intent.amount)

        return PaymentIntentResponse(
            client_secret=intent.client_secret,
            payment_intent_id=intent.id,
            amount=totals.amount_in_minor_units,
            subtotal=totals.subtotal,
            tax=totals.tax,
            shipping=totals.shipping_cost,
            total=totals.total_amount,
        )

    @staticmethod
    async def confirm_payment(
        db: AsyncSession, gateway: StripeGateway, user_id: int, data: ConfirmPaymentRequest
    ) -> Order:
        """
        Creates the paid order for a succeeded intent. Repeated calls for the
        same intent return the order created the first time. The cart must
        still add up to the amount the intent charged.
        """
        intent = await gateway.retrieve_payment_intent(data.payment_intent_id)
        if intent.status != "succeeded":
            raise BusinessRuleError("Payment has not been completed")

        owner = intent.metadata.get("user_id")
        if owner is not None and owner != str(user_id):
            raise PermissionDeniedError()

        existing = await OrderService.get_by_transaction_id(db, intent.id)
        if existing is not None:
            if existing.user_id != user_id:
                raise PermissionDeniedError()
            logger.info("payment_already_confirmed", order_id=existing.id, intent_id=intent.id)
            return existing

        if intent.currency.lower() != settings.PAYMENT_CURRENCY.lower():
            logger.warning("payment_currency_mismatch", intent_id=intent.id, currency=intent.currency)
            raise BusinessRuleError("Payment amount does not match order total")

        return await OrderService.checkout(
            db,
            user_id,
            OrderCreate(
                shipping_info=data.shipping_info,
                payment_method=PAYMENT_METHOD,
                customer_notes=data.customer_notes,
            ),
            shipping_override=data.shipping_cost,
            payment_status=PaymentStatus.PAID,
            payment_method=PAYMENT_METHOD,
            transaction_id=intent.id,
            expected_amount=intent.amount,
        )

    @staticmethod
    async def handle_webhook(db: AsyncSession, payload: bytes, signature: str | None) -> None:
        if settings.STRIPE_WEBHOOK_SECRET:
            event = construct_webhook_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
        else:
            try:
                event = json.loads(payload)
            except ValueError:
                raise BusinessRuleError("Invalid webhook payload")

        try:
            event_type = event["type"]
            intent = event["data"]["object"]
        except (KeyError, TypeError):
            raise BusinessRuleError("Invalid webhook payload")

        ecomm_payment_webhooks_total.labels(event_type=event_type).inc()
        logger.info("payment_webhook_received", event_type=event_type)

        if event_type == "payment_intent.succeeded":
            order = await OrderService.mark_paid(db, intent.get("id", ""))
            if order is None:
                logger.info("webhook_intent_without_order", intent_id=intent.get("id"))
            else:
                logger.info("webhook_payment_succeeded", order_id=order.id, intent_id=intent.get("id"))
        elif event_type == "payment_intent.payment_failed":
            error = (intent.get("last_payment_error") or {}).get("message")
            logger.warning("webhook_payment_failed", intent_id=intent.get("id"), error=error)
        else:
            logger.debug("webhook_event_ignored", event_type=event_type)
