"""
Stripe adapter.

Wraps the Stripe SDK's async PaymentIntent calls and webhook verification.
SDK errors surface as `PaymentGatewayError` (HTTP 502); bad webhook
signatures as `WebhookSignatureError` (HTTP 400).
"""
from dataclasses import dataclass, field
from typing import Dict, Optional

import stripe
import structlog

from shared.config import settings
from shared.errors import BusinessRuleError, ExternalServiceError

logger = structlog.get_logger(__name__)

SIGNATURE_TOLERANCE_SECONDS = 300


class PaymentGatewayError(ExternalServiceError):
    pass


class WebhookSignatureError(BusinessRuleError):
    pass


@dataclass
class PaymentIntent:
    id: str
    status: str
    amount: int
    currency: str
    client_secret: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload) -> "PaymentIntent":
        return cls(
            id=payload["id"],
            status=payload.get("status") or "",
            amount=int(payload.get("amount") or 0),
            currency=payload.get("currency") or "",
            client_secret=payload.get("client_secret"),
            metadata=dict(payload.get("metadata") or {}),
        )


class StripeGateway:

    def __init__(self, secret_key: str):
        self.secret_key = secret_key

    def _ensure_configured(self) -> None:
        if not self.secret_key:
            raise PaymentGatewayError("Payment gateway is not configured")

    async def create_payment_intent(
        self, amount: int, currency: str, metadata: Optional[Dict[str, str]] = None
    ) -> PaymentIntent:
        self._ensure_configured()
        try:
            intent = await stripe.PaymentIntent.create_async(
                api_key=self.secret_key,
                amount=amount,
                currency=currency,
                automatic_payment_methods={"enabled": True},
                metadata={key: str(value) for key, value in (metadata or {}).items()},
            )
        except stripe.StripeError as exc:
            raise _gateway_error("create_payment_intent", exc) from exc
        return PaymentIntent.from_api(intent)

    async def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        self._ensure_configured()
        try:
            intent = await stripe.PaymentIntent.retrieve_async(intent_id, api_key=self.secret_key)
        except stripe.StripeError as exc:
            raise _gateway_error("retrieve_payment_intent", exc) from exc
        return PaymentIntent.from_api(intent)


def _gateway_error(operation: str, exc: stripe.StripeError) -> PaymentGatewayError:
    if isinstance(exc, stripe.APIConnectionError):
        logger.error("payment_gateway_unreachable", operation=operation, error=str(exc))
        return PaymentGatewayError("Payment gateway unavailable")
    logger.warning("payment_gateway_error", operation=operation, status=exc.http_status, message=exc.user_message)
    return PaymentGatewayError(exc.user_message or "Payment gateway error")


def construct_webhook_event(
    payload: bytes,
    header: Optional[str],
    secret: str,
    tolerance: int = SIGNATURE_TOLERANCE_SECONDS,
):
    """Verifies the `Stripe-Signature` header against the raw body and parses the event."""
    if not header:
        raise WebhookSignatureError("Missing signature header")
    try:
        return stripe.Webhook.construct_event(payload, header, secret, tolerance=tolerance)
    except stripe.SignatureVerificationError as exc:
        raise WebhookSignatureError("Invalid signature") from exc
    except ValueError as exc:
        raise BusinessRuleError("Invalid webhook payload") from exc


def get_payment_gateway() -> StripeGateway:
    return StripeGateway(settings.STRIPE_SECRET_KEY)
