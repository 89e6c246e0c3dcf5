import hashlib
import hmac
import json
import time
from decimal import Decimal

import pytest
import stripe

from conftest import SHIPPING_INFO
from services.order_service.models import Order
from services.payment_service.gateway import (
    PaymentGatewayError,
    PaymentIntent,
    StripeGateway,
    WebhookSignatureError,
    construct_webhook_event,
    get_payment_gateway,
)
from main import app
from shared.config import settings
from shared.config.database import AsyncSessionLocal


class FakeGateway:
    def __init__(self):
        self.created = []
        self.intents = {}
        self.fail = False

    async def create_payment_intent(self, amount, currency, metadata=None):
        if self.fail:
            raise PaymentGatewayError("Payment gateway unavailable")
        intent = PaymentIntent(
            id=f"pi_{len(self.created) + 1}",
            status="requires_payment_method",
            amount=amount,
            currency=currency,
            client_secret="secret_abc",
            metadata=dict(metadata or {}),
        )
        self.created.append(intent)
        return intent

    async def retrieve_payment_intent(self, intent_id):
        return self.intents[intent_id]


@pytest.fixture
def gateway():
    fake = FakeGateway()
    app.dependency_overrides[get_payment_gateway] = lambda: fake
    return fake


@pytest.fixture
async def cart_of_two(client, auth, alice, make_product):
    product = await make_product("Headphones", price="50.00", stock=5)
    await client.post("/api/cart", json={"product_id": product.id, "quantity": 2}, headers=auth(alice))
    return product


def sign(payload: bytes, secret: str, timestamp: int) -> str:
    digest = hmac.new(secret.encode(), f"{timestamp}.".encode() + payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


# --- create-payment-intent ---

async def test_create_intent_uses_order_pricing(client, auth, alice, gateway, cart_of_two):
    resp = await client.post("/api/payment/create-payment-intent", json={}, headers=auth(alice))
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["amount"] == 11000
    assert Decimal(body["total"]) == Decimal("110.00")
    assert body["payment_intent_id"] == "pi_1"
    assert body["client_secret"] == "secret_abc"

    [intent] = gateway.created
    assert intent.amount == 11000
    assert intent.currency == settings.PAYMENT_CURRENCY
    assert intent.metadata == {"user_id": str(alice["user_id"])}


async def test_create_intent_with_shipping_override(client, auth, alice, gateway, cart_of_two):
    resp = await client.post("/api/payment/create-payment-intent", json={"shipping_cost": "5.00"}, headers=auth(alice))
    assert resp.json()["amount"] == 11500
    assert Decimal(resp.json()["shipping"]) == Decimal("5.00")


async def test_create_intent_rejects_empty_cart(client, auth, alice, gateway):
    resp = await client.post("/api/payment/create-payment-intent", json={}, headers=auth(alice))
    assert resp.status_code == 400
    assert gateway.created == []


async def test_gateway_failure_maps_to_bad_gateway(client, auth, alice, gateway, cart_of_two):
    gateway.fail = True
    resp = await client.post("/api/payment/create-payment-intent", json={}, headers=auth(alice))
    assert resp.status_code == 502


async def test_payment_config_exposes_publishable_key(client, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_PUBLISHABLE_KEY", "pk_test_123")
    resp = await client.get("/api/payment/config")
    assert resp.json() == {"publishable_key": "pk_test_123"}


# --- confirm-payment ---

async def test_confirm_payment_creates_paid_order_once(
    client, auth, alice, gateway, cart_of_two, stock_of, order_count
):
    gateway.intents["pi_ok"] = PaymentIntent(
        id="pi_ok", status="succeeded", amount=11000, currency="usd",
        metadata={"user_id": str(alice["user_id"])},
    )
    payload = {"payment_intent_id": "pi_ok", "shipping_info": SHIPPING_INFO}

    first = await client.post("/api/payment/confirm-payment", json=payload, headers=auth(alice))
    assert first.status_code == 200, first.text
    order = first.json()
    assert order["payment_status"] == "paid"
    assert order["payment_method"] == "stripe"
    assert Decimal(order["total_amount"]) == Decimal("110.00")

    second = await client.post("/api/payment/confirm-payment", json=payload, headers=auth(alice))
    assert second.status_code == 200
    assert second.json()["id"] == order["id"]
    assert await order_count() == 1
    assert await stock_of(cart_of_two.id) == 3


async def test_confirm_payment_requires_succeeded_intent(client, auth, alice, gateway, cart_of_two, order_count):
    gateway.intents["pi_pending"] = PaymentIntent(id="pi_pending", status="processing", amount=11000, currency="usd")
    resp = await client.post(
        "/api/payment/confirm-payment",
        json={"payment_intent_id": "pi_pending", "shipping_info": SHIPPING_INFO},
        headers=auth(alice),
    )
    assert resp.status_code == 400
    assert await order_count() == 0


async def test_confirm_payment_for_someone_elses_intent(client, auth, alice, bob, gateway, cart_of_two):
    gateway.intents["pi_bob"] = PaymentIntent(
        id="pi_bob", status="succeeded", amount=11000, currency="usd", metadata={"user_id": str(bob["user_id"])}
    )
    resp = await client.post(
        "/api/payment/confirm-payment",
        json={"payment_intent_id": "pi_bob", "shipping_info": SHIPPING_INFO},
        headers=auth(alice),
    )
    assert resp.status_code == 403


async def test_confirm_payment_rejects_cart_grown_after_payment(
    client, auth, alice, gateway, cart_of_two, stock_of, order_count
):
    created = (await client.post("/api/payment/create-payment-intent", json={}, headers=auth(alice))).json()
    gateway.intents[created["payment_intent_id"]] = PaymentIntent(
        id=created["payment_intent_id"], status="succeeded", amount=created["amount"],
        currency=settings.PAYMENT_CURRENCY, metadata={"user_id": str(alice["user_id"])},
    )
    resp = await client.post("/api/cart", json={"product_id": cart_of_two.id, "quantity": 2}, headers=auth(alice))
    assert resp.status_code == 200, resp.text

    resp = await client.post(
        "/api/payment/confirm-payment",
        json={"payment_intent_id": created["payment_intent_id"], "shipping_info": SHIPPING_INFO},
        headers=auth(alice),
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Payment amount does not match order total"
    assert await order_count() == 0
    assert await stock_of(cart_of_two.id) == 5
    cart = (await client.get("/api/cart", headers=auth(alice))).json()
    assert [item["quantity"] for item in cart["items"]] == [4]


async def test_confirm_payment_rejects_other_currency(client, auth, alice, gateway, cart_of_two, order_count):
    gateway.intents["pi_eur"] = PaymentIntent(
        id="pi_eur", status="succeeded", amount=11000, currency="eur",
        metadata={"user_id": str(alice["user_id"])},
    )
    resp = await client.post(
        "/api/payment/confirm-payment",
        json={"payment_intent_id": "pi_eur", "shipping_info": SHIPPING_INFO},
        headers=auth(alice),
    )
    assert resp.status_code == 400
    assert await order_count() == 0


# --- webhook ---

async def _unpaid_order_with_intent(client, auth, alice, intent_id):
    resp = await client.post("/api/orders", json={"shipping_info": SHIPPING_INFO}, headers=auth(alice))
    order_id = resp.json()["id"]
    async with AsyncSessionLocal() as session:
        order = await session.get(Order, order_id)
        order.payment_transaction_id = intent_id
        await session.commit()
    return order_id


async def test_signed_webhook_marks_order_paid(client, auth, alice, cart_of_two, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    order_id = await _unpaid_order_with_intent(client, auth, alice, "pi_hook")

    payload = json.dumps({"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_hook"}}}).encode()
    resp = await client.post(
        "/api/payment/webhook",
        content=payload,
        headers={"Stripe-Signature": sign(payload, "whsec_test", int(time.time()))},
    )
    assert resp.status_code == 200
    assert resp.json() == {"received": True}

    detail = (await client.get(f"/api/orders/{order_id}", headers=auth(alice))).json()
    assert detail["payment_status"] == "paid"


async def test_webhook_with_bad_signature(client, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    payload = b'{"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_x"}}}'
    resp = await client.post(
        "/api/payment/webhook",
        content=payload,
        headers={"Stripe-Signature": sign(payload, "wrong-secret", int(time.time()))},
    )
    assert resp.status_code == 400


async def test_webhook_failed_payment_leaves_order_unpaid(client, auth, alice, cart_of_two, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "")
    order_id = await _unpaid_order_with_intent(client, auth, alice, "pi_fail")

    payload = json.dumps({
        "type": "payment_intent.payment_failed",
        "data": {"object": {"id": "pi_fail", "last_payment_error": {"message": "card declined"}}},
    }).encode()
    assert (await client.post("/api/payment/webhook", content=payload)).status_code == 200

    detail = (await client.get(f"/api/orders/{order_id}", headers=auth(alice))).json()
    assert detail["payment_status"] == "unpaid"


async def test_webhook_with_malformed_payload(client, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "")
    assert (await client.post("/api/payment/webhook", content=b"not json")).status_code == 400


def test_signature_tolerance():
    payload = b'{"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_1"}}}'
    now = int(time.time())

    event = construct_webhook_event(payload, sign(payload, "whsec", now - 100), "whsec")
    assert event["data"]["object"]["id"] == "pi_1"

    with pytest.raises(WebhookSignatureError):
        construct_webhook_event(payload, sign(payload, "whsec", now - 400), "whsec")
    with pytest.raises(WebhookSignatureError):
        construct_webhook_event(payload, None, "whsec")
    with pytest.raises(WebhookSignatureError):
        construct_webhook_event(payload, "v1=abc", "whsec")


# --- gateway adapter ---

async def test_gateway_creates_intent_through_sdk(monkeypatch):
    seen = {}

    async def create_async(**params):
        seen.update(params)
        return {
            "id": "pi_9", "status": "requires_payment_method", "amount": 1234,
            "currency": "usd", "client_secret": "pi_9_secret", "metadata": {"user_id": "7"},
        }

    monkeypatch.setattr(stripe.PaymentIntent, "create_async", create_async)

    intent = await StripeGateway("sk_test_1").create_payment_intent(1234, "usd", {"user_id": 7})

    assert seen["api_key"] == "sk_test_1"
    assert seen["amount"] == 1234
    assert seen["currency"] == "usd"
    assert seen["metadata"] == {"user_id": "7"}
    assert seen["automatic_payment_methods"] == {"enabled": True}
    assert intent.client_secret == "pi_9_secret"
    assert intent.metadata == {"user_id": "7"}


async def test_gateway_error_reply(monkeypatch):
    async def retrieve_async(intent_id, **params):
        raise stripe.InvalidRequestError("No such payment_intent: 'pi_1'", "intent", http_status=404)

    monkeypatch.setattr(stripe.PaymentIntent, "retrieve_async", retrieve_async)

    with pytest.raises(PaymentGatewayError, match="No such payment_intent"):
        await StripeGateway("sk_test_1").retrieve_payment_intent("pi_1")


async def test_gateway_connection_error_and_missing_key(monkeypatch):
    async def retrieve_async(intent_id, **params):
        raise stripe.APIConnectionError("connection refused")

    monkeypatch.setattr(stripe.PaymentIntent, "retrieve_async", retrieve_async)

    with pytest.raises(PaymentGatewayError, match="unavailable"):
        await StripeGateway("sk_test_1").retrieve_payment_intent("pi_1")

    with pytest.raises(PaymentGatewayError, match="not configured"):
        await StripeGateway("").retrieve_payment_intent("pi_1")
