from decimal import Decimal

import pytest

from conftest import SHIPPING_INFO
from services.order_service.service import OrderService
from services.order_service.status import OrderStatus
from shared.config.database import AsyncSessionLocal
from shared.errors import InvalidTransitionError
from shared.security import CurrentUser


@pytest.fixture
def place_order(client, auth, make_product):
    async def _place(identity, quantity=2, stock=5):
        product = await make_product(price="25.00", stock=stock)
        await client.post("/api/cart", json={"product_id": product.id, "quantity": quantity}, headers=auth(identity))
        resp = await client.post("/api/orders", json={"shipping_info": SHIPPING_INFO}, headers=auth(identity))
        assert resp.status_code == 201, resp.text
        return resp.json(), product

    return _place


async def set_status(client, auth, admin, order_id, status, **extra):
    return await client.patch(
        f"/api/orders/{order_id}/status", json={"status": status, **extra}, headers=auth(admin)
    )


async def test_owner_cancels_pending_order(client, auth, alice, place_order, stock_of):
    order, product = await place_order(alice)
    assert await stock_of(product.id) == 3

    resp = await client.post(f"/api/orders/{order['id']}/cancel", headers=auth(alice))
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"
    assert await stock_of(product.id) == 5

    again = await client.post(f"/api/orders/{order['id']}/cancel", headers=auth(alice))
    assert again.status_code == 409
    assert await stock_of(product.id) == 5


async def test_owner_cannot_cancel_processing_order(client, auth, alice, admin, place_order, stock_of):
    order, product = await place_order(alice)
    assert (await set_status(client, auth, admin, order["id"], "processing")).status_code == 200

    resp = await client.post(f"/api/orders/{order['id']}/cancel", headers=auth(alice))
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Only pending orders can be cancelled"

    resp = await client.post(f"/api/orders/{order['id']}/cancel", headers=auth(admin))
    assert resp.status_code == 200
    assert await stock_of(product.id) == 5


async def test_fulfilment_stamps_and_terminal_delivery(client, auth, alice, admin, place_order):
    order, _ = await place_order(alice)
    for status in ("processing", "shipped", "delivered"):
        resp = await set_status(client, auth, admin, order["id"], status)
        assert resp.status_code == 200, resp.text
        assert resp.json()["status"] == status

    detail = (await client.get(f"/api/orders/{order['id']}", headers=auth(alice))).json()
    assert detail["shipped_at"] is not None
    assert detail["delivered_at"] is not None

    resp = await client.post(f"/api/orders/{order['id']}/cancel", headers=auth(admin))
    assert resp.status_code == 409


async def test_status_patch_to_cancelled_restores_stock(client, auth, alice, admin, place_order, stock_of):
    order, product = await place_order(alice, quantity=3)
    resp = await set_status(client, auth, admin, order["id"], "Cancelled", admin_notes="customer called")
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"
    assert await stock_of(product.id) == 5


async def test_status_patch_validation(client, auth, alice, admin, place_order):
    order, _ = await place_order(alice)
    assert (await set_status(client, auth, admin, order["id"], "delivered")).status_code == 409
    assert (await set_status(client, auth, admin, order["id"], "teleported")).status_code == 422
    assert (await set_status(client, auth, admin, order["id"], "PROCESSING")).status_code == 200
    assert (await set_status(client, auth, alice, order["id"], "shipped")).status_code == 403
    assert (await set_status(client, auth, admin, 9999, "processing")).status_code == 404


async def test_payment_status_transitions(client, auth, alice, admin, place_order):
    order, _ = await place_order(alice)
    url = f"/api/orders/{order['id']}/payment"

    resp = await client.patch(url, json={"payment_status": "paid", "payment_transaction_id": "txn_1"}, headers=auth(admin))
    assert resp.status_code == 200
    assert resp.json()["payment_status"] == "paid"

    assert (await client.patch(url, json={"payment_status": "paid"}, headers=auth(admin))).status_code == 409
    assert (await client.patch(url, json={"payment_status": "refunded"}, headers=auth(admin))).status_code == 200
    assert (await client.patch(url, json={"payment_status": "void"}, headers=auth(admin))).status_code == 422


async def test_order_visibility(client, auth, alice, bob, admin, place_order):
    alice_order, _ = await place_order(alice)
    bob_order, _ = await place_order(bob)

    own = (await client.get("/api/orders", headers=auth(alice))).json()
    assert [o["id"] for o in own] == [alice_order["id"]]
    assert own[0]["item_count"] == 2
    assert Decimal(own[0]["total_amount"]) == Decimal(alice_order["total_amount"])

    everything = (await client.get("/api/orders", headers=auth(admin))).json()
    assert [o["id"] for o in everything] == [bob_order["id"], alice_order["id"]]

    assert (await client.get(f"/api/orders/{bob_order['id']}", headers=auth(alice))).status_code == 403
    assert (await client.post(f"/api/orders/{bob_order['id']}/cancel", headers=auth(alice))).status_code == 403
    assert (await client.get(f"/api/orders/{bob_order['id']}", headers=auth(admin))).status_code == 200
    assert (await client.get("/api/orders/9999", headers=auth(alice))).status_code == 404


async def test_order_list_status_filter(client, auth, alice, admin, place_order):
    first, _ = await place_order(alice)
    second, _ = await place_order(alice)
    await client.post(f"/api/orders/{first['id']}/cancel", headers=auth(alice))

    pending = (await client.get("/api/orders", params={"status": "pending"}, headers=auth(alice))).json()
    assert [o["id"] for o in pending] == [second["id"]]
    cancelled = (await client.get("/api/orders", params={"status": "cancelled"}, headers=auth(alice))).json()
    assert [o["id"] for o in cancelled] == [first["id"]]


async def test_concurrent_cancellations_restore_stock_once(alice, place_order, stock_of):
    order, product = await place_order(alice, quantity=2, stock=5)
    product_id = product.id
    assert await stock_of(product_id) == 3
    owner = CurrentUser(id=alice["user_id"], name="Alice", email="alice@example.com", role="user")

    async with AsyncSessionLocal() as first, AsyncSessionLocal() as second:
        # Both sessions read the order while it is still pending
        assert (await OrderService.get_order(first, order["id"])).status == OrderStatus.PENDING
        assert (await OrderService.get_order(second, order["id"])).status == OrderStatus.PENDING

        await OrderService.cancel_order(first, order["id"], owner)
        with pytest.raises(InvalidTransitionError):
            await OrderService.cancel_order(second, order["id"], owner)

    assert await stock_of(product_id) == 5
