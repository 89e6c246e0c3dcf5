from decimal import Decimal

import pytest

from conftest import SHIPPING_INFO
from services.cart_service.repository import CartRepository
from services.catalog_service.repository import ProductRepository
from services.order_service.schemas import OrderCreate, ShippingInfo
from services.order_service.service import OrderService


async def test_checkout_converts_cart_into_order(client, alice, auth, make_product, stock_of):
    product = await make_product("Product A", price="50.00", stock=5)
    resp = await client.post("/api/cart", json={"product_id": product.id, "quantity": 2}, headers=auth(alice))
    assert resp.status_code == 200, resp.text

    resp = await client.post("/api/orders", json={"shipping_info": SHIPPING_INFO}, headers=auth(alice))
    assert resp.status_code == 201, resp.text
    order = resp.json()

    assert Decimal(order["subtotal"]) == Decimal("100.00")
    assert Decimal(order["tax"]) == Decimal("10.00")
    assert Decimal(order["shipping_cost"]) == Decimal("0.00")
    assert Decimal(order["total_amount"]) == Decimal("110.00")
    assert order["status"] == "pending"
    assert order["payment_status"] == "unpaid"
    assert order["order_number"].startswith("ORD-")
    assert order["shipping_info"]["city"] == "Springfield"

    [line] = order["items"]
    assert line["product_name"] == "Product A"
    assert line["quantity"] == 2
    assert Decimal(line["unit_price"]) == Decimal("50.00")
    assert Decimal(line["total_price"]) == Decimal("100.00")

    assert await stock_of(product.id) == 3
    cart = (await client.get("/api/cart", headers=auth(alice))).json()
    assert cart["items"] == []


async def test_checkout_rejects_out_of_stock_line(
    client, alice, auth, make_product, put_in_cart, stock_of, order_count
):
    product = await make_product("Product B", price="30.00", stock=0)
    await put_in_cart(alice["user_id"], product, 1)

    resp = await client.post("/api/orders", json={"shipping_info": SHIPPING_INFO}, headers=auth(alice))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Insufficient stock for Product B"
    assert await stock_of(product.id) == 0
    assert await order_count() == 0
    cart = (await client.get("/api/cart", headers=auth(alice))).json()
    assert [item["product_id"] for item in cart["items"]] == [product.id]


async def test_checkout_with_empty_cart(client, alice, auth, order_count):
    resp = await client.post("/api/orders", json={"shipping_info": SHIPPING_INFO}, headers=auth(alice))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cart is empty"
    assert await order_count() == 0


async def test_checkout_requires_shipping_fields(client, alice, auth, make_product, put_in_cart):
    product = await make_product(stock=3)
    await put_in_cart(alice["user_id"], product, 1)
    resp = await client.post(
        "/api/orders",
        json={"shipping_info": {**SHIPPING_INFO, "address": ""}},
        headers=auth(alice),
    )
    assert resp.status_code == 422


async def test_checkout_requires_authentication(client):
    resp = await client.post("/api/orders", json={"shipping_info": SHIPPING_INFO})
    assert resp.status_code == 401


async def test_lost_stock_race_rolls_back_every_line(
    client, alice, auth, make_product, put_in_cart, stock_of, order_count, monkeypatch
):
    first = await make_product("First", price="10.00", stock=5)
    second = await make_product("Second", price="20.00", stock=5)
    await put_in_cart(alice["user_id"], first, 2)
    await put_in_cart(alice["user_id"], second, 1)

    original = ProductRepository.decrement_stock
    calls = []

    async def decrement_then_lose_race(db, product_id, quantity):
        calls.append(product_id)
        if product_id == second.id:
            return False
        return await original(db, product_id, quantity)

    monkeypatch.setattr(ProductRepository, "decrement_stock", staticmethod(decrement_then_lose_race))

    resp = await client.post("/api/orders", json={"shipping_info": SHIPPING_INFO}, headers=auth(alice))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Insufficient stock for Second"
    assert calls == [first.id, second.id]
    assert await stock_of(first.id) == 5
    assert await stock_of(second.id) == 5
    assert await order_count() == 0
    cart = (await client.get("/api/cart", headers=auth(alice))).json()
    assert len(cart["items"]) == 2


async def test_unexpected_failure_rolls_back(db, alice, make_product, put_in_cart, stock_of, order_count, monkeypatch):
    product = await make_product(stock=4)
    product_id = product.id
    await put_in_cart(alice["user_id"], product, 3)

    async def broken_clear(db, user_id, commit=True):
        raise RuntimeError("database went away")

    monkeypatch.setattr(CartRepository, "clear_cart", staticmethod(broken_clear))

    with pytest.raises(RuntimeError):
        await OrderService.checkout(
            db, alice["user_id"], OrderCreate(shipping_info=ShippingInfo(**SHIPPING_INFO))
        )

    assert await stock_of(product_id) == 4
    assert await order_count() == 0


async def test_sale_price_is_snapshotted(client, db, alice, auth, make_product):
    product = await make_product("Lamp", price="20.00", sale_price="15.00", stock=5)
    await client.post("/api/cart", json={"product_id": product.id, "quantity": 2}, headers=auth(alice))

    order = (await client.post("/api/orders", json={"shipping_info": SHIPPING_INFO}, headers=auth(alice))).json()
    assert Decimal(order["subtotal"]) == Decimal("30.00")
    assert Decimal(order["shipping_cost"]) == Decimal("10.00")
    assert Decimal(order["tax"]) == Decimal("3.00")
    assert Decimal(order["total_amount"]) == Decimal("43.00")

    product.name = "Renamed lamp"
    product.sale_price = None
    await db.commit()

    fetched = (await client.get(f"/api/orders/{order['id']}", headers=auth(alice))).json()
    assert fetched["items"][0]["product_name"] == "Lamp"
    assert Decimal(fetched["items"][0]["unit_price"]) == Decimal("15.00")
    assert Decimal(fetched["total_amount"]) == Decimal("43.00")


async def test_each_checkout_gets_a_distinct_order_number(client, alice, auth, make_product):
    product = await make_product(stock=10)
    numbers = set()
    for _ in range(3):
        await client.post("/api/cart", json={"product_id": product.id, "quantity": 1}, headers=auth(alice))
        resp = await client.post("/api/orders", json={"shipping_info": SHIPPING_INFO}, headers=auth(alice))
        numbers.add(resp.json()["order_number"])
    assert len(numbers) == 3
