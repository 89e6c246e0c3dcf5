import os
import tempfile

# Settings are read at import time, so the environment is fixed before the app loads.
_DB_DIR = tempfile.mkdtemp(prefix="portfolio-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["ADMIN_EMAILS"] = "admin@example.com"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ.pop("OTLP_ENDPOINT", None)

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from main import app
from services.cart_service.models import CartItem
from services.catalog_service.models import Category, Product
from services.order_service.models import Order
from shared.config.database import AsyncSessionLocal, Base, engine

SHIPPING_INFO = {
    "name": "Alice Example",
    "address": "1 Main Street",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "US",
    "phone": "+1 555 0100",
}


@pytest.fixture(autouse=True)
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    app.dependency_overrides.clear()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db():
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def register(client: AsyncClient, name: str, email: str, password: str = "secret123") -> dict:
    resp = await client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return {"Authorization": f"Bearer {body['access_token']}", "user_id": body["user"]["id"]}


def _headers(identity: dict) -> dict:
    return {"Authorization": identity["Authorization"]}


@pytest.fixture
async def alice(client):
    return await register(client, "Alice", "alice@example.com")


@pytest.fixture
async def bob(client):
    return await register(client, "Bob", "bob@example.com")


@pytest.fixture
async def admin(client):
    return await register(client, "Admin", "admin@example.com")


@pytest.fixture
def auth():
    return _headers


@pytest.fixture
def make_product(db):
    async def _make(name="Widget", price="10.00", stock=10, sale_price=None, **extra):
        category = Category(name=f"{name} category")
        db.add(category)
        await db.flush()
        product = Product(
            name=name,
            price=Decimal(price),
            sale_price=Decimal(sale_price) if sale_price is not None else None,
            stock_quantity=stock,
            category_id=category.id,
            **extra,
        )
        db.add(product)
        await db.commit()
        return product

    return _make


@pytest.fixture
def put_in_cart(db):
    """Writes a cart line directly, bypassing the add-to-cart stock guard."""
    async def _put(user_id: int, product: Product, quantity: int) -> CartItem:
        item = CartItem(user_id=user_id, product=product, quantity=quantity)
        db.add(item)
        await db.commit()
        return item

    return _put


@pytest.fixture
def stock_of():
    async def _stock(product_id: int) -> int:
        async with AsyncSessionLocal() as session:
            product = await session.get(Product, product_id)
            return product.stock_quantity

    return _stock


@pytest.fixture
def order_count():
    async def _count() -> int:
        from sqlalchemy import func, select

        async with AsyncSessionLocal() as session:
            return (await session.execute(select(func.count(Order.id)))).scalar_one()

    return _count
