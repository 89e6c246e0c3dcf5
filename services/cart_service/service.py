from decimal import Decimal
from typing import Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.catalog_service.repository import ProductRepository
from shared.errors import BusinessRuleError, NotFoundError

from .models import CartItem
from .repository import CartRepository
from .schemas import CartItemCreate, CartItemResponse, CartItemUpdate, CartResponse

logger = structlog.get_logger(__name__)


def build_cart(items: Sequence[CartItem]) -> CartResponse:
    lines = [
        CartItemResponse(
            id=item.id,
            product_id=item.product_id,
            product_name=item.product.name,
            product_image_url=item.product.image_url,
            unit_price=item.product.price,
            sale_price=item.product.sale_price,
            quantity=item.quantity,
            total_price=item.line_total,
            stock_quantity=item.product.stock_quantity,
        )
        for item in items
    ]
    return CartResponse(
        items=lines,
        sub_total=sum((line.total_price for line in lines), Decimal("0.00")),
        total_items=sum(line.quantity for line in lines),
    )


class CartService:

    @staticmethod
    async def get_cart(db: AsyncSession, user_id: int) -> CartResponse:
        return build_cart(await CartRepository.list_for_user(db, user_id))

    @staticmethod
    async def add_item(db: AsyncSession, user_id: int, data: CartItemCreate) -> CartResponse:
        product = await ProductRepository.get_product_by_id(db, data.product_id)
        if not product or not product.is_active:
            raise BusinessRuleError("Product not available")

        item = await CartRepository.get_by_product(db, user_id, data.product_id)
        new_quantity = data.quantity + (item.quantity if item else 0)

        # Always checked against the live stock figure, not what the cart last showed.
        if new_quantity > product.stock_quantity:
            raise BusinessRuleError("Cannot add more than available stock")

        if item:
            item.quantity = new_quantity
        else:
            item = CartItem(user_id=user_id, product=product, quantity=new_quantity)
        await CartRepository.save(db, item)
        return await CartService.get_cart(db, user_id)

    @staticmethod
    async def update_item(db: AsyncSession, user_id: int, item_id: int, data: CartItemUpdate) -> CartResponse:
        item = await CartRepository.get_item(db, user_id, item_id)
        if not item:
            raise NotFoundError("Cart item not found")

        if data.quantity <= 0:
            await CartRepository.remove_item(db, item)
            return await CartService.get_cart(db, user_id)

        product = await ProductRepository.get_product_by_id(db, item.product_id)
        if data.quantity > product.stock_quantity:
            raise BusinessRuleError("Cannot add more than available stock")

        item.quantity = data.quantity
        await CartRepository.save(db, item)
        return await CartService.get_cart(db, user_id)

    @staticmethod
    async def remove_item(db: AsyncSession, user_id: int, item_id: int) -> CartResponse:
        item = await CartRepository.get_item(db, user_id, item_id)
        if not item:
            raise NotFoundError("Cart item not found")
        await CartRepository.remove_item(db, item)
        return await CartService.get_cart(db, user_id)

    @staticmethod
    async def clear_cart(db: AsyncSession, user_id: int) -> None:
        await CartRepository.clear_cart(db, user_id)
        logger.info("cart_cleared", user_id=user_id)
