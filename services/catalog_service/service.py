from datetime import datetime, timezone
from typing import Sequence

import structlog
from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import BusinessRuleError, NotFoundError

from .models import Category, Product
from .repository import CategoryRepository, ProductRepository
from .schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ProductCreate,
    ProductQuery,
    ProductUpdate,
)

logger = structlog.get_logger(__name__)


class CategoryService:

    @staticmethod
    async def list_categories(db: AsyncSession, include_inactive: bool = False) -> list[CategoryResponse]:
        rows = await CategoryRepository.list_with_counts(db, include_inactive)
        return [
            CategoryResponse.model_validate(category).model_copy(update={"product_count": count})
            for category, count in rows
        ]

    @staticmethod
    async def get_category(db: AsyncSession, category_id: int) -> CategoryResponse:
        category = await CategoryRepository.get(db, category_id)
        if not category:
            raise NotFoundError("Category not found")
        count = await CategoryRepository.count_active_products(db, category_id)
        return CategoryResponse.model_validate(category).model_copy(update={"product_count": count})

    @staticmethod
    async def create_category(db: AsyncSession, data: CategoryCreate) -> Category:
        category = Category(
            name=data.name,
            description=data.description,
            image_url=data.image_url,
        )
        return await CategoryRepository.create(db, category)

    @staticmethod
    async def update_category(db: AsyncSession, category_id: int, data: CategoryUpdate) -> Category:
        category = await CategoryRepository.get(db, category_id)
        if not category:
            raise NotFoundError("Category not found")
        category.name = data.name
        category.description = data.description
        category.image_url = data.image_url
        category.is_active = data.is_active
        return await CategoryRepository.save(db, category)

    @staticmethod
    async def delete_category(db: AsyncSession, category_id: int) -> None:
        category = await CategoryRepository.get(db, category_id)
        if not category:
            raise NotFoundError("Category not found")
        if await CategoryRepository.has_products(db, category_id):
            raise BusinessRuleError("Cannot delete category with existing products")
        await CategoryRepository.delete(db, category)


class ProductService:

    @staticmethod
    async def _ensure_category(db: AsyncSession, category_id: int) -> None:
        if not await CategoryRepository.get(db, category_id):
            raise BusinessRuleError("Invalid category ID")

    @staticmethod
    async def list_products(db: AsyncSession, query: ProductQuery) -> Sequence[Product]:
        return await ProductRepository.search(db, query)

    @staticmethod
    async def featured_products(db: AsyncSession, limit: int) -> Sequence[Product]:
        return await ProductRepository.featured(db, limit)

    @staticmethod
    async def get_product(db: AsyncSession, product_id: int) -> Product:
        product = await ProductRepository.get_product_by_id(db, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    @staticmethod
    async def create_product(db: AsyncSession, data: ProductCreate) -> Product:
        await ProductService._ensure_category(db, data.category_id)
        product = Product(
            name=data.name,
            description=data.description,
            price=data.price,
            sale_price=data.sale_price,
            stock_quantity=data.stock_quantity,
            image_url=data.image_url,
            images=list(data.images),
            sku=data.sku,
            is_featured=data.is_featured,
            category_id=data.category_id,
        )
        return await ProductRepository.create_product(db, product)

    @staticmethod
    async def update_product(db: AsyncSession, product_id: int, data: ProductUpdate) -> Product:
        product = await ProductService.get_product(db, product_id)
        await ProductService._ensure_category(db, data.category_id)

        for field, value in data.model_dump().items():
            setattr(product, field, value)
        product.updated_at = datetime.now(timezone.utc)
        return await ProductRepository.update_product(db, product)

    @staticmethod
    async def delete_product(db: AsyncSession, product_id: int) -> bool:
        """Deletes the product, or deactivates it when historical orders reference it.

        Returns True when the product was only deactivated.
        """
        # Imported here: order_service depends on the catalog, not the other way round.
        from services.order_service.models import OrderItem

        product = await ProductService.get_product(db, product_id)
        has_orders = (await db.execute(select(exists().where(OrderItem.product_id == product_id)))).scalar()
        if has_orders:
            product.is_active = False
            product.updated_at = datetime.now(timezone.utc)
            await ProductRepository.update_product(db, product)
            logger.info("product_deactivated", product_id=product_id)
            return True

        await ProductRepository.delete_product(db, product)
        return False

    @staticmethod
    async def set_stock(db: AsyncSession, product_id: int, quantity: int) -> Product:
        product = await ProductService.get_product(db, product_id)
        product.stock_quantity = quantity
        product.updated_at = datetime.now(timezone.utc)
        return await ProductRepository.update_product(db, product)
