from typing import Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Category, Product
from .schemas import ProductQuery


class CategoryRepository:

    @staticmethod
    async def create(db: AsyncSession, category: Category) -> Category:
        db.add(category)
        await db.commit()
        await db.refresh(category)
        return category

    @staticmethod
    async def get(db: AsyncSession, category_id: int) -> Optional[Category]:
        result = await db.execute(select(Category).where(Category.id == category_id))
        return result.scalars().first()

    @staticmethod
    async def list_with_counts(db: AsyncSession, include_inactive: bool = False):
        """Returns (category, active product count) pairs ordered by name."""
        active_count = (
            select(func.count(Product.id))
            .where(Product.category_id == Category.id, Product.is_active.is_(True))
            .correlate(Category)
            .scalar_subquery()
        )
        stmt = select(Category, active_count).order_by(Category.name)
        if not include_inactive:
            stmt = stmt.where(Category.is_active.is_(True))
        result = await db.execute(stmt)
        return result.all()

    @staticmethod
    async def count_active_products(db: AsyncSession, category_id: int) -> int:
        result = await db.execute(
            select(func.count(Product.id))
            .where(Product.category_id == category_id, Product.is_active.is_(True))
        )
        return result.scalar_one()

    @staticmethod
    async def has_products(db: AsyncSession, category_id: int) -> bool:
        result = await db.execute(
            select(func.count(Product.id)).where(Product.category_id == category_id)
        )
        return result.scalar_one() > 0

    @staticmethod
    async def save(db: AsyncSession, category: Category) -> Category:
        db.add(category)
        await db.commit()
        await db.refresh(category)
        return category

    @staticmethod
    async def delete(db: AsyncSession, category: Category) -> None:
        await db.delete(category)
        await db.commit()


class ProductRepository:

    @staticmethod
    async def create_product(db: AsyncSession, product: Product) -> Product:
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int) -> Optional[Product]:
        result = await db.execute(select(Product).where(Product.id == product_id))
        return result.scalars().first()

    @staticmethod
    async def search(db: AsyncSession, query: ProductQuery) -> Sequence[Product]:
        effective_price = func.coalesce(Product.sale_price, Product.price)
        stmt = select(Product)

        if not query.include_inactive:
            stmt = stmt.where(Product.is_active.is_(True))
        if query.category_id is not None:
            stmt = stmt.where(Product.category_id == query.category_id)
        if query.featured is not None:
            stmt = stmt.where(Product.is_featured.is_(query.featured))
        if query.search:
            pattern = f"%{query.search}%"
            stmt = stmt.where(Product.name.ilike(pattern) | Product.description.ilike(pattern))
        if query.min_price is not None:
            stmt = stmt.where(effective_price >= query.min_price)
        if query.max_price is not None:
            stmt = stmt.where(effective_price <= query.max_price)

        sort_column = {
            "price": effective_price,
            "date": Product.created_at,
        }.get(query.sort_by, Product.name)
        stmt = stmt.order_by(sort_column.desc() if query.descending else sort_column.asc(), Product.id)

        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def featured(db: AsyncSession, limit: int) -> Sequence[Product]:
        result = await db.execute(
            select(Product)
            .where(Product.is_active.is_(True), Product.is_featured.is_(True))
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(limit)
        )
        return result.scalars().all()

    @staticmethod
    async def update_product(db: AsyncSession, product: Product) -> Product:
        db.add(product)
        await db.commit()
        await db.refresh(product)
        return product

    @staticmethod
    async def delete_product(db: AsyncSession, product: Product) -> None:
        await db.execute(delete(Product).where(Product.id == product.id))
        await db.commit()

    # The two stock methods below never commit: they run inside the caller's
    # checkout / cancellation unit of work.

    @staticmethod
    async def decrement_stock(db: AsyncSession, product_id: int, quantity: int) -> bool:
        """Conditionally decrements stock; returns False when fewer than `quantity` remain."""
        result = await db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity >= quantity)
            .values(stock_quantity=Product.stock_quantity - quantity)
        )
        return result.rowcount == 1

    @staticmethod
    async def restore_stock(db: AsyncSession, product_id: int, quantity: int) -> bool:
        result = await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock_quantity=Product.stock_quantity + quantity)
        )
        return result.rowcount == 1
