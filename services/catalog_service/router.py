from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import require_admin

from .schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ProductCreate,
    ProductListResponse,
    ProductQuery,
    ProductResponse,
    ProductUpdate,
    StockUpdate,
)
from .service import CategoryService, ProductService

categories_router = APIRouter(prefix="/categories", tags=["Categories"])
products_router = APIRouter(prefix="/products", tags=["Products"])


# --- Categories ---

@categories_router.get("", response_model=list[CategoryResponse])
async def list_categories(
    include_inactive: bool = Query(default=False),
    db: AsyncSession = Depends(get_db),
):
    return await CategoryService.list_categories(db, include_inactive)


@categories_router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return await CategoryService.get_category(db, category_id)


@categories_router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_category(payload: CategoryCreate, db: AsyncSession = Depends(get_db)):
    return await CategoryService.create_category(db, payload)


@categories_router.put(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def update_category(category_id: int, payload: CategoryUpdate, db: AsyncSession = Depends(get_db)):
    await CategoryService.update_category(db, category_id, payload)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@categories_router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    await CategoryService.delete_category(db, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Products ---

@products_router.get("", response_model=list[ProductListResponse])
async def list_products(
    query: ProductQuery = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService.list_products(db, query)


@products_router.get("/featured", response_model=list[ProductListResponse])
async def featured_products(
    limit: int = Query(default=8, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService.featured_products(db, limit)


@products_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    return await ProductService.get_product(db, product_id)


@products_router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_product(payload: ProductCreate, db: AsyncSession = Depends(get_db)):
    return await ProductService.create_product(db, payload)


@products_router.put(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def update_product(product_id: int, payload: ProductUpdate, db: AsyncSession = Depends(get_db)):
    await ProductService.update_product(db, product_id, payload)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@products_router.delete("/{product_id}", dependencies=[Depends(require_admin)])
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    deactivated = await ProductService.delete_product(db, product_id)
    if deactivated:
        return {"message": "Product deactivated (has existing orders)"}
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@products_router.patch("/{product_id}/stock", dependencies=[Depends(require_admin)])
async def update_stock(product_id: int, payload: StockUpdate, db: AsyncSession = Depends(get_db)):
    product = await ProductService.set_stock(db, product_id, payload.stock_quantity)
    return {"stock_quantity": product.stock_quantity}
