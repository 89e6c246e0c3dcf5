from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.config import settings
from shared.config.database import AsyncSessionLocal, Base, engine
from shared.config.seed import seed_demo_data
from shared.errors import register_exception_handlers
from shared.observability import setup_observability
from shared.security import limiter

# IMPORTANT: import models so they register with Base
from services.auth_service import models as auth_models  # noqa: F401
from services.catalog_service import models as catalog_models  # noqa: F401
from services.cart_service import models as cart_models  # noqa: F401
from services.order_service import models as order_models  # noqa: F401
from services.content_service import models as content_models  # noqa: F401
from services.contact_service import models as contact_models  # noqa: F401

from services.auth_service.router import router as auth_router, users_router
from services.catalog_service.router import categories_router, products_router
from services.cart_service.router import router as cart_router
from services.order_service.router import router as orders_router
from services.payment_service.router import router as payment_router
from services.content_service.router import posts_router, projects_router, skills_router, todos_router
from services.contact_service.router import router as contact_router
from services.github_service.router import router as github_router

app = FastAPI(
    title="Portfolio API",
    version="1.0.0",
    description="Portfolio site backend with an e-commerce storefront: catalog, cart, checkout, orders.",
)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(app, settings.SERVICE_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

for api_router in (
    auth_router,
    users_router,
    categories_router,
    products_router,
    cart_router,
    orders_router,
    payment_router,
    posts_router,
    projects_router,
    skills_router,
    todos_router,
    contact_router,
    github_router,
):
    app.include_router(api_router, prefix="/api")


@app.get("/health", include_in_schema=False)
async def health_check():
    return {"service": settings.SERVICE_NAME, "status": "running"}


@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if settings.SEED_DEMO_DATA:
        async with AsyncSessionLocal() as db:
            await seed_demo_data(db)
