"""
Demo data for a fresh deployment.

Each table is seeded only while it is empty, so running this on every startup
is safe. No users are created; posts and todos are attached to the earliest
registered user and skipped until one exists.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.auth_service.models import User
from services.catalog_service.models import Category, Product
from services.content_service.models import Post, Project, Skill, Todo

logger = structlog.get_logger(__name__)

UNSPLASH = "https://images.unsplash.com/photo-{}?w=400"

CATEGORIES = [
    ("Electronics", "Gadgets, devices, and electronic accessories", "1498049794561-7780e7231661"),
    ("Clothing", "Fashion apparel for men and women", "1445205170230-053b83016050"),
    ("Home & Garden", "Furniture, decor, and garden essentials", "1484101403633-562f891dc89a"),
    ("Sports", "Sports equipment and fitness gear", "1461896836934-ffe607ba8211"),
    ("Books", "Books, e-books, and educational materials", "1495446815901-a7297e633e8d"),
]

# (category, name, description, price, sale price, stock, sku, featured, image)
PRODUCTS = [
    ("Electronics", "Wireless Bluetooth Headphones",
     "Premium noise-canceling wireless headphones with 30-hour battery life and superior sound quality.",
     "199.99", "149.99", 50, "ELEC-001", True, "1505740420928-5e560c06d30e"),
    ("Electronics", "Smart Watch Pro",
     "Advanced smartwatch with health monitoring, GPS, and 7-day battery life.",
     "349.99", None, 30, "ELEC-002", True, "1523275335684-37898b6baf30"),
    ("Electronics", "Portable Bluetooth Speaker",
     "Waterproof portable speaker with 360-degree sound and 12-hour playtime.",
     "79.99", "59.99", 100, "ELEC-003", False, "1608043152269-423dbba4e7e1"),
    ("Clothing", "Classic Denim Jacket",
     "Timeless denim jacket with modern fit. Perfect for casual occasions.",
     "89.99", None, 45, "CLTH-001", True, "1576995853123-5a10305d93c0"),
    ("Clothing", "Premium Cotton T-Shirt",
     "Soft, breathable 100% organic cotton t-shirt available in multiple colors.",
     "29.99", "24.99", 200, "CLTH-002", False, "1521572163474-6864f9cf17ab"),
    ("Home & Garden", "Modern Table Lamp",
     "Elegant minimalist table lamp with adjustable brightness and warm lighting.",
     "69.99", None, 35, "HOME-001", True, "1507473885765-e6ed057f782c"),
    ("Home & Garden", "Indoor Plant Set",
     "Set of 3 low-maintenance indoor plants with decorative pots.",
     "49.99", "39.99", 25, "HOME-002", False, "1459411552884-841db9b3cc2a"),
    ("Sports", "Yoga Mat Premium",
     "Extra thick non-slip yoga mat with carrying strap. Perfect for all yoga styles.",
     "45.99", None, 60, "SPRT-001", True, "1601925260368-ae2f83cf8b7f"),
    ("Sports", "Resistance Bands Set",
     "Complete set of 5 resistance bands with different strengths for home workouts.",
     "24.99", None, 80, "SPRT-002", False, "1598289431512-b97b0917affc"),
    ("Books", "The Art of Programming",
     "Comprehensive guide to modern programming practices and design patterns.",
     "39.99", "29.99", 40, "BOOK-001", True, "1544716278-ca5e3f4abd8c"),
    ("Books", "Business Strategy Essentials",
     "Learn the fundamentals of business strategy from industry experts.",
     "34.99", None, 55, "BOOK-002", False, "1589998059171-988d887df646"),
]

PROJECTS = [
    {
        "title": "Portfolio Website",
        "description": "A modern portfolio website with authentication, dark mode, and responsive design.",
        "technologies": ["Angular", "TypeScript", "FastAPI", "PostgreSQL"],
        "rating": 5,
        "github_link": "https://github.com/username/portfolio",
        "live_link": "https://portfolio.example.com",
        "age_days": 30,
    },
    {
        "title": "Task Management App",
        "description": "A full-stack task management application with real-time updates and team collaboration.",
        "technologies": ["React", "Node.js", "MongoDB", "Socket.io"],
        "rating": 4,
        "github_link": "https://github.com/username/task-app",
        "live_link": None,
        "age_days": 60,
    },
    {
        "title": "E-Commerce Platform",
        "description": "A scalable e-commerce platform with shopping cart, payment integration, and admin dashboard.",
        "technologies": ["Vue.js", "Python", "PostgreSQL", "Stripe"],
        "rating": 5,
        "github_link": "https://github.com/username/ecommerce",
        "live_link": "https://shop.example.com",
        "age_days": 90,
    },
    {
        "title": "Weather Dashboard",
        "description": "A weather dashboard showing current conditions and forecasts from multiple weather APIs.",
        "technologies": ["Angular", "Python", "FastAPI", "Redis"],
        "rating": 4,
        "github_link": "https://github.com/username/weather",
        "live_link": None,
        "age_days": 45,
    },
]

# (category, name, level, color)
SKILLS = [
    ("Frontend", "Angular", 90, "#dd0031"),
    ("Frontend", "TypeScript", 88, "#3178c6"),
    ("Frontend", "HTML/CSS", 95, "#e34c26"),
    ("Frontend", "JavaScript", 85, "#f7df1e"),
    ("Frontend", "React", 70, "#61dafb"),
    ("Backend", "Python", 85, "#3776ab"),
    ("Backend", "FastAPI", 82, "#009688"),
    ("Backend", "Node.js", 75, "#339933"),
    ("Database", "PostgreSQL", 80, "#336791"),
    ("Database", "MongoDB", 72, "#47a248"),
    ("Tools", "Git", 88, "#f05032"),
    ("Tools", "Docker", 75, "#2496ed"),
]

# (title, body, age in days)
POSTS = [
    ("Getting Started with Angular",
     "Angular is a powerful framework for building web applications. This post covers the basics "
     "and how to get your first project running.", 10),
    ("Understanding Async Python",
     "Asynchronous programming is essential for responsive services. Learn how to use async/await "
     "in Python effectively.", 7),
    ("Building REST APIs with FastAPI",
     "REST APIs are the backbone of modern web applications. This guide walks through creating a "
     "RESTful API with FastAPI.", 5),
    ("Database Design Best Practices",
     "A well-designed database is crucial for application performance. Learn how to design "
     "efficient schemas.", 3),
]

# (title, completed, age in days)
TODOS = [
    ("Complete project documentation", True, 5),
    ("Review pull requests", False, 3),
    ("Update dependencies", False, 2),
    ("Write unit tests", True, 4),
]


async def _is_empty(db: AsyncSession, model) -> bool:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one() == 0


async def _seed_catalog(db: AsyncSession) -> int:
    if not await _is_empty(db, Category):
        return 0

    categories = {}
    for name, description, image in CATEGORIES:
        category = Category(name=name, description=description, image_url=UNSPLASH.format(image))
        db.add(category)
        categories[name] = category
    await db.flush()

    # Products are seeded with their categories so the ids line up
    for category, name, description, price, sale_price, stock, sku, featured, image in PRODUCTS:
        image_url = UNSPLASH.format(image)
        db.add(Product(
            name=name,
            description=description,
            price=Decimal(price),
            sale_price=Decimal(sale_price) if sale_price else None,
            stock_quantity=stock,
            sku=sku,
            is_featured=featured,
            image_url=image_url,
            images=[image_url],
            category_id=categories[category].id,
        ))
    return len(categories) + len(PRODUCTS)


async def _seed_portfolio(db: AsyncSession, now: datetime) -> int:
    added = 0
    if await _is_empty(db, Project):
        for project in PROJECTS:
            fields = {key: value for key, value in project.items() if key != "age_days"}
            db.add(Project(**fields, created_at=now - timedelta(days=project["age_days"])))
        added += len(PROJECTS)

    if await _is_empty(db, Skill):
        for category, name, level, color in SKILLS:
            db.add(Skill(category=category, name=name, level=level, color=color))
        added += len(SKILLS)
    return added


async def _seed_user_content(db: AsyncSession, now: datetime) -> int:
    result = await db.execute(select(User.id).order_by(User.id).limit(1))
    owner_id = result.scalar_one_or_none()
    if owner_id is None:
        logger.info("seed_user_content_skipped", reason="no users yet")
        return 0

    added = 0
    if await _is_empty(db, Post):
        for title, body, age in POSTS:
            db.add(Post(user_id=owner_id, title=title, body=body, created_at=now - timedelta(days=age)))
        added += len(POSTS)

    if await _is_empty(db, Todo):
        for title, completed, age in TODOS:
            db.add(Todo(user_id=owner_id, title=title, completed=completed, created_at=now - timedelta(days=age)))
        added += len(TODOS)
    return added


async def seed_demo_data(db: AsyncSession) -> int:
    """Seeds every empty table and returns the number of rows added."""
    now = datetime.now(timezone.utc)
    try:
        added = await _seed_catalog(db)
        added += await _seed_portfolio(db, now)
        added += await _seed_user_content(db, now)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("seed_failed")
        raise

    logger.info("seed_completed", rows_added=added)
    return added
