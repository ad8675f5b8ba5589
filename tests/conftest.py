import os
from unittest.mock import MagicMock

# Set test environment variables BEFORE any app imports
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("TESTING", "1")

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from adapters.persistence.sql.base_repository import SqlAlchemyRepository
from app.models.base import Base

# Import all models to ensure metadata is populated
from tests.models import Category, Tag, Widget

DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    # StaticPool: every session sees the same in-memory database
    engine = create_async_engine(DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def spy_factory(session_factory):
    """Session factory that records how many sessions were opened."""
    return MagicMock(wraps=session_factory)


@pytest_asyncio.fixture
async def widget_repo(spy_factory):
    return SqlAlchemyRepository(spy_factory, Widget)


@pytest_asyncio.fixture
async def seeded_widgets(widget_repo):
    """Ids 1..3 named a, b, c; prices deliberately not in id order."""
    for name, sku, price in [("a", "A", 10), ("b", "B", 30), ("c", "C", 20)]:
        await widget_repo.add(Widget(name=name, sku=sku, price=price))
    widget_repo.session_factory.reset_mock()
    return widget_repo


@pytest_asyncio.fixture
async def catalog(session_factory):
    """Two categories, three widgets, tags on the first widget."""
    categories = SqlAlchemyRepository(session_factory, Category)
    widgets = SqlAlchemyRepository(session_factory, Widget)
    tags = SqlAlchemyRepository(session_factory, Tag)

    tools = await categories.add(Category(name="tools"))
    toys = await categories.add(Category(name="toys"))
    hammer = await widgets.add(Widget(name="hammer", sku="H-1", price=25, category_id=tools))
    await widgets.add(Widget(name="wrench", sku="W-1", price=15, category_id=tools))
    await widgets.add(Widget(name="yoyo", sku="Y-1", price=5, category_id=toys))
    await tags.add(Tag(label="steel", widget_id=hammer))
    await tags.add(Tag(label="heavy", widget_id=hammer))

    return {"categories": categories, "widgets": widgets, "tags": tags, "tools": tools, "toys": toys}
