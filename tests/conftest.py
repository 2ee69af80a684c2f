# tests/conftest.py
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fakeredis import FakeAsyncRedis
from redis.exceptions import ConnectionError as RedisConnectionError

from pos_core.cache import CacheLayer
from pos_core.config import Settings
from pos_core.database import Base, create_engine, create_session_factory
from pos_core import models  # noqa: F401
from pos_core.repositories import (
    CategoryRepository,
    InventoryRepository,
    ProductRepository,
    UserRepository,
)
from pos_core.schemas.category import CategoryCreate, CategoryRead
from pos_core.schemas.inventory import InventoryRead
from pos_core.schemas.product import ProductCreate, ProductRead
from pos_core.schemas.user import UserRecord
from pos_core.services import CategoryService, InventoryService, ProductService


@pytest.fixture
def settings(tmp_path):
    return Settings(database_url=f"sqlite+aiosqlite:///{tmp_path}/test.db", redis_url="")


@pytest.fixture
async def engine(settings):
    engine = create_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def redis_client():
    client = FakeAsyncRedis()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def failing_redis():
    """A Redis client whose every call fails at the transport."""
    client = MagicMock()
    error = RedisConnectionError("connection refused")
    client.get = AsyncMock(side_effect=error)
    client.set = AsyncMock(side_effect=error)
    client.delete = AsyncMock(side_effect=error)
    return client


def make_caches(client):
    return {
        "category": CacheLayer(client, "category", CategoryRead, 3600),
        "product": CacheLayer(client, "product", ProductRead, 3600),
        "inventory": CacheLayer(client, "inventory", InventoryRead, 3600),
        "user": CacheLayer(client, "user", UserRecord, 3600),
    }


def make_repos(session_factory, client):
    caches = make_caches(client)
    return {
        "category": CategoryRepository(session_factory, caches["category"]),
        "product": ProductRepository(session_factory, caches["product"], caches["inventory"]),
        "inventory": InventoryRepository(session_factory, caches["inventory"]),
        "user": UserRepository(session_factory, caches["user"]),
    }


@pytest.fixture
def repos(session_factory, redis_client):
    return make_repos(session_factory, redis_client)


@pytest.fixture
def category_repo(repos):
    return repos["category"]


@pytest.fixture
def product_repo(repos):
    return repos["product"]


@pytest.fixture
def inventory_repo(repos):
    return repos["inventory"]


@pytest.fixture
def user_repo(repos):
    return repos["user"]


@pytest.fixture
def category_service(category_repo, product_repo):
    return CategoryService(category_repo, product_repo)


@pytest.fixture
def product_service(product_repo, category_repo, inventory_repo):
    return ProductService(product_repo, category_repo, inventory_repo)


@pytest.fixture
def inventory_service(inventory_repo):
    return InventoryService(inventory_repo)


@pytest.fixture
async def category(category_repo):
    return await category_repo.create(CategoryCreate(name="Brakes"))


@pytest.fixture
async def product(product_repo, category):
    return await product_repo.create(
        ProductCreate(
            name="Brake Pad",
            description="Front brake pad set",
            price=Decimal("19.99"),
            sku="BP-100",
            category_id=category.id,
        )
    )
