"""Composition root: builds the engine, cache and every repository and service."""
import logging
from typing import Optional

import redis.asyncio as aioredis

from pos_core.cache import CacheLayer, create_redis_client
from pos_core.config import Settings
from pos_core.database import create_engine, create_session_factory
from pos_core.logging_config import configure_logging
from pos_core.repositories import (
    CategoryRepository,
    InventoryRepository,
    ProductRepository,
    UserRepository,
)
from pos_core.schemas.category import CategoryRead
from pos_core.schemas.inventory import InventoryRead
from pos_core.schemas.product import ProductRead
from pos_core.schemas.user import UserRecord
from pos_core.services import (
    AuthService,
    CategoryService,
    InventoryService,
    PasswordHasher,
    ProductService,
    TokenIssuer,
    UserService,
)

logger = logging.getLogger(__name__)


class Container:
    """Owns every long-lived resource; ``close()`` releases them."""

    def __init__(
        self,
        settings: Settings,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        redis_client: Optional[aioredis.Redis] = None,
    ):
        self.settings = settings
        self.engine = create_engine(settings)
        self.session_factory = create_session_factory(engine=self.engine)
        # Only a client built here is closed by close()
        self._owns_redis = redis_client is None
        self.redis = redis_client if redis_client is not None else create_redis_client(settings)

        self.category_cache = CacheLayer(self.redis, "category", CategoryRead, settings.category_cache_ttl)
        self.product_cache = CacheLayer(self.redis, "product", ProductRead, settings.product_cache_ttl)
        self.inventory_cache = CacheLayer(self.redis, "inventory", InventoryRead, settings.inventory_cache_ttl)
        self.user_cache = CacheLayer(self.redis, "user", UserRecord, settings.user_cache_ttl)

        lock_timeout = settings.db_lock_timeout_ms
        self.category_repo = CategoryRepository(self.session_factory, self.category_cache, lock_timeout)
        self.product_repo = ProductRepository(
            self.session_factory, self.product_cache, self.inventory_cache, lock_timeout
        )
        self.inventory_repo = InventoryRepository(self.session_factory, self.inventory_cache, lock_timeout)
        self.user_repo = UserRepository(self.session_factory, self.user_cache, lock_timeout)

        self.category_service = CategoryService(self.category_repo, self.product_repo)
        self.product_service = ProductService(self.product_repo, self.category_repo, self.inventory_repo)
        self.inventory_service = InventoryService(self.inventory_repo)
        self.user_service = UserService(self.user_repo, hasher)
        self.auth_service = AuthService(self.user_repo, hasher, tokens, settings.default_user_role)

    async def close(self) -> None:
        if self.redis is not None and self._owns_redis:
            await self.redis.aclose()
        await self.engine.dispose()
        logger.info("Container closed")


def build_container(
    settings: Settings,
    hasher: PasswordHasher,
    tokens: TokenIssuer,
    redis_client: Optional[aioredis.Redis] = None,
) -> Container:
    configure_logging(settings.log_level)
    container = Container(settings, hasher, tokens, redis_client)
    logger.info(
        "Container ready (cache %s)", "enabled" if container.redis is not None else "disabled"
    )
    return container
