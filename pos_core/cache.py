"""Read-through cache primitives backed by Redis.

One ``CacheLayer`` serves one entity type. Keys are derived from
``(entity, LookupAttribute)`` so lookups by different attributes never
share a namespace. Misses return ``None``; only transport and decode
failures raise ``CacheError``, which repositories log and treat as a miss.
"""
import logging
from datetime import timedelta
from enum import Enum
from typing import Generic, Optional, Type, TypeVar, Union

import redis.asyncio as aioredis
from pydantic import BaseModel, ValidationError
from redis.exceptions import RedisError

from pos_core.config import Settings
from pos_core.errors import CacheError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class LookupAttribute(str, Enum):
    ID = "id"
    SKU = "sku"
    NAME = "name"
    USERNAME = "username"
    EMAIL = "email"
    PRODUCT_ID = "product_id"


def create_redis_client(settings: Settings) -> Optional[aioredis.Redis]:
    """Build the shared Redis client, or ``None`` when caching is disabled."""
    if not settings.redis_url:
        logger.info("Redis URL not configured, caching disabled")
        return None
    client = aioredis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_connect_timeout,
    )
    logger.info("Redis client created for %s", settings.redis_url)
    return client


class CacheLayer(Generic[T]):
    """TTL-bound JSON cache for one pydantic read model."""

    def __init__(
        self,
        client: Optional[aioredis.Redis],
        entity: str,
        schema: Type[T],
        ttl: Union[int, timedelta],
    ):
        self._client = client
        self.entity = entity
        self._schema = schema
        self.ttl = ttl if isinstance(ttl, timedelta) else timedelta(seconds=ttl)
        # Bumped on every invalidation so readers can detect a write that overlapped them
        self.generation = 0

    @property
    def enabled(self) -> bool:
        return self._client is not None and self.ttl.total_seconds() > 0

    def key(self, attribute: LookupAttribute, value) -> str:
        return f"{self.entity}:{LookupAttribute(attribute).value}:{value}"

    async def get(self, key: str) -> Optional[T]:
        if not self.enabled:
            return None
        try:
            raw = await self._client.get(key)
            if raw is None:
                return None
            return self._schema.model_validate_json(raw)
        except (RedisError, ValidationError, ValueError) as e:
            raise CacheError(f"cache get {key} failed: {e}") from e

    async def set(self, key: str, value: T) -> None:
        if not self.enabled:
            return
        try:
            await self._client.set(key, value.model_dump_json(), ex=self.ttl)
        except RedisError as e:
            raise CacheError(f"cache set {key} failed: {e}") from e

    async def delete(self, *keys: str) -> None:
        if not self.enabled or not keys:
            return
        self.generation += 1
        try:
            await self._client.delete(*keys)
        except RedisError as e:
            raise CacheError(f"cache delete {', '.join(keys)} failed: {e}") from e
