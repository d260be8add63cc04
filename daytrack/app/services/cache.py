"""
Caching Service.

JSON values in Redis under namespaced keys with a TTL. The cache is an
optimisation only: a missing client or a Redis failure is logged and the
caller falls through to the database.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Optional

from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

KEY_PREFIX = "daytrack"


class CacheService:

    def __init__(self, client):
        self.client = client

    @staticmethod
    def key(*parts: Any) -> str:
        return ":".join([KEY_PREFIX, *(str(part) for part in parts)])

    async def get(self, key: str) -> Optional[Any]:
        if self.client is None:
            return None
        try:
            raw = await self.client.get(key)
        except (RedisError, OSError) as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            return None
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, data: Any, ttl_seconds: int = 300) -> None:
        if self.client is None:
            return
        try:
            await self.client.set(key, json.dumps(data, default=str), ex=ttl_seconds)
        except (RedisError, OSError) as e:
            logger.warning("Cache write failed for %s: %s", key, e)

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl_seconds: int = 300,
    ) -> Any:
        """Return the cached value, or load, cache and return it."""
        cached = await self.get(key)
        if cached is not None:
            return cached
        data = await loader()
        await self.set(key, data, ttl_seconds)
        return data
