"""Redis cache service for reference data (locations) and discovery feeds."""

import json
import logging
from typing import Any

import redis.asyncio as redis

from app.config import settings

logger = logging.getLogger(__name__)

# TTLs in seconds
TTL_LOCATIONS = settings.locations_cache_ttl
TTL_TRENDING = 5 * 60             # 5 minutes


class CacheService:
    """Redis-backed cache with typed TTLs. Every miss or error reads as None."""

    def __init__(self, url: str | None = None):
        self._url = settings.redis_url if url is None else url
        self._redis: redis.Redis | None = None

    @property
    def enabled(self) -> bool:
        return bool(self._url)

    async def _get_redis(self) -> redis.Redis | None:
        if not self.enabled:
            return None
        if self._redis is None:
            try:
                self._redis = redis.from_url(
                    self._url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                await self._redis.ping()
            except Exception as e:
                logger.warning(f"Redis unavailable, cache disabled: {e}")
                self._redis = None
                return None
        return self._redis

    async def get(self, key: str) -> Any | None:
        """Get a value from cache. Returns None on miss or error."""
        try:
            r = await self._get_redis()
            if r is None:
                return None
            raw = await r.get(key)
            if raw is None:
                return None
            return json.loads(raw)
        except Exception:
            return None

    async def set(self, key: str, value: Any, ttl: int = TTL_LOCATIONS) -> bool:
        """Set a value in cache with TTL. Returns False on error."""
        try:
            r = await self._get_redis()
            if r is None:
                return False
            await r.set(key, json.dumps(value, default=str), ex=ttl)
            return True
        except Exception:
            return False

    async def delete(self, key: str) -> bool:
        """Delete a key."""
        try:
            r = await self._get_redis()
            if r is None:
                return False
            await r.delete(key)
            return True
        except Exception:
            return False

    # Typed helpers

    def locations_key(self) -> str:
        return "locations:all"

    def trending_key(self) -> str:
        return "packages:trending"

    async def get_locations(self) -> list[dict] | None:
        return await self.get(self.locations_key())

    async def set_locations(self, data: list[dict]):
        await self.set(self.locations_key(), data, TTL_LOCATIONS)

    async def invalidate_locations(self):
        await self.delete(self.locations_key())

    async def get_trending(self) -> list[dict] | None:
        return await self.get(self.trending_key())

    async def set_trending(self, data: list[dict]):
        await self.set(self.trending_key(), data, TTL_TRENDING)

    async def invalidate_trending(self):
        await self.delete(self.trending_key())

    async def close(self):
        if self._redis:
            await self._redis.aclose()
            self._redis = None


cache_service = CacheService()
