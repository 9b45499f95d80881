import json
import logging

import redis.asyncio as redis

from app.config import settings

logger = logging.getLogger(__name__)


def article_key(slug: str) -> str:
    return f"articles:detail:{slug}"


class CacheManager:
    """
    Cache-aside store for viewer-independent article data, backed by Redis.

    Every method tolerates Redis being down or unconfigured: reads miss,
    writes and deletes are skipped.  Only the lifecycle calls touch the
    connection directly.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except redis.RedisError as exc:
            logger.warning("Redis ping failed, article cache disabled: %s", exc)
            await self._redis.aclose()
            self._redis = None

    async def disconnect(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def get(self, key: str) -> dict | None:
        if not self._redis:
            return None
        try:
            data = await self._redis.get(key)
        except redis.RedisError as exc:
            logger.debug("Cache GET error for key=%r: %s", key, exc)
            return None
        return json.loads(data) if data is not None else None

    async def set(self, key: str, value: dict, ttl: int | None = None) -> None:
        if not self._redis:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except redis.RedisError as exc:
            logger.debug("Cache SET error for key=%r: %s", key, exc)

    async def invalidate_article(self, slug: str) -> None:
        """Drop the cached entry for *slug* after its bookmark set changed."""
        if not self._redis:
            return
        try:
            await self._redis.delete(article_key(slug))
        except redis.RedisError as exc:
            logger.debug("Cache DELETE error for slug=%r: %s", slug, exc)


# Module-level singleton shared across all request handlers.
cache = CacheManager()
