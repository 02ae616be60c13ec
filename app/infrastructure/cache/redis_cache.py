"""Redis-based cache for per-organization workflow listings.

Values are stored as JSON with a TTL. The cache is optional: when Redis
is disabled or unreachable every call degrades to a miss (get) or a
no-op (set/delete) and the caller falls through to the database.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

import redis.asyncio as redis

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheService:
    """Async Redis cache with TTL support (implements CacheProtocol).

    Call connect() at startup and disconnect() at shutdown.
    """

    def __init__(
        self, settings: Settings, redis_client: redis.Redis | None = None
    ) -> None:
        """Initialize cache service.

        Args:
            settings: Connection settings (redis_host, redis_port, ...).
            redis_client: Optional Redis client for testing or DI; treated as connected.
        """
        self.settings = settings
        self.redis = redis_client
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Failure disables the cache with a warning."""
        if self.redis is not None or not self.settings.redis_enabled:
            return
        password = self.settings.redis_password
        client = redis.Redis(
            host=self.settings.redis_host,
            port=self.settings.redis_port,
            db=self.settings.redis_db,
            password=password.get_secret_value() if password else None,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )
        try:
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis connection failed: %s. Cache disabled.", e)
            await client.aclose()
            return
        self.redis = client
        self._connected = True
        logger.info(
            "Redis cache connected: %s:%s",
            self.settings.redis_host,
            self.settings.redis_port,
        )

    async def disconnect(self) -> None:
        """Close Redis connection. Call on shutdown."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self._connected = False
            logger.info("Redis cache disconnected")

    async def _reconnect(self) -> bool:
        """Drop the current client and connect again. Returns True if reconnected."""
        if self.redis is None:
            return False
        try:
            await self.redis.aclose()
        except redis.RedisError:
            logger.debug("Ignoring error while closing stale Redis client")
        self.redis = None
        self._connected = False
        await self.connect()
        return self._connected

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    async def _run(
        self,
        op: str,
        key: str,
        call: Callable[[redis.Redis], Awaitable[T]],
        fallback: T,
    ) -> T:
        """Run one command, retrying once after a reconnect on connection loss."""
        if not self.is_available() or self.redis is None:
            return fallback
        try:
            return await call(self.redis)
        except (redis.ConnectionError, redis.TimeoutError):
            if await self._reconnect() and self.redis is not None:
                try:
                    return await call(self.redis)
                except redis.RedisError:
                    logger.exception("Cache %s error for key %s after reconnect", op, key)
                    return fallback
            logger.warning("Cache %s unavailable for key %s (Redis disconnected)", op, key)
            return fallback
        except redis.RedisError:
            logger.exception("Cache %s error for key %s", op, key)
            return fallback

    async def get(self, key: str) -> Any | None:
        """Return cached value (JSON-deserialized) or None if missing/unavailable."""
        raw = await self._run("get", key, lambda r: r.get(key), None)
        if raw is None:
            logger.debug("Cache MISS: %s", key)
            return None
        logger.debug("Cache HIT: %s", key)
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store value (JSON-serializable) with TTL in seconds. Returns True on success."""
        serialized = json.dumps(value)

        async def _setex(r: redis.Redis) -> bool:
            await r.setex(key, ttl, serialized)
            return True

        stored = await self._run("set", key, _setex, False)
        if stored:
            logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)
        return stored

    async def delete(self, key: str) -> bool:
        """Remove key from cache. Returns True if the command ran."""

        async def _delete(r: redis.Redis) -> bool:
            await r.delete(key)
            return True

        deleted = await self._run("delete", key, _delete, False)
        if deleted:
            logger.debug("Cache DELETE: %s", key)
        return deleted
