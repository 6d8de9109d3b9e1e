"""
Cache stores owned by a FeedController

Values are plain JSON-compatible dicts so both backends hold the same shape.
"""
import redis.asyncio as redis
from abc import ABC, abstractmethod
from typing import Optional, Any, Callable, Dict, Tuple
import json
import logging
import time

from .config import settings

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """Cache store interface"""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Get value, or None when missing or expired"""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int) -> None:
        """Set value; ttl <= 0 keeps it as long as the store allows"""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete one key"""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Drop every key owned by this store"""
        pass


class MemoryCacheStore(CacheStore):
    """In-process cache with per-entry expiry"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[Optional[float], Any]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        expires_at, value = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl: int) -> None:
        expires_at = self._clock() + ttl if ttl > 0 else None
        self._entries[key] = (expires_at, value)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()


class RedisCacheStore(CacheStore):
    """Redis-backed cache, namespaced per session"""

    def __init__(self, namespace: str, client: Optional[redis.Redis] = None):
        self.namespace = namespace
        self.client = client

    async def connect(self):
        """Connect to Redis"""
        if self.client:
            return

        try:
            self.client = await redis.from_url(
                f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}",
                password=settings.REDIS_PASSWORD if settings.REDIS_PASSWORD else None,
                encoding="utf-8",
                decode_responses=True,
            )
            # Test connection
            await self.client.ping()
            logger.info("Redis cache connected successfully")
        except Exception as e:
            logger.warning(f"Failed to connect to Redis: {e}. Continuing without cache.")
            self.client = None

    async def disconnect(self):
        """Disconnect from Redis"""
        if self.client:
            await self.client.close()
            logger.info("Redis cache disconnected")

    def _key(self, key: str) -> str:
        return f"{settings.REDIS_KEY_PREFIX}:{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        if not self.client:
            return None

        try:
            value = await self.client.get(self._key(key))
            return json.loads(value) if value else None
        except Exception as e:
            logger.error(f"Error getting cache key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int) -> None:
        if not self.client:
            return

        # Entries outlive this process, so nothing is stored without expiry
        expire = ttl if ttl > 0 else settings.REDIS_SESSION_TTL
        try:
            await self.client.setex(self._key(key), expire, json.dumps(value))
        except Exception as e:
            logger.error(f"Error setting cache key {key}: {e}")

    async def delete(self, key: str) -> None:
        if not self.client:
            return

        try:
            await self.client.delete(self._key(key))
        except Exception as e:
            logger.error(f"Error deleting cache key {key}: {e}")

    async def clear(self) -> None:
        if not self.client:
            return

        try:
            keys = []
            async for key in self.client.scan_iter(match=self._key("*")):
                keys.append(key)
            if keys:
                await self.client.delete(*keys)
        except Exception as e:
            logger.error(f"Error clearing cache namespace {self.namespace}: {e}")
