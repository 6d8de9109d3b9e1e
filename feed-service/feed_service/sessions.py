"""
Per-reader FeedController registry
"""
from collections import OrderedDict
from typing import Optional
import hashlib
import logging

import redis.asyncio as redis

from .cache import CacheStore, MemoryCacheStore, RedisCacheStore
from .config import settings
from .controller import FeedController
from .service_client import ServiceClient

logger = logging.getLogger(__name__)


class FeedSessions:
    """Keeps one FeedController per session key, evicting least recently used"""

    def __init__(
        self,
        client: ServiceClient,
        max_sessions: Optional[int] = None,
        backend: Optional[str] = None,
    ):
        self.client = client
        self.max_sessions = max_sessions or settings.MAX_SESSIONS
        self.backend = backend or settings.CACHE_BACKEND
        self._controllers: "OrderedDict[str, FeedController]" = OrderedDict()
        self._redis: Optional[redis.Redis] = None

    async def start(self):
        """Connect the shared cache backend, if any"""
        if self.backend != "redis":
            logger.info("Using in-memory feed caches")
            return

        store = RedisCacheStore(namespace="sessions")
        await store.connect()
        self._redis = store.client

    async def stop(self):
        """Release the shared cache backend"""
        self._controllers.clear()
        if self._redis:
            await self._redis.close()
            self._redis = None
            logger.info("Redis cache disconnected")

    def __len__(self) -> int:
        return len(self._controllers)

    def __contains__(self, key: str) -> bool:
        return key in self._controllers

    def _make_cache(self, key: str) -> CacheStore:
        if self._redis is None:
            return MemoryCacheStore()
        namespace = hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
        return RedisCacheStore(namespace=namespace, client=self._redis)

    async def get(self, key: str) -> FeedController:
        """Controller for `key`, created on first use"""
        controller = self._controllers.get(key)
        if controller is not None:
            self._controllers.move_to_end(key)
            return controller

        controller = FeedController(self.client, cache=self._make_cache(key))
        self._controllers[key] = controller
        logger.debug(f"Created feed session ({len(self._controllers)} active)")

        while len(self._controllers) > self.max_sessions:
            _, evicted = self._controllers.popitem(last=False)
            await evicted.cache.clear()

        return controller
