"""
Category catalog, loaded once per session
"""
import asyncio
from typing import Dict, List, Optional
import logging
import uuid

from pydantic import ValidationError

from .cache import CacheStore
from .config import settings
from .exceptions import BackendQueryError
from .queries import GET_CATEGORIES
from .schemas import Category
from .service_client import ServiceClient

logger = logging.getLogger(__name__)

_CACHE_KEY = "categories"


class CategoryIndex:
    """Full category catalog plus an id → Category lookup"""

    def __init__(
        self,
        client: ServiceClient,
        cache: CacheStore,
        ttl: Optional[int] = None,
    ):
        self.client = client
        self.cache = cache
        self.ttl = settings.CATEGORY_CACHE_TTL if ttl is None else ttl
        self.owner = uuid.uuid4().hex
        self._categories: Optional[List[Category]] = None
        self._loading: Optional[asyncio.Task] = None

    @property
    def loaded(self) -> bool:
        return self._categories is not None

    @property
    def categories(self) -> List[Category]:
        """Catalog ordered by name; empty until loaded"""
        return list(self._categories or [])

    @property
    def by_id(self) -> Dict[str, Category]:
        return {category.id: category for category in self._categories or []}

    async def load(self, token: Optional[str] = None) -> Dict[str, Category]:
        """
        Load the catalog if needed and return the id lookup

        Concurrent callers share one in-flight request. A failed load is
        not remembered, so the next call tries again.
        """
        if self._categories is not None:
            return self.by_id

        if self._loading is None:
            self._loading = asyncio.ensure_future(self._fetch(token))

        task = self._loading
        try:
            self._categories = await asyncio.shield(task)
        finally:
            if self._loading is task and task.done():
                self._loading = None

        return self.by_id

    async def _fetch(self, token: Optional[str]) -> List[Category]:
        cached = await self.cache.get(_CACHE_KEY)
        # A catalog stored without expiry belongs to the index that wrote it
        if isinstance(cached, dict) and (self.ttl > 0 or cached.get("owner") == self.owner):
            return [Category.model_validate(item) for item in cached["categories"]]

        data = await self.client.graphql(GET_CATEGORIES, token=token)
        edges = (data.get("categoriesCollection") or {}).get("edges") or []
        try:
            categories = [Category(**edge["node"]) for edge in edges]
        except (KeyError, TypeError, ValidationError) as e:
            raise BackendQueryError(f"Malformed categories payload: {e}") from e

        await self.cache.set(
            _CACHE_KEY,
            {
                "owner": self.owner,
                "categories": [category.model_dump(mode="json") for category in categories],
            },
            self.ttl,
        )
        logger.info(f"Loaded {len(categories)} categories")
        return categories

    async def invalidate(self) -> None:
        """Force the next load to re-fetch the catalog"""
        self._categories = None
        await self.cache.delete(_CACHE_KEY)
