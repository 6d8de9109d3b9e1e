"""
Category slug → category key resolution
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional
import logging

from pydantic import ValidationError

from .exceptions import BackendQueryError
from .queries import GET_CATEGORY_BY_SLUG
from .schemas import Category
from .service_client import ServiceClient

logger = logging.getLogger(__name__)


class ResolutionKind(str, Enum):
    ALL = "all"  # no category requested
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class CategoryResolution:
    """Outcome of resolving a category slug"""
    kind: ResolutionKind
    key: Optional[str] = None

    @property
    def should_query(self) -> bool:
        """False when the posts query must not be issued"""
        return self.kind != ResolutionKind.UNRESOLVED


ALL_CATEGORIES = CategoryResolution(ResolutionKind.ALL)
UNRESOLVED = CategoryResolution(ResolutionKind.UNRESOLVED)


class CategoryResolver:
    """Maps category slugs to keys, caching hits for the session"""

    def __init__(self, client: ServiceClient):
        self.client = client
        self._keys: Dict[str, str] = {}

    def is_cached(self, slug: Optional[str]) -> bool:
        return slug is None or slug in self._keys

    def prime(self, categories: Iterable[Category]) -> None:
        """Seed the cache from an already loaded catalog"""
        for category in categories:
            self._keys[category.slug] = category.id

    def invalidate(self) -> None:
        self._keys.clear()

    async def resolve(self, slug: Optional[str], token: Optional[str] = None) -> CategoryResolution:
        """
        Resolve a slug to the key to filter posts by

        An unknown slug resolves to UNRESOLVED, which callers treat as an
        empty feed rather than the unfiltered one.
        """
        if slug is None:
            return ALL_CATEGORIES

        key = self._keys.get(slug)
        if key is not None:
            return CategoryResolution(ResolutionKind.RESOLVED, key)

        data = await self.client.graphql(GET_CATEGORY_BY_SLUG, {"slug": slug}, token)
        edges = (data.get("categoriesCollection") or {}).get("edges") or []
        if not edges:
            logger.info(f"Category slug '{slug}' did not resolve")
            return UNRESOLVED

        try:
            category = Category(**edges[0]["node"])
        except (KeyError, TypeError, ValidationError) as e:
            raise BackendQueryError(f"Malformed category payload: {e}") from e
        self._keys[slug] = category.id
        logger.debug(f"Resolved category '{slug}' to {category.id}")
        return CategoryResolution(ResolutionKind.RESOLVED, category.id)
