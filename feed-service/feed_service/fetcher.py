"""
Paged post retrieval with cursor flags and a short-lived page cache
"""
from typing import Any, Dict, List, Optional
import logging
import uuid

from pydantic import ValidationError

from .cache import CacheStore
from .config import settings
from .exceptions import BackendQueryError
from .queries import (
    GET_PAGINATED_POSTS,
    GET_PAGINATED_POSTS_BY_CATEGORY,
    GET_PAGINATED_POSTS_WITH_AUTHORS,
    GET_PAGINATED_POSTS_BY_CATEGORY_WITH_AUTHORS,
)
from .schemas import CursorState, Post, PostPage, Profile
from .service_client import ServiceClient

logger = logging.getLogger(__name__)


def order_by_published(posts: List[Post]) -> List[Post]:
    """Newest first, unpublished (null timestamp) last; ties keep backend order"""
    return sorted(
        posts,
        key=lambda p: (
            p.published_at is None,
            -p.published_at.timestamp() if p.published_at else 0.0,
        ),
    )


def page_offset(page: int, page_size: int) -> int:
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return (page - 1) * page_size


class PostPageFetcher:
    """Fetches one page of published posts, optionally scoped to a category"""

    def __init__(
        self,
        client: ServiceClient,
        cache: CacheStore,
        ttl: Optional[int] = None,
    ):
        self.client = client
        self.cache = cache
        self.ttl = settings.POSTS_CACHE_TTL if ttl is None else ttl
        # Sequence numbers only compare within one fetcher's lifetime
        self.owner = uuid.uuid4().hex

    @staticmethod
    def _cache_key(category_key: Optional[str], offset: int, limit: int) -> str:
        return f"posts:{category_key or '*'}:{offset}:{limit}"

    def _entry(self, page: PostPage) -> Dict[str, Any]:
        return {"owner": self.owner, "page": page.model_dump(mode="json")}

    async def _own_entry(self, key: str) -> Optional[Dict[str, Any]]:
        """Stored page written by this fetcher, if any"""
        entry = await self.cache.get(key)
        if entry is None or entry.get("owner") != self.owner:
            return None
        return entry["page"]

    async def cached(
        self,
        category_key: Optional[str],
        page: int,
        page_size: int
    ) -> Optional[PostPage]:
        """Previously fetched page for immediate display, if still within TTL"""
        offset = page_offset(page, page_size)
        entry = await self.cache.get(self._cache_key(category_key, offset, page_size))
        if entry is None or "page" not in entry:
            return None
        cached_page = PostPage.model_validate(entry["page"])
        cached_page.from_cache = True
        return cached_page

    async def _store(self, page: PostPage) -> None:
        """Cache a page unless this fetcher already stored a newer response for the key"""
        key = self._cache_key(page.category_key, page.offset, page.limit)
        existing = await self._own_entry(key)
        if existing is not None and existing.get("sequence", 0) > page.sequence:
            logger.debug(f"Not caching #{page.sequence} over newer #{existing['sequence']} for {key}")
            return
        await self.cache.set(key, self._entry(page), self.ttl)

    async def remember_profiles(
        self,
        page: PostPage,
        profiles: Dict[str, Optional[Profile]]
    ) -> None:
        """Attach the profiles a page was rendered with to its cache entry"""
        key = self._cache_key(page.category_key, page.offset, page.limit)
        existing = await self._own_entry(key)
        if existing is None or existing.get("sequence") != page.sequence:
            return
        rendered = page.model_copy(update={"embedded_profiles": dict(profiles)})
        await self.cache.set(key, self._entry(rendered), self.ttl)

    async def invalidate(self) -> None:
        await self.cache.clear()

    async def fetch(
        self,
        category_key: Optional[str],
        page: int,
        page_size: int,
        token: Optional[str] = None,
        sequence: int = 0,
        with_authors: bool = False,
    ) -> PostPage:
        """
        Fetch one page from the backend

        Args:
            category_key: Category id to filter by, or None for all posts
            page: 1-based page number
            page_size: Rows per page (limit)
            token: Reader's session token, if any
            sequence: Request ticket the page is tagged with
            with_authors: Resolve author profiles through the relationship

        Returns:
            The ordered page with cursor flags; no total count is requested
        """
        offset = page_offset(page, page_size)
        variables: Dict[str, Any] = {"limit": page_size, "offset": offset}

        if category_key:
            variables["categoryId"] = category_key
            query = (
                GET_PAGINATED_POSTS_BY_CATEGORY_WITH_AUTHORS if with_authors
                else GET_PAGINATED_POSTS_BY_CATEGORY
            )
        else:
            query = GET_PAGINATED_POSTS_WITH_AUTHORS if with_authors else GET_PAGINATED_POSTS

        data = await self.client.graphql(query, variables, token)
        try:
            result = self.parse_page(data, with_authors)
        except (KeyError, TypeError, ValidationError) as e:
            raise BackendQueryError(f"Malformed posts payload: {e}") from e
        result.category_key = category_key
        result.offset = offset
        result.limit = page_size
        result.sequence = sequence
        result.cursor.has_previous = offset > 0

        logger.info(
            f"Fetched {len(result.posts)} posts (category={category_key or 'all'}, "
            f"offset={offset}, has_next={result.cursor.has_next})"
        )

        await self._store(result)
        return result

    @staticmethod
    def parse_page(data: Dict[str, Any], with_authors: bool = False) -> PostPage:
        """Turn a postsCollection payload into a PostPage"""
        collection = data.get("postsCollection") or {}
        edges = collection.get("edges") or []
        page_info = collection.get("pageInfo") or {}

        posts = []
        embedded: Dict[str, Optional[Profile]] = {}
        for edge in edges:
            node = dict(edge["node"])
            author = node.pop("author", None)
            post = Post(**node)
            if not post.is_published:
                logger.warning(f"Dropping unpublished post {post.id} from feed page")
                continue
            posts.append(post)
            if with_authors and post.author_id:
                embedded[post.author_id] = Profile(**author) if author else None

        return PostPage(
            posts=order_by_published(posts),
            cursor=CursorState(has_next=bool(page_info.get("hasNextPage", False))),
            embedded_profiles=embedded if with_authors else None,
        )
