"""
Feed Controller - drives one reader's feed through its states

idle → resolving_category → fetching_page → loading_profiles → ready,
with error reachable from resolving_category and fetching_page.
"""
import asyncio
from typing import Callable, Dict, List, Optional
import logging

from .cache import CacheStore, MemoryCacheStore
from .categories import CategoryIndex
from .config import settings
from .exceptions import FeedServiceError, RelationshipUnsupportedError, StaleResponseError
from .fetcher import PostPageFetcher
from .merger import FeedMerger
from .pagination import estimate_pagination
from .profiles import ProfileBatchLoader
from .resolver import CategoryResolver
from .schemas import Category, CursorState, FeedPageRequest, FeedStatus, FeedView
from .sequencing import RequestSequencer
from .service_client import ServiceClient
from .strategies import StrategySelector

logger = logging.getLogger(__name__)

Subscriber = Callable[[FeedView], None]


class FeedController:
    """Owns the caches and observable state of one feed session"""

    def __init__(
        self,
        client: ServiceClient,
        cache: Optional[CacheStore] = None,
        strategy: Optional[str] = None,
        merger: Optional[FeedMerger] = None,
    ):
        self.client = client
        self.cache = cache or MemoryCacheStore()
        self.resolver = CategoryResolver(client)
        self.category_index = CategoryIndex(client, self.cache)
        self.fetcher = PostPageFetcher(client, self.cache)
        self.profile_loader = ProfileBatchLoader(client)
        self.strategies = StrategySelector(
            self.fetcher,
            self.profile_loader,
            strategy or settings.ASSEMBLY_STRATEGY,
        )
        self.merger = merger or FeedMerger()
        self.sequencer = RequestSequencer()

        self._state = FeedView()
        self._subscribers: List[Subscriber] = []
        self._last_request: Optional[FeedPageRequest] = None
        self._last_token: Optional[str] = None
        self._navigation: Optional[asyncio.Future] = None
        self._render_lock = asyncio.Lock()

    @property
    def state(self) -> FeedView:
        return self._state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call `callback` with every published view; returns an unsubscribe function"""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, ticket: int, **changes) -> bool:
        """Apply a state change if `ticket` is still the current request"""
        if not self.sequencer.is_current(ticket):
            return False

        self._state = self._state.model_copy(update=changes)
        logger.debug(f"Feed #{ticket} → {self._state.status.value}")
        for callback in list(self._subscribers):
            callback(self._state)
        return True

    async def navigate(
        self,
        request: FeedPageRequest,
        token: Optional[str] = None
    ) -> FeedView:
        """
        Handle a navigation event (page change or category change)

        Supersedes any navigation still in flight: its responses are
        dropped when they arrive. A superseded call waits for the newest
        navigation to settle and returns that view, never a half-finished one.
        """
        ticket = self.sequencer.issue()
        self._last_request = request
        self._last_token = token
        settled = asyncio.get_running_loop().create_future()
        self._navigation = settled

        # Independent of the page query; awaited only at merge time
        categories = asyncio.ensure_future(self._load_categories(token))

        try:
            await self._assemble(ticket, request, token, categories)
        except StaleResponseError as e:
            logger.debug(f"Discarded stale feed response: {e}")
        finally:
            # The shared catalog load itself is shielded inside CategoryIndex
            if not categories.done():
                categories.cancel()
            if not settled.done():
                settled.set_result(None)

        while self._navigation is not settled:
            settled = self._navigation
            await asyncio.shield(settled)

        return self.state

    async def retry(self) -> FeedView:
        """Re-run the last navigation"""
        if self._last_request is None:
            return self.state
        return await self.navigate(self._last_request, self._last_token)

    async def render(
        self,
        request: FeedPageRequest,
        token: Optional[str] = None
    ) -> FeedView:
        """
        Navigate on behalf of one HTTP request and return its own view

        Calls on one controller run one at a time, so concurrent requests
        sharing a session never answer with each other's page.
        """
        async with self._render_lock:
            return await self.navigate(request, token)

    async def render_retry(self) -> FeedView:
        """Retry on behalf of one HTTP request, queued like `render`"""
        async with self._render_lock:
            return await self.retry()

    async def refresh(self) -> None:
        """Drop every cached snapshot so the next navigation refetches"""
        self.resolver.invalidate()
        await self.category_index.invalidate()
        await self.fetcher.invalidate()
        logger.info("Feed caches invalidated")

    async def _load_categories(self, token: Optional[str]) -> Dict[str, Category]:
        try:
            category_map = await self.category_index.load(token)
        except FeedServiceError as e:
            logger.warning(f"Category catalog unavailable, showing posts as uncategorized: {e}")
            return {}
        self.resolver.prime(self.category_index.categories)
        return category_map

    async def _assemble(
        self,
        ticket: int,
        request: FeedPageRequest,
        token: Optional[str],
        categories: "asyncio.Future[Dict[str, Category]]",
    ) -> None:
        slug = request.category_slug

        if not self.resolver.is_cached(slug):
            self._publish(ticket, status=FeedStatus.RESOLVING_CATEGORY, request=request, error=None)
        try:
            resolution = await self.resolver.resolve(slug, token)
        except FeedServiceError as e:
            self.sequencer.ensure_current(ticket)
            self._fail(ticket, request, e)
            return
        self.sequencer.ensure_current(ticket)

        if not resolution.should_query:
            self._publish(
                ticket,
                status=FeedStatus.READY,
                request=request,
                posts=[],
                pagination=estimate_pagination(request.page, CursorState()),
                error=None,
                is_stale=False,
            )
            return

        self._publish(ticket, status=FeedStatus.FETCHING_PAGE, request=request, error=None)

        cached = await self.fetcher.cached(resolution.key, request.page, request.page_size)
        self.sequencer.ensure_current(ticket)
        if cached is not None:
            self._publish(
                ticket,
                status=FeedStatus.READY,
                posts=self.merger.merge(
                    cached.posts,
                    self.category_index.by_id,
                    cached.embedded_profiles or {},
                ),
                pagination=estimate_pagination(request.page, cached.cursor),
                is_stale=True,
            )

        strategy = await self.strategies.select(token)
        try:
            try:
                page = await strategy.fetch_page(
                    resolution.key, request.page, request.page_size, token, ticket
                )
            except RelationshipUnsupportedError:
                strategy = self.strategies.demote()
                page = await strategy.fetch_page(
                    resolution.key, request.page, request.page_size, token, ticket
                )
        except FeedServiceError as e:
            self.sequencer.ensure_current(ticket)
            self._fail(ticket, request, e)
            return
        self.sequencer.ensure_current(ticket)

        self._publish(ticket, status=FeedStatus.LOADING_PROFILES)
        try:
            profiles = await strategy.load_profiles(page, token)
        except Exception as e:
            logger.warning(f"Profile lookup failed, showing authors as anonymous: {e}")
            profiles = {}
        self.sequencer.ensure_current(ticket)
        await self.fetcher.remember_profiles(page, profiles)

        category_map = await categories
        self.sequencer.ensure_current(ticket)

        self._publish(
            ticket,
            status=FeedStatus.READY,
            request=request,
            posts=self.merger.merge(page.posts, category_map, profiles),
            pagination=estimate_pagination(request.page, page.cursor),
            error=None,
            is_stale=False,
        )

    def _fail(self, ticket: int, request: FeedPageRequest, error: Exception) -> None:
        """Enter error state, keeping the last rendered posts on screen"""
        logger.error(f"Failed to load feed page {request.page} ({request.category_slug or 'all'}): {error}")
        self._publish(
            ticket,
            status=FeedStatus.ERROR,
            request=request,
            error=str(error) or error.__class__.__name__,
        )
