"""
Interchangeable ways of assembling a feed page

JoinStrategy asks the backend to resolve each post's author through the
posts → profiles relationship. ManualMergeStrategy fetches plain posts and
batch-loads the profiles separately. Both feed the same merger, so the
merged output does not depend on which one ran.
"""
from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging

from .exceptions import BackendQueryError, FeedServiceError, RelationshipUnsupportedError
from .fetcher import PostPageFetcher
from .profiles import ProfileBatchLoader
from .queries import GET_PAGINATED_POSTS_WITH_AUTHORS
from .schemas import PostPage, Profile

logger = logging.getLogger(__name__)

_RELATIONSHIP_ERROR_MARKERS = (
    "unknown field",
    "cannot query field",
    "relationship",
)


def is_relationship_error(error: BackendQueryError) -> bool:
    """True when a query error means the relationship field does not exist"""
    message = str(error).lower()
    return any(marker in message for marker in _RELATIONSHIP_ERROR_MARKERS)


class AssemblyStrategy(ABC):
    """Feed page assembly interface"""

    name: str = ""

    @abstractmethod
    async def fetch_page(
        self,
        category_key: Optional[str],
        page: int,
        page_size: int,
        token: Optional[str],
        sequence: int,
    ) -> PostPage:
        """Fetch one page of posts"""
        pass

    @abstractmethod
    async def load_profiles(
        self,
        page: PostPage,
        token: Optional[str],
    ) -> Dict[str, Optional[Profile]]:
        """Author id → profile for the posts on `page`"""
        pass


class ManualMergeStrategy(AssemblyStrategy):
    """Plain page query followed by one batched profile lookup"""

    name = "manual"

    def __init__(self, fetcher: PostPageFetcher, profile_loader: ProfileBatchLoader):
        self.fetcher = fetcher
        self.profile_loader = profile_loader

    async def fetch_page(self, category_key, page, page_size, token, sequence) -> PostPage:
        return await self.fetcher.fetch(category_key, page, page_size, token, sequence)

    async def load_profiles(self, page, token) -> Dict[str, Optional[Profile]]:
        return await self.profile_loader.load(page.posts, token)


class JoinStrategy(AssemblyStrategy):
    """Single query with authors embedded through the relationship"""

    name = "join"

    def __init__(self, fetcher: PostPageFetcher, profile_loader: ProfileBatchLoader):
        self.fetcher = fetcher
        self.profile_loader = profile_loader

    async def fetch_page(self, category_key, page, page_size, token, sequence) -> PostPage:
        try:
            return await self.fetcher.fetch(
                category_key, page, page_size, token, sequence, with_authors=True
            )
        except BackendQueryError as e:
            if is_relationship_error(e):
                raise RelationshipUnsupportedError(str(e), e.errors) from e
            raise

    async def load_profiles(self, page, token) -> Dict[str, Optional[Profile]]:
        if page.embedded_profiles is not None:
            return dict(page.embedded_profiles)
        return await self.profile_loader.load(page.posts, token)


class StrategySelector:
    """
    Picks the assembly strategy once per session

    mode "join" or "manual" fixes the choice. "auto" probes the backend
    with a one-row joined query: success (even with zero rows) selects
    join, a relationship error selects manual for good. Any other failure
    uses manual for that call only and probes again next time.
    """

    def __init__(
        self,
        fetcher: PostPageFetcher,
        profile_loader: ProfileBatchLoader,
        mode: str = "auto",
    ):
        if mode not in ("auto", "join", "manual"):
            raise ValueError(f"Unknown assembly strategy: {mode}")

        self.fetcher = fetcher
        self.mode = mode
        self.join = JoinStrategy(fetcher, profile_loader)
        self.manual = ManualMergeStrategy(fetcher, profile_loader)
        self._selected: Optional[AssemblyStrategy] = None

        if mode == "join":
            self._selected = self.join
        elif mode == "manual":
            self._selected = self.manual

    @property
    def selected(self) -> Optional[AssemblyStrategy]:
        return self._selected

    async def select(self, token: Optional[str] = None) -> AssemblyStrategy:
        if self._selected is not None:
            return self._selected

        try:
            await self.fetcher.client.graphql(
                GET_PAGINATED_POSTS_WITH_AUTHORS,
                {"limit": 1, "offset": 0},
                token,
            )
        except BackendQueryError as e:
            if is_relationship_error(e):
                logger.warning(f"Backend cannot join authors ({e}); using manual merge")
                self._selected = self.manual
                return self.manual
            logger.warning(f"Strategy probe inconclusive: {e}")
            return self.manual
        except FeedServiceError as e:
            logger.warning(f"Strategy probe inconclusive: {e}")
            return self.manual

        logger.info("Backend supports author joins; using join strategy")
        self._selected = self.join
        return self.join

    def demote(self) -> AssemblyStrategy:
        """Switch to manual merge after the join was rejected at runtime"""
        if self._selected is not self.manual:
            logger.warning("Join strategy rejected by backend; switching to manual merge")
        self._selected = self.manual
        return self.manual
