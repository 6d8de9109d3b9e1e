from .controller import FeedController
from .merger import FeedMerger, merge_posts
from .pagination import estimate_pagination
from .schemas import FeedPageRequest, FeedView, FeedStatus
from .service_client import ServiceClient


__all__ = [
    # controller.py
    "FeedController",
    # merger.py
    "FeedMerger",
    "merge_posts",
    # pagination.py
    "estimate_pagination",
    # schemas.py
    "FeedPageRequest",
    "FeedView",
    "FeedStatus",
    # service_client.py
    "ServiceClient",
]
