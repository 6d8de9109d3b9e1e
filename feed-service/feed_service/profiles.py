"""
Batched author profile lookup for one page of posts
"""
from typing import Dict, Iterable, List, Optional
import logging

from .schemas import Post, Profile
from .service_client import ServiceClient

logger = logging.getLogger(__name__)


def distinct_author_ids(posts: Iterable[Post]) -> List[str]:
    """Non-null author ids in first-seen order, without duplicates"""
    seen: Dict[str, None] = {}
    for post in posts:
        if post.author_id and post.author_id not in seen:
            seen[post.author_id] = None
    return list(seen)


class ProfileBatchLoader:
    """Loads the display profiles of a page's authors in one request"""

    def __init__(self, client: ServiceClient):
        self.client = client

    async def load(
        self,
        posts: List[Post],
        token: Optional[str] = None
    ) -> Dict[str, Optional[Profile]]:
        """
        Map each distinct author id on the page to its profile

        Ids the backend does not return map to None. No request is made
        when the page has no authors.
        """
        author_ids = distinct_author_ids(posts)
        if not author_ids:
            return {}

        rows = await self.client.get_profiles(author_ids, token)
        found = {row["id"]: Profile(**row) for row in rows if row.get("id")}

        missing = [author_id for author_id in author_ids if author_id not in found]
        if missing:
            logger.info(f"No profile for {len(missing)} author(s): {missing}")

        return {author_id: found.get(author_id) for author_id in author_ids}
