"""
Shared Test Fixtures for Feed Service

Provides record factories and an in-memory stand-in for the backend that
answers the same GraphQL documents and profile lookups the service sends.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from feed_service.exceptions import BackendQueryError, BackendUnavailableError


# =============================================================================
# Record Factories
# =============================================================================

def make_post(
    post_id: str,
    published_at: Optional[str] = "2024-05-01T10:00:00+00:00",
    category_id: Optional[str] = None,
    author_id: Optional[str] = None,
    is_published: bool = True,
    **overrides: Any,
) -> Dict[str, Any]:
    """Post row as the backend returns it"""
    row = {
        "id": post_id,
        "title": f"Post {post_id}",
        "slug": f"post-{post_id}",
        "excerpt": f"Excerpt for {post_id}",
        "cover_image": None,
        "published_at": published_at,
        "category_id": category_id,
        "author_id": author_id,
        "is_published": is_published,
    }
    row.update(overrides)
    return row


def make_category(category_id: str, slug: str, name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": category_id,
        "name": name or slug.title(),
        "slug": slug,
        "description": None,
    }


def make_profile(
    profile_id: str,
    full_name: Optional[str] = None,
    username: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "id": profile_id,
        "full_name": full_name,
        "username": username,
        "avatar_url": None,
    }


def day(n: int) -> str:
    """ISO timestamp on day `n` of May 2024"""
    return f"2024-05-{n:02d}T09:00:00+00:00"


# =============================================================================
# Fake Backend
# =============================================================================

class FakeBackend:
    """
    In-memory backend with the ServiceClient interface

    Supports failure injection and holding page queries until released,
    to reorder responses.
    """

    def __init__(
        self,
        posts: Optional[List[Dict[str, Any]]] = None,
        categories: Optional[List[Dict[str, Any]]] = None,
        profiles: Optional[List[Dict[str, Any]]] = None,
        join_supported: bool = True,
    ):
        self.posts = posts or []
        self.categories = categories or []
        self.profiles = profiles or []
        self.join_supported = join_supported

        self.fail_posts: Optional[Exception] = None
        self.fail_categories: Optional[Exception] = None
        self.fail_profiles: Optional[Exception] = None

        self.post_queries: List[Dict[str, Any]] = []
        self.probe_queries: List[Dict[str, Any]] = []
        self.slug_queries: List[str] = []
        self.category_loads = 0
        self.profile_calls: List[List[str]] = []
        self.tokens: List[Optional[str]] = []

        self._holds: Dict[int, asyncio.Event] = {}

    def hold(self, offset: int) -> asyncio.Event:
        """Block page queries at `offset` until the returned event is set"""
        event = asyncio.Event()
        self._holds[offset] = event
        return event

    async def graphql(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Dict[str, Any]:
        variables = variables or {}
        self.tokens.append(token)

        if "postsCollection" in query:
            return await self._posts(query, variables)
        if "GetCategoryBySlug" in query:
            return self._category_by_slug(variables["slug"])
        if "GetCategories" in query:
            return self._categories()
        raise AssertionError(f"Unexpected query: {query}")

    async def _posts(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        with_authors = "author: profiles" in query
        if with_authors and not self.join_supported:
            raise BackendQueryError('Unknown field "profiles" on type "Posts"')

        offset = variables["offset"]
        limit = variables["limit"]
        is_probe = with_authors and limit == 1 and offset == 0 and "categoryId" not in variables
        recorded = self.probe_queries if is_probe else self.post_queries
        recorded.append(dict(variables, with_authors=with_authors))

        if offset in self._holds and not is_probe:
            await self._holds[offset].wait()

        if self.fail_posts and not is_probe:
            raise self.fail_posts

        rows = [p for p in self.posts if p["is_published"]]
        if "categoryId" in variables:
            rows = [p for p in rows if p["category_id"] == variables["categoryId"]]
        dated = sorted((p for p in rows if p["published_at"]), key=lambda p: p["published_at"], reverse=True)
        rows = dated + [p for p in rows if not p["published_at"]]

        window = rows[offset:offset + limit]
        edges = []
        for row in window:
            node = dict(row)
            if with_authors:
                node["author"] = self._profile(row["author_id"])
            edges.append({"node": node})

        return {
            "postsCollection": {
                "edges": edges,
                "pageInfo": {
                    "hasNextPage": len(rows) > offset + limit,
                    "hasPreviousPage": offset > 0,
                },
            }
        }

    def _category_by_slug(self, slug: str) -> Dict[str, Any]:
        self.slug_queries.append(slug)
        if self.fail_categories:
            raise self.fail_categories
        matches = [c for c in self.categories if c["slug"] == slug][:1]
        return {"categoriesCollection": {"edges": [{"node": c} for c in matches]}}

    def _categories(self) -> Dict[str, Any]:
        self.category_loads += 1
        if self.fail_categories:
            raise self.fail_categories
        ordered = sorted(self.categories, key=lambda c: c["name"])
        return {"categoriesCollection": {"edges": [{"node": c} for c in ordered]}}

    def _profile(self, profile_id: Optional[str]) -> Optional[Dict[str, Any]]:
        for profile in self.profiles:
            if profile["id"] == profile_id:
                return profile
        return None

    async def get_profiles(self, profile_ids: List[str], token: Optional[str] = None) -> List[Dict[str, Any]]:
        self.profile_calls.append(list(profile_ids))
        self.tokens.append(token)
        if self.fail_profiles:
            raise self.fail_profiles
        return [p for p in self.profiles if p["id"] in profile_ids]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def categories():
    return [
        make_category("K1", "design", "Design"),
        make_category("K2", "code", "Code"),
    ]


@pytest.fixture
def profiles():
    return [
        make_profile("A", full_name="Ada Lovelace"),
        make_profile("B", username="bgrace"),
    ]


@pytest.fixture
def backend(categories, profiles):
    """Twelve posts: seven in design, four in code, one uncategorized"""
    posts = []
    for n in range(1, 8):
        posts.append(make_post(f"d{n}", published_at=day(n), category_id="K1", author_id="A"))
    for n in range(1, 5):
        posts.append(make_post(f"c{n}", published_at=day(10 + n), category_id="K2", author_id="B"))
    posts.append(make_post("u1", published_at=None, category_id=None, author_id=None))
    return FakeBackend(posts=posts, categories=categories, profiles=profiles)


@pytest.fixture
def unavailable():
    return BackendUnavailableError("connection refused")
