"""
Tests for CategoryResolver
"""

import pytest

from feed_service.exceptions import BackendUnavailableError
from feed_service.resolver import (
    ALL_CATEGORIES,
    CategoryResolver,
    ResolutionKind,
)
from feed_service.schemas import Category


class TestResolve:

    @pytest.mark.asyncio
    async def test_no_slug_means_all_categories(self, backend):
        resolver = CategoryResolver(backend)

        resolution = await resolver.resolve(None)

        assert resolution == ALL_CATEGORIES
        assert resolution.key is None
        assert resolution.should_query is True
        assert backend.slug_queries == []

    @pytest.mark.asyncio
    async def test_known_slug_resolves_and_is_cached(self, backend):
        resolver = CategoryResolver(backend)

        first = await resolver.resolve("design")
        second = await resolver.resolve("design")

        assert first.kind == ResolutionKind.RESOLVED
        assert first.key == "K1"
        assert second == first
        assert backend.slug_queries == ["design"]
        assert resolver.is_cached("design")

    @pytest.mark.asyncio
    async def test_unknown_slug_blocks_query_and_is_not_cached(self, backend):
        resolver = CategoryResolver(backend)

        resolution = await resolver.resolve("nonexistent-xyz")

        assert resolution.kind == ResolutionKind.UNRESOLVED
        assert resolution.should_query is False
        assert not resolver.is_cached("nonexistent-xyz")

        backend.categories.append(
            {"id": "K9", "name": "New", "slug": "nonexistent-xyz", "description": None}
        )
        later = await resolver.resolve("nonexistent-xyz")
        assert later.key == "K9"

    @pytest.mark.asyncio
    async def test_backend_failure_propagates(self, backend):
        backend.fail_categories = BackendUnavailableError("timeout")
        resolver = CategoryResolver(backend)

        with pytest.raises(BackendUnavailableError):
            await resolver.resolve("design")


class TestCacheControl:

    @pytest.mark.asyncio
    async def test_prime_from_catalog_skips_query(self, backend):
        resolver = CategoryResolver(backend)
        resolver.prime([Category(id="K2", name="Code", slug="code")])

        resolution = await resolver.resolve("code")

        assert resolution.key == "K2"
        assert backend.slug_queries == []

    @pytest.mark.asyncio
    async def test_invalidate_forgets_keys(self, backend):
        resolver = CategoryResolver(backend)
        await resolver.resolve("design")

        resolver.invalidate()

        assert not resolver.is_cached("design")
        assert resolver.is_cached(None)
