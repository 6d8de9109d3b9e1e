"""
Tests for ProfileBatchLoader
"""

import pytest

from conftest import FakeBackend, make_post, make_profile
from feed_service.exceptions import BackendUnavailableError
from feed_service.profiles import ProfileBatchLoader, distinct_author_ids
from feed_service.schemas import Post


def posts_by(*authors):
    return [Post(**make_post(f"p{i}", author_id=author)) for i, author in enumerate(authors)]


class TestDistinctAuthors:

    def test_duplicates_and_nulls_removed_in_order(self):
        assert distinct_author_ids(posts_by("A", "A", "B", None, "A")) == ["A", "B"]

    def test_no_authors(self):
        assert distinct_author_ids(posts_by(None, None)) == []


class TestLoad:

    @pytest.mark.asyncio
    async def test_one_call_with_distinct_keys(self):
        backend = FakeBackend(profiles=[make_profile("A", full_name="Ada"), make_profile("B")])
        loader = ProfileBatchLoader(backend)

        profiles = await loader.load(posts_by("A", "A", "B", None, "B"))

        assert backend.profile_calls == [["A", "B"]]
        assert profiles["A"].full_name == "Ada"
        assert set(profiles) == {"A", "B"}

    @pytest.mark.asyncio
    async def test_empty_page_makes_no_call(self):
        backend = FakeBackend()
        loader = ProfileBatchLoader(backend)

        assert await loader.load([]) == {}
        assert await loader.load(posts_by(None)) == {}
        assert backend.profile_calls == []

    @pytest.mark.asyncio
    async def test_missing_profiles_map_to_none(self):
        backend = FakeBackend(profiles=[make_profile("A")])
        loader = ProfileBatchLoader(backend)

        profiles = await loader.load(posts_by("A", "ghost"))

        assert profiles["ghost"] is None
        assert profiles["A"] is not None

    @pytest.mark.asyncio
    async def test_backend_failure_propagates(self):
        backend = FakeBackend()
        backend.fail_profiles = BackendUnavailableError("down")
        loader = ProfileBatchLoader(backend)

        with pytest.raises(BackendUnavailableError):
            await loader.load(posts_by("A"))
