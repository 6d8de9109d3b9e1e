"""
Tests for the per-session controller registry
"""

import pytest

from feed_service.cache import MemoryCacheStore
from feed_service.sessions import FeedSessions


class TestFeedSessions:

    @pytest.mark.asyncio
    async def test_same_key_same_controller(self, backend):
        sessions = FeedSessions(backend, max_sessions=5, backend="memory")

        first = await sessions.get("reader:1")
        again = await sessions.get("reader:1")
        other = await sessions.get("reader:2")

        assert first is again
        assert first is not other
        assert len(sessions) == 2

    @pytest.mark.asyncio
    async def test_controllers_own_separate_caches(self, backend):
        sessions = FeedSessions(backend, max_sessions=5, backend="memory")

        first = await sessions.get("a")
        second = await sessions.get("b")

        assert isinstance(first.cache, MemoryCacheStore)
        assert first.cache is not second.cache

    @pytest.mark.asyncio
    async def test_least_recently_used_evicted(self, backend):
        sessions = FeedSessions(backend, max_sessions=2, backend="memory")

        await sessions.get("a")
        await sessions.get("b")
        await sessions.get("a")
        await sessions.get("c")

        assert "a" in sessions
        assert "c" in sessions
        assert "b" not in sessions

    @pytest.mark.asyncio
    async def test_memory_backend_start_stop(self, backend):
        sessions = FeedSessions(backend, backend="memory")
        await sessions.start()
        await sessions.get("a")

        await sessions.stop()

        assert len(sessions) == 0
