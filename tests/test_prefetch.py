"""
Tests for the next-round prefetch coordinator.
"""

import asyncio

import pytest

from core.domain.errors import SourcingError
from core.domain.models import Session
from core.services.prefetch import PrefetchCoordinator

from .conftest import make_articles


class GatedPipeline:
    """fetch_words blocks until `release()`; counts calls."""

    def __init__(self, words=None, error: Exception | None = None):
        self.words = words if words is not None else make_articles(10)
        self.error = error
        self.calls: list[tuple[str, bool]] = []
        self.gate = asyncio.Event()

    def release(self):
        self.gate.set()

    async def fetch_words(self, category="random", *, exclude_humans=False):
        self.calls.append((category, exclude_humans))
        await self.gate.wait()
        if self.error:
            raise self.error
        return list(self.words)


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def session():
    return Session(round=1, total_rounds=3, category="random")


class TestStart:
    @pytest.mark.asyncio
    async def test_idempotent(self, session):
        pipeline = GatedPipeline()
        coordinator = PrefetchCoordinator(pipeline)

        assert coordinator.maybe_start(session)
        task = session.prefetch_in_flight
        assert not coordinator.maybe_start(session)

        await _settle()
        assert session.prefetch_in_flight is task
        assert len(pipeline.calls) == 1

        pipeline.release()
        await task

    @pytest.mark.asyncio
    async def test_not_on_last_round(self):
        session = Session(round=3, total_rounds=3)
        coordinator = PrefetchCoordinator(GatedPipeline())
        assert not coordinator.maybe_start(session)
        assert session.prefetch_in_flight is None

    @pytest.mark.asyncio
    async def test_not_when_pool_is_cached(self, session):
        session.prefetched_words = make_articles(10)
        coordinator = PrefetchCoordinator(GatedPipeline())
        assert not coordinator.maybe_start(session)


class TestStoreOnResolve:
    @pytest.mark.asyncio
    async def test_resolved_pool_is_stored_and_consumed(self, session):
        pipeline = GatedPipeline()
        coordinator = PrefetchCoordinator(pipeline)
        coordinator.maybe_start(session)

        coordinator.on_round_end(session)
        assert coordinator.watched == 1
        pipeline.release()
        await _settle()

        assert session.prefetch_in_flight is None
        assert len(session.prefetched_words) == 10
        assert coordinator.watched == 0

        waited = []
        words = await coordinator.take(session, on_wait=lambda: waited.append(True))
        assert len(words) == 10
        assert waited == []
        assert session.prefetched_words is None
        assert len(pipeline.calls) == 1

    @pytest.mark.asyncio
    async def test_error_is_logged_and_cleared(self, session):
        pipeline = GatedPipeline(error=SourcingError("down"))
        coordinator = PrefetchCoordinator(pipeline)
        coordinator.maybe_start(session)
        coordinator.on_round_end(session)

        pipeline.release()
        await _settle()

        assert session.prefetch_in_flight is None
        assert session.prefetched_words is None

    @pytest.mark.asyncio
    async def test_discarded_session_is_not_written(self, session):
        pipeline = GatedPipeline()
        coordinator = PrefetchCoordinator(pipeline)
        coordinator.maybe_start(session)
        task = session.prefetch_in_flight

        coordinator.discard(session)
        pipeline.release()
        await task
        await _settle()

        assert session.prefetched_words is None
        assert session.prefetch_in_flight is None


class TestTake:
    @pytest.mark.asyncio
    async def test_awaits_pending_fetch(self, session):
        pipeline = GatedPipeline()
        coordinator = PrefetchCoordinator(pipeline)
        coordinator.maybe_start(session)
        coordinator.on_round_end(session)

        waited = []
        take = asyncio.create_task(coordinator.take(session, on_wait=lambda: waited.append(True)))
        await _settle()
        assert waited == [True]

        pipeline.release()
        words = await take
        await _settle()

        assert len(words) == 10
        assert session.prefetch_in_flight is None
        assert session.prefetched_words is None
        assert len(pipeline.calls) == 1

    @pytest.mark.asyncio
    async def test_fresh_fetch_without_prefetch(self, session):
        pipeline = GatedPipeline()
        pipeline.release()
        coordinator = PrefetchCoordinator(pipeline)

        waited = []
        words = await coordinator.take(session, on_wait=lambda: waited.append(True))

        assert len(words) == 10
        assert waited == [True]
        assert pipeline.calls == [("random", False)]
