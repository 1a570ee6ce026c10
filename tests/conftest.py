"""
Pytest fixtures for Pantomima tests.

Fakes stand in for the protocols in `core.interfaces`, so the core can be
exercised without network or disk.
"""

from __future__ import annotations

import random
from typing import Sequence

import pytest

from core.config import AppSettings
from core.domain.errors import ClassificationError
from core.domain.models import WordCandidate
from core.services.persistence import PersistenceStore
from core.services.round_machine import MachineHooks, RoundStateMachine
from core.services.word_pipeline import WordSourcingPipeline

GREEK = "αβγδεζηθικλμνξοπρστυφχψω"

LONG_SUMMARY = (
    "Η γάτα είναι μικρό σαρκοφάγο θηλαστικό που ζει συχνά μαζί με τους "
    "ανθρώπους ως κατοικίδιο ζώο."
)


def greek_title(i: int) -> str:
    """Playable two-word title without digits: 'Λέξη αβ'."""
    return f"Λέξη {GREEK[(i // len(GREEK)) % len(GREEK)]}{GREEK[i % len(GREEK)]}"


def make_word(
    title: str,
    summary: str = LONG_SUMMARY,
    external_id: str | None = None,
    image_url: str | None = None,
) -> WordCandidate:
    return WordCandidate(title=title, summary=summary, external_id=external_id, image_url=image_url)


def make_articles(n: int, *, start: int = 0) -> list[WordCandidate]:
    return [make_word(greek_title(i), external_id=f"Q{1000 + i}") for i in range(start, start + n)]


class FakeContentSource:
    def __init__(
        self,
        articles: list[WordCandidate] | None = None,
        *,
        categories: dict[str, list[str]] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.articles = list(articles or [])
        self.by_title = {a.title: a for a in self.articles}
        self.categories = categories or {}
        self.error = error
        self.random_calls: list[int] = []
        self.category_calls: list[tuple[str, int]] = []
        self.metadata_calls: list[list[str]] = []
        self._pos = 0

    async def random_titles(self, n: int) -> list[str]:
        self.random_calls.append(n)
        if self.error:
            raise self.error
        if not self.articles:
            return []
        titles = []
        for _ in range(n):
            titles.append(self.articles[self._pos % len(self.articles)].title)
            self._pos += 1
        return titles

    async def category_members(self, category: str, limit: int) -> list[str]:
        self.category_calls.append((category, limit))
        if self.error:
            raise self.error
        return list(self.categories.get(category, []))[:limit]

    async def metadata(self, titles: Sequence[str]) -> list[WordCandidate]:
        self.metadata_calls.append(list(titles))
        if self.error:
            raise self.error
        return [self.by_title[t] for t in titles if t in self.by_title]


class FakeClassifier:
    def __init__(self, persons: set[str] | None = None, *, fail: bool = False) -> None:
        self.persons = persons or set()
        self.fail = fail
        self.calls: list[list[str]] = []

    async def classify(self, ids: Sequence[str]) -> dict[str, bool]:
        self.calls.append(list(ids))
        if self.fail:
            raise ClassificationError("wikidata down")
        return {i: i in self.persons for i in ids}


class MemoryStore:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class CountingPipeline(WordSourcingPipeline):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.fetch_count = 0

    async def fetch_words(self, category: str = "random", *, exclude_humans: bool = False):
        self.fetch_count += 1
        return await super().fetch_words(category, exclude_humans=exclude_humans)


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    return AppSettings(
        _env_file=None,
        state_dir=tmp_path / "state",
        tick_seconds=3600,
        round_duration_seconds=10,
        total_rounds=1,
        max_sourcing_attempts=5,
    )


@pytest.fixture
def source() -> FakeContentSource:
    return FakeContentSource(make_articles(40))


@pytest.fixture
def classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def pipeline(source, classifier, settings) -> CountingPipeline:
    return CountingPipeline(source, classifier, settings=settings, rng=random.Random(7))


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def store(memory_store) -> PersistenceStore:
    return PersistenceStore(memory_store)


class Recorder:
    def __init__(self) -> None:
        self.notices: list[str] = []
        self.states: list = []
        self.ticks: list[int] = []

    def hooks(self) -> MachineHooks:
        return MachineHooks(
            notice=self.notices.append,
            state_changed=self.states.append,
            tick=self.ticks.append,
        )


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def machine(pipeline, store, settings, recorder) -> RoundStateMachine:
    return RoundStateMachine(pipeline, store, settings=settings, hooks=recorder.hooks())
