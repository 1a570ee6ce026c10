"""
Tests for the word sourcing pipeline.

Tests:
- Quota and attempt limit
- Random batch sizing
- Category sampling
- Person filter wiring
- Error propagation
"""

import random

import pytest

from core.domain.errors import SourcingError
from core.services.content_filter import is_playable
from core.services.word_pipeline import WordSourcingPipeline

from .conftest import FakeClassifier, FakeContentSource, greek_title, make_articles, make_word


class TestRandomCategory:
    @pytest.mark.asyncio
    async def test_returns_quota_of_playable_words(self, pipeline, source):
        words = await pipeline.fetch_words("random")

        assert len(words) == 10
        assert all(is_playable(w) for w in words)
        # Primer lote: min(20, 10 + 10 * 2)
        assert source.random_calls[0] == 20

    def test_batch_size_shrinks_as_pool_fills(self, pipeline):
        assert pipeline.random_batch_size(0) == 20
        assert pipeline.random_batch_size(8) == 14
        assert pipeline.random_batch_size(10) == 10

    @pytest.mark.asyncio
    async def test_all_is_an_alias_of_random(self, pipeline, source):
        await pipeline.fetch_words("all")
        assert source.random_calls
        assert source.category_calls == []

    @pytest.mark.asyncio
    async def test_short_pool_after_attempt_limit(self, settings):
        junk = [make_word("Απόλλων 13"), make_word("Γάτα", summary="Λίγο.")]
        source = FakeContentSource(junk)
        pipeline = WordSourcingPipeline(source, settings=settings)

        words = await pipeline.fetch_words("random")

        assert words == []
        assert len(source.random_calls) == settings.max_sourcing_attempts

    @pytest.mark.asyncio
    async def test_keeps_retrying_until_quota(self, settings):
        # Solo 1 de cada 4 artículos es jugable.
        articles = []
        for i in range(40):
            title = greek_title(i) if i % 4 == 0 else f"Έτος {i}"
            articles.append(make_word(title))
        source = FakeContentSource(articles)
        pipeline = WordSourcingPipeline(source, settings=settings.model_copy(update={"max_sourcing_attempts": 100}))

        words = await pipeline.fetch_words("random")

        assert len(words) == 10
        assert len(source.random_calls) > 1

    @pytest.mark.asyncio
    async def test_empty_batch_skips_metadata(self, settings):
        source = FakeContentSource([])
        pipeline = WordSourcingPipeline(source, settings=settings)

        assert await pipeline.fetch_words("random") == []
        assert source.metadata_calls == []


class TestCategory:
    @pytest.mark.asyncio
    async def test_samples_category_members(self, settings):
        articles = make_articles(60)
        category = "Κατηγορία:Ζώα"
        source = FakeContentSource(articles, categories={category: [a.title for a in articles]})
        pipeline = WordSourcingPipeline(source, settings=settings, rng=random.Random(1))

        words = await pipeline.fetch_words(category)

        assert len(words) == 10
        assert source.category_calls[0] == (category, 50)
        assert len(source.metadata_calls[0]) == 30
        assert source.random_calls == []

    @pytest.mark.asyncio
    async def test_unknown_category_gives_up(self, settings):
        source = FakeContentSource(make_articles(5))
        pipeline = WordSourcingPipeline(source, settings=settings)

        assert await pipeline.fetch_words("Κατηγορία:Τίποτα") == []
        assert len(source.category_calls) == settings.max_sourcing_attempts


class TestExcludeHumans:
    @pytest.mark.asyncio
    async def test_persons_are_dropped(self, settings):
        articles = make_articles(20)
        persons = {a.external_id for a in articles[:10]}
        source = FakeContentSource(articles)
        classifier = FakeClassifier(persons)
        pipeline = WordSourcingPipeline(source, classifier, settings=settings)

        words = await pipeline.fetch_words("random", exclude_humans=True)

        assert len(words) == 10
        assert not {w.external_id for w in words} & persons
        assert classifier.calls

    @pytest.mark.asyncio
    async def test_classifier_unused_when_disabled(self, pipeline, classifier):
        await pipeline.fetch_words("random")
        assert classifier.calls == []


class TestErrors:
    @pytest.mark.asyncio
    async def test_sourcing_error_propagates(self, settings):
        source = FakeContentSource(make_articles(5), error=SourcingError("boom"))
        pipeline = WordSourcingPipeline(source, settings=settings)

        with pytest.raises(SourcingError):
            await pipeline.fetch_words("random")
        assert len(source.random_calls) == 1
