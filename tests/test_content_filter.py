"""
Tests for the playability heuristic and the person filter.
"""

import pytest

from core.domain.models import WordCandidate
from core.services.content_filter import exclude_known_persons, is_playable

from .conftest import LONG_SUMMARY, FakeClassifier, make_word


class TestIsPlayable:
    def test_well_formed_word(self):
        """A short title with a long clean summary is playable."""
        assert is_playable(make_word("Γάτα"))

    def test_six_words_is_the_limit(self):
        assert is_playable(make_word("ένα δύο τρία τέσσερα πέντε έξι"))
        assert not is_playable(make_word("ένα δύο τρία τέσσερα πέντε έξι επτά"))

    def test_digit_in_title(self):
        assert not is_playable(make_word("Απόλλων 13"))

    @pytest.mark.parametrize("title", ["Παρίσι (μυθολογία)", "Κάτι: άλλο", "Παρίσι (πόλη"])
    def test_meta_characters(self, title):
        assert not is_playable(make_word(title))

    @pytest.mark.parametrize(
        "title",
        ["Κατάλογος χωρών", "Πρότυπο πλαίσιο", "Βικιπαίδεια Πολιτική", "Χρήστης Γιάννης"],
    )
    def test_namespace_prefixes(self, title):
        assert not is_playable(make_word(title))

    def test_short_summary_is_a_stub(self):
        assert not is_playable(make_word("Γάτα", summary="Μικρό ζώο."))

    def test_missing_summary(self):
        assert not is_playable(WordCandidate(title="Γάτα"))

    def test_disambiguation_summary(self):
        summary = "Η λέξη Γάτα μπορεί να αναφέρεται σε πολλά διαφορετικά πράγματα στη γλώσσα."
        assert not is_playable(make_word("Γάτα", summary=summary))

    @pytest.mark.parametrize("title", ["", "   "])
    def test_empty_title(self, title):
        assert not is_playable(make_word(title))

    def test_none_candidate(self):
        assert not is_playable(None)


class TestExcludeKnownPersons:
    @pytest.mark.asyncio
    async def test_drops_persons_in_one_call(self):
        words = [
            make_word("Γάτα", external_id="Q146"),
            make_word("Σωκράτης", external_id="Q913"),
            make_word("Σκύλος"),
        ]
        classifier = FakeClassifier({"Q913"})

        kept = await exclude_known_persons(words, classifier)

        assert [w.title for w in kept] == ["Γάτα", "Σκύλος"]
        assert classifier.calls == [["Q146", "Q913"]]

    @pytest.mark.asyncio
    async def test_fail_open(self):
        words = [make_word("Σωκράτης", external_id="Q913")]
        kept = await exclude_known_persons(words, FakeClassifier({"Q913"}, fail=True))
        assert kept == words

    @pytest.mark.asyncio
    async def test_no_ids_skips_lookup(self):
        words = [make_word("Γάτα"), make_word("Σκύλος", summary=LONG_SUMMARY)]
        classifier = FakeClassifier()

        kept = await exclude_known_persons(words, classifier)

        assert kept == words
        assert classifier.calls == []

    @pytest.mark.asyncio
    async def test_input_not_mutated(self):
        words = [make_word("Σωκράτης", external_id="Q913"), make_word("Γάτα", external_id="Q146")]
        original = list(words)
        await exclude_known_persons(words, FakeClassifier({"Q913"}))
        assert words == original

    @pytest.mark.asyncio
    async def test_fail_open_on_unexpected_error(self):
        class BrokenClassifier:
            async def classify(self, ids):
                raise RuntimeError("unexpected payload")

        words = [make_word("Σωκράτης", external_id="Q913"), make_word("Γάτα", external_id="Q146")]

        kept = await exclude_known_persons(words, BrokenClassifier())

        assert kept == words
