"""Pipeline de obtención de palabras.

Este módulo concentra el flujo "pedir títulos -> pedir metadata -> filtrar ->
acumular" que alimenta cada ronda. La máquina de rondas y el prefetch lo usan
igual, y al no imprimir nada es reutilizable desde la CLI (`words`) y tests.
"""

from __future__ import annotations

import logging
import random

from core.config import AppSettings
from core.domain.models import WordCandidate
from core.interfaces.sources import ContentSource, KnowledgeGraphClassifier
from core.services.content_filter import exclude_known_persons, is_playable

logger = logging.getLogger(__name__)

RANDOM_CATEGORIES = frozenset({"random", "all"})


class WordSourcingPipeline:
    """Acumula un pool de palabras jugables para una ronda.

    Los errores de la fuente (`SourcingError`) no se reintentan aquí: suben
    tal cual para que el llamador decida cómo recuperarse.
    """

    def __init__(
        self,
        source: ContentSource,
        classifier: KnowledgeGraphClassifier | None = None,
        *,
        settings: AppSettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._source = source
        self._classifier = classifier
        self._settings = settings or AppSettings()
        self._rng = rng or random.Random()

    @property
    def quota(self) -> int:
        return self._settings.words_per_round

    def random_batch_size(self, accumulated: int) -> int:
        # Pedimos de más para compensar lo que descarta el filtro.
        missing = max(0, self.quota - accumulated)
        return min(self._settings.random_batch_cap, self.quota + missing * 2)

    async def _title_batch(self, category: str, accumulated: int) -> list[str]:
        if category in RANDOM_CATEGORIES:
            return await self._source.random_titles(self.random_batch_size(accumulated))

        members = await self._source.category_members(category, self._settings.category_fetch_limit)
        members = list(members)
        self._rng.shuffle(members)
        return members[: self._settings.category_sample_size]

    async def fetch_words(self, category: str = "random", *, exclude_humans: bool = False) -> list[WordCandidate]:
        valid: list[WordCandidate] = []
        attempts = 0

        while len(valid) < self.quota and attempts < self._settings.max_sourcing_attempts:
            titles = await self._title_batch(category, len(valid))

            if titles:
                articles = await self._source.metadata(titles)
                playable = [article for article in articles if is_playable(article)]
                if exclude_humans and self._classifier is not None:
                    playable = await exclude_known_persons(playable, self._classifier)
                valid.extend(playable)

            attempts += 1

        words = valid[: self.quota]
        self._rng.shuffle(words)

        if len(words) < self.quota:
            logger.warning(
                "Only %d/%d words for category %r after %d attempts",
                len(words),
                self.quota,
                category,
                attempts,
            )
        else:
            logger.info("Loaded %d words from category %r in %d attempts", len(words), category, attempts)
        return words
