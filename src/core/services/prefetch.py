"""Prefetch de palabras de la siguiente ronda.

Por qué existe:
- Buscar 10 palabras jugables puede llevar varias peticiones; si se hace
  mientras corre el temporizador de la ronda actual, entre rondas no hay
  pantalla de carga.

Reglas:
- Como mucho una de: nada, pool resuelto, task pendiente (en la sesión).
- Nunca se cancela un prefetch: termina y su resultado se guarda o se tira.
- La continuación solo escribe en la sesión que lo inició y solo si esa
  sesión sigue apuntando al mismo task (una sesión reemplazada por
  load/reset nunca recibe un pool viejo).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from core.domain.models import Session, WordCandidate
from core.services.word_pipeline import WordSourcingPipeline

logger = logging.getLogger(__name__)


class PrefetchCoordinator:
    def __init__(self, pipeline: WordSourcingPipeline) -> None:
        self._pipeline = pipeline
        # Referencias fuertes a los tasks con continuación adjunta.
        self._watched: dict[asyncio.Task[list[WordCandidate]], Session] = {}

    @property
    def watched(self) -> int:
        return len(self._watched)

    def maybe_start(self, session: Session) -> bool:
        """Lanza el prefetch si hay ronda siguiente y no hay nada guardado/en curso."""

        if session.round >= session.total_rounds:
            return False
        if session.prefetched_words is not None or session.prefetch_in_flight is not None:
            return False

        session.prefetch_in_flight = asyncio.get_running_loop().create_task(
            self._pipeline.fetch_words(session.category, exclude_humans=session.exclude_humans)
        )
        logger.debug("Prefetch started for round %d (%s)", session.round + 1, session.category)
        return True

    def on_round_end(self, session: Session) -> None:
        """Adjunta la continuación store-on-resolve sin bloquear."""

        task = session.prefetch_in_flight
        if task is None or task in self._watched:
            return
        self._watched[task] = session
        task.add_done_callback(self._store_result)

    def _store_result(self, task: asyncio.Task[list[WordCandidate]]) -> None:
        session = self._watched.pop(task, None)
        if task.cancelled():
            if session is not None and session.prefetch_in_flight is task:
                session.prefetch_in_flight = None
            return

        exc = task.exception()
        if session is None or session.prefetch_in_flight is not task:
            if exc is not None:
                logger.debug("Discarded prefetch failed: %s", exc)
            return

        session.prefetch_in_flight = None
        if exc is not None:
            logger.error("Error in prefetch: %s", exc)
            return
        session.prefetched_words = task.result()
        logger.debug("Prefetched %d words", len(session.prefetched_words))

    async def take(
        self,
        session: Session,
        *,
        on_wait: Callable[[], None] | None = None,
    ) -> list[WordCandidate]:
        """Pool para la siguiente ronda: cache -> en curso -> búsqueda nueva."""

        if session.prefetched_words is not None:
            words = session.prefetched_words
            session.prefetched_words = None
            session.prefetch_in_flight = None
            return words

        if on_wait:
            on_wait()

        task = session.prefetch_in_flight
        if task is not None:
            try:
                words = await task
            finally:
                if session.prefetch_in_flight is task:
                    session.prefetch_in_flight = None
            # La continuación puede haber guardado este mismo pool antes.
            if session.prefetched_words is words:
                session.prefetched_words = None
            return words

        return await self._pipeline.fetch_words(session.category, exclude_humans=session.exclude_humans)

    def discard(self, session: Session) -> None:
        """Olvida el prefetch de la sesión (sin cancelarlo)."""

        task = session.prefetch_in_flight
        session.prefetched_words = None
        session.prefetch_in_flight = None
        if task is not None and task not in self._watched:
            self._watched[task] = session
            task.add_done_callback(self._store_result)
