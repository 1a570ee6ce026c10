"""Máquina de estados de las rondas.

Este módulo es el controlador del juego: posee la `Session`, decide qué
transiciones son válidas y llama al pipeline de palabras, al temporizador,
al prefetch y al guardado en puntos bien definidos. La capa de presentación
(CLI hoy, cualquier otra mañana) solo usa su superficie pública y lee
`snapshot()` para pintar.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from core.config import AppSettings
from core.domain.errors import PersistenceError, SourcingError, TransitionError
from core.domain.models import (
    SELECTION_SIZE,
    GameSetup,
    GameState,
    RoundResult,
    Session,
)
from core.services.persistence import PersistenceStore
from core.services.prefetch import PrefetchCoordinator
from core.services.timer import RoundTimer
from core.services.word_pipeline import WordSourcingPipeline

logger = logging.getLogger(__name__)

# Aristas que `request_state` acepta. TIMER -> RESULT lo dispara el temporizador.
_TRANSITIONS: dict[GameState, frozenset[GameState]] = {
    GameState.SETUP: frozenset({GameState.SELECTION}),
    GameState.SELECTION: frozenset({GameState.CHOICE}),
    GameState.CHOICE: frozenset({GameState.BRIEFING}),
    GameState.BRIEFING: frozenset({GameState.TIMER}),
    GameState.TIMER: frozenset(),
    GameState.RESULT: frozenset({GameState.SCOREBOARD}),
    GameState.SCOREBOARD: frozenset({GameState.SELECTION, GameState.FINAL}),
    GameState.FINAL: frozenset({GameState.SETUP}),
    GameState.LOADING: frozenset(),
}

_NEEDS_WORDS = frozenset({GameState.SELECTION, GameState.CHOICE, GameState.BRIEFING, GameState.TIMER})

FETCH_FAILED_NOTICE = "Failed to fetch words. Try again."


@dataclass
class MachineHooks:
    """Optional callbacks for UI layers (notices, re-render, timer display)."""

    notice: Callable[[str], None] | None = None
    state_changed: Callable[[GameState], None] | None = None
    tick: Callable[[int], None] | None = None


class RoundStateMachine:
    def __init__(
        self,
        pipeline: WordSourcingPipeline,
        store: PersistenceStore,
        *,
        settings: AppSettings | None = None,
        hooks: MachineHooks | None = None,
        prefetch: PrefetchCoordinator | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._pipeline = pipeline
        self._store = store
        self._hooks = hooks or MachineHooks()
        self._prefetch = prefetch or PrefetchCoordinator(pipeline)
        self._timer = RoundTimer(
            self._finish_round,
            tick_seconds=self._settings.tick_seconds,
            on_tick=self._on_tick,
        )
        self.session = self._new_session()

    # -- lectura ---------------------------------------------------------

    @property
    def state(self) -> GameState:
        return self.session.state

    @property
    def timer(self) -> RoundTimer:
        return self._timer

    @property
    def prefetch(self) -> PrefetchCoordinator:
        return self._prefetch

    def snapshot(self) -> Session:
        """Copia independiente de la sesión para pintar (sin el task del prefetch)."""

        snap = Session.model_validate(self.session.model_dump())
        if self.session.prefetched_words is not None:
            snap.prefetched_words = list(self.session.prefetched_words)
        return snap

    def sneak_peek(self) -> str | None:
        """La palabra secreta, solo mientras corre el temporizador."""

        if self.session.state != GameState.TIMER:
            return None
        word = self.session.chosen_word
        return word.title if word else None

    def has_saved_game(self) -> bool:
        return self._store.exists()

    # -- helpers ---------------------------------------------------------

    def _new_session(self) -> Session:
        return Session(
            round_duration=self._settings.round_duration_seconds,
            total_rounds=self._settings.total_rounds,
            category=self._settings.default_category,
            exclude_humans=self._settings.exclude_humans,
        )

    def _set_state(self, state: GameState) -> None:
        self.session.state = state
        logger.debug("State -> %s (round %d)", state.value, self.session.round)
        if self._hooks.state_changed:
            self._hooks.state_changed(state)

    def _notice(self, message: str) -> None:
        if self._hooks.notice:
            self._hooks.notice(message)

    def _persist(self) -> None:
        try:
            self._store.save(self.session)
        except PersistenceError as exc:
            logger.error("Could not save game: %s", exc)
            self._notice("Could not save the game.")

    def _drop_current(self) -> None:
        self._timer.stop()
        self._prefetch.discard(self.session)

    # -- entrada principal -----------------------------------------------

    async def request_state(self, state: GameState) -> bool:
        """Pide una transición.

        Devuelve False si la arista existe pero su condición no se cumple
        (p.ej. menos de 3 palabras elegidas). Lanza `TransitionError` si la
        arista no existe desde el estado actual.
        """

        current = self.session.state
        if state == current:
            # Re-render: no reinicia nada, el prefetch es idempotente.
            if state == GameState.TIMER:
                self._prefetch.maybe_start(self.session)
            return True
        if state not in _TRANSITIONS[current]:
            raise TransitionError(current, state)

        if current == GameState.SETUP:
            return await self.start_game(self._current_setup())

        if current == GameState.SELECTION:
            if len(self.session.selected_indices) != SELECTION_SIZE:
                return False
            self._set_state(GameState.CHOICE)
            return True

        if current == GameState.CHOICE:
            if self.session.chosen_word is None:
                return False
            self._set_state(GameState.BRIEFING)
            return True

        if current == GameState.BRIEFING:
            self._start_round()
            return True

        if current == GameState.RESULT:
            if self.session.awaiting_verdict:
                return False
            self._set_state(GameState.SCOREBOARD)
            self._persist()
            return True

        if current == GameState.SCOREBOARD:
            if state == GameState.FINAL or self.session.round >= self.session.total_rounds:
                self._finish_game()
                return True
            self.session.round += 1
            self.session.swap_teams()
            return await self._load_words_and_go()

        # FINAL -> SETUP
        self.reset()
        return True

    async def start_game(self, setup: GameSetup) -> bool:
        if self.session.state not in (GameState.SETUP, GameState.FINAL):
            raise TransitionError(self.session.state, GameState.SELECTION)

        self._drop_current()
        self.session = Session(
            teams=setup.build_teams(),
            round_duration=setup.round_duration,
            total_rounds=setup.total_rounds,
            category=setup.category,
            exclude_humans=setup.exclude_humans,
        )
        return await self._load_words_and_go()

    def _current_setup(self) -> GameSetup:
        s = self.session
        team_a, team_b = s.teams
        return GameSetup(
            team_a_name=team_a.name,
            team_b_name=team_b.name,
            team_a_color=team_a.color,
            team_b_color=team_b.color,
            round_duration=s.round_duration,
            total_rounds=s.total_rounds,
            category=s.category,
            exclude_humans=s.exclude_humans,
        )

    def _abort_loading(self, session: Session) -> bool:
        if session is self.session:
            self._notice(FETCH_FAILED_NOTICE)
            self._set_state(GameState.SETUP)
        return False

    async def _load_words_and_go(self) -> bool:
        session = self.session
        try:
            words = await self._prefetch.take(session, on_wait=lambda: self._set_state(GameState.LOADING))
            if len(words) < SELECTION_SIZE:
                raise SourcingError(f"only {len(words)} playable words found")
        except SourcingError as exc:
            logger.error("Error fetching words: %s", exc)
            return self._abort_loading(session)
        except Exception:
            # Ningún fallo al buscar palabras es fatal: se vuelve al setup.
            logger.exception("Unexpected error fetching words")
            return self._abort_loading(session)

        if session is not self.session:
            # La sesión fue reemplazada mientras esperábamos.
            return False

        session.words = list(words)
        session.reset_round_picks()
        self._set_state(GameState.SELECTION)
        return True

    # -- selección -------------------------------------------------------

    def toggle_select(self, index: int) -> bool:
        if self.session.state != GameState.SELECTION:
            return False
        return self.session.toggle_select(index)

    def choose_option(self, index: int) -> bool:
        if self.session.state != GameState.CHOICE:
            return False
        return self.session.choose_option(index)

    # -- ronda -----------------------------------------------------------

    def _start_round(self, remaining: int | None = None) -> None:
        s = self.session
        s.timer_remaining = s.round_duration if remaining is None else remaining
        s.is_paused = False
        s.ended_early = False
        if remaining is None:
            s.round_started_at = datetime.now(timezone.utc)
        self._set_state(GameState.TIMER)
        self._timer.start(s.timer_remaining)
        self._prefetch.maybe_start(s)

    def _on_tick(self, remaining: int) -> None:
        self.session.timer_remaining = remaining
        if self._hooks.tick:
            self._hooks.tick(remaining)

    def _finish_round(self, result: RoundResult) -> None:
        s = self.session
        s.timer_remaining = max(0, min(self._timer.remaining, s.round_duration))
        elapsed = s.round_duration - s.timer_remaining
        s.elapsed_this_round = elapsed
        s.opponent_team.time += elapsed
        s.ended_early = result != RoundResult.TIMEOUT
        s.last_result = result
        s.is_paused = False
        if result == RoundResult.SUCCESS:
            s.opponent_team.score += 1

        self._prefetch.on_round_end(s)
        self._set_state(GameState.RESULT)
        self._persist()

    def pause(self) -> bool:
        if self.session.state != GameState.TIMER:
            return False
        self._timer.pause()
        self.session.is_paused = True
        return True

    def resume_timer(self) -> bool:
        if self.session.state != GameState.TIMER:
            return False
        self._timer.resume()
        self.session.is_paused = False
        return True

    def toggle_pause(self) -> bool:
        return self.resume_timer() if self.session.is_paused else self.pause()

    def succeed(self) -> bool:
        if self.session.state != GameState.TIMER:
            return False
        self._timer.succeed()
        return True

    def abandon(self) -> bool:
        if self.session.state != GameState.TIMER:
            return False
        self._timer.abandon()
        return True

    def resolve_timeout(self, found: bool) -> bool:
        """Veredicto manual tras agotarse el tiempo ("found it" / "failed")."""

        s = self.session
        if not s.awaiting_verdict:
            return False
        if found:
            s.opponent_team.score += 1
            s.last_result = RoundResult.SUCCESS
        else:
            s.last_result = RoundResult.FAIL
        self._set_state(GameState.SCOREBOARD)
        self._persist()
        return True

    # -- ciclo de vida de la partida -------------------------------------

    def _finish_game(self) -> None:
        self._drop_current()
        self._set_state(GameState.FINAL)
        try:
            self._store.clear()
        except PersistenceError as exc:
            logger.error("Could not clear saved game: %s", exc)

    def reset(self) -> None:
        """Nueva partida: sesión limpia en SETUP."""

        self._drop_current()
        self.session = self._new_session()
        self._set_state(GameState.SETUP)

    async def resume(self) -> bool:
        saved = self._store.load()
        if saved is None:
            return False

        self._drop_current()
        self.session = saved
        state = saved.state

        if state == GameState.LOADING or (not saved.words and state in _NEEDS_WORDS):
            saved.state = GameState.SETUP
            return await self._load_words_and_go()
        if state == GameState.TIMER:
            self._start_round(remaining=saved.timer_remaining or saved.round_duration)
            return True

        self._set_state(state)
        return True

    def discard_saved_game(self) -> None:
        try:
            self._store.clear()
        except PersistenceError as exc:
            logger.error("Could not discard saved game: %s", exc)
            return
        self._notice("Saved game discarded.")
