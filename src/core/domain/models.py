"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- La partida se guarda/restaura como JSON: `model_dump_json` y
  `model_validate` hacen de contrato de serialización.

Nota:
- Estos modelos describen *qué* es una partida, no *cómo* se juega.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic.config import ConfigDict


class GameState(str, Enum):
    """Estados de la máquina de rondas."""

    SETUP = "setup"
    SELECTION = "selection"
    CHOICE = "choice"
    BRIEFING = "briefing"
    TIMER = "timer"
    RESULT = "result"
    SCOREBOARD = "scoreboard"
    FINAL = "final"
    LOADING = "loading"


class RoundResult(str, Enum):
    SUCCESS = "success"
    FAIL = "fail"
    TIMEOUT = "timeout"


# Paleta ofrecida en el setup (nombre, hex).
COLOR_PALETTE: tuple[tuple[str, str], ...] = (
    ("Blue", "#4aa3ff"),
    ("Red", "#fd5151"),
    ("Green", "#e7913f"),
    ("Purple", "#b344ff"),
    ("Lilac", "#c8a2c8"),
    ("Petrol", "#0c8baa"),
    ("Lavender", "#71cac3"),
)

SELECTION_SIZE = 3


class WordCandidate(BaseModel):
    """Artículo candidato a palabra secreta.

    Inmutable: el pool de una ronda no cambia una vez asignado.
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(
        default="",
        description="Título del artículo (la palabra a representar).",
    )
    summary: str = Field(
        default="",
        description="Extracto introductorio en texto plano.",
    )
    image_url: str | None = Field(
        default=None,
        description="Miniatura del artículo si existe.",
    )
    external_id: str | None = Field(
        default=None,
        description="Q-id de Wikidata (pageprops.wikibase_item).",
    )


class Team(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    color: str = Field(default="#4aa3ff", description="Color de presentación (hex).")
    score: int = Field(default=0, ge=0)
    time: int = Field(default=0, ge=0, description="Segundos acumulados actuando.")


def default_teams() -> list[Team]:
    return [
        Team(name="Team A", color="#4aa3ff"),
        Team(name="Team B", color="#ff6b6b"),
    ]


class GameSetup(BaseModel):
    """Parámetros elegidos en la pantalla de setup."""

    team_a_name: str = Field(default="Team A", max_length=64)
    team_b_name: str = Field(default="Team B", max_length=64)
    team_a_color: str = Field(default="#4aa3ff")
    team_b_color: str = Field(default="#ff6b6b")
    round_duration: int = Field(default=90, ge=1, le=3600)
    total_rounds: int = Field(default=6, ge=1, le=100)
    category: str = Field(default="random", min_length=1)
    exclude_humans: bool = False

    def build_teams(self) -> list[Team]:
        return [
            Team(name=self.team_a_name.strip() or "Team A", color=self.team_a_color),
            Team(name=self.team_b_name.strip() or "Team B", color=self.team_b_color),
        ]


class Session(BaseModel):
    """Agregado principal: la partida en curso.

    Por qué un agregado:
    - Toda la partida vive en un único objeto que la máquina de rondas muta y
      que se persiste entero al final de cada ronda.
    - `prefetched_words` y `prefetch_in_flight` son estado transitorio del
      prefetch: quedan fuera de la serialización y vuelven vacíos al cargar.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    state: GameState = GameState.SETUP
    round: int = Field(default=1, ge=1)
    total_rounds: int = Field(default=6, ge=1)
    round_duration: int = Field(default=90, ge=1)
    teams: list[Team] = Field(default_factory=default_teams, min_length=2, max_length=2)
    active_team_index: int = Field(default=0, ge=0, le=1)
    opponent_team_index: int = Field(default=1, ge=0, le=1)
    words: list[WordCandidate] = Field(default_factory=list)
    selected_indices: list[int] = Field(default_factory=list, max_length=SELECTION_SIZE)
    chosen_index: int | None = None
    round_started_at: datetime | None = None
    elapsed_this_round: int = Field(default=0, ge=0)
    timer_remaining: int = Field(default=0, ge=0)
    is_paused: bool = False
    ended_early: bool = False
    last_result: RoundResult | None = None
    category: str = Field(default="random", min_length=1)
    exclude_humans: bool = False

    prefetched_words: list[WordCandidate] | None = Field(default=None, exclude=True)
    prefetch_in_flight: Any = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def _check_invariants(self) -> "Session":
        if self.active_team_index == self.opponent_team_index:
            raise ValueError("active and opponent team must differ")
        if self.round > self.total_rounds + 1:
            raise ValueError("round is past the configured total")
        if self.timer_remaining > self.round_duration:
            raise ValueError("timer_remaining exceeds round_duration")
        if len(set(self.selected_indices)) != len(self.selected_indices):
            raise ValueError("duplicated selection")
        if self.chosen_index is not None and self.chosen_index not in self.selected_indices:
            raise ValueError("chosen_index must be one of the selected words")
        return self

    @property
    def active_team(self) -> Team:
        return self.teams[self.active_team_index]

    @property
    def opponent_team(self) -> Team:
        return self.teams[self.opponent_team_index]

    @property
    def chosen_word(self) -> WordCandidate | None:
        if self.chosen_index is None or self.chosen_index >= len(self.words):
            return None
        return self.words[self.chosen_index]

    @property
    def awaiting_verdict(self) -> bool:
        """True cuando la ronda terminó por tiempo y falta decidir el resultado."""

        return (
            self.state == GameState.RESULT
            and not self.ended_early
            and self.last_result == RoundResult.TIMEOUT
        )

    def swap_teams(self) -> None:
        self.active_team_index, self.opponent_team_index = (
            self.opponent_team_index,
            self.active_team_index,
        )

    def toggle_select(self, index: int) -> bool:
        """Marca/desmarca una palabra. Devuelve False si se rechaza."""

        if index < 0 or index >= len(self.words):
            return False
        if index in self.selected_indices:
            self.selected_indices.remove(index)
            if self.chosen_index == index:
                self.chosen_index = None
            return True
        if len(self.selected_indices) >= SELECTION_SIZE:
            return False
        self.selected_indices.append(index)
        return True

    def choose_option(self, index: int) -> bool:
        if index not in self.selected_indices:
            return False
        self.chosen_index = index
        return True

    def reset_round_picks(self) -> None:
        self.selected_indices = []
        self.chosen_index = None
        self.last_result = None
