"""Errores del dominio.

Por qué una jerarquía propia:
- La máquina de rondas decide qué hacer según el *tipo* de fallo (volver al
  setup, seguir sin filtro, tratar la partida guardada como inexistente) sin
  conocer httpx ni el sistema de ficheros.
"""

from __future__ import annotations


class PantomimaError(Exception):
    """Base de todos los errores del juego."""


class SourcingError(PantomimaError):
    """Falló la obtención de palabras (red, JSON inesperado o pool demasiado corto)."""


class ClassificationError(PantomimaError):
    """Falló la consulta al grafo de conocimiento; el filtro se salta (fail-open)."""


class PersistenceError(PantomimaError):
    """No se pudo leer o escribir la partida guardada."""


class TransitionError(PantomimaError):
    """Se pidió una transición que no existe desde el estado actual."""

    def __init__(self, current: object, requested: object) -> None:
        super().__init__(f"Cannot go from {current} to {requested}")
        self.current = current
        self.requested = requested
