"""Contratos de fuentes externas.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Permite que Wikipedia/Wikidata (o fakes en tests) sean intercambiables
  sin acoplar el pipeline de palabras a HTTP.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from core.domain.models import WordCandidate


@runtime_checkable
class ContentSource(Protocol):
    """Proveedor de títulos y metadata de artículos.

    Reglas de diseño:
    - Todo es asíncrono porque típicamente hará I/O (HTTP).
    - Los fallos se reportan como `SourcingError`.
    """

    async def random_titles(self, n: int) -> list[str]:
        ...

    async def category_members(self, category: str, limit: int) -> list[str]:
        ...

    async def metadata(self, titles: Sequence[str]) -> list[WordCandidate]:
        """Resumen, miniatura y Q-id para cada título, en una sola llamada."""

        ...


@runtime_checkable
class KnowledgeGraphClassifier(Protocol):
    """Clasifica ids externos: True si la entidad es una persona."""

    async def classify(self, ids: Sequence[str]) -> dict[str, bool]:
        ...
