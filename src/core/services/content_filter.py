"""Filtro de jugabilidad de artículos.

Dos etapas:
- `is_playable`: heurística pura sobre título y resumen (sin I/O).
- `exclude_known_persons`: consulta opcional a Wikidata para descartar
  biografías. Fail-open: si la consulta falla, no se descarta nada.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from core.domain.errors import ClassificationError
from core.domain.models import WordCandidate
from core.interfaces.sources import KnowledgeGraphClassifier

logger = logging.getLogger(__name__)

MIN_TITLE_WORDS = 1
MAX_TITLE_WORDS = 6
MIN_SUMMARY_CHARS = 50

_DIGIT_RE = re.compile(r"\d")
_META_CHARS_RE = re.compile(r"[():]")

# Páginas de sistema de la Wikipedia griega.
BANNED_TITLE_PREFIXES: tuple[str, ...] = (
    "κατάλογος",  # lista
    "αρχείο",  # fichero
    "πρότυπο",  # plantilla
    "κατηγορία",  # categoría
    "βοήθεια",  # ayuda
    "χρήστης",  # usuario
    "συζήτηση",  # discusión
    "βικιπαίδεια",  # meta
)

# Desambiguaciones ("puede referirse a...").
BANNED_SUMMARY_PHRASES: tuple[str, ...] = (
    "αποσαφήνιση",
    "αναφέρεται σε",
    "μπορεί να αναφέρεται",
)


def is_playable(candidate: WordCandidate | None) -> bool:
    """True si el artículo sirve como palabra de pantomima."""

    if candidate is None or not candidate.title or not candidate.title.strip():
        return False

    title = candidate.title.strip()
    title_lower = title.lower()
    summary = (candidate.summary or "").lower()

    word_count = len(title.split())
    if word_count < MIN_TITLE_WORDS or word_count > MAX_TITLE_WORDS:
        return False

    # Años, fechas, "Απόλλων 13"...
    if _DIGIT_RE.search(title):
        return False

    # "Παρίσι (μυθολογία)", "Κατάλογος: ..."
    if _META_CHARS_RE.search(title):
        return False

    if title_lower.startswith(BANNED_TITLE_PREFIXES):
        return False

    # Stub o página rota.
    if len(summary) < MIN_SUMMARY_CHARS:
        return False

    if any(phrase in summary for phrase in BANNED_SUMMARY_PHRASES):
        return False

    return True


async def exclude_known_persons(
    candidates: Iterable[WordCandidate],
    classifier: KnowledgeGraphClassifier,
) -> list[WordCandidate]:
    """Descarta candidatos cuyo Q-id es una instancia de 'humano'.

    Una única consulta por lote. Candidatos sin Q-id pasan siempre; si el
    clasificador falla se devuelven todos (fail-open).
    """

    items = list(candidates)
    ids = list(dict.fromkeys(c.external_id for c in items if c.external_id))
    if not ids:
        return items

    try:
        persons = await classifier.classify(ids)
    except ClassificationError as exc:
        logger.warning("Knowledge-graph lookup failed, keeping all %d words: %s", len(items), exc)
        return items
    except Exception:
        # Cualquier fallo del clasificador deja pasar el lote entero.
        logger.exception("Unexpected knowledge-graph failure, keeping all %d words", len(items))
        return items
    if not isinstance(persons, dict):
        logger.warning("Knowledge-graph lookup returned %s, keeping all words", type(persons).__name__)
        return items

    kept = [c for c in items if not (c.external_id and persons.get(c.external_id, False))]
    logger.debug(
        "Person filter: %d articles -> %d non-person articles",
        len(items),
        len(kept),
    )
    return kept
