"""Guardado de la partida en curso.

Por qué JSON bajo una sola clave:
- El estado completo cabe en un registro; restaurar es leer una clave.
- La carga es explícita campo a campo: lo desconocido se ignora, lo que falta
  queda con su default y el estado transitorio del prefetch nunca se importa.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from core.domain.errors import PersistenceError
from core.domain.models import Session
from core.interfaces.storage import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEY = "pantomima.gameState"

_TRANSIENT_FIELDS = frozenset({"prefetched_words", "prefetch_in_flight"})
PERSISTED_FIELDS: frozenset[str] = frozenset(Session.model_fields) - _TRANSIENT_FIELDS


class PersistenceStore:
    def __init__(self, store: KeyValueStore, *, key: str = STORAGE_KEY) -> None:
        self._store = store
        self._key = key

    def save(self, session: Session) -> None:
        payload = session.model_dump(mode="json", include=set(PERSISTED_FIELDS))
        self._store.set(self._key, json.dumps(payload, ensure_ascii=False, sort_keys=True))

    def load(self) -> Session | None:
        """Devuelve la partida guardada, o None si no hay o no se puede leer."""

        try:
            raw = self._store.get(self._key)
        except PersistenceError as exc:
            logger.warning("Saved game unreadable: %s", exc)
            return None
        if not raw:
            return None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Saved game is not valid JSON: %s", exc)
            return None
        if not isinstance(data, dict):
            logger.warning("Saved game has unexpected shape: %s", type(data).__name__)
            return None

        known = {name: value for name, value in data.items() if name in PERSISTED_FIELDS}
        try:
            return Session.model_validate(known)
        except ValidationError as exc:
            logger.warning("Saved game failed validation: %s", exc.error_count())
            return None

    def exists(self) -> bool:
        return self.load() is not None

    def clear(self) -> None:
        self._store.remove(self._key)
