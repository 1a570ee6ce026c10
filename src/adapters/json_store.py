"""Almacenamiento clave-valor en ficheros JSON.

Por qué ficheros:
- La CLI no tiene `localStorage`; un fichero UTF-8 por clave en el directorio
  de estado del usuario sobrevive a un cierre inesperado.
- Se escribe en un temporal y se renombra, así un corte a mitad de escritura
  no deja un registro a medias.
"""

from __future__ import annotations

from pathlib import Path

from core.domain.errors import PersistenceError
from core.interfaces.storage import KeyValueStore


def _key_to_filename(key: str) -> str:
    out: list[str] = []
    for ch in key.strip():
        if ch.isalnum() or ch in ("-", "_", "."):
            out.append(ch)
        else:
            out.append("_")
    cleaned = "".join(out).strip("._")
    return (cleaned or "key") + ".json"


class JsonFileStore(KeyValueStore):
    def __init__(self, directory: Path) -> None:
        self._directory = directory

    def path_for(self, key: str) -> Path:
        return self._directory / _key_to_filename(key)

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Cannot read {path}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value + "\n", encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            raise PersistenceError(f"Cannot write {path}: {exc}") from exc

    def remove(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Cannot remove {key}: {exc}") from exc
