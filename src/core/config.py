"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (Wikipedia/Wikidata/almacenamiento) y la máquina de
  rondas lean la misma config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "pantomima"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "pantomima"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "pantomima"
    return Path.home() / ".config" / "pantomima"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# Pantomima user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters/servicios.
    """

    model_config = SettingsConfigDict(
        env_prefix="PANTOMIMA_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="pantomima/0.1 (+https://local)",
        min_length=1,
        description="User-Agent para las APIs de Wikimedia.",
    )

    wiki_api_url: str = Field(
        default="https://el.wikipedia.org/w/api.php",
        min_length=8,
        description="Endpoint de la API MediaWiki que provee los títulos.",
    )
    wikidata_api_url: str = Field(
        default="https://www.wikidata.org/w/api.php",
        min_length=8,
        description="Endpoint de Wikidata para clasificar entidades (P31).",
    )

    # Pipeline de palabras
    words_per_round: int = Field(
        default=10,
        ge=3,
        le=50,
        description="Tamaño del pool de palabras que se ofrece por ronda.",
    )
    max_sourcing_attempts: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Límite de intentos del pipeline antes de aceptar un pool corto.",
    )
    random_batch_cap: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Máximo de títulos aleatorios por petición.",
    )
    category_fetch_limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Miembros de categoría pedidos por intento.",
    )
    category_sample_size: int = Field(
        default=30,
        ge=1,
        le=500,
        description="Muestra aleatoria de miembros de categoría enviada a metadata.",
    )

    # Partida
    round_duration_seconds: int = Field(
        default=90,
        ge=1,
        le=3600,
        description="Duración por defecto de cada ronda (segundos).",
    )
    total_rounds: int = Field(
        default=6,
        ge=1,
        le=100,
        description="Número de rondas por defecto.",
    )
    default_category: str = Field(
        default="random",
        min_length=1,
        description="Categoría por defecto ('random' o un título 'Κατηγορία:...').",
    )
    exclude_humans: bool = Field(
        default=False,
        description="Excluir biografías de personas reales (vía Wikidata).",
    )
    tick_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Intervalo real entre ticks del temporizador.",
    )

    state_dir: Path | None = Field(
        default=None,
        description="Directorio donde se guarda la partida en curso.",
    )

    def resolved_state_dir(self) -> Path:
        return self.state_dir or (get_user_config_dir() / "state")
