"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y User-Agent (Wikimedia exige uno descriptivo).
- Facilita testeo: se puede inyectar un `transport` (p.ej. `httpx.MockTransport`).
"""

from __future__ import annotations

import httpx
from bs4 import BeautifulSoup

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que Wikipedia y Wikidata se comporten igual.
    - Los tests pasan un transport en memoria sin tocar la red.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def html_to_text(html: str | None) -> str:
    """Texto plano de un fragmento HTML (los extractos a veces traen marcado)."""

    if not html:
        return ""
    if "<" not in html:
        return html.strip()
    soup = BeautifulSoup(html, "html.parser")
    return soup.get_text(" ", strip=True)
