"""Fuente de palabras: Wikipedia (API MediaWiki).

Endpoints usados (action API):
- `list=random` (namespace 0) para lotes aleatorios.
- `list=categorymembers` (namespace 0) para categorías.
- `prop=pageprops|pageimages|extracts` para resumen, miniatura y Q-id.

Cualquier fallo HTTP o de formato se traduce a `SourcingError`.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from adapters.http_client import build_async_client, html_to_text
from core.config import AppSettings
from core.domain.errors import SourcingError
from core.domain.models import WordCandidate
from core.interfaces.sources import ContentSource

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = 200


class WikipediaContentSource(ContentSource):
    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport

    async def _query(self, params: dict[str, Any]) -> dict[str, Any]:
        query_params = {"action": "query", "format": "json", **params}
        try:
            async with build_async_client(self._settings, transport=self._transport) as client:
                resp = await client.get(self._settings.wiki_api_url, params=query_params)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SourcingError(f"Wikipedia request failed: {exc}") from exc

        if not isinstance(data, dict):
            raise SourcingError("Wikipedia returned an unexpected payload")
        if "error" in data:
            info = data["error"].get("info") if isinstance(data["error"], dict) else data["error"]
            raise SourcingError(f"Wikipedia API error: {info}")
        return data

    async def random_titles(self, n: int) -> list[str]:
        data = await self._query({"list": "random", "rnlimit": n, "rnnamespace": 0})
        try:
            items = data["query"]["random"]
        except (KeyError, TypeError) as exc:
            raise SourcingError("Malformed random-articles response") from exc
        if not isinstance(items, list):
            raise SourcingError("Malformed random-articles response")
        return [item["title"] for item in items if isinstance(item, dict) and item.get("title")]

    async def category_members(self, category: str, limit: int) -> list[str]:
        data = await self._query(
            {
                "list": "categorymembers",
                "cmtitle": category,
                "cmlimit": limit,
                "cmnamespace": 0,
            }
        )
        query = data.get("query")
        if not isinstance(query, dict):
            raise SourcingError("Malformed category-members response")
        members = query.get("categorymembers") or []
        if not isinstance(members, list):
            raise SourcingError("Malformed category-members response")
        return [m["title"] for m in members if isinstance(m, dict) and m.get("title")]

    async def metadata(self, titles: Sequence[str]) -> list[WordCandidate]:
        if not titles:
            return []
        data = await self._query(
            {
                "prop": "pageprops|pageimages|extracts",
                "ppprop": "wikibase_item",
                "piprop": "thumbnail",
                "pithumbsize": THUMBNAIL_SIZE,
                "exintro": 1,
                "explaintext": 1,
                "exlimit": "max",
                "titles": "|".join(titles),
            }
        )
        query = data.get("query")
        if not isinstance(query, dict):
            raise SourcingError("Malformed metadata response")

        pages = query.get("pages") or {}
        if not isinstance(pages, dict):
            raise SourcingError("Malformed metadata response")
        out: list[WordCandidate] = []
        for page in pages.values():
            if not isinstance(page, dict) or not page.get("title"):
                continue
            thumbnail = page.get("thumbnail") if isinstance(page.get("thumbnail"), dict) else {}
            pageprops = page.get("pageprops") if isinstance(page.get("pageprops"), dict) else {}
            out.append(
                WordCandidate(
                    title=page["title"],
                    summary=html_to_text(page.get("extract")),
                    image_url=thumbnail.get("source"),
                    external_id=pageprops.get("wikibase_item"),
                )
            )
        logger.debug("Metadata: %d titles -> %d pages", len(titles), len(out))
        return out
