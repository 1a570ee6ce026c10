"""Clasificador: Wikidata (`wbgetentities`).

Una entidad es "persona" si alguna afirmación P31 (instance of) apunta a Q5
(human). La API acepta hasta 50 ids por petición.
"""

from __future__ import annotations

from typing import Any, Sequence

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import ClassificationError
from core.interfaces.sources import KnowledgeGraphClassifier

INSTANCE_OF = "P31"
HUMAN = "Q5"
MAX_IDS_PER_REQUEST = 50


def _is_human(entity: dict[str, Any]) -> bool:
    claims = entity.get("claims")
    if not isinstance(claims, dict):
        return False
    for claim in claims.get(INSTANCE_OF) or []:
        if not isinstance(claim, dict):
            continue
        value = ((claim.get("mainsnak") or {}).get("datavalue") or {}).get("value")
        if isinstance(value, dict) and value.get("id") == HUMAN:
            return True
    return False


class WikidataClassifier(KnowledgeGraphClassifier):
    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport

    async def classify(self, ids: Sequence[str]) -> dict[str, bool]:
        unique = list(dict.fromkeys(i for i in ids if i))
        result: dict[str, bool] = {}
        if not unique:
            return result

        try:
            async with build_async_client(self._settings, transport=self._transport) as client:
                for start in range(0, len(unique), MAX_IDS_PER_REQUEST):
                    chunk = unique[start : start + MAX_IDS_PER_REQUEST]
                    resp = await client.get(
                        self._settings.wikidata_api_url,
                        params={
                            "action": "wbgetentities",
                            "ids": "|".join(chunk),
                            "props": "claims",
                            "format": "json",
                        },
                    )
                    resp.raise_for_status()
                    data = resp.json()
                    entities = data.get("entities") if isinstance(data, dict) else None
                    if not isinstance(entities, dict):
                        raise ClassificationError("Wikidata returned no entities")
                    for qid in chunk:
                        entity = entities.get(qid)
                        result[qid] = isinstance(entity, dict) and _is_human(entity)
        except (httpx.HTTPError, ValueError) as exc:
            raise ClassificationError(f"Wikidata request failed: {exc}") from exc

        return result
