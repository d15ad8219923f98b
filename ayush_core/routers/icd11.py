"""Thin proxies over the WHO ICD-11 API.

Endpoints:
- GET /icd              release root with resolved chapter titles
- GET /icd/node?id=...  one entity with resolved child titles
- GET /icd/search?q=... WHO search merged with editorial AYUSH cross references
- GET /icd/mock         the editorial cross-reference file (sandbox demos)
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ayush_core.core.config import Settings
from ayush_core.core.exceptions import InvalidArgumentError, UpstreamUnavailableError
from ayush_core.repositories.reference_repository import ReferenceDataRepository
from ayush_core.routers.deps import get_gateway, get_repository, get_settings
from ayush_core.services.cross_references import merge_icd_hits
from ayush_core.services.icd11_gateway import Icd11Gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/icd", tags=["icd11"])


def _value(field: Any) -> Optional[str]:
    if isinstance(field, Mapping):
        return field.get("@value")
    return field


async def _fetch_or_502(gateway: Icd11Gateway, url: str, what: str) -> Mapping[str, Any]:
    try:
        data = await gateway.fetch(url)
    except UpstreamUnavailableError as exc:
        logger.warning("Failed to fetch %s from WHO: %s", what, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Failed to fetch {what}") from exc
    if not isinstance(data, Mapping):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Unexpected {what} payload")
    return data


@router.get("")
async def icd_release(
    settings: Settings = Depends(get_settings),
    gateway: Icd11Gateway = Depends(get_gateway),
) -> dict[str, Any]:
    if settings.sandbox:
        return {"title": "ICD (SANDBOX MOCK)", "release_date": None, "children": []}

    data = await _fetch_or_502(gateway, gateway.release_url, "ICD release")
    children = data.get("child") if isinstance(data.get("child"), list) else []
    return {
        "title": _value(data.get("title")) or "ICD Release",
        "release_date": data.get("releaseDate"),
        "children": await gateway.child_summaries(children),
    }


@router.get("/node")
async def icd_node(
    id: Optional[str] = Query(default=None, description="WHO entity URI"),
    gateway: Icd11Gateway = Depends(get_gateway),
) -> dict[str, Any]:
    if not (id or "").strip():
        raise InvalidArgumentError("Missing id parameter")

    data = await _fetch_or_502(gateway, id.strip(), "ICD node")
    children = data.get("child") if isinstance(data.get("child"), list) else []
    return {
        "id": id,
        "code": data.get("code") or None,
        "title": _value(data.get("title")),
        "definition": _value(data.get("definition")),
        "synonyms": data.get("synonym") or None,
        "children": await gateway.child_summaries(children),
    }


@router.get("/search")
async def icd_search(
    q: Optional[str] = Query(default=None),
    gateway: Icd11Gateway = Depends(get_gateway),
    repository: ReferenceDataRepository = Depends(get_repository),
) -> list[dict[str, Any]]:
    if not (q or "").strip():
        raise InvalidArgumentError("Missing query param")

    hits = await gateway.search_icd(q.strip())
    return merge_icd_hits(repository.cross_references, hits)


@router.get("/mock")
def icd_mock(repository: ReferenceDataRepository = Depends(get_repository)) -> list[dict[str, Any]]:
    return [
        {
            "icd_title": ref.icd_title,
            "icd_keywords": list(ref.icd_keywords),
            "ayush_codes": [dict(c) for c in ref.ayush_codes],
        }
        for ref in repository.cross_references
    ]
