"""NAMASTE terminology lookup router.

Endpoints:
- GET /disease?term=...
- GET /terminology/search?query=...&includeIcd=...
- GET /ayush/search?q=...
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from ayush_core.core.exceptions import InvalidArgumentError
from ayush_core.repositories.reference_repository import ReferenceDataRepository
from ayush_core.routers.deps import get_gateway, get_repository
from ayush_core.schemas.search import (
    DiseaseSearchResponse,
    DiseaseTermOut,
    TerminologyHit,
    TerminologySearchResponse,
)
from ayush_core.services.cross_references import search_cross_references
from ayush_core.services.icd11_gateway import Icd11Gateway
from ayush_core.services.lexical_search import NAMASTE_SOURCE_URI, search_all_systems
from ayush_core.services.search_normalization import strip_markup

logger = logging.getLogger(__name__)

router = APIRouter(tags=["terminology"])

ICD11_SOURCE_URI = "http://id.who.int/icd/release/11/mms"


@router.get("/disease", response_model=DiseaseSearchResponse)
def disease(
    term: Optional[str] = Query(default=None, description="Disease term in English, transliteration or Devanagari"),
    repository: ReferenceDataRepository = Depends(get_repository),
) -> DiseaseSearchResponse:
    matches = search_all_systems(term, repository)
    return DiseaseSearchResponse(
        ayurveda=[DiseaseTermOut.from_term(t) for t in matches.get("Ayurveda", [])],
        siddha=[DiseaseTermOut.from_term(t) for t in matches.get("Siddha", [])],
        unani=[DiseaseTermOut.from_term(t) for t in matches.get("Unani", [])],
    )


@router.get("/terminology/search", response_model=TerminologySearchResponse)
async def terminology_search(
    query: Optional[str] = Query(default=None),
    include_icd: bool = Query(default=False, alias="includeIcd"),
    repository: ReferenceDataRepository = Depends(get_repository),
    gateway: Icd11Gateway = Depends(get_gateway),
) -> TerminologySearchResponse:
    if not (query or "").strip():
        raise InvalidArgumentError("The 'query' parameter is required")

    matches = search_all_systems(query, repository)
    results = [
        TerminologyHit(
            system=system,
            code=item.code,
            term=item.term_native or None,
            english=item.english_name or None,
            display=item.english_name or item.term_native or None,
            source=NAMASTE_SOURCE_URI,
        )
        for system in repository.systems
        for item in matches.get(system, [])
    ]

    if include_icd:
        for hit in await gateway.search_icd(query.strip()):
            title = strip_markup(hit.title)
            results.append(
                TerminologyHit(
                    system="ICD-11",
                    code=hit.code,
                    term=title or None,
                    english=title or None,
                    display=title or hit.code,
                    source=ICD11_SOURCE_URI,
                )
            )

    return TerminologySearchResponse(
        query=query,
        include_icd=include_icd,
        results=results,
        total=len(results),
    )


@router.get("/ayush/search")
def ayush_search(
    q: Optional[str] = Query(default=None),
    repository: ReferenceDataRepository = Depends(get_repository),
) -> list[dict[str, Any]]:
    if not (q or "").strip():
        raise InvalidArgumentError("Missing query 'q' parameter")

    return [
        {"icd_title": ref.icd_title, "ayush_codes": [dict(c) for c in ref.ayush_codes]}
        for ref in search_cross_references(repository.cross_references, q)
    ]
