"""Intelligent AYUSH search router.

Endpoints:
- GET  /api/intelligent-search   ranked AYUSH conditions dual-coded with ICD-11
- POST /api/guided-questions     re-rank with clinical answers, next questions
- GET  /api/clinical-pathway/{namc_code}
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from ayush_core.models.terminology import SearchFilters
from ayush_core.repositories.reference_repository import ReferenceDataRepository
from ayush_core.routers.deps import get_repository, get_search_service
from ayush_core.schemas.search import (
    GuidedQuestionOut,
    GuidedQuestionsRequest,
    GuidedQuestionsResponse,
    IntelligentSearchResponse,
    SearchResultOut,
)
from ayush_core.services.clinical_pathways import get_clinical_pathway
from ayush_core.services.intelligent_search import IntelligentSearchService, parse_answers_json, require_term

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["intelligent-search"])


def _optional(value: Optional[str]) -> Optional[str]:
    cleaned = (value or "").strip()
    return cleaned or None


@router.get("/intelligent-search", response_model=IntelligentSearchResponse)
async def intelligent_search(
    term: Optional[str] = Query(default=None, description="Symptom or condition text"),
    age_group: Optional[str] = Query(default=None),
    gender: Optional[str] = Query(default=None),
    duration: Optional[str] = Query(default=None, description="acute | chronic"),
    include_icd: bool = Query(default=True),
    previous_answers: Optional[str] = Query(default=None, description="JSON object of question id -> answer"),
    service: IntelligentSearchService = Depends(get_search_service),
) -> IntelligentSearchResponse:
    search_term = require_term(term)
    answers = parse_answers_json(previous_answers)
    filters = SearchFilters(age_group=_optional(age_group), gender=_optional(gender), duration=_optional(duration))

    outcome = await service.search(search_term, filters=filters, include_icd=include_icd, answers=answers)

    limit = service.tuning.other_matches_limit
    top = outcome.top_match
    return IntelligentSearchResponse(
        search_term=outcome.search_term,
        filters_applied=filters.as_dict(),
        total_results=len(outcome.results),
        top_match=SearchResultOut.from_result(top) if top else None,
        other_matches=[SearchResultOut.from_result(r) for r in outcome.results[1 : 1 + limit]],
        guided_questions=[GuidedQuestionOut.from_question(q) for q in outcome.guided_questions],
        has_high_confidence_match=service.is_high_confidence(top),
        timestamp=datetime.now(timezone.utc),
    )


@router.post("/guided-questions", response_model=GuidedQuestionsResponse)
async def guided_questions(
    payload: Optional[GuidedQuestionsRequest] = Body(default=None),
    service: IntelligentSearchService = Depends(get_search_service),
) -> GuidedQuestionsResponse:
    payload = payload or GuidedQuestionsRequest()
    search_term = require_term(payload.search_term, "search_term")
    filters = SearchFilters(age_group=payload.age_group, gender=payload.gender, duration=payload.duration)

    outcome = await service.search(
        search_term,
        filters=filters,
        include_icd=payload.include_icd,
        answers=payload.answers,
    )

    refined = outcome.results[: service.tuning.refined_results_limit]
    return GuidedQuestionsResponse(
        refined_results=[SearchResultOut.from_result(r) for r in refined],
        next_questions=[GuidedQuestionOut.from_question(q) for q in outcome.guided_questions],
        answers_processed=len(payload.answers),
        confidence_improved=service.is_confidence_improved(outcome.top_match),
    )


@router.get("/clinical-pathway/{namc_code}")
def clinical_pathway(
    namc_code: str,
    repository: ReferenceDataRepository = Depends(get_repository),
) -> dict[str, Any]:
    return get_clinical_pathway(repository, namc_code)
