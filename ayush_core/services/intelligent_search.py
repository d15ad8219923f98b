"""Intelligent AYUSH search: unified orchestrator.

Pipeline per request:

1. **Validate** the term and caller-supplied answers (before any scoring work).
2. **Score** every enhanced condition entry (:class:`RelevanceScorer`).
3. **Look up** ICD-11 candidates through the gateway when requested; an
   unavailable upstream degrades to an empty ICD result set.
4. **Map** AYUSH results onto ICD-11 (:class:`CrossSystemMapper`).
5. **Refine** with answers and **propose** clarifying questions
   (:class:`GuidedQuestionEngine`).

The service keeps no state between requests.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ayush_core.core.exceptions import InvalidArgumentError
from ayush_core.core.search_config import (
    SearchFeatureFlags,
    SearchTuning,
    search_feature_flags,
    search_tuning,
)
from ayush_core.models.terminology import GuidedQuestion, IcdEntity, MappedResult, SearchFilters
from ayush_core.repositories.reference_repository import ReferenceDataRepository
from ayush_core.services.cross_system_mapper import CrossSystemMapper
from ayush_core.services.guided_questions import GuidedQuestionEngine
from ayush_core.services.scoring_engine import RelevanceScorer
from ayush_core.services.search_normalization import normalize_text

logger = logging.getLogger(__name__)


def parse_answers_json(raw: Optional[str]) -> dict[str, Any]:
    """Decode the ``previous_answers`` query parameter into a question-id map."""
    if raw is None or not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise InvalidArgumentError("previous_answers must be valid JSON") from exc
    if not isinstance(value, dict):
        raise InvalidArgumentError("previous_answers must be a JSON object")
    return value


def require_term(term: Optional[str], field_name: str = "term") -> str:
    cleaned = (term or "").strip()
    if not normalize_text(cleaned):
        raise InvalidArgumentError(f"The '{field_name}' parameter is required")
    return cleaned


# ---------------------------------------------------------------------------
# Structured search event (for logging without perf impact)
# ---------------------------------------------------------------------------

@dataclass
class SearchEvent:
    """Lightweight event emitted after every search for structured logging."""

    query_raw: str
    filters: dict[str, Optional[str]]
    include_icd: bool
    candidate_count: int
    result_count: int
    icd_hit_count: int
    answers_count: int
    duration_ms: float
    top_code: Optional[str] = None
    top_confidence: Optional[float] = None


@dataclass
class SearchOutcome:
    search_term: str
    filters: SearchFilters
    results: list[MappedResult]
    guided_questions: list[GuidedQuestion] = field(default_factory=list)

    @property
    def top_match(self) -> Optional[MappedResult]:
        return self.results[0] if self.results else None


class IntelligentSearchService:
    def __init__(
        self,
        repository: ReferenceDataRepository,
        gateway: Any = None,
        *,
        scorer: Optional[RelevanceScorer] = None,
        mapper: Optional[CrossSystemMapper] = None,
        question_engine: Optional[GuidedQuestionEngine] = None,
        flags: SearchFeatureFlags = search_feature_flags,
        tuning: SearchTuning = search_tuning,
    ) -> None:
        self._repository = repository
        self._gateway = gateway
        self._scorer = scorer or RelevanceScorer(tuning=tuning)
        self._mapper = mapper or CrossSystemMapper(tuning=tuning)
        self._questions = question_engine or GuidedQuestionEngine(tuning=tuning)
        self._flags = flags
        self._tuning = tuning

    @property
    def tuning(self) -> SearchTuning:
        return self._tuning

    async def search(
        self,
        term: Optional[str],
        *,
        filters: SearchFilters | None = None,
        include_icd: bool = True,
        answers: Mapping[str, Any] | None = None,
    ) -> SearchOutcome:
        t0 = time.perf_counter()
        search_term = require_term(term)
        filters = filters or SearchFilters()
        answers = dict(answers or {})

        scored = self._scorer.rank(search_term, self._repository.conditions, filters)
        icd_results = await self._lookup_icd(search_term) if include_icd and scored else []

        results = self._mapper.map_with_icd(scored, icd_results)
        if answers:
            results = self._questions.refine_with_answers(results, answers)
        questions = self._questions.next_questions(results, answers)

        self._emit_search_event(
            SearchEvent(
                query_raw=search_term,
                filters=filters.as_dict(),
                include_icd=include_icd,
                candidate_count=len(self._repository.conditions),
                result_count=len(results),
                icd_hit_count=len(icd_results),
                answers_count=len(answers),
                duration_ms=round((time.perf_counter() - t0) * 1000, 2),
                top_code=results[0].code if results else None,
                top_confidence=results[0].combined_confidence if results else None,
            )
        )
        return SearchOutcome(
            search_term=search_term,
            filters=filters,
            results=results,
            guided_questions=questions,
        )

    async def _lookup_icd(self, term: str) -> list[IcdEntity]:
        if self._gateway is None:
            return []
        return await self._gateway.search_icd(term)

    def is_high_confidence(self, result: Optional[MappedResult]) -> bool:
        return result is not None and result.combined_confidence > self._tuning.high_confidence_threshold

    def is_confidence_improved(self, result: Optional[MappedResult]) -> bool:
        return result is not None and result.combined_confidence > self._tuning.improved_confidence_threshold

    # ------------------------------------------------------------------
    # Structured logging
    # ------------------------------------------------------------------

    def _emit_search_event(self, event: SearchEvent) -> None:
        """Emit a structured log line.  Never raises."""
        if not self._flags.enable_search_logging:
            return

        try:
            logger.info(
                "search_event query=%r filters=%s include_icd=%s candidates=%d results=%d "
                "icd_hits=%d answers=%d duration_ms=%.2f top_code=%s top_confidence=%s",
                event.query_raw,
                event.filters,
                event.include_icd,
                event.candidate_count,
                event.result_count,
                event.icd_hit_count,
                event.answers_count,
                event.duration_ms,
                event.top_code or "-",
                f"{event.top_confidence:.4f}" if event.top_confidence is not None else "-",
            )
        except Exception:  # pragma: no cover - logging must never crash the pipeline
            logger.debug("search_event logging failed", exc_info=True)
