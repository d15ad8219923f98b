"""Guided Q&A: clarifying questions across close candidates and answer-based re-ranking.

The engine is stateless; callers echo the accumulated ``answers`` map on each
follow-up call.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Sequence

from ayush_core.core.search_config import SearchTuning, search_tuning
from ayush_core.models.terminology import ConditionEntry, GuidedQuestion, MappedResult

logger = logging.getLogger(__name__)

DURATION_TAGS = ("acute", "chronic")


def answer_key(value: Any) -> str | None:
    """Answers arrive as JSON scalars; scoring tables are keyed by lowercase strings."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "yes" if value else "no"
    key = str(value).strip().lower()
    return key or None


class GuidedQuestionEngine:
    def __init__(self, tuning: SearchTuning = search_tuning) -> None:
        self._tuning = tuning

    def next_questions(
        self,
        mapped_results: Sequence[MappedResult],
        previous_answers: Mapping[str, Any] | None = None,
    ) -> list[GuidedQuestion]:
        answered = set(previous_answers or {})
        pool = mapped_results[: self._tuning.guided_candidate_pool]

        order: list[str] = []
        texts: dict[str, tuple[str, tuple[str, ...]]] = {}
        sources: dict[str, list[str]] = {}
        for result in pool:
            for question in result.entry.clinical_questions:
                if question.id in answered:
                    continue
                if question.id not in sources:
                    order.append(question.id)
                    texts[question.id] = (question.text, tuple(question.options))
                    sources[question.id] = []
                if result.entry.code not in sources[question.id]:
                    sources[question.id].append(result.entry.code)

        order.sort(key=lambda qid: -len(sources[qid]))
        return [
            GuidedQuestion(
                id=qid,
                text=texts[qid][0],
                options=texts[qid][1],
                relevance_sources=tuple(sources[qid]),
            )
            for qid in order[: self._tuning.guided_question_limit]
        ]

    def answer_adjustment(self, entry: ConditionEntry, answers: Mapping[str, Any]) -> float:
        adjustment = 0.0
        for question in entry.clinical_questions:
            if question.id not in answers:
                continue
            key = answer_key(answers[question.id])
            tags = question.scoring.get(key) if key is not None else None
            if not tags:
                continue
            for tag, weight in tags.items():
                tag = tag.lower()
                if tag in DURATION_TAGS:
                    if getattr(entry.duration, tag):
                        adjustment += weight * self._tuning.refinement_duration_factor
                elif tag in entry.dosha_involvement:
                    adjustment += weight * self._tuning.refinement_dosha_factor
        return adjustment

    def refine_with_answers(
        self,
        results: Sequence[MappedResult],
        answers: Mapping[str, Any] | None,
    ) -> list[MappedResult]:
        if not answers:
            return list(results)

        refined: list[MappedResult] = []
        for result in results:
            adjustment = self.answer_adjustment(result.entry, answers)
            combined = max(0.0, min(result.combined_confidence + adjustment, 1.0))
            refined.append(replace(result, combined_confidence=combined))

        refined.sort(key=lambda r: -r.combined_confidence)
        logger.debug("refined %s results with %s answers", len(refined), len(answers))
        return refined
