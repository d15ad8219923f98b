"""AYUSH -> ICD-11 dual coding.

Curated (pre-defined) mappings always win: semantic title matching is only a
fallback for entries whose editorial mappings found no hit in the ICD result
set, and its confidence is pinned below the curated range.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ayush_core.core.search_config import SearchTuning, search_tuning
from ayush_core.models.terminology import (
    MAPPING_PRE_DEFINED,
    MAPPING_SEMANTIC,
    ConditionEntry,
    IcdEntity,
    IcdMapping,
    MappedResult,
    ScoredEntry,
)
from ayush_core.services.search_normalization import normalize_text, strip_markup

logger = logging.getLogger(__name__)


def _clamp(value: float) -> float:
    return max(0.0, min(value, 1.0))


class CrossSystemMapper:
    def __init__(self, tuning: SearchTuning = search_tuning) -> None:
        self._tuning = tuning

    def map_with_icd(
        self,
        ayush_results: Sequence[ScoredEntry],
        icd_results: Sequence[IcdEntity],
    ) -> list[MappedResult]:
        icd_by_code: dict[str, IcdEntity] = {}
        for entity in icd_results:
            if entity.code and entity.code not in icd_by_code:
                icd_by_code[entity.code] = entity

        mapped: list[MappedResult] = []
        for result in ayush_results:
            combined = result.confidence
            mappings: list[IcdMapping] = []

            for ref in result.entry.icd_mappings:
                entity = icd_by_code.get(ref.code)
                if entity is None:
                    continue
                mappings.append(IcdMapping(entity=entity, confidence=ref.confidence, mapping_type=MAPPING_PRE_DEFINED))
                combined = min(combined + ref.confidence * self._tuning.predefined_boost_factor, 1.0)

            if not mappings and icd_results:
                mappings = self._semantic_matches(result.entry, icd_results)

            mapped.append(
                MappedResult(
                    entry=result.entry,
                    relevance_score=result.relevance_score,
                    confidence=result.confidence,
                    combined_confidence=_clamp(combined),
                    icd_mappings=tuple(mappings),
                )
            )

        mapped.sort(key=lambda r: -r.combined_confidence)
        return mapped

    def _semantic_matches(self, entry: ConditionEntry, icd_results: Sequence[IcdEntity]) -> list[IcdMapping]:
        candidates = [
            normalize_text(t)
            for t in (entry.english_term, *entry.primary_symptoms, entry.category)
            if normalize_text(t)
        ]
        matches: list[IcdMapping] = []
        for entity in icd_results:
            if len(matches) >= self._tuning.semantic_match_cap:
                break
            title = normalize_text(strip_markup(entity.title))
            if not title:
                continue
            first_word = title.split(" ")[0]
            # Only the first word of the title is tested against the term; kept as-is for compatibility.
            if any(term in title or (first_word and first_word in term) for term in candidates):
                matches.append(
                    IcdMapping(
                        entity=entity,
                        confidence=self._tuning.semantic_confidence,
                        mapping_type=MAPPING_SEMANTIC,
                    )
                )

        if matches:
            logger.debug("semantic ICD fallback code=%s matches=%s", entry.code, len(matches))
        return matches
