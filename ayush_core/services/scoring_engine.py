from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from ayush_core.core.search_config import (
    FilterPenalties,
    RelevanceWeights,
    SearchTuning,
    filter_penalties,
    relevance_weights,
    search_tuning,
)
from ayush_core.models.terminology import WILDCARD, ConditionEntry, ScoredEntry, SearchFilters
from ayush_core.services.search_normalization import normalize_text


@dataclass
class MatchSignals:
    exact_term: bool
    term_contains: bool
    diacritical_contains: bool
    primary_symptom_hits: int
    associated_symptom_hits: int
    category_contains: bool


def _symptom_hits(query: str, symptoms: Iterable[str]) -> int:
    hits = 0
    for symptom in symptoms:
        s = normalize_text(symptom)
        if s and (query in s or s in query):
            hits += 1
    return hits


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _filter_value(value: Optional[str]) -> str:
    v = normalize_text(value)
    return "" if v == WILDCARD else v


class RelevanceScorer:
    """Deterministic additive-then-multiplicative relevance scoring for AYUSH entries."""

    def __init__(
        self,
        weights: RelevanceWeights = relevance_weights,
        penalties: FilterPenalties = filter_penalties,
        tuning: SearchTuning = search_tuning,
    ) -> None:
        self._weights = weights
        self._penalties = penalties
        self._tuning = tuning

    @staticmethod
    def signals(query: str, entry: ConditionEntry) -> MatchSignals:
        english = normalize_text(entry.english_term)
        exact = bool(query) and english == query
        return MatchSignals(
            exact_term=exact,
            term_contains=(not exact) and bool(query) and query in english,
            diacritical_contains=bool(query) and query in normalize_text(entry.diacritical_form),
            primary_symptom_hits=_symptom_hits(query, entry.primary_symptoms) if query else 0,
            associated_symptom_hits=_symptom_hits(query, entry.associated_symptoms) if query else 0,
            category_contains=bool(query) and query in normalize_text(entry.category),
        )

    def base_score(self, s: MatchSignals) -> float:
        w = self._weights
        score = 0.0
        if s.exact_term:
            score += w.exact_term
        elif s.term_contains:
            score += w.term_contains
        if s.diacritical_contains:
            score += w.diacritical_contains
        score += s.primary_symptom_hits * w.primary_symptom
        score += s.associated_symptom_hits * w.associated_symptom
        if s.category_contains:
            score += w.category_contains
        return score

    def penalty_multiplier(self, entry: ConditionEntry, filters: SearchFilters) -> float:
        """Product of the filter penalties that apply; penalties compound."""
        p = self._penalties
        multiplier = 1.0

        age_group = _filter_value(filters.age_group)
        if age_group and WILDCARD not in entry.age_groups and age_group not in entry.age_groups:
            multiplier *= p.age_group

        gender = _filter_value(filters.gender)
        if gender and entry.gender != WILDCARD and entry.gender != gender:
            multiplier *= p.gender

        duration = _filter_value(filters.duration)
        if (duration == "acute" and not entry.duration.acute) or (
            duration == "chronic" and not entry.duration.chronic
        ):
            multiplier *= p.duration

        return multiplier

    def score(self, term: str, entry: ConditionEntry, filters: SearchFilters | None = None) -> int:
        query = normalize_text(term)
        raw = self.base_score(self.signals(query, entry))
        raw *= self.penalty_multiplier(entry, filters or SearchFilters())
        return round_half_up(raw)

    @staticmethod
    def confidence(score: int) -> float:
        return min(score / 100, 1.0)

    def rank(
        self,
        term: str,
        conditions: Iterable[ConditionEntry],
        filters: SearchFilters | None = None,
    ) -> list[ScoredEntry]:
        """Score every entry, drop noise, and sort descending (stable on ties)."""
        threshold = self._tuning.min_relevance_score
        scored: list[ScoredEntry] = []
        for entry in conditions:
            value = self.score(term, entry, filters)
            if value <= threshold:
                continue
            scored.append(ScoredEntry(entry=entry, relevance_score=value, confidence=self.confidence(value)))

        scored.sort(key=lambda r: -r.relevance_score)
        return scored
