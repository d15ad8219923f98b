"""Search configuration for the AYUSH terminology engine.

Centralizes feature flags, relevance weights, filter penalties and tuning
parameters for scoring, cross-system mapping and guided questions.  All values
are loaded from environment variables with defaults matching the editorial
ranking rules, so the engine works out-of-the-box.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


# ---------------------------------------------------------------------------
# Feature flags
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SearchFeatureFlags:
    """Runtime feature flags for the search subsystem."""

    enable_search_logging: bool = field(
        default_factory=lambda: _env_bool("SEARCH_ENABLE_LOGGING", default=True),
    )


# ---------------------------------------------------------------------------
# Relevance weights
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RelevanceWeights:
    """Additive points awarded by the relevance scorer."""

    # Exact normalized match on the English term
    exact_term: float = field(
        default_factory=lambda: _env_float("RANK_W_EXACT_TERM", 100.0),
    )
    # English term contains the query
    term_contains: float = field(
        default_factory=lambda: _env_float("RANK_W_TERM_CONTAINS", 80.0),
    )
    # Diacritical form contains the query
    diacritical_contains: float = field(
        default_factory=lambda: _env_float("RANK_W_DIACRITICAL_CONTAINS", 75.0),
    )
    # Per matching primary symptom
    primary_symptom: float = field(
        default_factory=lambda: _env_float("RANK_W_PRIMARY_SYMPTOM", 60.0),
    )
    # Per matching associated symptom
    associated_symptom: float = field(
        default_factory=lambda: _env_float("RANK_W_ASSOCIATED_SYMPTOM", 40.0),
    )
    # Category contains the query
    category_contains: float = field(
        default_factory=lambda: _env_float("RANK_W_CATEGORY_CONTAINS", 30.0),
    )


@dataclass(frozen=True)
class FilterPenalties:
    """Multipliers applied after the additive score when a filter excludes an entry."""

    age_group: float = field(
        default_factory=lambda: _env_float("RANK_PENALTY_AGE_GROUP", 0.5),
    )
    gender: float = field(
        default_factory=lambda: _env_float("RANK_PENALTY_GENDER", 0.7),
    )
    duration: float = field(
        default_factory=lambda: _env_float("RANK_PENALTY_DURATION", 0.6),
    )


# ---------------------------------------------------------------------------
# Search tuning
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SearchTuning:
    """Operational limits and thresholds."""

    # Entries scoring at or below this are noise
    min_relevance_score: int = field(
        default_factory=lambda: _env_int("SEARCH_MIN_RELEVANCE_SCORE", 20),
    )
    other_matches_limit: int = field(
        default_factory=lambda: _env_int("SEARCH_OTHER_MATCHES_LIMIT", 5),
    )
    refined_results_limit: int = field(
        default_factory=lambda: _env_int("SEARCH_REFINED_RESULTS_LIMIT", 3),
    )
    guided_question_limit: int = field(
        default_factory=lambda: _env_int("GUIDED_QUESTION_LIMIT", 2),
    )
    guided_candidate_pool: int = field(
        default_factory=lambda: _env_int("GUIDED_CANDIDATE_POOL", 3),
    )
    semantic_match_cap: int = field(
        default_factory=lambda: _env_int("MAPPING_SEMANTIC_CAP", 3),
    )
    semantic_confidence: float = field(
        default_factory=lambda: _env_float("MAPPING_SEMANTIC_CONFIDENCE", 0.7),
    )
    predefined_boost_factor: float = field(
        default_factory=lambda: _env_float("MAPPING_PREDEFINED_BOOST", 0.1),
    )
    refinement_duration_factor: float = field(
        default_factory=lambda: _env_float("REFINE_DURATION_FACTOR", 0.1),
    )
    refinement_dosha_factor: float = field(
        default_factory=lambda: _env_float("REFINE_DOSHA_FACTOR", 0.15),
    )
    high_confidence_threshold: float = field(
        default_factory=lambda: _env_float("SEARCH_HIGH_CONFIDENCE", 0.8),
    )
    improved_confidence_threshold: float = field(
        default_factory=lambda: _env_float("SEARCH_IMPROVED_CONFIDENCE", 0.85),
    )


# ---------------------------------------------------------------------------
# Singleton instances (importable)
# ---------------------------------------------------------------------------

search_feature_flags = SearchFeatureFlags()
relevance_weights = RelevanceWeights()
filter_penalties = FilterPenalties()
search_tuning = SearchTuning()
