"""Canonical terminology records used by the AYUSH engine.

Reference data is immutable: every record here is a frozen dataclass built once
by :mod:`ayush_core.repositories.reference_repository`.  Derived search objects
(:class:`ScoredEntry`, :class:`MappedResult`) are created per request and never
shared across requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

AYUSH_SYSTEMS = ("Ayurveda", "Siddha", "Unani")

WILDCARD = "all"

MAPPING_PRE_DEFINED = "pre_defined"
MAPPING_SEMANTIC = "semantic"


@dataclass(frozen=True)
class CodedTerm:
    """A plain NAMASTE term from one of the per-system datasets."""

    code: str
    term_native: str
    term_diacritical: str
    term_devanagari: str
    english_name: str
    system: str = ""


@dataclass(frozen=True)
class ClinicalQuestion:
    id: str
    text: str
    # answer value -> (tag -> numeric adjustment)
    scoring: Mapping[str, Mapping[str, float]] = field(default_factory=dict)

    @property
    def options(self) -> list[str]:
        return list(self.scoring.keys())


@dataclass(frozen=True)
class IcdMappingRef:
    """Editorial, pre-vetted AYUSH -> ICD-11 cross reference."""

    code: str
    confidence: float


@dataclass(frozen=True)
class DurationProfile:
    acute: bool = False
    chronic: bool = False


@dataclass(frozen=True)
class ConditionEntry:
    """Enhanced AYUSH condition entry used by scoring, mapping and guided Q&A."""

    code: str
    english_term: str
    diacritical_form: str
    system: str
    category: str
    primary_symptoms: tuple[str, ...] = ()
    associated_symptoms: tuple[str, ...] = ()
    age_groups: frozenset[str] = frozenset({WILDCARD})
    gender: str = WILDCARD
    duration: DurationProfile = field(default_factory=DurationProfile)
    dosha_involvement: tuple[str, ...] = ()
    icd_mappings: tuple[IcdMappingRef, ...] = ()
    clinical_questions: tuple[ClinicalQuestion, ...] = ()


@dataclass(frozen=True)
class IcdEntity:
    id: str
    title: str
    code: str
    definition: str = ""


@dataclass(frozen=True)
class SearchFilters:
    age_group: str | None = None
    gender: str | None = None
    duration: str | None = None

    def as_dict(self) -> dict[str, str | None]:
        return {
            "age_group": self.age_group,
            "gender": self.gender,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class ScoredEntry:
    entry: ConditionEntry
    relevance_score: int
    confidence: float


@dataclass(frozen=True)
class IcdMapping:
    entity: IcdEntity
    confidence: float
    mapping_type: str


@dataclass(frozen=True)
class MappedResult:
    entry: ConditionEntry
    relevance_score: int
    confidence: float
    combined_confidence: float
    icd_mappings: tuple[IcdMapping, ...] = ()

    @property
    def code(self) -> str:
        return self.entry.code


@dataclass(frozen=True)
class GuidedQuestion:
    id: str
    text: str
    options: tuple[str, ...]
    relevance_sources: tuple[str, ...]


@dataclass(frozen=True)
class CrossReference:
    """Editorial link from an ICD-11 title to AYUSH codes (local lookup file)."""

    icd_title: str
    icd_keywords: tuple[str, ...]
    ayush_codes: tuple[Mapping[str, str], ...]


@dataclass(frozen=True)
class Treatment:
    name: str
    system: str


@dataclass(frozen=True)
class ClinicalPathway:
    assessment: tuple[str, ...] = ()
    treatments: tuple[Treatment, ...] = ()
    lifestyle: tuple[str, ...] = ()
    follow_up: str = ""
    referral_criteria: tuple[str, ...] = ()
