from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ayush_core.models.terminology import CodedTerm, GuidedQuestion, MappedResult


class IcdMappingOut(BaseModel):
    id: str
    title: str
    code: str
    definition: str | None = None
    confidence: float
    mapping_type: str


class SearchResultOut(BaseModel):
    code: str
    english_term: str
    diacritical_form: str
    system: str
    category: str
    primary_symptoms: list[str]
    associated_symptoms: list[str]
    relevance_score: int
    confidence: float
    combined_confidence: float
    icd_mappings: list[IcdMappingOut] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: MappedResult) -> "SearchResultOut":
        entry = result.entry
        return cls(
            code=entry.code,
            english_term=entry.english_term,
            diacritical_form=entry.diacritical_form,
            system=entry.system,
            category=entry.category,
            primary_symptoms=list(entry.primary_symptoms),
            associated_symptoms=list(entry.associated_symptoms),
            relevance_score=result.relevance_score,
            confidence=round(result.confidence, 4),
            combined_confidence=round(result.combined_confidence, 4),
            icd_mappings=[
                IcdMappingOut(
                    id=m.entity.id,
                    title=m.entity.title,
                    code=m.entity.code,
                    definition=m.entity.definition or None,
                    confidence=m.confidence,
                    mapping_type=m.mapping_type,
                )
                for m in result.icd_mappings
            ],
        )


class GuidedQuestionOut(BaseModel):
    id: str
    text: str
    options: list[str]
    relevance_sources: list[str]

    @classmethod
    def from_question(cls, question: GuidedQuestion) -> "GuidedQuestionOut":
        return cls(
            id=question.id,
            text=question.text,
            options=list(question.options),
            relevance_sources=list(question.relevance_sources),
        )


class IntelligentSearchResponse(BaseModel):
    search_term: str
    filters_applied: dict[str, Optional[str]]
    total_results: int
    top_match: SearchResultOut | None = None
    other_matches: list[SearchResultOut] = Field(default_factory=list)
    guided_questions: list[GuidedQuestionOut] = Field(default_factory=list)
    has_high_confidence_match: bool
    timestamp: datetime


class GuidedQuestionsRequest(BaseModel):
    search_term: str | None = None
    answers: dict[str, Any] = Field(default_factory=dict)
    age_group: str | None = None
    gender: str | None = None
    duration: str | None = None
    include_icd: bool = True

    @field_validator("search_term", "age_group", "gender", "duration", mode="before")
    @classmethod
    def _strip_optional(cls, value: object) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @field_validator("answers", mode="before")
    @classmethod
    def _answers_default(cls, value: object) -> object:
        return {} if value is None else value


class GuidedQuestionsResponse(BaseModel):
    refined_results: list[SearchResultOut]
    next_questions: list[GuidedQuestionOut]
    answers_processed: int
    confidence_improved: bool


class DiseaseTermOut(BaseModel):
    code: str
    term: str | None = None
    english: str | None = None
    diacritical: str | None = None
    devanagari: str | None = None

    @classmethod
    def from_term(cls, item: CodedTerm) -> "DiseaseTermOut":
        return cls(
            code=item.code,
            term=item.term_native or None,
            english=item.english_name or None,
            diacritical=item.term_diacritical or None,
            devanagari=item.term_devanagari or None,
        )


class DiseaseSearchResponse(BaseModel):
    ayurveda: list[DiseaseTermOut]
    siddha: list[DiseaseTermOut]
    unani: list[DiseaseTermOut]


class TerminologyHit(BaseModel):
    system: str
    code: str
    term: str | None = None
    english: str | None = None
    display: str | None = None
    source: str


class TerminologySearchResponse(BaseModel):
    query: str
    include_icd: bool
    results: list[TerminologyHit]
    total: int


class ErrorResponse(BaseModel):
    error: str
    message: str
