"""Normalization of heterogeneous source records into canonical dataclasses.

The NAMASTE exports name the same column differently per system (``NAMC_term``
vs ``NAMC_TERM``, ``Name English`` vs ``Name_English`` ...) and WHO payloads vary
between ``theCode``/``code`` and plain/``{"@value": ...}`` titles.  All of that
is resolved here so that scoring and mapping only ever see one shape.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from ayush_core.models.terminology import (
    WILDCARD,
    ClinicalPathway,
    ClinicalQuestion,
    CodedTerm,
    ConditionEntry,
    CrossReference,
    DurationProfile,
    IcdEntity,
    IcdMappingRef,
    Treatment,
)

_CODE_KEYS = ("NAMC_CODE", "NAMC_Code", "code")
_NATIVE_KEYS = ("NAMC_term", "NAMC_TERM", "Name English")
_DIACRITICAL_KEYS = ("NAMC_term_diacritical", "NAMC_TERM_DIACRITICAL")
_DEVANAGARI_KEYS = ("NAMC_term_DEVANAGARI", "NAMC_TERM_DEVANAGARI")
_ENGLISH_KEYS = ("Name English", "Name_English", "english_name")


class RecordFormatError(ValueError):
    pass


def _first(record: Mapping[str, Any], keys: Iterable[str]) -> str:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return str(value).strip()
    return ""


def _text(value: Any) -> str:
    """Read WHO language strings, which arrive either plain or as ``{"@value": ...}``."""
    if isinstance(value, Mapping):
        value = value.get("@value")
    return str(value).strip() if value is not None else ""


def _strings(values: Any) -> tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = [values]
    return tuple(str(v).strip() for v in values if str(v).strip())


def coded_term_from_record(record: Mapping[str, Any], *, system: str = "") -> CodedTerm:
    code = _first(record, _CODE_KEYS)
    if not code:
        raise RecordFormatError(f"{system or 'NAMASTE'} record without code: {dict(record)!r}")
    return CodedTerm(
        code=code,
        term_native=_first(record, _NATIVE_KEYS),
        term_diacritical=_first(record, _DIACRITICAL_KEYS),
        term_devanagari=_first(record, _DEVANAGARI_KEYS),
        english_name=_first(record, _ENGLISH_KEYS),
        system=system,
    )


def clinical_question_from_record(question_id: str, record: Mapping[str, Any]) -> ClinicalQuestion:
    scoring: dict[str, dict[str, float]] = {}
    for answer, tags in (record.get("scoring") or {}).items():
        scoring[str(answer)] = {str(tag): float(weight) for tag, weight in (tags or {}).items()}
    return ClinicalQuestion(
        id=question_id,
        text=str(record.get("text") or "").strip(),
        scoring=scoring,
    )


def _resolve_questions(
    raw_questions: Iterable[Any],
    library: Mapping[str, ClinicalQuestion],
    *,
    entry_code: str,
) -> tuple[ClinicalQuestion, ...]:
    resolved: list[ClinicalQuestion] = []
    for item in raw_questions or ():
        if isinstance(item, str):
            question = library.get(item)
            if question is None:
                raise RecordFormatError(f"{entry_code}: unknown clinical question {item!r}")
        elif isinstance(item, Mapping) and item.get("id"):
            question = clinical_question_from_record(str(item["id"]), item)
        else:
            raise RecordFormatError(f"{entry_code}: malformed clinical question {item!r}")
        resolved.append(question)
    return tuple(resolved)


def condition_entry_from_record(
    record: Mapping[str, Any],
    question_library: Mapping[str, ClinicalQuestion] | None = None,
) -> ConditionEntry:
    code = _first(record, ("code", "namc_code", "NAMC_CODE"))
    if not code:
        raise RecordFormatError(f"enhanced entry without code: {dict(record)!r}")

    duration = record.get("duration") or {}
    age_groups = frozenset(v.lower() for v in _strings(record.get("ageGroups"))) or frozenset({WILDCARD})

    return ConditionEntry(
        code=code,
        english_term=_first(record, ("englishTerm", "english_term", "Name English")),
        diacritical_form=_first(record, ("diacriticalForm", "diacritical_form", "NAMC_term_diacritical")),
        system=_first(record, ("system",)),
        category=_first(record, ("category",)),
        primary_symptoms=_strings(record.get("primarySymptoms")),
        associated_symptoms=_strings(record.get("associatedSymptoms")),
        age_groups=age_groups,
        gender=(_first(record, ("gender",)) or WILDCARD).lower(),
        duration=DurationProfile(
            acute=bool(duration.get("acute", False)),
            chronic=bool(duration.get("chronic", False)),
        ),
        dosha_involvement=tuple(v.lower() for v in _strings(record.get("doshaInvolvement"))),
        icd_mappings=tuple(
            IcdMappingRef(code=str(m["code"]).strip(), confidence=float(m.get("confidence", 0.0)))
            for m in record.get("icdMappings") or ()
        ),
        clinical_questions=_resolve_questions(
            record.get("clinicalQuestions") or (),
            question_library or {},
            entry_code=code,
        ),
    )


def icd_entity_from_payload(payload: Mapping[str, Any]) -> IcdEntity:
    return IcdEntity(
        id=_text(payload.get("id") or payload.get("@id")),
        title=_text(payload.get("title")),
        code=_text(payload.get("theCode") or payload.get("code")),
        definition=_text(payload.get("definition")),
    )


def cross_reference_from_record(record: Mapping[str, Any]) -> CrossReference:
    return CrossReference(
        icd_title=_first(record, ("icdTitle", "icd_title")),
        icd_keywords=_strings(record.get("icdKeywords")),
        ayush_codes=tuple(dict(c) for c in record.get("ayushCodes") or ()),
    )


def clinical_pathway_from_record(record: Mapping[str, Any]) -> ClinicalPathway:
    return ClinicalPathway(
        assessment=_strings(record.get("assessment")),
        treatments=tuple(
            Treatment(name=str(t.get("name", "")).strip(), system=str(t.get("system", "")).strip())
            for t in record.get("treatments") or ()
        ),
        lifestyle=_strings(record.get("lifestyle")),
        follow_up=str(record.get("follow_up") or "").strip(),
        referral_criteria=_strings(record.get("referral_criteria")),
    )
