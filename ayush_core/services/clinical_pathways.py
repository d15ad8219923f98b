from __future__ import annotations

from typing import Any

from ayush_core.core.exceptions import InvalidArgumentError, NotFoundError
from ayush_core.models.terminology import ClinicalPathway
from ayush_core.repositories.reference_repository import ReferenceDataRepository


def get_clinical_pathway(repository: ReferenceDataRepository, namc_code: str) -> dict[str, Any]:
    """Editorial treatment-pathway bundle for one condition.

    Known conditions without a curated pathway get an empty pathway; unknown
    codes raise :class:`NotFoundError`.
    """
    code = (namc_code or "").strip()
    if not code:
        raise InvalidArgumentError("namc_code must not be empty")

    entry = repository.get_condition(code)
    if entry is None:
        raise NotFoundError(f"Unknown NAMC code: {code}")

    pathway = repository.get_pathway(code) or ClinicalPathway()
    return {
        "namc_code": entry.code,
        "condition": {
            "english_term": entry.english_term,
            "diacritical_form": entry.diacritical_form,
            "system": entry.system,
            "category": entry.category,
            "primary_symptoms": list(entry.primary_symptoms),
            "associated_symptoms": list(entry.associated_symptoms),
        },
        "icd_mappings": [{"code": m.code, "confidence": m.confidence} for m in entry.icd_mappings],
        "pathway": {
            "assessment": list(pathway.assessment),
            "treatments": [{"name": t.name, "system": t.system} for t in pathway.treatments],
            "lifestyle": list(pathway.lifestyle),
            "follow_up": pathway.follow_up or None,
            "referral_criteria": list(pathway.referral_criteria),
        },
    }
