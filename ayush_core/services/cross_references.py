"""Editorial AYUSH <-> ICD-11 title cross references (local lookup file)."""

from __future__ import annotations

from typing import Any, Sequence

from ayush_core.models.terminology import CrossReference, IcdEntity
from ayush_core.services.search_normalization import normalize_text, strip_markup


def ayush_codes_for_title(cross_references: Sequence[CrossReference], icd_title: str) -> list[dict[str, Any]]:
    title = normalize_text(strip_markup(icd_title))
    if not title:
        return []
    for ref in cross_references:
        if normalize_text(ref.icd_title) == title:
            return [dict(code) for code in ref.ayush_codes]
    return []


def search_cross_references(cross_references: Sequence[CrossReference], query: str) -> list[CrossReference]:
    q = normalize_text(query)
    return [
        ref
        for ref in cross_references
        if q in normalize_text(ref.icd_title) or any(q in normalize_text(k) for k in ref.icd_keywords)
    ]


def merge_icd_hits(cross_references: Sequence[CrossReference], hits: Sequence[IcdEntity]) -> list[dict[str, Any]]:
    return [
        {
            "id": hit.id,
            "title": hit.title,
            "code": hit.code,
            "definition": hit.definition or None,
            "ayush": ayush_codes_for_title(cross_references, hit.title),
        }
        for hit in hits
    ]
