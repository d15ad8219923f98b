"""Unranked per-system NAMASTE term lookup.

Backs ``/disease`` and ``/terminology/search``: a plain containment filter over
the raw datasets that returns matches in dataset order.
"""

from __future__ import annotations

from typing import Sequence

from ayush_core.core.exceptions import InvalidArgumentError
from ayush_core.models.terminology import CodedTerm
from ayush_core.repositories.reference_repository import ReferenceDataRepository
from ayush_core.services.search_normalization import compact_text

NAMASTE_SOURCE_URI = "http://namaste.gov.in/CodeSystem"


def _matches(normalized_term: str, item: CodedTerm) -> bool:
    fields = (item.english_name, item.term_diacritical, item.term_devanagari, item.term_native)
    return any(normalized_term in compact_text(value) for value in fields if value)


def search(term: str | None, dataset: Sequence[CodedTerm]) -> list[CodedTerm]:
    normalized_term = compact_text(term)
    if not normalized_term:
        raise InvalidArgumentError("term must not be empty")
    return [item for item in dataset if _matches(normalized_term, item)]


def search_all_systems(term: str | None, repository: ReferenceDataRepository) -> dict[str, list[CodedTerm]]:
    """Run :func:`search` over every system, keyed by system name."""
    return {system: search(term, repository.terms_for(system)) for system in repository.systems}
