"""Read-only access to the bundled AYUSH reference datasets.

Files are parsed once, converted into canonical records and kept in memory for
the process lifetime.  Nothing in the engine mutates them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ayush_core.models.terminology import (
    ClinicalPathway,
    CodedTerm,
    ConditionEntry,
    CrossReference,
)
from ayush_core.repositories.record_adapters import (
    clinical_pathway_from_record,
    clinical_question_from_record,
    coded_term_from_record,
    condition_entry_from_record,
    cross_reference_from_record,
)

logger = logging.getLogger(__name__)

SYSTEM_FILES = {
    "Ayurveda": "ayurveda.json",
    "Siddha": "siddha.json",
    "Unani": "unani.json",
}
ENHANCED_FILE = "enhanced_ayush.json"
CROSSREF_FILE = "ayush_icd_crossref.json"
PATHWAYS_FILE = "clinical_pathways.json"


@dataclass(frozen=True)
class ReferenceData:
    terms_by_system: dict[str, tuple[CodedTerm, ...]]
    conditions: tuple[ConditionEntry, ...]
    cross_references: tuple[CrossReference, ...]
    pathways: dict[str, ClinicalPathway]


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Reference data file not found: {path}")
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def load_reference_data(data_dir: Path) -> ReferenceData:
    terms_by_system: dict[str, tuple[CodedTerm, ...]] = {}
    for system, filename in SYSTEM_FILES.items():
        rows = _read_json(data_dir / filename)
        terms_by_system[system] = tuple(coded_term_from_record(row, system=system) for row in rows)

    enhanced = _read_json(data_dir / ENHANCED_FILE)
    if isinstance(enhanced, list):
        enhanced = {"questions": {}, "conditions": enhanced}
    library = {
        qid: clinical_question_from_record(qid, record)
        for qid, record in (enhanced.get("questions") or {}).items()
    }
    conditions = tuple(
        condition_entry_from_record(record, library) for record in enhanced.get("conditions") or ()
    )

    crossref_path = data_dir / CROSSREF_FILE
    cross_references = (
        tuple(cross_reference_from_record(r) for r in _read_json(crossref_path))
        if crossref_path.exists()
        else ()
    )

    pathways_path = data_dir / PATHWAYS_FILE
    pathways = (
        {code: clinical_pathway_from_record(r) for code, r in _read_json(pathways_path).items()}
        if pathways_path.exists()
        else {}
    )

    logger.info(
        "Reference data loaded from %s: terms=%s conditions=%s cross_references=%s pathways=%s",
        data_dir.as_posix(),
        {system: len(terms) for system, terms in terms_by_system.items()},
        len(conditions),
        len(cross_references),
        len(pathways),
    )
    return ReferenceData(
        terms_by_system=terms_by_system,
        conditions=conditions,
        cross_references=cross_references,
        pathways=pathways,
    )


class ReferenceDataRepository:
    def __init__(self, data: ReferenceData) -> None:
        self._data = data
        self._conditions_by_code = {c.code: c for c in data.conditions}

    @classmethod
    def from_directory(cls, data_dir: Path) -> "ReferenceDataRepository":
        return cls(load_reference_data(Path(data_dir)))

    @property
    def systems(self) -> list[str]:
        return list(self._data.terms_by_system.keys())

    def terms_for(self, system: str) -> tuple[CodedTerm, ...]:
        return self._data.terms_by_system.get(system, ())

    @property
    def conditions(self) -> tuple[ConditionEntry, ...]:
        return self._data.conditions

    def get_condition(self, code: str) -> ConditionEntry | None:
        return self._conditions_by_code.get((code or "").strip())

    def get_pathway(self, code: str) -> ClinicalPathway | None:
        return self._data.pathways.get((code or "").strip())

    @property
    def cross_references(self) -> tuple[CrossReference, ...]:
        return self._data.cross_references

    def stats(self) -> dict[str, int]:
        counts = {system.lower(): len(terms) for system, terms in self._data.terms_by_system.items()}
        counts["enhanced_conditions"] = len(self._data.conditions)
        counts["cross_references"] = len(self._data.cross_references)
        counts["pathways"] = len(self._data.pathways)
        return counts
