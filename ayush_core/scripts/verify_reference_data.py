from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from pathlib import Path

from ayush_core.core.config import settings
from ayush_core.core.logging_config import configure_logging
from ayush_core.models.terminology import AYUSH_SYSTEMS
from ayush_core.repositories.reference_repository import ReferenceData, load_reference_data

logger = logging.getLogger(__name__)


def verify(data: ReferenceData) -> list[str]:
    """Return one message per integrity problem found in the loaded corpus."""
    problems: list[str] = []

    code_counts = Counter(entry.code for entry in data.conditions)
    for code, count in sorted(code_counts.items()):
        if count > 1:
            problems.append(f"duplicate condition code {code!r} ({count} entries)")

    for entry in data.conditions:
        if entry.system not in AYUSH_SYSTEMS:
            problems.append(f"{entry.code}: unknown system {entry.system!r}")

        question_counts = Counter(q.id for q in entry.clinical_questions)
        for qid, count in question_counts.items():
            if count > 1:
                problems.append(f"{entry.code}: question {qid!r} listed {count} times")

        for ref in entry.icd_mappings:
            if not 0.0 <= ref.confidence <= 1.0:
                problems.append(f"{entry.code}: ICD mapping {ref.code} confidence {ref.confidence} outside [0, 1]")

    for system, terms in data.terms_by_system.items():
        term_counts = Counter(t.code for t in terms)
        for code, count in term_counts.items():
            if count > 1:
                problems.append(f"{system}: duplicate term code {code!r}")

    known_codes = set(code_counts)
    for code in data.pathways:
        if code not in known_codes:
            problems.append(f"pathway {code!r} has no enhanced condition entry")

    return problems


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check integrity of the bundled AYUSH reference data.")
    parser.add_argument("--data-dir", default=None, help="directory holding the JSON datasets")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)
    data_dir = Path(args.data_dir) if args.data_dir else settings.data_dir

    data = load_reference_data(data_dir)
    problems = verify(data)
    for problem in problems:
        logger.error(problem)

    if problems:
        print(f"verify_reference_data: {len(problems)} problem(s)")
        return 1
    print("verify_reference_data: OK")
    return 0


if __name__ == "__main__":
    sys.exit(main())
