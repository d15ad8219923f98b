from __future__ import annotations

import re

_MULTISPACE_RE = re.compile(r"\s+")
_MARKUP_RE = re.compile(r"<[^>]*>")


def normalize_text(value: str | None) -> str:
    """Lowercase, trim and collapse inner whitespace."""
    lowered = (value or "").strip().lower()
    return _MULTISPACE_RE.sub(" ", lowered)


def compact_text(value: str | None) -> str:
    """Lowercase with every whitespace character removed (raw dataset lookup)."""
    return _MULTISPACE_RE.sub("", (value or "").lower())


def strip_markup(value: str | None) -> str:
    """Remove inline HTML such as the ``<em class='found'>`` highlights WHO returns."""
    return _MARKUP_RE.sub("", value or "")
