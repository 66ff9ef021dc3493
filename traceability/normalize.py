from __future__ import annotations

import re
from typing import Any, Iterable, List, Mapping, Sequence

import pandas as pd

from .schema import REFERENCE_SPLIT_PATTERN

_REFERENCE_SPLIT_RE = re.compile(REFERENCE_SPLIT_PATTERN)


def _is_missing(val: Any) -> bool:
    if val is None:
        return True
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        # pd.isna on list-like cells returns an array; treat those as present.
        return False


def normalize_key(raw: Any) -> str:
    """Canonicalize an issue key: text, trimmed, uppercase. Missing -> ''."""
    if _is_missing(raw):
        return ""
    return str(raw).strip().upper()


def cell_text(row: Mapping[str, Any], column: str) -> str:
    """Return a cell verbatim as text, or '' when the column or value is absent."""
    val = row.get(column)
    if _is_missing(val):
        return ""
    return str(val)


def first_present(row: Mapping[str, Any], columns: Sequence[str]) -> str:
    """Return the first non-empty cell among `columns` (header aliases)."""
    for column in columns:
        val = cell_text(row, column)
        if val:
            return val
    return ""


def split_references(raw: Any) -> List[str]:
    """Split a multi-valued References cell into normalized, non-empty keys.

    Tokens are separated by runs of commas and/or semicolons. Duplicates are
    kept; deduplication happens per aggregated field at join time.

    Example:
        "ABC-1, abc-2;ABC-1" -> ["ABC-1", "ABC-2", "ABC-1"]
    """
    if _is_missing(raw):
        return []
    text = str(raw)
    if not text.strip():
        return []
    keys = (normalize_key(piece) for piece in _REFERENCE_SPLIT_RE.split(text))
    return [key for key in keys if key]


def unique_ordered(values: Iterable[str]) -> List[str]:
    """Drop empty values and duplicates, keeping first-seen order."""
    seen = set()
    ordered: List[str] = []
    for val in values:
        if not val or val in seen:
            continue
        seen.add(val)
        ordered.append(val)
    return ordered
