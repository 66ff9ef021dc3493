"""Join Jira issues with TestRail test cases into one aggregated row per issue."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Optional

from .normalize import cell_text, first_present, normalize_key, split_references, unique_ordered
from .schema import (
    LIST_SEPARATOR,
    TEST_COLS,
    TEST_REFERENCES_COL,
    TITLE_SEPARATOR,
    TRACKER_COLS,
    TRACKER_KEY_COL,
    AggregatedRow,
    TestRecord,
    TrackedIssue,
)

Row = Mapping[str, Any]


def _bump(stats: Optional[MutableMapping[str, int]], key: str, amount: int = 1) -> None:
    if stats is not None:
        stats[key] = stats.get(key, 0) + amount


def build_tracker_index(
    rows: Iterable[Row],
    stats: Optional[MutableMapping[str, int]] = None,
) -> Dict[str, TrackedIssue]:
    """Index tracker rows by normalized issue key.

    Rows without a usable key are skipped. When a key recurs, the later row
    replaces the earlier one; the key keeps its first-seen position.
    """
    index: Dict[str, TrackedIssue] = {}
    for row in rows:
        key = normalize_key(row.get(TRACKER_KEY_COL))
        if not key:
            _bump(stats, "blank_key")
            continue
        if key in index:
            _bump(stats, "duplicate_key")
        index[key] = TrackedIssue(
            key=key,
            **{field: first_present(row, columns) for field, columns in TRACKER_COLS.items()},
        )
    return index


def extract_test_records(
    rows: Iterable[Row],
    source_file: str,
    stats: Optional[MutableMapping[str, int]] = None,
) -> List[TestRecord]:
    """Flatten test-case rows into one record per referenced issue key."""
    records: List[TestRecord] = []
    for row in rows:
        keys = split_references(row.get(TEST_REFERENCES_COL))
        if not keys:
            _bump(stats, "no_reference")
            continue
        attrs = {field: cell_text(row, column) for field, column in TEST_COLS.items()}
        for key in keys:
            records.append(TestRecord(source_file=source_file, reference_key=key, **attrs))
    return records


def group_by_reference(records: Iterable[TestRecord]) -> Dict[str, List[TestRecord]]:
    grouped: Dict[str, List[TestRecord]] = {}
    for record in records:
        grouped.setdefault(record.reference_key, []).append(record)
    return grouped


def aggregate_issue(issue: TrackedIssue, matches: List[TestRecord]) -> AggregatedRow:
    def joined(attr: str, separator: str = LIST_SEPARATOR) -> str:
        return separator.join(unique_ordered(getattr(rec, attr) for rec in matches))

    return AggregatedRow(
        issue=issue,
        source_files=joined("source_file"),
        case_ids=joined("case_id"),
        titles=joined("title", TITLE_SEPARATOR),
        priorities=joined("priority"),
        statuses=joined("automation_status"),
        test_count=len(matches),
    )


def aggregate_matrix(
    tracker_index: Mapping[str, TrackedIssue],
    test_records: Iterable[TestRecord],
) -> List[AggregatedRow]:
    """Emit one row per tracked issue, in index order, with its tests rolled up.

    Issues without matching tests still get a row (empty fields, count 0).
    """
    grouped = group_by_reference(test_records)
    known = sum(1 for key in grouped if key in tracker_index)
    logging.info(
        f"Jira keys that have at least one test: {len(grouped)} ({known} present in the Jira export)",
        extra={"referenced_keys": len(grouped), "known_keys": known},
    )
    return [aggregate_issue(issue, grouped.get(key, [])) for key, issue in tracker_index.items()]
