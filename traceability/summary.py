from __future__ import annotations

from typing import List, Sequence, Union

from .schema import (
    METRIC_TOTAL,
    METRIC_WITH_TESTS,
    METRIC_WITHOUT_TESTS,
    AggregatedRow,
    SummaryRow,
)

BANNER = (
    "╔════════════════════════════════════════════╗\n"
    "║     TRACEABILITY MATRIX SUMMARY REPORT     ║\n"
    "╚════════════════════════════════════════════╝"
)
NOT_APPLICABLE = "—"


def percent_of(count: int, total: int) -> Union[float, int]:
    """Percentage of `total`, rounded to 2 decimals; 0 when total is 0."""
    if total == 0:
        return 0
    pct = round(count / total * 100, 2)
    # Whole percentages serialize as "50", not "50.0".
    return int(pct) if pct.is_integer() else pct


def summarize_coverage(rows: Sequence[AggregatedRow]) -> List[SummaryRow]:
    total = len(rows)
    with_tests = sum(1 for row in rows if row.test_count > 0)
    without_tests = total - with_tests
    return [
        SummaryRow(METRIC_TOTAL, total, ""),
        SummaryRow(METRIC_WITH_TESTS, with_tests, percent_of(with_tests, total)),
        SummaryRow(METRIC_WITHOUT_TESTS, without_tests, percent_of(without_tests, total)),
    ]


def _format_percentage(value: Union[float, int, str]) -> str:
    if value == "":
        return NOT_APPLICABLE
    return f"{value}%"


def render_summary_table(rows: Sequence[SummaryRow]) -> str:
    """Render summary rows as an aligned, plain-text console table."""
    cells = [(row.metric, str(row.absolute), _format_percentage(row.percentage)) for row in rows]
    header = ("Metric", "Count", "Coverage")

    widths = [
        max([len(header[idx])] + [len(cell[idx]) for cell in cells]) + 2
        for idx in range(len(header))
    ]

    lines = [BANNER, ""]
    lines.append(header[0].ljust(widths[0]) + header[1].ljust(widths[1]) + header[2])
    lines.append("─" * sum(widths))
    for metric, absolute, percentage in cells:
        lines.append(metric.ljust(widths[0]) + absolute.ljust(widths[1]) + percentage)
    return "\n".join(lines) + "\n"
