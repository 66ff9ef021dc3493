import csv
from pathlib import Path

import pandas as pd

from traceability.loaders import read_records, read_table
from traceability.report import sanitize_for_excel, write_excel_report, write_matrix, write_summary, write_table
from traceability.schema import MATRIX_COLUMNS, SUMMARY_COLUMNS, AggregatedRow, SummaryRow, TrackedIssue
from traceability.summary import percent_of, render_summary_table, summarize_coverage


def _row(key, count, **fields):
    return AggregatedRow(issue=TrackedIssue(key=key), test_count=count, **fields)


def test_summarize_coverage_counts_and_percentages():
    summary = summarize_coverage([_row("ABC-1", 1), _row("ABC-2", 0)])

    assert [s.metric for s in summary] == ["Total Jira tickets", "Tickets with tests", "Tickets without tests"]
    assert [s.absolute for s in summary] == [2, 1, 1]
    assert [s.percentage for s in summary] == ["", 50, 50]


def test_summarize_coverage_rounds_to_two_decimals():
    summary = summarize_coverage([_row("A-1", 3), _row("A-2", 0), _row("A-3", 0)])

    assert summary[1].percentage == 33.33
    assert summary[2].percentage == 66.67
    assert summary[1].absolute + summary[2].absolute == summary[0].absolute


def test_summarize_coverage_empty_matrix_is_zero_percent():
    summary = summarize_coverage([])

    assert [s.absolute for s in summary] == [0, 0, 0]
    assert summary[0].percentage == ""
    assert summary[1].percentage == 0
    assert summary[2].percentage == 0


def test_percent_of_zero_total():
    assert percent_of(5, 0) == 0


def test_render_summary_table_aligns_columns():
    rendered = render_summary_table(
        [
            SummaryRow("Total Jira tickets", 2, ""),
            SummaryRow("Tickets with tests", 1, 50),
            SummaryRow("Tickets without tests", 1, 50),
        ]
    )
    lines = rendered.splitlines()

    assert "TRACEABILITY MATRIX SUMMARY REPORT" in rendered
    header = next(line for line in lines if line.startswith("Metric"))
    # widest metric is 21 chars, +2 padding
    assert header.index("Count") == 23
    assert header.index("Coverage") == 23 + len("Count") + 2
    assert "Total Jira tickets     2      —" in lines
    assert "Tickets with tests     1      50%" in lines
    rule = lines[lines.index(header) + 1]
    assert set(rule) == {"─"}
    assert len(rule) == 23 + 7 + len("Coverage") + 2


def test_write_table_quotes_and_round_trips(tmp_path: Path):
    matrix = [
        _row(
            "ABC-1",
            2,
            case_ids="T1, T2",
            titles='Login "happy" path | Line\nbreak',
            priorities="High",
        ),
        _row("ABC-2", 0),
    ]
    out = tmp_path / "nested" / "matrix.csv"

    write_matrix(matrix, out)

    with out.open(newline="", encoding="utf-8") as handle:
        reader = csv.reader(handle)
        header = next(reader)
        body = list(reader)
    assert header == MATRIX_COLUMNS
    assert body[0][7] == "T1, T2"
    assert body[0][8] == 'Login "happy" path | Line\nbreak'
    assert body[0][11] == "2"
    assert body[1][6:11] == ["", "", "", "", ""]
    assert body[1][11] == "0"

    raw = out.read_text(encoding="utf-8")
    assert '"Login ""happy"" path | Line' in raw

    reread = read_records(out)
    assert reread[0]["Jira Key"] == "ABC-1"
    assert reread[0]["Test Titles"] == 'Login "happy" path | Line\nbreak'
    assert reread[1]["Test Case IDs"] == ""


def test_write_summary_blank_total_percentage(tmp_path: Path):
    out = tmp_path / "summary.csv"
    write_summary(summarize_coverage([_row("ABC-1", 1), _row("ABC-2", 0)]), out)

    df = read_table(out)
    assert list(df.columns) == SUMMARY_COLUMNS
    assert df["Metric"].tolist() == ["Total Jira tickets", "Tickets with tests", "Tickets without tests"]
    assert df["Absolute"].tolist() == ["2", "1", "1"]
    assert df["Percentage (%)"].tolist() == ["", "50", "50"]


def test_write_table_fills_missing_columns(tmp_path: Path):
    out = tmp_path / "partial.csv"
    write_table([{"b": "2"}], ["a", "b"], out)

    assert out.read_text(encoding="utf-8").splitlines() == ["a,b", ",2"]


def test_sanitize_for_excel_prefixes_formulas():
    assert sanitize_for_excel("=SUM(A1)") == "'=SUM(A1)"
    assert sanitize_for_excel("-1") == "'-1"
    assert sanitize_for_excel("ABC-1") == "ABC-1"
    assert sanitize_for_excel(3) == 3


def test_write_excel_report_creates_both_sheets(tmp_path: Path):
    matrix = [_row("ABC-1", 1, case_ids="T1", titles="=cmd"), _row("ABC-2", 0)]
    out = tmp_path / "matrix.xlsx"

    write_excel_report(matrix, summarize_coverage(matrix), out)

    xls = pd.ExcelFile(out)
    assert xls.sheet_names == ["Matrix", "Summary"]
    df = pd.read_excel(out, sheet_name="Matrix", dtype=str, keep_default_na=False)
    assert list(df.columns) == MATRIX_COLUMNS
    assert df["Jira Key"].tolist() == ["ABC-1", "ABC-2"]
    assert df["Test Titles"].tolist()[0] == "'=cmd"
