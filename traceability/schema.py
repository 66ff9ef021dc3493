from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Union


# Tracker (Jira) export headers
TRACKER_KEY_COL = "Issue key"
TRACKER_COLS: Mapping[str, Sequence[str]] = {
    "summary": ("Summary",),
    "issue_type": ("Issue Type",),
    "status": ("Status",),
    # "Fix Version" is the legacy header used by older Jira exports.
    "fix_versions": ("Fix Version/s", "Fix Version"),
    "parent_key": ("Parent key",),
}

# Test-management (TestRail) export headers
TEST_REFERENCES_COL = "References"
TEST_COLS: Mapping[str, str] = {
    "case_id": "ID",
    "title": "Title",
    "priority": "Priority",
    "automation_status": "Test Case Automated?",
}

REFERENCE_SPLIT_PATTERN = r"[,;]+"

LIST_SEPARATOR = ", "
TITLE_SEPARATOR = " | "

MATRIX_COLUMNS: List[str] = [
    "Jira Key",
    "Jira Summary",
    "Issue Type",
    "Jira Status",
    "Fix Version/s",
    "Epic/Parent",
    "Source Files",
    "Test Case IDs",
    "Test Titles",
    "Test Priorities",
    "Test Statuses",
    "Test Count",
]

SUMMARY_COLUMNS: List[str] = ["Metric", "Absolute", "Percentage (%)"]

METRIC_TOTAL = "Total Jira tickets"
METRIC_WITH_TESTS = "Tickets with tests"
METRIC_WITHOUT_TESTS = "Tickets without tests"

DEFAULT_OUTPUT_DIR = "output"
DEFAULT_MATRIX_FILE = "traceability_matrix_aggregated.csv"
DEFAULT_SUMMARY_FILE = "traceability_summary.csv"


@dataclass(frozen=True)
class TrackedIssue:
    """One Jira issue as indexed by its normalized key."""

    key: str
    summary: str = ""
    issue_type: str = ""
    status: str = ""
    fix_versions: str = ""
    parent_key: str = ""


@dataclass(frozen=True)
class TestRecord:
    """A single (test case, referenced issue key) association."""

    __test__ = False  # keep pytest from collecting this as a test class

    source_file: str
    case_id: str
    title: str
    priority: str
    automation_status: str
    reference_key: str


@dataclass(frozen=True)
class AggregatedRow:
    issue: TrackedIssue
    source_files: str = ""
    case_ids: str = ""
    titles: str = ""
    priorities: str = ""
    statuses: str = ""
    test_count: int = 0

    def to_record(self) -> Dict[str, Union[str, int]]:
        """Return the row keyed by the matrix column titles."""
        return {
            "Jira Key": self.issue.key,
            "Jira Summary": self.issue.summary,
            "Issue Type": self.issue.issue_type,
            "Jira Status": self.issue.status,
            "Fix Version/s": self.issue.fix_versions,
            "Epic/Parent": self.issue.parent_key,
            "Source Files": self.source_files,
            "Test Case IDs": self.case_ids,
            "Test Titles": self.titles,
            "Test Priorities": self.priorities,
            "Test Statuses": self.statuses,
            "Test Count": self.test_count,
        }


@dataclass(frozen=True)
class SummaryRow:
    metric: str
    absolute: int
    # "" marks "not applicable" (total row), distinct from 0 percent.
    percentage: Union[float, int, str] = ""

    def to_record(self) -> Dict[str, Union[str, int, float]]:
        return {
            "Metric": self.metric,
            "Absolute": self.absolute,
            "Percentage (%)": self.percentage,
        }
