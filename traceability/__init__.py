"""
Jira/TestRail traceability helpers shared by the matrix builder script and its
tests.
"""

from .config import (  # noqa: F401
    MissingInputError,
    TraceabilityConfig,
    load_config_file,
    load_env_overrides,
    resolve_config,
)
from .loaders import read_records, read_table  # noqa: F401
from .matrix import (  # noqa: F401
    aggregate_matrix,
    build_tracker_index,
    extract_test_records,
    group_by_reference,
)
from .normalize import normalize_key, split_references, unique_ordered  # noqa: F401
from .report import write_excel_report, write_matrix, write_summary, write_table  # noqa: F401
from .schema import (  # noqa: F401
    MATRIX_COLUMNS,
    SUMMARY_COLUMNS,
    AggregatedRow,
    SummaryRow,
    TestRecord,
    TrackedIssue,
)
from .summary import render_summary_table, summarize_coverage  # noqa: F401

__all__ = [
    "MissingInputError",
    "TraceabilityConfig",
    "load_config_file",
    "load_env_overrides",
    "resolve_config",
    "read_records",
    "read_table",
    "aggregate_matrix",
    "build_tracker_index",
    "extract_test_records",
    "group_by_reference",
    "normalize_key",
    "split_references",
    "unique_ordered",
    "write_excel_report",
    "write_matrix",
    "write_summary",
    "write_table",
    "MATRIX_COLUMNS",
    "SUMMARY_COLUMNS",
    "AggregatedRow",
    "SummaryRow",
    "TestRecord",
    "TrackedIssue",
    "render_summary_table",
    "summarize_coverage",
]
