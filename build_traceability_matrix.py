"""Join a Jira export with one or more TestRail exports into a traceability matrix.

Outputs (default under ./output):
    * traceability_matrix_aggregated.csv - one row per Jira issue, tests rolled up.
    * traceability_summary.csv           - coverage totals and percentages.
    * <matrix>.xlsx                      - optional workbook with both tables (--excel).

Example:
    python build_traceability_matrix.py --jira jira.csv --testrail suite_a.csv --testrail suite_b.csv
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from traceability.config import (
    MissingInputError,
    TraceabilityConfig,
    load_config_file,
    load_env_overrides,
    resolve_config,
)
from traceability.loaders import read_records
from traceability.matrix import aggregate_matrix, build_tracker_index, extract_test_records
from traceability.report import write_excel_report, write_matrix, write_summary
from traceability.schema import AggregatedRow, SummaryRow, TestRecord
from traceability.summary import render_summary_table, summarize_coverage


@dataclass
class TraceabilityResult:
    matrix: List[AggregatedRow]
    summary: List[SummaryRow]
    matrix_path: Path
    summary_path: Path
    excel_path: Optional[Path] = None
    skipped_tracker_rows: int = 0
    skipped_test_rows: int = 0


def configure_logging(verbosity: int) -> None:
    level = logging.DEBUG if verbosity > 0 else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build an aggregated Jira/TestRail traceability matrix and coverage summary.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON or YAML file with jira_file, testrail_files and output settings.",
    )
    parser.add_argument("--jira", dest="jira_file", help="Path to the Jira CSV (or Excel) export.")
    parser.add_argument(
        "--testrail",
        dest="testrail_files",
        action="append",
        help="Path to a TestRail CSV (or Excel) export. Repeat for multiple files.",
    )
    parser.add_argument(
        "--output-dir",
        help="Directory for outputs given as bare filenames (default: output).",
    )
    parser.add_argument(
        "--matrix-file",
        help="Output filename or path for the aggregated matrix CSV.",
    )
    parser.add_argument(
        "--summary-file",
        help="Output filename or path for the summary CSV.",
    )
    parser.add_argument(
        "--excel",
        dest="write_excel",
        action="store_true",
        default=None,
        help="Also write both tables to an Excel workbook next to the matrix CSV.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (repeatable).",
    )
    return parser.parse_args(argv)


def _log_skipped(label: str, stats: Dict[str, int], key: str, reason: str) -> int:
    skipped = stats.get(key, 0)
    if skipped:
        logging.warning(
            f"{label}: skipped {skipped} rows {reason}",
            extra={"source": label, "skipped": skipped},
        )
    return skipped


def run_pipeline(config: TraceabilityConfig) -> TraceabilityResult:
    logging.info("Reading CSV files...")
    jira_rows = read_records(config.jira_file)
    testrail_rows = [(path, read_records(path)) for path in config.testrail_files]

    logging.info(f"Jira rows: {len(jira_rows)}", extra={"path": str(config.jira_file), "rows": len(jira_rows)})
    for idx, (path, rows) in enumerate(testrail_rows, start=1):
        logging.info(
            f"TestRail file #{idx} ({path.name}): {len(rows)} rows",
            extra={"path": str(path), "rows": len(rows)},
        )

    tracker_stats: Dict[str, int] = {}
    tracker_index = build_tracker_index(jira_rows, stats=tracker_stats)
    logging.info(f"Unique Jira keys in map: {len(tracker_index)}", extra={"keys": len(tracker_index)})
    skipped_tracker = _log_skipped("Jira export", tracker_stats, "blank_key", "without an Issue key")
    if tracker_stats.get("duplicate_key"):
        logging.debug(
            f"Jira export: {tracker_stats['duplicate_key']} duplicate Issue keys overwritten by later rows",
        )

    test_records: List[TestRecord] = []
    skipped_tests = 0
    for path, rows in testrail_rows:
        test_stats: Dict[str, int] = {}
        test_records.extend(extract_test_records(rows, str(path), stats=test_stats))
        skipped_tests += _log_skipped(path.name, test_stats, "no_reference", "without Jira References")
    logging.info(
        f"Total normalized test rows with Jira references: {len(test_records)}",
        extra={"records": len(test_records)},
    )

    matrix = aggregate_matrix(tracker_index, test_records)
    logging.info(f"Aggregated Jira issue rows: {len(matrix)}", extra={"rows": len(matrix)})

    # Writers create each file's parent, so output_dir only appears when used.
    matrix_path = write_matrix(matrix, config.matrix_file)
    print(f"✓ Aggregated traceability matrix written to {matrix_path}")

    summary = summarize_coverage(matrix)
    summary_path = write_summary(summary, config.summary_file)
    print(f"✓ Summary written to {summary_path}")

    excel_path = None
    if config.write_excel:
        excel_path = write_excel_report(matrix, summary, config.excel_file)
        print(f"✓ Excel workbook written to {excel_path}")

    print()
    print(render_summary_table(summary))

    return TraceabilityResult(
        matrix=matrix,
        summary=summary,
        matrix_path=matrix_path,
        summary_path=summary_path,
        excel_path=excel_path,
        skipped_tracker_rows=skipped_tracker,
        skipped_test_rows=skipped_tests,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    cli_values = {
        "jira_file": args.jira_file,
        "testrail_files": args.testrail_files,
        "output_dir": args.output_dir,
        "matrix_file": args.matrix_file,
        "summary_file": args.summary_file,
        "write_excel": args.write_excel,
    }

    try:
        config = resolve_config(load_config_file(args.config), load_env_overrides(), cli_values)
    except MissingInputError as exc:
        logging.error(f"Error: {exc}", extra={"path": str(exc.path)})
        return 1
    except (FileNotFoundError, ValueError) as exc:
        logging.error(f"Invalid configuration: {exc}")
        return 1

    try:
        run_pipeline(config)
    except Exception:
        logging.exception("Error building aggregated traceability matrix")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
