from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence, Union

import pandas as pd

from .schema import MATRIX_COLUMNS, SUMMARY_COLUMNS, AggregatedRow, SummaryRow

PathLike = Union[str, Path]


def sanitize_for_excel(val: Any) -> Any:
    """Prevent formula injection in Excel."""
    if not isinstance(val, str):
        return val
    if val.startswith(("=", "+", "-", "@")):
        return "'" + val
    return val


def _to_frame(rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> pd.DataFrame:
    # Declared column order; keys absent from a row become "".
    return pd.DataFrame(list(rows), columns=list(columns)).fillna("")


def write_table(rows: Iterable[Mapping[str, Any]], columns: Sequence[str], path: PathLike) -> Path:
    """Write header-keyed rows to a CSV file with a header row in `columns` order."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    df = _to_frame(rows, columns)
    df.to_csv(target, index=False, encoding="utf-8")
    logging.info(f"Wrote {len(df)} rows to {target}", extra={"path": str(target), "rows": len(df)})
    return target


def write_matrix(rows: Sequence[AggregatedRow], path: PathLike) -> Path:
    return write_table((row.to_record() for row in rows), MATRIX_COLUMNS, path)


def write_summary(rows: Sequence[SummaryRow], path: PathLike) -> Path:
    return write_table((row.to_record() for row in rows), SUMMARY_COLUMNS, path)


def write_excel_report(
    matrix: Sequence[AggregatedRow],
    summary: Sequence[SummaryRow],
    path: PathLike,
) -> Path:
    """Write the matrix and summary to one workbook (sheets 'Matrix', 'Summary')."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    df_matrix = _to_frame((row.to_record() for row in matrix), MATRIX_COLUMNS)
    df_summary = _to_frame((row.to_record() for row in summary), SUMMARY_COLUMNS)

    with pd.ExcelWriter(target, engine="xlsxwriter") as writer:
        df_matrix.map(sanitize_for_excel).to_excel(writer, sheet_name="Matrix", index=False)
        df_summary.to_excel(writer, sheet_name="Summary", index=False)

        ws_matrix = writer.sheets["Matrix"]
        ws_matrix.freeze_panes(1, 1)
        ws_matrix.set_column("A:A", 15)
        ws_matrix.set_column("B:B", 50)
        ws_matrix.set_column("C:F", 18)
        ws_matrix.set_column("G:K", 30)
        ws_matrix.set_column("L:L", 12)

        ws_summary = writer.sheets["Summary"]
        ws_summary.set_column("A:A", 25)
        ws_summary.set_column("B:C", 15)

    logging.info(
        f"Wrote Excel report to {target}",
        extra={"path": str(target), "rows": len(df_matrix)},
    )
    return target
