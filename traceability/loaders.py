from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

EXCEL_SUFFIXES = (".xlsx", ".xls")


def read_table(path: Union[str, Path]) -> pd.DataFrame:
    """Read a CSV or Excel export with every cell kept as verbatim text.

    NA conversion is disabled so empty cells stay "" and values such as "NA"
    or "null" are not turned into missing values.
    """
    source = Path(path)
    try:
        if source.suffix.lower() in EXCEL_SUFFIXES:
            df = pd.read_excel(source, dtype=str, keep_default_na=False)
        else:
            # index_col=False: a trailing delimiter on data rows must not turn
            # the first column into the index and shift every header left.
            df = pd.read_csv(
                source,
                dtype=str,
                keep_default_na=False,
                encoding="utf-8-sig",
                index_col=False,
            )
    except FileNotFoundError:
        raise
    except Exception as exc:
        raise RuntimeError(f"Failed to read export at {source}") from exc

    logging.debug(
        f"Read {len(df)} rows and {df.shape[1]} columns from {source}",
        extra={"path": str(source), "rows": len(df), "columns": list(df.columns)},
    )
    return df


def read_records(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Read an export as a list of header-keyed row dicts."""
    return read_table(path).to_dict(orient="records")
