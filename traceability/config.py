"""Run configuration gathered once from a config file, the environment and CLI flags.

Precedence (later wins): YAML/JSON config file -> environment (.env supported)
-> command-line flags. The transform itself only ever sees a resolved
`TraceabilityConfig`.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from dotenv import find_dotenv, load_dotenv

from .schema import DEFAULT_MATRIX_FILE, DEFAULT_OUTPUT_DIR, DEFAULT_SUMMARY_FILE

CONFIG_KEYS = {"jira_file", "testrail_files", "output_dir", "matrix_file", "summary_file", "write_excel"}

ENV_VARS: Mapping[str, str] = {
    "jira_file": "TRACE_JIRA_FILE",
    "testrail_files": "TRACE_TESTRAIL_FILES",
    "output_dir": "TRACE_OUTPUT_DIR",
    "matrix_file": "TRACE_MATRIX_FILE",
    "summary_file": "TRACE_SUMMARY_FILE",
    "write_excel": "TRACE_WRITE_EXCEL",
}


class MissingInputError(FileNotFoundError):
    """An input export named in the configuration does not exist."""

    def __init__(self, label: str, path: Path):
        super().__init__(f"{label} not found at {path}")
        self.label = label
        self.path = path


@dataclass(frozen=True)
class TraceabilityConfig:
    jira_file: Path
    testrail_files: Tuple[Path, ...]
    output_dir: Path
    matrix_file: Path
    summary_file: Path
    write_excel: bool = False

    @property
    def excel_file(self) -> Path:
        return self.matrix_file.with_suffix(".xlsx")


def _parse_bool(value: Any, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on", "y"}


def _parse_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return [item.strip() for item in str(value).split(",") if item.strip()]


def load_config_file(config_path: Optional[Path]) -> Dict[str, Any]:
    """Parse a JSON or YAML config file into a dict of known keys."""
    if config_path is None:
        return {}

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    content = config_path.read_text(encoding="utf-8")
    if not content.strip():
        raise ValueError(f"Config file is empty: {config_path}")

    if config_path.suffix.lower() == ".json":
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Failed to parse JSON config at {config_path}") from exc
    else:
        try:
            parsed = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ValueError(f"Failed to parse YAML config at {config_path}") from exc

    if not isinstance(parsed, dict):
        raise ValueError(f"Config root must be a mapping: {config_path}")

    unknown = set(parsed) - CONFIG_KEYS
    if unknown:
        raise ValueError(f"Unknown config keys {sorted(unknown)} in {config_path}")
    return dict(parsed)


def load_env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect settings from TRACE_* environment variables (and a .env file)."""
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ
    values: Dict[str, Any] = {}
    for key, var in ENV_VARS.items():
        raw = environ.get(var)
        if raw is not None and raw.strip():
            values[key] = raw.strip()
    return values


def resolve_output_path(value: Any, output_dir: Path, default_name: str) -> Path:
    """Bare filenames land in `output_dir`; anything with a separator is used as given."""
    name = str(value).strip() if value else ""
    if not name:
        return output_dir / default_name
    if os.sep in name or (os.altsep and os.altsep in name):
        return Path(name)
    return output_dir / name


def resolve_config(
    *layers: Mapping[str, Any],
    base_dir: Optional[Path] = None,
    check_inputs: bool = True,
) -> TraceabilityConfig:
    """Merge setting layers (later wins) and validate the inputs exist."""
    base_dir = base_dir or Path.cwd()
    merged: Dict[str, Any] = {}
    for layer in layers:
        merged.update({k: v for k, v in layer.items() if v not in (None, "", [], ())})

    jira_raw = merged.get("jira_file")
    if not jira_raw:
        raise ValueError("A Jira export path is required (--jira, TRACE_JIRA_FILE or 'jira_file').")
    testrail_raw = _parse_list(merged.get("testrail_files"))
    if not testrail_raw:
        raise ValueError(
            "At least one TestRail export path is required (--testrail, TRACE_TESTRAIL_FILES or 'testrail_files')."
        )

    jira_file = Path(str(jira_raw))
    testrail_files = tuple(Path(p) for p in testrail_raw)

    if check_inputs:
        if not jira_file.exists():
            raise MissingInputError("Jira file", jira_file)
        for idx, path in enumerate(testrail_files, start=1):
            if not path.exists():
                raise MissingInputError(f"TestRail file #{idx}", path)

    output_dir = Path(str(merged.get("output_dir") or DEFAULT_OUTPUT_DIR))
    if not output_dir.is_absolute():
        output_dir = base_dir / output_dir

    return TraceabilityConfig(
        jira_file=jira_file,
        testrail_files=testrail_files,
        output_dir=output_dir,
        matrix_file=resolve_output_path(merged.get("matrix_file"), output_dir, DEFAULT_MATRIX_FILE),
        summary_file=resolve_output_path(merged.get("summary_file"), output_dir, DEFAULT_SUMMARY_FILE),
        write_excel=_parse_bool(merged.get("write_excel")),
    )
