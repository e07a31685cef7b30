"""Versioned run-summary contracts for tabfold outputs."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from tabfold import __version__ as TOOL_VERSION
from tabfold.patterns import DelimiterConfig
from tabfold.pipeline import RunResult

CONTRACT_VERSIONS = {
    "tabfold.aggregate": "1.0.0",
    "tabfold.normalize": "1.0.0",
}

STAMP_ENV = "TABFOLD_OUTPUT_STAMP"


def utc_now_iso() -> str:
    override = os.environ.get(STAMP_ENV)
    if override:
        return override
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_contract(name: str) -> dict[str, str]:
    version = CONTRACT_VERSIONS[name]
    return {"name": name, "version": version}


def build_run_summary(
    *,
    tool: str,
    script: str,
    input_path: Path,
    status: str = "ok",
    output_path: Path | None = None,
    metrics: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "tool": tool,
        "script": script,
        "status": status,
        "generated_at": utc_now_iso(),
        "input_file": str(input_path),
        "output_file": str(output_path) if output_path else None,
        "warnings_count": len(warnings or []),
        "warnings": list(warnings or []),
        "metrics": metrics or {},
    }


def build_structured_summary(result: RunResult, config: DelimiterConfig) -> dict[str, Any]:
    """Summary payload for a finished aggregate or normalize run."""
    contract = build_contract(f"tabfold.{result.command}")
    metrics = {
        "input_lines": result.input_lines,
        "header_width": result.header_width,
        "output_records": result.output_records,
        **result.metrics,
    }
    return {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "command": result.command,
        "input": {
            "format": result.detected_format,
            "encoding": result.detected_encoding,
            "sheet_name": result.sheet_name,
        },
        "delimiters": {
            "split_pattern": config.split_pattern.pattern,
            "split_joiner": config.split_joiner,
            "delimiter_pattern": config.delimiter_pattern.pattern,
            "delimiter_joiner": config.delimiter_joiner,
        },
        "run_summary": build_run_summary(
            tool="tabfold",
            script=result.command,
            input_path=result.input_path,
            output_path=result.output_path,
            metrics=metrics,
            warnings=result.warnings,
        ),
    }
