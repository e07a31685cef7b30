"""Read → engine → write runs for the aggregate and normalize commands.

The whole input is read before anything is written, so a read failure
never creates the output file. A write failure can leave a partial file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from tabfold.aggregate import aggregate, group_records
from tabfold.loader import LoadedInput, load_lines
from tabfold.normalize import OrderedRecordSet, expand_record
from tabfold.patterns import DelimiterConfig
from tabfold.records import Record, read_records, read_rows, render_record

Echo = Callable[[str], None]


class RunFailure(Exception):
    """Base error for a run that could not complete."""


class ReadFailure(RunFailure):
    """Raised when the input cannot be read."""


class WriteFailure(RunFailure):
    """Raised when the output cannot be written."""


@dataclass
class RunResult:
    command: str
    input_path: Path
    output_path: Path
    input_lines: int
    header_width: int
    output_records: int
    metrics: dict[str, int] = field(default_factory=dict)
    detected_format: str = "text"
    detected_encoding: Optional[str] = None
    sheet_name: Optional[str] = None
    warnings: list[str] = field(default_factory=list)


def _silent(_: str) -> None:
    pass


def read_input(
    input_path: Path,
    config: DelimiterConfig,
    *,
    sheet_name: Optional[str] = None,
    echo: Echo = _silent,
) -> LoadedInput:
    try:
        loaded = load_lines(input_path, config, sheet_name=sheet_name)
    except (OSError, ValueError) as exc:
        raise ReadFailure(f"Could not read {input_path}: {exc}") from exc
    echo("Input:")
    for line in loaded.lines:
        echo(config.visualize(line))
    return loaded


def input_records(loaded: LoadedInput, config: DelimiterConfig) -> tuple[list[Record], int]:
    # Workbook cells are already fields; only text lines go through the split pattern.
    if loaded.rows is not None:
        return read_rows(loaded.rows)
    return read_records(loaded.lines, config)


def write_output(
    output_path: Path,
    records: Iterable[Sequence[str]],
    config: DelimiterConfig,
    *,
    echo: Echo = _silent,
) -> int:
    """Write one line per record; return the number of records written."""
    written = 0
    echo("")
    echo("Output:")
    try:
        with open(output_path, "w", encoding="utf-8", newline="\n") as fh:
            for record in records:
                line = render_record(record, config)
                fh.write(line + "\n")
                written += 1
                echo(config.visualize(line))
    except OSError as exc:
        raise WriteFailure(f"Could not write {output_path}: {exc}") from exc
    return written


def _result(
    command: str,
    input_path: Path,
    output_path: Path,
    loaded: LoadedInput,
    header_width: int,
    written: int,
    metrics: dict[str, int],
) -> RunResult:
    return RunResult(
        command=command,
        input_path=input_path,
        output_path=output_path,
        input_lines=len(loaded.lines),
        header_width=header_width,
        output_records=written,
        metrics=metrics,
        detected_format=loaded.detected_format,
        detected_encoding=loaded.detected_encoding,
        sheet_name=loaded.sheet_name,
        warnings=list(loaded.warnings),
    )


def run_aggregate(
    input_path: "str | Path",
    output_path: "str | Path",
    config: DelimiterConfig,
    *,
    sheet_name: Optional[str] = None,
    echo: Echo = _silent,
) -> RunResult:
    input_path, output_path = Path(input_path), Path(output_path)
    loaded = read_input(input_path, config, sheet_name=sheet_name, echo=echo)
    records, header_width = input_records(loaded, config)
    groups = group_records(records)
    output = aggregate(records, config)
    written = write_output(output_path, output, config, echo=echo)
    largest = max((len(members) for members in groups.values()), default=0)
    return _result(
        "aggregate",
        input_path,
        output_path,
        loaded,
        header_width,
        written,
        {"groups": len(groups), "largest_group": largest},
    )


def run_normalize(
    input_path: "str | Path",
    output_path: "str | Path",
    config: DelimiterConfig,
    *,
    sheet_name: Optional[str] = None,
    echo: Echo = _silent,
) -> RunResult:
    input_path, output_path = Path(input_path), Path(output_path)
    loaded = read_input(input_path, config, sheet_name=sheet_name, echo=echo)
    records, header_width = input_records(loaded, config)
    normalized = OrderedRecordSet()
    candidates = 0
    for record in records:
        candidates += expand_record(record, config, normalized)
    written = write_output(output_path, normalized, config, echo=echo)
    return _result(
        "normalize",
        input_path,
        output_path,
        loaded,
        header_width,
        written,
        {"candidate_tuples": candidates, "duplicates_dropped": candidates - len(normalized)},
    )
