from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from tabfold import __version__ as TOOL_VERSION
from tabfold.contracts import build_structured_summary
from tabfold.patterns import DelimiterConfig, build_config
from tabfold.pipeline import ReadFailure, RunResult, WriteFailure, run_aggregate, run_normalize

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_READ_FAILED = 2
EXIT_WRITE_FAILED = 3

RUNNERS = {
    "aggregate": run_aggregate,
    "normalize": run_normalize,
}


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class TabfoldArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(f"{self.format_usage().rstrip()}\n{self.prog}: error: {message}", EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json_dumps(payload), encoding="utf-8")


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, ReadFailure):
        return EXIT_READ_FAILED
    if isinstance(exc, WriteFailure):
        return EXIT_WRITE_FAILED
    return EXIT_COMMAND_ERROR


def add_run_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", help="Input file path")
    parser.add_argument("output", help="Output file path")
    parser.add_argument("--add-split", action="append", default=[], metavar="TEXT", help="Also split fields on TEXT")
    parser.add_argument("--replace-split", metavar="TEXT", help="Split fields on TEXT only (also used to join output fields)")
    parser.add_argument("--add-delimiter", action="append", default=[], metavar="TEXT", help="Also split sub-values on TEXT")
    parser.add_argument("--replace-delimiter", metavar="TEXT", help="Split sub-values on TEXT only (also used to join compound values)")
    parser.add_argument("--sheet", dest="sheet_name", help="Worksheet to read for .xlsx/.xlsm inputs")
    parser.add_argument("--json", action="store_true", help="Write the run summary as JSON to stdout")
    parser.add_argument("--summary", help="Also write the run summary JSON to this path")
    parser.add_argument("-q", "--quiet", action="store_true", help="Do not echo input and output lines")


def build_parser() -> argparse.ArgumentParser:
    parser = TabfoldArgumentParser(prog="tabfold", description="Aggregate or first-normal-form delimited records.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    aggregate = subparsers.add_parser("aggregate", help="Group rows by first field and fold the other columns.")
    add_run_arguments(aggregate)

    normalize = subparsers.add_parser("normalize", help="Expand multi-valued fields into every combination.")
    add_run_arguments(normalize)

    subparsers.add_parser("version", help="Print version")
    return parser


def config_from_args(args: argparse.Namespace) -> DelimiterConfig:
    try:
        return build_config(
            replace_split=args.replace_split,
            add_split=args.add_split,
            replace_delimiter=args.replace_delimiter,
            add_delimiter=args.add_delimiter,
        )
    except ValueError as exc:
        raise CliError(str(exc), EXIT_COMMAND_ERROR) from exc


def render_run_text(result: RunResult) -> str:
    lines = [
        f"tabfold {result.command}",
        f"Input lines: {result.input_lines}",
        f"Header width: {result.header_width}",
        f"Output records: {result.output_records}",
    ]
    for key, value in sorted(result.metrics.items()):
        lines.append(f"{key.replace('_', ' ').capitalize()}: {value}")
    for warning in result.warnings:
        lines.append(f"Warning: {warning}")
    return "\n".join(lines)


def run_command(args: argparse.Namespace) -> int:
    config = config_from_args(args)
    quiet = args.quiet or args.json
    try:
        result = RUNNERS[args.command](
            args.input,
            args.output,
            config,
            sheet_name=args.sheet_name,
            echo=lambda line: emit_human(line, quiet=quiet),
        )
    except (ReadFailure, WriteFailure) as exc:
        eprint(str(exc))
        return classify_exception(exc)

    summary = build_structured_summary(result, config)
    if args.summary:
        try:
            write_json(Path(args.summary), summary)
        except OSError as exc:
            eprint(f"Could not write summary {args.summary}: {exc}")
            return EXIT_WRITE_FAILED
    if args.json:
        print(json_dumps(summary))
    else:
        emit_human("", quiet=args.quiet)
        emit_human(render_run_text(result), quiet=args.quiet)
        emit_human(f"Output written: {result.output_path}", quiet=args.quiet)
    return EXIT_SUCCESS


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command in RUNNERS:
            return run_command(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
