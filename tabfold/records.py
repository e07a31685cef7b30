"""Record model shared by the aggregate and normalize engines.

A record is a tuple of string fields. Every record handed to an engine has
exactly the header width: the field count of the first line read.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from tabfold.patterns import DelimiterConfig

Record = tuple[str, ...]


def reconcile(fields: Sequence[str], width: int) -> Record:
    """Pad with empty strings or truncate so the record has ``width`` fields."""
    if len(fields) < width:
        return tuple(fields) + ("",) * (width - len(fields))
    return tuple(fields[:width])


def parse_line(line: str, config: DelimiterConfig, width: int) -> Record:
    return reconcile(config.split_fields(line), width)


def render_record(record: Sequence[str], config: DelimiterConfig) -> str:
    return config.split_joiner.join(record)


def read_rows(rows: Iterable[Sequence[str]]) -> tuple[list[Record], int]:
    """Reconcile already-split rows; the first row fixes the header width.

    Returns ``(records, header_width)``; empty input gives ``([], 0)``.
    """
    records: list[Record] = []
    width: int | None = None
    for fields in rows:
        if width is None:
            width = len(fields)
        records.append(reconcile(fields, width))
    return records, width or 0


def read_records(lines: Iterable[str], config: DelimiterConfig) -> tuple[list[Record], int]:
    """Split every line and reconcile it to the first line's width.

    The first line is kept as data.
    """
    return read_rows(config.split_fields(line) for line in lines)
