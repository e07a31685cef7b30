"""Group records by their first field and fold the remaining columns.

Example, with tab-separated input and the default ``:`` delimiter::

    fruit     apple   green
    fruit     banana
    beverage
    beverage  coke
    pet       dog     loyal

becomes::

    beverage  :coke          :
    fruit     apple:banana   green:
    pet       dog            loyal
"""

from __future__ import annotations

from typing import Iterable, Sequence

from tabfold.patterns import DelimiterConfig
from tabfold.records import Record


def group_records(records: Iterable[Sequence[str]]) -> dict[str, list[Sequence[str]]]:
    """Group records on their first field.

    Members keep read order. The returned dict iterates keys in ascending
    order regardless of the order keys were first seen.
    """
    groups: dict[str, list[Sequence[str]]] = {}
    for record in records:
        key = record[0] if record else ""
        groups.setdefault(key, []).append(record)
    return {key: groups[key] for key in sorted(groups)}


def compound_value(group: Sequence[Sequence[str]], column: int, joiner: str) -> str:
    """Join one column across a group; short members contribute ``""``."""
    return joiner.join(row[column] if column < len(row) else "" for row in group)


def pivot_group(key: str, group: Sequence[Sequence[str]], joiner: str) -> Record:
    # Width is taken per group so ragged members never raise.
    max_columns = max((len(row) for row in group), default=0)
    compounds = [compound_value(group, column, joiner) for column in range(1, max_columns)]
    return (key, *compounds)


def aggregate(records: Iterable[Sequence[str]], config: DelimiterConfig) -> list[Record]:
    """Return one pivoted record per distinct key, in ascending key order."""
    return [
        pivot_group(key, group, config.delimiter_joiner)
        for key, group in group_records(records).items()
    ]
