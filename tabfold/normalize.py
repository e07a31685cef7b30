"""First-normal-form expansion of multi-valued fields.

Each field is split on the sub-value delimiter and the record is expanded
into every combination of its fields' values::

    apple          fruit:sale
    banana:cherry  fruit

becomes::

    apple   fruit
    apple   sale
    banana  fruit
    cherry  fruit

A record whose columns split into n0, n1, ... values yields n0 * n1 * ...
candidate tuples before deduplication. The blow-up is multiplicative in the
number of multi-valued columns; callers are expected to bound field
cardinality.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence

from tabfold.patterns import DelimiterConfig
from tabfold.records import Record


class OrderedRecordSet:
    """Insertion-ordered set of records backed by a dict."""

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self._items: dict[Record, None] = {}
        for record in records:
            self.add(record)

    def add(self, record: Sequence[str]) -> bool:
        """Insert ``record``; return False when an equal record is already present."""
        key = tuple(record)
        if key in self._items:
            return False
        self._items[key] = None
        return True

    def __contains__(self, record: object) -> bool:
        return isinstance(record, (tuple, list)) and tuple(record) in self._items

    def __iter__(self) -> Iterator[Record]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"OrderedRecordSet({list(self._items)!r})"


def expand_record(record: Sequence[str], config: DelimiterConfig, into: OrderedRecordSet) -> int:
    """Add every combination of ``record``'s sub-values to ``into``.

    Returns the number of candidate tuples produced, duplicates included.
    """
    # An empty field splits to [""], so every column has at least one value.
    choices = [config.split_values(value) for value in record]
    positions = [0] * len(choices)
    produced = 0
    while True:
        into.add(tuple(values[i] for values, i in zip(choices, positions)))
        produced += 1
        # Advance the rightmost column that still has values left; reset the ones after it.
        column = len(choices) - 1
        while column >= 0 and positions[column] + 1 == len(choices[column]):
            positions[column] = 0
            column -= 1
        if column < 0:
            return produced
        positions[column] += 1


def normalize(records: Iterable[Sequence[str]], config: DelimiterConfig) -> OrderedRecordSet:
    result = OrderedRecordSet()
    for record in records:
        expand_record(record, config, result)
    return result
