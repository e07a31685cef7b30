"""Delimiter patterns for field and sub-value splitting."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

DEFAULT_SPLITTER = "\t"
DEFAULT_DELIMITER = ":"
ARROW = "→"


def _literal(text: str) -> re.Pattern[str]:
    return re.compile(re.escape(text))


def _alternate(pattern: re.Pattern[str], text: str) -> re.Pattern[str]:
    return re.compile(f"{pattern.pattern}|{re.escape(text)}")


@dataclass(frozen=True)
class DelimiterConfig:
    """Split and sub-value patterns shared by both engines.

    Instances are immutable. ``add_*`` returns a copy whose pattern also
    matches the new text; ``replace_*`` returns a copy that matches only the
    new text and joins with it. The joiners are the literal separators used
    when records are rendered back to text; ``add_*`` leaves them alone.
    """

    split_joiner: str = DEFAULT_SPLITTER
    delimiter_joiner: str = DEFAULT_DELIMITER
    split_pattern: re.Pattern[str] | None = None
    delimiter_pattern: re.Pattern[str] | None = None

    def __post_init__(self) -> None:
        if self.split_pattern is None:
            object.__setattr__(self, "split_pattern", _literal(self.split_joiner))
        if self.delimiter_pattern is None:
            object.__setattr__(self, "delimiter_pattern", _literal(self.delimiter_joiner))

    def add_split(self, text: str) -> "DelimiterConfig":
        return replace(self, split_pattern=_alternate(self.split_pattern, _require(text, "split")))

    def replace_split(self, text: str) -> "DelimiterConfig":
        return replace(self, split_joiner=_require(text, "split"), split_pattern=_literal(text))

    def add_delimiter(self, text: str) -> "DelimiterConfig":
        return replace(self, delimiter_pattern=_alternate(self.delimiter_pattern, _require(text, "delimiter")))

    def replace_delimiter(self, text: str) -> "DelimiterConfig":
        return replace(self, delimiter_joiner=_require(text, "delimiter"), delimiter_pattern=_literal(text))

    def split_fields(self, line: str) -> list[str]:
        return self.split_pattern.split(line)

    def split_values(self, value: str) -> list[str]:
        return self.delimiter_pattern.split(value)

    def visualize(self, line: str) -> str:
        return self.split_pattern.sub(ARROW, line)


def _require(text: str, role: str) -> str:
    # An empty literal would match between every character.
    if not text:
        raise ValueError(f"{role} text must not be empty")
    return text


def build_config(
    *,
    replace_split: str | None = None,
    add_split: list[str] | None = None,
    replace_delimiter: str | None = None,
    add_delimiter: list[str] | None = None,
) -> DelimiterConfig:
    """Build a config applying replacements before additions, per role."""
    config = DelimiterConfig()
    if replace_split is not None:
        config = config.replace_split(replace_split)
    for text in add_split or []:
        config = config.add_split(text)
    if replace_delimiter is not None:
        config = config.replace_delimiter(replace_delimiter)
    for text in add_delimiter or []:
        config = config.add_delimiter(text)
    return config
