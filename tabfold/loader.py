"""
loader.py: input reader for tabfold

Supports: delimited text (any suffix) and .xlsx / .xlsm workbooks.

Public API:
    loaded = load_lines("path/to/file.tsv", config)
    lines  = loaded.lines

Text files are decoded line by line so a file mixing encodings still loads;
workbook rows keep their cells as fields (``rows``) and are joined with the
split joiner only for the console echo.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import chardet
import openpyxl

from tabfold.patterns import DelimiterConfig

WORKBOOK_FORMATS = {".xlsx", ".xlsm"}

LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


@dataclass
class LoadedInput:
    lines: list[str]
    detected_format: str
    rows: Optional[list[list[str]]] = None
    detected_encoding: Optional[str] = None
    encoding_confidence: Optional[float] = None
    sheet_name: Optional[str] = None
    warnings: list[str] = field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════════
# TEXT INPUT
# ══════════════════════════════════════════════════════════════════════════════

def detect_encoding(raw: bytes) -> tuple[str, float]:
    """Return ``(encoding, confidence)`` as reported by chardet."""
    result = chardet.detect(raw)
    detected = result.get("encoding") or "unknown"
    confidence = round(result.get("confidence") or 0.0, 2)
    return detected, confidence


def decode_line(raw_line: bytes, preferred_encoding: str) -> str:
    """Decode one line as UTF-8, then the detected encoding, then latin-1.

    latin-1 maps every byte, so decoding never fails. NUL bytes are dropped.
    """
    for enc in ("utf-8", preferred_encoding):
        if enc == "unknown":
            continue
        try:
            return raw_line.decode(enc).replace("\x00", "")
        except (LookupError, UnicodeDecodeError):
            pass
    return raw_line.decode("latin-1").replace("\x00", "")


def decode_text(raw: bytes, preferred_encoding: str) -> str:
    # Per line, so one stray byte does not force the whole file into latin-1.
    return "\n".join(decode_line(line, preferred_encoding) for line in raw.split(b"\n"))


def split_lines(text: str) -> list[str]:
    """Split on any line break; a trailing break does not add an empty line."""
    if not text:
        return []
    lines = LINE_BREAK_RE.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


def _load_text(path: Path) -> LoadedInput:
    raw = path.read_bytes()
    if raw.startswith(b"\xef\xbb\xbf"):
        raw = raw[3:]
    encoding, confidence = detect_encoding(raw)
    text = decode_text(raw, encoding)

    warnings: list[str] = []
    if encoding.upper().replace("-", "") not in ("UTF8", "ASCII", "UNKNOWN"):
        warnings.append(f"Input decoded as {encoding} (confidence {confidence})")

    return LoadedInput(
        lines=split_lines(text),
        detected_format="text",
        detected_encoding=encoding,
        encoding_confidence=confidence,
        warnings=warnings,
    )


# ══════════════════════════════════════════════════════════════════════════════
# WORKBOOK INPUT
# ══════════════════════════════════════════════════════════════════════════════

def _cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _load_workbook(path: Path, config: DelimiterConfig, sheet_name: Optional[str]) -> LoadedInput:
    try:
        workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except Exception as exc:
        raise ValueError(f"Could not read workbook: {exc}") from exc

    try:
        all_sheets = list(workbook.sheetnames)
        if sheet_name is None:
            chosen = all_sheets[0]
        elif sheet_name in all_sheets:
            chosen = sheet_name
        else:
            raise ValueError(f"Sheet '{sheet_name}' not found. Available: {all_sheets}")

        warnings: list[str] = []
        if sheet_name is None and len(all_sheets) > 1:
            others = [name for name in all_sheets if name != chosen]
            warnings.append(
                f"Multiple sheets found ({len(all_sheets)} total); used '{chosen}'. Ignored: {others}"
            )

        rows = [
            [_cell_text(value) for value in row]
            for row in workbook[chosen].iter_rows(values_only=True)
        ]
    finally:
        workbook.close()

    return LoadedInput(
        lines=[config.split_joiner.join(row) for row in rows],
        rows=rows,
        detected_format=path.suffix.lower().lstrip("."),
        sheet_name=chosen,
        warnings=warnings,
    )


# ══════════════════════════════════════════════════════════════════════════════
# PUBLIC API
# ══════════════════════════════════════════════════════════════════════════════

def load_lines(
    path: "str | Path",
    config: DelimiterConfig,
    sheet_name: Optional[str] = None,
) -> LoadedInput:
    """
    Read every input line into memory.

    Raises:
        FileNotFoundError  if the file does not exist.
        ValueError         if a workbook cannot be opened or the sheet is missing.
        OSError            for any other read failure.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    if path.suffix.lower() in WORKBOOK_FORMATS:
        return _load_workbook(path, config, sheet_name)
    return _load_text(path)
