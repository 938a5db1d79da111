"""
trade_import.csv_parser - Low-level reading of the semicolon exports.

Responsibilities:
  • BOM removal (UTF-8 / UTF-8-SIG)
  • Title-line skipping ("Shipments", "Table 1", …)
  • Header location and re-joining of headers that wrap across lines
  • Quote-aware splitting of each line into cells
  • Mapping cells onto RawRow (by header label, else by position)
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import config
from trade_import.errors import CSVFormatError
from trade_import.field_map import (
    HEADER_LABELS, HEADER_MARKERS, TITLE_LINES, normalize_label,
)
from trade_import.normalizers import is_blank_value
from trade_import.records import RawRow


def split_line(line: str, delimiter: str = config.CSV_DELIMITER) -> list[str]:
    """
    Split one line on the delimiter.  Double quotes toggle an
    in-quotes state and are dropped; a delimiter inside quotes is
    kept literally.  Cells are trimmed.
    """
    values: list[str] = []
    current: list[str] = []
    in_quotes = False

    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == delimiter and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(ch)

    values.append("".join(current).strip())
    return values


def is_empty_line(line: str, values: Optional[list[str]] = None) -> bool:
    """Blank, only delimiters, or every cell blank / '-' / '$ -'."""
    stripped = line.strip()
    if not stripped or not stripped.strip(config.CSV_DELIMITER):
        return True
    if values is None:
        values = split_line(stripped)
    return all(is_blank_value(v) for v in values)


def resolve_header(headers: list[str]) -> Optional[dict[int, str]]:
    """
    Map header cells to RawRow fields by label.

    Returns {column index: field} when enough labels are recognised and
    none is claimed twice, else None (caller falls back to position).
    """
    mapping: dict[int, str] = {}
    seen: set[str] = set()
    for idx, label in enumerate(headers):
        name = HEADER_LABELS.get(normalize_label(label))
        if name is None:
            continue
        if name in seen:
            return None
        seen.add(name)
        mapping[idx] = name
    if len(mapping) < config.HEADER_MIN_LABELS:
        return None
    return mapping


def parse_csv_text(text: str, layout: tuple[str, ...]) -> list[RawRow]:
    """Parse a whole export into RawRows (header and blanks removed)."""
    text = _decode(text)
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")

    start = 0
    for i in range(min(config.TITLE_SCAN_LINES, len(lines))):
        if TITLE_LINES.match(lines[i].strip()):
            start = i + 1

    header_start = None
    for i in range(start, len(lines)):
        if any(marker in lines[i] for marker in HEADER_MARKERS):
            header_start = i
            break
    if header_start is None:
        raise CSVFormatError("header row not found (expected a 'رقم' / 'المورد' column)")

    # Headers may wrap: keep joining physical lines until enough delimiters
    header_parts: list[str] = []
    header_end = None
    for i in range(header_start, len(lines)):
        header_parts.append(lines[i])
        if "\n".join(header_parts).count(config.CSV_DELIMITER) >= config.HEADER_MIN_SEMICOLONS:
            header_end = i
            break
    if header_end is None:
        raise CSVFormatError(
            f"header starting on line {header_start + 1} has fewer than "
            f"{config.HEADER_MIN_SEMICOLONS + 1} columns"
        )

    by_label = resolve_header(split_line("\n".join(header_parts)))

    rows: list[RawRow] = []
    for i in range(header_end + 1, len(lines)):
        line = lines[i].strip()
        if not line:
            continue
        values = split_line(line)
        if is_empty_line(line, values):
            continue
        if by_label is not None:
            data = {name: values[idx] for idx, name in by_label.items() if idx < len(values)}
            rows.append(RawRow.from_mapping(data, line_no=i + 1))
        else:
            rows.append(RawRow.from_values(values, layout, line_no=i + 1))
    return rows


def parse_csv_file(path: str | Path, layout: tuple[str, ...]) -> list[RawRow]:
    """Read a file from disk and parse it.  Raises CSVFormatError."""
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise CSVFormatError(f"cannot read {path}: {exc.strerror or exc}") from exc
    try:
        text = _decode(raw, strict=True)
    except UnicodeDecodeError as exc:
        raise CSVFormatError(f"{path} is not UTF-8 text") from exc
    return parse_csv_text(text, layout)


def _decode(raw: str | bytes, strict: bool = False) -> str:
    if isinstance(raw, bytes):
        # Strip UTF-8 BOM
        if raw.startswith(b"\xef\xbb\xbf"):
            raw = raw[3:]
        return raw.decode("utf-8", errors="strict" if strict else "replace")
    if raw.startswith("\ufeff"):
        return raw[1:]
    return raw
