"""Tokenizer for pasted or uploaded client CSV text.

The scanner is deliberately small: one pass per line, an in-quotes flag, and
commas inside quotes kept literally. Multi-line quoted fields are not
supported; every non-blank line is one record.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from clientingest.domain.errors import FormatError

if TYPE_CHECKING:
    from clientingest.domain.model import RawRecord

log = getLogger(__name__)

BYTE_ORDER_MARK: Final[str] = "\ufeff"

RECOGNIZED_NAME_HEADERS: Final[frozenset[str]] = frozenset(
    {"name", "client_name", "company id", "company name", "company_id", "company_name"}
)

_LINE_BREAK = re.compile(r"\r?\n")
_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class CsvTable:
    headers: tuple[str, ...]
    rows: tuple[RawRecord, ...]


def normalize_header(header: str) -> str:
    """Lower-case ``header`` and replace whitespace runs with underscores."""

    return _WHITESPACE_RUN.sub("_", header.lower())


def split_line(line: str) -> list[str]:
    """Split one CSV line into trimmed, unquoted fields."""

    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    quoted = False
    index = 0
    length = len(line)

    while index < length:
        char = line[index]
        if char == "\\" and index + 1 < length and line[index + 1] == '"':
            current.append('"')
            index += 2
            continue
        if char == '"':
            if in_quotes and index + 1 < length and line[index + 1] == '"':
                current.append('"')
                index += 2
                continue
            in_quotes = not in_quotes
            quoted = True
        elif char == "," and not in_quotes:
            fields.append(_emit(current, quoted=quoted))
            current = []
            quoted = False
        else:
            current.append(char)
        index += 1

    fields.append(_emit(current, quoted=quoted))
    return fields


def _emit(chars: list[str], *, quoted: bool) -> str:
    value = "".join(chars).strip()
    if not quoted and len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1]
    return value


def tokenize(text: str) -> CsvTable:
    """Parse CSV ``text`` into headers and rows.

    Each row maps both the verbatim header and its normalized form to the
    field value, so alias lookups work regardless of header casing.
    """

    lines = [line for line in _LINE_BREAK.split(text) if line.strip()]
    if not lines:
        raise FormatError("CSV is empty")

    headers = split_line(lines[0])
    if headers and headers[0].startswith(BYTE_ORDER_MARK):
        log.warning("Byte-order mark found in CSV header, removing it")
        headers[0] = headers[0][len(BYTE_ORDER_MARK) :].strip()

    if not any(header.lower() in RECOGNIZED_NAME_HEADERS for header in headers):
        raise FormatError('CSV must have a "Name", "Company ID" or "Company Name" column')

    rows: list[RawRecord] = []
    for line_number, line in enumerate(lines[1:], start=2):
        values = split_line(line)
        if len(values) != len(headers):
            raise FormatError(
                f"Line {line_number} has {len(values)} values, "
                f"but header has {len(headers)} columns"
            )
        row: dict[str, object] = {}
        for header, value in zip(headers, values, strict=True):
            row[header] = value
            normalized = normalize_header(header)
            if normalized != header:
                row[normalized] = value
        rows.append(row)

    log.debug("Tokenized CSV: %d columns, %d rows", len(headers), len(rows))
    return CsvTable(headers=tuple(headers), rows=tuple(rows))
