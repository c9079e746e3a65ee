"""Minimal CSV codec that remembers which fields were quoted in its input."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

DELIM = ","
_NEEDS_QUOTES = (DELIM, '"', " ", "\n")


@dataclass
class CSVItem:
    value: str
    size: Optional[int] = None
    quoted: bool = False


def parse(src: str) -> List[List[CSVItem]]:
    """Parse *src* into rows of items.

    ``\\n``, ``\\r`` and ``\\r\\n`` all end a row. An empty input is one row
    holding one empty field.
    """
    if not src:
        return [[CSVItem("")]]

    rows: List[List[CSVItem]] = []
    row: List[CSVItem] = []
    value: List[str] = []
    quoted = False
    i = 0
    n = len(src)
    while i < n:
        ch = src[i]
        if ch == DELIM:
            row.append(CSVItem("".join(value), quoted=quoted))
            value, quoted = [], False
        elif ch in "\r\n":
            row.append(CSVItem("".join(value), quoted=quoted))
            rows.append(row)
            row, value, quoted = [], [], False
            if ch == "\r" and i + 1 < n and src[i + 1] == "\n":
                i += 1
        elif ch == '"' and not value and not quoted:
            quoted = True
            i += 1
            while i < n:
                if src[i] == '"':
                    if i + 1 < n and src[i + 1] == '"':
                        value.append('"')
                        i += 2
                        continue
                    break
                value.append(src[i])
                i += 1
        else:
            value.append(ch)
        i += 1
    row.append(CSVItem("".join(value), quoted=quoted))
    rows.append(row)
    return rows


def _pad(value: str, size: Optional[int]) -> str:
    return value.rjust(size) if size else value


def stringify(rows: Sequence[Sequence[CSVItem]]) -> str:
    """Render rows; values needing it are quoted, originally quoted values stay quoted."""
    lines = []
    for row in rows:
        cells = []
        for item in row:
            if any(token in item.value for token in _NEEDS_QUOTES):
                cells.append('"' + _pad(item.value.replace('"', '""'), item.size) + '"')
            elif item.quoted:
                cells.append('"' + _pad(item.value, item.size) + '"')
            else:
                cells.append(_pad(item.value, item.size))
        lines.append(DELIM.join(cells))
    return "\n".join(lines)


def items(values: Sequence[str]) -> List[CSVItem]:
    return [CSVItem(v) for v in values]
