from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from ..models.row_data import RawRow

"""Tokenize decoded text or a spreadsheet grid into header labels + RawRows.

Rows are produced lazily: ``ParsedTable.rows`` is a generator that can be
consumed exactly once. Row numbers are 1-based positions of the record in the
source, so with a header record the first data row is row 2.
"""

__all__ = [
    "ParsedTable",
    "clean_cell",
    "parse_text",
    "parse_grid",
]

logger = logging.getLogger(__name__)


@dataclass
class ParsedTable:
    headers: list[str]
    rows: Iterator[RawRow]


def clean_cell(value: Any) -> str | None:
    """Trim a cell, unwrap matching surrounding quotes, map empty to None."""
    if value is None:
        return None
    text = str(value).strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        text = text[1:-1].strip()
    return text or None


def _clean_header(label: Any) -> str:
    return clean_cell(label) or ""


def _rows_from_records(
    headers: Sequence[str],
    records: Iterable[tuple[int, Sequence[Any]]],
) -> Iterator[RawRow]:
    for row_number, record in records:
        cells: dict[str, str | None] = {}
        for idx, label in enumerate(headers):
            if not label:
                continue
            value = clean_cell(record[idx]) if idx < len(record) else None
            # repeated label: the first non-empty cell wins
            if cells.get(label) is None:
                cells[label] = value
        row = RawRow(row_number=row_number, cells=cells)
        if row.is_blank():
            continue
        yield row


def _split(
    records: Iterator[Sequence[Any]],
    headers: Sequence[str] | None,
) -> ParsedTable:
    numbered = enumerate(records, start=1)
    if headers is not None:
        labels = [_clean_header(h) for h in headers]
    else:
        first = next(numbered, None)
        labels = [_clean_header(h) for h in first[1]] if first is not None else []
    logger.info("Found headers: %s", ", ".join(h for h in labels if h))
    repeated = sorted({h for h in labels if h and labels.count(h) > 1})
    if repeated:
        logger.warning("Repeated header labels (first non-empty cell is used): %s", ", ".join(repeated))
    return ParsedTable(headers=labels, rows=_rows_from_records(labels, numbered))


def parse_text(text: str, delimiter: str, headers: Sequence[str] | None = None) -> ParsedTable:
    """Parse delimited text.

    Args:
        text: Decoded file content
        delimiter: Field separator (see parsing.delimiter.detect_delimiter)
        headers: Explicit header labels; when given, every record is data

    Returns:
        ParsedTable with the header labels and a single-pass row generator
    """
    reader = csv.reader(io.StringIO(text), delimiter=delimiter, skipinitialspace=False, strict=False)
    return _split(iter(reader), headers)


def parse_grid(grid: Sequence[Sequence[Any]], headers: Sequence[str] | None = None) -> ParsedTable:
    """Wrap an already tabular 2-D grid (spreadsheet values) the same way as parse_text."""
    return _split(iter(grid), headers)
