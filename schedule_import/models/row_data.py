from __future__ import annotations

from dataclasses import dataclass

"""RawRow model for the schedule import pipeline.

A RawRow is one record of the source table after tokenization: the raw header
labels mapped to cleaned cell strings. It only lives between the row parser and
the header resolver.
"""

__all__ = [
    "RawRow",
]


@dataclass(frozen=True)
class RawRow:
    """Logical representation of a single source record before header resolution.

    ``row_number`` is the 1-based record position in the source, so the header
    record of a delimited file is row 1 and the first data record is row 2.
    """
    row_number: int  # 1-based source record number
    cells: dict[str, str | None]  # raw header label -> cleaned cell (None when empty)

    def is_blank(self) -> bool:
        return all(v is None for v in self.cells.values())
