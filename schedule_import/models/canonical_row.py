from __future__ import annotations

from dataclasses import dataclass

"""Canonical row and field error values produced by field normalization.

Normalization never raises for data-quality problems; it returns either a
CanonicalRow or a FieldError for each source row.
"""

__all__ = [
    "CanonicalRow",
    "FieldError",
    "NormalizedRow",
]


@dataclass(frozen=True)
class CanonicalRow:
    """A schedule-import candidate after header resolution and normalization.

    All semantic fields are optional here; presence and range invariants are
    enforced afterwards by the row validator.
    """
    source_row_number: int
    subject_name: str | None = None
    subject_id: int | None = None  # spreadsheet sources may pre-resolve the subject
    day_of_week: int | None = None  # 0 = Sunday ... 6 = Saturday once validated
    start_time: str | None = None  # HH:MM
    end_time: str | None = None  # HH:MM
    room_number: str | None = None
    teacher_name: str | None = None


@dataclass(frozen=True)
class FieldError:
    """Failure arm of normalization: one field could not be interpreted."""
    row_number: int
    field: str
    message: str


NormalizedRow = CanonicalRow | FieldError
