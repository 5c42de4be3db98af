from __future__ import annotations

import re
from collections.abc import Mapping

from ..models.canonical_row import CanonicalRow, FieldError, NormalizedRow

"""Field normalization: weekday tokens and time tokens.

Weekday index convention: Sunday = 0 ... Saturday = 6.
Times are normalized to zero-padded ``HH:MM``.
"""

__all__ = [
    "DAY_NAMES",
    "parse_day",
    "parse_time",
    "normalize_row",
]

DAY_NAMES: dict[str, int] = {
    # Russian, full and two-letter
    "воскресенье": 0, "вс": 0,
    "понедельник": 1, "пн": 1,
    "вторник": 2, "вт": 2,
    "среда": 3, "ср": 3,
    "четверг": 4, "чт": 4,
    "пятница": 5, "пт": 5,
    "суббота": 6, "сб": 6,
    # English, full and three-letter
    "sunday": 0, "sun": 0,
    "monday": 1, "mon": 1,
    "tuesday": 2, "tue": 2,
    "wednesday": 3, "wed": 3,
    "thursday": 4, "thu": 4,
    "friday": 5, "fri": 5,
    "saturday": 6, "sat": 6,
}

_INTEGER = re.compile(r"^-?\d+$")
_TIME_COLON = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")
_TIME_DOT = re.compile(r"^(\d{1,2})\.(\d{2})$")
_TIME_DIGITS = re.compile(r"^(\d{1,2})(\d{2})$")


def parse_day(token: str) -> int | None:
    """Return the weekday index for ``token``, or None when unrecognized.

    Integer strings are returned as-is (even out of range); range checks
    belong to the validator.
    """
    value = token.strip()
    named = DAY_NAMES.get(value.casefold())
    if named is not None:
        return named
    if _INTEGER.match(value):
        return int(value)
    return None


def parse_time(token: str) -> str | None:
    """Normalize ``HH:MM``, ``HH.MM`` or ``HHMM`` to ``HH:MM``; None if malformed."""
    value = token.strip()
    for pattern in (_TIME_COLON, _TIME_DOT, _TIME_DIGITS):
        m = pattern.match(value)
        if m:
            hour, minute = int(m.group(1)), int(m.group(2))
            if hour > 23 or minute > 59:
                return None
            return f"{hour:02d}:{minute:02d}"
    return None


def normalize_row(row_number: int, fields: Mapping[str, str | None]) -> NormalizedRow:
    """Turn extracted canonical fields into a CanonicalRow.

    Absent values stay None so the validator can report them; a present value
    that cannot be interpreted yields a FieldError naming that value.
    """
    day: int | None = None
    raw_day = fields.get("day")
    if raw_day is not None:
        day = parse_day(raw_day)
        if day is None:
            return FieldError(row_number, "day", f"Invalid day of week format (Неверный формат дня недели): {raw_day}")

    times: dict[str, str | None] = {}
    for key, label in (("start_time", "start time (время начала)"), ("end_time", "end time (время окончания)")):
        raw = fields.get(key)
        if raw is None:
            times[key] = None
            continue
        parsed = parse_time(raw)
        if parsed is None:
            return FieldError(row_number, key, f"Invalid {label} format: {raw}. Expected HH:MM")
        times[key] = parsed

    subject_id: int | None = None
    raw_subject_id = fields.get("subject_id")
    if raw_subject_id is not None:
        if not _INTEGER.match(raw_subject_id.strip()):
            return FieldError(row_number, "subject_id", f"Invalid subjectId: {raw_subject_id}")
        subject_id = int(raw_subject_id)

    return CanonicalRow(
        source_row_number=row_number,
        subject_name=fields.get("subject"),
        subject_id=subject_id,
        day_of_week=day,
        start_time=times["start_time"],
        end_time=times["end_time"],
        room_number=fields.get("room"),
        teacher_name=fields.get("teacher"),
    )
