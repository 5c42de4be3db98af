from __future__ import annotations

from collections.abc import Callable

from ..models.canonical_row import CanonicalRow
from ..models.import_result import ScheduleImportError

__all__ = [
    "SubjectExists",
    "RowValidator",
]

SubjectExists = Callable[[int], bool]


class RowValidator:
    """Enforce per-row presence and range invariants.

    The subject-existence check is injected so the validator never touches
    storage directly. A failing row yields one ScheduleImportError; nothing is
    raised, and later rows are unaffected.
    """

    def __init__(self, subject_exists: SubjectExists) -> None:
        self._subject_exists = subject_exists

    def validate(self, row: CanonicalRow) -> ScheduleImportError | None:
        message = self._first_problem(row)
        if message is None:
            return None
        return ScheduleImportError(row=row.source_row_number, error=message)

    def _first_problem(self, row: CanonicalRow) -> str | None:
        if not row.subject_name and row.subject_id is None:
            return "Missing required field: Subject (Отсутствует обязательное поле: Предмет)"
        if row.day_of_week is None:
            return "Missing required field: Day (Отсутствует обязательное поле: День)"
        if not row.start_time:
            return "Missing required field: Start Time (Отсутствует обязательное поле: Время начала)"
        if not row.end_time:
            return "Missing required field: End Time (Отсутствует обязательное поле: Время конца)"
        if not 0 <= row.day_of_week <= 6:
            return (
                f"Invalid day of week: {row.day_of_week}. "
                "Must be between 0 (Sunday) and 6 (Saturday)"
            )
        if row.subject_id is not None and not self._subject_exists(row.subject_id):
            return f"Subject with ID {row.subject_id} does not exist (Предмет не существует)"
        return None
