from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any, Protocol

import psycopg2

from ..models.records import (
    ImportedFile,
    ImportStatus,
    ImportType,
    NewSubject,
    ScheduleItem,
    SubjectCatalogEntry,
)
from .batch_insert import batch_insert
from .errors import StorageError

"""Storage contract consumed by the import pipeline, and its PostgreSQL adapter.

The pipeline only talks to ``ScheduleStore``; ``PgScheduleStore`` implements it
over a psycopg2 cursor. Transaction boundaries are explicit
(BEGIN/COMMIT/ROLLBACK), so the connection is expected to run in autocommit
mode.
"""

__all__ = [
    "StorageError",
    "ScheduleStore",
    "PgScheduleStore",
]

logger = logging.getLogger(__name__)

_SCHEDULE_ITEM_COLUMNS = (
    "subject_id",
    "day_of_week",
    "start_time",
    "end_time",
    "room_number",
    "teacher_name",
    "imported_file_id",
)

_IMPORTED_FILE_COLUMNS = (
    "id",
    "original_name",
    "stored_name",
    "file_path",
    "file_size",
    "mime_type",
    "import_type",
    "status",
    "items_count",
    "success_count",
    "error_count",
    "uploaded_by",
    "created_at",
)


class ScheduleStore(Protocol):
    """Persistence operations the import pipeline depends on."""

    def transaction(self) -> Any: ...

    def subject_exists(self, subject_id: int) -> bool: ...

    def list_subjects(self) -> list[SubjectCatalogEntry]: ...

    def create_subject(self, subject: NewSubject) -> SubjectCatalogEntry: ...

    def first_user_id_with_role(self, role: str) -> int | None: ...

    def create_schedule_items(self, items: Sequence[ScheduleItem]) -> list[int]: ...

    def create_imported_file(self, record: ImportedFile) -> ImportedFile: ...

    def link_schedule_items(self, item_ids: Sequence[int], imported_file_id: int) -> int: ...

    def get_imported_file(self, imported_file_id: int) -> ImportedFile | None: ...

    def list_imported_files(
        self, uploaded_by: int | None = None, import_type: ImportType | None = None
    ) -> list[ImportedFile]: ...

    def count_schedule_items(self, imported_file_id: int) -> int: ...

    def delete_schedule_items(self, imported_file_id: int) -> int: ...

    def delete_imported_file(self, imported_file_id: int) -> bool: ...


def _row_to_imported_file(row: Sequence[Any]) -> ImportedFile:
    values = dict(zip(_IMPORTED_FILE_COLUMNS, row, strict=True))
    return ImportedFile(
        id=values["id"],
        original_name=values["original_name"],
        stored_name=values["stored_name"],
        file_path=values["file_path"],
        file_size=values["file_size"],
        mime_type=values["mime_type"],
        import_type=ImportType(values["import_type"]),
        status=ImportStatus(values["status"]),
        items_count=values["items_count"],
        success_count=values["success_count"],
        error_count=values["error_count"],
        uploaded_by=values["uploaded_by"],
        created_at=values["created_at"],
    )


class PgScheduleStore:
    """ScheduleStore over a psycopg2 cursor."""

    def __init__(self, cursor: Any) -> None:
        self.cursor = cursor
        self._in_transaction = False

    def _execute(self, sql: str, params: Sequence[Any] | None = None) -> None:
        try:
            self.cursor.execute(sql, params)
        except psycopg2.Error as e:
            raise StorageError(str(e)) from e

    @contextmanager
    def transaction(self) -> Iterator[PgScheduleStore]:
        """BEGIN ... COMMIT, with ROLLBACK on any exception (re-raised)."""
        if self._in_transaction:
            yield self
            return
        self._execute("BEGIN")
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            try:
                self.cursor.execute("ROLLBACK")
            except psycopg2.Error:
                logger.exception("rollback failed")
            raise
        else:
            self._execute("COMMIT")
        finally:
            self._in_transaction = False

    def subject_exists(self, subject_id: int) -> bool:
        self._execute("SELECT 1 FROM subjects WHERE id = %s", (subject_id,))
        return self.cursor.fetchone() is not None

    def list_subjects(self) -> list[SubjectCatalogEntry]:
        self._execute(
            "SELECT id, name, short_name, color, teacher_id, description FROM subjects ORDER BY id"
        )
        return [
            SubjectCatalogEntry(
                id=r[0], name=r[1], short_name=r[2], color=r[3], teacher_id=r[4], description=r[5]
            )
            for r in self.cursor.fetchall()
        ]

    def create_subject(self, subject: NewSubject) -> SubjectCatalogEntry:
        self._execute(
            "INSERT INTO subjects (name, short_name, description, teacher_id, color) "
            "VALUES (%s, %s, %s, %s, %s) RETURNING id",
            (subject.name, subject.short_name, subject.description, subject.teacher_id, subject.color),
        )
        (new_id,) = self.cursor.fetchone()
        return SubjectCatalogEntry(
            id=new_id,
            name=subject.name,
            short_name=subject.short_name,
            color=subject.color,
            teacher_id=subject.teacher_id,
            description=subject.description,
        )

    def first_user_id_with_role(self, role: str) -> int | None:
        self._execute("SELECT id FROM users WHERE role = %s ORDER BY id LIMIT 1", (role,))
        row = self.cursor.fetchone()
        return row[0] if row else None

    def create_schedule_items(self, items: Sequence[ScheduleItem]) -> list[int]:
        rows = [
            (
                it.subject_id,
                it.day_of_week,
                it.start_time,
                it.end_time,
                it.room_number,
                it.teacher_name,
                it.imported_file_id,
            )
            for it in items
        ]
        result = batch_insert(
            self.cursor,
            table="schedule_items",
            columns=_SCHEDULE_ITEM_COLUMNS,
            rows=rows,
            returning="id",
        )
        return [r[0] for r in result.returned_values or []]

    def create_imported_file(self, record: ImportedFile) -> ImportedFile:
        self._execute(
            "INSERT INTO imported_files (original_name, stored_name, file_path, file_size, mime_type, "
            "import_type, status, items_count, success_count, error_count, uploaded_by) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s) RETURNING id, created_at",
            (
                record.original_name,
                record.stored_name,
                record.file_path,
                record.file_size,
                record.mime_type,
                record.import_type.value,
                record.status.value,
                record.items_count,
                record.success_count,
                record.error_count,
                record.uploaded_by,
            ),
        )
        new_id, created_at = self.cursor.fetchone()
        return record.with_identity(new_id, created_at)

    def link_schedule_items(self, item_ids: Sequence[int], imported_file_id: int) -> int:
        if not item_ids:
            return 0
        self._execute(
            "UPDATE schedule_items SET imported_file_id = %s WHERE id = ANY(%s)",
            (imported_file_id, list(item_ids)),
        )
        return self.cursor.rowcount

    def get_imported_file(self, imported_file_id: int) -> ImportedFile | None:
        cols = ", ".join(_IMPORTED_FILE_COLUMNS)
        self._execute(f"SELECT {cols} FROM imported_files WHERE id = %s", (imported_file_id,))
        row = self.cursor.fetchone()
        return _row_to_imported_file(row) if row else None

    def list_imported_files(
        self, uploaded_by: int | None = None, import_type: ImportType | None = None
    ) -> list[ImportedFile]:
        cols = ", ".join(_IMPORTED_FILE_COLUMNS)
        clauses: list[str] = []
        params: list[Any] = []
        if uploaded_by is not None:
            clauses.append("uploaded_by = %s")
            params.append(uploaded_by)
        if import_type is not None:
            clauses.append("import_type = %s")
            params.append(import_type.value)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        self._execute(f"SELECT {cols} FROM imported_files{where} ORDER BY created_at DESC, id DESC", params)
        return [_row_to_imported_file(r) for r in self.cursor.fetchall()]

    def count_schedule_items(self, imported_file_id: int) -> int:
        self._execute("SELECT count(*) FROM schedule_items WHERE imported_file_id = %s", (imported_file_id,))
        return int(self.cursor.fetchone()[0])

    def delete_schedule_items(self, imported_file_id: int) -> int:
        self._execute("DELETE FROM schedule_items WHERE imported_file_id = %s", (imported_file_id,))
        return self.cursor.rowcount

    def delete_imported_file(self, imported_file_id: int) -> bool:
        self._execute("DELETE FROM imported_files WHERE id = %s", (imported_file_id,))
        return self.cursor.rowcount > 0
