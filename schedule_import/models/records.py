from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

"""Persisted records: subject catalog entries, schedule items, imported files.

These mirror the rows of the ``subjects``, ``schedule_items`` and
``imported_files`` tables (see ``schedule_import/db/schema.sql``).
"""

__all__ = [
    "ImportType",
    "ImportStatus",
    "SubjectCatalogEntry",
    "NewSubject",
    "ScheduleItem",
    "ImportedFile",
]


class ImportType(Enum):
    """Source kind of an import batch."""
    CSV = "csv"
    SPREADSHEET = "spreadsheet"


class ImportStatus(Enum):
    """Outcome recorded on an ImportedFile.

    - SUCCESS: at least one schedule item was created
    - ERROR: the batch was recorded but produced no items
    """
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class SubjectCatalogEntry:
    """A subject known to the catalog. Names are unique case-insensitively."""
    id: int
    name: str
    short_name: str | None = None
    color: str | None = None
    teacher_id: int | None = None
    description: str | None = None


@dataclass(frozen=True)
class NewSubject:
    """Creation payload for a catalog entry discovered during an import."""
    name: str
    short_name: str
    description: str
    teacher_id: int
    color: str


@dataclass(frozen=True)
class ScheduleItem:
    """One weekly class slot. ``imported_file_id`` links it to its provenance record."""
    subject_id: int
    day_of_week: int
    start_time: str
    end_time: str
    room_number: str | None = None
    teacher_name: str | None = None
    imported_file_id: int | None = None
    id: int | None = None


@dataclass(frozen=True)
class ImportedFile:
    """Provenance record for one import batch.

    Owns every ScheduleItem whose ``imported_file_id`` points at it; deleting
    the record deletes those items and, best effort, the stored upload.
    """
    original_name: str
    stored_name: str
    file_size: int
    mime_type: str
    import_type: ImportType
    status: ImportStatus
    items_count: int
    success_count: int
    error_count: int
    uploaded_by: int
    file_path: str | None = None
    id: int | None = None
    created_at: datetime | None = None

    def with_identity(self, id: int, created_at: datetime | None) -> ImportedFile:
        return replace(self, id=id, created_at=created_at)
