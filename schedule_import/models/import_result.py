from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .records import ImportedFile

"""Import result models.

ImportResult is the summary handed back to callers; ScheduleImportError is the
per-row failure entry it carries. ImportOutcome bundles the result with what the
pipeline detected along the way.
"""

__all__ = [
    "ImportState",
    "ScheduleImportError",
    "ImportResult",
    "ImportOutcome",
    "DeletionReport",
]


class ImportState(Enum):
    """Lifecycle of a single import call.

    IDLE → DECODING → HEADER_RESOLVED → ROW_PROCESSING → PERSISTING →
    PROVENANCE_RECORDED → DONE. Row-level failures never leave ROW_PROCESSING;
    only a pipeline-level failure moves to FAILED.
    """
    IDLE = "idle"
    DECODING = "decoding"
    HEADER_RESOLVED = "header_resolved"
    ROW_PROCESSING = "row_processing"
    PERSISTING = "persisting"
    PROVENANCE_RECORDED = "provenance_recorded"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ScheduleImportError:
    """One rejected source row."""
    row: int  # 1-based source row number
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "error": self.error}


@dataclass(frozen=True)
class ImportResult:
    total: int
    success: int
    failed: int
    errors: list[ScheduleImportError] = field(default_factory=list)

    @staticmethod
    def build(total: int, success: int, errors: list[ScheduleImportError]) -> ImportResult:
        return ImportResult(total=total, success=success, failed=len(errors), errors=list(errors))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "success": self.success,
            "failed": self.failed,
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass(frozen=True)
class ImportOutcome:
    """Everything one successful import call produced."""
    result: ImportResult
    imported_file: ImportedFile
    encoding: str | None  # None for spreadsheet sources
    delimiter: str | None  # None for spreadsheet sources
    header_mapping: dict[str, str | None]  # canonical field -> source label


@dataclass(frozen=True)
class DeletionReport:
    imported_file_id: int
    original_name: str
    items_deleted: int
    physical_file_deleted: bool
