from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Structured error log (JSON Lines).

- fixed record schema (see ErrorRecord)
- one file per process: ``<directory>/errors-YYYYMMDD-HHMMSS.log`` (UTC)
- records are buffered and appended on flush()
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "ROW_REJECTED",
    "IMPORT_ABORTED",
    "NOTHING_IMPORTABLE",
    "PHYSICAL_FILE_DELETE_FAILED",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"

ROW_REJECTED = "ROW_REJECTED"
IMPORT_ABORTED = "IMPORT_ABORTED"
NOTHING_IMPORTABLE = "NOTHING_IMPORTABLE"
PHYSICAL_FILE_DELETE_FAILED = "PHYSICAL_FILE_DELETE_FAILED"


class ErrorLogBuffer:
    """In-memory buffer for error records. flush() appends them as JSON Lines.

    The file path is fixed on first access. Not thread safe; one buffer per
    CLI invocation.
    """
    def __init__(self, directory: Path | str = "./logs") -> None:
        self._directory = Path(directory)
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._directory.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._directory / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def record(self, source: str, row: int, error_type: str, message: str) -> None:
        self.append(ErrorRecord.create(source=source, row=row, error_type=error_type, message=message))

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file.

        Returns:
            Path written to, or None when the buffer was empty (no file is created)
        """
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
