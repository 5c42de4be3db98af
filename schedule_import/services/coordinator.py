from __future__ import annotations

import csv
import logging
import mimetypes
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..db.errors import StorageError
from ..db.store import ScheduleStore
from ..logging.error_log import IMPORT_ABORTED, NOTHING_IMPORTABLE, ROW_REJECTED, ErrorLogBuffer
from ..models.canonical_row import FieldError
from ..models.config_models import ImportSettings
from ..models.import_result import ImportOutcome, ImportResult, ImportState, ScheduleImportError
from ..models.records import ImportedFile, ImportStatus, ImportType, ScheduleItem
from ..models.row_data import RawRow
from ..parsing.delimiter import detect_delimiter
from ..parsing.encoding import detect_and_decode
from ..parsing.headers import HeaderResolver, ResolvedHeaders
from ..parsing.normalize import normalize_row
from ..parsing.rows import ParsedTable, parse_grid, parse_text
from .progress import RowProgress
from .provenance import ProvenanceTracker
from .subject_resolver import SubjectResolver
from .validator import RowValidator

"""Import coordination: one source in, one ImportedFile out.

Pipeline per call:
1. decode (delimited files only) and detect the delimiter
2. tokenize into header labels + rows, resolve headers once
3. per row: normalize, validate, resolve the subject, collect
4. persist the collected schedule items in one batch
5. record provenance and back-link the items

Steps 3-5 run inside a single storage transaction. A row that fails never
stops the import; a storage fault rolls everything back, catalog entries
created during this import included.
"""

__all__ = [
    "FileSource",
    "SpreadsheetSource",
    "ImportOptions",
    "ImportFailedError",
    "NothingImportableError",
    "ImportAbortedError",
    "ImportCoordinator",
]

logger = logging.getLogger(__name__)

DEFAULT_CSV_MIME = "text/csv"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(frozen=True)
class FileSource:
    """An uploaded delimited file.

    ``file_path`` points at the stored copy of the upload (if any); it is kept
    on the ImportedFile so deleting the import can remove it.
    """
    content: bytes
    original_name: str
    mime_type: str = DEFAULT_CSV_MIME
    file_path: str | None = None

    @classmethod
    def from_path(cls, path: Path, original_name: str | None = None, mime_type: str | None = None) -> FileSource:
        with path.open("rb") as f:
            content = f.read()
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            content=content,
            original_name=original_name or path.name,
            mime_type=mime_type or guessed or DEFAULT_CSV_MIME,
            file_path=str(path),
        )

    @property
    def stored_name(self) -> str:
        return Path(self.file_path).name if self.file_path else self.original_name


@dataclass(frozen=True)
class SpreadsheetSource:
    """An already tabular 2-D grid, e.g. one worksheet's values."""
    grid: Sequence[Sequence[Any]]
    name: str
    mime_type: str = XLSX_MIME
    size: int = 0  # byte size of the workbook, when known


@dataclass(frozen=True)
class ImportOptions:
    uploaded_by: int
    headers: tuple[str, ...] | None = None  # explicit labels; every record is then data


class ImportFailedError(Exception):
    """Pipeline-level failure. ``detail`` carries the underlying cause text."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message if detail is None else f"{message}: {detail}")
        self.message = message
        self.detail = detail


class NothingImportableError(ImportFailedError):
    """No row survived validation; nothing was persisted."""

    def __init__(self, result: ImportResult) -> None:
        super().__init__(
            "No valid schedule items found in file (В файле не найдено корректных элементов расписания)",
        )
        self.result = result


class ImportAbortedError(ImportFailedError):
    """A storage or parse fault aborted the import; the transaction was rolled back."""


@dataclass
class _Collected:
    total: int
    items: list[ScheduleItem]
    errors: list[ScheduleImportError]


class ImportCoordinator:
    """Run the import pipeline against a ScheduleStore.

    One coordinator may serve many calls; ``state`` reflects the most recent one.
    """

    def __init__(
        self,
        store: ScheduleStore,
        settings: ImportSettings | None = None,
        error_log: ErrorLogBuffer | None = None,
        tracker: ProvenanceTracker | None = None,
        show_progress: bool | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or ImportSettings()
        self.error_log = error_log
        self.tracker = tracker or ProvenanceTracker(store, error_log=error_log)
        self.show_progress = show_progress
        self._state = ImportState.IDLE

    @property
    def state(self) -> ImportState:
        return self._state

    def _transition(self, state: ImportState) -> None:
        logger.debug("import state %s -> %s", self._state.value, state.value)
        self._state = state

    def _log_error(self, source: str, row: int, error_type: str, message: str) -> None:
        if self.error_log is not None:
            self.error_log.record(source, row, error_type, message)

    def import_schedule_items(self, source: FileSource | SpreadsheetSource, options: ImportOptions) -> ImportOutcome:
        """Import one source and return the result with its provenance record.

        Raises:
            NothingImportableError: every row was rejected (``.result`` has the details)
            ImportAbortedError: storage or tokenizer failure; nothing was persisted
        """
        self._state = ImportState.IDLE
        self._transition(ImportState.DECODING)

        encoding: str | None = None
        delimiter: str | None = None
        if isinstance(source, FileSource):
            source_name = source.original_name
            logger.info("Processing file: %s (%d bytes)", source.original_name, len(source.content))
            decoded = detect_and_decode(
                source.content,
                fallback=self.settings.fallback_encoding,
                min_confidence=self.settings.min_encoding_confidence,
            )
            encoding = decoded.encoding
            delimiter = detect_delimiter(decoded.text)
            table = parse_text(decoded.text, delimiter, headers=options.headers)
        else:
            source_name = source.name
            logger.info("Processing spreadsheet: %s (%d rows)", source.name, len(source.grid))
            table = parse_grid(source.grid, headers=options.headers)

        resolved = HeaderResolver(self.settings.headers).resolve(table.headers)
        missing = resolved.unresolved()
        if missing:
            logger.info("Columns not found in headers: %s", ", ".join(missing))
        self._transition(ImportState.HEADER_RESOLVED)

        try:
            with self.store.transaction():
                collected = self._collect(source_name, table, resolved)
                result = ImportResult.build(
                    total=collected.total,
                    success=len(collected.items),
                    errors=collected.errors,
                )
                if not collected.items:
                    raise NothingImportableError(result)

                self._transition(ImportState.PERSISTING)
                item_ids = self.store.create_schedule_items(collected.items)
                logger.info("Created %d schedule items", len(item_ids))

                imported = self.tracker.record_import(
                    self._build_record(source, options, result),
                    item_ids,
                )
                self._transition(ImportState.PROVENANCE_RECORDED)
        except NothingImportableError as e:
            self._transition(ImportState.FAILED)
            logger.warning("%s: %s", source_name, e.message)
            self._log_error(source_name, -1, NOTHING_IMPORTABLE, e.message)
            raise
        except (StorageError, csv.Error) as e:
            self._transition(ImportState.FAILED)
            logger.error("Import of %s aborted: %s", source_name, e)
            self._log_error(source_name, -1, IMPORT_ABORTED, str(e))
            raise ImportAbortedError("Failed to import schedule items", detail=str(e)) from e

        self._transition(ImportState.DONE)
        logger.info(
            "Import completed: %d successful, %d failed (of %d)",
            result.success,
            result.failed,
            result.total,
        )
        return ImportOutcome(
            result=result,
            imported_file=imported,
            encoding=encoding,
            delimiter=delimiter,
            header_mapping=dict(resolved.mapping),
        )

    def _collect(self, source_name: str, table: ParsedTable, resolved: ResolvedHeaders) -> _Collected:
        self._transition(ImportState.ROW_PROCESSING)
        validator = RowValidator(self.store.subject_exists)
        subjects = SubjectResolver(self.store, self.settings.subjects)
        collected = _Collected(total=0, items=[], errors=[])

        with RowProgress(enabled=self.show_progress) as progress:
            for raw in table.rows:
                collected.total += 1
                item, error = self._process_row(raw, resolved, validator, subjects)
                if error is not None:
                    logger.debug("Row %d rejected: %s", error.row, error.error)
                    collected.errors.append(error)
                    self._log_error(source_name, error.row, ROW_REJECTED, error.error)
                else:
                    collected.items.append(item)
                progress.tick(accepted=error is None)

        if subjects.created:
            logger.info("Created %d new subjects", len(subjects.created))
        return collected

    def _process_row(
        self,
        raw: RawRow,
        resolved: ResolvedHeaders,
        validator: RowValidator,
        subjects: SubjectResolver,
    ) -> tuple[ScheduleItem | None, ScheduleImportError | None]:
        normalized = normalize_row(raw.row_number, resolved.extract(raw))
        if isinstance(normalized, FieldError):
            return None, ScheduleImportError(row=normalized.row_number, error=normalized.message)

        error = validator.validate(normalized)
        if error is not None:
            return None, error

        if normalized.subject_id is not None:
            subject_id = normalized.subject_id
        else:
            subject_id = subjects.resolve(normalized.subject_name or "")

        # validated above: day and both times are present
        return (
            ScheduleItem(
                subject_id=subject_id,
                day_of_week=normalized.day_of_week,  # type: ignore[arg-type]
                start_time=normalized.start_time,  # type: ignore[arg-type]
                end_time=normalized.end_time,  # type: ignore[arg-type]
                room_number=normalized.room_number,
                teacher_name=normalized.teacher_name,
            ),
            None,
        )

    def _build_record(
        self,
        source: FileSource | SpreadsheetSource,
        options: ImportOptions,
        result: ImportResult,
    ) -> ImportedFile:
        status = ImportStatus.SUCCESS if result.success > 0 else ImportStatus.ERROR
        if isinstance(source, FileSource):
            return ImportedFile(
                original_name=source.original_name,
                stored_name=source.stored_name,
                file_path=source.file_path,
                file_size=len(source.content),
                mime_type=source.mime_type,
                import_type=ImportType.CSV,
                status=status,
                items_count=result.total,
                success_count=result.success,
                error_count=result.failed,
                uploaded_by=options.uploaded_by,
            )
        return ImportedFile(
            original_name=source.name,
            stored_name=source.name,
            file_path=None,
            file_size=source.size,
            mime_type=source.mime_type,
            import_type=ImportType.SPREADSHEET,
            status=status,
            items_count=result.total,
            success_count=result.success,
            error_count=result.failed,
            uploaded_by=options.uploaded_by,
        )

