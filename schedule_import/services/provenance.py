from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from ..db.store import ScheduleStore
from ..logging.error_log import PHYSICAL_FILE_DELETE_FAILED, ErrorLogBuffer
from ..models.import_result import DeletionReport
from ..models.records import ImportedFile, ImportType

"""Import provenance: which schedule items came from which batch.

Deleting an import removes its schedule items and its ImportedFile record in
one storage transaction, then removes the stored upload on a best-effort basis.
The database side is authoritative; a leftover file is only logged.
"""

__all__ = [
    "ProvenanceTracker",
]

logger = logging.getLogger(__name__)

RemoveFile = Callable[[str], None]


def _unlink(path: str) -> None:
    Path(path).unlink()


class _RecordVanished(Exception):
    """The record disappeared between lookup and delete inside one transaction."""


class ProvenanceTracker:
    def __init__(
        self,
        store: ScheduleStore,
        remove_file: RemoveFile | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self._store = store
        self._remove_file = remove_file or _unlink
        self._error_log = error_log

    def record_import(self, record: ImportedFile, item_ids: Sequence[int]) -> ImportedFile:
        """Create the provenance record and back-link the given schedule items to it.

        Runs inside the caller's transaction.
        """
        created = self._store.create_imported_file(record)
        logger.info("Created import file record: %s", created.id)
        linked = self._store.link_schedule_items(item_ids, created.id)
        logger.debug("Linked %d schedule items with imported file %s", linked, created.id)
        return created

    def get_import(self, imported_file_id: int) -> ImportedFile | None:
        return self._store.get_imported_file(imported_file_id)

    def list_imports(
        self, uploaded_by: int | None = None, import_type: ImportType | None = None
    ) -> list[ImportedFile]:
        return self._store.list_imported_files(uploaded_by=uploaded_by, import_type=import_type)

    def delete_import(self, imported_file_id: int) -> bool:
        """Delete an import and everything it created. False when the id is unknown."""
        return self.delete_import_with_report(imported_file_id) is not None

    def delete_import_with_report(self, imported_file_id: int) -> DeletionReport | None:
        """Delete an import and report what was removed.

        Returns:
            DeletionReport, or None when no import with this id exists

        Raises:
            StorageError: the database side failed; nothing was deleted
        """
        logger.info("Processing delete request for imported file ID: %s", imported_file_id)
        try:
            with self._store.transaction():
                record = self._store.get_imported_file(imported_file_id)
                if record is None:
                    logger.info("Imported file with ID %s not found", imported_file_id)
                    return None
                related = self._store.count_schedule_items(imported_file_id)
                logger.info("Found %d schedule items related to imported file ID: %s", related, imported_file_id)
                deleted = self._store.delete_schedule_items(imported_file_id)
                if not self._store.delete_imported_file(imported_file_id):
                    raise _RecordVanished()
        except _RecordVanished:
            logger.info("Imported file with ID %s was removed concurrently", imported_file_id)
            return None

        logger.info(
            "Deleted imported file ID %s (%s) and %d schedule items",
            imported_file_id,
            record.original_name,
            deleted,
        )
        return DeletionReport(
            imported_file_id=imported_file_id,
            original_name=record.original_name,
            items_deleted=deleted,
            physical_file_deleted=self._remove_physical_file(record),
        )

    def _remove_physical_file(self, record: ImportedFile) -> bool:
        if not record.file_path or record.import_type is not ImportType.CSV:
            return False
        try:
            self._remove_file(record.file_path)
        except OSError as e:
            logger.warning("Could not delete physical file %s: %s", record.file_path, e)
            if self._error_log is not None:
                self._error_log.record(record.original_name, -1, PHYSICAL_FILE_DELETE_FAILED, str(e))
            return False
        logger.info("Deleted physical file: %s", record.file_path)
        return True
