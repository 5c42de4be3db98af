"""Domain models for the schedule import pipeline.

This package contains the value types passed between pipeline stages, the
persisted record types, and the typed configuration.
"""

from .canonical_row import CanonicalRow, FieldError, NormalizedRow
from .config_models import DatabaseConfig, HeaderAliasTable, ImportSettings, SubjectSettings
from .error_record import ErrorRecord
from .import_result import (
    DeletionReport,
    ImportOutcome,
    ImportResult,
    ImportState,
    ScheduleImportError,
)
from .records import (
    ImportedFile,
    ImportStatus,
    ImportType,
    NewSubject,
    ScheduleItem,
    SubjectCatalogEntry,
)
from .row_data import RawRow

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "HeaderAliasTable",
    "ImportSettings",
    "SubjectSettings",
    # Pipeline values
    "RawRow",
    "CanonicalRow",
    "FieldError",
    "NormalizedRow",
    "ScheduleImportError",
    "ImportResult",
    "ImportOutcome",
    "ImportState",
    "DeletionReport",
    "ErrorRecord",
    # Persisted records
    "ImportedFile",
    "ImportStatus",
    "ImportType",
    "NewSubject",
    "ScheduleItem",
    "SubjectCatalogEntry",
]
