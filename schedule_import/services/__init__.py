from .coordinator import (
    FileSource,
    ImportAbortedError,
    ImportCoordinator,
    ImportFailedError,
    ImportOptions,
    NothingImportableError,
    SpreadsheetSource,
)
from .provenance import ProvenanceTracker
from .summary import render_summary_line
from .uploads import store_upload

__all__ = [
    "FileSource",
    "ImportAbortedError",
    "ImportCoordinator",
    "ImportFailedError",
    "ImportOptions",
    "NothingImportableError",
    "ProvenanceTracker",
    "SpreadsheetSource",
    "render_summary_line",
    "store_upload",
]
