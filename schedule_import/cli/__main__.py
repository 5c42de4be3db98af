from __future__ import annotations

import argparse
import logging
import os
import sys
import time
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, default_settings, load_config
from ..db.errors import StorageError
from ..db.store import PgScheduleStore, ScheduleStore
from ..excel.reader import SheetNotFoundError, list_sheets, read_sheet_grid
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, setup_logging
from ..models.config_models import ImportSettings
from ..models.import_result import ImportResult
from ..models.records import ImportType
from ..parsing.delimiter import detect_delimiter
from ..parsing.encoding import detect_and_decode
from ..parsing.headers import HeaderResolver
from ..parsing.rows import parse_grid, parse_text
from ..services.coordinator import (
    FileSource,
    ImportCoordinator,
    ImportFailedError,
    ImportOptions,
    NothingImportableError,
    SpreadsheetSource,
)
from ..services.provenance import ProvenanceTracker
from ..services.summary import render_summary_line
from ..services.uploads import store_upload

"""CLI entrypoint.

Subcommands:
- import-file: copy a delimited file into the upload directory and import it
- import-sheet: import one worksheet of an .xlsx workbook
- inspect: show what the importer would see in a file (no database needed)
- list / delete: browse and remove past imports
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

INSPECT_SAMPLE_ROWS = 3
WORKBOOK_SUFFIXES = (".xlsx", ".xlsm")

# pandas/openpyxl failures on unreadable or corrupt workbooks
_WORKBOOK_ERRORS = (OSError, ValueError, zipfile.BadZipFile)

logger = logging.getLogger("schedule_import.cli")


def _resolve_dsn(cfg: ImportSettings) -> str:
    """Connection string, env first (``.env`` already loaded with override), config as fallback.

    1. DATABASE_URL / PGDSN (whole DSN)
    2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. the ``database`` section of the config file
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _open_store(cfg: ImportSettings) -> Iterator[ScheduleStore]:  # pragma: no cover (thin wrapper)
    """Connect and yield a PgScheduleStore.

    The connection runs in autocommit mode; the store issues its own
    BEGIN/COMMIT/ROLLBACK.
    """
    conn = psycopg2.connect(_resolve_dsn(cfg))
    try:
        conn.autocommit = True
        with conn.cursor() as cur:
            yield PgScheduleStore(cur)
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _load_settings(path: Path | None) -> ImportSettings:
    if path is None:
        return load_config(DEFAULT_CONFIG_PATH) if DEFAULT_CONFIG_PATH.exists() else default_settings()
    return load_config(path)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="schedule-import", description="Class schedule CSV/spreadsheet importer")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    f = sub.add_parser("import-file", help="Import a delimited text file")
    f.add_argument("path", type=Path)
    f.add_argument("--uploaded-by", type=int, default=1)
    f.add_argument("--headers", default=None, help="Comma separated header labels; every record is then data")

    s = sub.add_parser("import-sheet", help="Import one sheet of an .xlsx workbook")
    s.add_argument("workbook", type=Path)
    s.add_argument("--sheet", default=None, help="Sheet name (default: first sheet)")
    s.add_argument("--uploaded-by", type=int, default=1)

    i = sub.add_parser("inspect", help="Show encoding, delimiter or sheets, headers and sample rows of a file")
    i.add_argument("path", type=Path)
    i.add_argument("--sheet", default=None, help="Workbook sheet to inspect (default: first sheet)")

    ls = sub.add_parser("list", help="List recorded imports")
    ls.add_argument("--uploaded-by", type=int, default=None)
    ls.add_argument("--type", dest="import_type", choices=[t.value for t in ImportType], default=None)

    d = sub.add_parser("delete", help="Delete an import and the schedule items it created")
    d.add_argument("id", type=int)
    return p.parse_args(argv)


def _report_result(result: ImportResult, imported_file_id: int | None, started: float) -> None:
    for err in result.errors:
        logger.warning("row %d: %s", err.row, err.error)
    line = render_summary_line(result, imported_file_id, time.perf_counter() - started)
    # log_summary adds the "SUMMARY " label itself
    log_summary(line[len("SUMMARY "):])


def _run_import(
    cfg: ImportSettings,
    error_log: ErrorLogBuffer,
    source: FileSource | SpreadsheetSource,
    options: ImportOptions,
) -> int:
    started = time.perf_counter()
    with _open_store(cfg) as store:
        coordinator = ImportCoordinator(store, cfg, error_log=error_log)
        try:
            outcome = coordinator.import_schedule_items(source, options)
        except NothingImportableError as e:
            logger.error("%s", e.message)
            _report_result(e.result, None, started)
            return EXIT_FATAL
    _report_result(outcome.result, outcome.imported_file.id, started)
    return EXIT_PARTIAL_FAILURE if outcome.result.failed > 0 else EXIT_SUCCESS_ALL


def _cmd_import_file(cfg: ImportSettings, error_log: ErrorLogBuffer, args: argparse.Namespace) -> int:
    path: Path = args.path
    if not path.is_file():
        logger.error("file not found: %s", path)
        return EXIT_FATAL
    try:
        stored = store_upload(path, Path(cfg.upload_directory))
    except OSError as e:
        logger.error("could not store upload %s in %s: %s", path, cfg.upload_directory, e)
        return EXIT_FATAL
    logger.debug("upload stored as %s", stored)
    headers = tuple(h.strip() for h in args.headers.split(",")) if args.headers else None
    try:
        source = FileSource.from_path(stored, original_name=path.name)
    except OSError as e:
        logger.error("could not read stored upload %s: %s", stored, e)
        _discard_upload(stored)
        return EXIT_FATAL
    try:
        code = _run_import(cfg, error_log, source, ImportOptions(uploaded_by=args.uploaded_by, headers=headers))
    except (ImportFailedError, StorageError, psycopg2.Error):
        _discard_upload(stored)
        raise
    # nothing was recorded, so no ImportedFile owns the stored copy
    if code == EXIT_FATAL:
        _discard_upload(stored)
    return code


def _discard_upload(stored: Path) -> None:
    try:
        stored.unlink()
    except OSError as e:
        logger.warning("could not remove stored upload %s: %s", stored, e)


def _read_workbook(workbook: Path, sheet: str | None) -> list[list[str | None]] | None:
    """Read one sheet; log and return None when the workbook is unusable."""
    try:
        return read_sheet_grid(workbook, sheet)
    except SheetNotFoundError as e:
        logger.error("%s", e)
    except _WORKBOOK_ERRORS as e:
        logger.error("could not read workbook %s: %s", workbook, e)
    return None


def _cmd_import_sheet(cfg: ImportSettings, error_log: ErrorLogBuffer, args: argparse.Namespace) -> int:
    workbook: Path = args.workbook
    if not workbook.is_file():
        logger.error("workbook not found: %s", workbook)
        return EXIT_FATAL
    grid = _read_workbook(workbook, args.sheet)
    if grid is None:
        return EXIT_FATAL
    source = SpreadsheetSource(
        grid=grid,
        name=args.sheet or workbook.stem,
        size=workbook.stat().st_size,
    )
    return _run_import(cfg, error_log, source, ImportOptions(uploaded_by=args.uploaded_by))


def _cmd_inspect(cfg: ImportSettings, args: argparse.Namespace) -> int:
    path: Path = args.path
    if not path.is_file():
        print(f"inspect: file not found: {path}")
        return EXIT_FATAL
    print(f"FILE: {path.name}")
    if path.suffix.lower() in WORKBOOK_SUFFIXES:
        try:
            sheets = list_sheets(path)
        except _WORKBOOK_ERRORS as e:
            print(f"inspect: could not read workbook {path}: {e}")
            return EXIT_FATAL
        print(f"  sheets={sheets}")
        grid = _read_workbook(path, args.sheet)
        if grid is None:
            return EXIT_FATAL
        print(f"  sheet={args.sheet or sheets[0]}")
        table = parse_grid(grid)
    else:
        decoded = detect_and_decode(
            path.read_bytes(),
            fallback=cfg.fallback_encoding,
            min_confidence=cfg.min_encoding_confidence,
        )
        delimiter = detect_delimiter(decoded.text)
        table = parse_text(decoded.text, delimiter)
        print(f"  encoding={decoded.encoding} confidence={decoded.confidence:.2f} fallback={decoded.fallback_used}")
        print(f"  delimiter={delimiter!r}")
    resolved = HeaderResolver(cfg.headers).resolve(table.headers)
    print(f"  headers={table.headers}")
    for field_name, label in resolved.mapping.items():
        print(f"  {field_name} <- {label if label is not None else '-'}")
    for n, row in enumerate(table.rows):
        if n >= INSPECT_SAMPLE_ROWS:
            break
        print(f"  row {row.row_number}: {resolved.extract(row)}")
    return EXIT_SUCCESS_ALL


def _cmd_list(cfg: ImportSettings, args: argparse.Namespace) -> int:
    import_type = ImportType(args.import_type) if args.import_type else None
    with _open_store(cfg) as store:
        records = ProvenanceTracker(store).list_imports(uploaded_by=args.uploaded_by, import_type=import_type)
    for r in records:
        created = r.created_at.isoformat() if r.created_at else "-"
        print(
            f"{r.id}\t{r.import_type.value}\t{r.status.value}\t{r.original_name}\t"
            f"total={r.items_count} success={r.success_count} failed={r.error_count}\t{created}"
        )
    logger.info("%d imports", len(records))
    return EXIT_SUCCESS_ALL


def _cmd_delete(cfg: ImportSettings, error_log: ErrorLogBuffer, args: argparse.Namespace) -> int:
    with _open_store(cfg) as store:
        report = ProvenanceTracker(store, error_log=error_log).delete_import_with_report(args.id)
    if report is None:
        logger.error("imported file not found: %s", args.id)
        return EXIT_PARTIAL_FAILURE
    logger.info(
        "deleted import %s (%s): %d schedule items, physical file %s",
        report.imported_file_id,
        report.original_name,
        report.items_deleted,
        "removed" if report.physical_file_deleted else "kept",
    )
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # None only: an empty list from tests must not fall back to sys.argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = _load_settings(args.config)
    except ConfigError as e:
        logger.error("config: %s", e)
        return EXIT_FATAL

    if args.command == "inspect":
        return _cmd_inspect(cfg, args)

    error_log = ErrorLogBuffer(cfg.error_log_directory)
    try:
        if args.command == "import-file":
            return _cmd_import_file(cfg, error_log, args)
        if args.command == "import-sheet":
            return _cmd_import_sheet(cfg, error_log, args)
        if args.command == "list":
            return _cmd_list(cfg, args)
        return _cmd_delete(cfg, error_log, args)
    except ImportFailedError as e:
        logger.error("import: %s", e)
        return EXIT_FATAL
    except (StorageError, psycopg2.Error) as e:
        logger.error("database: %s", e)
        return EXIT_FATAL
    finally:
        written = error_log.flush()
        if written is not None:
            logger.info("error log written: %s", written)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
