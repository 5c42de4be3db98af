from __future__ import annotations

from ..models.import_result import ImportResult

"""SUMMARY line rendering for one import."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for tiny values
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportResult, imported_file_id: int | None, elapsed_seconds: float) -> str:
    """Render the SUMMARY line for an import.

    Format:
    SUMMARY total={total} success={success} failed={failed} imported_file_id={id|-} elapsed_sec={elapsed}

    Examples:
        >>> from schedule_import.models.import_result import ImportResult
        >>> render_summary_line(ImportResult(total=2, success=1, failed=1), 7, 0.5)
        'SUMMARY total=2 success=1 failed=1 imported_file_id=7 elapsed_sec=0.5'
    """
    file_id = str(imported_file_id) if imported_file_id is not None else "-"
    return (
        f"SUMMARY total={result.total} "
        f"success={result.success} "
        f"failed={result.failed} "
        f"imported_file_id={file_id} "
        f"elapsed_sec={_format_seconds(elapsed_seconds)}"
    )
