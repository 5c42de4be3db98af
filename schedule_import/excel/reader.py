from __future__ import annotations

from pathlib import Path

import pandas as pd

"""Workbook reader for the spreadsheet import path.

Converts one sheet of an .xlsx workbook into the plain 2-D grid of string
cells that the spreadsheet source expects. Everything is read as text (no NA
conversion) so that values such as "NA" or "09:00" survive untouched.
"""

__all__ = [
    "SheetNotFoundError",
    "list_sheets",
    "read_sheet_grid",
]


class SheetNotFoundError(Exception):
    """Raised when the requested sheet does not exist in the workbook."""


def list_sheets(path: Path) -> list[str]:
    with pd.ExcelFile(path) as xls:
        return [str(name) for name in xls.sheet_names]


def read_sheet_grid(path: Path, sheet_name: str | None = None) -> list[list[str | None]]:
    """Read a sheet as a grid of strings.

    Parameters
    ----------
    path: workbook path
    sheet_name: sheet to read; the first sheet when None

    Returns
    -------
    Rows of cells; empty cells are None. The first row is expected to hold the
    header labels.
    """
    with pd.ExcelFile(path) as xls:
        names = [str(n) for n in xls.sheet_names]
        if sheet_name is None:
            if not names:
                raise SheetNotFoundError(f"workbook '{path.name}' has no sheets")
            sheet_name = names[0]
        elif sheet_name not in names:
            raise SheetNotFoundError(f"sheet '{sheet_name}' not found in '{path.name}' (available: {names})")
        # raw read without header; the row parser takes the first row as labels
        df = xls.parse(sheet_name, header=None, dtype=str, keep_default_na=False)

    grid: list[list[str | None]] = []
    for raw in df.itertuples(index=False, name=None):
        grid.append([None if pd.isna(v) or v == "" else str(v) for v in raw])
    return grid
