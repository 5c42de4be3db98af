from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

from .errors import StorageError

"""Batched INSERT via psycopg2.extras.execute_values.

Used for schedule items, which are the only rows an import creates in bulk.
With ``returning="id"`` the generated ids come back in insertion order.
"""

__all__ = [
    "BatchInsertError",
    "InsertResult",
    "batch_insert",
]


class BatchInsertError(StorageError):
    pass


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    returned_values: list[tuple[Any, ...]] | None = None


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    returning: str | None = None,
    page_size: int = 1000,
) -> InsertResult:
    """Insert ``rows`` into ``table`` in pages.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table name (trusted, never user input)
    columns: insert columns, in row order
    rows: row value sequences
    returning: column to return (e.g. "id"); None for no RETURNING clause
    page_size: execute_values page size
    """
    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0, returned_values=[] if returning else None)

    cols_sql = ",".join(f'"{c}"' for c in columns)
    sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"
    if returning:
        sql += f' RETURNING "{returning}"'

    try:
        # fetch=True collects RETURNING rows across every page
        returned = execute_values(cursor, sql, rows_list, page_size=page_size, fetch=bool(returning))
    except psycopg2.Error as e:
        raise BatchInsertError(str(e)) from e

    return InsertResult(
        inserted_rows=len(rows_list),
        returned_values=[tuple(r) for r in returned] if returning else None,
    )
