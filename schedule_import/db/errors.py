from __future__ import annotations

__all__ = [
    "StorageError",
]


class StorageError(Exception):
    """A persistence-layer fault (connection, constraint, transaction)."""
