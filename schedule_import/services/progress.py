from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Row progress display with tqdm (TTY only).

In non-TTY environments (CI, piped output) no bar is created, so log output
stays free of ANSI control sequences.
"""

__all__ = [
    "RowProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class RowProgress:
    """Progress bar ticking once per processed source row.

    The total is unknown up front because rows are parsed lazily.
    """

    def __init__(self, description: str = "Importing rows", *, enabled: bool | None = None) -> None:
        self.description = description
        self.processed = 0
        self.rejected = 0
        self.enabled = is_tty_enabled() if enabled is None else enabled
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=None,
                desc=description,
                unit="row",
                leave=False,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def tick(self, accepted: bool) -> None:
        self.processed += 1
        if not accepted:
            self.rejected += 1
        if self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_postfix(rejected=self.rejected)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> RowProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
