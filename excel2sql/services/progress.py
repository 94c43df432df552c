from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Row progress display with tqdm (TTY only).

A single tqdm bar counts committed rows; it is disabled when stdout is not a
TTY (CI, redirected output) so no ANSI control sequences end up in logs.
"""

__all__ = [
    "RowProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class RowProgress:
    """Progress bar over committed rows of one table load."""

    def __init__(self, table_name: str, total_rows: int | None = None) -> None:
        """Initialize progress tracker.

        Args:
            table_name: Target table, shown as the bar description
            total_rows: Rows expected (None when unknown)
        """
        self.table_name = table_name
        self.total_rows = total_rows
        self.committed = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=f"Loading {table_name}",
                unit="row",
                leave=True,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def update(self, rows: int) -> None:
        """Advance by ``rows`` committed rows (batch loader progress hook)."""
        self.committed += rows
        if self.pbar is not None:
            self.pbar.update(rows)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> RowProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
