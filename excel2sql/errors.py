from __future__ import annotations

from typing import Any

"""Error taxonomy for the Excel -> SQL import pipeline.

Every error raised by the pipeline derives from ``Excel2SqlError`` so callers
(CLI, orchestrator) can catch the whole family, while each stage raises its own
kind:

- ConfigError:  connection descriptor / job file problems (fatal, no retry)
- SchemaError:  header / sample row / shape problems, raised before any DDL
- DriverError:  connect or DDL failure reported by the database driver
- LoadError:    a batch INSERT failed; the batch was rolled back
"""

__all__ = [
    "Excel2SqlError",
    "ConfigError",
    "WorkbookError",
    "SchemaError",
    "SheetNotFoundError",
    "DriverError",
    "LoadError",
]


class Excel2SqlError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(Excel2SqlError):
    """Malformed or incomplete configuration (connection string, job file)."""


class WorkbookError(ConfigError):
    """The workbook could not be opened or decoded."""


class SchemaError(Excel2SqlError):
    """Schema inference failed (no header, no data, shape mismatch)."""


class SheetNotFoundError(SchemaError):
    """The requested worksheet does not exist in the workbook."""

    def __init__(self, sheet: str, available: list[str]) -> None:
        super().__init__(f"sheet '{sheet}' not found (available: {available})")
        self.sheet = sheet
        self.available = available


class DriverError(Excel2SqlError):
    """Database driver failure outside of batch loading (connect, DDL)."""

    def __init__(
        self,
        message: str,
        *,
        dialect: str | None = None,
        statement: str | None = None,
        driver_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.dialect = dialect
        self.statement = statement
        self.driver_message = driver_message

    def __str__(self) -> str:
        base = super().__str__()
        parts = [base]
        if self.dialect:
            parts.append(f"dialect={self.dialect}")
        if self.driver_message:
            parts.append(f"driver={self.driver_message}")
        return " ".join(parts)


class LoadError(Excel2SqlError):
    """A batch failed to load and was rolled back.

    ``committed_rows`` is the number of rows durably committed by earlier
    batches, i.e. the offset a caller can resume from.
    """

    def __init__(
        self,
        message: str,
        *,
        batch_index: int,
        first_row: int,
        last_row: int,
        committed_rows: int,
        dialect: str | None = None,
        column: str | None = None,
        value: Any = None,
        driver_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.batch_index = batch_index
        self.first_row = first_row
        self.last_row = last_row
        self.committed_rows = committed_rows
        self.dialect = dialect
        self.column = column
        self.value = value
        self.driver_message = driver_message

    @property
    def row_range(self) -> tuple[int, int]:
        return (self.first_row, self.last_row)

    def __str__(self) -> str:
        parts = [
            super().__str__(),
            f"batch={self.batch_index}",
            f"rows={self.first_row}-{self.last_row}",
            f"committed={self.committed_rows}",
        ]
        if self.dialect:
            parts.append(f"dialect={self.dialect}")
        if self.column is not None:
            parts.append(f"column={self.column!r} value={self.value!r}")
        if self.driver_message:
            parts.append(f"driver={self.driver_message}")
        return " ".join(parts)
