from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..errors import (
    ConfigError,
    DriverError,
    Excel2SqlError,
    LoadError,
    SchemaError,
)
from ..models.error_record import ErrorRecord

"""Error log buffering (JSON Lines).

- One file per run: ``logs/errors-YYYYMMDD-HHMMSS.log`` (UTC), created lazily
  on the first flush that has records
- Fixed record schema (ErrorRecord); no extra keys
- Serial use only
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "error_type_for",
    "record_for",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


def error_type_for(exc: BaseException) -> str:
    """UPPER_SNAKE error classification for an exception."""
    if isinstance(exc, LoadError):
        return "DATABASE_INSERT_ERROR"
    if isinstance(exc, DriverError):
        return "DATABASE_DDL_ERROR" if exc.statement else "DATABASE_CONNECT_ERROR"
    if isinstance(exc, SchemaError):
        return "SCHEMA_INFERENCE_ERROR"
    if isinstance(exc, ConfigError):
        return "CONFIG_ERROR"
    if isinstance(exc, Excel2SqlError):  # pragma: no cover - all kinds handled above
        return "IMPORT_ERROR"
    return "UNEXPECTED_ERROR"


def record_for(exc: BaseException, file: str, sheet: str) -> ErrorRecord:
    """Build an ErrorRecord from a pipeline exception."""
    row = exc.first_row if isinstance(exc, LoadError) else -1
    return ErrorRecord.create(
        file=file,
        sheet=sheet,
        row=row,
        error_type=error_type_for(exc),
        db_message=str(exc),
    )


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush appends JSON Lines."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the log path, or None when nothing was written."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
