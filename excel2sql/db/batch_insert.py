from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from ..errors import LoadError
from ..models.cell_value import CellKind, CellValue
from ..models.column_spec import LogicalColumnType, TableTarget
from ..models.processing_result import BatchMetrics
from .dialect import Dialect
from .statements import build_insert

"""Batch loader: stream worksheet rows into parameterized multi-row INSERTs.

Each batch runs in its own explicit transaction (BEGIN / INSERT / COMMIT) on a
cursor whose connection is in autocommit mode, so a committed batch is durable
even if a later batch fails. A failing batch is rolled back as a whole and
reported as LoadError with its row range; the caller can resume from
``LoadError.first_row``.

Rows are consumed lazily: at most ``batch_size`` rows are held in memory.
"""

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "bind_value",
    "load",
]

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000


def bind_value(cell: CellValue, logical: LogicalColumnType) -> Any:
    """Convert ``cell`` to the native Python value for a column of type ``logical``.

    Widening conversions are applied (int -> float, anything -> text); any
    other mismatch raises ValueError instead of reinterpreting the value.
    """
    if cell.is_null():
        return None

    kind = cell.kind
    value = cell.value
    match logical:
        case LogicalColumnType.INT:
            if kind is CellKind.INTEGER:
                return int(value)
            if kind is CellKind.FLOAT and float(value).is_integer():
                return int(value)
        case LogicalColumnType.FLOAT:
            if kind in (CellKind.INTEGER, CellKind.FLOAT):
                return float(value)
        case LogicalColumnType.BOOL:
            if kind is CellKind.BOOLEAN:
                return bool(value)
        case LogicalColumnType.DATETIME:
            if kind is CellKind.TIMESTAMP:
                return value
        case LogicalColumnType.TEXT | LogicalColumnType.NULL:
            if kind is CellKind.BOOLEAN:
                return "true" if value else "false"
            if kind is CellKind.TIMESTAMP:
                return value.isoformat()
            return str(value)
    raise ValueError(f"cannot bind {kind.value} value {value!r} to {logical.value} column")


def _bind_batch(
    target: TableTarget,
    batch: Sequence[Sequence[CellValue]],
    first_row: int,
) -> list[Any]:
    """Flatten a batch into INSERT parameters. Raises ValueError with row/column context."""
    width = len(target.columns)
    params: list[Any] = []
    for offset, row in enumerate(batch):
        if len(row) != width:
            raise _RowShapeError(first_row + offset, len(row), width)
        for col, cell in zip(target.columns, row, strict=True):
            try:
                params.append(bind_value(cell, col.inferred_type))
            except ValueError as e:
                raise _BindError(first_row + offset, col.name, cell.value, str(e)) from e
    return params


class _RowShapeError(ValueError):
    def __init__(self, row: int, got: int, expected: int) -> None:
        super().__init__(f"row {row} has {got} values, expected {expected}")
        self.row = row


class _BindError(ValueError):
    def __init__(self, row: int, column: str, value: Any, reason: str) -> None:
        super().__init__(f"row {row}: {reason}")
        self.row = row
        self.column = column
        self.value = value


def _rollback(cursor: Any, batch_index: int) -> None:
    try:
        cursor.execute("ROLLBACK")
    except Exception as e:
        # 元の例外を優先する (ロールバック失敗はログのみ)
        logger.error("rollback failed batch=%d: %s", batch_index, e)


def load(
    cursor: Any,
    target: TableTarget,
    rows: Iterable[Sequence[CellValue]],
    batch_size: int = DEFAULT_BATCH_SIZE,
    *,
    dialect: Dialect,
    start_row: int = 1,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
    progress: Callable[[int], None] | None = None,
) -> int:
    """Load ``rows`` into ``target`` in batches of ``batch_size``.

    Parameters
    ----------
    cursor: DB-API cursor (psycopg2 / PyMySQL) on an autocommit connection
    target: table to insert into (columns in worksheet order)
    rows: lazy row sequence; each row is a sequence of CellValue
    batch_size: rows per INSERT / transaction (positive)
    dialect: SQL dialect used for identifier quoting
    start_row: 1-based data row number of the first row in ``rows`` (used in
        error row ranges, e.g. when resuming)
    metrics_callback: receives BatchMetrics after each committed batch
    progress: called with the row count of each committed batch

    Returns
    -------
    Total number of committed rows. K rows commit exactly ceil(K / batch_size)
    transactions; an empty remainder issues no transaction.

    Raises
    ------
    LoadError: a batch failed (shape mismatch, unbindable value or driver
        error). That batch was rolled back; earlier batches stay committed.
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
        raise ValueError(f"batch_size must be a positive integer, got {batch_size!r}")

    iterator = iter(rows)
    committed = 0
    batch_index = 0
    while True:
        batch = list(itertools.islice(iterator, batch_size))
        if not batch:
            break

        first_row = start_row + committed
        last_row = first_row + len(batch) - 1
        start_time = time.time()
        try:
            cursor.execute("BEGIN")
            params = _bind_batch(target, batch, first_row)
            cursor.execute(build_insert(target, dialect, len(batch)), params)
            cursor.execute("COMMIT")
        except _RowShapeError as e:
            _rollback(cursor, batch_index)
            raise LoadError(
                f"row shape mismatch: {e}",
                batch_index=batch_index,
                first_row=first_row,
                last_row=last_row,
                committed_rows=committed,
                dialect=dialect.value,
            ) from e
        except _BindError as e:
            _rollback(cursor, batch_index)
            raise LoadError(
                f"value type mismatch: {e}",
                batch_index=batch_index,
                first_row=first_row,
                last_row=last_row,
                committed_rows=committed,
                dialect=dialect.value,
                column=e.column,
                value=e.value,
            ) from e
        except Exception as e:
            _rollback(cursor, batch_index)
            raise LoadError(
                f"batch insert failed into '{target.table_name}'",
                batch_index=batch_index,
                first_row=first_row,
                last_row=last_row,
                committed_rows=committed,
                dialect=dialect.value,
                driver_message=str(e).strip(),
            ) from e
        end_time = time.time()

        committed += len(batch)
        logger.debug(
            "batch=%d rows=%d-%d committed_total=%d", batch_index, first_row, last_row, committed
        )
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_index=batch_index,
                    batch_size=len(batch),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )
        if progress is not None:
            progress(len(batch))
        batch_index += 1

    return committed
