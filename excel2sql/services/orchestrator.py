from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from ..config.connection import ConnectionDescriptor
from ..config.loader import ImportJob
from ..db.batch_insert import load
from ..db.connection import connect, execute_ddl
from ..db.dialect import Dialect
from ..db.statements import build_create_table
from ..errors import Excel2SqlError, LoadError
from ..excel.reader import Worksheet, read_worksheet
from ..logging.error_log import ErrorLogBuffer, record_for
from ..models.column_spec import TableTarget
from ..models.processing_result import BatchStatsAccumulator, ImportResult
from .progress import RowProgress
from .type_inference import infer_schema

"""Import orchestration: one worksheet -> one table.

Strict order, no overlap:

    connect -> read worksheet -> infer schema -> CREATE TABLE IF NOT EXISTS -> load batches

Schema problems are raised before any statement reaches the database. A load
failure does not raise: the committed row count is still a result, so it is
returned in ImportResult.error / committed_rows (rows committed by earlier
batches stay committed). Every failure is also written to the error log.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ImportPlan",
    "plan_import",
    "run_import",
]


@dataclass(frozen=True)
class ImportPlan:
    """Everything known before touching the database."""
    worksheet: Worksheet
    target: TableTarget

    def create_table_sql(self, dialect: Dialect) -> str:
        return build_create_table(self.target, dialect)


def plan_import(job: ImportJob) -> ImportPlan:
    """Read the worksheet and infer its TableTarget (no database access)."""
    worksheet = read_worksheet(
        job.source,
        job.sheet,
        has_header=job.has_header,
        null_sentinels=job.null_sentinels,
    )
    columns = infer_schema(
        worksheet,
        headers=job.headers,
        data_start_row=job.data_start_row,
        sample_rows=job.sample_rows,
    )
    target = TableTarget.create(job.table or worksheet.name, columns)
    logger.debug(
        "sheet=%s table=%s columns=%s",
        worksheet.name,
        target.table_name,
        [(c.name, c.inferred_type.value, c.nullable) for c in target.columns],
    )
    return ImportPlan(worksheet=worksheet, target=target)


def _execute(
    plan: ImportPlan,
    job: ImportJob,
    dialect: Dialect,
    cursor: Any,
) -> tuple[int, BatchStatsAccumulator, LoadError | None]:
    logger.info("import %s [%s] -> %s", job.source.name, plan.worksheet.name, plan.target.table_name)
    ddl = plan.create_table_sql(dialect)
    logger.info("create table: %s", ddl)
    execute_ddl(cursor, ddl, dialect)

    stats = BatchStatsAccumulator()
    rows = plan.worksheet.iter_rows(job.data_start_row)
    total = max(len(plan.worksheet.rows) - job.data_start_row + 1, 0)
    with RowProgress(plan.target.table_name, total_rows=total) as progress:
        try:
            committed = load(
                cursor,
                plan.target,
                rows,
                job.batch_size,
                dialect=dialect,
                start_row=job.data_start_row,
                metrics_callback=stats.add,
                progress=progress.update,
            )
        except LoadError as e:
            return e.committed_rows, stats, e
    return committed, stats, None


def run_import(
    job: ImportJob,
    descriptor: ConnectionDescriptor,
    *,
    cursor: Any = None,
    error_log: ErrorLogBuffer | None = None,
) -> ImportResult:
    """Run the whole pipeline for ``job``.

    Args:
        job: import job (source workbook, sheet, loading options)
        descriptor: target database
        cursor: existing DB-API cursor (None = open a connection from descriptor)
        error_log: buffer receiving ErrorRecords (flushed before returning)

    Returns:
        ImportResult; ``error`` is set when a batch failed.

    Raises:
        ConfigError / SchemaError / DriverError: fatal, nothing (or only the
            table) was created.
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    dialect = descriptor.dialect
    sheet_label = job.sheet or "<FIRST_SHEET>"

    try:
        if cursor is not None:
            plan = plan_import(job)
            sheet_label = plan.worksheet.name
            committed, stats, load_error = _execute(plan, job, dialect, cursor)
        else:
            with connect(descriptor) as cur:
                plan = plan_import(job)
                sheet_label = plan.worksheet.name
                committed, stats, load_error = _execute(plan, job, dialect, cur)
    except Excel2SqlError as e:
        error_log.append(record_for(e, job.source.name, sheet_label))
        error_log.flush()
        raise

    if load_error is not None:
        logger.error("load: %s", load_error)
        error_log.append(record_for(load_error, job.source.name, sheet_label))
    error_log.flush()

    end_time = datetime.now(UTC)
    elapsed = (end_time - start_time).total_seconds()
    throughput = committed / elapsed if elapsed > 0 else 0.0
    total_batches, avg_batch, p95_batch = stats.get_stats()
    return ImportResult(
        table_name=plan.target.table_name,
        dialect=dialect.value,
        columns=plan.target.columns,
        committed_rows=committed,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed,
        throughput_rows_per_sec=throughput,
        total_batches=total_batches,
        avg_batch_seconds=avg_batch,
        p95_batch_seconds=p95_batch,
        error=str(load_error) if load_error is not None else None,
    )
