from __future__ import annotations

import statistics
from dataclasses import dataclass
from datetime import datetime

from .column_spec import ColumnSpec

"""Result models for one import run.

ImportResult aggregates what the SUMMARY line reports; BatchMetrics is the
per-batch timing record handed to the loader's metrics callback and folded
into ImportResult by BatchStatsAccumulator.
"""


@dataclass(frozen=True)
class BatchMetrics:
    """Timing data for a single committed batch."""
    batch_index: int  # 0-based
    batch_size: int  # Number of rows in this batch
    elapsed_seconds: float  # INSERT + COMMIT
    start_time: float  # time.time()
    end_time: float


@dataclass(frozen=True)
class ImportResult:
    """Aggregated results of importing one worksheet into one table."""
    table_name: str
    dialect: str
    columns: tuple[ColumnSpec, ...]
    committed_rows: int  # コミット済み行数 (失敗時は再開オフセット)
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float
    total_batches: int = 0
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class BatchStatsAccumulator:
    """Collects batch timings and summarizes them (count, mean, p95)."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add(self, metrics: BatchMetrics) -> None:
        self.batch_times.append(metrics.elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Return (total_batches, avg_batch_seconds, p95_batch_seconds)."""
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method='inclusive'
            )[18]  # 95th percentile (19th out of 20 quantiles, 0-indexed)

        return (total_batches, avg_batch_seconds, p95_batch_seconds)
