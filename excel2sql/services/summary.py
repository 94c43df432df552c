from __future__ import annotations

from ..models.processing_result import ImportResult

"""SUMMARY line rendering.

Format::

    SUMMARY table={table} dialect={dialect} columns={n} rows={rows}
    batches={batches} elapsed_sec={elapsed} throughput_rps={throughput}

(one line; wrapped here for readability)
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip('0').rstrip('.')
    return f"{value:.3f}".rstrip('0').rstrip('.')


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line for an ImportResult.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ImportResult(
        ...     table_name="sheet1", dialect="postgres", columns=(), committed_rows=1000,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0,
        ...     throughput_rows_per_sec=500.0, total_batches=1,
        ... )
        >>> render_summary_line(result)
        'SUMMARY table=sheet1 dialect=postgres columns=0 rows=1000 batches=1 elapsed_sec=2 throughput_rps=500'
    """
    return (
        f"SUMMARY table={result.table_name} "
        f"dialect={result.dialect} "
        f"columns={len(result.columns)} "
        f"rows={result.committed_rows} "
        f"batches={result.total_batches} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_rps={_format_number(result.throughput_rows_per_sec)}"
    )
