"""Domain models for the Excel -> SQL import tool."""

from .cell_value import CellKind, CellValue
from .column_spec import ColumnSpec, LogicalColumnType, TableTarget
from .error_record import ErrorRecord
from .processing_result import BatchMetrics, BatchStatsAccumulator, ImportResult

__all__ = [
    # Cell models
    "CellKind",
    "CellValue",
    # Schema models
    "ColumnSpec",
    "LogicalColumnType",
    "TableTarget",
    # Result models
    "BatchMetrics",
    "BatchStatsAccumulator",
    "ImportResult",
    "ErrorRecord",
]
