"""Import one Excel worksheet into a MySQL or PostgreSQL table.

The worksheet's schema is inferred from its cells, the table is created with
``CREATE TABLE IF NOT EXISTS`` using per-dialect native column types, and the
rows are loaded with parameterized multi-row INSERTs in per-batch transactions.

CLI Usage:
    excel2sql --config config/import.yml --database-url postgres://u:p@host:5432/db
    excel2sql --dry-run
    excel2sql --inspect-data

Programmatic Usage:
    from pathlib import Path
    from excel2sql import ImportJob, parse_url, run_import

    result = run_import(
        ImportJob(source=Path("scores.xlsx"), sheet="sheet1"),
        parse_url("postgres://u:p@localhost:5432/mydb"),
    )
"""

__version__ = "0.1.0"

from excel2sql.config.connection import (
    ConnectionDescriptor,
    ConnectionDescriptorBuilder,
    from_env,
    parse_url,
)
from excel2sql.config.loader import ImportJob, load_config
from excel2sql.db.batch_insert import load
from excel2sql.db.dialect import Dialect, map_type, quote_identifier
from excel2sql.db.statements import build_create_table, build_insert
from excel2sql.errors import (
    ConfigError,
    DriverError,
    Excel2SqlError,
    LoadError,
    SchemaError,
)
from excel2sql.models import CellKind, CellValue, ColumnSpec, LogicalColumnType, TableTarget
from excel2sql.services.orchestrator import plan_import, run_import
from excel2sql.services.type_inference import infer, infer_schema

__all__ = [
    "__version__",
    # Connection
    "ConnectionDescriptor",
    "ConnectionDescriptorBuilder",
    "Dialect",
    "from_env",
    "parse_url",
    # Models
    "CellKind",
    "CellValue",
    "ColumnSpec",
    "LogicalColumnType",
    "TableTarget",
    # Pipeline
    "ImportJob",
    "load_config",
    "infer",
    "infer_schema",
    "map_type",
    "quote_identifier",
    "build_create_table",
    "build_insert",
    "load",
    "plan_import",
    "run_import",
    # Errors
    "Excel2SqlError",
    "ConfigError",
    "SchemaError",
    "DriverError",
    "LoadError",
]
