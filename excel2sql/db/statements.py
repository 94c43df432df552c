from __future__ import annotations

from ..errors import SchemaError
from ..models.column_spec import TableTarget
from .dialect import Dialect, map_type, quote_identifier

"""SQL statement synthesis for a TableTarget.

- build_create_table: idempotent ``CREATE TABLE IF NOT EXISTS`` with per-column
  native types. It does not diff against an existing table; a table with a
  different shape is left to the database's own error.
- build_insert: parameterized multi-row INSERT using the DB-API ``%s``
  paramstyle (psycopg2 and PyMySQL both use it). Values are never
  interpolated into the SQL text.
"""

__all__ = [
    "build_create_table",
    "build_insert",
]


def _column_definitions(target: TableTarget, dialect: Dialect) -> list[str]:
    if not target.columns:
        raise SchemaError(f"table '{target.table_name}' has no columns")
    return [
        f"{quote_identifier(col.name, dialect)} {map_type(col.inferred_type, dialect)}"
        for col in target.columns
    ]


def build_create_table(target: TableTarget, dialect: Dialect) -> str:
    """Return the CREATE TABLE statement for ``target``.

    Examples:
        >>> from excel2sql.models.column_spec import ColumnSpec, LogicalColumnType
        >>> t = TableTarget.create("sheet1", [ColumnSpec("id", LogicalColumnType.INT)])
        >>> build_create_table(t, Dialect.MYSQL)
        'CREATE TABLE IF NOT EXISTS `sheet1` (`id` BIGINT);'
    """
    cols_sql = ", ".join(_column_definitions(target, dialect))
    return f"CREATE TABLE IF NOT EXISTS {quote_identifier(target.table_name, dialect)} ({cols_sql});"


def _escape_percent(sql: str) -> str:
    # 識別子中の % は pyformat プレースホルダと誤解されるため二重化
    return sql.replace("%", "%%")


def build_insert(target: TableTarget, dialect: Dialect, row_count: int) -> str:
    """Return a multi-row INSERT with ``row_count`` placeholder tuples.

    The statement is meant to be executed with a flat parameter sequence of
    ``row_count * len(target.columns)`` values.
    """
    if row_count < 1:
        raise ValueError(f"row_count must be positive, got {row_count}")
    if not target.columns:
        raise SchemaError(f"table '{target.table_name}' has no columns")

    table_sql = _escape_percent(quote_identifier(target.table_name, dialect))
    cols_sql = ", ".join(_escape_percent(quote_identifier(c, dialect)) for c in target.column_names)
    template = "(" + ", ".join(["%s"] * len(target.columns)) + ")"
    values_sql = ", ".join([template] * row_count)
    return f"INSERT INTO {table_sql} ({cols_sql}) VALUES {values_sql};"
