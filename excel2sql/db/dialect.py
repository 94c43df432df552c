from __future__ import annotations

from enum import Enum
from typing import assert_never

from ..errors import ConfigError, SchemaError
from ..models.column_spec import LogicalColumnType

"""SQL dialects and the logical -> native column type mapping.

Dialect is a closed enumeration. ``map_type`` and ``quote_identifier`` match on
it exhaustively (``assert_never``), so adding a dialect without extending them
is reported by the type checker instead of falling through to a default.
"""

__all__ = [
    "Dialect",
    "map_type",
    "quote_identifier",
]


class Dialect(Enum):
    MYSQL = "mysql"
    POSTGRES = "postgres"

    @property
    def default_port(self) -> int:
        match self:
            case Dialect.MYSQL:
                return 3306
            case Dialect.POSTGRES:
                return 5432
            case _:
                assert_never(self)

    @staticmethod
    def from_scheme(scheme: str) -> Dialect:
        """Resolve a URL scheme / config value to a Dialect."""
        for d in Dialect:
            if d.value == scheme:
                return d
        raise ConfigError(f"unsupported database type: {scheme!r} (expected mysql or postgres)")

    def __str__(self) -> str:
        return self.value


def _mysql_type(logical: LogicalColumnType) -> str:
    match logical:
        case LogicalColumnType.INT:
            return "BIGINT"
        case LogicalColumnType.FLOAT:
            return "DOUBLE"
        case LogicalColumnType.BOOL:
            return "TINYINT(1)"
        case LogicalColumnType.TEXT:
            return "TEXT"
        case LogicalColumnType.DATETIME:
            return "DATETIME"
        case LogicalColumnType.NULL:
            # 型の根拠が無いので nullable TEXT
            return "TEXT"
        case _:
            assert_never(logical)


def _postgres_type(logical: LogicalColumnType) -> str:
    match logical:
        case LogicalColumnType.INT:
            return "BIGINT"
        case LogicalColumnType.FLOAT:
            return "DOUBLE PRECISION"
        case LogicalColumnType.BOOL:
            return "BOOLEAN"
        case LogicalColumnType.TEXT:
            return "TEXT"
        case LogicalColumnType.DATETIME:
            return "TIMESTAMP"
        case LogicalColumnType.NULL:
            return "TEXT"
        case _:
            assert_never(logical)


def map_type(logical: LogicalColumnType, dialect: Dialect) -> str:
    """Return the native column type token for ``logical`` in ``dialect``.

    Total over (LogicalColumnType, Dialect); there is no error case.

    Examples:
        >>> map_type(LogicalColumnType.FLOAT, Dialect.POSTGRES)
        'DOUBLE PRECISION'
        >>> map_type(LogicalColumnType.BOOL, Dialect.MYSQL)
        'TINYINT(1)'
    """
    match dialect:
        case Dialect.MYSQL:
            return _mysql_type(logical)
        case Dialect.POSTGRES:
            return _postgres_type(logical)
        case _:
            assert_never(dialect)


def quote_identifier(name: str, dialect: Dialect) -> str:
    """Quote a table/column identifier for ``dialect``.

    Backticks for MySQL, double quotes for PostgreSQL; an embedded quote
    character is escaped by doubling it, so spreadsheet headers with spaces,
    quotes or reserved words are safe to use.

    Examples:
        >>> quote_identifier('order', Dialect.MYSQL)
        '`order`'
        >>> quote_identifier('a`b', Dialect.MYSQL)
        '`a``b`'
    """
    if not name:
        raise SchemaError("empty identifier")
    if "\x00" in name:
        raise SchemaError(f"identifier contains NUL character: {name!r}")
    match dialect:
        case Dialect.MYSQL:
            q = "`"
        case Dialect.POSTGRES:
            q = '"'
        case _:
            assert_never(dialect)
    return q + name.replace(q, q + q) + q
