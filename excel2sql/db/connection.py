from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from ..config.connection import ConnectionDescriptor
from ..errors import DriverError
from .dialect import Dialect

"""Open a driver connection for a ConnectionDescriptor.

The connection is put in autocommit mode: transaction boundaries are explicit
(``BEGIN`` / ``COMMIT`` / ``ROLLBACK`` issued by the batch loader), so each
batch commits independently and DDL is never folded into a batch transaction.

Drivers:
- PostgreSQL: psycopg2
- MySQL:      PyMySQL
"""

__all__ = [
    "connect",
    "open_connection",
    "execute_ddl",
]

logger = logging.getLogger(__name__)


def open_connection(descriptor: ConnectionDescriptor) -> Any:
    """Return a new autocommit DB-API connection for ``descriptor``."""
    match descriptor.dialect:
        case Dialect.POSTGRES:
            import psycopg2

            try:
                conn = psycopg2.connect(
                    host=descriptor.host,
                    port=descriptor.port,
                    user=descriptor.user,
                    password=descriptor.password,
                    dbname=descriptor.name,
                )
            except psycopg2.Error as e:
                raise DriverError(
                    f"connect failed: {descriptor.redacted_url()}",
                    dialect=descriptor.dialect.value,
                    driver_message=str(e).strip(),
                ) from e
            conn.autocommit = True
            return conn
        case Dialect.MYSQL:
            import pymysql

            try:
                return pymysql.connect(
                    host=descriptor.host,
                    port=descriptor.port,
                    user=descriptor.user,
                    password=descriptor.password,
                    database=descriptor.name,
                    charset="utf8mb4",
                    autocommit=True,
                )
            except pymysql.MySQLError as e:
                raise DriverError(
                    f"connect failed: {descriptor.redacted_url()}",
                    dialect=descriptor.dialect.value,
                    driver_message=str(e).strip(),
                ) from e


@contextmanager
def connect(descriptor: ConnectionDescriptor) -> Iterator[Any]:
    """Context manager providing a cursor on a fresh connection.

    The connection and cursor are closed on exit; nothing is committed here
    because every statement either autocommits (DDL) or runs inside the
    loader's explicit transaction.
    """
    conn = open_connection(descriptor)
    logger.debug("connected %s", descriptor.redacted_url())
    cur = None
    try:
        cur = conn.cursor()
        yield cur
    finally:
        if cur is not None:
            try:
                cur.close()
            except Exception:  # pragma: no cover
                logger.debug("cursor close failed", exc_info=True)
        try:
            conn.close()
        except Exception:  # pragma: no cover
            logger.debug("connection close failed", exc_info=True)


def execute_ddl(cursor: Any, statement: str, dialect: Dialect) -> None:
    """Execute one DDL statement, wrapping driver failures in DriverError."""
    try:
        cursor.execute(statement)
    except Exception as e:
        raise DriverError(
            "DDL failed",
            dialect=dialect.value,
            statement=statement,
            driver_message=str(e).strip(),
        ) from e
