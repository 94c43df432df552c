from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

"""CellValue model for decoded spreadsheet cells.

A CellValue is the tagged value of one worksheet cell after decoding: the
reader decides the tag from the decoded Python value, everything downstream
(type inference, value binding) only looks at the tag.
"""

__all__ = [
    "CellKind",
    "CellValue",
]

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1


class CellKind(Enum):
    """Source type tag of a decoded cell."""
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    TEXT = "text"
    TIMESTAMP = "timestamp"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class CellValue:
    """Immutable tagged cell value.

    ``value`` holds the native Python value for the tag (int / float / bool /
    str / datetime), ``None`` for EMPTY and the error code string (e.g.
    ``#DIV/0!``) for ERROR.
    """
    kind: CellKind
    value: Any = None

    @staticmethod
    def integer(value: int) -> CellValue:
        return CellValue(CellKind.INTEGER, int(value))

    @staticmethod
    def float_(value: float) -> CellValue:
        return CellValue(CellKind.FLOAT, float(value))

    @staticmethod
    def boolean(value: bool) -> CellValue:
        return CellValue(CellKind.BOOLEAN, bool(value))

    @staticmethod
    def text(value: str) -> CellValue:
        return CellValue(CellKind.TEXT, str(value))

    @staticmethod
    def timestamp(value: datetime) -> CellValue:
        return CellValue(CellKind.TIMESTAMP, value)

    @staticmethod
    def empty() -> CellValue:
        return CellValue(CellKind.EMPTY, None)

    @staticmethod
    def error(code: str) -> CellValue:
        return CellValue(CellKind.ERROR, code)

    # predicates (reader 側の判定と同じ優先順で使う)
    def is_int(self) -> bool:
        return self.kind is CellKind.INTEGER

    def is_float(self) -> bool:
        return self.kind is CellKind.FLOAT

    def is_bool(self) -> bool:
        return self.kind is CellKind.BOOLEAN

    def is_text(self) -> bool:
        return self.kind is CellKind.TEXT

    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    def is_error(self) -> bool:
        return self.kind is CellKind.ERROR

    def is_null(self) -> bool:
        """Empty and error cells both load as SQL NULL."""
        return self.kind in (CellKind.EMPTY, CellKind.ERROR)

    def display(self) -> Any:
        """JSON friendly representation (used by --inspect-data)."""
        if self.kind is CellKind.TIMESTAMP:
            return self.value.isoformat()
        return self.value
