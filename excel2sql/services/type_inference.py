from __future__ import annotations

from collections.abc import Sequence

from ..errors import SchemaError
from ..excel.reader import Worksheet
from ..models.cell_value import CellValue
from ..models.column_spec import ColumnSpec, LogicalColumnType

"""Schema inference from worksheet cells.

Header resolution: explicit header list > header row reported by the worksheet
> SchemaError("no header").

Type derivation: each sampled cell is classified in the fixed priority order
Integer > Float > Boolean > Text > (Empty | Error -> Null) > DateTime, then the
per-column types are joined over a small lattice:

    Null  <  everything
    Int   ⊔ Float = Float
    any other conflict -> Text

so a column that is numeric in the first row but textual further down becomes
TEXT instead of failing at load time. ``sample_rows=1`` is single-row
inference.
"""

__all__ = [
    "DEFAULT_SAMPLE_ROWS",
    "classify",
    "widen",
    "resolve_header",
    "infer",
    "infer_schema",
]

DEFAULT_SAMPLE_ROWS = 100

_T = LogicalColumnType


def classify(cell: CellValue) -> LogicalColumnType:
    """Logical type of a single cell."""
    if cell.is_int():
        return _T.INT
    if cell.is_float():
        return _T.FLOAT
    if cell.is_bool():
        return _T.BOOL
    if cell.is_text():
        return _T.TEXT
    if cell.is_empty() or cell.is_error():
        return _T.NULL
    return _T.DATETIME


def widen(current: LogicalColumnType, observed: LogicalColumnType) -> LogicalColumnType:
    """Least upper bound of two logical types.

    Examples:
        >>> widen(LogicalColumnType.INT, LogicalColumnType.FLOAT)
        <LogicalColumnType.FLOAT: 'float'>
        >>> widen(LogicalColumnType.NULL, LogicalColumnType.BOOL)
        <LogicalColumnType.BOOL: 'bool'>
        >>> widen(LogicalColumnType.BOOL, LogicalColumnType.INT)
        <LogicalColumnType.TEXT: 'text'>
    """
    if current is observed:
        return current
    if current is _T.NULL:
        return observed
    if observed is _T.NULL:
        return current
    if {current, observed} == {_T.INT, _T.FLOAT}:
        return _T.FLOAT
    return _T.TEXT


def resolve_header(
    explicit: Sequence[str | None] | None,
    reported: Sequence[str | None] | None,
) -> list[str | None]:
    """Pick the header: explicit list wins, then the worksheet's own header row."""
    if explicit is not None:
        return list(explicit)
    if reported is not None:
        return list(reported)
    raise SchemaError("no header")


def _column_names(header: Sequence[str | None]) -> list[str]:
    names: list[str] = []
    seen: set[str] = set()
    for idx, raw in enumerate(header, start=1):
        name = raw.strip() if isinstance(raw, str) else None
        if not name:
            name = f"col_{idx}"
        if name in seen:
            raise SchemaError(f"duplicate column name {name!r} at column {idx}")
        seen.add(name)
        names.append(name)
    return names


def infer(
    header: Sequence[str | None],
    sample_rows: Sequence[Sequence[CellValue]],
) -> list[ColumnSpec]:
    """Derive one ColumnSpec per header column from ``sample_rows``.

    Raises:
        SchemaError: no sample row, or a sampled row whose length differs from
            the header length.
    """
    if not sample_rows:
        raise SchemaError("no data")
    names = _column_names(header)

    types = [_T.NULL] * len(names)
    nullable = [False] * len(names)
    for row_no, row in enumerate(sample_rows, start=1):
        if len(row) != len(names):
            raise SchemaError(
                f"header has {len(names)} columns but sample row {row_no} has {len(row)} values"
            )
        for i, cell in enumerate(row):
            observed = classify(cell)
            if observed is _T.NULL:
                nullable[i] = True
            types[i] = widen(types[i], observed)

    return [
        ColumnSpec(name=name, inferred_type=t, nullable=n or t is _T.NULL)
        for name, t, n in zip(names, types, nullable, strict=True)
    ]


def infer_schema(
    worksheet: Worksheet,
    *,
    headers: Sequence[str | None] | None = None,
    data_start_row: int = 1,
    sample_rows: int = DEFAULT_SAMPLE_ROWS,
) -> list[ColumnSpec]:
    """Infer the schema of ``worksheet``.

    Parameters
    ----------
    worksheet: decoded worksheet
    headers: explicit header list (overrides the worksheet's header row)
    data_start_row: 1-based offset of the first data row (1 = first row after header)
    sample_rows: number of rows sampled from ``data_start_row`` (>= 1)
    """
    if sample_rows < 1:
        raise SchemaError(f"sample_rows must be >= 1, got {sample_rows}")
    header = resolve_header(headers, worksheet.header)
    if worksheet.row_at(data_start_row) is None:
        raise SchemaError("no data")

    sample: list[list[CellValue]] = []
    for row in worksheet.iter_rows(data_start_row):
        sample.append(row)
        if len(sample) >= sample_rows:
            break
    return infer(header, sample)
