from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from ..errors import SchemaError, SheetNotFoundError, WorkbookError
from ..models.cell_value import I64_MAX, I64_MIN, CellValue

"""Excel worksheet reader.

Reads one worksheet with pandas (openpyxl engine for .xlsx) into a grid of
CellValue. The sheet is parsed with ``header=None`` and ``dtype=object`` so
pandas does not coerce columns (an int column with a gap would otherwise come
back as float64); every cell keeps the Python type the engine decoded.

- 1行目 (空行を除く最初の行) をヘッダ行として扱い、以降をデータ行とする
  (``has_header=False`` の場合は全行データ)
- 全セルが空の行はスキップ (DEBUG ログにシート上の行番号を出す)

Data rows are numbered consecutively over the non-empty rows after the
header. ``data_start_row`` and the row ranges in LoadError use that numbering,
so they drift from the sheet's own row numbers by the blank rows skipped.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "EXCEL_ERROR_CODES",
    "Worksheet",
    "list_sheet_names",
    "read_worksheet",
    "to_cell_value",
]

# Error literals as rendered by spreadsheet engines that surface them as text.
EXCEL_ERROR_CODES = frozenset(
    {"#NULL!", "#DIV/0!", "#VALUE!", "#REF!", "#NAME?", "#NUM!", "#N/A", "#GETTING_DATA", "#SPILL!", "#CALC!"}
)


@dataclass
class Worksheet:
    """Decoded worksheet: optional self-reported header + data rows."""
    name: str
    header: list[str | None] | None
    rows: list[list[CellValue]] = field(default_factory=list)

    @property
    def width(self) -> int:
        if self.header is not None:
            return len(self.header)
        return len(self.rows[0]) if self.rows else 0

    def row_at(self, start_row: int) -> list[CellValue] | None:
        """Data row at 1-based offset ``start_row`` (1 = first row after header)."""
        if start_row < 1 or start_row > len(self.rows):
            return None
        return self.rows[start_row - 1]

    def iter_rows(self, start_row: int = 1) -> Iterator[list[CellValue]]:
        """Yield data rows lazily from the 1-based offset ``start_row``."""
        for i in range(max(start_row, 1) - 1, len(self.rows)):
            yield self.rows[i]


def to_cell_value(raw: Any, null_sentinels: set[str] | None = None) -> CellValue:
    """Tag one decoded cell value.

    bool is checked before int (bool is an int subclass in Python), and numpy
    scalars are unwrapped first.
    """
    if raw is None:
        return CellValue.empty()
    if isinstance(raw, np.generic):
        raw = raw.item()
    if isinstance(raw, float) and math.isnan(raw):
        return CellValue.empty()
    if raw is pd.NaT:
        return CellValue.empty()
    if isinstance(raw, bool):
        return CellValue.boolean(raw)
    if isinstance(raw, int):
        if I64_MIN <= raw <= I64_MAX:
            return CellValue.integer(raw)
        return CellValue.float_(float(raw))
    if isinstance(raw, float):
        if math.isinf(raw):
            return CellValue.error("#NUM!")
        return CellValue.float_(raw)
    if isinstance(raw, pd.Timestamp):
        return CellValue.timestamp(raw.to_pydatetime())
    if isinstance(raw, datetime):
        return CellValue.timestamp(raw)
    if isinstance(raw, date):
        return CellValue.timestamp(datetime.combine(raw, time()))
    if isinstance(raw, time):
        # 時刻のみのセルは日付を持たないので文字列扱い
        return CellValue.text(raw.isoformat())
    if isinstance(raw, str):
        stripped = raw.strip()
        if stripped == "":
            return CellValue.empty()
        if stripped in EXCEL_ERROR_CODES:
            return CellValue.error(stripped)
        if null_sentinels and stripped.upper() in null_sentinels:
            return CellValue.empty()
        return CellValue.text(raw)
    return CellValue.text(str(raw))


def _header_text(cell: CellValue) -> str | None:
    if cell.is_null():
        return None
    if cell.is_float() and float(cell.value).is_integer():
        return str(int(cell.value))
    if cell.is_bool():
        return "true" if cell.value else "false"
    text = str(cell.display()).strip()
    return text or None


def _open(path: Path) -> pd.ExcelFile:
    if not path.exists():
        raise WorkbookError(f"workbook not found: {path}")
    try:
        return pd.ExcelFile(path)
    except Exception as e:
        raise WorkbookError(f"failed to open workbook {path}: {e}") from e


def list_sheet_names(path: Path) -> list[str]:
    """Return the worksheet names of the workbook in workbook order."""
    with _open(path) as xls:
        return [str(n) for n in xls.sheet_names]


def read_worksheet(
    path: Path,
    sheet: str | None = None,
    *,
    has_header: bool = True,
    null_sentinels: Iterable[str] | None = None,
) -> Worksheet:
    """Read one worksheet into a Worksheet.

    Parameters
    ----------
    path: workbook path
    sheet: worksheet name (None = first sheet of the workbook)
    has_header: treat the first non-empty row as the header row
    null_sentinels: strings (case-insensitive) loaded as empty cells, e.g. ['NULL', 'N/A']
    """
    sentinels = {s.strip().upper() for s in null_sentinels} if null_sentinels else None
    with _open(path) as xls:
        names = [str(n) for n in xls.sheet_names]
        if not names:
            raise SchemaError(f"no sheet found in {path.name}")
        sheet_name = sheet if sheet is not None else names[0]
        if sheet_name not in names:
            raise SheetNotFoundError(sheet_name, names)
        try:
            df = xls.parse(sheet_name, header=None, dtype=object, keep_default_na=False)
        except Exception as e:
            raise WorkbookError(f"failed to read sheet '{sheet_name}': {e}") from e

    header: list[str | None] | None = None
    rows: list[list[CellValue]] = []
    skipped = 0
    for sheet_row, raw in enumerate(df.itertuples(index=False, name=None), start=1):
        cells = [to_cell_value(v, sentinels) for v in raw]
        if all(c.is_empty() for c in cells):
            skipped += 1
            logger.debug("sheet=%s skip blank row %d", sheet_name, sheet_row)
            continue
        if has_header and header is None:
            header = [_header_text(c) for c in cells]
            continue
        rows.append(cells)
    # セルは rows に変換済み、DataFrame は保持しない
    del df

    if skipped:
        logger.debug("sheet=%s skipped %d blank rows", sheet_name, skipped)
    return Worksheet(name=sheet_name, header=header, rows=rows)
