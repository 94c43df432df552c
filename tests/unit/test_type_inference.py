from __future__ import annotations

from datetime import datetime

import pytest

from excel2sql.errors import SchemaError
from excel2sql.excel.reader import Worksheet
from excel2sql.models.cell_value import CellValue as C
from excel2sql.models.column_spec import LogicalColumnType as T
from excel2sql.services.type_inference import classify, infer, infer_schema, resolve_header, widen


@pytest.mark.parametrize(
    ("cell", "expected"),
    [
        (C.integer(7), T.INT),
        (C.float_(2.5), T.FLOAT),
        (C.boolean(False), T.BOOL),
        (C.text("x"), T.TEXT),
        (C.empty(), T.NULL),
        (C.error("#DIV/0!"), T.NULL),
        (C.timestamp(datetime(2024, 1, 1)), T.DATETIME),
    ],
)
def test_classify(cell, expected):
    assert classify(cell) is expected


def test_widen_lattice():
    assert widen(T.NULL, T.INT) is T.INT
    assert widen(T.DATETIME, T.NULL) is T.DATETIME
    assert widen(T.INT, T.FLOAT) is T.FLOAT
    assert widen(T.FLOAT, T.INT) is T.FLOAT
    assert widen(T.INT, T.TEXT) is T.TEXT
    assert widen(T.BOOL, T.INT) is T.TEXT
    assert widen(T.DATETIME, T.FLOAT) is T.TEXT
    assert widen(T.BOOL, T.BOOL) is T.BOOL


def test_widen_is_commutative():
    for a in T:
        for b in T:
            assert widen(a, b) is widen(b, a)


def test_infer_single_row_scenario():
    columns = infer(["id", "name", "score"], [[C.integer(1), C.text("Ann"), C.float_(92.5)]])
    assert [(c.name, c.inferred_type) for c in columns] == [
        ("id", T.INT),
        ("name", T.TEXT),
        ("score", T.FLOAT),
    ]
    assert not any(c.nullable for c in columns)


def test_infer_widens_across_rows():
    columns = infer(
        ["a", "b", "c"],
        [
            [C.integer(1), C.integer(1), C.empty()],
            [C.float_(1.5), C.text("n/a"), C.empty()],
        ],
    )
    assert [c.inferred_type for c in columns] == [T.FLOAT, T.TEXT, T.NULL]
    assert columns[2].nullable


def test_infer_null_then_value_is_nullable():
    columns = infer(["x"], [[C.error("#N/A")], [C.boolean(True)]])
    assert columns[0].inferred_type is T.BOOL
    assert columns[0].nullable


def test_infer_synthesizes_blank_header_names():
    columns = infer(["id", None, "  "], [[C.integer(1), C.integer(2), C.integer(3)]])
    assert [c.name for c in columns] == ["id", "col_2", "col_3"]


def test_infer_rejects_duplicate_names():
    with pytest.raises(SchemaError, match="duplicate"):
        infer(["a", "a"], [[C.integer(1), C.integer(2)]])


def test_infer_length_mismatch():
    with pytest.raises(SchemaError, match="header has 3 columns but sample row 1 has 2 values"):
        infer(["a", "b", "c"], [[C.integer(1), C.integer(2)]])


def test_infer_no_data():
    with pytest.raises(SchemaError, match="no data"):
        infer(["a"], [])


def test_resolve_header_precedence():
    assert resolve_header(["x"], ["y"]) == ["x"]
    assert resolve_header(None, ["y"]) == ["y"]
    with pytest.raises(SchemaError, match="no header"):
        resolve_header(None, None)


def _sheet(header, rows) -> Worksheet:
    return Worksheet(name="sheet1", header=header, rows=rows)


def test_infer_schema_explicit_header_overrides():
    ws = _sheet(["id"], [[C.integer(1)]])
    columns = infer_schema(ws, headers=["identifier"])
    assert columns[0].name == "identifier"


def test_infer_schema_no_header():
    ws = _sheet(None, [[C.integer(1)]])
    with pytest.raises(SchemaError, match="no header"):
        infer_schema(ws)


def test_infer_schema_data_start_row_beyond_end():
    ws = _sheet(["id"], [[C.integer(1)]])
    with pytest.raises(SchemaError, match="no data"):
        infer_schema(ws, data_start_row=2)


def test_infer_schema_starts_at_data_start_row():
    ws = _sheet(["v"], [[C.text("junk")], [C.integer(5)], [C.integer(6)]])
    columns = infer_schema(ws, data_start_row=2)
    assert columns[0].inferred_type is T.INT


def test_infer_schema_sample_rows_limits_window():
    ws = _sheet(["v"], [[C.integer(1)], [C.text("late text")]])
    assert infer_schema(ws, sample_rows=1)[0].inferred_type is T.INT
    assert infer_schema(ws, sample_rows=2)[0].inferred_type is T.TEXT


def test_infer_schema_rejects_bad_sample_rows():
    ws = _sheet(["v"], [[C.integer(1)]])
    with pytest.raises(SchemaError):
        infer_schema(ws, sample_rows=0)
