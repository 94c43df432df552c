from __future__ import annotations

import math
from datetime import datetime

import pytest

from excel2sql.db.batch_insert import bind_value, load
from excel2sql.db.dialect import Dialect
from excel2sql.errors import LoadError
from excel2sql.models.cell_value import CellValue as C
from excel2sql.models.column_spec import ColumnSpec, LogicalColumnType as T, TableTarget


@pytest.fixture()
def target() -> TableTarget:
    return TableTarget.create("t", [ColumnSpec("id", T.INT), ColumnSpec("name", T.TEXT)])


def _rows(n: int) -> list[list[C]]:
    return [[C.integer(i), C.text(f"r{i}")] for i in range(1, n + 1)]


@pytest.mark.parametrize("k", [0, 1, 3, 4, 30])
def test_transactions_are_ceil_k_over_b(fake_cursor, target, k):
    b = 3
    committed = load(fake_cursor, target, _rows(k), b, dialect=Dialect.POSTGRES)
    assert committed == k
    expected = math.ceil(k / b)
    assert fake_cursor.count("BEGIN") == expected
    assert fake_cursor.count("INSERT") == expected
    assert fake_cursor.count("COMMIT") == expected
    assert fake_cursor.count("ROLLBACK") == 0


def test_empty_input_issues_nothing(fake_cursor, target):
    assert load(fake_cursor, target, iter([]), 10, dialect=Dialect.POSTGRES) == 0
    assert fake_cursor.statements == []


def test_statement_order_per_batch(fake_cursor, target):
    load(fake_cursor, target, _rows(2), 1, dialect=Dialect.MYSQL)
    assert [s.split()[0] for s in fake_cursor.sql] == [
        "BEGIN", "INSERT", "COMMIT", "BEGIN", "INSERT", "COMMIT",
    ]
    assert fake_cursor.sql[1] == "INSERT INTO `t` (`id`, `name`) VALUES (%s, %s);"


def test_params_are_flattened_in_order(fake_cursor, target):
    load(fake_cursor, target, _rows(2), 5, dialect=Dialect.POSTGRES)
    assert fake_cursor.inserted_params() == [[1, "r1", 2, "r2"]]


def test_consumes_rows_lazily(cursor_factory, target):
    pulled = []

    def gen():
        for row in _rows(6):
            pulled.append(row)
            yield row

    with pytest.raises(LoadError):
        load(cursor_factory(fail_on_insert=1), target, gen(), 2, dialect=Dialect.POSTGRES)
    assert len(pulled) == 2


def test_driver_failure_rolls_back_and_keeps_earlier_batches(cursor_factory, target):
    cur = cursor_factory(fail_on_insert=2)
    with pytest.raises(LoadError) as e:
        load(cur, target, _rows(5), 2, dialect=Dialect.POSTGRES)
    err = e.value
    assert err.committed_rows == 2
    assert err.batch_index == 1
    assert err.row_range == (3, 4)
    assert "invalid input syntax" in err.driver_message
    assert cur.count("COMMIT") == 1
    assert cur.count("ROLLBACK") == 1
    assert cur.sql[-1] == "ROLLBACK"


def test_shape_mismatch_rolls_back(fake_cursor, target):
    rows = [[C.integer(1), C.text("a")], [C.integer(2)]]
    with pytest.raises(LoadError, match="row shape mismatch"):
        load(fake_cursor, target, rows, 10, dialect=Dialect.POSTGRES)
    assert fake_cursor.sql == ["BEGIN", "ROLLBACK"]


def test_bind_failure_names_column_and_value(fake_cursor, target):
    rows = [[C.text("abc"), C.text("a")]]
    with pytest.raises(LoadError) as e:
        load(fake_cursor, target, rows, 10, dialect=Dialect.POSTGRES)
    assert e.value.column == "id"
    assert e.value.value == "abc"
    assert "value type mismatch" in str(e.value)
    assert fake_cursor.count("ROLLBACK") == 1


def test_start_row_offsets_error_range(cursor_factory, target):
    cur = cursor_factory(fail_on_insert=1)
    with pytest.raises(LoadError) as e:
        load(cur, target, _rows(3), 10, dialect=Dialect.POSTGRES, start_row=5)
    assert e.value.row_range == (5, 7)


def test_metrics_and_progress_callbacks(fake_cursor, target):
    metrics = []
    progressed = []
    load(
        fake_cursor, target, _rows(5), 2,
        dialect=Dialect.MYSQL, metrics_callback=metrics.append, progress=progressed.append,
    )
    assert [m.batch_index for m in metrics] == [0, 1, 2]
    assert [m.batch_size for m in metrics] == [2, 2, 1]
    assert progressed == [2, 2, 1]


@pytest.mark.parametrize("bad", [0, -1, True, 1.5])
def test_invalid_batch_size(fake_cursor, target, bad):
    with pytest.raises(ValueError):
        load(fake_cursor, target, _rows(1), bad, dialect=Dialect.POSTGRES)


@pytest.mark.parametrize(
    ("cell", "logical", "expected"),
    [
        (C.empty(), T.INT, None),
        (C.error("#REF!"), T.TEXT, None),
        (C.integer(3), T.INT, 3),
        (C.float_(4.0), T.INT, 4),
        (C.integer(3), T.FLOAT, 3.0),
        (C.boolean(True), T.BOOL, True),
        (C.boolean(False), T.TEXT, "false"),
        (C.integer(9), T.TEXT, "9"),
        (C.timestamp(datetime(2024, 1, 2, 3, 4)), T.TEXT, "2024-01-02T03:04:00"),
        (C.timestamp(datetime(2024, 1, 2)), T.DATETIME, datetime(2024, 1, 2)),
        (C.text("x"), T.NULL, "x"),
    ],
)
def test_bind_value(cell, logical, expected):
    assert bind_value(cell, logical) == expected


@pytest.mark.parametrize(
    ("cell", "logical"),
    [
        (C.float_(1.5), T.INT),
        (C.text("1"), T.INT),
        (C.integer(1), T.BOOL),
        (C.text("2024-01-01"), T.DATETIME),
    ],
)
def test_bind_value_rejects_mismatch(cell, logical):
    with pytest.raises(ValueError):
        bind_value(cell, logical)


def test_dialect_is_required(fake_cursor, target):
    with pytest.raises(TypeError):
        load(fake_cursor, target, _rows(1), 10)
    with pytest.raises(TypeError):
        load(fake_cursor, target, _rows(1), 10, Dialect.MYSQL)
    assert fake_cursor.statements == []
