# Shared pytest fixtures
from __future__ import annotations

import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from excel2sql.config.connection import ConnectionDescriptorBuilder
from excel2sql.db.dialect import Dialect
from excel2sql.logging.init import reset_logging


class FakeCursor:
    """DB-API cursor double recording every statement.

    ``fail_on_insert`` makes the N-th (1-based) INSERT raise, simulating a
    driver error for that batch.
    """

    def __init__(self, fail_on_insert: int | None = None, fail_on_ddl: bool = False) -> None:
        self.statements: list[tuple[str, Any]] = []
        self.fail_on_insert = fail_on_insert
        self.fail_on_ddl = fail_on_ddl
        self.insert_count = 0
        self.closed = False

    def execute(self, sql: str, params: Any = None) -> None:
        self.statements.append((sql, params))
        if sql.startswith("CREATE TABLE") and self.fail_on_ddl:
            raise RuntimeError('relation "sheet1" already exists with different columns')
        if sql.startswith("INSERT"):
            self.insert_count += 1
            if self.fail_on_insert is not None and self.insert_count == self.fail_on_insert:
                raise RuntimeError("invalid input syntax for type bigint")

    def close(self) -> None:
        self.closed = True

    # helpers for assertions
    @property
    def sql(self) -> list[str]:
        return [s for s, _ in self.statements]

    def count(self, keyword: str) -> int:
        return sum(1 for s in self.sql if s.startswith(keyword))

    def inserted_params(self) -> list[Any]:
        return [p for s, p in self.statements if s.startswith("INSERT")]


@pytest.fixture()
def fake_cursor() -> FakeCursor:
    return FakeCursor()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        # .env 読み込みで設定された値もテスト後に元へ戻す
        monkeypatch.setenv("DATABASE_URL", "")
        monkeypatch.delenv("DATABASE_URL")
        reset_logging()
        yield p


def make_excel(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    """Write a workbook with the given raw rows (no pandas header/index)."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


@pytest.fixture()
def scores_workbook(temp_workdir: Path) -> Path:
    return make_excel(
        temp_workdir / "data" / "scores.xlsx",
        {
            "sheet1": [
                ["id", "name", "score", "passed", "taken_at"],
                [1, "Ann", 92.5, True, datetime(2024, 4, 1, 9, 30)],
                [2, "Bob", 71.0, False, datetime(2024, 4, 2, 10, 0)],
                [3, "Cid", 88.25, True, datetime(2024, 4, 3, 11, 15)],
            ],
            "other": [
                ["k", "v"],
                ["a", 1],
            ],
        },
    )


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source: ./data/scores.xlsx
sheet: sheet1
batch_size: 2
database:
  dialect: postgres
  host: db.local
  port: 5432
  name: mydb
  user: u
  password: p
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def pg_descriptor():
    return ConnectionDescriptorBuilder(Dialect.POSTGRES).host("db.local").name("mydb").user("u").password("p").build()


@pytest.fixture()
def mysql_descriptor():
    return ConnectionDescriptorBuilder(Dialect.MYSQL).name("mydb").user("root").password("secret").build()


@pytest.fixture()
def excel_factory():
    return make_excel


@pytest.fixture()
def cursor_factory():
    return FakeCursor
