from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..db.dialect import Dialect
from ..errors import ConfigError
from .connection import ENV_DATABASE_URL, ConnectionDescriptor, ConnectionDescriptorBuilder, parse_url

"""Import job configuration loader.

Responsibilities:
- Load the YAML job file (default ``config/import.yml``)
- Validate it against ``config_schema.json`` (unknown keys rejected)
- Apply defaults (data_start_row=1, sample_rows=100, batch_size=1000)
- Resolve the database connection descriptor

接続情報の解決優先順位:
    1. 明示 URL (CLI --database-url)
    2. 環境変数 DATABASE_URL (.env 読み込み後)
    3. config の database.url
    4. config の database 個別項目 (dialect/host/port/name/user/password)
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "DatabaseSection",
    "ImportJob",
    "load_config",
    "resolve_database",
    "resolve_dialect",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")

DEFAULT_DATA_START_ROW = 1
DEFAULT_SAMPLE_ROWS = 100
DEFAULT_BATCH_SIZE = 1000


@dataclass(frozen=True)
class DatabaseSection:
    """``database`` section of the job file (all optional)."""
    url: str | None = None
    dialect: str | None = None
    host: str | None = None
    port: int | None = None
    name: str | None = None
    user: str | None = None
    password: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class ImportJob:
    """One worksheet -> one table import."""
    source: Path
    sheet: str | None = None  # None = 先頭シート
    table: str | None = None  # None = シート名
    data_start_row: int = DEFAULT_DATA_START_ROW
    headers: tuple[str | None, ...] | None = None
    has_header: bool = True
    sample_rows: int = DEFAULT_SAMPLE_ROWS
    batch_size: int = DEFAULT_BATCH_SIZE
    null_sentinels: frozenset[str] | None = None
    database: DatabaseSection = field(default_factory=DatabaseSection)

    def with_overrides(self, **overrides: Any) -> ImportJob:
        """Copy with the non-None overrides applied (CLI flags)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "source" in changes:
            changes["source"] = Path(changes["source"])
        if "headers" in changes:
            changes["headers"] = tuple(changes["headers"])
        try:
            return replace(self, **changes)
        except TypeError as e:
            raise ConfigError(f"invalid override: {e}") from e


def _validate_config_schema(data: Any) -> None:
    """Validate raw config data against the JSON schema.

    Raises:
        ConfigError: schema file missing/invalid, or the data violates the schema.
    """
    if not SCHEMA_PATH.exists():  # pragma: no cover - packaging error
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:  # pragma: no cover - packaging error
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path)
        suffix = f" (at {location})" if location else ""
        raise ConfigError(f"config validation failed: {e.message}{suffix}") from e


def load_config(path: Path) -> ImportJob:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    db_raw = data.get("database", {})
    db = DatabaseSection(
        url=db_raw.get("url"),
        dialect=db_raw.get("dialect"),
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        name=db_raw.get("name"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
    )
    headers = data.get("headers")
    sentinels = data.get("null_sentinels")
    return ImportJob(
        source=Path(data["source"]),
        sheet=data.get("sheet"),
        table=data.get("table"),
        data_start_row=data.get("data_start_row", DEFAULT_DATA_START_ROW),
        headers=tuple(headers) if headers is not None else None,
        has_header=data.get("has_header", True),
        sample_rows=data.get("sample_rows", DEFAULT_SAMPLE_ROWS),
        batch_size=data.get("batch_size", DEFAULT_BATCH_SIZE),
        null_sentinels=frozenset(s.strip().upper() for s in sentinels) if sentinels else None,
        database=db,
    )


def resolve_database(section: DatabaseSection, url: str | None = None) -> ConnectionDescriptor:
    """Resolve the connection descriptor (see module docstring for precedence)."""
    if url:
        return parse_url(url)
    env_url = os.getenv(ENV_DATABASE_URL)
    if env_url:
        return parse_url(env_url)
    if section.url:
        return parse_url(section.url)
    if not section.dialect:
        raise ConfigError(
            f"no database configured: pass --database-url, set {ENV_DATABASE_URL}, "
            "or add a database section to the config"
        )
    builder = ConnectionDescriptorBuilder(Dialect.from_scheme(section.dialect))
    if section.host is not None:
        builder.host(section.host)
    if section.port is not None:
        builder.port(section.port)
    if section.name is not None:
        builder.name(section.name)
    if section.user is not None:
        builder.user(section.user)
    if section.password is not None:
        builder.password(section.password)
    return builder.build()


def resolve_dialect(section: DatabaseSection, url: str | None = None) -> Dialect:
    """Dialect only (for --dry-run); credentials need not be complete."""
    try:
        return resolve_database(section, url).dialect
    except ConfigError:
        if section.dialect and not url:
            return Dialect.from_scheme(section.dialect)
        raise
