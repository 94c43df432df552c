from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from urllib.parse import quote, unquote

from ..db.dialect import Dialect
from ..errors import ConfigError

"""Connection descriptor: parse / build / serialize database connection strings.

Canonical form (all five fields mandatory on parse)::

    <mysql|postgres>://<user>:<password>@<host>:<port>/<database>

User and password are percent-encoded by ``to_url`` and percent-decoded by
``parse_url``, so a password containing ``@`` or ``:`` survives a round trip.
No network I/O happens here; ``excel2sql.db.connection`` opens the connection.
"""

__all__ = [
    "ConnectionDescriptor",
    "ConnectionDescriptorBuilder",
    "parse_url",
    "from_env",
]

DEFAULT_HOST = "localhost"
ENV_DATABASE_URL = "DATABASE_URL"


@dataclass(frozen=True)
class ConnectionDescriptor:
    dialect: Dialect
    host: str
    port: int
    name: str  # database name
    user: str
    password: str = field(repr=False)

    def to_url(self) -> str:
        """Serialize to the canonical URL form accepted by ``parse_url``."""
        return (
            f"{self.dialect.value}://{quote(self.user, safe='')}:{quote(self.password, safe='')}"
            f"@{self.host}:{self.port}/{self.name}"
        )

    def redacted_url(self) -> str:
        """URL with the password masked, for log output."""
        return f"{self.dialect.value}://{quote(self.user, safe='')}:***@{self.host}:{self.port}/{self.name}"

    def __str__(self) -> str:
        return self.redacted_url()


def _check_port(port: int) -> int:
    if isinstance(port, bool) or not isinstance(port, int):
        raise ConfigError(f"port must be an integer, got {port!r}")
    if not 1 <= port <= 65535:
        raise ConfigError(f"port out of range (1-65535): {port}")
    return port


def parse_url(url: str) -> ConnectionDescriptor:
    """Parse a connection string into a ConnectionDescriptor.

    All-or-nothing: any missing / malformed field raises ConfigError.

    Examples:
        >>> d = parse_url("postgres://u:p@db.local:5432/mydb")
        >>> (d.dialect, d.host, d.port, d.name, d.user, d.password)
        (<Dialect.POSTGRES: 'postgres'>, 'db.local', 5432, 'mydb', 'u', 'p')
    """
    if not isinstance(url, str) or not url.strip():
        raise ConfigError("database URL is empty")
    url = url.strip()

    scheme, sep, rest = url.partition("://")
    if not sep or not scheme:
        raise ConfigError("failed to parse database URL: missing scheme")
    dialect = Dialect.from_scheme(scheme.lower())

    # pattern はローカルに保持 (モジュール共有の compiled 状態を持たない)
    pattern = (
        r"(?P<user>[^:@/]+):(?P<password>[^@/]+)@"
        r"(?P<host>[^:@/]+):(?P<port>[^/]+)/(?P<name>[^/?#]+)"
    )
    m = re.fullmatch(pattern, rest)
    if m is None:
        raise ConfigError(
            f"failed to parse database URL (expected {dialect.value}://user:password@host:port/name)"
        )

    port_raw = m.group("port")
    # "²" などの Unicode 数字は int() で失敗するので ASCII に限定
    if not (port_raw.isascii() and port_raw.isdigit()):
        raise ConfigError(f"port is not numeric: {port_raw!r}")
    port = _check_port(int(port_raw))

    return ConnectionDescriptor(
        dialect=dialect,
        host=m.group("host"),
        port=port,
        name=m.group("name"),
        user=unquote(m.group("user")),
        password=unquote(m.group("password")),
    )


def from_env(var: str = ENV_DATABASE_URL) -> ConnectionDescriptor:
    """Parse the connection string held in environment variable ``var``."""
    value = os.getenv(var)
    if not value:
        raise ConfigError(f"environment variable `{var}` is not set")
    return parse_url(value)


class ConnectionDescriptorBuilder:
    """Programmatic construction of a ConnectionDescriptor.

    Setters overwrite the previous value and return the builder. ``build`` can
    be called repeatedly; each call returns an independent descriptor.

        >>> b = ConnectionDescriptorBuilder(Dialect.MYSQL).name("app").user("root").password("pw")
        >>> b.build().port
        3306
    """

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect
        self._host: str | None = None
        self._port: int | None = None
        self._name: str | None = None
        self._user: str | None = None
        self._password: str | None = None

    def host(self, host: str) -> ConnectionDescriptorBuilder:
        self._host = host
        return self

    def port(self, port: int) -> ConnectionDescriptorBuilder:
        self._port = port
        return self

    def name(self, name: str) -> ConnectionDescriptorBuilder:
        self._name = name
        return self

    def user(self, user: str) -> ConnectionDescriptorBuilder:
        self._user = user
        return self

    def password(self, password: str) -> ConnectionDescriptorBuilder:
        self._password = password
        return self

    def build(self) -> ConnectionDescriptor:
        """Validate every field and return a descriptor.

        Raises:
            ConfigError: when name, user or password was never set (all missing
                fields are listed), or the port is out of range, or the host / database name has
                surrounding whitespace or URL delimiter characters.
        """
        missing = []
        if not self._name:
            missing.append("database name")
        if not self._user:
            missing.append("user")
        if not self._password:
            missing.append("password")
        if missing:
            raise ConfigError(f"{', '.join(missing)} not specified")

        host = self._host or DEFAULT_HOST
        if host != host.strip() or any(ch in host for ch in ":/@"):
            raise ConfigError(f"invalid host: {host!r}")
        if self._name != self._name.strip() or any(ch in self._name for ch in "/?#"):  # type: ignore[union-attr]
            raise ConfigError(f"invalid database name: {self._name!r}")

        port = _check_port(self._port if self._port is not None else self.dialect.default_port)
        return ConnectionDescriptor(
            dialect=self.dialect,
            host=host,
            port=port,
            name=self._name,  # type: ignore[arg-type]
            user=self._user,  # type: ignore[arg-type]
            password=self._password,
        )
