"""Runtime configuration read from the environment and an optional .env file."""

from __future__ import annotations

import logging
import os
import re
import sys
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Mapping, Optional

import platformdirs

_log = logging.getLogger("shiori")

_ENV_PREFIX = "SHIORI_"

_DURATION_PART = re.compile(r"(\d*\.?\d*)(ns|us|µs|μs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


class ConfigError(Exception):
    """Raised when the configuration cannot be read or completed."""


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``10s``, ``1m30s`` or ``1.5h``."""
    rest = text
    negative = False
    if rest[:1] in ("+", "-"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ConfigError(f"invalid duration {text!r}")

    total = 0.0
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART.match(rest, pos)
        if match is None or not any(ch.isdigit() for ch in match.group(1)):
            raise ConfigError(f"invalid duration {text!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return timedelta(seconds=-total if negative else total)


def _format_duration(value: timedelta) -> str:
    total = value.total_seconds()
    if total == 0:
        return "0s"
    sign = "-" if total < 0 else ""
    total = abs(total)
    if total < 1:
        return f"{sign}{total * 1000:g}ms"
    hours = int(total // 3600)
    minutes = int((total - hours * 3600) // 60)
    seconds = total - hours * 3600 - minutes * 60
    out = f"{seconds:g}s"
    if hours or minutes:
        out = f"{minutes}m{out}"
    if hours:
        out = f"{hours}h{out}"
    return sign + out


def _parse_bool(text: str) -> bool:
    if text in ("1", "t", "T", "TRUE", "true", "True"):
        return True
    if text in ("0", "f", "F", "FALSE", "false", "False"):
        return False
    raise ConfigError(f"invalid boolean {text!r}")


def _parse_int(text: str) -> int:
    if not re.fullmatch(r"[+-]?[0-9]+", text):
        raise ConfigError(f"invalid integer {text!r}")
    return int(text)


def _to_bytes(text: str) -> bytes:
    return text.encode()


def read_dot_env(path: str = ".env") -> dict[str, str]:
    """Read ``KEY=value`` lines from a .env file; a missing file gives ``{}``."""
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except FileNotFoundError:
        return {}
    except UnicodeDecodeError as exc:
        raise ConfigError(f"error reading dotenv: {exc}") from exc
    except OSError:
        return {}

    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    result: dict[str, str] = {}
    for raw in lines:
        line = raw.rstrip("\r")
        if line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            _log.warning("invalid line in .env file: %r", line)
            continue
        result[key] = value
    return result


def get_storage_directory(portable_mode: bool) -> str:
    """Return the directory where data is stored by default."""
    if portable_mode:
        program = sys.argv[0] if sys.argv and sys.argv[0] else sys.executable
        if not program:
            raise ConfigError("couldn't determine the executable path")
        return os.path.join(os.path.dirname(os.path.abspath(program)), "shiori-data")
    try:
        return platformdirs.user_data_dir("shiori", appauthor=False)
    except Exception as exc:  # platform lookups can fail in unusual ways
        raise ConfigError("couldn't determine the data directory") from exc


@dataclass
class HttpConfig:
    """Settings of the HTTP server."""

    enabled: bool = True
    port: int = 8080
    address: str = ":"
    root_path: str = "/"
    access_log: bool = True
    serve_web_ui: bool = True
    secret_key: bytes = field(default_factory=bytes)
    body_limit: int = 1024
    read_timeout: timedelta = timedelta(seconds=10)
    write_timeout: timedelta = timedelta(seconds=10)
    idle_timeout: timedelta = timedelta(seconds=10)
    disable_keep_alive: bool = True
    disable_pre_parse_multipart_form: bool = True

    def set_defaults(self, logger: Optional[logging.Logger] = None) -> None:
        """Fill in a random secret key when none is configured."""
        logger = logger or _log
        if not self.secret_key:
            logger.warning(
                "SHIORI_HTTP_SECRET_KEY is not set, using random value. "
                "This means that all sessions will be invalidated on server restart."
            )
            self.secret_key = _to_bytes(str(uuid.uuid4()))


@dataclass
class DatabaseConfig:
    """Database selection; ``dbms`` is the deprecated form of ``url``."""

    dbms: str = ""
    url: str = ""


@dataclass
class StorageConfig:
    """Location of stored data."""

    data_dir: str = ""


@dataclass
class Config:
    """The whole configuration."""

    hostname: str = ""
    development: bool = False
    log_level: str = ""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    http: HttpConfig = field(default_factory=HttpConfig)

    def set_defaults(
        self, logger: Optional[logging.Logger] = None, portable_mode: bool = False
    ) -> None:
        """Fill in the storage directory, database URL and secret key."""
        logger = logger or _log
        if not self.storage.data_dir:
            self.storage.data_dir = get_storage_directory(portable_mode)

        if not self.database.dbms and not self.database.url:
            db_path = os.path.join(self.storage.data_dir, "shiori.db")
            self.database.url = f"sqlite:///{db_path}"

        self.http.set_defaults(logger)

    def debug_configuration(self, logger: Optional[logging.Logger] = None) -> None:
        """Log every setting at debug level."""
        logger = logger or _log
        http = self.http
        logger.debug("Configuration:")
        for name, value in (
            ("SHIORI_HOSTNAME", self.hostname),
            ("SHIORI_DEVELOPMENT", str(self.development).lower()),
            ("SHIORI_DATABASE_URL", self.database.url),
            ("SHIORI_DBMS", self.database.dbms),
            ("SHIORI_DIR", self.storage.data_dir),
            ("SHIORI_HTTP_ENABLED", str(http.enabled).lower()),
            ("SHIORI_HTTP_PORT", http.port),
            ("SHIORI_HTTP_ADDRESS", http.address),
            ("SHIORI_HTTP_ROOT_PATH", http.root_path),
            ("SHIORI_HTTP_ACCESS_LOG", str(http.access_log).lower()),
            ("SHIORI_HTTP_SERVE_WEB_UI", str(http.serve_web_ui).lower()),
            ("SHIORI_HTTP_SECRET_KEY", f"{len(http.secret_key)} characters"),
            ("SHIORI_HTTP_BODY_LIMIT", http.body_limit),
            ("SHIORI_HTTP_READ_TIMEOUT", _format_duration(http.read_timeout)),
            ("SHIORI_HTTP_WRITE_TIMEOUT", _format_duration(http.write_timeout)),
            ("SHIORI_HTTP_IDLE_TIMEOUT", _format_duration(http.idle_timeout)),
            ("SHIORI_HTTP_DISABLE_KEEP_ALIVE", str(http.disable_keep_alive).lower()),
            (
                "SHIORI_HTTP_DISABLE_PARSE_MULTIPART_FORM",
                str(http.disable_pre_parse_multipart_form).lower(),
            ),
        ):
            logger.debug(" %s: %s", name, value)


_Converter = Callable[[str], object]

# (section, attribute, key, converter, default)
_FIELDS: tuple[tuple[Optional[str], str, str, _Converter, Optional[str]], ...] = (
    (None, "hostname", "HOSTNAME", str, None),
    (None, "development", "DEVELOPMENT", _parse_bool, "False"),
    ("database", "dbms", "DBMS", str, None),
    ("database", "url", "DATABASE_URL", str, None),
    ("storage", "data_dir", "DIR", str, None),
    ("http", "enabled", "HTTP_ENABLED", _parse_bool, "True"),
    ("http", "port", "HTTP_PORT", _parse_int, "8080"),
    ("http", "address", "HTTP_ADDRESS", str, ":"),
    ("http", "root_path", "HTTP_ROOT_PATH", str, "/"),
    ("http", "access_log", "HTTP_ACCESS_LOG", _parse_bool, "True"),
    ("http", "serve_web_ui", "HTTP_SERVE_WEB_UI", _parse_bool, "True"),
    ("http", "secret_key", "HTTP_SECRET_KEY", _to_bytes, None),
    ("http", "body_limit", "HTTP_BODY_LIMIT", _parse_int, "1024"),
    ("http", "read_timeout", "HTTP_READ_TIMEOUT", parse_duration, "10s"),
    ("http", "write_timeout", "HTTP_WRITE_TIMEOUT", parse_duration, "10s"),
    ("http", "idle_timeout", "HTTP_IDLE_TIMEOUT", parse_duration, "10s"),
    ("http", "disable_keep_alive", "HTTP_DISABLE_KEEP_ALIVE", _parse_bool, "true"),
    (
        "http",
        "disable_pre_parse_multipart_form",
        "HTTP_DISABLE_PARSE_MULTIPART_FORM",
        _parse_bool,
        "true",
    ),
)


def parse_server_configuration(
    environ: Optional[Mapping[str, str]] = None, dotenv_path: str = ".env"
) -> Config:
    """Build the configuration from the environment and a .env file.

    ``HOSTNAME`` is read unprefixed from the environment; other keys are
    looked up first in the .env file and then as ``SHIORI_<KEY>`` variables.
    """
    env = os.environ if environ is None else environ
    dotenv = read_dot_env(dotenv_path)

    def lookup(key: str) -> Optional[str]:
        if key == "HOSTNAME":
            return env.get("HOSTNAME", "")
        if key in dotenv:
            return dotenv[key]
        return env.get(_ENV_PREFIX + key)

    cfg = Config()
    for section, attr, key, convert, default in _FIELDS:
        value = lookup(key)
        if value is None or (value == "" and convert is not str):
            if default is None:
                continue
            value = default
        try:
            converted = convert(value)
        except ConfigError as exc:
            raise ConfigError(f"Error parsing configuration: {key}: {exc}") from exc
        target = cfg if section is None else getattr(cfg, section)
        setattr(target, attr, converted)
    return cfg