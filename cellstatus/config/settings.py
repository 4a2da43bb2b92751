"""Service config: database connection (with PG* env fallbacks) and listen port.

Two input shapes are accepted by get_service_config:
- nested YAML: {"database": {...}, "server": {"port": 3000, "static_dir": ...}}
- flat form sent by a desktop UI: {"server": "db-host", "user": ..., "password": ...,
  "database": "cells", "port": 3000, "db_port": 5432, "options": {...}}
In the flat form "port" is the HTTP port; the database port is "db_port".
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from cellstatus.core.errors import ConfigError

DEFAULT_PORT = 3000
DEFAULT_DB_PORT = 5432

# Plain or schema-qualified SQL identifier (dbo.tb_cells); interpolated into the select.
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


@dataclass(frozen=True)
class DatabaseConfig:
    """Backend connection parameters plus the table layout to read cells from."""

    host: str = "127.0.0.1"
    port: int = DEFAULT_DB_PORT
    database: str = "cells"
    user: str = "cells"
    password: str = ""
    options: Dict[str, Any] = field(default_factory=dict)
    table: str = "tb_cells"
    number_column: str = "number"
    status_column: str = "status_id"
    pool_min: int = 1
    pool_max: int = 5

    def connect_params(self) -> Dict[str, Any]:
        """Keyword arguments for psycopg2.connect / ThreadedConnectionPool."""
        params: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "dbname": self.database,
            "user": self.user,
            "password": self.password,
        }
        params.update(self.options)
        return params


@dataclass(frozen=True)
class ServiceConfig:
    """Everything start() needs: backend parameters and the HTTP listen port."""

    database: DatabaseConfig
    port: int = DEFAULT_PORT


def read_config(config_path: Optional[str] = None) -> Tuple[dict, str]:
    """Load YAML config. Returns (config, resolved_path).

    Resolution: argument, CELLSTATUS_CONFIG, config/config.yaml, config/config.yaml.example.
    """
    candidates = [config_path, os.environ.get("CELLSTATUS_CONFIG")]
    candidates += [str(_PROJECT_ROOT / "config" / "config.yaml"), str(_PROJECT_ROOT / "config" / "config.yaml.example")]
    for candidate in candidates:
        if not candidate:
            continue
        path = Path(candidate)
        if path.exists():
            break
        if candidate == config_path:
            raise ConfigError(f"Config not found: {config_path}")
    else:
        raise ConfigError("No config file found (set CELLSTATUS_CONFIG or create config/config.yaml)")
    resolved = str(path.resolve())
    with open(resolved, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ConfigError(f"Config root must be a mapping: {resolved}")
    return config, resolved


def _check_int(value: Any, name: str, low: int, high: Optional[int] = None) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if number < low or (high is not None and number > high):
        raise ConfigError(f"{name} out of range: {number}")
    return number


def _check_port(value: Any, name: str, low: int = 0) -> int:
    """0 is only meaningful for the listen port (OS-assigned)."""
    return _check_int(value, name, low, 65535)


def _check_identifier(value: Any, name: str) -> str:
    if not isinstance(value, str) or not _IDENTIFIER_RE.match(value):
        raise ConfigError(f"{name} is not a valid SQL identifier: {value!r}")
    return value


def _or_default(value: Any, default: Any) -> Any:
    return default if value is None or value == "" else value


def _first(section: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        v = section.get(k)
        if v is not None and v != "":
            return v
    return None


def get_database_config(section: Optional[Dict[str, Any]]) -> DatabaseConfig:
    """Build DatabaseConfig from a mapping, with PGHOST/PGPORT/PGDATABASE/PGUSER/PGPASSWORD fallbacks."""
    db = section or {}
    defaults = DatabaseConfig()
    options = db.get("options") or {}
    if not isinstance(options, dict):
        raise ConfigError("database.options must be a mapping")
    pool_min = _check_int(_or_default(db.get("pool_min"), defaults.pool_min), "database.pool_min", 1)
    pool_max = _check_int(_or_default(db.get("pool_max"), defaults.pool_max), "database.pool_max", 1)
    if pool_max < pool_min:
        raise ConfigError(f"invalid pool size: min={pool_min} max={pool_max}")
    host = _first(db, "host", "server") or os.environ.get("PGHOST") or defaults.host
    port = _first(db, "port", "db_port")
    if port is None:
        port = os.environ.get("PGPORT") or defaults.port
    name = _first(db, "database", "Database", "db", "dbname") or os.environ.get("PGDATABASE") or defaults.database
    user = _first(db, "user", "username") or os.environ.get("PGUSER") or defaults.user
    password = _first(db, "password") or os.environ.get("PGPASSWORD") or defaults.password
    return DatabaseConfig(
        host=str(host),
        port=_check_port(port, "database.port", low=1),
        database=str(name),
        user=str(user),
        password=str(password),
        options=dict(options),
        table=_check_identifier(db.get("table") or defaults.table, "database.table"),
        number_column=_check_identifier(db.get("number_column") or defaults.number_column, "database.number_column"),
        status_column=_check_identifier(db.get("status_column") or defaults.status_column, "database.status_column"),
        pool_min=pool_min,
        pool_max=pool_max,
    )


def get_service_config(config: Optional[Dict[str, Any]] = None) -> ServiceConfig:
    """Return ServiceConfig from nested YAML config or a flat UI form dict."""
    cfg = config or {}
    if isinstance(cfg.get("database"), dict):
        server = cfg.get("server") if isinstance(cfg.get("server"), dict) else {}
        database = get_database_config(cfg["database"])
        port = server.get("port", DEFAULT_PORT)
    else:
        flat = {k: v for k, v in cfg.items() if k != "port"}
        database = get_database_config(flat)
        port = cfg.get("port", DEFAULT_PORT)
    if port is None:
        port = DEFAULT_PORT
    return ServiceConfig(database=database, port=_check_port(port, "server.port"))


def get_static_dir(config: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """server.static_dir from nested config, or None to use the packaged public/ directory."""
    server = (config or {}).get("server")
    if isinstance(server, dict) and server.get("static_dir"):
        return str(server["static_dir"])
    return None
