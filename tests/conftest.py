"""Pytest fixtures for cell status server tests."""

import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pytest
import yaml

# Ensure project root is in path for cellstatus imports
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from cellstatus.config.settings import DatabaseConfig, ServiceConfig  # noqa: E402
from cellstatus.store.base import ConnectionProvider  # noqa: E402

# Backend rows in arbitrary order, including an excluded (status 0) cell.
EXAMPLE_ROWS = [
    {"number": 5, "status": 210},
    {"number": 3, "status": 190},
    {"number": 1, "status": 180},
    {"number": 4, "status": 0},
    {"number": 2, "status": 200},
]
EXAMPLE_CELLS = [
    {"number": 1, "status": 180},
    {"number": 2, "status": 200},
    {"number": 3, "status": 190},
    {"number": 5, "status": 210},
]
EXAMPLE_STATS = {"total": 4, "free": 1, "occupied": 1, "unavailable": 2}


class FakeProvider(ConnectionProvider):
    """In-memory ConnectionProvider. block=True makes fetch_all wait until release is set."""

    def __init__(
        self,
        rows: Optional[List[Dict[str, Any]]] = None,
        open_error: Optional[Exception] = None,
        fetch_error: Optional[Exception] = None,
        close_error: Optional[Exception] = None,
        block: bool = False,
    ):
        self.rows = list(rows if rows is not None else EXAMPLE_ROWS)
        self.open_error = open_error
        self.fetch_error = fetch_error
        self.close_error = close_error
        self.block = block
        self.entered = threading.Event()
        self.release = threading.Event()
        self.statements: List[str] = []
        self.open_calls = 0
        self.close_calls = 0
        self.database: Optional[DatabaseConfig] = None
        self._open = False

    def open(self) -> None:
        self.open_calls += 1
        if self.open_error is not None:
            raise self.open_error
        self._open = True

    def fetch_all(self, statement: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        self.statements.append(statement)
        self.entered.set()
        if self.block:
            self.release.wait(10)
        if self.fetch_error is not None:
            raise self.fetch_error
        return [dict(r) for r in self.rows]

    def close(self) -> None:
        self.close_calls += 1
        self._open = False
        if self.close_error is not None:
            raise self.close_error

    @property
    def closed(self) -> bool:
        return not self._open


class ProviderFactory:
    """Callable provider factory recording every FakeProvider it hands out."""

    def __init__(self, **provider_kwargs: Any):
        self.provider_kwargs = provider_kwargs
        self.created: List[FakeProvider] = []

    def __call__(self, database: DatabaseConfig) -> FakeProvider:
        provider = FakeProvider(**self.provider_kwargs)
        provider.database = database
        self.created.append(provider)
        return provider


class FakeListener:
    """Stands in for HttpListener without opening sockets."""

    def __init__(self, app: Any, host: str, port: int, graceful_timeout: float = 3.0, start_error=None):
        self.app = app
        self.host = host
        self.requested_port = port
        self.graceful_timeout = graceful_timeout
        self.start_error = start_error
        self.shutdown_calls: List[float] = []

    def start(self) -> int:
        if self.start_error is not None:
            raise self.start_error
        return self.requested_port or 4321

    def shutdown(self, timeout: float) -> bool:
        self.shutdown_calls.append(timeout)
        return True


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


@pytest.fixture
def project_root() -> Path:
    return _project_root()


@pytest.fixture
def config_path(project_root: Path) -> Path:
    """Path to config file. Prefers config.yaml, falls back to example."""
    cfg = project_root / "config" / "config.yaml"
    if cfg.exists():
        return cfg
    return project_root / "config" / "config.yaml.example"


@pytest.fixture
def config(config_path: Path) -> dict:
    """Load config dict from YAML."""
    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@pytest.fixture
def service_config() -> ServiceConfig:
    """Port 0: the OS picks a free port for each start."""
    return ServiceConfig(database=DatabaseConfig(), port=0)


@pytest.fixture
def provider_factory() -> ProviderFactory:
    return ProviderFactory()


@pytest.fixture
def make_service():
    """Build CellStatusService instances and stop them all at teardown."""
    from cellstatus.engine.service import CellStatusService

    services = []

    def _make(**kwargs):
        kwargs.setdefault("address_resolver", lambda: "127.0.0.1")
        service = CellStatusService(**kwargs)
        services.append(service)
        return service

    yield _make
    for service in services:
        provider = service.repository.provider
        if isinstance(provider, FakeProvider):
            provider.release.set()
        service.stop()
