"""Service lifecycle controller: start (connect backend -> bind listener -> URL) and bounded stop."""

import logging
import threading
from typing import Callable, Optional

from cellstatus.config.settings import DatabaseConfig, ServiceConfig
from cellstatus.core.errors import BackendConnectError, ServiceAlreadyActive
from cellstatus.core.logging_utils import LogCallback, LogRelay
from cellstatus.engine.listener import HttpListener
from cellstatus.engine.state_machine import ServiceState, ServiceStateMachine
from cellstatus.net.address import resolve_local_address
from cellstatus.status_server.app import create_app
from cellstatus.store.base import ConnectionProvider
from cellstatus.store.postgres_pool import PostgresPoolProvider
from cellstatus.store.repository import CellRepository

logger = logging.getLogger(__name__)

# Drain wait in stop(); the only explicit timeout in the service.
GRACE_PERIOD_SEC = 3.0
LISTEN_HOST = "0.0.0.0"

ProviderFactory = Callable[[DatabaseConfig], ConnectionProvider]
ListenerFactory = Callable[..., HttpListener]


class CellStatusService:
    """One startable/stoppable instance of the cell status API.

    start() and stop() are serialized by a lock: a concurrent call waits for the
    transition in flight and then sees its result. start() is only valid from
    IDLE (ServiceAlreadyActive otherwise); restarting means stop() then start().
    stop() never raises and returns within the grace period plus close time.
    """

    def __init__(
        self,
        provider_factory: Optional[ProviderFactory] = None,
        address_resolver: Callable[[], str] = resolve_local_address,
        listener_factory: ListenerFactory = HttpListener,
        static_dir: Optional[str] = None,
        grace_period: float = GRACE_PERIOD_SEC,
    ):
        self._provider_factory = provider_factory or PostgresPoolProvider
        self._address_resolver = address_resolver
        self._listener_factory = listener_factory
        self._grace_period = grace_period

        self._log = LogRelay(logger)
        self._lifecycle_lock = threading.Lock()
        self._state_machine = ServiceStateMachine()
        self._accepting = threading.Event()
        self.repository = CellRepository(self._accepting, log=self._log)
        self.app = create_app(self.repository, static_dir=static_dir)

        self._listener: Optional[HttpListener] = None
        self._url: Optional[str] = None

    @property
    def state(self) -> ServiceState:
        return self._state_machine.current

    @property
    def url(self) -> Optional[str]:
        return self._url

    @property
    def accepting(self) -> bool:
        """True while data endpoints may use the backend pool."""
        return self._accepting.is_set()

    def set_log_callback(self, callback: Optional[LogCallback]) -> None:
        """Observer for "[HH:MM:SS] message" log lines. None clears it."""
        self._log.set_callback(callback)

    def start(self, config: ServiceConfig) -> str:
        """Connect the backend, bind 0.0.0.0:port and return http://<lan-address>:<port>.

        Raises ServiceAlreadyActive, BackendConnectError or ListenError; on failure
        everything opened so far is released and the service is IDLE again.
        """
        with self._lifecycle_lock:
            if not self._state_machine.is_idle():
                raise ServiceAlreadyActive(
                    f"Service is {self.state.value}; stop it before starting again"
                )
            self._state_machine.transition(ServiceState.STARTING)

            self._log.info("Connecting to database...")
            provider = self._open_provider(config.database)
            self._log.info("Connected to database")

            try:
                address = self._address_resolver()
                self.repository.attach(provider, config.database)
                self._accepting.set()
                listener = self._listener_factory(
                    self.app, LISTEN_HOST, config.port, graceful_timeout=self._grace_period
                )
                port = listener.start()
            except Exception as e:
                self._accepting.clear()
                self.repository.detach()
                self._close_provider(provider)
                self._state_machine.transition(ServiceState.IDLE)
                self._log.error("Failed to start server: %s", e)
                raise

            self._listener = listener
            self._url = f"http://{address}:{port}"
            self._state_machine.transition(ServiceState.RUNNING)
            self._log.info("Server started on port %s", port)
            self._log.info("Mobile URL: %s", self._url)
            return self._url

    def _open_provider(self, database: DatabaseConfig) -> ConnectionProvider:
        provider: Optional[ConnectionProvider] = None
        try:
            provider = self._provider_factory(database)
            provider.open()
            return provider
        except Exception as e:
            if provider is not None:
                self._close_provider(provider)
            self._state_machine.transition(ServiceState.IDLE)
            self._log.error("Failed to start server: %s", e)
            raise BackendConnectError(str(e)) from e

    def _close_provider(self, provider: ConnectionProvider) -> None:
        try:
            provider.close()
        except Exception as e:
            self._log.warning("DB close error: %s", e)

    def stop(self) -> None:
        """Refuse new backend work, drain the listener for up to the grace period, close the pool.

        No-op when IDLE. Never raises: close failures are logged.
        """
        with self._lifecycle_lock:
            if self._state_machine.is_idle():
                return
            self._state_machine.transition(ServiceState.STOPPING)
            self._accepting.clear()
            self._log.info("Stopping server...")

            listener, self._listener = self._listener, None
            if listener is not None:
                try:
                    if listener.shutdown(self._grace_period):
                        self._log.info("HTTP server closed")
                    else:
                        self._log.warning("Force closing server...")
                except Exception as e:
                    self._log.error("HTTP server close error: %s", e)

            provider = self.repository.detach()
            if provider is not None:
                try:
                    provider.close()
                    self._log.info("Database connection closed")
                except Exception as e:
                    self._log.error("DB close error: %s", e)

            self._url = None
            self._state_machine.transition(ServiceState.IDLE)
            self._log.info("Server stopped successfully")
