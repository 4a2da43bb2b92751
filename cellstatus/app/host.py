"""ServiceHost: the caller that owns one CellStatusService per process.

Mirrors what a desktop shell does over IPC: start-server stops any running
instance first and reports {"success", "url"} or {"success": False, "error"};
stop-server always succeeds.
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional

from cellstatus.config.settings import get_service_config
from cellstatus.core.logging_utils import LogCallback
from cellstatus.engine.service import CellStatusService
from cellstatus.engine.state_machine import ServiceState

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[], CellStatusService]


class ServiceHost:
    """Single global slot for the running service, plus result dicts for a UI."""

    def __init__(
        self,
        service_factory: Optional[ServiceFactory] = None,
        log_callback: Optional[LogCallback] = None,
    ):
        self._service_factory = service_factory or CellStatusService
        self._log_callback = log_callback
        self._lock = threading.Lock()
        self._service: Optional[CellStatusService] = None

    @property
    def service(self) -> Optional[CellStatusService]:
        return self._service

    @property
    def running(self) -> bool:
        return self._service is not None and self._service.state == ServiceState.RUNNING

    @property
    def url(self) -> Optional[str]:
        return self._service.url if self._service is not None else None

    def start_server(self, raw_config: Dict[str, Any]) -> Dict[str, Any]:
        """Stop any running service, then start a fresh one from raw_config (YAML or flat form dict)."""
        with self._lock:
            self._stop_current()
            service: Optional[CellStatusService] = None
            try:
                config = get_service_config(raw_config)
                service = self._service_factory()
                service.set_log_callback(self._log_callback)
                self._service = service
                url = service.start(config)
                return {"success": True, "url": url}
            except Exception as e:
                logger.warning("start_server failed: %s", e)
                self._stop_current()
                return {"success": False, "error": str(e)}

    def stop_server(self) -> Dict[str, Any]:
        with self._lock:
            self._stop_current()
        return {"success": True}

    def shutdown(self) -> None:
        """Process exit hook: stop whatever is running."""
        self.stop_server()

    def _stop_current(self) -> None:
        service, self._service = self._service, None
        if service is not None:
            service.stop()
