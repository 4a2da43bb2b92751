"""Log relay: module logger plus an optional observer fed with timestamped lines."""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

logger = logging.getLogger(__name__)

LogCallback = Callable[[str], None]


def format_log_line(message: str, now: Optional[datetime] = None) -> str:
    """Human-readable line for observers: "[HH:MM:SS] message" in local time."""
    now = now or datetime.now()
    return f"[{now.strftime('%H:%M:%S')}] {message}"


class LogRelay:
    """Logs through a standard logger and mirrors each message to a callback (e.g. a UI log pane).

    The callback is a side channel only: its errors are logged at debug and never propagate.
    """

    def __init__(self, target: logging.Logger, callback: Optional[LogCallback] = None):
        self._logger = target
        self._lock = threading.Lock()
        self._callback = callback

    def set_callback(self, callback: Optional[LogCallback]) -> None:
        with self._lock:
            self._callback = callback

    def debug(self, msg: str, *args) -> None:
        self._logger.debug(msg, *args)

    def info(self, msg: str, *args) -> None:
        self._emit(logging.INFO, msg, args)

    def warning(self, msg: str, *args) -> None:
        self._emit(logging.WARNING, msg, args)

    def error(self, msg: str, *args) -> None:
        self._emit(logging.ERROR, msg, args)

    def _emit(self, level: int, msg: str, args: tuple) -> None:
        self._logger.log(level, msg, *args)
        with self._lock:
            callback = self._callback
        if callback is None:
            return
        text = msg % args if args else msg
        try:
            callback(format_log_line(text))
        except Exception as e:
            logger.debug("log callback error: %s", e)
