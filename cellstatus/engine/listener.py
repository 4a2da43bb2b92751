"""uvicorn server on a pre-bound socket, run in a background thread so it can be stopped with a deadline."""

import logging
import socket
import threading
import time
from typing import Any, Optional

import uvicorn

from cellstatus.core.errors import ListenError

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 128
_STARTUP_POLL_SEC = 0.01


class HttpListener:
    """One bind/serve/shutdown cycle of an ASGI app on host:port.

    The socket is bound in the caller's thread so address-in-use and permission
    errors surface synchronously from start().
    """

    def __init__(self, app: Any, host: str = "0.0.0.0", port: int = 3000, graceful_timeout: float = 3.0):
        self._app = app
        self._host = host
        self._port = port
        self._graceful_timeout = graceful_timeout
        self._sock: Optional[socket.socket] = None
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        """Bound port (differs from the requested one when 0 was requested)."""
        if self._sock is None:
            return self._port
        return self._sock.getsockname()[1]

    def _bind(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self._host, self._port))
            sock.listen(LISTEN_BACKLOG)
        except OSError as e:
            sock.close()
            raise ListenError(f"Cannot listen on {self._host}:{self._port}: {e}") from e
        sock.setblocking(False)
        return sock

    def start(self) -> int:
        """Bind and serve; returns once uvicorn reports started. Raises ListenError."""
        if self._thread is not None:
            raise ListenError("listener already started")
        sock = self._bind()
        config = uvicorn.Config(
            self._app,
            log_config=None,
            lifespan="off",
            access_log=False,
            timeout_graceful_shutdown=max(1, int(round(self._graceful_timeout))),
        )
        server = uvicorn.Server(config)
        thread = threading.Thread(
            target=server.run,
            kwargs={"sockets": [sock]},
            name=f"http-listener-{sock.getsockname()[1]}",
            daemon=True,
        )
        self._sock, self._server, self._thread = sock, server, thread
        thread.start()
        while not server.started:
            if not thread.is_alive():
                self._release()
                raise ListenError(f"HTTP server on {self._host}:{self._port} exited during startup")
            time.sleep(_STARTUP_POLL_SEC)
        return self.port

    def shutdown(self, timeout: float) -> bool:
        """Stop accepting, close connections, wait up to timeout seconds.

        Returns True if the server thread finished in time. On timeout uvicorn is
        told to force exit and the thread is left to finish on its own.
        """
        server, thread = self._server, self._thread
        if server is None or thread is None:
            self._release()
            return True
        server.should_exit = True
        thread.join(timeout)
        drained = not thread.is_alive()
        if not drained:
            server.force_exit = True
        self._release()
        return drained

    def _release(self) -> None:
        sock = self._sock
        self._sock = self._server = self._thread = None
        if sock is not None:
            try:
                sock.close()
            except OSError as e:
                logger.debug("listener socket close failed: %s", e)
