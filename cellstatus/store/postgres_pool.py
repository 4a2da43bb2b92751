"""PostgreSQL ConnectionProvider on psycopg2's ThreadedConnectionPool."""

import logging
import threading
from typing import Any, Dict, List, Optional, Sequence

from psycopg2.extras import RealDictCursor
from psycopg2.pool import PoolError, ThreadedConnectionPool

from cellstatus.config.settings import DatabaseConfig
from cellstatus.store.base import ConnectionProvider

logger = logging.getLogger(__name__)

# Longest a request waits for a free pooled connection.
CHECKOUT_TIMEOUT_SEC = 30.0


class PostgresPoolProvider(ConnectionProvider):
    """Thread-safe pool shared by all request handlers of one service run.

    ThreadedConnectionPool.getconn() fails immediately once pool_max connections
    are checked out, so checkouts are gated by a semaphore of the same size and
    extra requests queue for a connection instead.
    """

    def __init__(self, database: DatabaseConfig, checkout_timeout: float = CHECKOUT_TIMEOUT_SEC) -> None:
        self._config = database
        self._checkout_timeout = checkout_timeout
        self._lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(database.pool_max)
        self._pool: Optional[ThreadedConnectionPool] = None

    def open(self) -> None:
        with self._lock:
            if self._pool is not None:
                return
            # minconn connections are opened eagerly, so bad host/credentials fail here
            self._pool = ThreadedConnectionPool(
                self._config.pool_min,
                self._config.pool_max,
                **self._config.connect_params(),
            )
        logger.debug(
            "Pool opened (host=%s db=%s min=%s max=%s)",
            self._config.host,
            self._config.database,
            self._config.pool_min,
            self._config.pool_max,
        )

    def fetch_all(self, statement: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        pool = self._pool
        if pool is None:
            raise RuntimeError("connection pool is not open")
        if not self._slots.acquire(timeout=self._checkout_timeout):
            raise PoolError(f"no pooled connection free after {self._checkout_timeout}s")
        try:
            conn = pool.getconn()
            discard = False
            try:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(statement, tuple(params))
                    rows = cur.fetchall()
                conn.rollback()
                return [dict(r) for r in rows]
            except Exception:
                discard = True
                raise
            finally:
                pool.putconn(conn, close=discard)
        finally:
            self._slots.release()

    def close(self) -> None:
        with self._lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            pool.closeall()

    @property
    def closed(self) -> bool:
        return self._pool is None
