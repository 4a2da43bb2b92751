"""Data access for the cell endpoints: active cell list and the stats fold."""

import logging
import threading
from typing import List, Optional

from cellstatus.config.settings import DatabaseConfig
from cellstatus.core.cells import Cell, StatsSummary, active_cells, summarize_cells
from cellstatus.core.errors import QueryError, ServiceUnavailable
from cellstatus.core.logging_utils import LogRelay
from cellstatus.store.base import ConnectionProvider

logger = logging.getLogger(__name__)


def build_cells_query(database: DatabaseConfig) -> str:
    """Select active cells. Identifiers are validated by get_database_config."""
    return (
        f"SELECT {database.number_column} AS number, {database.status_column} AS status "
        f"FROM {database.table} WHERE {database.status_column} <> 0 "
        f"ORDER BY {database.number_column}"
    )


class CellRepository:
    """Read-only view over the cells table, gated by the service's accepting flag.

    The flag is cleared by the lifecycle controller before the provider is closed;
    both read operations check it (and the provider) before touching the backend.
    """

    def __init__(self, accepting: threading.Event, log: Optional[LogRelay] = None) -> None:
        self._accepting = accepting
        self._log = log or LogRelay(logger)
        self._provider: Optional[ConnectionProvider] = None
        self._query: Optional[str] = None

    def attach(self, provider: ConnectionProvider, database: DatabaseConfig) -> None:
        self._query = build_cells_query(database)
        self._provider = provider

    def detach(self) -> Optional[ConnectionProvider]:
        provider, self._provider = self._provider, None
        return provider

    @property
    def provider(self) -> Optional[ConnectionProvider]:
        return self._provider

    def _fetch_cells(self, what: str) -> List[Cell]:
        provider = self._provider
        query = self._query
        if not self._accepting.is_set() or provider is None or query is None:
            raise ServiceUnavailable("Server is stopping or not connected")
        try:
            rows = provider.fetch_all(query)
            return [Cell.from_row(r) for r in rows]
        except Exception as e:
            self._log.error("Error fetching %s: %s", what, e)
            raise QueryError(f"Failed to fetch {what}") from e

    def list_active_cells(self) -> List[Cell]:
        """All cells with status != 0, ascending by number."""
        return active_cells(self._fetch_cells("cells"))

    def compute_stats(self) -> StatsSummary:
        """StatsSummary over the active cell set, aggregated in process."""
        return summarize_cells(self._fetch_cells("stats"))
