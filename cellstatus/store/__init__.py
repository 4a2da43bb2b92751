"""Backend access: pooled connection providers and the cell repository."""

from cellstatus.store.base import ConnectionProvider
from cellstatus.store.postgres_pool import PostgresPoolProvider
from cellstatus.store.repository import CellRepository

__all__ = ["ConnectionProvider", "PostgresPoolProvider", "CellRepository"]
