"""ConnectionProvider abstract interface: a pooled, read-only backend the repository queries.

Implementations own their pool; CellRepository only borrows through fetch_all.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence


class ConnectionProvider(ABC):
    """Pooled connection to the relational backend, opened once per service run."""

    @abstractmethod
    def open(self) -> None:
        """Open the pool. Raises the driver's error if the backend is unreachable or rejects credentials."""
        ...

    @abstractmethod
    def fetch_all(self, statement: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a read query and return rows as dicts keyed by column name (or alias)."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close every pooled connection. Safe to call more than once and on a provider that never opened."""
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...
