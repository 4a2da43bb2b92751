"""Cell rows and the free/occupied/unavailable classification behind /stats."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List

# Status codes as stored in the cells table. Anything else is opaque.
STATUS_EXCLUDED = 0
STATUS_FREE = 180
STATUS_OCCUPIED = 200
STATUS_UNAVAILABLE = frozenset({190, 210})


@dataclass(frozen=True)
class Cell:
    """One cell: integer identifier plus integer status code."""

    number: int
    status: int

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Cell":
        """Build from a result row with `number` and `status` keys. Raises on missing/non-integer values."""
        return cls(number=int(row["number"]), status=int(row["status"]))

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class StatsSummary:
    """Counts over the active cell set.

    total counts every active cell; a status outside the known codes is counted
    in total but in none of free/occupied/unavailable, so the three buckets can
    sum to less than total.
    """

    total: int = 0
    free: int = 0
    occupied: int = 0
    unavailable: int = 0

    @property
    def unclassified(self) -> int:
        return self.total - self.free - self.occupied - self.unavailable

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def active_cells(cells: Iterable[Cell]) -> List[Cell]:
    """Drop excluded (status 0) cells and sort ascending by number."""
    return sorted(
        (c for c in cells if c.status != STATUS_EXCLUDED),
        key=lambda c: c.number,
    )


def summarize_cells(cells: Iterable[Cell]) -> StatsSummary:
    """Fold cells into a StatsSummary. Excluded cells are ignored entirely."""
    total = free = occupied = unavailable = 0
    for cell in cells:
        if cell.status == STATUS_EXCLUDED:
            continue
        total += 1
        if cell.status == STATUS_FREE:
            free += 1
        elif cell.status == STATUS_OCCUPIED:
            occupied += 1
        elif cell.status in STATUS_UNAVAILABLE:
            unavailable += 1
    return StatsSummary(total=total, free=free, occupied=occupied, unavailable=unavailable)
