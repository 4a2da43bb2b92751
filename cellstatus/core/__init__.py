"""Cell domain types, error taxonomy and logging helpers."""

from cellstatus.core.cells import Cell, StatsSummary, active_cells, summarize_cells

__all__ = ["Cell", "StatsSummary", "active_cells", "summarize_cells"]
