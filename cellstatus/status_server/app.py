"""FastAPI app for GET /api/cells, GET /api/stats, GET /api/health and the static UI at /.

Routes are also served without the /api prefix. CORS is open so any LAN client
(mobile browser) can call the API.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from cellstatus.core.errors import QueryError, ServiceUnavailable
from cellstatus.status_server.schemas import (
    CellOut,
    CellsResponse,
    ErrorResponse,
    HealthResponse,
    StatsOut,
    StatsResponse,
)
from cellstatus.store.repository import CellRepository

logger = logging.getLogger(__name__)

DEFAULT_STATIC_DIR = Path(__file__).resolve().parent.parent / "public"

UNAVAILABLE_MESSAGE = "Server is stopping or not connected"

_ERROR_RESPONSES = {
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _utc_timestamp() -> str:
    """ISO 8601 UTC with milliseconds and Z suffix (2024-01-31T12:00:00.000Z)."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_router(repository: CellRepository) -> APIRouter:
    router = APIRouter()

    @router.get("/cells", response_model=CellsResponse, responses=_ERROR_RESPONSES)
    def get_cells():
        """Active cells (status != 0) ordered by number."""
        try:
            cells = repository.list_active_cells()
        except ServiceUnavailable:
            return _error(503, UNAVAILABLE_MESSAGE)
        except QueryError:
            return _error(500, "Failed to fetch cells")
        return CellsResponse(data=[CellOut(number=c.number, status=c.status) for c in cells])

    @router.get("/stats", response_model=StatsResponse, responses=_ERROR_RESPONSES)
    def get_stats():
        """Counts of total/free/occupied/unavailable over active cells."""
        try:
            stats = repository.compute_stats()
        except ServiceUnavailable:
            return _error(503, UNAVAILABLE_MESSAGE)
        except QueryError:
            return _error(500, "Failed to fetch stats")
        return StatsResponse(data=StatsOut(**stats.to_dict()))

    @router.get("/health", response_model=HealthResponse)
    def get_health() -> HealthResponse:
        """Liveness probe; never touches the backend."""
        return HealthResponse(message="API is running", timestamp=_utc_timestamp())

    return router


def create_app(repository: CellRepository, static_dir: Optional[str] = None) -> FastAPI:
    """Build the API app around a repository. static_dir defaults to the packaged public/ directory."""
    app = FastAPI(title="Cell Status Server", description="Read-only cell status API for LAN clients")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    router = create_router(repository)
    app.include_router(router, prefix="/api")
    app.include_router(router, include_in_schema=False)

    static_path = Path(static_dir) if static_dir else DEFAULT_STATIC_DIR
    if static_path.is_dir():
        app.mount("/", StaticFiles(directory=str(static_path), html=True), name="static")
    else:
        logger.debug("Static directory %s not found; serving API only", static_path)
    return app
