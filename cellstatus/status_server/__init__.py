"""HTTP API: GET /api/cells, GET /api/stats, GET /api/health, static files at /."""

from cellstatus.status_server.app import create_app

__all__ = ["create_app"]
