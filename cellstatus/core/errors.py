"""Error taxonomy for the service lifecycle and the data endpoints."""


class CellStatusError(Exception):
    """Base class for cell status server errors."""


class ConfigError(CellStatusError):
    """Invalid or missing configuration (port, identifiers, config file)."""


class BackendConnectError(CellStatusError):
    """Backend unreachable or rejected credentials while starting. Retry start() to recover."""


class ListenError(CellStatusError):
    """HTTP listener could not bind or failed during startup (port in use, permission)."""


class ServiceAlreadyActive(CellStatusError):
    """start() called while the service is not idle; call stop() first."""


class QueryError(CellStatusError):
    """A read query failed. Localized to one request; the service keeps running."""


class ServiceUnavailable(CellStatusError):
    """Service is stopping or has no backend pool. Expected during shutdown."""
