"""Error types for sqlscope."""

from typing import Optional, Dict, Any


class ExplorerError(Exception):
    """Base exception for sqlscope errors.

    ``status`` is the HTTP-equivalent status an embedding server should use
    when it turns the error into a response.
    """

    status: int = 500

    def __init__(self, message: str, code: str = "EXPLORER_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a JSON-ready dictionary."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConnectionLostError(ExplorerError):
    """The session with the database is gone or could not be established."""

    status = 503

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONNECTION_LOST", details=details)


class QueryExecutionError(ExplorerError):
    """The backend rejected a statement.

    The message is the backend's own text, passed through verbatim.
    """

    status = 400

    def __init__(self, message: str, sql: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        error_details = details or {}
        if sql is not None:
            error_details.setdefault("sql", sql)
        super().__init__(message, code="QUERY_ERROR", details=error_details)
        self.sql = sql


class TableNotFoundError(ExplorerError):
    """Table name is not one returned by ``list_tables``."""

    status = 404

    def __init__(self, table: str):
        super().__init__(
            f"Table not found: {table}",
            code="NOT_FOUND",
            details={"table": table}
        )
        self.table = table


class InvalidRequestError(ExplorerError):
    """Caller supplied an argument the core cannot act on."""

    status = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="BAD_REQUEST", details=details)


class UnsupportedError(ExplorerError):
    """The engine does not expose a requested piece of metadata.

    Never surfaced to callers: the introspector turns it into an absent field.
    """

    status = 501

    def __init__(self, feature: str, backend: Optional[str] = None):
        message = f"{feature} is not supported"
        if backend:
            message = f"{feature} is not supported by {backend}"
        super().__init__(
            message,
            code="UNSUPPORTED",
            details={"feature": feature, "backend": backend}
        )
        self.feature = feature
        self.backend = backend
