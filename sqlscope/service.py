"""Service operations behind each explorer endpoint.

Every method returns a JSON-ready dict. An HTTP layer maps them one to one:

    GET  /                       overview()
    GET  /tables                 tables()
    GET  /tables/{name}          table(name)
    GET  /tables/{name}/data     table_data(name, page)
    POST /query                  query(body)
    GET  /schema                 schema()
    GET  /autocomplete           autocomplete()
    GET  /metadata               metadata()
    POST /shutdown               shutdown()

Errors are raised as ExplorerError subclasses; ``error_response`` turns one
into a status code and body.
"""

import logging
from typing import Any, Callable, Dict, Optional, Tuple, Union

from . import __version__
from .config import Settings, settings as default_settings
from .errors import ExplorerError, InvalidRequestError, QueryExecutionError
from .logging import logged_operation
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


def error_response(error: ExplorerError) -> Tuple[int, Dict[str, Any]]:
    """HTTP-equivalent status and body for an explorer error."""
    return error.status, {"error": error.to_dict()}


class ExplorerService:
    """Explorer operations over the registry's single adapter."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        settings: Optional[Settings] = None,
        shutdown_callback: Optional[Callable[[], None]] = None,
    ):
        self.registry = registry
        self.settings = settings or registry.settings or default_settings
        self.shutdown_callback = shutdown_callback

    @property
    def adapter(self):
        return self.registry.adapter

    @logged_operation()
    def overview(self) -> Dict[str, Any]:
        return self.adapter.overview().to_dict()

    @logged_operation()
    def tables(self) -> Dict[str, Any]:
        return {"tables": [summary.to_dict() for summary in self.adapter.list_tables()]}

    @logged_operation()
    def table(self, name: str) -> Dict[str, Any]:
        return self.adapter.table_meta(name).to_dict()

    @logged_operation()
    def table_data(self, name: str, page: Union[int, str, None] = None) -> Dict[str, Any]:
        """One page of rows; ``page`` defaults to 1 and may arrive as text."""
        if page is None:
            page_number = 1
        else:
            try:
                page_number = int(page)
            except (TypeError, ValueError):
                raise InvalidRequestError(f"Page must be an integer, got {page!r}", details={"page": page})
        return self.adapter.table_page(name, page_number, self.settings.page_size).to_dict()

    @logged_operation()
    def query(self, body: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
        """Run a statement given as text or as ``{"query": text}``.

        A statement the backend rejects is reported in the result as
        ``{"error": {...}}`` rather than raised.
        """
        if isinstance(body, dict):
            if not isinstance(body.get("query"), str):
                raise InvalidRequestError("Request body must contain a 'query' string")
            sql = body["query"]
        elif isinstance(body, str):
            sql = body
        else:
            raise InvalidRequestError("Query must be a string")

        try:
            return self.adapter.execute_query(sql).to_dict()
        except QueryExecutionError as e:
            return {"error": e.to_dict()}

    @logged_operation()
    def schema(self) -> Dict[str, Any]:
        """Tables with their columns plus foreign-key relationships, for diagrams."""
        tables = []
        for name in self.adapter.get_tables():
            tables.append({
                "name": name,
                "columns": [c.to_dict() for c in self.adapter.get_columns(name)],
            })
        return {
            "tables": tables,
            "relationships": [r.to_dict() for r in self.adapter.relationships()],
        }

    @logged_operation()
    def autocomplete(self) -> Dict[str, Any]:
        return {"tables": self.registry.autocomplete.get()}

    @logged_operation()
    def refresh_autocomplete(self) -> Dict[str, Any]:
        return {"tables": self.registry.autocomplete.refresh()}

    def metadata(self) -> Dict[str, Any]:
        return {
            "version": __version__,
            "can_shutdown": self.settings.allow_shutdown,
        }

    @logged_operation()
    def shutdown(self) -> Dict[str, Any]:
        """Ask the embedding process to stop, if remote shutdown is allowed."""
        if not self.settings.allow_shutdown or self.shutdown_callback is None:
            logger.info("Shutdown request ignored")
            return {"shutdown": False}
        self.shutdown_callback()
        logger.info("Sent shutdown signal")
        return {"shutdown": True}
