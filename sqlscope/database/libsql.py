"""libSQL (remote SQLite) adapter over the Hrana HTTP pipeline protocol."""

import base64
import logging
from typing import Any, Dict, Optional, Sequence
from urllib.parse import urlparse

import httpx

from ..config import Settings
from ..errors import ConnectionLostError, QueryExecutionError
from .models import DatabaseInfo, RawResult
from .sqlite import SQLiteAdapter
from .type_mappers import LibSQLTypeMapper

logger = logging.getLogger(__name__)


def http_url(url: str) -> str:
    """Map ``libsql://`` and ``wss://`` URLs to their HTTP equivalents."""
    for scheme, replacement in (("libsql://", "https://"), ("wss://", "https://"), ("ws://", "http://")):
        if url.startswith(scheme):
            return replacement + url[len(scheme):]
    return url


def encode_arg(value: Any) -> Dict[str, Any]:
    """Encode a Python parameter as a Hrana value."""
    if value is None:
        return {"type": "null"}
    if isinstance(value, bool):
        return {"type": "integer", "value": "1" if value else "0"}
    if isinstance(value, int):
        return {"type": "integer", "value": str(value)}
    if isinstance(value, float):
        return {"type": "float", "value": value}
    if isinstance(value, (bytes, bytearray)):
        return {"type": "blob", "base64": base64.b64encode(bytes(value)).decode("ascii")}
    return {"type": "text", "value": str(value)}


class LibSQLAdapter(SQLiteAdapter):
    """Adapter for a libSQL / Turso server.

    Catalog queries are the SQLite ones; only transport differs. Every
    statement is sent as its own pipeline (execute, then close) so no
    server-side stream outlives a request.
    """

    backend = "libsql"

    def __init__(
        self,
        url: str,
        auth_token: Optional[str] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(path=url, settings=settings, type_mapper=LibSQLTypeMapper())
        self.url = http_url(url).rstrip("/")
        self.auth_token = auth_token
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self.auth_token:
                headers["Authorization"] = f"Bearer {self.auth_token}"
            self._client = httpx.Client(
                base_url=self.url,
                headers=headers,
                timeout=self.settings.http_timeout,
                limits=httpx.Limits(max_connections=self.settings.pool_max_size),
                transport=self._transport,
            )
        return self._client

    def connect(self):
        return self.client

    def close(self):
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> RawResult:
        """Send one statement as an execute + close pipeline."""
        logger.debug("libSQL pipeline request to %s", self.url)
        stmt: Dict[str, Any] = {"sql": sql}
        if params:
            stmt["args"] = [encode_arg(p) for p in params]
        payload = {"requests": [{"type": "execute", "stmt": stmt}, {"type": "close"}]}

        try:
            response = self.client.post("/v2/pipeline", json=payload)
        except httpx.TransportError as e:
            raise ConnectionLostError(f"libSQL server unreachable: {e}", details={"url": self.url}) from e

        if response.status_code in (401, 403):
            raise ConnectionLostError(
                f"libSQL server rejected credentials ({response.status_code})",
                details={"url": self.url},
            )
        if response.is_error:
            raise QueryExecutionError(response.text or f"HTTP {response.status_code}", sql=sql)

        first = response.json()["results"][0]
        if first.get("type") == "error":
            raise QueryExecutionError(first["error"].get("message", "unknown error"), sql=sql)

        result = first["response"]["result"]
        cols = result.get("cols", [])
        # Decode Hrana cells up front so the SQLite catalog hooks see native values
        rows = [[self.type_mapper.to_value(cell).value for cell in row] for row in result.get("rows", [])]
        return RawResult(
            columns=[c.get("name") or "" for c in cols],
            types=[c.get("decltype") for c in cols],
            rows=rows,
        )

    def get_database_info(self) -> DatabaseInfo:
        """Server host, SQLite version and page-based size."""
        version = self.execute("SELECT sqlite_version()").scalar()
        page_count = self.execute("PRAGMA page_count").scalar()
        page_size = self.execute("PRAGMA page_size").scalar()
        size = page_count * page_size if page_count is not None and page_size is not None else None
        return DatabaseInfo(
            name=urlparse(self.url).hostname or self.url,
            version=version,
            size_bytes=size,
        )

