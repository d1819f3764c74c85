"""ClickHouse database adapter over the HTTP interface."""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config import Settings
from ..errors import ConnectionLostError, QueryExecutionError, UnsupportedError
from .base import DatabaseAdapter
from .models import CatalogCounts, Column, DatabaseInfo, RawResult, RowCount
from .type_mappers import ClickHouseTypeMapper

logger = logging.getLogger(__name__)

# ClickHouse server error codes for failed authentication
AUTH_ERROR_CODES = {192, 193, 194, 516}

VIEW_ENGINES = ("View", "MaterializedView", "LiveView", "WindowView")


class ClickHouseAdapter(DatabaseAdapter):
    """Adapter for one ClickHouse database.

    Statements are POSTed to the HTTP interface and read back in
    ``JSONCompact`` format. Statement parameters use ClickHouse's
    ``{name:Type}`` placeholders; ``execute`` binds positional params to
    ``{p0:String}``, ``{p1:String}`` and so on.
    """

    backend = "clickhouse"
    IDENTIFIER_QUOTE = "`"

    def __init__(
        self,
        url: str = "http://localhost:8123",
        user: Optional[str] = None,
        password: Optional[str] = None,
        database: str = "default",
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(ClickHouseTypeMapper(), settings)
        self.url = url.rstrip("/")
        self.user = user
        self.password = password
        self.database = database or "default"
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {}
            if self.user:
                headers["X-ClickHouse-User"] = self.user
            if self.password:
                headers["X-ClickHouse-Key"] = self.password
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

    @staticmethod
    def _error_code(body: str) -> Optional[int]:
        match = re.match(r"\s*Code:\s*(\d+)", body)
        return int(match.group(1)) if match else None

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> RawResult:
        """Run a statement; values are decoded by their declared column type."""
        query_params: Dict[str, Any] = {
            "database": self.database,
            "default_format": "JSONCompact",
        }
        for i, value in enumerate(params or ()):
            query_params[f"param_p{i}"] = value

        try:
            response = self.client.post("/", params=query_params, content=sql.encode("utf-8"))
        except httpx.TransportError as e:
            raise ConnectionLostError(f"ClickHouse server unreachable: {e}", details={"url": self.url}) from e

        if response.is_error:
            body = response.text.strip()
            if response.status_code in (401, 403) or self._error_code(body) in AUTH_ERROR_CODES:
                raise ConnectionLostError(
                    f"ClickHouse rejected credentials: {body}",
                    details={"url": self.url},
                )
            raise QueryExecutionError(body or f"HTTP {response.status_code}", sql=sql)

        # DDL and inserts return an empty body
        if not response.content.strip():
            return RawResult()

        try:
            payload = response.json()
        except ValueError:
            payload = None
        # A FORMAT clause in the statement overrides default_format
        if not isinstance(payload, dict) or "meta" not in payload:
            raise QueryExecutionError(
                "unsupported output format: results must be JSONCompact, remove the FORMAT clause",
                sql=sql,
            )
        meta = payload["meta"]
        types = [m.get("type") for m in meta]
        rows = [
            [self.type_mapper.to_value(cell, types[i]).value for i, cell in enumerate(row)]
            for row in payload.get("data", [])
        ]
        return RawResult(columns=[m.get("name", "") for m in meta], types=types, rows=rows)

    def qualified_name(self, table: str) -> str:
        return f"{self.quote_identifier(self.database)}.{self.quote_identifier(table)}"

    def get_tables(self) -> List[str]:
        result = self.execute(
            f"""
            SELECT name
            FROM system.tables
            WHERE database = currentDatabase()
              AND NOT is_temporary
              AND engine NOT IN {VIEW_ENGINES!r}
            ORDER BY name
            """
        )
        return result.column(0)

    def _table_field(self, table: str, field: str) -> Any:
        return self.execute(
            f"SELECT {field} FROM system.tables WHERE database = currentDatabase() AND name = {{p0:String}}",
            [table],
        ).scalar()

    def get_columns(self, table: str) -> List[Column]:
        primary_keys = set(self.get_primary_keys(table))
        result = self.execute(
            """
            SELECT name, type, position
            FROM system.columns
            WHERE database = currentDatabase()
              AND table = {p0:String}
            ORDER BY position
            """,
            [table],
        )

        columns = []
        for name, data_type, position in result.rows:
            columns.append(Column(
                name=name,
                data_type=data_type,
                is_nullable=self.type_mapper.is_nullable(data_type),
                is_primary_key=name in primary_keys,
                ordinal_position=position,
                _type_mapper=self.type_mapper,
            ))
        return columns

    def get_primary_keys(self, table: str) -> List[str]:
        """Columns of the primary key expression, in key order.

        Expression parts that are not plain columns (``toDate(ts)``) are
        skipped.
        """
        expression = self._table_field(table, "primary_key") or ""
        names = set(self.execute(
            "SELECT name FROM system.columns WHERE database = currentDatabase() AND table = {p0:String}",
            [table],
        ).column(0))
        keys = []
        for part in expression.split(","):
            part = part.strip().strip("`")
            if part in names:
                keys.append(part)
        return keys

    def get_row_count(self, table: str) -> RowCount:
        """``system.tables.total_rows`` (exact for MergeTree), else ``count()``."""
        if self.settings.exact_row_counts:
            return self.count_rows(table)
        total = self._table_field(table, "total_rows")
        if total is None:
            return self.count_rows(table)
        return RowCount.exact(total)

    def get_index_count(self, table: str) -> int:
        """Data skipping indices plus the primary key index."""
        count = self.execute(
            """
            SELECT count()
            FROM system.data_skipping_indices
            WHERE database = currentDatabase()
              AND table = {p0:String}
            """,
            [table],
        ).scalar()
        if self._table_field(table, "primary_key"):
            count += 1
        return count

    def get_table_ddl(self, table: str) -> Optional[str]:
        return self._table_field(table, "create_table_query")

    def get_table_size(self, table: str) -> int:
        total_bytes = self._table_field(table, "total_bytes")
        if total_bytes is None:
            raise UnsupportedError("table size", f"{self.backend} engine of {table}")
        return total_bytes

    def get_catalog_counts(self) -> CatalogCounts:
        row = self.execute(
            f"""
            SELECT
                countIf(engine NOT IN {VIEW_ENGINES!r}),
                countIf(engine IN {VIEW_ENGINES!r}),
                (SELECT count() FROM system.data_skipping_indices WHERE database = currentDatabase())
            FROM system.tables
            WHERE database = currentDatabase() AND NOT is_temporary
            """
        ).rows[0]
        # ClickHouse has no triggers
        return CatalogCounts(tables=row[0], views=row[1], indexes=row[2], triggers=None)

    def get_database_info(self) -> DatabaseInfo:
        name, version, size = self.execute(
            """
            SELECT currentDatabase(), version(),
                   (SELECT sum(total_bytes) FROM system.tables WHERE database = currentDatabase())
            """
        ).rows[0]
        return DatabaseInfo(name=name, version=version, size_bytes=size)
