"""DuckDB database adapter."""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Sequence

from ..config import Settings
from ..errors import ConnectionLostError, QueryExecutionError
from .base import DatabaseAdapter
from .models import CatalogCounts, Column, DatabaseInfo, ForeignKey, RawResult, RowCount
from .pool import ConnectionPool
from .type_mappers import DuckDBTypeMapper

logger = logging.getLogger(__name__)


class DuckDBAdapter(DatabaseAdapter):
    """Adapter for a DuckDB database file.

    DuckDB allows one writable handle per file per process, so the adapter
    opens a single database handle and pools cursors derived from it.
    """

    backend = "duckdb"
    INSERTION_ORDER_COLUMN = "rowid"

    def __init__(
        self,
        database_path: Optional[str] = None,
        connection_string: Optional[str] = None,
        read_only: bool = False,
        schema: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize DuckDB adapter.

        Args:
            database_path: Path to .duckdb file (can be :memory: for in-memory)
            connection_string: Alternative connection string format
                               (e.g., duckdb:///path/to/db.duckdb)
            read_only: Open database in read-only mode
            schema: Schema to explore (defaults to settings.duckdb_schema)
        """
        super().__init__(DuckDBTypeMapper(), settings)
        self.database_path = database_path or self._path_from_connection_string(connection_string)
        self.read_only = read_only
        self.schema = schema or self.settings.duckdb_schema
        self._root = None
        self._duckdb = None
        self._database_name = self._extract_database_name()

    @staticmethod
    def _path_from_connection_string(connection_string: Optional[str]) -> str:
        if not connection_string:
            return ":memory:"
        # Remove duckdb:/// prefix if present
        path = connection_string
        if path.startswith("duckdb:///"):
            path = path[10:]
        elif path.startswith("duckdb://"):
            path = path[9:]
        # Remove query parameters if any
        if "?" in path:
            path = path.split("?")[0]
        return path or ":memory:"

    def _extract_database_name(self) -> str:
        """Extract database name from the file path."""
        if self.database_path == ":memory:":
            return "memory"
        return Path(self.database_path).name

    def connect(self):
        """Open the database handle and the cursor pool."""
        if self._pool is not None:
            return self._pool

        try:
            import duckdb
        except ImportError:
            raise ImportError(
                "duckdb is required. "
                "Install it with: pip install duckdb"
            )
        self._duckdb = duckdb

        try:
            self._root = duckdb.connect(self.database_path, read_only=self.read_only)
        except duckdb.Error as e:
            raise ConnectionLostError(
                f"Could not open DuckDB database {self.database_path}: {e}",
                details={"path": self.database_path},
            ) from e

        self._pool = ConnectionPool(self._root.cursor, self.settings.file_pool_size)
        return self._pool

    def close(self):
        """Close pooled cursors and the DuckDB connection."""
        if self._pool is not None:
            self._pool.close_all()
            self._pool = None
        if self._root is not None:
            self._root.close()
            self._root = None

    def _is_broken(self, error: BaseException) -> bool:
        return self._duckdb is not None and isinstance(error, self._duckdb.ConnectionException)

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> RawResult:
        """Execute one statement on a pooled cursor."""
        pool = self.connect()
        duckdb = self._duckdb
        try:
            with pool.connection(self._is_broken) as cursor:
                if params:
                    cursor.execute(sql, list(params))
                else:
                    cursor.execute(sql)
                if cursor.description is None:
                    return RawResult()
                columns = [d[0] for d in cursor.description]
                return RawResult(columns=columns, types=[None] * len(columns), rows=cursor.fetchall())
        except duckdb.ConnectionException as e:
            raise ConnectionLostError(str(e)) from e
        except duckdb.Error as e:
            raise QueryExecutionError(str(e), sql=sql) from e

    def qualified_name(self, table: str) -> str:
        return f"{self.quote_identifier(self.schema)}.{self.quote_identifier(table)}"

    def get_tables(self) -> List[str]:
        """Get all base tables in the schema."""
        result = self.execute(
            """
            SELECT table_name
            FROM duckdb_tables()
            WHERE database_name = current_database()
              AND schema_name = ?
              AND NOT internal
              AND NOT temporary
            ORDER BY table_name
            """,
            [self.schema],
        )
        return result.column(0)

    def get_columns(self, table: str) -> List[Column]:
        """Get all columns for a table."""
        primary_keys = set(self.get_primary_keys(table))
        result = self.execute(
            """
            SELECT column_name, data_type, is_nullable, column_index
            FROM duckdb_columns()
            WHERE database_name = current_database()
              AND schema_name = ?
              AND table_name = ?
            ORDER BY column_index
            """,
            [self.schema, table],
        )

        columns = []
        for row in result.rows:
            columns.append(Column(
                name=row[0],
                data_type=row[1],
                is_nullable=bool(row[2]),
                is_primary_key=row[0] in primary_keys,
                ordinal_position=row[3],
                _type_mapper=self.type_mapper,
            ))
        return columns

    def _constraints(self, table: str, constraint_type: str) -> List[Sequence[Any]]:
        return self.execute(
            """
            SELECT constraint_column_names, referenced_table, referenced_column_names
            FROM duckdb_constraints()
            WHERE database_name = current_database()
              AND schema_name = ?
              AND table_name = ?
              AND constraint_type = ?
            ORDER BY constraint_index
            """,
            [self.schema, table, constraint_type],
        ).rows

    def get_primary_keys(self, table: str) -> List[str]:
        """Get primary key columns from duckdb_constraints()."""
        rows = self._constraints(table, "PRIMARY KEY")
        if not rows:
            return []
        pk_columns = rows[0][0]
        if isinstance(pk_columns, list):
            return pk_columns
        return [pk_columns]

    def get_foreign_keys(self, table: str) -> List[ForeignKey]:
        foreign_keys = []
        for from_columns, to_table, to_columns in self._constraints(table, "FOREIGN KEY"):
            foreign_keys.append(ForeignKey(
                from_table=table,
                from_columns=list(from_columns),
                to_table=to_table,
                to_columns=list(to_columns or []) or self.get_primary_keys(to_table),
            ))
        return foreign_keys

    def get_row_count(self, table: str) -> RowCount:
        return self.count_rows(table)

    def get_index_count(self, table: str) -> int:
        """Explicit indexes plus one for a primary key's implicit ART index."""
        count = self.execute(
            """
            SELECT count(*)
            FROM duckdb_indexes()
            WHERE database_name = current_database()
              AND schema_name = ?
              AND table_name = ?
            """,
            [self.schema, table],
        ).scalar()
        if self.get_primary_keys(table):
            count += 1
        return count

    def get_table_ddl(self, table: str) -> Optional[str]:
        return self.execute(
            """
            SELECT sql
            FROM duckdb_tables()
            WHERE database_name = current_database()
              AND schema_name = ?
              AND table_name = ?
            """,
            [self.schema, table],
        ).scalar()

    def get_catalog_counts(self) -> CatalogCounts:
        def count(function: str, extra: str = "") -> int:
            return self.execute(
                f"SELECT count(*) FROM {function}() "
                f"WHERE database_name = current_database() AND schema_name = ? {extra}",
                [self.schema],
            ).scalar()

        # DuckDB has no triggers
        return CatalogCounts(
            tables=count("duckdb_tables", "AND NOT internal AND NOT temporary"),
            indexes=count("duckdb_indexes"),
            views=count("duckdb_views", "AND NOT internal"),
            triggers=None,
        )

    def get_database_info(self) -> DatabaseInfo:
        version = self.execute("SELECT version()").scalar()
        info = DatabaseInfo(name=self._database_name, version=version)
        if self.database_path != ":memory:" and os.path.exists(self.database_path):
            stat = os.stat(self.database_path)
            info.size_bytes = stat.st_size
            info.modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        return info
