"""SQLite database adapter."""

import logging
import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..config import Settings
from ..errors import ConnectionLostError, QueryExecutionError, UnsupportedError
from .base import DatabaseAdapter
from .models import CatalogCounts, Column, DatabaseInfo, ForeignKey, RawResult, RowCount
from .pool import ConnectionPool
from .type_mappers import SQLiteTypeMapper, TypeMapper

logger = logging.getLogger(__name__)

# Internal tables such as sqlite_sequence and sqlite_stat1
USER_TABLE_FILTER = "name NOT LIKE 'sqlite\\_%' ESCAPE '\\'"


class SQLiteAdapter(DatabaseAdapter):
    """Adapter for a SQLite database file.

    Access goes through a small pool of connections opened with
    ``check_same_thread=False`` so requests on different threads never share
    a cursor.
    """

    backend = "sqlite"
    INSERTION_ORDER_COLUMN = "rowid"

    def __init__(
        self,
        path: str,
        read_only: bool = False,
        settings: Optional[Settings] = None,
        type_mapper: Optional[TypeMapper] = None,
    ):
        super().__init__(type_mapper or SQLiteTypeMapper(), settings)
        self.path = path
        self.read_only = read_only

    def _database_uri(self) -> str:
        mode = "ro" if self.read_only else "rw"
        return f"{Path(self.path).absolute().as_uri()}?mode={mode}"

    def _open_connection(self) -> sqlite3.Connection:
        if os.path.isdir(self.path):
            raise ConnectionLostError(
                f"Path points to a directory, expected a database file: {self.path}",
                details={"path": self.path},
            )
        try:
            return sqlite3.connect(
                self._database_uri(),
                uri=True,
                check_same_thread=False,
                isolation_level=None,  # Auto-commit mode
            )
        except sqlite3.Error as e:
            raise ConnectionLostError(
                f"Could not open SQLite database {self.path}: {e}",
                details={"path": self.path},
            ) from e

    def connect(self):
        """Create the connection pool. Connections open on first checkout."""
        if self._pool is None:
            self._pool = ConnectionPool(self._open_connection, self.settings.file_pool_size)
        return self._pool

    def close(self):
        """Close all pooled connections."""
        if self._pool is not None:
            self._pool.close_all()
            self._pool = None

    @staticmethod
    def _is_broken(error: BaseException) -> bool:
        return isinstance(error, sqlite3.ProgrammingError) and "closed" in str(error).lower()

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> RawResult:
        """Execute one statement on a pooled connection."""
        pool = self.connect()
        try:
            with pool.connection(self._is_broken) as conn:
                cursor = conn.execute(sql, tuple(params or ()))
                try:
                    if cursor.description is None:
                        return RawResult()
                    columns = [d[0] for d in cursor.description]
                    return RawResult(columns=columns, types=[None] * len(columns), rows=cursor.fetchall())
                finally:
                    cursor.close()
        except sqlite3.Error as e:
            if self._is_broken(e):
                raise ConnectionLostError(str(e)) from e
            raise QueryExecutionError(str(e), sql=sql) from e

    def ping(self) -> None:
        # Also proves the file really is a SQLite database
        self.execute("SELECT count(*) FROM sqlite_master")

    def get_tables(self) -> List[str]:
        """Get all user tables."""
        result = self.execute(
            f"SELECT name FROM sqlite_master WHERE type = 'table' AND {USER_TABLE_FILTER} ORDER BY name"
        )
        return result.column(0)

    def _table_info(self, table: str) -> List[Sequence[Any]]:
        # cid, name, type, notnull, dflt_value, pk
        return self.execute("SELECT * FROM pragma_table_info(?)", [table]).rows

    def get_columns(self, table: str) -> List[Column]:
        """Get all columns for a table."""
        columns = []
        for row in self._table_info(table):
            columns.append(Column(
                name=row[1],
                data_type=row[2] or "",
                is_nullable=not row[3],
                is_primary_key=row[5] > 0,
                ordinal_position=row[0] + 1,
                _type_mapper=self.type_mapper,
            ))
        return columns

    def get_primary_keys(self, table: str) -> List[str]:
        """Primary key columns ordered by their position in the key."""
        keyed = [(row[5], row[1]) for row in self._table_info(table) if row[5] > 0]
        return [name for _, name in sorted(keyed)]

    def get_row_count(self, table: str) -> RowCount:
        return self.count_rows(table)

    def get_index_count(self, table: str) -> int:
        """Indexes on the table, counting an INTEGER PRIMARY KEY as one.

        A rowid primary key is the table's b-tree itself and has no entry in
        ``index_list``, but it still answers lookups like an index.
        """
        # seq, name, unique, origin, partial
        indexes = self.execute("SELECT * FROM pragma_index_list(?)", [table]).rows
        count = len(indexes)
        has_pk_index = any(row[3] == "pk" for row in indexes)
        if self.get_primary_keys(table) and not has_pk_index:
            count += 1
        return count

    def get_table_ddl(self, table: str) -> Optional[str]:
        result = self.execute(
            "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = ?", [table]
        )
        return result.scalar()

    def get_table_size(self, table: str) -> int:
        """On-disk size from the dbstat virtual table."""
        try:
            result = self.execute("SELECT SUM(pgsize) FROM dbstat WHERE name = ?", [table])
        except QueryExecutionError as e:
            # Builds without SQLITE_ENABLE_DBSTAT_VTAB
            logger.debug("dbstat unavailable: %s", e.message)
            raise UnsupportedError("table size", self.backend) from e
        return int(result.scalar() or 0)

    def get_foreign_keys(self, table: str) -> List[ForeignKey]:
        """Foreign keys from ``PRAGMA foreign_key_list``.

        ``REFERENCES parent`` without a column list targets the parent's
        primary key.
        """
        # id, seq, table, from, to, on_update, on_delete, match
        rows = self.execute("SELECT * FROM pragma_foreign_key_list(?)", [table]).rows

        grouped: Dict[int, List[Sequence[Any]]] = {}
        for row in rows:
            grouped.setdefault(row[0], []).append(row)

        foreign_keys = []
        for fk_id in sorted(grouped):
            parts = sorted(grouped[fk_id], key=lambda r: r[1])
            to_table = parts[0][2]
            to_columns = [r[4] for r in parts]
            if any(c is None for c in to_columns):
                to_columns = self.get_primary_keys(to_table)
            foreign_keys.append(ForeignKey(
                name=f"{table}_fk_{fk_id}",
                from_table=table,
                from_columns=[r[3] for r in parts],
                to_table=to_table,
                to_columns=to_columns,
            ))
        return foreign_keys

    def get_catalog_counts(self) -> CatalogCounts:
        counts = {
            kind: count
            for kind, count in self.execute(
                f"SELECT type, count(*) FROM sqlite_master WHERE {USER_TABLE_FILTER} GROUP BY type"
            ).rows
        }
        return CatalogCounts(
            tables=counts.get("table", 0),
            indexes=counts.get("index", 0),
            views=counts.get("view", 0),
            triggers=counts.get("trigger", 0),
        )

    def get_database_info(self) -> DatabaseInfo:
        """File name, SQLite library version and file system timestamps."""
        stat = os.stat(self.path)
        birth = getattr(stat, "st_birthtime", None)
        return DatabaseInfo(
            name=Path(self.path).name,
            version=sqlite3.sqlite_version,
            size_bytes=stat.st_size,
            created=datetime.fromtimestamp(birth, tz=timezone.utc) if birth else None,
            modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )
