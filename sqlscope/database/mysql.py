"""MySQL / MariaDB database adapter."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..config import Settings
from ..errors import ConnectionLostError, QueryExecutionError
from .base import DatabaseAdapter
from .models import CatalogCounts, Column, DatabaseInfo, ForeignKey, RawResult, RowCount
from .pool import ConnectionPool
from .type_mappers import MySQLTypeMapper
from .values import to_utc

logger = logging.getLogger(__name__)

# Client error codes meaning the server session is gone
CONNECTION_LOST_CODES = {2003, 2006, 2013, 2055}

# pymysql.constants.FIELD_TYPE.JSON
JSON_FIELD_TYPE = 245


class MySQLAdapter(DatabaseAdapter):
    """Adapter for the current database of a MySQL or MariaDB server."""

    backend = "mysql"
    IDENTIFIER_QUOTE = "`"

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3306,
        user: Optional[str] = None,
        password: Optional[str] = None,
        database: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(MySQLTypeMapper(), settings)
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self._pymysql = None

    def _open_connection(self):
        try:
            return self._pymysql.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password or "",
                database=self.database,
                charset="utf8mb4",
                autocommit=True,
                connect_timeout=self.settings.connect_timeout,
            )
        except self._pymysql.MySQLError as e:
            raise ConnectionLostError(
                f"Could not connect to MySQL at {self.host}:{self.port}: {e}",
                details={"host": self.host, "port": self.port},
            ) from e

    def connect(self):
        """Create the connection pool."""
        if self._pool is not None:
            return self._pool

        try:
            import pymysql
        except ImportError:
            raise ImportError(
                "pymysql is required for MySQL. "
                "Install it with: pip install pymysql"
            )
        self._pymysql = pymysql
        self._pool = ConnectionPool(self._open_connection, self.settings.pool_max_size)
        return self._pool

    def close(self):
        """Close all pooled connections."""
        if self._pool is not None:
            self._pool.close_all()
            self._pool = None

    def _is_connection_error(self, error: BaseException) -> bool:
        err = self._pymysql.err
        if isinstance(error, err.InterfaceError):
            return True
        return isinstance(error, err.OperationalError) and bool(error.args) and error.args[0] in CONNECTION_LOST_CODES

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> RawResult:
        """Execute one statement on a pooled connection."""
        pool = self.connect()
        try:
            with pool.connection(self._is_connection_error) as conn:
                with conn.cursor() as cursor:
                    cursor.execute(sql, params)
                    if cursor.description is None:
                        return RawResult()
                    columns = [d[0] for d in cursor.description]
                    types = ["json" if d[1] == JSON_FIELD_TYPE else None for d in cursor.description]
                    return RawResult(columns=columns, types=types, rows=list(cursor.fetchall()))
        except self._pymysql.MySQLError as e:
            if self._is_connection_error(e):
                raise ConnectionLostError(f"MySQL connection lost: {e}") from e
            # args are (errno, server message)
            message = e.args[1] if len(e.args) > 1 else str(e)
            raise QueryExecutionError(message, sql=sql) from e

    def get_tables(self) -> List[str]:
        result = self.execute(
            """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = DATABASE()
              AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """
        )
        return result.column(0)

    def get_columns(self, table: str) -> List[Column]:
        """Columns using ``column_type`` so ``tinyint(1)`` reads as boolean."""
        result = self.execute(
            """
            SELECT column_name, column_type, is_nullable, column_key, ordinal_position
            FROM information_schema.columns
            WHERE table_schema = DATABASE()
              AND table_name = %s
            ORDER BY ordinal_position
            """,
            (table,),
        )

        columns = []
        for row in result.rows:
            columns.append(Column(
                name=row[0],
                data_type=row[1],
                is_nullable=(row[2] == "YES"),
                is_primary_key=(row[3] == "PRI"),
                ordinal_position=row[4],
                _type_mapper=self.type_mapper,
            ))
        return columns

    def get_primary_keys(self, table: str) -> List[str]:
        result = self.execute(
            """
            SELECT column_name
            FROM information_schema.key_column_usage
            WHERE table_schema = DATABASE()
              AND table_name = %s
              AND constraint_name = 'PRIMARY'
            ORDER BY ordinal_position
            """,
            (table,),
        )
        return result.column(0)

    def get_foreign_keys(self, table: str) -> List[ForeignKey]:
        result = self.execute(
            """
            SELECT constraint_name, column_name, referenced_table_name, referenced_column_name
            FROM information_schema.key_column_usage
            WHERE table_schema = DATABASE()
              AND table_name = %s
              AND referenced_table_name IS NOT NULL
            ORDER BY constraint_name, ordinal_position
            """,
            (table,),
        )

        constraints: Dict[str, ForeignKey] = {}
        for name, from_column, to_table, to_column in result.rows:
            fk = constraints.get(name)
            if fk is None:
                fk = constraints[name] = ForeignKey(
                    name=name, from_table=table, from_columns=[], to_table=to_table, to_columns=[]
                )
            fk.from_columns.append(from_column)
            fk.to_columns.append(to_column)
        return list(constraints.values())

    def _table_status(self, table: str) -> Sequence[Any]:
        # table_rows, data_length + index_length
        return self.execute(
            """
            SELECT table_rows, data_length + index_length
            FROM information_schema.tables
            WHERE table_schema = DATABASE()
              AND table_name = %s
            """,
            (table,),
        ).rows[0]

    def get_row_count(self, table: str) -> RowCount:
        """InnoDB's ``table_rows`` estimate, or ``count(*)`` when asked for exact counts."""
        if self.settings.exact_row_counts:
            return self.count_rows(table)
        estimate = self._table_status(table)[0]
        if estimate is None:
            return self.count_rows(table)
        return RowCount.estimate(estimate)

    def get_index_count(self, table: str) -> int:
        return self.execute(
            """
            SELECT count(DISTINCT index_name)
            FROM information_schema.statistics
            WHERE table_schema = DATABASE()
              AND table_name = %s
            """,
            (table,),
        ).scalar()

    def get_table_ddl(self, table: str) -> Optional[str]:
        result = self.execute(f"SHOW CREATE TABLE {self.quote_identifier(table)}")
        if not result.rows:
            return None
        return result.rows[0][1]

    def get_table_size(self, table: str) -> int:
        return int(self._table_status(table)[1] or 0)

    def get_catalog_counts(self) -> CatalogCounts:
        row = self.execute(
            """
            SELECT
                (SELECT count(*) FROM information_schema.tables
                 WHERE table_schema = DATABASE() AND table_type = 'BASE TABLE'),
                (SELECT count(DISTINCT table_name, index_name) FROM information_schema.statistics
                 WHERE table_schema = DATABASE()),
                (SELECT count(*) FROM information_schema.views WHERE table_schema = DATABASE()),
                (SELECT count(*) FROM information_schema.triggers WHERE trigger_schema = DATABASE())
            """
        ).rows[0]
        return CatalogCounts(tables=row[0], indexes=row[1], views=row[2], triggers=row[3])

    def get_database_info(self) -> DatabaseInfo:
        name, version, size, modified = self.execute(
            """
            SELECT DATABASE(), VERSION(),
                   (SELECT SUM(data_length + index_length) FROM information_schema.tables
                    WHERE table_schema = DATABASE()),
                   (SELECT MAX(update_time) FROM information_schema.tables
                    WHERE table_schema = DATABASE())
            """
        ).rows[0]
        return DatabaseInfo(
            name=name or self.database or "",
            version=version,
            size_bytes=int(size) if size is not None else None,
            modified=to_utc(modified) if modified is not None else None,
        )
