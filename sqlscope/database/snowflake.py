"""Snowflake database adapter."""

import logging
import os
from typing import Any, Dict, List, Optional, Sequence

from ..config import Settings
from ..errors import ConnectionLostError, QueryExecutionError
from .base import DatabaseAdapter
from .models import CatalogCounts, Column, DatabaseInfo, ForeignKey, RawResult, RowCount
from .pool import ConnectionPool
from .type_mappers import SnowflakeTypeMapper

logger = logging.getLogger(__name__)


class SnowflakeAdapter(DatabaseAdapter):
    """Adapter for one schema of a Snowflake database."""

    backend = "snowflake"

    def __init__(
        self,
        account: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        database: Optional[str] = None,
        schema: Optional[str] = None,
        warehouse: Optional[str] = None,
        role: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(SnowflakeTypeMapper(), settings)
        self.account = account or os.environ.get("SNOWFLAKE_ACCOUNT")
        self.user = user or os.environ.get("SNOWFLAKE_USER")
        self.password = password or os.environ.get("SNOWFLAKE_PASSWORD")
        self.database = database or os.environ.get("SNOWFLAKE_DATABASE")
        self.schema = schema or os.environ.get("SNOWFLAKE_SCHEMA") or "PUBLIC"
        self.warehouse = warehouse or os.environ.get("SNOWFLAKE_WAREHOUSE")
        self.role = role or os.environ.get("SNOWFLAKE_ROLE")
        self._connector = None

    def _open_connection(self):
        try:
            return self._connector.connect(
                account=self.account,
                user=self.user,
                password=self.password,
                warehouse=self.warehouse,
                database=self.database,
                schema=self.schema,
                role=self.role,
                login_timeout=self.settings.connect_timeout,
            )
        except self._connector.errors.Error as e:
            raise ConnectionLostError(
                f"Could not connect to Snowflake account {self.account}: {e}",
                details={"account": self.account},
            ) from e

    def connect(self):
        """Create the connection pool."""
        if self._pool is not None:
            return self._pool

        try:
            import snowflake.connector
        except ImportError:
            raise ImportError(
                "snowflake-connector-python is required. "
                "Install it with: pip install snowflake-connector-python"
            )
        self._connector = snowflake.connector
        self._pool = ConnectionPool(self._open_connection, self.settings.pool_max_size)
        return self._pool

    def close(self):
        """Close all pooled connections."""
        if self._pool is not None:
            self._pool.close_all()
            self._pool = None

    def _is_broken(self, error: BaseException) -> bool:
        return isinstance(error, self._connector.errors.OperationalError)

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> RawResult:
        """Execute one statement on a pooled connection."""
        pool = self.connect()
        errors = self._connector.errors
        try:
            with pool.connection(self._is_broken) as conn:
                cursor = conn.cursor()
                try:
                    cursor.execute(sql, params)
                    if cursor.description is None:
                        return RawResult()
                    columns = [d[0] for d in cursor.description]
                    return RawResult(columns=columns, types=[None] * len(columns), rows=cursor.fetchall())
                finally:
                    cursor.close()
        except errors.OperationalError as e:
            raise ConnectionLostError(f"Snowflake connection lost: {e}") from e
        except errors.Error as e:
            raise QueryExecutionError(getattr(e, "raw_msg", None) or str(e), sql=sql) from e

    def qualified_name(self, table: str) -> str:
        return f"{self.quote_identifier(self.schema)}.{self.quote_identifier(table)}"

    def _show(self, sql: str) -> List[Dict[str, Any]]:
        """Run a SHOW command and key each row by lower-cased column name."""
        result = self.execute(sql)
        names = [c.lower() for c in result.columns]
        return [dict(zip(names, row)) for row in result.rows]

    def get_tables(self) -> List[str]:
        result = self.execute(
            """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = %s
              AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """,
            (self.schema,),
        )
        return result.column(0)

    def get_columns(self, table: str) -> List[Column]:
        """Columns with ``NUMBER(p,s)`` precision restored from the catalog."""
        primary_keys = set(self.get_primary_keys(table))
        result = self.execute(
            """
            SELECT column_name, data_type, is_nullable, ordinal_position,
                   numeric_precision, numeric_scale
            FROM information_schema.columns
            WHERE table_schema = %s
              AND table_name = %s
            ORDER BY ordinal_position
            """,
            (self.schema, table),
        )

        columns = []
        for name, data_type, nullable, position, precision, scale in result.rows:
            if data_type == "NUMBER" and precision is not None:
                data_type = f"NUMBER({precision},{scale or 0})"
            columns.append(Column(
                name=name,
                data_type=data_type,
                is_nullable=(nullable == "YES"),
                is_primary_key=name in primary_keys,
                ordinal_position=position,
                _type_mapper=self.type_mapper,
            ))
        return columns

    def get_primary_keys(self, table: str) -> List[str]:
        rows = self._show(f"SHOW PRIMARY KEYS IN TABLE {self.qualified_name(table)}")
        rows.sort(key=lambda r: r.get("key_sequence") or 0)
        return [r["column_name"] for r in rows]

    def get_foreign_keys(self, table: str) -> List[ForeignKey]:
        rows = self._show(f"SHOW IMPORTED KEYS IN TABLE {self.qualified_name(table)}")
        rows.sort(key=lambda r: (r.get("fk_name") or "", r.get("key_sequence") or 0))

        constraints: Dict[str, ForeignKey] = {}
        for row in rows:
            name = row.get("fk_name") or f"{table}_{row['pk_table_name']}"
            fk = constraints.get(name)
            if fk is None:
                fk = constraints[name] = ForeignKey(
                    name=name, from_table=table, from_columns=[], to_table=row["pk_table_name"], to_columns=[]
                )
            fk.from_columns.append(row["fk_column_name"])
            fk.to_columns.append(row["pk_column_name"])
        return list(constraints.values())

    def _table_stats(self, table: str) -> Sequence[Any]:
        # row_count, bytes
        return self.execute(
            """
            SELECT row_count, bytes
            FROM information_schema.tables
            WHERE table_schema = %s
              AND table_name = %s
            """,
            (self.schema, table),
        ).rows[0]

    def get_row_count(self, table: str) -> RowCount:
        """Snowflake keeps exact row counts in table metadata."""
        if self.settings.exact_row_counts:
            return self.count_rows(table)
        row_count = self._table_stats(table)[0]
        if row_count is None:
            return self.count_rows(table)
        return RowCount.exact(row_count)

    def get_table_ddl(self, table: str) -> Optional[str]:
        return self.execute("SELECT GET_DDL('TABLE', %s)", (self.qualified_name(table),)).scalar()

    def get_table_size(self, table: str) -> int:
        return int(self._table_stats(table)[1] or 0)

    def get_catalog_counts(self) -> CatalogCounts:
        row = self.execute(
            """
            SELECT
                (SELECT count(*) FROM information_schema.tables
                 WHERE table_schema = %s AND table_type = 'BASE TABLE'),
                (SELECT count(*) FROM information_schema.views WHERE table_schema = %s)
            """,
            (self.schema, self.schema),
        ).rows[0]
        # Snowflake has neither user indexes nor triggers
        return CatalogCounts(tables=row[0], views=row[1], indexes=None, triggers=None)

    def get_database_info(self) -> DatabaseInfo:
        name, version = self.execute("SELECT CURRENT_DATABASE(), CURRENT_VERSION()").rows[0]
        size, created, modified = self.execute(
            """
            SELECT
                (SELECT SUM(bytes) FROM information_schema.tables WHERE table_schema = %s),
                created,
                last_altered
            FROM information_schema.databases
            WHERE database_name = CURRENT_DATABASE()
            """,
            (self.schema,),
        ).rows[0]
        return DatabaseInfo(
            name=name,
            version=version,
            size_bytes=int(size) if size is not None else None,
            created=created,
            modified=modified,
        )
