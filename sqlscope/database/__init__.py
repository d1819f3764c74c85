"""Multi-backend database layer for sqlscope.

This module provides one adapter interface with implementations for
SQLite, libSQL, DuckDB, PostgreSQL, MySQL, ClickHouse and Snowflake,
plus the introspection, paging and query components built on top of it.
"""

from .values import Value, ValueKind, coerce_native
from .models import (
    Column,
    RowCount,
    TableSummary,
    TableMeta,
    ForeignKey,
    Relationship,
    RawResult,
    QueryResult,
    Page,
    Count,
    CatalogCounts,
    DatabaseInfo,
    OverviewStats,
    format_size,
)
from .base import DatabaseAdapter
from .pool import ConnectionPool
from .introspector import SchemaIntrospector
from .relationship import RelationshipExtractor
from .pager import Pager
from .executor import QueryExecutor
from .autocomplete import AutocompleteIndex
from .type_mappers import (
    TypeMapper,
    SQLiteTypeMapper,
    LibSQLTypeMapper,
    DuckDBTypeMapper,
    PostgresTypeMapper,
    MySQLTypeMapper,
    ClickHouseTypeMapper,
    SnowflakeTypeMapper,
)
from .sqlite import SQLiteAdapter
from .libsql import LibSQLAdapter
from .duckdb import DuckDBAdapter
from .postgres import PostgresAdapter
from .mysql import MySQLAdapter
from .clickhouse import ClickHouseAdapter
from .snowflake import SnowflakeAdapter

__all__ = [
    # Value model
    "Value",
    "ValueKind",
    "coerce_native",
    # Data models
    "Column",
    "RowCount",
    "TableSummary",
    "TableMeta",
    "ForeignKey",
    "Relationship",
    "RawResult",
    "QueryResult",
    "Page",
    "Count",
    "CatalogCounts",
    "DatabaseInfo",
    "OverviewStats",
    "format_size",
    # Base classes
    "DatabaseAdapter",
    "ConnectionPool",
    # Core components
    "SchemaIntrospector",
    "RelationshipExtractor",
    "Pager",
    "QueryExecutor",
    "AutocompleteIndex",
    # Type mappers
    "TypeMapper",
    "SQLiteTypeMapper",
    "LibSQLTypeMapper",
    "DuckDBTypeMapper",
    "PostgresTypeMapper",
    "MySQLTypeMapper",
    "ClickHouseTypeMapper",
    "SnowflakeTypeMapper",
    # Adapters
    "SQLiteAdapter",
    "LibSQLAdapter",
    "DuckDBAdapter",
    "PostgresAdapter",
    "MySQLAdapter",
    "ClickHouseAdapter",
    "SnowflakeAdapter",
]
