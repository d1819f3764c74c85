"""Abstract base class for database adapters."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, TYPE_CHECKING

from ..config import Settings, settings as default_settings
from ..errors import TableNotFoundError, UnsupportedError
from .models import (
    CatalogCounts,
    Column,
    DatabaseInfo,
    ForeignKey,
    OverviewStats,
    Page,
    QueryResult,
    RawResult,
    Relationship,
    RowCount,
    TableMeta,
    TableSummary,
)
from .type_mappers import TypeMapper
from .values import Value

if TYPE_CHECKING:
    from .pool import ConnectionPool


class DatabaseAdapter(ABC):
    """Abstract base class for one engine's view of a single database.

    Subclasses implement the engine hooks (``connect``, ``execute``,
    ``get_tables`` and friends). The public capability methods
    (``list_tables``, ``table_meta``, ``table_page``, ``execute_query``,
    ``relationships``, ``overview``) are shared and compose those hooks.

    Optional hooks raise :class:`UnsupportedError` by default; the
    introspector turns that into an absent field.
    """

    # Backend kind reported in the overview
    backend: str = "unknown"

    # Pseudo-column giving a stable physical order when a table has no key
    INSERTION_ORDER_COLUMN: Optional[str] = None

    IDENTIFIER_QUOTE: str = '"'

    def __init__(self, type_mapper: TypeMapper, settings: Optional[Settings] = None):
        self.type_mapper = type_mapper
        self.settings = settings or default_settings
        self._pool: Optional["ConnectionPool"] = None

    # ---- engine hooks ---------------------------------------------------

    @abstractmethod
    def connect(self):
        """Open the adapter's pool or client."""
        pass

    @abstractmethod
    def close(self):
        """Close every connection the adapter holds."""
        pass

    @abstractmethod
    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> RawResult:
        """Run one statement and return native rows.

        Driver errors are translated into ``QueryExecutionError`` (the
        backend's message, verbatim) or ``ConnectionLostError``.
        """
        pass

    @abstractmethod
    def get_tables(self) -> List[str]:
        """Names of the user tables in the explored database/schema."""
        pass

    @abstractmethod
    def get_columns(self, table: str) -> List[Column]:
        """Columns of a table in ordinal order, primary key flags included."""
        pass

    @abstractmethod
    def get_primary_keys(self, table: str) -> List[str]:
        """Primary key columns of a table in key order."""
        pass

    @abstractmethod
    def get_row_count(self, table: str) -> RowCount:
        pass

    @abstractmethod
    def get_catalog_counts(self) -> CatalogCounts:
        pass

    @abstractmethod
    def get_database_info(self) -> DatabaseInfo:
        pass

    def get_index_count(self, table: str) -> int:
        raise UnsupportedError("index count", self.backend)

    def get_table_ddl(self, table: str) -> Optional[str]:
        raise UnsupportedError("table DDL", self.backend)

    def get_table_size(self, table: str) -> int:
        raise UnsupportedError("table size", self.backend)

    def get_foreign_keys(self, table: str) -> List[ForeignKey]:
        raise UnsupportedError("foreign keys", self.backend)

    def insertion_order_column(self, table: str) -> Optional[str]:
        """Pseudo-column usable for ordering ``table`` when it has no primary key."""
        return self.INSERTION_ORDER_COLUMN

    # ---- helpers shared by adapters -------------------------------------

    def quote_identifier(self, name: str) -> str:
        q = self.IDENTIFIER_QUOTE
        return f"{q}{name.replace(q, q + q)}{q}"

    def qualified_name(self, table: str) -> str:
        """Table reference usable in a FROM clause."""
        return self.quote_identifier(table)

    def count_rows(self, table: str) -> RowCount:
        """Exact ``count(*)`` of a table."""
        result = self.execute(f"SELECT count(*) FROM {self.qualified_name(table)}")
        return RowCount.exact(result.scalar() or 0)

    def require_table(self, table: str) -> str:
        """Raise TableNotFoundError unless ``table`` is a listed table."""
        if table not in self.get_tables():
            raise TableNotFoundError(table)
        return table

    def to_values(self, raw: RawResult) -> List[List[Value]]:
        """Coerce every native cell of a result through the type mapper."""
        types = list(raw.types) + [None] * (len(raw.columns) - len(raw.types))
        return [
            [self.type_mapper.to_value(cell, types[i]) for i, cell in enumerate(row)]
            for row in raw.rows
        ]

    def ping(self) -> None:
        """Run a trivial statement to prove the session is usable."""
        self.execute("SELECT 1")

    # ---- capability interface -------------------------------------------

    def list_tables(self) -> List[TableSummary]:
        from .introspector import SchemaIntrospector
        return SchemaIntrospector(self).list_tables()

    def table_meta(self, table: str) -> TableMeta:
        from .introspector import SchemaIntrospector
        return SchemaIntrospector(self).table_meta(table)

    def table_page(self, table: str, page: int, page_size: Optional[int] = None) -> Page:
        from .pager import Pager
        return Pager(self, page_size or self.settings.page_size).page(table, page)

    def execute_query(self, sql: str) -> QueryResult:
        from .executor import QueryExecutor
        return QueryExecutor(self).run(sql)

    def relationships(self) -> List[Relationship]:
        from .relationship import RelationshipExtractor
        return RelationshipExtractor(self).extract()

    def overview(self) -> OverviewStats:
        from .introspector import SchemaIntrospector
        return SchemaIntrospector(self).overview()

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
