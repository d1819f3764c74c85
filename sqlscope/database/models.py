"""Database data models for introspection, paging and query results."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING
from dataclasses import dataclass, field

from .values import Value, ValueKind

if TYPE_CHECKING:
    from .type_mappers import TypeMapper


def format_size(size: float) -> str:
    """Render a byte count as human-readable text, e.g. ``1.50 KB``."""
    units = ["B", "KB", "MB", "GB", "TB"]
    unit = 0
    while size >= 1024.0 and unit < len(units) - 1:
        size /= 1024.0
        unit += 1
    return f"{size:.2f} {units[unit]}"


@dataclass
class Column:
    """Represents a database column."""
    name: str
    data_type: str
    is_nullable: bool = True
    is_primary_key: bool = False
    ordinal_position: int = 0
    _type_mapper: Optional['TypeMapper'] = field(default=None, repr=False, compare=False)

    def value_kind(self) -> ValueKind:
        """Value kind the engine's type mapper expects for this declared type."""
        if self._type_mapper:
            return self._type_mapper.value_kind(self.data_type)
        return ValueKind.TEXT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "data_type": self.data_type,
            "is_nullable": self.is_nullable,
            "is_primary_key": self.is_primary_key,
            "ordinal_position": self.ordinal_position,
            "value_kind": self.value_kind().value,
        }


@dataclass(frozen=True)
class RowCount:
    """A row count and whether it is a catalog estimate."""
    value: int
    is_estimate: bool = False

    @classmethod
    def exact(cls, value: int) -> "RowCount":
        return cls(value=int(value), is_estimate=False)

    @classmethod
    def estimate(cls, value: int) -> "RowCount":
        return cls(value=max(int(value), 0), is_estimate=True)


@dataclass
class TableSummary:
    """Table name with its row count."""
    name: str
    row_count: RowCount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "count": self.row_count.value,
            "count_is_estimate": self.row_count.is_estimate,
        }


@dataclass
class TableMeta:
    """Represents a database table's metadata."""
    name: str
    row_count: RowCount
    columns: List[Column] = field(default_factory=list)
    index_count: Optional[int] = None
    sql: Optional[str] = None
    size_bytes: Optional[int] = None

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def primary_key_columns(self) -> List[str]:
        return [c.name for c in self.columns if c.is_primary_key]

    @property
    def table_size(self) -> Optional[str]:
        if self.size_bytes is None:
            return None
        return format_size(self.size_bytes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "sql": self.sql,
            "row_count": self.row_count.value,
            "row_count_is_estimate": self.row_count.is_estimate,
            "index_count": self.index_count,
            "column_count": self.column_count,
            "table_size": self.table_size,
            "size_bytes": self.size_bytes,
            "columns": [c.to_dict() for c in self.columns],
        }


@dataclass
class ForeignKey:
    """A foreign-key constraint as reported by the engine catalog."""
    from_table: str
    from_columns: List[str]
    to_table: str
    to_columns: List[str]
    name: Optional[str] = None


@dataclass(frozen=True)
class Relationship:
    """Represents a directed foreign-key edge between two columns."""
    from_table: str
    from_column: str
    to_table: str
    to_column: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "from_table": self.from_table,
            "from_column": self.from_column,
            "to_table": self.to_table,
            "to_column": self.to_column,
        }


@dataclass
class RawResult:
    """Native driver output before coercion."""
    columns: List[str] = field(default_factory=list)
    types: List[Optional[str]] = field(default_factory=list)
    rows: List[Sequence[Any]] = field(default_factory=list)

    def scalar(self) -> Any:
        """First column of the first row, or None when there are no rows."""
        if not self.rows or not self.rows[0]:
            return None
        return self.rows[0][0]

    def column(self, index: int = 0) -> List[Any]:
        return [row[index] for row in self.rows]


@dataclass
class QueryResult:
    """Column names plus rows of Values."""
    columns: List[str] = field(default_factory=list)
    rows: List[List[Value]] = field(default_factory=list)

    def __post_init__(self):
        if not self.columns and self.rows:
            raise ValueError("a result without columns cannot carry rows")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": self.columns,
            "rows": [[v.to_json() for v in row] for row in self.rows],
        }


@dataclass
class Page:
    """One offset-addressed slice of a table."""
    columns: List[str]
    rows: List[List[Value]]
    page: int
    page_size: int

    @property
    def has_more(self) -> bool:
        """Whether a further page may exist (a short page is the last one)."""
        return len(self.rows) >= self.page_size

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": self.columns,
            "rows": [[v.to_json() for v in row] for row in self.rows],
            "page": self.page,
            "page_size": self.page_size,
            "has_more": self.has_more,
        }


@dataclass
class Count:
    """A named count used for overview charts."""
    name: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count}


@dataclass
class CatalogCounts:
    """Catalog-wide object counts. None means the engine has no such object."""
    tables: int
    indexes: Optional[int] = None
    views: Optional[int] = None
    triggers: Optional[int] = None


@dataclass
class DatabaseInfo:
    """Database-level facts an adapter can report."""
    name: str
    version: Optional[str] = None
    size_bytes: Optional[int] = None
    created: Optional[datetime] = None
    modified: Optional[datetime] = None


@dataclass
class OverviewStats:
    """Aggregate statistics for the whole database."""
    name: str
    backend: str
    tables: int
    version: Optional[str] = None
    size_bytes: Optional[int] = None
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    indexes: Optional[int] = None
    views: Optional[int] = None
    triggers: Optional[int] = None
    row_counts: List[Count] = field(default_factory=list)
    column_counts: List[Count] = field(default_factory=list)
    index_counts: List[Count] = field(default_factory=list)
    row_counts_estimated: bool = False

    @property
    def db_size(self) -> Optional[str]:
        if self.size_bytes is None:
            return None
        return format_size(self.size_bytes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_name": self.name,
            "backend": self.backend,
            "version": self.version,
            "db_size": self.db_size,
            "size_bytes": self.size_bytes,
            "created": self.created.isoformat() if self.created else None,
            "modified": self.modified.isoformat() if self.modified else None,
            "tables": self.tables,
            "indexes": self.indexes,
            "views": self.views,
            "triggers": self.triggers,
            "row_counts": [c.to_dict() for c in self.row_counts],
            "row_counts_estimated": self.row_counts_estimated,
            "column_counts": [c.to_dict() for c in self.column_counts],
            "index_counts": [c.to_dict() for c in self.index_counts],
        }
