"""Schema introspection composed from adapter hooks."""

import logging
from typing import Any, Callable, List, Optional, TYPE_CHECKING

from ..errors import UnsupportedError
from .models import Count, OverviewStats, TableMeta, TableSummary

if TYPE_CHECKING:
    from .base import DatabaseAdapter

logger = logging.getLogger(__name__)


def optional_metadata(fetch: Callable[..., Any], *args) -> Optional[Any]:
    """Call an optional adapter hook, mapping UnsupportedError to None."""
    try:
        return fetch(*args)
    except UnsupportedError as e:
        logger.debug("%s", e.message)
        return None


def _by_count_desc(counts: List[Count]) -> List[Count]:
    return sorted(counts, key=lambda c: (-c.count, c.name))


class SchemaIntrospector:
    """Builds table summaries, table metadata and overview statistics."""

    def __init__(self, adapter: "DatabaseAdapter"):
        self.adapter = adapter

    def list_tables(self) -> List[TableSummary]:
        """All user tables with row counts, smallest first."""
        summaries = [
            TableSummary(name=name, row_count=self.adapter.get_row_count(name))
            for name in self.adapter.get_tables()
        ]
        summaries.sort(key=lambda s: (s.row_count.value, s.name))
        return summaries

    def table_meta(self, table: str) -> TableMeta:
        """Full metadata for one table.

        Raises:
            TableNotFoundError: If the table is not one of ``list_tables``.
        """
        self.adapter.require_table(table)

        return TableMeta(
            name=table,
            row_count=self.adapter.get_row_count(table),
            columns=self.adapter.get_columns(table),
            index_count=optional_metadata(self.adapter.get_index_count, table),
            sql=optional_metadata(self.adapter.get_table_ddl, table),
            size_bytes=optional_metadata(self.adapter.get_table_size, table),
        )

    def overview(self) -> OverviewStats:
        """Database-wide statistics for the landing view."""
        info = self.adapter.get_database_info()
        catalog = self.adapter.get_catalog_counts()

        row_counts: List[Count] = []
        column_counts: List[Count] = []
        index_counts: List[Count] = []
        estimated = False
        indexes_supported = True

        for name in self.adapter.get_tables():
            row_count = self.adapter.get_row_count(name)
            estimated = estimated or row_count.is_estimate
            row_counts.append(Count(name, row_count.value))
            column_counts.append(Count(name, len(self.adapter.get_columns(name))))

            if indexes_supported:
                index_count = optional_metadata(self.adapter.get_index_count, name)
                if index_count is None:
                    indexes_supported = False
                    index_counts = []
                else:
                    index_counts.append(Count(name, index_count))

        logger.debug("Overview of %s: %d tables", info.name, catalog.tables)

        return OverviewStats(
            name=info.name,
            backend=self.adapter.backend,
            tables=catalog.tables,
            version=info.version,
            size_bytes=info.size_bytes,
            created=info.created,
            modified=info.modified,
            indexes=catalog.indexes,
            views=catalog.views,
            triggers=catalog.triggers,
            row_counts=_by_count_desc(row_counts),
            column_counts=_by_count_desc(column_counts),
            index_counts=_by_count_desc(index_counts),
            row_counts_estimated=estimated,
        )
