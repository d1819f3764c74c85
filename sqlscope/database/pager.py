"""Offset-based table paging under a stable ordering."""

import logging
from typing import List, TYPE_CHECKING

from ..errors import InvalidRequestError
from .models import Page

if TYPE_CHECKING:
    from .base import DatabaseAdapter

logger = logging.getLogger(__name__)


class Pager:
    """Reads page ``n`` of a table as rows ``(n-1)*size .. n*size-1``.

    Rows are ordered by the primary key, else by the engine's insertion-order
    pseudo-column, else by every column, so a page always holds the same
    rows while the table is unchanged.
    """

    def __init__(self, adapter: "DatabaseAdapter", page_size: int):
        if page_size < 1:
            raise InvalidRequestError("page_size must be at least 1", details={"page_size": page_size})
        self.adapter = adapter
        self.page_size = page_size

    def order_by(self, table: str) -> List[str]:
        """Quoted ORDER BY expressions for ``table``."""
        quote = self.adapter.quote_identifier

        primary_keys = self.adapter.get_primary_keys(table)
        if primary_keys:
            return [quote(c) for c in primary_keys]

        pseudo = self.adapter.insertion_order_column(table)
        if pseudo:
            return [pseudo]

        return [quote(c.name) for c in self.adapter.get_columns(table)]

    def page(self, table: str, page: int) -> Page:
        """Fetch one page; past the last page the result is empty."""
        if page < 1:
            raise InvalidRequestError(f"Page must be 1 or greater, got {page}", details={"page": page})

        self.adapter.require_table(table)

        offset = (page - 1) * self.page_size
        sql = (
            f"SELECT * FROM {self.adapter.qualified_name(table)}"
            f" ORDER BY {', '.join(self.order_by(table))}"
            f" LIMIT {self.page_size} OFFSET {offset}"
        )
        logger.debug("Paging %s: %s", table, sql)

        raw = self.adapter.execute(sql)
        columns = raw.columns or [c.name for c in self.adapter.get_columns(table)]

        return Page(
            columns=columns,
            rows=self.adapter.to_values(raw),
            page=page,
            page_size=self.page_size,
        )
