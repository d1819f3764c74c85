"""Passthrough execution of user statements."""

import logging
from typing import TYPE_CHECKING

from .models import QueryResult

if TYPE_CHECKING:
    from .base import DatabaseAdapter

logger = logging.getLogger(__name__)


class QueryExecutor:
    """Runs statement text as given and coerces the result.

    Statements that produce no result set (DDL, DML) yield an empty column
    list and no rows. Nothing is retried.
    """

    def __init__(self, adapter: "DatabaseAdapter"):
        self.adapter = adapter

    def run(self, sql: str) -> QueryResult:
        logger.debug("Executing query (%d chars)", len(sql))
        raw = self.adapter.execute(sql)
        if not raw.columns:
            return QueryResult(columns=[], rows=[])
        return QueryResult(columns=list(raw.columns), rows=self.adapter.to_values(raw))
