"""Relationship extraction from declared foreign keys."""

import logging
from typing import List, Set, Tuple, TYPE_CHECKING

from ..errors import UnsupportedError
from .models import ForeignKey, Relationship

if TYPE_CHECKING:
    from .base import DatabaseAdapter

logger = logging.getLogger(__name__)


class RelationshipExtractor:
    """Flattens every foreign-key constraint into column-pair relationships.

    A composite key of k columns yields k parallel relationships; self
    references are kept.
    """

    def __init__(self, adapter: "DatabaseAdapter"):
        self.adapter = adapter

    def extract(self) -> List[Relationship]:
        """Relationships for every table, empty when the engine has no foreign keys."""
        relationships = []

        for table in self.adapter.get_tables():
            try:
                foreign_keys = self.adapter.get_foreign_keys(table)
            except UnsupportedError as e:
                logger.debug("No relationships: %s", e.message)
                return []

            for fk in foreign_keys:
                relationships.extend(self._flatten(fk))

        return self._deduplicate_relationships(relationships)

    def _flatten(self, fk: ForeignKey) -> List[Relationship]:
        if len(fk.from_columns) != len(fk.to_columns):
            logger.warning(
                "Foreign key %s on %s pairs %d columns with %d, using the shorter list",
                fk.name or "<unnamed>", fk.from_table, len(fk.from_columns), len(fk.to_columns)
            )
        return [
            Relationship(
                from_table=fk.from_table,
                from_column=from_column,
                to_table=fk.to_table,
                to_column=to_column,
            )
            for from_column, to_column in zip(fk.from_columns, fk.to_columns)
        ]

    def _deduplicate_relationships(self, relationships: List[Relationship]) -> List[Relationship]:
        """Remove duplicate relationships, keeping first-seen order."""
        seen: Set[Tuple[str, str, str, str]] = set()
        unique = []

        for rel in relationships:
            key = (rel.from_table, rel.from_column, rel.to_table, rel.to_column)
            if key not in seen:
                seen.add(key)
                unique.append(rel)

        return unique
