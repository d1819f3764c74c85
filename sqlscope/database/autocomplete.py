"""Cached table and column name index for editor autocompletion."""

import logging
import threading
from typing import Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import DatabaseAdapter

logger = logging.getLogger(__name__)


class AutocompleteIndex:
    """Table name to column names, built on first use and rebuilt on refresh.

    The index never watches the database; callers invalidate it after schema
    changes they know about.
    """

    def __init__(self, adapter: "DatabaseAdapter"):
        self.adapter = adapter
        self._entries: Optional[Dict[str, List[str]]] = None
        self._lock = threading.Lock()

    @property
    def is_built(self) -> bool:
        return self._entries is not None

    def get(self) -> Dict[str, List[str]]:
        """Return the index, building it synchronously if needed."""
        with self._lock:
            if self._entries is None:
                self._entries = self._build()
            return dict(self._entries)

    def refresh(self) -> Dict[str, List[str]]:
        """Rebuild from the current schema and swap it in."""
        entries = self._build()
        with self._lock:
            self._entries = entries
            return dict(entries)

    def invalidate(self) -> None:
        """Drop the cached index; the next ``get`` rebuilds it."""
        with self._lock:
            self._entries = None

    def _build(self) -> Dict[str, List[str]]:
        entries = {}
        for table in self.adapter.get_tables():
            entries[table] = [c.name for c in self.adapter.get_columns(table)]
        logger.debug("Built autocomplete index with %d tables", len(entries))
        return entries
