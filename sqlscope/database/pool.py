"""Bounded, thread-safe connection pool.

Checkouts are bounded by a semaphore; idle connections sit on a stack so the
most recently used one is handed out first. A connection that failed while
checked out is discarded instead of returned, and the next checkout opens a
fresh one.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Small pool of driver connections produced by ``factory``."""

    def __init__(
        self,
        factory: Callable[[], Any],
        max_size: int = 5,
        closer: Optional[Callable[[Any], None]] = None,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._factory = factory
        self._closer = closer or (lambda conn: conn.close())
        self.max_size = max_size
        self._idle: List[Any] = []
        self._lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(max_size)
        self._closed = False
        self.created = 0

    @property
    def idle_count(self) -> int:
        with self._lock:
            return len(self._idle)

    @property
    def closed(self) -> bool:
        return self._closed

    def acquire(self) -> Any:
        """Check out a connection, blocking while all slots are in use."""
        if self._closed:
            raise RuntimeError("connection pool is closed")
        self._slots.acquire()
        with self._lock:
            if self._idle:
                return self._idle.pop()
        try:
            conn = self._factory()
        except Exception:
            self._slots.release()
            raise
        with self._lock:
            self.created += 1
        logger.debug("Opened pooled connection #%d", self.created)
        return conn

    def release(self, conn: Any, broken: bool = False) -> None:
        """Return a connection; broken ones are closed and dropped."""
        try:
            if broken or self._closed:
                self._discard(conn)
                return
            with self._lock:
                self._idle.append(conn)
        finally:
            self._slots.release()

    @contextmanager
    def connection(self, is_broken: Optional[Callable[[BaseException], bool]] = None) -> Iterator[Any]:
        """Context manager around acquire/release.

        ``is_broken`` decides whether an exception raised inside the block
        means the connection itself is unusable.
        """
        conn = self.acquire()
        broken = False
        try:
            yield conn
        except BaseException as e:
            broken = is_broken(e) if is_broken else False
            raise
        finally:
            self.release(conn, broken=broken)

    def close_all(self) -> None:
        """Close every idle connection and refuse further checkouts."""
        self._closed = True
        with self._lock:
            idle, self._idle = self._idle, []
        for conn in idle:
            self._discard(conn)

    def _discard(self, conn: Any) -> None:
        try:
            self._closer(conn)
        except Exception as e:
            logger.debug("Ignoring error while closing pooled connection: %s", e)
