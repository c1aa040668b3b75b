"""Scoped sqlite connections for the history database."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from ...errors import DatabaseError

_LOGGER = logging.getLogger(__name__)


class ConnectionPool:
    """Hand out sqlite connections and keep a few idle ones for reuse.

    Every connection is committed when its block succeeds and rolled back
    when it raises. Use the pool as a context manager (or call
    :meth:`close_all`) so idle connections are closed deterministically.
    """

    def __init__(self, db_path: Union[Path, str], max_idle: int = 1):
        self._db_path = Path(db_path)
        self._max_idle = max_idle
        self._idle: list[sqlite3.Connection] = []
        self._closed = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> ConnectionPool:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close_all()

    def _open(self) -> sqlite3.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise DatabaseError(f"Cannot open {self._db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        _LOGGER.debug("Opened %s", self._db_path)
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        if self._closed:
            raise DatabaseError(f"Connection pool for {self._db_path} is closed")
        conn = self._idle.pop() if self._idle else self._open()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            if len(self._idle) < self._max_idle and not self._closed:
                self._idle.append(conn)
            else:
                conn.close()

    def close_all(self) -> None:
        """Close idle connections and refuse new ones."""
        self._closed = True
        while self._idle:
            self._idle.pop().close()
