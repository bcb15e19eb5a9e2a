from __future__ import annotations
import sqlite3

from ..errors import StorageError


class Table:
    """A logical table reached through an open transaction's connection."""

    def __init__(self, conn: sqlite3.Connection, writable: bool = False):
        self._conn = conn
        self._writable = writable

    def _require_writable(self) -> None:
        if not self._writable:
            raise StorageError(f"{type(self).__name__} is open in a read-only transaction")
