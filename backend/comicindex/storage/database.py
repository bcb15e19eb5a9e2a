from __future__ import annotations
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
import sqlite3

from ..config import DB_PATH
from ..errors import StorageError
from ..utils.logging import get_logger
from .cursor_store import CursorStore
from .document_store import DocumentStore
from .postings_store import PostingsStore

logger = get_logger(__name__)

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS postings (term TEXT PRIMARY KEY, ids BLOB NOT NULL) WITHOUT ROWID",
    "CREATE TABLE IF NOT EXISTS documents (id BLOB PRIMARY KEY, body BLOB NOT NULL) WITHOUT ROWID",
    "CREATE TABLE IF NOT EXISTS meta (key TEXT PRIMARY KEY, value BLOB NOT NULL) WITHOUT ROWID",
)


class Transaction:
    """The three logical tables, bound to one open transaction."""

    def __init__(self, conn: sqlite3.Connection, writable: bool):
        self.writable = writable
        self.postings = PostingsStore(conn, writable)
        self.documents = DocumentStore(conn, writable)
        self.cursor = CursorStore(conn, writable)


class IndexDatabase:
    """One SQLite file holding postings, documents and the resume cursor.

    Every ``read()`` / ``write()`` opens its own connection, so readers get
    a consistent snapshot (WAL mode) while a writer commits. A write
    transaction either commits as a whole or is rolled back.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else DB_PATH
        self._schema_ready = False

    def _connect(self) -> sqlite3.Connection:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.path), isolation_level=None)
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            if not self._schema_ready:
                for stmt in _SCHEMA:
                    conn.execute(stmt)
                self._schema_ready = True
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"cannot open index database {self.path}: {e}") from e
        return conn

    @contextmanager
    def _transaction(self, writable: bool) -> Iterator[Transaction]:
        conn = self._connect()
        try:
            try:
                conn.execute("BEGIN IMMEDIATE" if writable else "BEGIN")
            except sqlite3.Error as e:
                raise StorageError(f"cannot begin transaction: {e}") from e
            try:
                yield Transaction(conn, writable)
                conn.execute("COMMIT")
            except BaseException as e:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                if isinstance(e, sqlite3.Error):
                    kind = "write" if writable else "read"
                    raise StorageError(f"{kind} transaction failed: {e}") from e
                raise
        finally:
            conn.close()

    def read(self):
        return self._transaction(writable=False)

    def write(self):
        return self._transaction(writable=True)
