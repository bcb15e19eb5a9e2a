from __future__ import annotations
from typing import Optional

from .base import Table
from .codec import pack_id, unpack_id

_KEY = "cursor"


class CursorStore(Table):
    """The next document ID to fetch. ``None`` means nothing was indexed yet."""

    def get(self) -> Optional[int]:
        row = self._conn.execute("SELECT value FROM meta WHERE key = ?", (_KEY,)).fetchone()
        return None if row is None else unpack_id(row[0])

    def set(self, next_id: int) -> None:
        self._require_writable()
        if next_id < 1:
            raise ValueError(f"cursor must be positive, got {next_id}")
        self._conn.execute(
            "INSERT INTO meta (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (_KEY, pack_id(next_id)),
        )
