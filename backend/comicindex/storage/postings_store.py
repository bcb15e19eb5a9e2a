from __future__ import annotations
from typing import Iterable, Iterator, List, Tuple

from .base import Table
from .codec import pack_ids, unpack_ids


def check_ascending(ids: List[int]) -> None:
    """Raise ValueError unless ``ids`` is strictly ascending."""
    for prev, cur in zip(ids, ids[1:]):
        if cur <= prev:
            raise ValueError(f"postings not strictly ascending: {prev} then {cur}")


def merge_ids(existing: List[int], new_ids: Iterable[int]) -> List[int]:
    """Add the IDs of ``new_ids`` missing from ``existing``, keeping ascending order."""
    additions = sorted(set(new_ids).difference(existing))
    if not additions:
        return list(existing)
    if not existing or additions[0] > existing[-1]:
        # common case: a run only ever sees IDs past everything stored
        return list(existing) + additions
    return sorted(set(existing).union(additions))


class PostingsStore(Table):
    """term -> packed ascending, duplicate-free document IDs."""

    def get(self, term: str) -> List[int]:
        row = self._conn.execute("SELECT ids FROM postings WHERE term = ?", (term,)).fetchone()
        if row is None:
            return []
        return unpack_ids(row[0])

    def merge(self, term: str, new_ids: Iterable[int]) -> List[int]:
        self._require_writable()
        existing = self.get(term)
        merged = merge_ids(existing, new_ids)
        check_ascending(merged)
        if merged != existing:
            self._conn.execute(
                "INSERT INTO postings (term, ids) VALUES (?, ?) "
                "ON CONFLICT(term) DO UPDATE SET ids = excluded.ids",
                (term, pack_ids(merged)),
            )
        return merged

    def scan_all(self) -> Iterator[Tuple[str, List[int]]]:
        """Yield every (term, ids) in term order; consume inside the transaction."""
        for term, raw in self._conn.execute("SELECT term, ids FROM postings ORDER BY term"):
            yield term, unpack_ids(raw)

    def count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM postings").fetchone()[0]
