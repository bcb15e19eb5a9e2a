from __future__ import annotations
from typing import Iterator, Optional, Tuple

from ..schemas import Document
from .base import Table
from .codec import decode_document, encode_document, pack_id, unpack_id


class DocumentStore(Table):
    """Document records keyed by packed ID.

    ``put`` is an upsert: re-processing an ID replaces the stored record.
    """

    def put(self, doc_id: int, doc: Document) -> None:
        self._require_writable()
        if doc.id != doc_id:
            raise ValueError(f"document id {doc.id} stored under key {doc_id}")
        self._conn.execute(
            "INSERT INTO documents (id, body) VALUES (?, ?) "
            "ON CONFLICT(id) DO UPDATE SET body = excluded.body",
            (pack_id(doc_id), encode_document(doc)),
        )

    def get(self, doc_id: int) -> Optional[Document]:
        row = self._conn.execute("SELECT body FROM documents WHERE id = ?", (pack_id(doc_id),)).fetchone()
        if row is None:
            return None
        return decode_document(row[0])

    def scan_all(self) -> Iterator[Tuple[int, Document]]:
        # big-endian keys sort numerically
        for raw_id, body in self._conn.execute("SELECT id, body FROM documents ORDER BY id"):
            yield unpack_id(raw_id), decode_document(body)

    def count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]
