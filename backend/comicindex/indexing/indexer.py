# File: indexing/indexer.py

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from ..config import RESERVED_IDS
from ..errors import DecodeError, IndexRunAborted, StorageError, TransportError
from ..ingest.audit_log import AuditLog
from ..ingest.sources.xkcd import decode_payload
from ..schemas import Document
from ..storage.database import IndexDatabase
from ..utils.logging import get_logger
from .tokenizer import document_terms

logger = get_logger(__name__)


@dataclass
class BuildResult:
    """Postings and document deltas of one run, not yet persisted."""

    start_id: int
    last_processed_id: Optional[int] = None
    postings: Dict[str, List[int]] = field(default_factory=dict)
    documents: Dict[int, Document] = field(default_factory=dict)
    processed: int = 0
    frontier_reached: bool = False

    def add(self, doc: Document, terms: Iterable[str]) -> None:
        for term in terms:
            ids = self.postings.setdefault(term, [])
            if ids:
                if ids[-1] == doc.id:
                    continue
                if ids[-1] > doc.id:
                    raise ValueError(f"id {doc.id} appended after {ids[-1]} for term {term!r}")
            ids.append(doc.id)
        self.documents[doc.id] = doc
        self.last_processed_id = doc.id
        self.processed += 1

    @property
    def next_cursor(self) -> int:
        if self.last_processed_id is None:
            return self.start_id
        return self.last_processed_id + 1


class Indexer:
    """Runs incremental update passes against one index database.

    Usage:
        indexer = Indexer(IndexDatabase(), XkcdClient())
        result = indexer.update()

    Only one update should run against a database at a time.
    """

    def __init__(
        self,
        db: IndexDatabase,
        client,
        audit_log: Optional[AuditLog] = None,
        reserved_ids: Iterable[int] = RESERVED_IDS,
        decode: Callable[[bytes, int, str], Document] = decode_payload,
    ):
        self.db = db
        self.client = client
        self.audit_log = audit_log
        self.reserved_ids = frozenset(reserved_ids)
        self.decode = decode

    # =========================
    # Fetch + tokenize
    # =========================
    def build(self, start_id: int, limit: Optional[int] = None) -> BuildResult:
        """
        Fetch documents upward from ``start_id`` until the frontier (first
        ID the source does not have) or until ``limit`` documents are done.

        Raises IndexRunAborted on a transport or decode error; the partial
        result is dropped.
        """
        if start_id < 1:
            raise ValueError(f"start id must be positive, got {start_id}")
        result = BuildResult(start_id=start_id)
        doc_id = start_id
        while limit is None or result.processed < limit:
            if doc_id in self.reserved_ids:
                logger.debug("skipping reserved id %d", doc_id)
                doc_id += 1
                continue
            try:
                payload = self.client.fetch(doc_id)
                if payload is None:
                    result.frontier_reached = True
                    logger.info("frontier reached at id %d", doc_id)
                    break
                doc = self.decode(payload, doc_id, self.client.link_for(doc_id))
            except (TransportError, DecodeError) as e:
                logger.error("update aborted at id %d after %d documents: %s", doc_id, result.processed, e)
                raise IndexRunAborted(
                    f"update aborted at id {doc_id}: {e}",
                    processed=result.processed,
                    start_id=start_id,
                ) from e
            result.add(doc, document_terms(doc))
            logger.debug("processed id %d", doc_id)
            doc_id += 1
        return result

    # =========================
    # Persist
    # =========================
    def flush(self, result: BuildResult) -> None:
        """Merge postings, upsert documents and move the cursor in one transaction."""
        with self.db.write() as tx:
            for term, ids in result.postings.items():
                tx.postings.merge(term, ids)
            for doc_id, doc in result.documents.items():
                tx.documents.put(doc_id, doc)
            tx.cursor.set(result.next_cursor)
        logger.info(
            "flushed %d documents, %d terms, cursor=%d",
            len(result.documents), len(result.postings), result.next_cursor,
        )

    def update(self, limit: Optional[int] = None) -> BuildResult:
        """One full pass: read cursor, build, flush, then audit-log."""
        with self.db.read() as tx:
            cursor = tx.cursor.get()
        start_id = cursor if cursor is not None else 1
        logger.info("update starting at id %d", start_id)

        result = self.build(start_id, limit=limit)
        try:
            self.flush(result)
        except StorageError as e:
            logger.error("flush failed after %d documents: %s", result.processed, e)
            raise IndexRunAborted(
                f"flush failed: {e}",
                processed=result.processed,
                start_id=start_id,
            ) from e

        if self.audit_log is not None:
            self.audit_log.append(result.documents[k] for k in sorted(result.documents))
        return result


def update_index(db: IndexDatabase, client, audit_log: Optional[AuditLog] = None,
                 limit: Optional[int] = None) -> BuildResult:
    return Indexer(db, client, audit_log=audit_log).update(limit=limit)
