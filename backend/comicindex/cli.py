from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import AUDIT_LOG_PATH, DB_PATH, NORMALIZE_QUERY_TERMS, SOURCE_BASE_URL
from .errors import DecodeError, IndexRunAborted, StorageError
from .indexing.indexer import Indexer
from .ingest.audit_log import AuditLog
from .ingest.sources.xkcd import XkcdClient
from .schemas import Document
from .search.searcher import search
from .storage.database import IndexDatabase
from .utils.logging import configure, get_logger

logger = get_logger(__name__)


def _print_document(doc: Document) -> None:
    print(f"Num: {doc.num}\nLink: {doc.link}\nTitle: {doc.title}\nTranscript: {doc.transcript}\n")


def run_update(db: IndexDatabase, base_url: str, log_path: Path, limit: Optional[int]) -> int:
    client = XkcdClient(base_url=base_url)
    try:
        result = Indexer(db, client, audit_log=AuditLog(log_path)).update(limit=limit)
    except IndexRunAborted as e:
        print(f"update failed after {e.processed} documents: {e.__cause__ or e}", file=sys.stderr)
        return 1
    finally:
        client.close()
    print(f"documents processed: {result.processed}")
    print(f"terms updated: {len(result.postings)}")
    print(f"next id: {result.next_cursor}")
    return 0


def view_index(db: IndexDatabase) -> int:
    total = 0
    with db.read() as tx:
        for term, ids in tx.postings.scan_all():
            print(f"key = '{term}'\tvalue = {ids}")
            total += 1
    print(f"\nTotal entries: {total}")
    return 0


def view_data(db: IndexDatabase) -> int:
    total = 0
    with db.read() as tx:
        for doc_id, doc in tx.documents.scan_all():
            print(f"key = '{doc_id}'\tvalue = {doc.model_dump()}\n")
            total += 1
    print(f"\nTotal entries: {total}")
    return 0


def run_search(db: IndexDatabase, query: Optional[str], normalize: bool) -> int:
    if query is None:
        try:
            query = input("Enter search query: ")
        except EOFError:
            query = ""
    results = search(query, db, normalize=normalize)
    if not results:
        print("No documents matched the query.")
        return 0
    print(f"results returned: {len(results)}")
    for doc in results:
        _print_document(doc)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Incremental xkcd index: update, inspect and search")
    parser.add_argument("-u", "--update", action="store_true", help="fetch new comics and update the index")
    parser.add_argument("-vi", "--view-index", action="store_true", help="print the inverted index")
    parser.add_argument("-vd", "--view-data", action="store_true", help="print the stored documents")
    parser.add_argument("-s", "--search", nargs="?", const="", default=None, metavar="QUERY",
                        help="AND query; prompts when QUERY is omitted")
    parser.add_argument("--db", type=Path, default=DB_PATH, help="index database path")
    parser.add_argument("--log-file", type=Path, default=AUDIT_LOG_PATH, help="append-only audit log path")
    parser.add_argument("--base-url", default=SOURCE_BASE_URL)
    parser.add_argument("--limit", type=int, default=None, help="stop an update after this many documents")
    parser.add_argument("--normalize", action="store_true", default=NORMALIZE_QUERY_TERMS,
                        help="run query terms through the indexing tokenizer")
    parser.add_argument("--log-level", default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure(args.log_level)

    if not (args.update or args.view_index or args.view_data or args.search is not None):
        parser.print_help()
        return 2

    db = IndexDatabase(args.db)
    status = 0
    try:
        if args.update:
            status |= run_update(db, args.base_url, args.log_file, args.limit)
        if args.view_index:
            status |= view_index(db)
        if args.view_data:
            status |= view_data(db)
        if args.search is not None:
            status |= run_search(db, args.search or None, args.normalize)
    except StorageError as e:
        print(f"storage error: {e}", file=sys.stderr)
        return 1
    except DecodeError as e:
        print(f"corrupt index record: {e}", file=sys.stderr)
        return 1
    return status


if __name__ == "__main__":
    sys.exit(main())
