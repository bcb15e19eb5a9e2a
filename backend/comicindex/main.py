from __future__ import annotations
from typing import Optional
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .schemas import (SearchRequest, SearchResponse, UpdateRequest, UpdateResponse, HealthResponse,
                      PostingsDump, PostingsEntry, DocumentsDump)
from .errors import DecodeError, IndexRunAborted, StorageError
from .storage.database import IndexDatabase
from .ingest.audit_log import AuditLog
from .ingest.sources.xkcd import XkcdClient
from .indexing.indexer import Indexer
from .search.searcher import search_request
from .utils.logging import configure, get_logger


configure()
logger = get_logger(__name__)

app = FastAPI(title="comicindex", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

DB = IndexDatabase()
AUDIT_LOG = AuditLog()


def get_db() -> IndexDatabase:
    return DB


def get_client():
    client = XkcdClient()
    try:
        yield client
    finally:
        client.close()


def get_audit_log() -> AuditLog:
    return AUDIT_LOG


@app.exception_handler(DecodeError)
async def _corrupt_record(request: Request, exc: DecodeError):
    logger.error("corrupt index record on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": f"corrupt index record: {exc}"})


def _storage_failure(e: StorageError) -> HTTPException:
    logger.error("storage failure: %s", e)
    return HTTPException(status_code=503, detail=str(e))


@app.get("/health", response_model=HealthResponse)
def health(db: IndexDatabase = Depends(get_db)):
    try:
        with db.read() as tx:
            return HealthResponse(
                status="ok",
                cursor=tx.cursor.get(),
                docs_count=tx.documents.count(),
                terms_count=tx.postings.count(),
            )
    except StorageError as e:
        raise _storage_failure(e)

@app.post("/search", response_model=SearchResponse)
def search(req: SearchRequest, db: IndexDatabase = Depends(get_db)):
    try:
        return search_request(req, db)
    except StorageError as e:
        raise _storage_failure(e)

@app.post("/admin/update", response_model=UpdateResponse)
def update(req: Optional[UpdateRequest] = None,
           db: IndexDatabase = Depends(get_db),
           client: XkcdClient = Depends(get_client),
           audit_log: AuditLog = Depends(get_audit_log)):
    try:
        result = Indexer(db, client, audit_log=audit_log).update(limit=req.limit if req else None)
    except IndexRunAborted as e:
        raise HTTPException(status_code=502, detail={"error": str(e), "processed": e.processed})
    except StorageError as e:
        raise _storage_failure(e)
    return UpdateResponse(
        start_id=result.start_id,
        processed=result.processed,
        last_processed_id=result.last_processed_id,
        cursor=result.next_cursor,
        terms_updated=len(result.postings),
    )

@app.get("/admin/postings", response_model=PostingsDump)
def dump_postings(db: IndexDatabase = Depends(get_db)):
    try:
        with db.read() as tx:
            entries = [PostingsEntry(term=t, ids=ids) for t, ids in tx.postings.scan_all()]
    except StorageError as e:
        raise _storage_failure(e)
    return PostingsDump(total=len(entries), entries=entries)

@app.get("/admin/documents", response_model=DocumentsDump)
def dump_documents(db: IndexDatabase = Depends(get_db)):
    try:
        with db.read() as tx:
            docs = [doc for _, doc in tx.documents.scan_all()]
    except StorageError as e:
        raise _storage_failure(e)
    return DocumentsDump(total=len(docs), documents=docs)
