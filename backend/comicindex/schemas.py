from __future__ import annotations
from typing import Optional, List
from pydantic import BaseModel, Field

class Document(BaseModel):
    id: int = Field(..., gt=0)
    num: int = 0
    title: str = ""
    safe_title: str = ""
    transcript: str = ""
    alt: str = ""
    news: str = ""
    img: str = ""
    year: str = ""
    month: str = ""
    day: str = ""
    link: str = ""

    def indexable_text(self) -> str:
        # num first, title last; month/day/img/link are stored but not indexed
        parts = [str(self.num) if self.num else "", self.year, self.news, self.safe_title,
                 self.transcript, self.alt, self.title]
        return " ".join(p for p in parts if p)

class SearchRequest(BaseModel):
    query: str = ""
    limit: Optional[int] = Field(default=None, gt=0)
    normalize: Optional[bool] = None

class SearchResponse(BaseModel):
    query: str
    terms: List[str]
    took_ms: int
    total_hits: int
    results: List[Document]

class UpdateRequest(BaseModel):
    limit: Optional[int] = Field(default=None, gt=0)

class UpdateResponse(BaseModel):
    start_id: int
    processed: int
    last_processed_id: Optional[int] = None
    cursor: int
    terms_updated: int

class PostingsEntry(BaseModel):
    term: str
    ids: List[int]

class PostingsDump(BaseModel):
    total: int
    entries: List[PostingsEntry]

class DocumentsDump(BaseModel):
    total: int
    documents: List[Document]

class HealthResponse(BaseModel):
    status: str
    cursor: Optional[int] = None
    docs_count: int
    terms_count: int
