from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..config import NORMALIZE_QUERY_TERMS
from ..indexing.tokenizer import tokenize
from ..schemas import Document, SearchRequest, SearchResponse
from ..storage.database import IndexDatabase
from ..utils.logging import get_logger
from ..utils.timing import timer_ms

logger = get_logger(__name__)


@dataclass
class TermPostings:
    term: str
    ids: List[int]
    length: int


def parse_terms(query: str, normalize: bool = False) -> List[str]:
    """
    Split a query into its distinct terms, first occurrence first.

    Without ``normalize`` terms are used verbatim, so punctuated or
    capitalised terms only match if they were indexed that way (they
    never are). With ``normalize`` the query goes through the indexing
    tokenizer.
    """
    raw = tokenize(query) if normalize else query.strip().split()
    return list(dict.fromkeys(raw))


def intersect(a: Sequence[int], b: Sequence[int]) -> List[int]:
    """
    Intersect two ascending, duplicate-free ID lists.

    ``a`` should be the shorter list: it becomes the lookup set, and the
    scan over ``b`` stops at the first value above ``a``'s maximum.
    The result is ascending because ``b`` is scanned in order.
    """
    if not a or not b:
        return []
    members = set(a)
    ceiling = a[-1]
    common: List[int] = []
    for v in b:
        if v > ceiling:
            break
        if v in members:
            common.append(v)
    return common


def intersect_all(postings: List[TermPostings]) -> List[int]:
    """Fold ``intersect`` over the lists, smallest first."""
    if not postings:
        return []
    if len(postings) == 1:
        return list(postings[0].ids)
    ordered = sorted(postings, key=lambda p: p.length)
    common = intersect(ordered[0].ids, ordered[1].ids)
    for p in ordered[2:]:
        if not common:
            break
        common = intersect(common, p.ids)
    return common


def search(query: str, db: IndexDatabase, normalize: Optional[bool] = None,
           limit: Optional[int] = None) -> List[Document]:
    """
    AND query: documents containing every term of ``query``, ascending by ID.

    A blank query or any unknown term gives an empty list.
    """
    if normalize is None:
        normalize = NORMALIZE_QUERY_TERMS
    terms = parse_terms(query, normalize=normalize)
    if not terms:
        return []

    with db.read() as tx:
        postings = []
        for term in terms:
            ids = tx.postings.get(term)
            postings.append(TermPostings(term, ids, len(ids)))
        hits = intersect_all(postings)
        if limit is not None:
            hits = hits[:limit]

        results: List[Document] = []
        for doc_id in hits:
            doc = tx.documents.get(doc_id)
            if doc is None:
                logger.warning("postings reference missing document %d", doc_id)
                continue
            results.append(doc)
    return results


def search_request(req: SearchRequest, db: IndexDatabase) -> SearchResponse:
    normalize = NORMALIZE_QUERY_TERMS if req.normalize is None else req.normalize
    terms = parse_terms(req.query, normalize=normalize)
    with timer_ms() as took:
        results = search(req.query, db, normalize=normalize)
        total_hits = len(results)
        if req.limit is not None:
            results = results[:req.limit]
    return SearchResponse(
        query=req.query,
        terms=terms,
        took_ms=took(),
        total_hits=total_hits,
        results=results,
    )
