from __future__ import annotations
from typing import Optional


class ComicIndexError(Exception):
    """Base class for every error raised by comicindex."""


class TransportError(ComicIndexError):
    """The source could not be reached or answered with an unexpected status."""

    def __init__(self, message: str, doc_id: Optional[int] = None):
        super().__init__(message)
        self.doc_id = doc_id


class DecodeError(ComicIndexError):
    """A payload or stored record could not be turned into a Document."""

    def __init__(self, message: str, doc_id: Optional[int] = None):
        super().__init__(message)
        self.doc_id = doc_id


class StorageError(ComicIndexError):
    """Opening the database or running a transaction failed."""


class IndexRunAborted(ComicIndexError):
    """An update run stopped before its flush; nothing was persisted.

    ``processed`` is the number of documents handled in the run before
    the failure. The underlying error is chained as ``__cause__``.
    """

    def __init__(self, message: str, processed: int, start_id: int):
        super().__init__(message)
        self.processed = processed
        self.start_id = start_id
