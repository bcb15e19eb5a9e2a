# File: indexing/tokenizer.py

import re
from typing import Iterator, List

from ..schemas import Document


# =========================
# Patterns (compiled once)
# =========================
# Contractions stay whole: "can't" -> "cant"
_APOSTROPHES = re.compile(r"['’]")
# Digit-group commas vanish: "20,000" -> "20000"
_THOUSANDS_COMMA = re.compile(r"(?<=\d),(?=\d{3}(?!\d))")
# Anything that is not a letter or digit separates terms
_SEPARATORS = re.compile(r"[\W_]+")
_TERM = re.compile(r"\S+")


def normalize(text: str) -> str:
    """Strip punctuation and lowercase, leaving terms separated by spaces."""
    if not text:
        return ""
    text = _APOSTROPHES.sub("", text)
    text = _THOUSANDS_COMMA.sub("", text)
    text = _SEPARATORS.sub(" ", text)
    return text.lower()


def iter_terms(text: str) -> Iterator[str]:
    """Lazily yield the terms of ``text``. Call again to restart."""
    for match in _TERM.finditer(normalize(text)):
        yield match.group(0)


# =========================
# Tokenize
# =========================
def tokenize(text: str) -> List[str]:
    """
    Indexing pipeline:
    1. drop apostrophes and thousands separators without splitting
    2. replace other non-alphanumeric runs with a single space
    3. lowercase and split on whitespace

    No stemming, no stop words, no positions.
    """
    return list(iter_terms(text))


def document_terms(doc: Document) -> Iterator[str]:
    return iter_terms(doc.indexable_text())
