"""Byte encodings for the index database.

Document IDs are fixed-width big-endian unsigned integers, so the byte
order of packed keys matches their numeric order. A postings list is the
concatenation of its packed IDs in ascending order.
"""
from __future__ import annotations
from typing import Iterable, List

from pydantic import ValidationError

from ..config import ID_WIDTH
from ..errors import DecodeError
from ..schemas import Document

MAX_ID = (1 << (8 * ID_WIDTH)) - 1


def pack_id(doc_id: int) -> bytes:
    if not 0 <= doc_id <= MAX_ID:
        raise ValueError(f"document id {doc_id} outside 0..{MAX_ID}")
    return doc_id.to_bytes(ID_WIDTH, "big")


def unpack_id(raw: bytes) -> int:
    if len(raw) != ID_WIDTH:
        raise DecodeError(f"packed id must be {ID_WIDTH} bytes, got {len(raw)}")
    return int.from_bytes(raw, "big")


def pack_ids(ids: Iterable[int]) -> bytes:
    return b"".join(pack_id(i) for i in ids)


def unpack_ids(raw: bytes) -> List[int]:
    if not raw:
        return []
    if len(raw) % ID_WIDTH:
        raise DecodeError(f"postings blob length {len(raw)} is not a multiple of {ID_WIDTH}")
    return [int.from_bytes(raw[i:i + ID_WIDTH], "big") for i in range(0, len(raw), ID_WIDTH)]


def encode_document(doc: Document) -> bytes:
    return doc.model_dump_json().encode("utf-8")


def decode_document(raw: bytes) -> Document:
    try:
        return Document.model_validate_json(raw)
    except ValidationError as e:
        raise DecodeError(f"stored document is malformed: {e}") from e
