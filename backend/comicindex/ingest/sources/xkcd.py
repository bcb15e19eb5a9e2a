from __future__ import annotations
from typing import Optional
import json

import requests
from bs4 import BeautifulSoup
from pydantic import ValidationError

from ...config import FETCH_TIMEOUT_S, SOURCE_BASE_URL, USER_AGENT
from ...errors import DecodeError, TransportError
from ...schemas import Document

# source JSON key -> Document field
_TEXT_FIELDS = ("title", "safe_title", "transcript", "alt", "news", "img", "year", "month", "day")


def _html_to_text(html: str) -> str:
    soup = BeautifulSoup(html or "", "html.parser")
    return soup.get_text(separator=" ", strip=True)


class XkcdClient:
    """Fetches ``<base>/<id>/info.0.json`` one comic at a time."""

    def __init__(
        self,
        base_url: str = SOURCE_BASE_URL,
        timeout_s: float = FETCH_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)

    def link_for(self, doc_id: int) -> str:
        return f"{self.base_url}{doc_id}"

    def fetch(self, doc_id: int) -> Optional[bytes]:
        """
        Return the raw JSON payload for ``doc_id``, or None when the source
        answers 404 (no such comic yet).

        Raises:
            TransportError: connection failure, timeout, or any status other
                than 200/404.
        """
        url = f"{self.base_url}{doc_id}/info.0.json"
        try:
            resp = self.session.get(url, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise TransportError(f"request for {url} failed: {e}", doc_id=doc_id) from e
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise TransportError(f"request for {url} failed: HTTP {resp.status_code}", doc_id=doc_id)
        return resp.content

    def close(self) -> None:
        self.session.close()


def decode_payload(payload: bytes, doc_id: int, link: str) -> Document:
    """Map one source JSON payload onto a Document stored under ``doc_id``."""
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"payload for {doc_id} is not JSON: {e}", doc_id=doc_id) from e
    if not isinstance(data, dict):
        raise DecodeError(f"payload for {doc_id} is not a JSON object", doc_id=doc_id)

    fields = {k: data.get(k) or "" for k in _TEXT_FIELDS}
    # news occasionally carries markup
    fields["news"] = _html_to_text(fields["news"])
    try:
        return Document(
            id=doc_id,
            num=data.get("num", doc_id),
            link=link,
            **{k: str(v) for k, v in fields.items()},
        )
    except ValidationError as e:
        raise DecodeError(f"payload for {doc_id} is malformed: {e}", doc_id=doc_id) from e
