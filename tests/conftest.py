import json

import pytest

from comicindex.errors import TransportError
from comicindex.schemas import Document
from comicindex.storage.database import IndexDatabase


def make_payload(num, title="", transcript="", alt="", news="", safe_title=None, year="2008"):
    return json.dumps({
        "month": "1",
        "num": num,
        "link": "",
        "year": year,
        "news": news,
        "safe_title": title if safe_title is None else safe_title,
        "transcript": transcript,
        "alt": alt,
        "img": f"https://imgs.xkcd.com/comics/{num}.png",
        "title": title,
        "day": "1",
    }).encode("utf-8")


class FakeClient:
    """Scripted stand-in for XkcdClient.

    ``pages`` maps id -> payload bytes or an exception to raise. Any id not
    in ``pages`` answers like a 404.
    """

    def __init__(self, pages):
        self.pages = dict(pages)
        self.fetched = []

    def link_for(self, doc_id):
        return f"https://xkcd.com/{doc_id}"

    def fetch(self, doc_id):
        self.fetched.append(doc_id)
        page = self.pages.get(doc_id)
        if isinstance(page, Exception):
            raise page
        return page


@pytest.fixture
def db(tmp_path):
    return IndexDatabase(tmp_path / "index.db")


@pytest.fixture
def pages():
    return {
        1: make_payload(1, title="Barrel - Part 1", transcript="A boy sits in a barrel floating in the ocean."),
        2: make_payload(2, title="Petit Trees (sketch)", alt="'Petit' being a reference to Le Petit Prince"),
        3: make_payload(3, title="Island (sketch)", transcript="Hello, island! The boy can't swim."),
    }


def doc(doc_id, **fields):
    fields.setdefault("num", doc_id)
    fields.setdefault("link", f"https://xkcd.com/{doc_id}")
    return Document(id=doc_id, **fields)


def transport_error(doc_id):
    return TransportError("connection reset", doc_id=doc_id)
