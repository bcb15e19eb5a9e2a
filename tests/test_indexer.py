import pytest

from comicindex.errors import DecodeError, IndexRunAborted, StorageError
from comicindex.indexing.indexer import BuildResult, Indexer
from comicindex.ingest.audit_log import AuditLog

from conftest import FakeClient, doc, make_payload, transport_error


def _postings(db):
    with db.read() as tx:
        return dict(tx.postings.scan_all())


def _cursor(db):
    with db.read() as tx:
        return tx.cursor.get()


def test_first_run_stops_at_frontier(db):
    client = FakeClient({
        1: make_payload(1, title="Barrel"),
        2: make_payload(2, title="Petit Trees"),
    })
    result = Indexer(db, client).update()

    assert client.fetched == [1, 2, 3]
    assert result.processed == 2
    assert result.last_processed_id == 2
    assert result.frontier_reached
    with db.read() as tx:
        assert [i for i, _ in tx.documents.scan_all()] == [1, 2]
        assert tx.documents.get(1).link == "https://xkcd.com/1"
        assert tx.cursor.get() == 3


def test_second_run_resumes_from_cursor(db, pages):
    client = FakeClient({1: pages[1], 2: pages[2]})
    Indexer(db, client).update()

    client = FakeClient(pages)
    result = Indexer(db, client).update()

    assert client.fetched == [3, 4]
    assert result.start_id == 3
    assert _cursor(db) == 4
    assert _postings(db)["boy"] == [1, 3]


def test_run_with_nothing_new_keeps_cursor(db, pages):
    Indexer(db, FakeClient(pages)).update()
    result = Indexer(db, FakeClient(pages)).update()
    assert result.processed == 0
    assert result.last_processed_id is None
    assert _cursor(db) == 4


def test_terms_are_indexed_once_per_document(db):
    client = FakeClient({1: make_payload(1, title="boy boy", transcript="Boy meets boy.")})
    Indexer(db, client).update()
    assert _postings(db)["boy"] == [1]


def test_reserved_id_is_skipped_not_frontier(db):
    client = FakeClient({
        403: make_payload(403, title="Convincing Pickup Line"),
        404: make_payload(404, title="should never be fetched"),
        405: make_payload(405, title="Journal 2"),
    })
    result = Indexer(db, client).build(403)

    assert client.fetched == [403, 405, 406]
    assert sorted(result.documents) == [403, 405]
    assert all(404 not in ids for ids in result.postings.values())


def test_reserved_id_never_reaches_storage(db):
    client = FakeClient({
        403: make_payload(403, title="Convincing Pickup Line"),
        404: make_payload(404, title="should never be fetched"),
        405: make_payload(405, title="Journal 2"),
    })
    with db.write() as tx:
        tx.cursor.set(403)
    Indexer(db, client).update()

    with db.read() as tx:
        assert tx.documents.get(404) is None
        assert [i for i, _ in tx.documents.scan_all()] == [403, 405]
        postings = dict(tx.postings.scan_all())
        assert tx.cursor.get() == 406
    assert postings
    assert all(404 not in ids for ids in postings.values())
    assert "fetched" not in postings


def test_reserved_ids_are_configurable(db):
    client = FakeClient({1: make_payload(1), 3: make_payload(3)})
    result = Indexer(db, client, reserved_ids={2}).build(1)
    assert sorted(result.documents) == [1, 3]


def test_limit_stops_early_and_cursor_follows(db, pages):
    client = FakeClient(pages)
    result = Indexer(db, client).update(limit=2)
    assert client.fetched == [1, 2]
    assert not result.frontier_reached
    assert _cursor(db) == 3


def test_transport_error_aborts_without_persisting(db, pages):
    Indexer(db, FakeClient({1: pages[1]})).update()

    client = FakeClient({2: pages[2], 3: transport_error(3)})
    with pytest.raises(IndexRunAborted) as excinfo:
        Indexer(db, client).update()

    assert excinfo.value.processed == 1
    assert excinfo.value.start_id == 2
    assert excinfo.value.__cause__.doc_id == 3
    assert _cursor(db) == 2
    with db.read() as tx:
        assert tx.documents.get(2) is None
    assert "petit" not in _postings(db)


def test_decode_error_aborts_the_run(db):
    client = FakeClient({1: make_payload(1), 2: b"<html>not json</html>"})
    with pytest.raises(IndexRunAborted) as excinfo:
        Indexer(db, client).update()
    assert isinstance(excinfo.value.__cause__, DecodeError)
    assert excinfo.value.processed == 1
    assert _cursor(db) is None


def test_reprocessing_same_ids_is_idempotent(db, pages):
    indexer = Indexer(db, FakeClient(pages))
    first = indexer.build(1)
    indexer.flush(first)
    before = _postings(db)
    with db.read() as tx:
        docs_before = dict(tx.documents.scan_all())

    # e.g. the cursor was lost after an earlier flush
    indexer.flush(indexer.build(1))

    assert _postings(db) == before
    with db.read() as tx:
        assert dict(tx.documents.scan_all()) == docs_before
    for ids in before.values():
        assert ids == sorted(set(ids))


def test_update_reports_processed_count_when_flush_fails(db, pages, monkeypatch):
    def broken_flush(self, result):
        raise StorageError("write transaction failed: disk I/O error")

    monkeypatch.setattr(Indexer, "flush", broken_flush)
    with pytest.raises(IndexRunAborted) as excinfo:
        Indexer(db, FakeClient(pages)).update()

    assert excinfo.value.processed == 3
    assert excinfo.value.start_id == 1
    assert isinstance(excinfo.value.__cause__, StorageError)
    assert _cursor(db) is None


def test_flush_failure_leaves_state_unchanged(db, pages, monkeypatch):
    Indexer(db, FakeClient({1: pages[1]})).update()
    indexer = Indexer(db, FakeClient(pages))
    result = indexer.build(2)

    def broken_put(self, doc_id, document):
        raise RuntimeError("write failed")

    from comicindex.storage.document_store import DocumentStore
    monkeypatch.setattr(DocumentStore, "put", broken_put)
    with pytest.raises(RuntimeError):
        indexer.flush(result)
    monkeypatch.undo()

    assert _cursor(db) == 2
    assert "petit" not in _postings(db)


def test_audit_log_written_after_flush(db, pages, tmp_path):
    log = AuditLog(tmp_path / "comic_log.txt")
    Indexer(db, FakeClient(pages), audit_log=log).update()
    lines = log.path.read_text(encoding="utf-8").splitlines()
    assert [ln.split(":\t")[0] for ln in lines] == ["1", "2", "3"]
    assert log.logged_ids() == {1, 2, 3}


def test_audit_log_untouched_when_run_aborts(db, pages, tmp_path):
    log = AuditLog(tmp_path / "comic_log.txt")
    client = FakeClient({1: pages[1], 2: transport_error(2)})
    with pytest.raises(IndexRunAborted):
        Indexer(db, client, audit_log=log).update()
    assert log.logged_ids() == set()


def test_audit_log_failure_does_not_fail_run(db, pages, tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    log = AuditLog(blocker / "comic_log.txt")
    result = Indexer(db, FakeClient(pages), audit_log=log).update()
    assert result.processed == 3
    assert _cursor(db) == 4


def test_build_result_rejects_descending_ids():
    result = BuildResult(start_id=1)
    result.add(doc(5), ["comic"])
    result.add(doc(5), ["comic"])
    assert result.postings["comic"] == [5]
    with pytest.raises(ValueError):
        result.add(doc(3), ["comic"])


def test_build_rejects_non_positive_start(db):
    with pytest.raises(ValueError):
        Indexer(db, FakeClient({})).build(0)
