import json
from unittest.mock import MagicMock

import pytest
import requests

from diecast.errors import SyncError
from diecast.storage import AppsScriptRemote, CollectionStore, LocalCache


class FakeRemote:
    def __init__(self, rows=None, fail_reads=False, fail_writes=()):
        self.rows = rows or []
        self.fail_reads = fail_reads
        self.fail_writes = set(fail_writes)
        self.upserts = []
        self.deletes = []

    def fetch_all(self):
        if self.fail_reads:
            raise SyncError("offline")
        return self.rows

    def upsert(self, record):
        if record["car_id"] in self.fail_writes:
            raise SyncError("rejected")
        self.upserts.append(record)

    def delete(self, car_id):
        if car_id in self.fail_writes:
            raise SyncError("rejected")
        self.deletes.append(car_id)


def _response(payload=None, status=200):
    resp = MagicMock()
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


# =========================================================
# LocalCache
# =========================================================

def test_cache_missing_file_reads_empty(cache):
    assert cache.read() == []


def test_cache_roundtrip_drops_photo_payload(cache, sample_cars):
    rec = dict(sample_cars[0], photo_base64="data:image/jpeg;base64,AAA")
    cache.write([rec])
    stored = json.loads(cache.path.read_text(encoding="utf-8"))
    assert "photo_base64" not in stored[0]
    assert cache.read()[0]["model"] == "911 GT3"


def test_cache_ignores_corrupt_file(cache):
    cache.path.parent.mkdir(parents=True)
    cache.path.write_text("{not json", encoding="utf-8")
    assert cache.read() == []

    cache.path.write_text('{"a": 1}', encoding="utf-8")
    assert cache.read() == []


# =========================================================
# AppsScriptRemote
# =========================================================

def test_apps_script_fetch_all_sends_cache_buster():
    session = MagicMock()
    session.get.return_value = _response([{"id": "1", "marca": "Ford"}])
    remote = AppsScriptRemote("https://script.example/exec", session=session)

    assert remote.fetch_all() == [{"id": "1", "marca": "Ford"}]
    args, kwargs = session.get.call_args
    assert args[0] == "https://script.example/exec"
    assert "t" in kwargs["params"]
    assert kwargs["timeout"] > 0


def test_apps_script_fetch_all_rejects_non_list():
    session = MagicMock()
    session.get.return_value = _response({"error": "boom"})
    with pytest.raises(SyncError):
        AppsScriptRemote("u", session=session).fetch_all()


def test_apps_script_fetch_all_wraps_http_errors():
    session = MagicMock()
    session.get.return_value = _response(status=500)
    with pytest.raises(SyncError):
        AppsScriptRemote("u", session=session).fetch_all()

    session.get.side_effect = requests.ConnectionError("no route")
    with pytest.raises(SyncError):
        AppsScriptRemote("u", session=session).fetch_all()


def test_apps_script_upsert_and_delete_payloads(sample_cars):
    session = MagicMock()
    session.post.return_value = _response()
    remote = AppsScriptRemote("u", session=session)

    remote.upsert(sample_cars[1])
    body = json.loads(session.post.call_args.kwargs["data"].decode("utf-8"))
    assert body["action"] == "upsert"
    assert body["car"]["id"] == "1700000000001"
    assert body["car"]["modelo"] == "Supra"
    assert body["car"]["fabricante"] == "Matchbox"

    remote.delete("1700000000001")
    body = json.loads(session.post.call_args.kwargs["data"].decode("utf-8"))
    assert body == {"action": "delete", "id": "1700000000001"}


def test_apps_script_post_failure_raises_sync_error():
    session = MagicMock()
    session.post.return_value = _response(status=403)
    with pytest.raises(SyncError):
        AppsScriptRemote("u", session=session).delete("x")


# =========================================================
# CollectionStore
# =========================================================

def test_load_maps_remote_rows_and_refreshes_cache(cache):
    remote = FakeRemote(rows=[{"id": "9", "marca": "Ford", "modelo": "GT"}, {"marca": "VW", "modelo": "Beetle"}])
    store = CollectionStore(remote, cache)

    records = store.load()
    assert [r["car_id"] for r in records] == ["9", "sheet-1"]
    assert cache.read()[0]["brand"] == "Ford"


def test_load_falls_back_to_cache_when_remote_fails(cache, sample_cars, caplog):
    cache.write(sample_cars)
    store = CollectionStore(FakeRemote(fail_reads=True), cache)

    with caplog.at_level("WARNING", logger="diecast.storage"):
        records = store.load()

    assert len(records) == len(sample_cars)
    assert "Using local cache" in caplog.text


def test_load_without_remote_or_cache_is_empty(cache):
    assert CollectionStore(None, cache).load() == []


def test_save_prepends_new_and_replaces_existing(cache, sample_cars):
    cache.write(sample_cars[:2])
    remote = FakeRemote()
    store = CollectionStore(remote, cache)

    new = {"car_id": "42", "brand": "Ford", "model": "Bronco"}
    records = store.save(new)
    assert [r["car_id"] for r in records] == ["42", "1700000000000", "1700000000001"]

    edited = dict(sample_cars[1], color="Preto")
    records = store.save(edited)
    assert [r["car_id"] for r in records] == ["42", "1700000000000", "1700000000001"]
    assert records[2]["color"] == "Preto"
    assert [r["car_id"] for r in remote.upserts] == ["42", "1700000000001"]


def test_save_keeps_local_copy_when_remote_write_fails(cache, caplog):
    store = CollectionStore(FakeRemote(fail_writes={"42"}), cache)
    with caplog.at_level("ERROR", logger="diecast.storage"):
        records = store.save({"car_id": "42", "brand": "Ford", "model": "Bronco"})
    assert records[0]["car_id"] == "42"
    assert cache.read()[0]["model"] == "Bronco"
    assert "Error syncing 42" in caplog.text


def test_save_forwards_photo_payload_but_does_not_cache_it(cache):
    remote = FakeRemote()
    store = CollectionStore(remote, cache)
    records = store.save({"car_id": "1", "brand": "Ford", "model": "GT", "photo_base64": "data:x"})
    assert remote.upserts[0]["photo_base64"] == "data:x"
    assert "photo_base64" not in records[0]
    assert "photo_base64" not in cache.read()[0]


def test_delete_removes_locally_and_remotely(cache, sample_cars):
    cache.write(sample_cars)
    remote = FakeRemote()
    records = CollectionStore(remote, cache).delete("1700000000001")
    assert "1700000000001" not in [r["car_id"] for r in records]
    assert remote.deletes == ["1700000000001"]


def test_push_all_counts_failures(cache, sample_cars):
    remote = FakeRemote(fail_writes={"1700000000002"})
    seen = []
    pushed, failed = CollectionStore(remote, cache).push_all(sample_cars, progress=lambda i, n: seen.append((i, n)))
    assert (pushed, failed) == (3, 1)
    assert seen[-1] == (4, 4)


def test_push_all_requires_remote(cache, sample_cars):
    with pytest.raises(SyncError):
        CollectionStore(None, cache).push_all(sample_cars)


def test_import_batch_new_records_win_on_duplicate_ids(cache, sample_cars):
    cache.write(sample_cars[:2])
    imported = [
        {"car_id": "csv-1", "brand": "Ford", "model": "GT"},
        {"car_id": "1700000000001", "brand": "Toyota", "model": "Supra MK4"},
        {"car_id": "csv-1", "brand": "Ford", "model": "GT duplicate"},
    ]
    remote = FakeRemote()
    records = CollectionStore(remote, cache).import_batch(imported)

    assert [r["car_id"] for r in records] == ["csv-1", "1700000000001", "1700000000000"]
    assert records[0]["model"] == "GT"
    assert records[1]["model"] == "Supra MK4"
    assert remote.upserts == []
    assert len(cache.read()) == 3
