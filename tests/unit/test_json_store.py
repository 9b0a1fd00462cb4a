import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.db.json_store import JsonRecordStore, StoreDocument
from app.models.domain.errors import StoreError
from app.repositories.contact_repository import ContactRepository


def test_initialize_writes_empty_document(tmp_path):
    path = tmp_path / "nested" / "db.json"
    store = JsonRecordStore(path)

    store.initialize()

    assert json.loads(path.read_text(encoding="utf-8")) == {
        "contacts": [],
        "opportunities": [],
        "tasks": [],
        "interactions": [],
    }


def test_initialize_keeps_existing_document(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(json.dumps({"contacts": [{"id": "c1"}]}), encoding="utf-8")

    JsonRecordStore(path).initialize()

    assert json.loads(path.read_text(encoding="utf-8"))["contacts"] == [{"id": "c1"}]


def test_load_degrades_to_empty_document_when_corrupt(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("{not json", encoding="utf-8")

    document = JsonRecordStore(path, load_policy="degrade").load()

    assert document == StoreDocument()


def test_load_degrades_when_file_missing(tmp_path):
    document = JsonRecordStore(tmp_path / "missing.json").load()

    assert document.contacts == []
    assert document.interactions == []


def test_load_fails_fast_with_fail_policy(tmp_path):
    path = tmp_path / "db.json"
    path.write_text('{"contacts": "not-a-list"}', encoding="utf-8")

    with pytest.raises(StoreError):
        JsonRecordStore(path, load_policy="fail").load()


def test_read_always_raises_on_unreadable_file(tmp_path):
    with pytest.raises(StoreError):
        JsonRecordStore(tmp_path / "missing.json", load_policy="degrade").read()


def test_transaction_persists_on_success(store):
    with store.transaction() as document:
        document.contacts.append({"id": "c1", "name": "Ana"})

    on_disk = json.loads(store.path.read_text(encoding="utf-8"))
    assert on_disk["contacts"] == [{"id": "c1", "name": "Ana"}]
    assert store.snapshot().contacts == [{"id": "c1", "name": "Ana"}]


def test_transaction_rolls_back_on_error(store):
    before = store.path.read_text(encoding="utf-8")

    with pytest.raises(RuntimeError):
        with store.transaction() as document:
            document.contacts.append({"id": "c1"})
            raise RuntimeError("boom")

    assert store.path.read_text(encoding="utf-8") == before
    assert store.snapshot().contacts == []


def test_snapshot_is_isolated_from_store(store):
    snapshot = store.snapshot()
    snapshot.tasks.append({"id": "t1"})

    assert store.snapshot().tasks == []


def test_unknown_top_level_keys_survive_round_trip(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(
        json.dumps({"contacts": [], "opportunities": [], "tasks": [], "interactions": [], "meta": 1}),
        encoding="utf-8",
    )
    store = JsonRecordStore(path)

    with store.transaction() as document:
        document.tasks.append({"id": "t1"})

    assert json.loads(path.read_text(encoding="utf-8"))["meta"] == 1


def test_reload_picks_up_external_changes(store):
    assert store.snapshot().contacts == []
    store.path.write_text(json.dumps({"contacts": [{"id": "x"}]}), encoding="utf-8")

    store.reload()

    assert store.snapshot().contacts == [{"id": "x"}]


def test_health_check_reports_counts(store):
    with store.transaction() as document:
        document.opportunities.append({"id": "o1"})

    health = store.health_check()

    assert health["healthy"] is True
    assert health["counts"]["opportunities"] == 1


def test_health_check_unhealthy_when_corrupt(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("[]", encoding="utf-8")

    health = JsonRecordStore(path).health_check()

    assert health["healthy"] is False
    assert "corrupt" in health["error"]


def test_concurrent_writers_are_serialized(store):
    contacts = ContactRepository(store)
    shared = contacts.create({"name": "Shared"})
    writers = 20

    def write(i: int) -> None:
        contacts.update(shared.id, {"notes": f"writer {i}"})
        contacts.create({"name": f"Contact {i}"})

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(write, range(writers)))

    on_disk = JsonRecordStore(store.path).read()
    assert len(on_disk.contacts) == writers + 1
    record = next(r for r in on_disk.contacts if r["id"] == shared.id)
    assert record["version"] == writers + 1
