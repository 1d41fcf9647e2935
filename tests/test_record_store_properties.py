"""Tests for the record store and cursor tracker implementations."""

import sqlite3

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from content_mirror.errors import StoreError
from content_mirror.models.record import Record
from content_mirror.storage.cursor_tracker import InMemoryCursorTracker
from content_mirror.storage.record_store import InMemoryRecordStore
from content_mirror.storage.sqlite_store import (
    SqliteCursorTracker,
    SqliteDatabase,
    SqliteRecordStore,
)
from tests.factories import link, make_asset, make_entry


@pytest.fixture(params=["memory", "sqlite-memory", "sqlite-file"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryRecordStore()
    if request.param == "sqlite-memory":
        return SqliteRecordStore(":memory:")
    return SqliteRecordStore(tmp_path / "mirror.db")


@pytest.fixture(params=["memory", "sqlite"])
def tracker(request, tmp_path):
    if request.param == "memory":
        return InMemoryCursorTracker()
    return SqliteCursorTracker(tmp_path / "mirror.db")


def test_store_and_read_back_by_category(store):
    entry = make_entry("e1", {"ref": {"en-US": link("a1", "Asset")}})
    asset = make_asset("a1")

    store.store_entries([entry])
    store.store_assets([asset])

    assert store.get_all_entries() == [entry]
    assert store.get_all_assets() == [asset]
    assert store.get_all() == [entry, asset]


def test_storing_existing_id_replaces_record_in_place(store):
    store.store_entries([make_entry("e1"), make_entry("e2")])

    updated = make_entry("e1", {"title": {"en-US": "updated"}})
    store.store_entries([updated])

    entries = store.get_all_entries()
    assert [entry.id for entry in entries] == ["e1", "e2"]
    assert entries[0] == updated


def test_remove_by_ids_covers_both_categories(store):
    store.store_entries([make_entry("e1"), make_entry("e2")])
    store.store_assets([make_asset("a1")])

    store.remove_by_ids(["e1", "a1", "never-stored"])

    assert [record.id for record in store.get_all()] == ["e2"]


def test_empty_operations_are_no_ops(store):
    store.store_entries([])
    store.store_assets([])
    store.remove_by_ids([])

    assert store.get_all() == []


@given(
    ids=st.lists(
        st.text(
            min_size=1,
            max_size=8,
            alphabet=st.characters(whitelist_categories=("Ll", "Lu", "Nd")),
        ),
        max_size=20,
        unique=True,
    )
)
@settings(max_examples=50, deadline=None)
def test_sqlite_store_keeps_every_record(ids: list[str]):
    store = SqliteRecordStore(":memory:")
    entries = [make_entry(record_id, {"title": {"en-US": record_id}}) for record_id in ids]

    store.store_entries(entries)

    assert store.get_all_entries() == entries


def test_sqlite_records_persist_across_instances(tmp_path):
    path = tmp_path / "mirror.db"
    SqliteRecordStore(path).store_entries([make_entry("e1", {"title": {"en-US": "x"}})])

    reopened = SqliteRecordStore(path)

    assert [entry.id for entry in reopened.get_all_entries()] == ["e1"]
    assert isinstance(reopened.get_all_entries()[0], Record)


def test_sqlite_large_removal_is_batched():
    store = SqliteRecordStore(":memory:")
    store.store_entries([make_entry(f"e{i}") for i in range(1200)])

    store.remove_by_ids([f"e{i}" for i in range(1100)])

    assert len(store.get_all_entries()) == 100


def test_corrupt_payload_raises_store_error(tmp_path):
    path = tmp_path / "mirror.db"
    store = SqliteRecordStore(path)
    conn = sqlite3.connect(path)
    with conn:
        conn.execute(
            "INSERT INTO records (category, id, payload) VALUES ('entry', 'bad', '{\"oops\": 1}')"
        )
    conn.close()

    with pytest.raises(StoreError):
        store.get_all_entries()


def test_sqlite_error_is_wrapped(tmp_path):
    database = SqliteDatabase(tmp_path / "mirror.db")
    with pytest.raises(StoreError) as exc_info:
        with database.connection() as conn:
            conn.execute("SELECT * FROM no_such_table")

    assert isinstance(exc_info.value.__cause__, sqlite3.Error)


def test_cursor_tracker_round_trip(tracker):
    assert tracker.load() is None

    tracker.save("token-1")
    tracker.save("token-2")

    assert tracker.load() == "token-2"

    tracker.save(None)
    assert tracker.load() is None


def test_sqlite_store_and_tracker_share_database():
    database = SqliteDatabase(":memory:")
    store = SqliteRecordStore(database)
    tracker = SqliteCursorTracker(database)

    store.store_entries([make_entry("e1")])
    tracker.save("token-1")

    assert tracker.load() == "token-1"
    assert [entry.id for entry in store.get_all_entries()] == ["e1"]
