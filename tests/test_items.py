"""Tests for the item log and its reading cursors."""

import pytest

from airss.errors import DuplicateError
from airss.items import ItemStore

from conftest import make_item


def _store(db, count: int) -> ItemStore:
    store = ItemStore(db)
    store.load()
    for n in range(count):
        store.push_item(make_item(f"https://example.com/{n}"))
    return store


def _check_accounting(store: ItemStore) -> None:
    assert store.unread_count() == store.length() - store.known_cursor() - 1
    assert store.unread_count() >= 0
    assert -1 <= store.reading_cursor() <= store.length() - 1


class TestEmptyStore:
    def test_cursors_start_at_minus_one(self, db):
        store = _store(db, 0)
        assert store.reading_cursor() == -1
        assert store.known_cursor() == -1
        assert store.unread_count() == 0

    def test_moves_are_no_ops(self, db):
        store = _store(db, 0)
        assert store.forward_cursor() is False
        assert store.backward_cursor() is False
        assert store.get_current_item() is None
        assert store.delete_current_item() is False
        assert store.reading_cursor() == -1


class TestCursorMoves:
    def test_forward_advances_known(self, db):
        store = _store(db, 3)
        assert store.unread_count() == 3
        assert store.forward_cursor() is True
        assert store.reading_cursor() == 0
        assert store.known_cursor() == 0
        assert store.unread_count() == 2

    def test_forward_at_end_is_a_no_op(self, db):
        store = _store(db, 2)
        store.forward_cursor()
        store.forward_cursor()
        assert store.forward_cursor() is False
        assert store.reading_cursor() == 1

    def test_backward_at_start_is_a_no_op(self, db):
        store = _store(db, 2)
        store.forward_cursor()
        assert store.backward_cursor() is False
        assert store.reading_cursor() == 0

    def test_backward_keeps_known(self, db):
        store = _store(db, 3)
        store.forward_cursor()
        store.forward_cursor()
        store.forward_cursor()
        assert store.backward_cursor() is True
        assert store.reading_cursor() == 1
        assert store.known_cursor() == 2
        store.forward_cursor()
        assert store.known_cursor() == 2

    def test_random_walk_keeps_invariants(self, db):
        store = _store(db, 4)
        known = store.known_cursor()
        for step in "ffbbbfffffbfbbbbff":
            if step == "f":
                store.forward_cursor()
            else:
                store.backward_cursor()
            assert store.known_cursor() >= known
            known = store.known_cursor()
            _check_accounting(store)

    def test_current_item_follows_cursor(self, db):
        store = _store(db, 2)
        store.forward_cursor()
        assert store.get_current_item().url == "https://example.com/0"
        store.forward_cursor()
        assert store.get_current_item().url == "https://example.com/1"


class TestMarkRead:
    def test_persists_read_flag(self, db):
        store = _store(db, 1)
        store.forward_cursor()
        item = store.get_current_item()
        store.mark_read(item)
        assert db.get_item(item.id).read is True

    def test_read_item_is_not_rewritten(self, db, monkeypatch):
        store = _store(db, 1)
        store.forward_cursor()
        item = store.get_current_item()
        item.read = True
        writes = []
        monkeypatch.setattr(db, "put_item", writes.append)
        store.mark_read(item)
        assert writes == []


class TestDelete:
    def test_delete_shifts_cursors_left(self, db):
        store = _store(db, 3)
        store.forward_cursor()
        store.forward_cursor()
        deleted = store.get_current_item()
        assert store.delete_current_item() is True
        assert store.length() == 2
        assert store.reading_cursor() == 0
        assert store.known_cursor() == 0
        assert db.get_item(deleted.id) is None
        _check_accounting(store)

    def test_delete_last_item(self, db):
        store = _store(db, 3)
        for _ in range(3):
            store.forward_cursor()
        deleted = store.get_current_item()
        assert store.delete_current_item() is True
        assert store.reading_cursor() == store.length() - 1
        assert deleted.id not in [item_id for item_id, _ in db.scan_items()]
        assert deleted.id not in store.items

    def test_delete_when_store_row_is_gone(self, db):
        store = _store(db, 2)
        store.forward_cursor()
        db.delete_item(store.items[0])
        assert store.delete_current_item() is True
        assert store.length() == 1


class TestPushAndLoad:
    def test_duplicate_push_is_rejected_without_corruption(self, db):
        store = _store(db, 0)
        store.push_item(make_item("https://example.com/same"))
        with pytest.raises(DuplicateError):
            store.push_item(make_item("https://example.com/same"))
        assert store.length() == 1
        assert store.items == [item_id for item_id, _ in db.scan_items()]

    def test_load_counts_read_items(self, db):
        store = _store(db, 4)
        store.forward_cursor()
        store.mark_read(store.get_current_item())
        store.forward_cursor()
        store.mark_read(store.get_current_item())

        reloaded = ItemStore(db)
        reloaded.load()
        assert reloaded.length() == 4
        assert reloaded.known_cursor() == 1
        assert reloaded.reading_cursor() == 1
        assert reloaded.unread_count() == 2
        assert reloaded.items == sorted(reloaded.items)
