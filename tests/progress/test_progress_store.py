"""
Unit tests for the file-backed Progress Tracker.
"""

import json
import logging
from datetime import timedelta

import pytest

from conftest import make_record
from quiz_funnel.config import FunnelConfig
from quiz_funnel.progress.file_locking import locked_read_modify_write_json
from quiz_funnel.progress.store import ProgressStore


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "progress" / "quiz_progress.json"


@pytest.fixture
def store(store_path):
    return ProgressStore(store_path)


class TestSaveAndLoad:
    def test_save_creates_file_and_load_returns_record(self, store, store_path, now):
        store.save(make_record("q1", current_index=5), now=now)

        record = store.load("q1", now=now)

        assert store_path.exists()
        assert record.current_index == 5
        assert record.last_saved_at == now

    def test_save_replaces_existing_attempt(self, store, now):
        store.save(make_record("q1", current_index=2), now=now)
        store.save(make_record("q1", current_index=9), now=now + timedelta(minutes=5))

        records = store.list_incomplete(now=now + timedelta(minutes=6))

        assert len(records) == 1
        assert records[0].current_index == 9

    def test_load_missing_returns_none(self, store, now):
        assert store.load("q1", now=now) is None

    def test_clear_removes_attempt(self, store, now):
        store.save(make_record("q1"), now=now)
        store.save(make_record("q2"), now=now)

        store.clear("q1")

        assert [r.quiz_id for r in store.list_incomplete(now=now)] == ["q2"]

    def test_clear_without_file_is_noop(self, store, store_path):
        store.clear("q1")

        assert not store_path.exists()

    def test_from_config(self, store_path):
        config = FunnelConfig(progress_path=store_path, progress_max_age_days=3)

        store = ProgressStore.from_config(config)

        assert store.path == store_path
        assert store.max_age == timedelta(days=3)


class TestExpiry:
    """Attempts older than seven days are pruned on read."""

    def test_list_incomplete_prunes_expired(self, store, store_path, now):
        store.save(make_record("old"), now=now - timedelta(days=8))
        store.save(make_record("recent"), now=now - timedelta(days=6))

        records = store.list_incomplete(now=now)

        assert [r.quiz_id for r in records] == ["recent"]
        stored = json.loads(store_path.read_text(encoding="utf-8"))
        assert set(stored["records"]) == {"recent"}

    def test_load_expired_returns_none_and_clears(self, store, now):
        store.save(make_record("q1"), now=now - timedelta(days=7, minutes=1))

        assert store.load("q1", now=now) is None
        assert store.list_incomplete(now=now - timedelta(days=7)) == []

    def test_list_sorted_most_recent_first(self, store, now):
        store.save(make_record("a"), now=now - timedelta(hours=5))
        store.save(make_record("b"), now=now - timedelta(hours=1))

        assert [r.quiz_id for r in store.list_incomplete(now=now)] == ["b", "a"]

    def test_invalid_max_age_raises(self, store_path):
        with pytest.raises(ValueError, match="max_age_days"):
            ProgressStore(store_path, max_age_days=0)


class TestCorruptStorage:
    def test_corrupt_file_reads_as_empty(self, store, store_path, now, caplog):
        store_path.parent.mkdir(parents=True)
        store_path.write_text("{not json", encoding="utf-8")

        with caplog.at_level(logging.WARNING, logger="quiz_funnel.progress.store"):
            records = store.list_incomplete(now=now)

        assert records == []
        assert "unreadable" in caplog.text

    def test_save_over_corrupt_file_recovers(self, store, store_path, now):
        store_path.parent.mkdir(parents=True)
        store_path.write_text("{not json", encoding="utf-8")

        store.save(make_record("q1"), now=now)

        assert [r.quiz_id for r in store.list_incomplete(now=now)] == ["q1"]

    def test_invalid_record_is_skipped(self, store, store_path, now):
        store.save(make_record("good"), now=now)

        def inject(existing):
            existing["records"]["bad"] = {"quizId": "bad", "currentQuestionIndex": -3}
            return existing

        locked_read_modify_write_json(store_path, inject)

        assert [r.quiz_id for r in store.list_incomplete(now=now)] == ["good"]
