"""Tests for the persisted historical 1RM document."""

from __future__ import annotations

import json
import logging

from fittrack_workers.aggregate_store import HISTORICAL_1RM_KEY, AggregateStore
from fittrack_workers.kv import MemoryKeyValueStore, StorageUnavailable
from fittrack_workers.metrics import get_metrics, reset_metrics
from fittrack_workers.models import Best1RmRecord


class _BrokenStore:
    def get_item(self, key):
        raise StorageUnavailable("disk on fire")

    def set_item(self, key, value):
        raise StorageUnavailable("disk on fire")

    def remove_item(self, key):
        raise StorageUnavailable("disk on fire")


def _record(value: float, source: int | None = 1) -> Best1RmRecord:
    return Best1RmRecord(value=value, updated_at="2026-02-11T10:00:00+00:00", source_workout_id=source)


def test_missing_document_is_empty():
    assert AggregateStore(MemoryKeyValueStore()).load() == {}


def test_save_writes_sparse_document_under_key():
    kv = MemoryKeyValueStore()
    AggregateStore(kv).save({1: _record(215.5, 4), 2: _record(100.0, None)})

    document = json.loads(kv.get_item(HISTORICAL_1RM_KEY))
    assert document == {
        "1": {"historical_1rm": 215.5, "updated_at": "2026-02-11T10:00:00+00:00", "source_workout_id": 4},
        "2": {"historical_1rm": 100.0, "updated_at": "2026-02-11T10:00:00+00:00", "source_workout_id": None},
    }


def test_load_returns_int_keys():
    store = AggregateStore(MemoryKeyValueStore())
    store.save({3: _record(120.0)})
    assert store.load() == {3: _record(120.0)}


def test_clear_removes_document():
    kv = MemoryKeyValueStore()
    store = AggregateStore(kv)
    store.save({1: _record(1.0)})
    store.clear()
    assert kv.get_item(HISTORICAL_1RM_KEY) is None
    assert store.load() == {}


def test_unparsable_document_is_empty(caplog):
    kv = MemoryKeyValueStore({HISTORICAL_1RM_KEY: "{not json"})
    with caplog.at_level(logging.WARNING):
        assert AggregateStore(kv).load() == {}
    assert "not valid JSON" in caplog.text


def test_non_object_document_is_empty():
    kv = MemoryKeyValueStore({HISTORICAL_1RM_KEY: "[1, 2, 3]"})
    assert AggregateStore(kv).load() == {}


def test_malformed_entries_are_dropped():
    document = {
        "1": {"historical_1rm": 200.0, "updated_at": "t", "source_workout_id": 2},
        "2": {"historical_1rm": -1, "updated_at": "t", "source_workout_id": 2},
        "bench": {"historical_1rm": 100.0, "updated_at": "t", "source_workout_id": None},
        "4": "garbage",
    }
    kv = MemoryKeyValueStore({HISTORICAL_1RM_KEY: json.dumps(document)})
    assert AggregateStore(kv).load() == {
        1: Best1RmRecord(value=200.0, updated_at="t", source_workout_id=2),
    }


def test_oversized_value_is_dropped(caplog):
    raw = (
        '{"1": {"historical_1rm": ' + "9" * 400 + ', "updated_at": "t", "source_workout_id": 1},'
        ' "2": {"historical_1rm": 150.0, "updated_at": "t", "source_workout_id": 3}}'
    )
    kv = MemoryKeyValueStore({HISTORICAL_1RM_KEY: raw})
    with caplog.at_level(logging.WARNING):
        assert AggregateStore(kv).load() == {
            2: Best1RmRecord(value=150.0, updated_at="t", source_workout_id=3),
        }
    assert "too large" in caplog.text


def test_deeply_nested_document_is_empty():
    kv = MemoryKeyValueStore({HISTORICAL_1RM_KEY: "[" * 100_000 + "]" * 100_000})
    assert AggregateStore(kv).load() == {}


def test_unavailable_backend_reads_as_empty(caplog):
    with caplog.at_level(logging.WARNING):
        assert AggregateStore(_BrokenStore()).load() == {}
    assert "unavailable" in caplog.text


def test_custom_key():
    kv = MemoryKeyValueStore()
    AggregateStore(kv, key="other").save({1: _record(1.0)})
    assert kv.get_item(HISTORICAL_1RM_KEY) is None
    assert kv.get_item("other") is not None


def test_save_counts_index_writes():
    reset_metrics()
    store = AggregateStore(MemoryKeyValueStore())
    store.save({1: _record(100.0)})
    store.save({1: _record(100.0), 2: _record(50.0)})

    metrics = get_metrics()
    assert metrics["index_writes"] == 2
    assert metrics["index_records"] == 2
    reset_metrics()
