"""Tests for maintenance handler registration and name lookup."""

import pytest

# Import handlers to trigger registration
import fittrack_workers.handlers  # noqa: F401

from fittrack_workers.registry import (
    _event_handlers,
    _handler_by_name,
    get_event_handlers,
    get_handler_by_name,
    maintenance_handler,
    registered_event_types,
)


@pytest.fixture(autouse=True)
def _clean_registry():
    """Remove test-registered handlers after each test."""
    snapshot_handlers = {k: list(v) for k, v in _event_handlers.items()}
    snapshot_names = dict(_handler_by_name)
    yield
    _event_handlers.clear()
    _event_handlers.update(snapshot_handlers)
    _handler_by_name.clear()
    _handler_by_name.update(snapshot_names)


class TestMaintenanceHandler:
    def test_registers_for_each_event_type(self):
        @maintenance_handler("test.a", "test.b")
        def _handler(index, payload):
            pass

        assert _handler in get_event_handlers("test.a")
        assert _handler in get_event_handlers("test.b")
        assert {"test.a", "test.b"} <= set(registered_event_types())

    def test_preserves_registration_order(self):
        @maintenance_handler("test.order")
        def _first(index, payload):
            pass

        @maintenance_handler("test.order")
        def _second(index, payload):
            pass

        assert get_event_handlers("test.order") == [_first, _second]

    def test_lookup_by_name(self):
        @maintenance_handler("test.lookup")
        def _named_handler(index, payload):
            pass

        assert get_handler_by_name("_named_handler") is _named_handler
        assert get_handler_by_name("nope") is None

    def test_duplicate_name_raises(self):
        @maintenance_handler("test.dup")
        def _dup(index, payload):
            pass

        with pytest.raises(ValueError, match="Duplicate handler name='_dup'"):
            @maintenance_handler("test.dup2")
            def _dup(index, payload):  # noqa: F811
                pass

    def test_requires_event_type(self):
        with pytest.raises(ValueError, match="at least one event_type"):
            maintenance_handler()

    def test_returned_list_is_a_copy(self):
        get_event_handlers("test.copy").append(lambda index, payload: None)
        assert get_event_handlers("test.copy") == []


def test_builtin_handlers_are_registered():
    for event_type in (
        "workout.created",
        "workout.updated",
        "workout.deleted",
        "exercise.deleted",
        "exercise.historical_1rm.updated",
        "demo.reseeded",
    ):
        assert get_event_handlers(event_type), event_type
