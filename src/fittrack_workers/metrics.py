"""In-memory maintenance metrics.

Counts are kept per event type and per handler, plus how often the
historical 1RM document was written. Everything runs synchronously on the
caller's thread, so plain dicts suffice.
"""

import time

_start_time = time.monotonic()

_events: dict[str, dict[str, int]] = {}
_handlers: dict[str, dict] = {}
_index_writes: dict[str, int] = {"documents": 0, "records": 0}


def _event_stats(event_type: str) -> dict[str, int]:
    return _events.setdefault(event_type, {"dispatched": 0, "skipped": 0})


def record_event_dispatched(event_type: str) -> None:
    _event_stats(event_type)["dispatched"] += 1


def record_event_skipped(event_type: str) -> None:
    """No handler was registered for the event type."""
    _event_stats(event_type)["skipped"] += 1


def record_handler_invocation(handler_name: str, duration_ms: float, error: BaseException | None = None) -> None:
    h = _handlers.setdefault(handler_name, {
        "invocations": 0,
        "failures": 0,
        "total_duration_ms": 0.0,
        "max_duration_ms": 0.0,
        "last_error": None,
    })
    h["invocations"] += 1
    h["total_duration_ms"] += duration_ms
    h["max_duration_ms"] = max(h["max_duration_ms"], duration_ms)
    if error is not None:
        h["failures"] += 1
        h["last_error"] = f"{type(error).__name__}: {error}"


def record_index_write(record_count: int) -> None:
    _index_writes["documents"] += 1
    _index_writes["records"] = record_count


def get_metrics() -> dict:
    """Snapshot of current metrics."""
    return {
        "uptime_seconds": round(time.monotonic() - _start_time, 1),
        "events_dispatched": sum(e["dispatched"] for e in _events.values()),
        "events_skipped": sum(e["skipped"] for e in _events.values()),
        "events": {name: dict(stats) for name, stats in _events.items()},
        "handlers": {name: dict(stats) for name, stats in _handlers.items()},
        "index_writes": _index_writes["documents"],
        "index_records": _index_writes["records"],
    }


def reset_metrics() -> None:
    _events.clear()
    _handlers.clear()
    _index_writes.update(documents=0, records=0)
