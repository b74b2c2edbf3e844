"""Maintenance event router.

Dispatches CRUD events to all registered maintenance handlers for the
event_type. One event can trigger several handlers; they run in
registration order, synchronously, and are not retried on failure.
"""

import logging
import time
from typing import Any

from ..historical_1rm import Historical1RmIndex
from ..metrics import record_event_dispatched, record_event_skipped, record_handler_invocation
from ..registry import get_event_handlers

logger = logging.getLogger(__name__)


def dispatch(index: Historical1RmIndex, event_type: str, payload: dict[str, Any] | None = None) -> None:
    payload = {**(payload or {}), "event_type": event_type}

    handlers = get_event_handlers(event_type)
    if not handlers:
        logger.debug("No handlers for event_type=%s, skipping", event_type)
        record_event_skipped(event_type)
        return

    record_event_dispatched(event_type)
    for handler in handlers:
        t0 = time.monotonic()
        try:
            handler(index, payload)
        except Exception as exc:
            duration_ms = (time.monotonic() - t0) * 1000
            record_handler_invocation(handler.__name__, duration_ms, error=exc)
            logger.exception(
                "Maintenance handler %s failed for event_type=%s",
                handler.__name__, event_type,
                extra={"fittrack_event_type": event_type, "fittrack_handler": handler.__name__},
            )
            raise
        duration_ms = (time.monotonic() - t0) * 1000
        record_handler_invocation(handler.__name__, duration_ms)
        logger.debug(
            "Handler %s completed for event_type=%s in %.1fms",
            handler.__name__, event_type, duration_ms,
            extra={"fittrack_event_type": event_type, "fittrack_duration_ms": round(duration_ms, 2)},
        )
