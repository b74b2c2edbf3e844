import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .historical_1rm import Historical1RmIndex

logger = logging.getLogger(__name__)

# Handler signature: def handler(index: Historical1RmIndex, payload: dict) -> None
HandlerFn = Callable[["Historical1RmIndex", dict[str, Any]], None]

# Multiple handlers per event_type, called in registration order
_event_handlers: dict[str, list[HandlerFn]] = {}

# Handler by function name: for targeted re-runs
_handler_by_name: dict[str, HandlerFn] = {}


def maintenance_handler(*event_types: str) -> Callable[[HandlerFn], HandlerFn]:
    """Register a maintenance handler for one or more event_types.

    Multiple handlers can register for the same event_type; all are called.

    Usage:
        @maintenance_handler("workout.created")
        def on_workout_created(index, payload):
            ...
    """
    if not event_types:
        raise ValueError("maintenance_handler needs at least one event_type")

    def decorator(fn: HandlerFn) -> HandlerFn:
        if fn.__name__ in _handler_by_name and _handler_by_name[fn.__name__] is not fn:
            raise ValueError(f"Duplicate handler name={fn.__name__!r}")
        for et in event_types:
            _event_handlers.setdefault(et, []).append(fn)
            logger.debug("Registered maintenance handler %s for event_type=%s", fn.__name__, et)
        _handler_by_name[fn.__name__] = fn
        return fn

    return decorator


def get_event_handlers(event_type: str) -> list[HandlerFn]:
    return list(_event_handlers.get(event_type, []))


def get_handler_by_name(name: str) -> HandlerFn | None:
    return _handler_by_name.get(name)


def registered_event_types() -> list[str]:
    return list(_event_handlers.keys())
