"""Historical 1RM maintenance handlers.

Reacts to workout and exercise CRUD events after the caller has committed
the underlying set changes, and to demo-data reseeding.
"""

import logging
from typing import Any

from ..historical_1rm import Historical1RmIndex
from ..models import Historical1RmUpdate
from ..registry import maintenance_handler

logger = logging.getLogger(__name__)


def _require_id(payload: dict[str, Any], field: str) -> int:
    raw = payload.get(field)
    if raw is None or isinstance(raw, bool):
        raise ValueError(f"Missing {field} in payload (event_type={payload.get('event_type', '?')})")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {field}={raw!r} in payload") from None


@maintenance_handler("workout.created")
def handle_workout_created(index: Historical1RmIndex, payload: dict[str, Any]) -> None:
    index.on_workout_created(_require_id(payload, "workout_id"))


@maintenance_handler("workout.updated")
def handle_workout_updated(index: Historical1RmIndex, payload: dict[str, Any]) -> None:
    index.record_sets_replaced(_require_id(payload, "workout_id"))


@maintenance_handler("workout.deleted")
def handle_workout_deleted(index: Historical1RmIndex, payload: dict[str, Any]) -> None:
    index.on_workout_deleted(_require_id(payload, "workout_id"))


@maintenance_handler("exercise.deleted")
def handle_exercise_deleted(index: Historical1RmIndex, payload: dict[str, Any]) -> None:
    index.on_exercise_deleted(_require_id(payload, "exercise_id"))


@maintenance_handler("exercise.historical_1rm.updated")
def handle_historical_1rm_updated(index: Historical1RmIndex, payload: dict[str, Any]) -> None:
    exercise_id = _require_id(payload, "exercise_id")
    update = Historical1RmUpdate.model_validate(
        {k: payload[k] for k in ("mode", "historical_1rm") if k in payload}
    )
    index.apply_update(exercise_id, update)


@maintenance_handler("demo.reseeded")
def handle_demo_reseeded(index: Historical1RmIndex, payload: dict[str, Any]) -> None:
    records = index.reset()
    logger.info("Historical 1RM reset after reseed (%d exercises)", len(records))
