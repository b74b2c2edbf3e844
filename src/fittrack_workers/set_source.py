"""Set scanner interface: the full snapshot of logged sets."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Protocol

from pydantic import ValidationError

from .models import TrainingSet

logger = logging.getLogger(__name__)


class SetSource(Protocol):
    def get_all_sets(self) -> list[TrainingSet]:
        """Every set across all workouts and exercises, in store order."""
        ...


class StaticSetSource:
    """A fixed, mutable list of sets. Scan order is list order."""

    def __init__(self, sets: Iterable[TrainingSet | dict[str, Any]] = ()) -> None:
        self.sets: list[TrainingSet] = parse_sets(sets)

    def get_all_sets(self) -> list[TrainingSet]:
        return list(self.sets)

    def add(self, *sets: TrainingSet | dict[str, Any]) -> None:
        self.sets.extend(parse_sets(sets))

    def remove_workout(self, workout_id: int) -> None:
        self.sets = [s for s in self.sets if s.workout_id != workout_id]

    def replace_workout(self, workout_id: int, sets: Iterable[TrainingSet | dict[str, Any]]) -> None:
        self.remove_workout(workout_id)
        self.add(*sets)


def parse_sets(items: Iterable[Any]) -> list[TrainingSet]:
    """Validate raw set documents, skipping (and logging) malformed ones."""
    parsed: list[TrainingSet] = []
    for item in items:
        if isinstance(item, TrainingSet):
            parsed.append(item)
            continue
        try:
            parsed.append(TrainingSet.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed set %r (%d validation errors)", item, exc.error_count())
    return parsed
