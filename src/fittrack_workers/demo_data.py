"""Client-local demo store for workouts, exercises and sets.

Three whole documents (workouts, exercises, sets) live in a key-value store
next to the historical 1RM document. Every mutation commits its documents
first and only then dispatches the maintenance event, so the index always
re-derives from data that is already visible through ``get_all_sets()``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from .aggregate_store import AggregateStore
from .handlers import dispatch
from .historical_1rm import Historical1RmIndex
from .kv import KeyValueStore, StorageUnavailable
from .models import TrainingSet
from .set_source import parse_sets

logger = logging.getLogger(__name__)

DEMO_USER_ID = "demo-user"

WORKOUTS_KEY = "fittrack-demo-workouts"
EXERCISES_KEY = "fittrack-demo-exercises"
SETS_KEY = "fittrack-demo-sets"


class SetInput(BaseModel):
    reps: int = Field(ge=0)
    weight: float | None = Field(default=None, ge=0)
    set_type: Literal["warmup", "working"] = "working"


class ExerciseInput(BaseModel):
    name: str
    sets: list[SetInput] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("exercise name must not be empty")
        return cleaned


class WorkoutInput(BaseModel):
    date: str
    notes: str | None = None
    workout_focus: str | None = None
    exercises: list[ExerciseInput] = Field(default_factory=list)


def next_id(items: list[dict[str, Any]]) -> int:
    """One past the largest integer ``id``; entries without one are ignored."""
    ids = [
        item["id"]
        for item in items
        if isinstance(item.get("id"), int) and not isinstance(item["id"], bool)
    ]
    return max(ids, default=0) + 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DemoDataStore:
    """Workout/exercise/set CRUD that keeps the historical 1RM index in sync.

    Also serves as the index's set source.
    """

    def __init__(self, kv: KeyValueStore, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self.kv = kv
        self.clock = clock
        self.historical_1rm = Historical1RmIndex(AggregateStore(kv), self, clock=clock)

    # --- document I/O ---

    def _read_list(self, key: str) -> list[Any]:
        try:
            raw = self.kv.get_item(key)
        except StorageUnavailable as exc:
            logger.warning("Demo document %s unavailable, treating as empty: %s", key, exc)
            return []
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError):
            logger.warning("Demo document %s is not valid JSON, treating as empty", key)
            return []
        if not isinstance(data, list):
            logger.warning("Demo document %s is a %s, not a list; treating as empty", key, type(data).__name__)
            return []

        items = [item for item in data if isinstance(item, dict)]
        if len(items) != len(data):
            logger.warning("Dropping %d non-object entries from demo document %s", len(data) - len(items), key)
        return items

    def _write_list(self, key: str, items: list[Any]) -> None:
        self.kv.set_item(key, json.dumps(items, default=str))

    def _now(self) -> str:
        return self.clock().isoformat()

    # --- lifecycle ---

    def has_data(self) -> bool:
        try:
            return self.kv.get_item(WORKOUTS_KEY) is not None
        except StorageUnavailable:
            return False

    def initialize(self) -> bool:
        """Seed the demo data and bootstrap the index, unless already seeded."""
        if self.has_data():
            return False
        self._seed()
        self.historical_1rm.bootstrap()
        return True

    def reset(self) -> None:
        self._seed()
        dispatch(self.historical_1rm, "demo.reseeded")

    def clear(self) -> None:
        for key in (EXERCISES_KEY, WORKOUTS_KEY, SETS_KEY):
            self.kv.remove_item(key)
        self.historical_1rm.clear()

    def _seed(self) -> None:
        exercises, workouts, sets = initial_demo_data(self.clock())
        self._write_list(EXERCISES_KEY, exercises)
        self._write_list(WORKOUTS_KEY, workouts)
        self._write_list(SETS_KEY, sets)

    # --- set scanner ---

    def get_all_sets(self) -> list[TrainingSet]:
        return parse_sets(self._read_list(SETS_KEY))

    # --- exercises ---

    def get_all_exercises(self) -> list[dict[str, Any]]:
        return self._read_list(EXERCISES_KEY)

    def get_exercise(self, exercise_id: int) -> dict[str, Any] | None:
        for exercise in self.get_all_exercises():
            if exercise.get("id") == exercise_id:
                return exercise
        return None

    def create_exercise(self, name: str) -> dict[str, Any]:
        exercises = self.get_all_exercises()
        exercise = self._new_exercise(exercises, ExerciseInput(name=name).name)
        exercises.append(exercise)
        self._write_list(EXERCISES_KEY, exercises)
        return exercise

    def rename_exercise(self, exercise_id: int, name: str) -> bool:
        """Rename an exercise. Names are unique, compared case-insensitively.

        Raises ValueError when another exercise already has the name.
        """
        exercises = self.get_all_exercises()
        exercise = next((e for e in exercises if e.get("id") == exercise_id), None)
        if exercise is None:
            return False

        cleaned = ExerciseInput(name=name).name
        if any(
            e.get("id") != exercise_id and str(e.get("name", "")).lower() == cleaned.lower()
            for e in exercises
        ):
            raise ValueError(f"Exercise name {cleaned!r} already exists")

        exercise["name"] = cleaned
        exercise["updated_at"] = self._now()
        self._write_list(EXERCISES_KEY, exercises)
        return True

    def delete_exercise(self, exercise_id: int) -> bool:
        exercises = self.get_all_exercises()
        remaining = [e for e in exercises if e.get("id") != exercise_id]
        if len(remaining) == len(exercises):
            return False

        sets = [s for s in self._read_list(SETS_KEY) if s.get("exercise_id") != exercise_id]
        self._write_list(SETS_KEY, sets)
        self._write_list(EXERCISES_KEY, remaining)
        dispatch(self.historical_1rm, "exercise.deleted", {"exercise_id": exercise_id})
        return True

    def _new_exercise(self, exercises: list[dict[str, Any]], name: str) -> dict[str, Any]:
        now = self._now()
        return {
            "id": next_id(exercises),
            "name": name,
            "user_id": DEMO_USER_ID,
            "created_at": now,
            "updated_at": now,
        }

    # --- workouts ---

    def get_all_workouts(self) -> list[dict[str, Any]]:
        """Workouts, newest date first."""
        return sorted(self._read_list(WORKOUTS_KEY), key=lambda w: str(w.get("date") or ""), reverse=True)

    def get_workout(self, workout_id: int) -> dict[str, Any] | None:
        for workout in self._read_list(WORKOUTS_KEY):
            if workout.get("id") == workout_id:
                return workout
        return None

    def get_workout_sets(self, workout_id: int) -> list[TrainingSet]:
        sets = [s for s in self.get_all_sets() if s.workout_id == workout_id]
        return sorted(sets, key=lambda s: (s.exercise_order, s.set_order))

    def create_workout(self, data: WorkoutInput | dict[str, Any]) -> int:
        workout_input = WorkoutInput.model_validate(data)
        workouts = self._read_list(WORKOUTS_KEY)
        exercises = self.get_all_exercises()
        sets = self._read_list(SETS_KEY)

        now = self._now()
        workout = {
            "id": next_id(workouts),
            "date": workout_input.date,
            "notes": workout_input.notes,
            "workout_focus": workout_input.workout_focus,
            "user_id": DEMO_USER_ID,
            "created_at": now,
            "updated_at": now,
        }
        workouts.append(workout)
        sets.extend(self._build_sets(workout["id"], workout_input, exercises, sets))

        self._write_list(WORKOUTS_KEY, workouts)
        self._write_list(EXERCISES_KEY, exercises)
        self._write_list(SETS_KEY, sets)
        dispatch(self.historical_1rm, "workout.created", {"workout_id": workout["id"]})
        return workout["id"]

    def update_workout(self, workout_id: int, data: WorkoutInput | dict[str, Any]) -> bool:
        """Replace a workout's metadata and all of its sets."""
        workout_input = WorkoutInput.model_validate(data)
        workouts = self._read_list(WORKOUTS_KEY)
        workout = next((w for w in workouts if w.get("id") == workout_id), None)
        if workout is None:
            return False

        workout.update(
            date=workout_input.date,
            notes=workout_input.notes,
            workout_focus=workout_input.workout_focus,
            updated_at=self._now(),
        )
        exercises = self.get_all_exercises()
        sets = [s for s in self._read_list(SETS_KEY) if s.get("workout_id") != workout_id]
        sets.extend(self._build_sets(workout_id, workout_input, exercises, sets))

        self._write_list(WORKOUTS_KEY, workouts)
        self._write_list(EXERCISES_KEY, exercises)
        self._write_list(SETS_KEY, sets)
        dispatch(self.historical_1rm, "workout.updated", {"workout_id": workout_id})
        return True

    def delete_workout(self, workout_id: int) -> bool:
        workouts = self._read_list(WORKOUTS_KEY)
        remaining = [w for w in workouts if w.get("id") != workout_id]
        if len(remaining) == len(workouts):
            return False

        sets = [s for s in self._read_list(SETS_KEY) if s.get("workout_id") != workout_id]
        self._write_list(WORKOUTS_KEY, remaining)
        self._write_list(SETS_KEY, sets)
        dispatch(self.historical_1rm, "workout.deleted", {"workout_id": workout_id})
        return True

    def _build_sets(
        self,
        workout_id: int,
        workout_input: WorkoutInput,
        exercises: list[dict[str, Any]],
        existing_sets: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """New set documents; unknown exercise names are appended to ``exercises``."""
        now = self._now()
        new_sets: list[dict[str, Any]] = []
        for exercise_order, exercise_input in enumerate(workout_input.exercises):
            exercise = next((e for e in exercises if e.get("name") == exercise_input.name), None)
            if exercise is None:
                exercise = self._new_exercise(exercises, exercise_input.name)
                exercises.append(exercise)

            for set_order, set_input in enumerate(exercise_input.sets):
                new_sets.append({
                    "id": next_id(existing_sets + new_sets),
                    "exercise_id": exercise["id"],
                    "workout_id": workout_id,
                    "weight": set_input.weight,
                    "reps": set_input.reps,
                    "set_type": set_input.set_type,
                    "exercise_order": exercise_order,
                    "set_order": set_order,
                    "user_id": DEMO_USER_ID,
                    "created_at": now,
                })
        return new_sets


# (name, [(days_ago, [(weight, reps, set_type), ...]), ...])
_DEMO_HISTORY: list[tuple[str, list[tuple[int, list[tuple[float | None, int, str]]]]]] = [
    ("Barbell Squat", [
        (14, [(135, 5, "warmup"), (225, 5, "working"), (225, 5, "working")]),
        (7, [(135, 5, "warmup"), (235, 5, "working"), (235, 4, "working")]),
        (0, [(135, 5, "warmup"), (245, 3, "working")]),
    ]),
    ("Bench Press", [
        (14, [(95, 8, "warmup"), (185, 5, "working"), (185, 5, "working")]),
        (7, [(95, 8, "warmup"), (190, 4, "working")]),
        (0, [(95, 8, "warmup"), (180, 6, "working")]),
    ]),
    ("Deadlift", [
        (14, [(135, 5, "warmup"), (275, 5, "working")]),
        (0, [(185, 3, "warmup"), (295, 3, "working")]),
    ]),
    ("Pull-Up", [
        (7, [(None, 10, "working"), (None, 8, "working")]),
        (0, [(None, 10, "working"), (25, 6, "working")]),
    ]),
]


def initial_demo_data(now: datetime) -> tuple[list[dict[str, Any]], list[dict[str, Any]], list[dict[str, Any]]]:
    """Seed exercises, workouts and sets relative to ``now``."""
    days = sorted({d for _, sessions in _DEMO_HISTORY for d, _ in sessions}, reverse=True)
    seeded_at = (now - timedelta(days=30)).isoformat()

    exercises = [
        {
            "id": i,
            "name": name,
            "user_id": DEMO_USER_ID,
            "created_at": seeded_at,
            "updated_at": seeded_at,
        }
        for i, (name, _) in enumerate(_DEMO_HISTORY, start=1)
    ]

    workouts: list[dict[str, Any]] = []
    workout_ids: dict[int, int] = {}
    for i, days_ago in enumerate(days, start=1):
        at = (now - timedelta(days=days_ago)).isoformat()
        workout_ids[days_ago] = i
        workouts.append({
            "id": i,
            "date": at[:10],
            "notes": None,
            "workout_focus": None,
            "user_id": DEMO_USER_ID,
            "created_at": at,
            "updated_at": at,
        })

    sets: list[dict[str, Any]] = []
    for exercise_id, (_, sessions) in enumerate(_DEMO_HISTORY, start=1):
        for days_ago, session_sets in sessions:
            for set_order, (weight, reps, set_type) in enumerate(session_sets):
                sets.append({
                    "id": len(sets) + 1,
                    "exercise_id": exercise_id,
                    "workout_id": workout_ids[days_ago],
                    "weight": weight,
                    "reps": reps,
                    "set_type": set_type,
                    "exercise_order": exercise_id - 1,
                    "set_order": set_order,
                    "user_id": DEMO_USER_ID,
                    "created_at": (now - timedelta(days=days_ago)).isoformat(),
                })
    return exercises, workouts, sets
