"""Historical 1RM index: best e1RM per exercise, kept in sync with sets.

The index is a derived aggregate over the set store. Callers commit their
workout/set changes first and then notify the index, which re-derives from
the full current set snapshot and writes the whole document back once.

Two update rules coexist:
- a created workout only ever raises a record (manual or computed), and
  only when strictly greater;
- a manual value replaces whatever is stored, even a larger one.

Every read-modify-write loads and saves the whole document with no locking,
so two concurrent writers race and the last write wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from .aggregate_store import AggregateStore
from .e1rm import best_e1rm_by_exercise, best_e1rm_for_exercise, workout_best_e1rm_by_exercise
from .models import Best1RmRecord, Historical1RmStatus, Historical1RmUpdate
from .set_source import SetSource

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Historical1RmIndex:
    def __init__(
        self,
        store: AggregateStore,
        sets: SetSource,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.sets = sets
        self.clock = clock

    def _now(self) -> str:
        return self.clock().isoformat()

    # --- reads ---

    def get_record(self, exercise_id: int) -> Best1RmRecord | None:
        return self.store.load().get(exercise_id)

    def records(self) -> dict[int, Best1RmRecord]:
        return self.store.load()

    def status(self, exercise_id: int) -> Historical1RmStatus:
        return Historical1RmStatus(
            exercise_id=exercise_id,
            record=self.get_record(exercise_id),
            computed=best_e1rm_for_exercise(self.sets.get_all_sets(), exercise_id),
        )

    # --- full rebuilds ---

    def bootstrap(self) -> dict[int, Best1RmRecord]:
        """Rebuild every record from the sets, discarding manual overrides."""
        now = self._now()
        records = {
            exercise_id: Best1RmRecord(value=best.value, updated_at=now, source_workout_id=best.workout_id)
            for exercise_id, best in best_e1rm_by_exercise(self.sets.get_all_sets()).items()
        }
        self.store.save(records)
        logger.info("Historical 1RM bootstrapped for %d exercises", len(records))
        return records

    def reset(self) -> dict[int, Best1RmRecord]:
        self.store.clear()
        return self.bootstrap()

    def clear(self) -> None:
        self.store.clear()

    # --- workout events ---

    def on_workout_created(self, workout_id: int) -> None:
        best_by_exercise = workout_best_e1rm_by_exercise(self.sets.get_all_sets(), workout_id)
        if not best_by_exercise:
            return

        records = self.store.load()
        now = self._now()
        raised: list[int] = []
        for exercise_id, best in best_by_exercise.items():
            prev = records.get(exercise_id)
            if prev is None or best > prev.value:
                records[exercise_id] = Best1RmRecord(value=best, updated_at=now, source_workout_id=workout_id)
                raised.append(exercise_id)
        self.store.save(records)

        if raised:
            logger.info(
                "Workout %s raised historical 1RM for exercises %s",
                workout_id, raised,
                extra={"fittrack_workout_id": workout_id},
            )

    def on_workout_deleted(self, workout_id: int) -> None:
        """Repair every record attributed to ``workout_id``.

        The workout's sets must already be gone from the set store. Records
        from other workouts and manual records are left alone.
        """
        records = self.store.load()
        affected = [
            exercise_id
            for exercise_id, record in records.items()
            if record.source_workout_id == workout_id
        ]
        if not affected:
            return

        sets = self.sets.get_all_sets()
        now = self._now()
        for exercise_id in affected:
            best = best_e1rm_for_exercise(sets, exercise_id)
            if best is None:
                del records[exercise_id]
                continue
            records[exercise_id] = Best1RmRecord(value=best.value, updated_at=now, source_workout_id=best.workout_id)
        self.store.save(records)

        logger.info(
            "Workout %s removed; recomputed historical 1RM for exercises %s",
            workout_id, affected,
            extra={"fittrack_workout_id": workout_id},
        )

    def record_sets_replaced(self, workout_id: int) -> None:
        """Re-derive after a workout's sets were replaced.

        Precondition: the set store already returns the workout's new sets.
        """
        self.on_workout_deleted(workout_id)
        self.on_workout_created(workout_id)

    def on_workout_updated(self, workout_id: int) -> None:
        self.record_sets_replaced(workout_id)

    @contextmanager
    def replacing_sets(self, workout_id: int) -> Iterator[None]:
        """Wrap the write of a workout's new sets.

        The body of the ``with`` block commits the new sets; the index is
        re-derived once the block exits normally.

            with index.replacing_sets(workout_id):
                set_store.replace(workout_id, new_sets)
        """
        yield
        self.record_sets_replaced(workout_id)

    # --- exercise events ---

    def on_exercise_deleted(self, exercise_id: int) -> None:
        records = self.store.load()
        if exercise_id not in records:
            return
        del records[exercise_id]
        self.store.save(records)

    def set_manual(self, exercise_id: int, value: float | None) -> Best1RmRecord | None:
        """Store a manual override (``None`` unsets the exercise).

        ``value`` must already be validated as a positive finite number.
        """
        records = self.store.load()
        if value is None:
            records.pop(exercise_id, None)
            self.store.save(records)
            return None

        record = Best1RmRecord(value=value, updated_at=self._now(), source_workout_id=None)
        records[exercise_id] = record
        self.store.save(records)
        return record

    def recompute(self, exercise_id: int) -> Best1RmRecord | None:
        """Force the record to the best computed from the current sets."""
        best = best_e1rm_for_exercise(self.sets.get_all_sets(), exercise_id)
        records = self.store.load()
        if best is None:
            records.pop(exercise_id, None)
            self.store.save(records)
            return None

        record = Best1RmRecord(value=best.value, updated_at=self._now(), source_workout_id=best.workout_id)
        records[exercise_id] = record
        self.store.save(records)
        return record

    def apply_update(self, exercise_id: int, update: Historical1RmUpdate) -> Best1RmRecord | None:
        if update.mode == "recompute":
            return self.recompute(exercise_id)
        return self.set_manual(exercise_id, update.historical_1rm)
