"""Estimated 1RM calculation and set scans.

All scans keep the first set that reaches a maximum: a later set only wins
when it is strictly greater. Scan order is whatever the set store returns.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from .models import BestE1rm, TrainingSet


def epley_1rm(weight: float, reps: int) -> float:
    """Estimate 1RM using the Epley formula."""
    return weight * (1 + reps / 30)


def estimate_set_e1rm(s: TrainingSet) -> float | None:
    """Return the set's e1RM, or None when the set does not qualify.

    Only working sets qualify, and only with a strictly positive finite
    estimate. Missing weight counts as bodyweight (0), so bodyweight sets
    never qualify.
    """
    if s.set_type != "working":
        return None
    e1rm = epley_1rm(s.weight or 0.0, s.reps)
    if not math.isfinite(e1rm) or e1rm <= 0:
        return None
    return e1rm


def best_e1rm_for_exercise(sets: Iterable[TrainingSet], exercise_id: int) -> BestE1rm | None:
    best: BestE1rm | None = None
    for s in sets:
        if s.exercise_id != exercise_id:
            continue
        e1rm = estimate_set_e1rm(s)
        if e1rm is None:
            continue
        if best is None or e1rm > best.value:
            best = BestE1rm(value=e1rm, workout_id=s.workout_id)
    return best


def best_e1rm_by_exercise(sets: Iterable[TrainingSet]) -> dict[int, BestE1rm]:
    """Single pass over all sets: best e1RM and owning workout per exercise."""
    best: dict[int, BestE1rm] = {}
    for s in sets:
        e1rm = estimate_set_e1rm(s)
        if e1rm is None:
            continue
        prev = best.get(s.exercise_id)
        if prev is None or e1rm > prev.value:
            best[s.exercise_id] = BestE1rm(value=e1rm, workout_id=s.workout_id)
    return best


def workout_best_e1rm_by_exercise(sets: Iterable[TrainingSet], workout_id: int) -> dict[int, float]:
    """Best e1RM per exercise within one workout."""
    by_exercise: dict[int, float] = {}
    for s in sets:
        if s.workout_id != workout_id:
            continue
        e1rm = estimate_set_e1rm(s)
        if e1rm is None:
            continue
        prev = by_exercise.get(s.exercise_id)
        if prev is None or e1rm > prev:
            by_exercise[s.exercise_id] = e1rm
    return by_exercise
