"""Data models for sets and historical 1RM records.

Sets are owned by the external set store and arrive as loosely typed
documents, so they are parsed with pydantic. Records are owned by the
historical 1RM index and are plain frozen dataclasses.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

SET_TYPES: tuple[str, ...] = ("warmup", "working")
UPDATE_MODES: tuple[str, ...] = ("manual", "recompute")


class TrainingSet(BaseModel):
    """One logged set as stored by the workout/set store."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    exercise_id: int
    workout_id: int
    weight: float | None = None
    reps: int = Field(default=0, ge=0)
    set_type: Literal["warmup", "working"]
    exercise_order: int = 0
    set_order: int = 0
    user_id: str = ""
    created_at: datetime | None = None

    @field_validator("reps", mode="before")
    @classmethod
    def default_missing_reps(cls, value: Any) -> Any:
        return 0 if value is None else value


@dataclass(frozen=True)
class Best1RmRecord:
    """Best known e1RM for one exercise.

    ``source_workout_id`` is the provenance: the workout that produced a
    computed value, or ``None`` for a manual override.
    """

    value: float
    updated_at: str
    source_workout_id: int | None = None

    @property
    def is_manual(self) -> bool:
        return self.source_workout_id is None

    def to_document(self) -> dict[str, Any]:
        return {
            "historical_1rm": self.value,
            "updated_at": self.updated_at,
            "source_workout_id": self.source_workout_id,
        }

    @classmethod
    def from_document(cls, data: Any) -> Best1RmRecord:
        """Parse one persisted entry. Raises ValueError when malformed."""
        if not isinstance(data, dict):
            raise ValueError(f"record must be an object, got {type(data).__name__}")

        value = data.get("historical_1rm")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"historical_1rm must be a number, got {value!r}")
        try:
            value = float(value)
        except OverflowError:
            raise ValueError("historical_1rm is too large") from None
        if not math.isfinite(value) or value <= 0:
            raise ValueError(f"historical_1rm must be positive and finite, got {value!r}")

        updated_at = data.get("updated_at")
        if not isinstance(updated_at, str) or not updated_at:
            raise ValueError("updated_at must be a non-empty string")

        source = data.get("source_workout_id")
        if source is not None and (isinstance(source, bool) or not isinstance(source, int)):
            raise ValueError(f"source_workout_id must be an integer or null, got {source!r}")

        return cls(value=value, updated_at=updated_at, source_workout_id=source)


@dataclass(frozen=True)
class BestE1rm:
    """Winning estimate of a set scan and the workout that owns it."""

    value: float
    workout_id: int


@dataclass(frozen=True)
class Historical1RmStatus:
    """Stored record side by side with what the current sets compute to."""

    exercise_id: int
    record: Best1RmRecord | None
    computed: BestE1rm | None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"exercise_id": self.exercise_id}
        if self.record is not None:
            out["historical_1rm"] = self.record.value
            out["historical_1rm_updated_at"] = self.record.updated_at
            out["historical_1rm_source_workout_id"] = self.record.source_workout_id
        if self.computed is not None:
            out["computed_best_e1rm"] = self.computed.value
            out["computed_best_workout_id"] = self.computed.workout_id
        return out


class Historical1RmUpdate(BaseModel):
    """Caller-side request to change an exercise's historical 1RM.

    ``manual`` stores ``historical_1rm`` as an override (``None`` unsets it);
    ``recompute`` re-derives the value from the logged sets.
    """

    model_config = ConfigDict(extra="forbid")

    mode: Literal["manual", "recompute"] = "manual"
    historical_1rm: float | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def default_empty_mode(cls, value: Any) -> Any:
        if value is None or value == "":
            return "manual"
        return value

    @field_validator("historical_1rm")
    @classmethod
    def validate_value(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if not math.isfinite(value):
            raise ValueError("historical_1rm must be a finite number")
        if value <= 0:
            raise ValueError("historical_1rm must be greater than 0")
        return value
