"""Workout and WorkoutSet schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt, PositiveInt, model_validator


class WorkoutSetBase(BaseModel):
    exercise_name: str = Field(..., min_length=1, max_length=255)
    set_number: PositiveInt
    reps: NonNegativeInt = 0
    weight: NonNegativeFloat = 0.0
    completed: bool = True


class WorkoutSetCreate(WorkoutSetBase):
    pass


class WorkoutSetRead(WorkoutSetBase):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    position: int = 0


class WorkoutBase(BaseModel):
    notes: str | None = None
    duration_seconds: NonNegativeInt | None = None


class WorkoutCreate(WorkoutBase):
    """Workout plus all its sets, written in one transaction.

    ``completed`` is taken as given; it only defaults to True when omitted.
    """

    program_id: UUID
    completed: bool = True
    date: datetime | None = None
    sets: list[WorkoutSetCreate] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _unique_set_numbers(self) -> "WorkoutCreate":
        seen: set[tuple[str, int]] = set()
        for s in self.sets:
            key = (s.exercise_name, s.set_number)
            if key in seen:
                raise ValueError(f"Duplicate set {s.set_number} for exercise '{s.exercise_name}'")
            seen.add(key)
        return self


class WorkoutRead(WorkoutBase):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    program_id: UUID
    program_name: str | None = None
    date: datetime
    completed: bool
    sets: list[WorkoutSetRead] = []
