"""Program and Exercise schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PositiveInt, field_validator


class ExerciseBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sets: PositiveInt
    reps: PositiveInt


class ExerciseCreate(ExerciseBase):
    pass


class ExerciseRead(ExerciseBase):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    order_index: int


class ProgramBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None


class ProgramCreate(ProgramBase):
    """Exercises are stored in list order (order_index 0..n-1)."""

    exercises: list[ExerciseCreate] = Field(..., min_length=1)

    @field_validator("exercises")
    @classmethod
    def _unique_exercise_names(cls, exercises: list[ExerciseCreate]) -> list[ExerciseCreate]:
        # Logged sets refer to exercises by name, so names must not repeat
        seen: set[str] = set()
        for ex in exercises:
            if ex.name in seen:
                raise ValueError(f"Exercise '{ex.name}' appears more than once")
            seen.add(ex.name)
        return exercises


class ProgramUpdate(ProgramCreate):
    """Full replacement: the exercise list is deleted and recreated."""

    pass


class ProgramRead(ProgramBase):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    user_id: UUID
    created_at: datetime
    shared_by_id: UUID | None = None
    shared_by_name: str | None = None
    exercises: list[ExerciseRead] = []


class ProgramShare(BaseModel):
    email: EmailStr


class ProgramShareResult(BaseModel):
    success: bool = True
    message: str
    shared_program: ProgramRead
