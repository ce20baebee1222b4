"""ORM models - import all so Base.metadata is complete for migrations."""

from liftlog.models.program import Exercise, Program
from liftlog.models.user import User
from liftlog.models.workout import Workout, WorkoutSet

__all__ = [
    "Exercise",
    "Program",
    "User",
    "Workout",
    "WorkoutSet",
]
