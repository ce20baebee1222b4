"""Client-side workout sessions: resumable drafts kept in local storage."""

from liftlog.session.client import ApiError, LiftlogClient
from liftlog.session.drafts import DraftRepository, SessionDraft, SessionStart, is_expired
from liftlog.session.machine import (
    LeaveOutcome,
    SessionState,
    SessionStateError,
    SubmitResult,
    SubmitStatus,
    WorkoutSession,
    build_initial_sets,
)
from liftlog.session.storage import JsonFileStorage, KeyValueStorage, MemoryStorage

__all__ = [
    "ApiError",
    "DraftRepository",
    "JsonFileStorage",
    "KeyValueStorage",
    "LeaveOutcome",
    "LiftlogClient",
    "MemoryStorage",
    "SessionDraft",
    "SessionStart",
    "SessionState",
    "SessionStateError",
    "SubmitResult",
    "SubmitStatus",
    "WorkoutSession",
    "build_initial_sets",
    "is_expired",
]
