"""Workout session state machine.

A session is filled in over time and may be interrupted by reloads or
restarts. Every change is written to the draft store; the server only sees
the finished workout, in one request, on submit.

States::

    UNINITIALIZED -> FRESH -> IN_PROGRESS -> SUBMITTED | DISCARDED

``IN_PROGRESS`` is entered directly (with ``resumed`` set) when a live draft
is found at start.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Protocol

from pydantic import ValidationError

from liftlog.core.constants import DEFAULT_WEIGHT_STEP, REPS_STEP
from liftlog.schemas.program import ProgramRead
from liftlog.schemas.workout import WorkoutCreate, WorkoutRead, WorkoutSetCreate
from liftlog.session.client import ApiError
from liftlog.session.drafts import DraftRepository, SessionDraft, SessionStart, is_expired

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("reps", "weight", "completed")


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    FRESH = "fresh"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    DISCARDED = "discarded"


class SubmitStatus(str, Enum):
    CREATED = "created"
    EMPTY = "empty"  # nothing to save
    NEEDS_CONFIRMATION = "needs_confirmation"  # zero-weight sets, ask first
    INVALID = "invalid"  # sets cannot form a workout (e.g. repeated set numbers)
    FAILED = "failed"  # server or network error, draft kept for retry


class LeaveOutcome(str, Enum):
    LEFT = "left"
    PROMPT_REQUIRED = "prompt_required"
    DISCARDED = "discarded"


@dataclass
class SubmitResult:
    status: SubmitStatus
    workout: WorkoutRead | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is SubmitStatus.CREATED


class SessionStateError(RuntimeError):
    """Operation not allowed in the session's current state."""


class WorkoutApi(Protocol):
    def previous_workout(self, program_id: str) -> WorkoutRead | None: ...

    def create_workout(self, payload: WorkoutCreate) -> WorkoutRead: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_initial_sets(program: ProgramRead) -> list[WorkoutSetCreate]:
    """Sets 1..target for each exercise, at target reps, zero weight, not completed."""
    sets: list[WorkoutSetCreate] = []
    for exercise in sorted(program.exercises, key=lambda e: e.order_index):
        for n in range(1, exercise.sets + 1):
            sets.append(
                WorkoutSetCreate(
                    exercise_name=exercise.name,
                    set_number=n,
                    reps=exercise.reps,
                    weight=0,
                    completed=False,
                )
            )
    return sets


def _finite(value: Any) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Expected a finite number, got {value!r}")
    return number


def coerce_reps(value: Any) -> int:
    if value is None or value == "":
        return 0
    return max(0, int(_finite(value)))


def coerce_weight(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    return max(0.0, _finite(value))


TRUE_STRINGS = ("true", "1", "yes", "on")
FALSE_STRINGS = ("false", "0", "no", "off", "")


def coerce_completed(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    raise ValueError(f"Expected a boolean for completed, got {value!r}")


class WorkoutSession:
    """One user's in-progress workout for one program."""

    def __init__(
        self,
        api: WorkoutApi,
        drafts: DraftRepository,
        weight_step: float = DEFAULT_WEIGHT_STEP,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if weight_step <= 0:
            raise ValueError("weight_step must be positive")
        self.api = api
        self.drafts = drafts
        self.weight_step = weight_step
        self.clock = clock

        self.state = SessionState.UNINITIALIZED
        self.resumed = False
        self.program: ProgramRead | None = None
        self.sets: list[WorkoutSetCreate] = []
        self.notes = ""
        self.previous: WorkoutRead | None = None
        self.started_at: datetime | None = None

    @property
    def program_id(self) -> str:
        if self.program is None:
            raise SessionStateError("Session has not been started")
        return str(self.program.id)

    # -- lifecycle -------------------------------------------------------

    def start(self, program: ProgramRead) -> SessionState:
        """Resume a live draft for ``program`` or initialize a fresh session."""
        self.program = program
        now = self.clock()
        draft = self.drafts.load_live_draft(self.program_id, now)
        if draft is not None:
            self.sets = list(draft.sets)
            self.notes = draft.notes
            self.resumed = True
            self.state = SessionState.IN_PROGRESS
            logger.info("Resumed workout for program %s saved at %s", self.program_id, draft.saved_at)
        else:
            self._initialize()
        self._ensure_start(now)
        self._persist()
        self._load_previous()
        return self.state

    def _initialize(self) -> None:
        self.sets = build_initial_sets(self.program)
        self.notes = ""
        self.resumed = False
        self.state = SessionState.FRESH

    def _ensure_start(self, now: datetime) -> None:
        start = self.drafts.load_start(self.program_id)
        if start is None or (not self.resumed and is_expired(start.started_at, now, self.drafts.ttl)):
            start = SessionStart(program_id=self.program_id, started_at=now)
            self.drafts.save_start(start)
        self.started_at = start.started_at

    def _load_previous(self) -> None:
        try:
            self.previous = self.api.previous_workout(self.program_id)
        except ApiError as e:
            logger.warning("Could not load previous workout for program %s: %s", self.program_id, e)
            self.previous = None

    def _persist(self) -> None:
        self.drafts.save_draft(
            SessionDraft(
                program_id=self.program_id,
                sets=self.sets,
                notes=self.notes,
                saved_at=self.clock(),
            )
        )

    def _require_active(self) -> None:
        if self.state not in (SessionState.FRESH, SessionState.IN_PROGRESS):
            raise SessionStateError(f"Session is {self.state.value}")

    def _touch(self) -> None:
        self.state = SessionState.IN_PROGRESS
        self._persist()

    # -- editing ---------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.sets):
            raise IndexError(f"No set at position {index}")

    def _replace_set(self, index: int, changes: dict[str, Any]) -> None:
        """Validated update of one set, so nothing the draft cannot reload is ever saved."""
        current = self.sets[index]
        self.sets[index] = WorkoutSetCreate.model_validate({**current.model_dump(), **changes})
        self._touch()

    def record_set(self, index: int, field: str, value: Any) -> WorkoutSetCreate:
        """Change one field of one set and save the draft."""
        self._require_active()
        self._check_index(index)
        if field == "reps":
            value = coerce_reps(value)
        elif field == "weight":
            value = coerce_weight(value)
        elif field == "completed":
            value = coerce_completed(value)
        else:
            raise ValueError(f"Field must be one of {EDITABLE_FIELDS}, got {field!r}")
        self._replace_set(index, {field: value})
        return self.sets[index]

    def step_reps(self, index: int, direction: int) -> WorkoutSetCreate:
        self._check_index(index)
        return self.record_set(index, "reps", self.sets[index].reps + direction * REPS_STEP)

    def step_weight(self, index: int, direction: int) -> WorkoutSetCreate:
        self._check_index(index)
        return self.record_set(index, "weight", self.sets[index].weight + direction * self.weight_step)

    def toggle_completed(self, index: int) -> WorkoutSetCreate:
        self._check_index(index)
        return self.record_set(index, "completed", not self.sets[index].completed)

    def set_notes(self, notes: str) -> None:
        self._require_active()
        self.notes = notes or ""
        self._touch()

    def previous_set(self, index: int) -> WorkoutSetCreate | None:
        """Same exercise and set number from the previous workout, if any."""
        self._check_index(index)
        if self.previous is None:
            return None
        current = self.sets[index]
        for s in self.previous.sets:
            if s.exercise_name == current.exercise_name and s.set_number == current.set_number:
                return s
        return None

    def copy_previous(self, index: int) -> bool:
        """Overwrite reps and weight with last workout's values. False if nothing matched."""
        self._require_active()
        prev = self.previous_set(index)
        if prev is None:
            return False
        self._replace_set(index, {"reps": prev.reps, "weight": prev.weight})
        return True

    # -- queries ---------------------------------------------------------

    def elapsed(self) -> timedelta:
        """Wall-clock time since the session first started (stable across resumes)."""
        if self.started_at is None:
            return timedelta(0)
        started = self.started_at
        if started.tzinfo is None:
            started = started.replace(tzinfo=timezone.utc)
        return max(timedelta(0), self.clock() - started)

    def has_progress(self) -> bool:
        return any(s.completed or s.weight != 0 for s in self.sets)

    def zero_weight_sets(self) -> list[int]:
        return [i for i, s in enumerate(self.sets) if s.weight == 0]

    # -- exits -----------------------------------------------------------

    def discard(self) -> SessionState:
        """Throw the draft away and start over with a fresh session."""
        self._require_active()
        self.drafts.clear(self.program_id)
        logger.info("Discarded workout draft for program %s", self.program_id)
        self._initialize()
        self._ensure_start(self.clock())
        self._persist()
        return self.state

    def leave(self, discard: bool | None = None) -> LeaveOutcome:
        """Navigate away. With progress and no decision yet, nothing happens until asked."""
        self._require_active()
        if discard is None and self.has_progress():
            return LeaveOutcome.PROMPT_REQUIRED
        if discard:
            self.drafts.clear(self.program_id)
            self.state = SessionState.DISCARDED
            return LeaveOutcome.DISCARDED
        return LeaveOutcome.LEFT

    def submit(self, confirm_zero_weight: bool = False) -> SubmitResult:
        """Send the workout. On failure the draft stays put so the user can retry."""
        self._require_active()
        if not self.sets:
            return SubmitResult(SubmitStatus.EMPTY, error="Add at least one set")
        if self.zero_weight_sets() and not confirm_zero_weight:
            return SubmitResult(SubmitStatus.NEEDS_CONFIRMATION, error="Some sets have 0 weight")

        try:
            payload = WorkoutCreate(
                program_id=self.program.id,
                sets=self.sets,
                notes=self.notes or None,
                completed=True,
                duration_seconds=int(self.elapsed().total_seconds()),
            )
        except ValidationError as e:
            logger.error("Workout for program %s is not valid: %s", self.program_id, e)
            return SubmitResult(SubmitStatus.INVALID, error=str(e))
        try:
            workout = self.api.create_workout(payload)
        except ApiError as e:
            logger.error("Failed to save workout for program %s: %s", self.program_id, e)
            return SubmitResult(SubmitStatus.FAILED, error=str(e))

        self.drafts.clear(self.program_id)
        self.state = SessionState.SUBMITTED
        logger.info("Saved workout %s for program %s", workout.id, self.program_id)
        return SubmitResult(SubmitStatus.CREATED, workout=workout)
