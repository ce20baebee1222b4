"""Workout session state machine: start/resume, edits, exits and submit."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from liftlog.schemas.program import ExerciseRead
from liftlog.schemas.workout import WorkoutRead, WorkoutSetRead
from liftlog.session.client import ApiError
from liftlog.session.drafts import DraftRepository, SessionDraft, SessionStart
from liftlog.session.machine import (
    LeaveOutcome,
    SessionState,
    SessionStateError,
    SubmitStatus,
    WorkoutSession,
)
from liftlog.session.storage import MemoryStorage


class FakeApi:
    def __init__(self, previous: WorkoutRead | None = None):
        self.previous = previous
        self.fail_with: ApiError | None = None
        self.created = []

    def previous_workout(self, program_id):
        return self.previous

    def create_workout(self, payload):
        if self.fail_with is not None:
            raise self.fail_with
        self.created.append(payload)
        return WorkoutRead(
            id=uuid4(),
            program_id=payload.program_id,
            date=datetime.now(timezone.utc),
            completed=payload.completed,
            notes=payload.notes,
            duration_seconds=payload.duration_seconds,
            sets=[WorkoutSetRead(id=uuid4(), position=i, **s.model_dump()) for i, s in enumerate(payload.sets)],
        )


def _previous(program, *rows) -> WorkoutRead:
    return WorkoutRead(
        id=uuid4(),
        program_id=program.id,
        date=datetime(2026, 2, 20, tzinfo=timezone.utc),
        completed=True,
        sets=[
            WorkoutSetRead(id=uuid4(), exercise_name=name, set_number=n, reps=reps, weight=weight)
            for name, n, reps, weight in rows
        ],
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def make_session(api, storage, clock):
    def _make(**kwargs) -> WorkoutSession:
        return WorkoutSession(api, DraftRepository(storage), clock=clock, **kwargs)

    return _make


def test_fresh_start_builds_sets_from_targets(make_session, program):
    session = make_session()
    assert session.state is SessionState.UNINITIALIZED
    assert session.start(program) is SessionState.FRESH
    assert not session.resumed

    assert [(s.exercise_name, s.set_number, s.reps, s.weight, s.completed) for s in session.sets] == [
        ("A", 1, 10, 0, False),
        ("A", 2, 10, 0, False),
        ("A", 3, 10, 0, False),
        ("B", 1, 8, 0, False),
        ("B", 2, 8, 0, False),
    ]
    assert session.drafts.load_draft(str(program.id)) is not None
    assert session.drafts.resumable_program_ids(session.clock()) == {str(program.id)}


def test_every_edit_resaves_draft_with_touch_time(make_session, program, clock):
    session = make_session()
    session.start(program)

    clock.advance(minutes=10)
    session.record_set(1, "weight", 42.5)
    assert session.state is SessionState.IN_PROGRESS

    draft = session.drafts.load_draft(str(program.id))
    assert draft.saved_at == clock.now
    assert draft.sets[1].weight == 42.5
    assert [s.weight for i, s in enumerate(draft.sets) if i != 1] == [0, 0, 0, 0]

    clock.advance(minutes=5)
    session.set_notes("grip felt off")
    draft = session.drafts.load_draft(str(program.id))
    assert draft.notes == "grip felt off"
    assert draft.saved_at == clock.now


def test_record_set_changes_only_the_target(make_session, program):
    session = make_session()
    session.start(program)
    before = [s.model_copy() for s in session.sets]

    session.record_set(3, "reps", 12)
    session.record_set(3, "completed", True)

    for i, (old, new) in enumerate(zip(before, session.sets)):
        if i == 3:
            assert (new.exercise_name, new.set_number, new.reps, new.completed) == ("B", 1, 12, True)
        else:
            assert new == old


@pytest.mark.parametrize(
    "field,value,expected",
    [("reps", "", 0), ("reps", None, 0), ("reps", -3, 0), ("weight", "", 0.0), ("weight", -2.5, 0.0), ("weight", "22.5", 22.5)],
)
def test_numeric_inputs_are_coerced_and_clamped(make_session, program, field, value, expected):
    session = make_session()
    session.start(program)
    assert getattr(session.record_set(0, field, value), field) == expected


def test_rejects_unknown_field_and_bad_index(make_session, program):
    session = make_session()
    session.start(program)
    with pytest.raises(ValueError):
        session.record_set(0, "exercise_name", "C")
    with pytest.raises(IndexError):
        session.record_set(5, "reps", 1)
    with pytest.raises(IndexError):
        session.record_set(-1, "reps", 1)


def test_steppers_clamp_at_zero(make_session, program):
    session = make_session(weight_step=5)
    session.start(program)

    session.step_weight(0, +1)
    session.step_weight(0, +1)
    assert session.sets[0].weight == 10
    for _ in range(3):
        session.step_weight(0, -1)
    assert session.sets[0].weight == 0

    session.record_set(0, "reps", 1)
    session.step_reps(0, -1)
    session.step_reps(0, -1)
    assert session.sets[0].reps == 0
    session.step_reps(0, +1)
    assert session.sets[0].reps == 1


def test_weight_step_is_configurable(make_session, program):
    session = make_session(weight_step=1)
    session.start(program)
    session.step_weight(2, +1)
    assert session.sets[2].weight == 1
    with pytest.raises(ValueError):
        make_session(weight_step=0)


def test_resume_within_a_day(make_session, program, clock):
    first = make_session()
    first.start(program)
    first.record_set(0, "weight", 80)
    first.toggle_completed(0)
    first.set_notes("resume me")

    clock.advance(hours=23, minutes=59)
    second = make_session()
    assert second.start(program) is SessionState.IN_PROGRESS
    assert second.resumed
    assert second.sets[0].weight == 80 and second.sets[0].completed
    assert second.notes == "resume me"


def test_draft_older_than_a_day_is_dropped(make_session, program, clock):
    first = make_session()
    first.start(program)
    first.record_set(0, "weight", 80)

    clock.advance(hours=24)
    second = make_session()
    assert second.start(program) is SessionState.FRESH
    assert not second.resumed
    assert all(s.weight == 0 for s in second.sets)
    assert second.started_at == clock.now


def test_elapsed_is_measured_from_first_start(make_session, program, clock):
    started = clock.now
    session = make_session()
    session.start(program)

    clock.advance(minutes=30)
    session.record_set(0, "weight", 50)
    clock.advance(minutes=15)

    resumed = make_session()
    resumed.start(program)
    assert resumed.started_at == started
    assert resumed.elapsed() == timedelta(minutes=45)


def test_copy_previous_copies_reps_and_weight_only(api, make_session, program):
    api.previous = _previous(program, ("A", 2, 7, 95.0), ("B", 1, 8, 40.0))
    session = make_session()
    session.start(program)
    session.record_set(1, "completed", True)

    assert session.copy_previous(1) is True
    assert (session.sets[1].reps, session.sets[1].weight, session.sets[1].completed) == (7, 95.0, True)
    assert session.drafts.load_draft(str(program.id)).sets[1].weight == 95.0


def test_copy_previous_without_match_is_noop(api, make_session, program):
    api.previous = _previous(program, ("A", 1, 5, 100.0))
    session = make_session()
    session.start(program)
    before = list(session.sets)

    assert session.copy_previous(2) is False  # A#3 was not done last time
    assert session.copy_previous(4) is False  # neither was B#2
    assert session.sets == before
    assert session.state is SessionState.FRESH


def test_copy_previous_with_no_history(make_session, program):
    session = make_session()
    session.start(program)
    assert session.copy_previous(0) is False


def test_submit_zero_weight_needs_confirmation(api, make_session, program):
    session = make_session()
    session.start(program)

    result = session.submit()
    assert result.status is SubmitStatus.NEEDS_CONFIRMATION
    assert api.created == []
    assert session.drafts.load_draft(str(program.id)) is not None

    result = session.submit(confirm_zero_weight=True)
    assert result.ok
    assert len(api.created) == 1
    payload = api.created[0]
    assert payload.completed is True
    assert len(payload.sets) == 5
    assert len(result.workout.sets) == 5
    assert session.state is SessionState.SUBMITTED


def test_successful_submit_clears_draft_and_records_duration(api, make_session, program, clock):
    session = make_session()
    session.start(program)
    for i in range(len(session.sets)):
        session.record_set(i, "weight", 20)
    session.set_notes("done")
    clock.advance(minutes=52, seconds=10)

    result = session.submit()
    assert result.ok
    assert api.created[0].duration_seconds == 52 * 60 + 10
    assert api.created[0].notes == "done"
    assert session.drafts.load_draft(str(program.id)) is None
    assert session.drafts.load_start(str(program.id)) is None
    with pytest.raises(SessionStateError):
        session.record_set(0, "reps", 3)


def test_failed_submit_keeps_draft_for_retry(api, make_session, program):
    session = make_session()
    session.start(program)
    session.record_set(0, "weight", 60)
    api.fail_with = ApiError(500, "Something went wrong")

    result = session.submit(confirm_zero_weight=True)
    assert result.status is SubmitStatus.FAILED
    assert "Something went wrong" in result.error
    assert session.state is SessionState.IN_PROGRESS
    assert session.drafts.load_draft(str(program.id)).sets[0].weight == 60

    api.fail_with = None
    assert session.submit(confirm_zero_weight=True).ok


def test_submit_with_no_sets_is_rejected(api, make_session, program):
    empty = program.model_copy(update={"exercises": []})
    session = make_session()
    session.start(empty)
    assert session.submit(confirm_zero_weight=True).status is SubmitStatus.EMPTY
    assert api.created == []


def test_leave_without_progress_keeps_draft(make_session, program):
    session = make_session()
    session.start(program)
    assert session.leave() is LeaveOutcome.LEFT
    assert session.drafts.load_draft(str(program.id)) is not None


def test_leave_with_progress_asks_first(make_session, program):
    session = make_session()
    session.start(program)
    session.toggle_completed(0)

    assert session.leave() is LeaveOutcome.PROMPT_REQUIRED
    assert session.leave(discard=False) is LeaveOutcome.LEFT
    assert session.drafts.load_draft(str(program.id)) is not None

    assert session.leave(discard=True) is LeaveOutcome.DISCARDED
    assert session.state is SessionState.DISCARDED
    assert session.drafts.load_draft(str(program.id)) is None


def test_discard_restarts_like_a_first_session(make_session, program, clock):
    session = make_session()
    session.start(program)
    session.record_set(0, "weight", 100)
    session.set_notes("scrap this")
    clock.advance(minutes=20)

    assert session.discard() is SessionState.FRESH
    assert session.started_at == clock.now
    assert session.notes == ""
    assert all(s.weight == 0 and not s.completed for s in session.sets)

    clock.advance(minutes=1)
    again = make_session()
    again.start(program)
    assert again.resumed  # the reinitialized session is itself a draft
    assert again.sets == session.sets
    assert again.started_at == session.started_at


def test_start_survives_unreadable_draft(storage, make_session, program):
    storage.set_item(f"workout-progress-{program.id}", "{broken")
    session = make_session()
    assert session.start(program) is SessionState.FRESH
    assert len(session.sets) == 5


def test_previous_lookup_failure_does_not_block_start(api, make_session, program):
    def boom(program_id):
        raise ApiError(None, "connection refused")

    api.previous_workout = boom
    session = make_session()
    assert session.start(program) is SessionState.FRESH
    assert session.previous is None


def test_start_after_leaving_with_discard_is_a_first_session(make_session, program, clock):
    session = make_session()
    session.start(program)
    session.record_set(0, "weight", 100)
    session.leave(discard=True)

    clock.advance(minutes=3)
    again = make_session()
    assert again.start(program) is SessionState.FRESH
    assert not again.resumed
    assert again.started_at == clock.now
    assert again.elapsed() == timedelta(0)


@pytest.mark.parametrize(
    "value,expected",
    [(True, True), ("true", True), ("1", True), (1, True), (False, False), ("false", False), ("0", False), ("", False)],
)
def test_completed_accepts_booleans_and_their_spellings(make_session, program, value, expected):
    session = make_session()
    session.start(program)
    assert session.record_set(0, "completed", value).completed is expected


@pytest.mark.parametrize("value", ["maybe", 2, 0.5])
def test_completed_rejects_non_boolean(make_session, program, value):
    session = make_session()
    session.start(program)
    with pytest.raises(ValueError):
        session.record_set(0, "completed", value)
    assert session.sets[0].completed is False


@pytest.mark.parametrize(
    "field,value",
    [("weight", "inf"), ("weight", float("nan")), ("weight", "-inf"), ("reps", "inf"), ("reps", float("nan"))],
)
def test_non_finite_numbers_leave_the_draft_untouched(make_session, program, clock, field, value):
    session = make_session()
    session.start(program)
    session.record_set(0, "weight", 40)
    saved = session.drafts.load_draft(str(program.id))

    clock.advance(minutes=1)
    with pytest.raises(ValueError):
        session.record_set(0, field, value)
    assert session.sets[0].weight == 40
    assert session.drafts.load_draft(str(program.id)) == saved

    reopened = make_session()
    assert reopened.start(program) is SessionState.IN_PROGRESS
    assert reopened.resumed
    assert reopened.sets[0].weight == 40


def test_leave_with_weight_only_progress_asks_first(make_session, program):
    session = make_session()
    session.start(program)
    session.record_set(1, "weight", 20)
    assert not any(s.completed for s in session.sets)
    saved = session.drafts.load_draft(str(program.id))

    assert session.leave() is LeaveOutcome.PROMPT_REQUIRED
    assert session.state is SessionState.IN_PROGRESS
    assert session.drafts.load_draft(str(program.id)) == saved


def test_expired_draft_restarts_the_clock_even_with_a_live_start(storage, make_session, program, clock):
    program_id = str(program.id)
    drafts = DraftRepository(storage)
    drafts.save_start(SessionStart(program_id=program_id, started_at=clock.now - timedelta(hours=1)))
    drafts.save_draft(
        SessionDraft(program_id=program_id, sets=[], notes="stale", saved_at=clock.now - timedelta(hours=25))
    )

    session = make_session()
    assert session.start(program) is SessionState.FRESH
    assert session.notes == ""
    assert session.started_at == clock.now
    assert session.elapsed() == timedelta(0)

    clock.advance(minutes=10)
    assert session.elapsed() == timedelta(minutes=10)
    assert drafts.load_start(program_id).started_at == session.started_at


def test_submit_with_repeated_exercise_names_is_invalid(api, make_session, program):
    repeated = program.model_copy(
        update={
            "exercises": [
                ExerciseRead(id=uuid4(), name="Squat", sets=2, reps=5, order_index=0),
                ExerciseRead(id=uuid4(), name="Squat", sets=1, reps=3, order_index=1),
            ]
        }
    )
    session = make_session()
    session.start(repeated)
    session.record_set(0, "weight", 100)

    result = session.submit(confirm_zero_weight=True)
    assert result.status is SubmitStatus.INVALID
    assert not result.ok
    assert api.created == []
    assert session.state is SessionState.IN_PROGRESS
    assert session.drafts.load_draft(str(repeated.id)).sets[0].weight == 100
