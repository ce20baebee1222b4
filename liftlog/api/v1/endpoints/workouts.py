"""Workout logging endpoints."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from liftlog.api.deps import get_current_user
from liftlog.api.v1.endpoints.programs import get_owned_program
from liftlog.db.session import get_db
from liftlog.models.program import Program
from liftlog.models.user import User
from liftlog.models.workout import Workout, WorkoutSet
from liftlog.schemas.workout import WorkoutCreate, WorkoutRead, WorkoutSetRead

logger = logging.getLogger(__name__)
router = APIRouter()


def _to_read(workout: Workout, program_name: str | None) -> WorkoutRead:
    return WorkoutRead(
        id=workout.id,
        program_id=workout.program_id,
        program_name=program_name,
        date=workout.date,
        notes=workout.notes,
        completed=workout.completed,
        duration_seconds=workout.duration_seconds,
        sets=[WorkoutSetRead.model_validate(s) for s in sorted(workout.sets, key=lambda s: s.position)],
    )


def _owned_workouts(user: User):
    return (
        select(Workout, Program.name)
        .join(Program, Program.id == Workout.program_id)
        .options(selectinload(Workout.sets))
        .where(Workout.user_id == user.id)
    )


@router.get("", response_model=list[WorkoutRead])
async def list_workouts(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    program_id: uuid.UUID | None = None,
    skip: int = 0,
    limit: int = 50,
):
    """List the user's workouts, newest first, optionally for one program."""
    stmt = _owned_workouts(user)
    if program_id:
        stmt = stmt.where(Workout.program_id == program_id)
    stmt = stmt.order_by(Workout.date.desc()).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return [_to_read(w, name) for w, name in result.all()]


@router.post("", response_model=WorkoutRead, status_code=201)
async def create_workout(
    payload: WorkoutCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Log a workout with all its sets in one transaction."""
    program = await get_owned_program(db, payload.program_id, user)

    workout = Workout(
        user_id=user.id,
        program_id=program.id,
        date=payload.date or datetime.now(timezone.utc),
        notes=payload.notes,
        completed=payload.completed,
        duration_seconds=payload.duration_seconds,
        sets=[
            WorkoutSet(
                exercise_name=s.exercise_name,
                set_number=s.set_number,
                position=i,
                reps=s.reps,
                weight=s.weight,
                completed=s.completed,
            )
            for i, s in enumerate(payload.sets)
        ],
    )
    db.add(workout)
    await db.flush()
    logger.info("User %s logged workout %s (%d sets) for program %s", user.id, workout.id, len(workout.sets), program.id)
    return _to_read(workout, program.name)


@router.get("/previous", response_model=WorkoutRead)
async def get_previous_workout(
    program_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Most recent completed workout for a program ("last time you did this")."""
    result = await db.execute(
        _owned_workouts(user)
        .where(Workout.program_id == program_id, Workout.completed.is_(True))
        .order_by(Workout.date.desc())
        .limit(1)
    )
    row = result.first()
    if row is None:
        raise HTTPException(status_code=404, detail="No previous workout for this program")
    workout, name = row
    return _to_read(workout, name)


@router.get("/{workout_id}", response_model=WorkoutRead)
async def get_workout(
    workout_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = await db.execute(_owned_workouts(user).where(Workout.id == workout_id))
    row = result.first()
    if row is None:
        raise HTTPException(status_code=404, detail="Workout not found")
    workout, name = row
    return _to_read(workout, name)
