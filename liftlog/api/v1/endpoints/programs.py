"""Program CRUD and sharing.

Every route is scoped to the authenticated owner. A program that exists but
belongs to someone else is reported exactly like a missing one (404).
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from liftlog.api.deps import get_current_user
from liftlog.db.session import get_db
from liftlog.models.program import Exercise, Program
from liftlog.models.user import User
from liftlog.schemas.program import (
    ExerciseCreate,
    ProgramCreate,
    ProgramRead,
    ProgramShare,
    ProgramShareResult,
    ProgramUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _build_exercises(exercises: list[ExerciseCreate]) -> list[Exercise]:
    return [
        Exercise(name=ex.name, sets=ex.sets, reps=ex.reps, order_index=i)
        for i, ex in enumerate(exercises)
    ]


async def get_owned_program(db: AsyncSession, program_id: uuid.UUID, user: User) -> Program:
    """Load a program with its exercises, or 404 if missing or not owned by ``user``."""
    result = await db.execute(
        select(Program)
        .options(selectinload(Program.exercises))
        .where(Program.id == program_id, Program.user_id == user.id)
    )
    program = result.scalar_one_or_none()
    if program is None:
        raise HTTPException(status_code=404, detail="Program not found")
    return program


@router.get("", response_model=list[ProgramRead])
async def list_programs(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """List the user's programs, newest first, exercises in order."""
    result = await db.execute(
        select(Program)
        .options(selectinload(Program.exercises))
        .where(Program.user_id == user.id)
        .order_by(Program.created_at.desc())
    )
    return list(result.scalars().all())


@router.post("", response_model=ProgramRead, status_code=201)
async def create_program(
    payload: ProgramCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Create a program together with its exercises."""
    program = Program(
        user_id=user.id,
        name=payload.name,
        description=payload.description,
        shared_by_id=None,
        shared_by_name=None,
        exercises=_build_exercises(payload.exercises),
    )
    db.add(program)
    await db.flush()
    logger.info("User %s created program %s", user.id, program.id)
    return program


@router.get("/{program_id}", response_model=ProgramRead)
async def get_program(
    program_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await get_owned_program(db, program_id, user)


@router.put("/{program_id}", response_model=ProgramRead)
async def update_program(
    program_id: uuid.UUID,
    payload: ProgramUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Replace name, description and the whole exercise list.

    Old exercises are deleted before the new ones are inserted so order_index
    stays unique per program throughout the transaction.
    """
    program = await get_owned_program(db, program_id, user)
    program.name = payload.name
    program.description = payload.description
    program.exercises.clear()
    await db.flush()
    program.exercises.extend(_build_exercises(payload.exercises))
    await db.flush()
    return program


@router.delete("/{program_id}", status_code=204)
async def delete_program(
    program_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Delete a program; exercises and logged workouts go with it."""
    program = await get_owned_program(db, program_id, user)
    await db.delete(program)
    logger.info("User %s deleted program %s", user.id, program_id)
    return None


@router.post("/{program_id}/share", response_model=ProgramShareResult)
async def share_program(
    program_id: uuid.UUID,
    payload: ProgramShare,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Copy the program to another user by email, recording who shared it."""
    program = await get_owned_program(db, program_id, user)

    email = payload.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    recipient = result.scalar_one_or_none()
    if recipient is None:
        raise HTTPException(status_code=404, detail="User with this email not found")
    if recipient.id == user.id:
        raise HTTPException(status_code=400, detail="You cannot share a program with yourself")

    copy = Program(
        user_id=recipient.id,
        name=program.name,
        description=program.description,
        shared_by_id=user.id,
        shared_by_name=user.display_name,
        exercises=[
            Exercise(name=ex.name, sets=ex.sets, reps=ex.reps, order_index=ex.order_index)
            for ex in program.exercises
        ],
    )
    db.add(copy)
    await db.flush()
    logger.info("User %s shared program %s with %s as %s", user.id, program.id, recipient.id, copy.id)
    return ProgramShareResult(
        message=f"Program shared with {email}",
        shared_program=ProgramRead.model_validate(copy),
    )
