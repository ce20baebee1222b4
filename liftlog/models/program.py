"""Program (workout template) and its ordered exercises."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from liftlog.db.base import Base


class Program(Base):
    """Named, ordered list of exercises with target sets/reps.

    ``shared_by_id``/``shared_by_name`` are set on copies received through sharing.
    """

    __tablename__ = "programs"
    __table_args__ = (Index("ix_programs_user_id_created_at", "user_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Provenance; not a foreign key so a copy outlives the sharer's account
    shared_by_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    shared_by_name: Mapped[str | None] = mapped_column(String(320), nullable=True)

    owner: Mapped["User"] = relationship("User", back_populates="programs", foreign_keys=[user_id])
    exercises: Mapped[list["Exercise"]] = relationship(
        "Exercise",
        back_populates="program",
        cascade="all, delete-orphan",
        order_by="Exercise.order_index",
    )
    workouts: Mapped[list["Workout"]] = relationship(
        "Workout",
        back_populates="program",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Exercise(Base):
    """Exercise slot in a program; ``order_index`` is dense and zero-based."""

    __tablename__ = "exercises"
    __table_args__ = (UniqueConstraint("program_id", "order_index", name="uq_exercises_program_order"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    program_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sets: Mapped[int] = mapped_column(Integer, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    program: Mapped["Program"] = relationship("Program", back_populates="exercises")
