"""Session drafts: the unsaved, resumable state of a workout in progress.

One draft and one start record are kept per program id. A draft is abandoned
once it has not been touched for ``DRAFT_TTL``; expiry is checked both when a
session is opened and when all drafts are listed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, Field, ValidationError

from liftlog.core.constants import DRAFT_KEY_PREFIX, DRAFT_TTL, START_KEY_PREFIX
from liftlog.schemas.workout import WorkoutSetCreate
from liftlog.session.storage import KeyValueStorage

logger = logging.getLogger(__name__)


class SessionDraft(BaseModel):
    program_id: str
    sets: list[WorkoutSetCreate] = []
    notes: str = ""
    saved_at: datetime


class SessionStart(BaseModel):
    program_id: str
    started_at: datetime


def is_expired(saved_at: datetime, now: datetime, ttl: timedelta = DRAFT_TTL) -> bool:
    """True once ``ttl`` or more has passed since ``saved_at``."""
    if saved_at.tzinfo is None:
        saved_at = saved_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - saved_at >= ttl


def draft_key(program_id: str) -> str:
    return f"{DRAFT_KEY_PREFIX}{program_id}"


def start_key(program_id: str) -> str:
    return f"{START_KEY_PREFIX}{program_id}"


class DraftRepository:
    """Keyed draft store on top of a ``KeyValueStorage``.

    Unreadable entries are logged and treated as absent, never raised.
    """

    def __init__(self, storage: KeyValueStorage, ttl: timedelta = DRAFT_TTL):
        self.storage = storage
        self.ttl = ttl

    def _load(self, key: str, model: type[BaseModel]):
        raw = self.storage.get_item(key)
        if raw is None:
            return None
        try:
            return model.model_validate_json(raw)
        except ValidationError as e:
            logger.error("Error reading saved session %s: %s", key, e)
            return None

    def load_draft(self, program_id: str) -> SessionDraft | None:
        return self._load(draft_key(program_id), SessionDraft)

    def save_draft(self, draft: SessionDraft) -> None:
        self.storage.set_item(draft_key(draft.program_id), draft.model_dump_json())

    def delete_draft(self, program_id: str) -> None:
        self.storage.remove_item(draft_key(program_id))

    def load_start(self, program_id: str) -> SessionStart | None:
        return self._load(start_key(program_id), SessionStart)

    def save_start(self, start: SessionStart) -> None:
        self.storage.set_item(start_key(start.program_id), start.model_dump_json())

    def delete_start(self, program_id: str) -> None:
        self.storage.remove_item(start_key(program_id))

    def clear(self, program_id: str) -> None:
        """Forget everything stored for a program's session."""
        self.delete_draft(program_id)
        self.delete_start(program_id)

    def load_live_draft(self, program_id: str, now: datetime) -> SessionDraft | None:
        """Draft for ``program_id`` if still fresh; an expired one is deleted on the way."""
        draft = self.load_draft(program_id)
        if draft is None:
            return None
        if is_expired(draft.saved_at, now, self.ttl):
            logger.info("Discarding expired draft for program %s (saved %s)", program_id, draft.saved_at)
            self.clear(program_id)
            return None
        return draft

    def resumable_program_ids(self, now: datetime) -> set[str]:
        """Program ids with an unfinished, unexpired draft. Prunes stale entries."""
        live: set[str] = set()
        for key in self.storage.keys():
            if key.startswith(DRAFT_KEY_PREFIX):
                program_id = key[len(DRAFT_KEY_PREFIX):]
                draft = self.load_draft(program_id)
                if draft is None:
                    continue
                if is_expired(draft.saved_at, now, self.ttl):
                    logger.info("Cleaning up expired draft for program %s", program_id)
                    self.clear(program_id)
                else:
                    live.add(program_id)
            elif key.startswith(START_KEY_PREFIX):
                program_id = key[len(START_KEY_PREFIX):]
                start = self.load_start(program_id)
                if start is not None and is_expired(start.started_at, now, self.ttl) and self.load_draft(program_id) is None:
                    self.delete_start(program_id)
        return live
