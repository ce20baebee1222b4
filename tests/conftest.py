"""Shared fixtures: in-memory SQLite database and an in-process API client."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from liftlog.db.base import Base
from liftlog.db.session import get_db
from liftlog.main import app
from liftlog.models import *  # noqa: F401, F403 - register all models
from liftlog.schemas.program import ExerciseRead, ProgramRead

PASSWORD = "secret123"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def client(engine):
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Register + log in a user; returns bearer headers. Cookies are cleared so tests stay explicit."""

    async def _signup(email: str = "alice@liftlog.io", name: str | None = "Alice") -> dict[str, str]:
        resp = await client.post("/api/v1/auth/register", json={"email": email, "password": PASSWORD, "name": name})
        assert resp.status_code == 201, resp.text
        resp = await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 200, resp.text
        client.cookies.clear()
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    return _signup


def program_payload(name: str = "Push Day", exercises=None) -> dict:
    if exercises is None:
        exercises = [("Bench Press", 3, 10), ("Overhead Press", 2, 8)]
    return {
        "name": name,
        "description": "Chest and shoulders",
        "exercises": [{"name": n, "sets": s, "reps": r} for n, s, r in exercises],
    }


@pytest.fixture
def create_program(client):
    async def _create(headers: dict[str, str], **kwargs) -> dict:
        resp = await client.post("/api/v1/programs", json=program_payload(**kwargs), headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


class FakeClock:
    """Settable clock for time-dependent session logic."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def program() -> ProgramRead:
    """Program with exercises A (3x10) and B (2x8)."""
    return ProgramRead(
        id=uuid4(),
        user_id=uuid4(),
        name="Full Body",
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        exercises=[
            ExerciseRead(id=uuid4(), name="A", sets=3, reps=10, order_index=0),
            ExerciseRead(id=uuid4(), name="B", sets=2, reps=8, order_index=1),
        ],
    )


@pytest.fixture
def make_program_payload():
    return program_payload
