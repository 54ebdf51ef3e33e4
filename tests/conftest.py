"""Pytest fixtures for scheduling engine tests."""

from __future__ import annotations

from datetime import date
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from roster_engine.config import Settings
from roster_engine.coverage.cache import CoverageValidationCache
from roster_engine.engine import SchedulingEngine
from roster_engine.models import Base, Employee, TeamAssignment, TeamHistory

# Use in-memory SQLite for tests (with async support)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Calendar anchors (weeks start on Saturday)
WEEK_START = date(2026, 1, 31)  # Saturday
SUNDAY = date(2026, 2, 1)
MONDAY = date(2026, 2, 2)
TUESDAY = date(2026, 2, 3)
FRIDAY = date(2026, 2, 6)
NEXT_WEEK_START = date(2026, 2, 7)
TEAM_START = date(2026, 1, 1)

BOUTIQUE = "S01"
OTHER_BOUTIQUE = "S02"


@pytest.fixture
async def engine():
    """Fresh in-memory schema per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the environment."""
    return Settings()


@pytest.fixture
def today():
    """Frozen 'today' for effective-date checks."""
    return lambda: MONDAY


@pytest.fixture
def cache() -> CoverageValidationCache:
    return CoverageValidationCache(ttl_seconds=None)


async def add_employee(
    session: AsyncSession,
    emp_id: str,
    name: str,
    team: str | None,
    boutique_id: str = BOUTIQUE,
    weekly_off_day: int = 6,
    effective_from: date = TEAM_START,
) -> Employee:
    """Create an employee with an optional initial team."""
    employee = Employee(
        emp_id=emp_id,
        name=name,
        weekly_off_day=weekly_off_day,
        boutique_id=boutique_id,
        active=True,
    )
    session.add(employee)
    if team is not None:
        session.add(
            TeamAssignment(
                emp_id=emp_id,
                team=team,
                effective_from=effective_from,
                reason="Initial team",
                created_by="seed",
            )
        )
        session.add(
            TeamHistory(
                emp_id=emp_id,
                team=team,
                effective_from=effective_from,
                reason="Initial team",
                changed_by="seed",
            )
        )
    await session.flush()
    return employee


@pytest.fixture
async def test_employees(session: AsyncSession) -> dict[str, Employee]:
    """Five employees at S01 (two on team A, three on team B) and one at S02.

    Everyone is off on Saturday except Eve, who is off on Sunday.
    On Monday S01 resolves to AM=2 (Alice, Bob), PM=3 (Carol, Dan, Eve).
    """
    employees = {
        "E001": await add_employee(session, "E001", "Alice", "A"),
        "E002": await add_employee(session, "E002", "Bob", "A"),
        "E003": await add_employee(session, "E003", "Carol", "B"),
        "E004": await add_employee(session, "E004", "Dan", "B"),
        "E005": await add_employee(session, "E005", "Eve", "B", weekly_off_day=0),
        "E101": await add_employee(session, "E101", "Frank", "A", boutique_id=OTHER_BOUTIQUE),
    }
    return employees


@pytest.fixture
def scheduling_engine(
    session: AsyncSession,
    settings: Settings,
    cache: CoverageValidationCache,
    today,
) -> SchedulingEngine:
    """Engine bound to the test session with a frozen clock."""
    return SchedulingEngine(session, settings=settings, cache=cache, today=today)
