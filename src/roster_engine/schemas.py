"""Pydantic schemas for values handed to surrounding modules."""

from datetime import date, datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (SQLite round-trips) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ============================================================================
# Lock & approval schemas
# ============================================================================


class LockInfo(BaseModel):
    """Active lock details surfaced to the operator (reason, owner, timestamp)."""

    model_config = ConfigDict(from_attributes=True)

    schedule_lock_id: UUID
    scope_type: str
    scope_value: str
    boutique_id: str
    locked_by: str
    locked_at: datetime
    reason: str | None = None
    is_active: bool = True

    @field_validator("locked_at")
    @classmethod
    def locked_at_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class WeekStatusInfo(BaseModel):
    """Approval status of a week for one location."""

    model_config = ConfigDict(from_attributes=True)

    week_start: date
    boutique_id: str
    status: str
    approved_by: str | None = None
    approved_at: datetime | None = None

    @field_validator("approved_at")
    @classmethod
    def approved_at_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value) if value is not None else None


class WeekLockDetails(BaseModel):
    """Week lock plus the individually locked days of that week."""

    week_start: date
    boutique_id: str
    week_lock: LockInfo | None = None
    locked_days: list[date] = Field(default_factory=list)


# ============================================================================
# Team reassignment schemas
# ============================================================================


class TeamChangeResult(BaseModel):
    """Outcome of a committed team change."""

    emp_id: str
    previous_team: str | None
    new_team: str
    effective_from: date


class TeamCounts(BaseModel):
    """Team headcounts for a location."""

    team_a: int = 0
    team_b: int = 0

    @property
    def difference(self) -> int:
        return abs(self.team_a - self.team_b)


class TeamChangePreview(BaseModel):
    """Headcount impact of a proposed team change. Nothing is written."""

    emp_id: str
    boutique_id: str
    effective_from: date
    week_start: date
    current_team: str | None
    new_team: str
    before: TeamCounts
    after: TeamCounts
    imbalance: bool


# ============================================================================
# Override schemas
# ============================================================================


class OverrideResult(BaseModel):
    """Stored state of a shift override after a write."""

    model_config = ConfigDict(from_attributes=True)

    shift_override_id: UUID
    emp_id: str
    override_date: date
    override_shift: str
    cover_boutique_id: str | None = None
    reason: str | None = None
    is_active: bool
    created: bool = False
