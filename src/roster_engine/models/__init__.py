"""ORM models for the scheduling engine."""

from roster_engine.models.audit import AuditEvent
from roster_engine.models.base import Base, TimestampMixin
from roster_engine.models.employee import Employee, TeamAssignment, TeamHistory
from roster_engine.models.schedule import (
    CoverageRule,
    Leave,
    ScheduleLock,
    ScheduleWeekStatus,
    ShiftOverride,
)

__all__ = [
    "AuditEvent",
    "Base",
    "CoverageRule",
    "Employee",
    "Leave",
    "ScheduleLock",
    "ScheduleWeekStatus",
    "ShiftOverride",
    "TeamAssignment",
    "TeamHistory",
    "TimestampMixin",
]
