"""Scheduling services."""

from roster_engine.services.audit import AuditContext, AuditSink, DatabaseAuditSink
from roster_engine.services.leave_service import LeaveError, LeaveService, LeaveStatus
from roster_engine.services.lock_service import ScheduleLockedError, ScheduleLockService
from roster_engine.services.override_service import OverrideError, ShiftOverrideService
from roster_engine.services.state_machine import (
    InvalidTransitionError,
    LockScope,
    WeekStateMachine,
    WeekStatus,
)
from roster_engine.services.team_service import TeamChangeError, TeamReassignmentService

__all__ = [
    "AuditContext",
    "AuditSink",
    "DatabaseAuditSink",
    "InvalidTransitionError",
    "LeaveError",
    "LeaveService",
    "LeaveStatus",
    "LockScope",
    "OverrideError",
    "ScheduleLockService",
    "ScheduleLockedError",
    "ShiftOverrideService",
    "TeamChangeError",
    "TeamReassignmentService",
    "WeekStateMachine",
    "WeekStatus",
]
