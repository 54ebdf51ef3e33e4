"""Leave status changes that affect the roster."""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from roster_engine.coverage.cache import CoverageValidationCache
from roster_engine.coverage.dates import date_range
from roster_engine.models import Employee, Leave
from roster_engine.services.audit import AuditContext, AuditSink, DatabaseAuditSink

logger = logging.getLogger(__name__)


class LeaveStatus(str, Enum):
    """Leave status values."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class LeaveError(Exception):
    """Raised when a leave status change is not allowed."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class LeaveService:
    """Approves or rejects PENDING leave. Who may decide is checked upstream."""

    def __init__(
        self,
        session: AsyncSession,
        cache: CoverageValidationCache,
        audit: AuditSink | None = None,
    ):
        self.session = session
        self.cache = cache
        self.audit = audit or DatabaseAuditSink(session)

    async def approve_leave(self, leave_id: UUID, actor: str) -> Leave:
        return await self._decide(leave_id, LeaveStatus.APPROVED, actor, None)

    async def reject_leave(self, leave_id: UUID, actor: str, reason: str | None = None) -> Leave:
        return await self._decide(leave_id, LeaveStatus.REJECTED, actor, reason)

    async def _decide(
        self,
        leave_id: UUID,
        to_status: LeaveStatus,
        actor: str,
        reason: str | None,
    ) -> Leave:
        leave = await self.session.get(Leave, leave_id)
        if leave is None:
            raise LeaveError("LEAVE_NOT_FOUND", f"Leave {leave_id} not found")
        if leave.status != LeaveStatus.PENDING:
            raise LeaveError(
                "INVALID_STATUS",
                f"Leave is {leave.status}; only PENDING leave can be {to_status.value.lower()}",
            )

        before = {"status": leave.status}
        leave.status = to_status.value
        await self.session.flush()
        self._invalidate(leave.start_date, leave.end_date)

        employee = await self.session.get(Employee, leave.emp_id)
        await self.audit.write(
            actor,
            f"LEAVE_{to_status.value}",
            "Leave",
            str(leave.leave_id),
            before,
            {"status": leave.status},
            reason=reason,
            context=AuditContext(
                module="LEAVE",
                boutique_id=employee.boutique_id if employee is not None else None,
                target_emp_id=leave.emp_id,
                target_date=leave.start_date,
            ),
        )
        logger.info("Leave %s %s by %s", leave_id, to_status.value.lower(), actor)
        return leave

    def _invalidate(self, start: date, end: date) -> None:
        for d in date_range(start, end):
            self.cache.invalidate(d)
