"""Tests for leave approval and its effect on the roster."""

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import select

from roster_engine.coverage.resolver import RosterResolver
from roster_engine.coverage.types import RosterBucket
from roster_engine.models import AuditEvent, Leave
from roster_engine.services.leave_service import LeaveError, LeaveService

from tests.conftest import BOUTIQUE, MONDAY, TUESDAY

pytestmark = pytest.mark.asyncio


async def _add_leave(session, emp_id="E003", status="PENDING", start=MONDAY, end=TUESDAY) -> Leave:
    leave = Leave(
        emp_id=emp_id,
        leave_type="ANNUAL",
        status=status,
        start_date=start,
        end_date=end,
    )
    session.add(leave)
    await session.flush()
    return leave


class TestApproveLeave:
    async def test_approved_leave_moves_employee_off_roster(
        self, session, settings, cache, test_employees
    ):
        leave = await _add_leave(session)
        resolver = RosterResolver(session, settings=settings)
        assert (await resolver.resolve(MONDAY, [BOUTIQUE])).find("E003").bucket == RosterBucket.EVENING

        result = await LeaveService(session, cache).approve_leave(leave.leave_id, "manager")

        assert result.status == "APPROVED"
        for day in (MONDAY, TUESDAY):
            roster = await resolver.resolve(day, [BOUTIQUE])
            assert roster.find("E003").bucket == RosterBucket.ON_LEAVE

    async def test_invalidates_every_day_in_range(self, session, cache, test_employees):
        leave = await _add_leave(session, start=MONDAY, end=date(2026, 2, 5))

        await LeaveService(session, cache).approve_leave(leave.leave_id, "manager")

        assert cache.invalidations == 4

    async def test_audit_record(self, session, cache, test_employees):
        leave = await _add_leave(session)

        await LeaveService(session, cache).approve_leave(leave.leave_id, "manager")

        event = (await session.execute(select(AuditEvent))).scalar_one()
        assert event.action == "LEAVE_APPROVED"
        assert event.module == "LEAVE"
        assert event.boutique_id == BOUTIQUE
        assert event.target_emp_id == "E003"
        assert event.before_json == {"status": "PENDING"}
        assert event.after_json == {"status": "APPROVED"}

    async def test_only_pending_can_be_approved(self, session, cache, test_employees):
        leave = await _add_leave(session, status="REJECTED")

        with pytest.raises(LeaveError) as exc_info:
            await LeaveService(session, cache).approve_leave(leave.leave_id, "manager")

        assert exc_info.value.code == "INVALID_STATUS"
        assert cache.invalidations == 0

    async def test_unknown_leave(self, session, cache, test_employees):
        with pytest.raises(LeaveError) as exc_info:
            await LeaveService(session, cache).approve_leave(uuid4(), "manager")

        assert exc_info.value.code == "LEAVE_NOT_FOUND"


class TestRejectLeave:
    async def test_rejected_leave_leaves_roster_unchanged(
        self, session, settings, cache, test_employees
    ):
        leave = await _add_leave(session)

        result = await LeaveService(session, cache).reject_leave(
            leave.leave_id, "manager", reason="Busy week"
        )

        assert result.status == "REJECTED"
        roster = await RosterResolver(session, settings=settings).resolve(MONDAY, [BOUTIQUE])
        assert roster.find("E003").bucket == RosterBucket.EVENING
        event = (await session.execute(select(AuditEvent))).scalar_one()
        assert event.action == "LEAVE_REJECTED"
        assert event.reason == "Busy week"

    async def test_approved_leave_cannot_be_rejected(self, session, cache, test_employees):
        leave = await _add_leave(session)
        service = LeaveService(session, cache)
        await service.approve_leave(leave.leave_id, "manager")

        with pytest.raises(LeaveError) as exc_info:
            await service.reject_leave(leave.leave_id, "manager")

        assert exc_info.value.code == "INVALID_STATUS"
