"""Effective-dated team reassignment."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roster_engine.coverage.cache import CoverageValidationCache
from roster_engine.coverage.dates import week_start_for
from roster_engine.coverage.resolver import load_team_timelines
from roster_engine.coverage.timeline import EmployeeTeamTimeline
from roster_engine.coverage.types import Team
from roster_engine.database import acquire_advisory_lock
from roster_engine.models import Employee, TeamAssignment, TeamHistory
from roster_engine.schemas import TeamChangePreview, TeamChangeResult, TeamCounts
from roster_engine.services.audit import AuditContext, AuditSink, DatabaseAuditSink
from roster_engine.services.lock_service import ScheduleLockService

logger = logging.getLogger(__name__)

# Preview flags an imbalance above this A/B headcount difference
MAX_TEAM_DIFFERENCE = 2


class TeamChangeError(Exception):
    """Raised when a team change fails validation."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


def parse_team(value: str) -> Team:
    """Case-insensitive team parse."""
    try:
        return Team((value or "").strip().upper())
    except ValueError:
        raise TeamChangeError("INVALID_TEAM", "newTeam must be A or B") from None


class TeamReassignmentService:
    """Appends effective-dated team rows.

    Validation order:
    1. team is A or B
    2. reason given
    3. effective_from is today or later
    4. employee exists
    5. week of effective_from not locked, then the day itself not locked
    6. team as of today differs from the new team
    7. effective_from is strictly after every existing assignment/history row
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: CoverageValidationCache,
        audit: AuditSink | None = None,
        locks: ScheduleLockService | None = None,
        today: Callable[[], date] | None = None,
    ):
        self.session = session
        self.cache = cache
        self.audit = audit or DatabaseAuditSink(session)
        self.locks = locks or ScheduleLockService(session, audit=self.audit)
        self._today = today or date.today

    async def change_team(
        self,
        emp_id: str,
        new_team: str,
        effective_from: date,
        reason: str,
        actor: str,
    ) -> TeamChangeResult:
        team = parse_team(new_team)
        if not reason or not reason.strip():
            raise TeamChangeError("REASON_REQUIRED", "reason is required")

        today = self._today()
        if effective_from < today:
            raise TeamChangeError(
                "EFFECTIVE_DATE_IN_PAST",
                "effectiveFrom must be today or a future date",
            )

        employee = await self.session.get(Employee, emp_id)
        if employee is None:
            raise TeamChangeError("EMPLOYEE_NOT_FOUND", "Employee not found")

        await acquire_advisory_lock(self.session, f"team:{emp_id}")
        await self.locks.assert_schedule_editable(employee.boutique_id, dates=[effective_from])

        timeline = await self._get_timeline(emp_id)
        current = timeline.team_as_of(today)
        if current == team:
            raise TeamChangeError("NO_CHANGE", f"No change: team is already {team.value}")
        if not timeline.accepts(effective_from):
            raise TeamChangeError(
                "NOT_AFTER_LAST_CHANGE",
                "effectiveFrom must be after the last team change date "
                f"({timeline.latest_effective_from.isoformat()})",
            )

        reason = reason.strip()
        self.session.add(
            TeamAssignment(
                emp_id=emp_id,
                team=team.value,
                effective_from=effective_from,
                reason=reason,
                created_by=actor,
            )
        )
        self.session.add(
            TeamHistory(
                emp_id=emp_id,
                team=team.value,
                effective_from=effective_from,
                reason=reason,
                changed_by=actor,
            )
        )
        await self.session.flush()
        self.cache.invalidate()

        previous = current.value if current is not None else None
        await self.audit.write(
            actor,
            "TEAM_CHANGE_CREATED",
            "Employee",
            emp_id,
            {"team": previous},
            {"team": team.value, "effective_from": effective_from},
            reason=reason,
            context=AuditContext(
                module="TEAM",
                boutique_id=employee.boutique_id,
                target_emp_id=emp_id,
                target_date=effective_from,
                week_start=week_start_for(effective_from),
            ),
        )
        logger.info(
            "Team change for %s: %s -> %s from %s by %s",
            emp_id,
            previous,
            team.value,
            effective_from,
            actor,
        )
        return TeamChangeResult(
            emp_id=emp_id,
            previous_team=previous,
            new_team=team.value,
            effective_from=effective_from,
        )

    async def preview_team_change(
        self,
        emp_id: str,
        new_team: str,
        effective_from: date,
    ) -> TeamChangePreview:
        """Team A/B headcounts at the employee's location before and after the change."""
        team = parse_team(new_team)
        employee = await self.session.get(Employee, emp_id)
        if employee is None:
            raise TeamChangeError("EMPLOYEE_NOT_FOUND", "Employee not found")

        result = await self.session.execute(
            select(Employee.emp_id).where(
                Employee.boutique_id == employee.boutique_id,
                Employee.active.is_(True),
            )
        )
        colleagues = list(result.scalars().all())
        timelines = await load_team_timelines(self.session, colleagues, as_of_date=effective_from)

        counts = {Team.A: 0, Team.B: 0}
        for colleague in colleagues:
            colleague_team = timelines[colleague].team_as_of(effective_from)
            if colleague_team is not None:
                counts[colleague_team] += 1
        before = TeamCounts(team_a=counts[Team.A], team_b=counts[Team.B])

        current = timelines[emp_id].team_as_of(effective_from) if emp_id in timelines else None
        if current != team:
            if current is not None:
                counts[current] -= 1
            counts[team] += 1
        after = TeamCounts(team_a=counts[Team.A], team_b=counts[Team.B])

        return TeamChangePreview(
            emp_id=emp_id,
            boutique_id=employee.boutique_id,
            effective_from=effective_from,
            week_start=week_start_for(effective_from),
            current_team=current.value if current is not None else None,
            new_team=team.value,
            before=before,
            after=after,
            imbalance=after.difference > MAX_TEAM_DIFFERENCE,
        )

    async def _get_timeline(self, emp_id: str) -> EmployeeTeamTimeline:
        timelines = await load_team_timelines(self.session, [emp_id])
        return timelines.get(emp_id) or EmployeeTeamTimeline.empty(emp_id)
