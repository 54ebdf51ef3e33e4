"""Roster resolution: effective shift of every employee for a date."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roster_engine.config import Settings, get_settings
from roster_engine.coverage.dates import date_range, day_of_week
from roster_engine.coverage.team_policy import TeamShiftPolicy, get_team_shift_policy
from roster_engine.coverage.timeline import EmployeeTeamTimeline, TeamTimeline
from roster_engine.coverage.types import (
    RosterBucket,
    RosterEntry,
    RosterResult,
    ShiftSource,
    ShiftType,
    bucket_for_shift,
)
from roster_engine.models import Employee, Leave, ShiftOverride, TeamAssignment, TeamHistory

logger = logging.getLogger(__name__)

LocationScope = Sequence[str] | None


def resolve_entry(
    employee: Employee,
    on_date: date,
    *,
    on_leave: bool,
    override: ShiftOverride | None,
    teams: EmployeeTeamTimeline,
    policy: TeamShiftPolicy,
) -> RosterEntry:
    """Resolve one employee for one date.

    Precedence (first match wins):
    1. Approved leave covering the date -> on_leave
    2. Active override -> NONE off, AM shifts morning, PM shifts evening
    3. Weekly off day -> off
    4. Team in effect on the date, mapped by the team shift policy
    An employee with no team on the date is off (source NO_TEAM).
    """
    base = {
        "emp_id": employee.emp_id,
        "name": employee.name,
        "boutique_id": employee.boutique_id,
    }

    if on_leave:
        return RosterEntry(
            **base,
            bucket=RosterBucket.ON_LEAVE,
            shift=ShiftType.NONE,
            source=ShiftSource.LEAVE,
        )

    team = teams.team_as_of(on_date)

    if override is not None:
        shift = ShiftType(override.override_shift)
        return RosterEntry(
            **base,
            bucket=bucket_for_shift(shift),
            shift=shift,
            source=ShiftSource.OVERRIDE,
            team=team,
            override_id=override.shift_override_id,
            cover_boutique_id=override.cover_boutique_id if shift.is_cover else None,
        )

    if day_of_week(on_date) == employee.weekly_off_day:
        return RosterEntry(
            **base,
            bucket=RosterBucket.OFF,
            shift=ShiftType.NONE,
            source=ShiftSource.WEEKLY_OFF,
            team=team,
        )

    if team is None:
        return RosterEntry(
            **base,
            bucket=RosterBucket.OFF,
            shift=ShiftType.NONE,
            source=ShiftSource.NO_TEAM,
        )

    shift = policy(team, on_date)
    return RosterEntry(
        **base,
        bucket=bucket_for_shift(shift),
        shift=shift,
        source=ShiftSource.TEAM,
        team=team,
    )


async def load_team_timelines(
    session: AsyncSession,
    emp_ids: Sequence[str],
    as_of_date: date | None = None,
) -> dict[str, EmployeeTeamTimeline]:
    """Load assignment and history timelines for employees.

    With as_of_date, rows effective after it are skipped (enough for lookups
    on that date). Without it, the full timelines are loaded.
    """
    if not emp_ids:
        return {}

    assignment_query = select(TeamAssignment).where(TeamAssignment.emp_id.in_(emp_ids))
    history_query = select(TeamHistory).where(TeamHistory.emp_id.in_(emp_ids))
    if as_of_date is not None:
        assignment_query = assignment_query.where(TeamAssignment.effective_from <= as_of_date)
        history_query = history_query.where(TeamHistory.effective_from <= as_of_date)

    assignments = await session.execute(
        assignment_query.order_by(TeamAssignment.effective_from, TeamAssignment.created_at)
    )
    history = await session.execute(
        history_query.order_by(TeamHistory.effective_from, TeamHistory.created_at)
    )

    assignment_rows: dict[str, list[TeamAssignment]] = defaultdict(list)
    for row in assignments.scalars():
        assignment_rows[row.emp_id].append(row)
    history_rows: dict[str, list[TeamHistory]] = defaultdict(list)
    for row in history.scalars():
        history_rows[row.emp_id].append(row)

    return {
        emp_id: EmployeeTeamTimeline(
            emp_id=emp_id,
            assignments=TeamTimeline.from_rows(assignment_rows.get(emp_id, [])),
            history=TeamTimeline.from_rows(history_rows.get(emp_id, [])),
        )
        for emp_id in emp_ids
    }


class RosterResolver:
    """Resolves the roster for a date and location scope.

    Pure read: no writes, no caching of timelines. Safe to run on separate
    sessions for different dates in parallel.
    """

    def __init__(
        self,
        session: AsyncSession,
        team_policy: TeamShiftPolicy | None = None,
        settings: Settings | None = None,
    ):
        self.session = session
        settings = settings or get_settings()
        self.team_policy = team_policy or get_team_shift_policy(
            settings.team_shift_policy,
            friday_pm_only=settings.friday_pm_only,
        )

    async def resolve(
        self,
        on_date: date,
        location_scope: LocationScope = None,
    ) -> RosterResult:
        """Resolve every active employee in scope into exactly one bucket."""
        employees = await self._get_employees(location_scope)
        return await self._resolve_for(employees, on_date)

    async def resolve_range(
        self,
        start: date,
        end: date,
        location_scope: LocationScope = None,
    ) -> dict[date, RosterResult]:
        """Resolve one roster per date in [start, end]."""
        if end < start:
            raise ValueError(f"Range end {end} is before start {start}")
        employees = await self._get_employees(location_scope)
        return {d: await self._resolve_for(employees, d) for d in date_range(start, end)}

    async def effective_shift(self, emp_id: str, on_date: date) -> RosterEntry | None:
        """Resolve a single employee, or None if the employee does not exist."""
        employee = await self.session.get(Employee, emp_id)
        if employee is None:
            return None
        roster = await self._resolve_for([employee], on_date)
        return roster.find(emp_id)

    async def _resolve_for(self, employees: Sequence[Employee], on_date: date) -> RosterResult:
        result = RosterResult(date=on_date)
        if not employees:
            return result

        emp_ids = [e.emp_id for e in employees]
        leave_ids = await self._get_employees_on_leave(emp_ids, on_date)
        overrides = await self._get_active_overrides(emp_ids, on_date)
        timelines = await load_team_timelines(self.session, emp_ids, as_of_date=on_date)

        for employee in employees:
            entry = resolve_entry(
                employee,
                on_date,
                on_leave=employee.emp_id in leave_ids,
                override=overrides.get(employee.emp_id),
                teams=timelines.get(employee.emp_id) or EmployeeTeamTimeline.empty(employee.emp_id),
                policy=self.team_policy,
            )
            result.add(entry)
            if entry.source == ShiftSource.NO_TEAM:
                message = (
                    f"{employee.name} ({employee.emp_id}) has no team as of "
                    f"{on_date.isoformat()}; treated as off"
                )
                result.warnings.append(message)
                logger.warning(message)

        return result

    async def _get_employees(self, location_scope: LocationScope) -> list[Employee]:
        """Active employees in scope, in stable emp_id order."""
        query = select(Employee).where(Employee.active.is_(True))
        if location_scope is not None:
            query = query.where(Employee.boutique_id.in_(list(location_scope)))
        result = await self.session.execute(query.order_by(Employee.emp_id))
        return list(result.scalars().all())

    async def _get_employees_on_leave(self, emp_ids: Sequence[str], on_date: date) -> set[str]:
        result = await self.session.execute(
            select(Leave.emp_id).where(
                Leave.emp_id.in_(emp_ids),
                Leave.status == "APPROVED",
                Leave.start_date <= on_date,
                Leave.end_date >= on_date,
            )
        )
        return set(result.scalars().all())

    async def _get_active_overrides(
        self,
        emp_ids: Sequence[str],
        on_date: date,
    ) -> dict[str, ShiftOverride]:
        result = await self.session.execute(
            select(ShiftOverride).where(
                ShiftOverride.emp_id.in_(emp_ids),
                ShiftOverride.override_date == on_date,
                ShiftOverride.is_active.is_(True),
            )
        )
        return {o.emp_id: o for o in result.scalars().all()}
