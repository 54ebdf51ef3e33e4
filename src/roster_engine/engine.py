"""Scheduling engine - entry point for surrounding modules."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import date
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from roster_engine.config import Settings, get_settings
from roster_engine.coverage.cache import CoverageValidationCache
from roster_engine.coverage.resolver import RosterResolver
from roster_engine.coverage.suggestion import CoverageSuggestionEngine
from roster_engine.coverage.team_policy import TeamShiftPolicy
from roster_engine.coverage.types import RosterResult, SuggestionResult, Violation
from roster_engine.coverage.validator import CoverageValidator
from roster_engine.models import Leave
from roster_engine.schemas import (
    LockInfo,
    OverrideResult,
    TeamChangePreview,
    TeamChangeResult,
    WeekLockDetails,
    WeekStatusInfo,
)
from roster_engine.services.audit import AuditSink, DatabaseAuditSink
from roster_engine.services.leave_service import LeaveService
from roster_engine.services.lock_service import ScheduleLockService
from roster_engine.services.override_service import ShiftOverrideService
from roster_engine.services.team_service import TeamReassignmentService


class SchedulingEngine:
    """Shift coverage and scheduling engine bound to one session.

    Read operations (resolve, validate, suggest) have no side effects other
    than filling the coverage cache. Mutations check editability, write,
    invalidate the cache and emit an audit record, all inside the caller's
    transaction; the caller commits or rolls back.

    Pass the same cache to engines on successive sessions to share memoized
    validation results across requests.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        cache: CoverageValidationCache | None = None,
        audit: AuditSink | None = None,
        today: Callable[[], date] | None = None,
        team_policy: TeamShiftPolicy | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.cache = (
            cache
            if cache is not None
            else CoverageValidationCache(self.settings.coverage_cache_ttl_seconds)
        )
        self.audit = audit or DatabaseAuditSink(session)

        self.resolver = RosterResolver(session, team_policy=team_policy, settings=self.settings)
        self.validator = CoverageValidator(
            session, settings=self.settings, cache=self.cache, resolver=self.resolver
        )
        self.suggestions = CoverageSuggestionEngine(
            session, settings=self.settings, validator=self.validator, resolver=self.resolver
        )
        self.locks = ScheduleLockService(session, audit=self.audit)
        self.teams = TeamReassignmentService(
            session, self.cache, audit=self.audit, locks=self.locks, today=today
        )
        self.overrides = ShiftOverrideService(
            session,
            self.cache,
            settings=self.settings,
            audit=self.audit,
            locks=self.locks,
            suggestions=self.suggestions,
        )
        self.leaves = LeaveService(session, self.cache, audit=self.audit)

    # ----- reads -----

    async def resolve_roster(
        self, on_date: date, location_scope: Sequence[str] | None = None
    ) -> RosterResult:
        return await self.resolver.resolve(on_date, location_scope)

    async def validate_coverage(
        self, on_date: date, location_scope: Sequence[str] | None = None
    ) -> list[Violation]:
        return await self.validator.validate(on_date, location_scope)

    async def suggest_coverage(
        self, on_date: date, location_scope: Sequence[str] | None = None
    ) -> SuggestionResult:
        return await self.suggestions.suggest(on_date, location_scope)

    # ----- week lifecycle -----

    async def get_week_status(self, week_start: date, boutique_id: str) -> WeekStatusInfo:
        return await self.locks.get_week_status(week_start, boutique_id)

    async def approve_week(self, week_start: date, boutique_id: str, actor: str) -> WeekStatusInfo:
        return await self.locks.approve_week(week_start, boutique_id, actor)

    async def unapprove_week(
        self, week_start: date, boutique_id: str, actor: str, reason: str | None = None
    ) -> WeekStatusInfo:
        return await self.locks.unapprove_week(week_start, boutique_id, actor, reason)

    async def lock_week(
        self, week_start: date, boutique_id: str, actor: str, reason: str | None = None
    ) -> LockInfo:
        return await self.locks.lock_week(week_start, boutique_id, actor, reason)

    async def unlock_week(self, week_start: date, boutique_id: str, actor: str) -> LockInfo | None:
        return await self.locks.unlock_week(week_start, boutique_id, actor)

    async def lock_day(
        self, on_date: date, boutique_id: str, actor: str, reason: str | None = None
    ) -> LockInfo:
        return await self.locks.lock_day(on_date, boutique_id, actor, reason)

    async def unlock_day(self, on_date: date, boutique_id: str, actor: str) -> LockInfo | None:
        return await self.locks.unlock_day(on_date, boutique_id, actor)

    async def is_day_locked(self, on_date: date, boutique_id: str) -> bool:
        return await self.locks.is_day_locked(on_date, boutique_id)

    async def is_week_locked(self, week_start: date, boutique_id: str) -> bool:
        return await self.locks.is_week_locked(week_start, boutique_id)

    async def get_week_lock_details(self, week_start: date, boutique_id: str) -> WeekLockDetails:
        return await self.locks.get_week_lock_details(week_start, boutique_id)

    async def assert_schedule_editable(
        self,
        boutique_id: str,
        dates: Iterable[date] | None = None,
        week_start: date | None = None,
    ) -> None:
        await self.locks.assert_schedule_editable(boutique_id, dates=dates, week_start=week_start)

    # ----- mutations -----

    async def change_team(
        self, emp_id: str, new_team: str, effective_from: date, reason: str, actor: str
    ) -> TeamChangeResult:
        return await self.teams.change_team(emp_id, new_team, effective_from, reason, actor)

    async def preview_team_change(
        self, emp_id: str, new_team: str, effective_from: date
    ) -> TeamChangePreview:
        return await self.teams.preview_team_change(emp_id, new_team, effective_from)

    async def apply_override(
        self,
        emp_id: str,
        on_date: date,
        shift: str,
        reason: str,
        actor: str,
        cover_boutique_id: str | None = None,
    ) -> OverrideResult:
        return await self.overrides.apply_override(
            emp_id, on_date, shift, reason, actor, cover_boutique_id=cover_boutique_id
        )

    async def deactivate_override(
        self, override_id: UUID, actor: str, reason: str | None = None
    ) -> OverrideResult:
        return await self.overrides.deactivate_override(override_id, actor, reason)

    async def apply_coverage_suggestion(
        self,
        on_date: date,
        emp_id: str,
        actor: str,
        location_scope: Sequence[str] | None = None,
    ) -> OverrideResult:
        return await self.overrides.apply_coverage_suggestion(
            on_date, emp_id, actor, location_scope
        )

    async def approve_leave(self, leave_id: UUID, actor: str) -> Leave:
        return await self.leaves.approve_leave(leave_id, actor)

    async def reject_leave(self, leave_id: UUID, actor: str, reason: str | None = None) -> Leave:
        return await self.leaves.reject_leave(leave_id, actor, reason)
