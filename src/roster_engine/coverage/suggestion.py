"""Coverage suggestions: propose one morning-to-evening move. Advisory only."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from roster_engine.config import Settings, get_settings
from roster_engine.coverage.dates import week_dates
from roster_engine.coverage.resolver import LocationScope, RosterResolver
from roster_engine.coverage.types import (
    RosterEntry,
    RosterResult,
    ShiftType,
    Suggestion,
    SuggestionImpact,
    SuggestionResult,
    Violation,
)
from roster_engine.coverage.validator import CoverageValidator, format_violation_summary


def pick_candidate(morning: Sequence[RosterEntry]) -> RosterEntry | None:
    """Prefer employees without an active override, then lowest emp_id."""
    if not morning:
        return None
    return min(morning, key=lambda e: (e.has_active_override, e.emp_id))


def target_shift_for(shift: ShiftType) -> ShiftType:
    """Lowest-disruption evening counterpart of a morning shift."""
    if shift == ShiftType.COVER_AM:
        return ShiftType.COVER_PM
    return ShiftType.EVENING


def build_suggestion(roster: RosterResult, violations: Sequence[Violation]) -> SuggestionResult:
    """Turn a roster and its violations into at most one suggested move."""
    if not violations:
        return SuggestionResult(
            suggestion=None,
            explanation="Coverage is compliant; no change needed",
        )

    candidate = pick_candidate(roster.morning)
    if candidate is None:
        return SuggestionResult(
            suggestion=None,
            explanation=(
                "No morning employee available to move "
                f"({format_violation_summary(violations)})"
            ),
        )

    am_count = roster.am_count
    pm_count = roster.pm_count
    impact = SuggestionImpact(
        am_before=am_count,
        pm_before=pm_count,
        am_after=am_count - 1,
        pm_after=pm_count + 1,
    )
    to_shift = target_shift_for(candidate.shift)
    reason = (
        f"{format_violation_summary(violations)}. Moving 1 person from AM to PM "
        f"makes AM={impact.am_after}, PM={impact.pm_after}."
    )
    suggestion = Suggestion(
        date=roster.date,
        emp_id=candidate.emp_id,
        employee_name=candidate.name,
        from_shift=candidate.shift,
        to_shift=to_shift,
        reason=reason,
        impact=impact,
        cover_boutique_id=candidate.cover_boutique_id if to_shift.is_cover else None,
    )
    return SuggestionResult(
        suggestion=suggestion,
        explanation=f"Move {candidate.name} ({candidate.emp_id}) to {to_shift.value}",
    )


class CoverageSuggestionEngine:
    """Proposes a single corrective move for a non-compliant date."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        validator: CoverageValidator | None = None,
        resolver: RosterResolver | None = None,
    ):
        self.settings = settings or get_settings()
        self.resolver = resolver or RosterResolver(session, settings=self.settings)
        self.validator = validator or CoverageValidator(
            session, settings=self.settings, resolver=self.resolver
        )

    async def suggest(
        self,
        on_date: date,
        location_scope: LocationScope = None,
    ) -> SuggestionResult:
        violations = await self.validator.validate(on_date, location_scope)
        if not violations:
            return build_suggestion(RosterResult(date=on_date), violations)
        roster = await self.resolver.resolve(on_date, location_scope)
        return build_suggestion(roster, violations)

    async def suggest_week(
        self,
        week_start: date,
        location_scope: LocationScope = None,
    ) -> dict[date, SuggestionResult]:
        """One result per day of a Saturday-aligned week."""
        return {d: await self.suggest(d, location_scope) for d in week_dates(week_start)}
