"""Coverage validation: PM-dominant policy with a PM-only Friday."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roster_engine.config import Settings, get_settings
from roster_engine.coverage.cache import CoverageValidationCache
from roster_engine.coverage.dates import day_of_week, is_friday, week_dates
from roster_engine.coverage.resolver import LocationScope, RosterResolver
from roster_engine.coverage.types import CoverageRequirement, Violation, ViolationType
from roster_engine.models import CoverageRule

logger = logging.getLogger(__name__)


def evaluate_coverage(
    on_date: date,
    am_count: int,
    pm_count: int,
    requirement: CoverageRequirement,
    *,
    min_pm_floor: int = 2,
    friday_pm_only: bool = True,
) -> list[Violation]:
    """Check headcounts against the effective requirement.

    Non-Friday: AM must not exceed PM and PM must reach max(min_pm, floor).
    Friday (when PM-only): no AM at all, PM must reach the configured
    min_pm with no floor applied.
    """
    violations: list[Violation] = []

    def add(violation_type: ViolationType, message: str) -> None:
        violations.append(
            Violation(
                type=violation_type,
                message=message,
                am_count=am_count,
                pm_count=pm_count,
                min_am=requirement.min_am,
                min_pm=required_pm,
            )
        )

    if friday_pm_only and is_friday(on_date):
        required_pm = requirement.min_pm
        if am_count > 0:
            add(
                ViolationType.AM_ON_FRIDAY,
                f"Friday is PM-only; AM count ({am_count}) must be 0",
            )
        if pm_count < required_pm:
            add(
                ViolationType.MIN_PM,
                f"PM count ({pm_count}) is below minimum ({required_pm})",
            )
        return violations

    required_pm = max(requirement.min_pm, min_pm_floor)
    if am_count > pm_count:
        add(ViolationType.AM_GT_PM, f"AM ({am_count}) > PM ({pm_count})")
    if pm_count < required_pm:
        add(
            ViolationType.MIN_PM,
            f"PM count ({pm_count}) is below minimum ({required_pm})",
        )
    return violations


def format_violation_summary(violations: Iterable[Violation]) -> str:
    """Human-readable one-liner for tooltips."""
    return "; ".join(v.message for v in violations)


class CoverageRuleRepository:
    """Policy store over CoverageRule rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_effective_rule(
        self,
        weekday: int,
        boutique_id: str | None = None,
    ) -> CoverageRule | None:
        """Enabled location row for the weekday, else the enabled global row."""
        if boutique_id is not None:
            rule = await self._get_rule(weekday, boutique_id)
            if rule is not None:
                return rule
        return await self._get_rule(weekday, None)

    async def get_requirement(
        self,
        weekday: int,
        boutique_id: str | None,
        settings: Settings,
    ) -> CoverageRequirement:
        """Effective minimums, falling back to configured defaults."""
        rule = await self.get_effective_rule(weekday, boutique_id)
        if rule is None:
            return CoverageRequirement(
                min_am=settings.default_min_am,
                min_pm=settings.default_min_pm,
                source="default",
            )
        return CoverageRequirement(
            min_am=rule.min_am,
            min_pm=rule.min_pm,
            source="global" if rule.boutique_id is None else "boutique",
        )

    async def _get_rule(self, weekday: int, boutique_id: str | None) -> CoverageRule | None:
        query = select(CoverageRule).where(
            CoverageRule.day_of_week == weekday,
            CoverageRule.enabled.is_(True),
        )
        if boutique_id is None:
            query = query.where(CoverageRule.boutique_id.is_(None))
        else:
            query = query.where(CoverageRule.boutique_id == boutique_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()


class CoverageValidator:
    """Validates resolved rosters against the coverage policy."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        cache: CoverageValidationCache | None = None,
        resolver: RosterResolver | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.cache = (
            cache
            if cache is not None
            else CoverageValidationCache(self.settings.coverage_cache_ttl_seconds)
        )
        self.resolver = resolver or RosterResolver(session, settings=self.settings)
        self.rules = CoverageRuleRepository(session)

    async def validate(
        self,
        on_date: date,
        location_scope: LocationScope = None,
    ) -> list[Violation]:
        """Violations for a date; an empty list means compliant."""
        cached = self.cache.get(on_date, location_scope)
        if cached is not None:
            return cached

        roster = await self.resolver.resolve(on_date, location_scope)
        requirement = await self.requirement_for(on_date, location_scope)
        violations = evaluate_coverage(
            on_date,
            roster.am_count,
            roster.pm_count,
            requirement,
            min_pm_floor=self.settings.min_pm_floor,
            friday_pm_only=self.settings.friday_pm_only,
        )
        if violations:
            logger.debug(
                "Coverage on %s: %s", on_date.isoformat(), format_violation_summary(violations)
            )

        self.cache.set(on_date, location_scope, violations)
        return violations

    async def validate_week(
        self,
        week_start: date,
        location_scope: LocationScope = None,
    ) -> dict[date, list[Violation]]:
        """Violations per day for a Saturday-aligned week."""
        return {d: await self.validate(d, location_scope) for d in week_dates(week_start)}

    async def requirement_for(
        self,
        on_date: date,
        location_scope: LocationScope = None,
    ) -> CoverageRequirement:
        """A single-location scope uses that location's rule; anything else the global one."""
        return await self.rules.get_requirement(
            day_of_week(on_date),
            _single_location(location_scope),
            self.settings,
        )


def _single_location(location_scope: Sequence[str] | None) -> str | None:
    if location_scope is None:
        return None
    locations = set(location_scope)
    if len(locations) == 1:
        return next(iter(locations))
    return None
