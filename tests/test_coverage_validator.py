"""Tests for coverage validation."""

from datetime import date
from uuid import uuid4

import pytest

from roster_engine.coverage.cache import CoverageValidationCache
from roster_engine.coverage.types import CoverageRequirement, Violation, ViolationType
from roster_engine.coverage.validator import (
    CoverageRuleRepository,
    CoverageValidator,
    evaluate_coverage,
    format_violation_summary,
)
from roster_engine.models import CoverageRule, ShiftOverride
from roster_engine.services.team_service import TeamReassignmentService

from tests.conftest import BOUTIQUE, FRIDAY, MONDAY, OTHER_BOUTIQUE, TUESDAY, WEEK_START


def _types(violations: list[Violation]) -> set[ViolationType]:
    return {v.type for v in violations}


def _rule(min_am: int, min_pm: int) -> CoverageRequirement:
    return CoverageRequirement(min_am=min_am, min_pm=min_pm, source="global")


class TestEvaluateCoverage:
    """Policy checks on plain headcounts."""

    def test_compliant_monday(self):
        assert evaluate_coverage(MONDAY, 1, 2, _rule(2, 2)) == []

    def test_am_gt_pm_and_min_pm(self):
        violations = evaluate_coverage(MONDAY, 2, 1, _rule(2, 2))

        assert _types(violations) == {ViolationType.AM_GT_PM, ViolationType.MIN_PM}
        am_gt_pm = next(v for v in violations if v.type == ViolationType.AM_GT_PM)
        assert am_gt_pm.message == "AM (2) > PM (1)"
        assert am_gt_pm.am_count == 2
        assert am_gt_pm.pm_count == 1

    def test_friday_pm_only(self):
        assert evaluate_coverage(FRIDAY, 0, 2, _rule(0, 2)) == []

        violations = evaluate_coverage(FRIDAY, 1, 2, _rule(0, 2))
        assert [v.type for v in violations] == [ViolationType.AM_ON_FRIDAY]

    def test_friday_has_no_floor(self):
        assert evaluate_coverage(FRIDAY, 0, 1, _rule(0, 1)) == []
        assert evaluate_coverage(FRIDAY, 0, 0, _rule(0, 0)) == []

    def test_friday_configured_min_pm(self):
        violations = evaluate_coverage(FRIDAY, 0, 1, _rule(0, 3))

        assert [v.type for v in violations] == [ViolationType.MIN_PM]
        assert violations[0].min_pm == 3

    def test_friday_has_no_am_gt_pm(self):
        violations = evaluate_coverage(FRIDAY, 3, 1, _rule(0, 0))
        assert _types(violations) == {ViolationType.AM_ON_FRIDAY}

    @pytest.mark.parametrize("min_pm", [0, 1, 2, 3, 4])
    @pytest.mark.parametrize("pm_count", [0, 1, 2, 3, 4, 5])
    def test_floor_invariant(self, min_pm, pm_count):
        """MIN_PM fires exactly when PM < max(min_pm, 2) on non-Fridays."""
        violations = evaluate_coverage(MONDAY, 0, pm_count, _rule(2, min_pm))

        has_min_pm = ViolationType.MIN_PM in _types(violations)
        assert has_min_pm == (pm_count < max(min_pm, 2))
        if pm_count >= max(min_pm, 2):
            assert violations == []

    def test_min_pm_message_uses_effective_floor(self):
        violations = evaluate_coverage(MONDAY, 0, 1, _rule(2, 0))

        assert violations[0].message == "PM count (1) is below minimum (2)"
        assert violations[0].min_pm == 2

    def test_friday_rule_disabled(self):
        violations = evaluate_coverage(FRIDAY, 1, 2, _rule(0, 0), friday_pm_only=False)
        assert violations == []

    def test_format_violation_summary(self):
        violations = evaluate_coverage(MONDAY, 2, 1, _rule(2, 2))

        assert format_violation_summary(violations) == (
            "AM (2) > PM (1); PM count (1) is below minimum (2)"
        )
        assert format_violation_summary([]) == ""


class TestCoverageRuleRepository:
    """Location row beats global row; defaults when neither applies."""

    async def test_defaults_without_rules(self, session, settings):
        repo = CoverageRuleRepository(session)

        requirement = await repo.get_requirement(1, BOUTIQUE, settings)

        assert requirement == CoverageRequirement(min_am=2, min_pm=0, source="default")

    async def test_location_row_wins(self, session, settings):
        session.add_all(
            [
                CoverageRule(coverage_rule_id=uuid4(), day_of_week=1, min_am=2, min_pm=4),
                CoverageRule(
                    coverage_rule_id=uuid4(),
                    day_of_week=1,
                    boutique_id=BOUTIQUE,
                    min_am=1,
                    min_pm=3,
                ),
            ]
        )
        await session.flush()
        repo = CoverageRuleRepository(session)

        local = await repo.get_requirement(1, BOUTIQUE, settings)
        other = await repo.get_requirement(1, OTHER_BOUTIQUE, settings)

        assert (local.min_pm, local.source) == (3, "boutique")
        assert (other.min_pm, other.source) == (4, "global")

    async def test_disabled_location_row_falls_back(self, session, settings):
        session.add_all(
            [
                CoverageRule(coverage_rule_id=uuid4(), day_of_week=1, min_am=2, min_pm=4),
                CoverageRule(
                    coverage_rule_id=uuid4(),
                    day_of_week=1,
                    boutique_id=BOUTIQUE,
                    min_am=1,
                    min_pm=3,
                    enabled=False,
                ),
            ]
        )
        await session.flush()
        repo = CoverageRuleRepository(session)

        rule = await repo.get_effective_rule(1, BOUTIQUE)

        assert rule.boutique_id is None
        assert rule.min_pm == 4


class TestCoverageValidator:
    """Validation over resolved rosters."""

    async def test_compliant_monday(self, session, settings, cache, test_employees):
        validator = CoverageValidator(session, settings=settings, cache=cache)
        assert await validator.validate(MONDAY, [BOUTIQUE]) == []

    async def test_location_rule_applies_to_single_scope(
        self, session, settings, cache, test_employees
    ):
        session.add(
            CoverageRule(
                coverage_rule_id=uuid4(),
                day_of_week=1,
                boutique_id=BOUTIQUE,
                min_am=2,
                min_pm=4,
            )
        )
        await session.flush()
        validator = CoverageValidator(session, settings=settings, cache=cache)

        violations = await validator.validate(MONDAY, [BOUTIQUE])

        assert [v.type for v in violations] == [ViolationType.MIN_PM]
        assert violations[0].pm_count == 3
        assert violations[0].min_pm == 4

    async def test_multi_location_scope_uses_global_rule(
        self, session, settings, cache, test_employees
    ):
        session.add(
            CoverageRule(
                coverage_rule_id=uuid4(),
                day_of_week=1,
                boutique_id=BOUTIQUE,
                min_am=2,
                min_pm=9,
            )
        )
        await session.flush()
        validator = CoverageValidator(session, settings=settings, cache=cache)

        violations = await validator.validate(MONDAY, [BOUTIQUE, OTHER_BOUTIQUE])

        # AM 3 (Alice, Bob, Frank) vs PM 3; global defaults apply
        assert violations == []

    async def test_am_gt_pm_after_override(self, session, settings, cache, test_employees):
        session.add_all(
            [
                ShiftOverride(
                    emp_id=emp_id,
                    override_date=MONDAY,
                    override_shift="MORNING",
                    reason="test",
                    is_active=True,
                )
                for emp_id in ("E003", "E004")
            ]
        )
        await session.flush()
        validator = CoverageValidator(session, settings=settings, cache=cache)

        violations = await validator.validate(MONDAY, [BOUTIQUE])

        assert _types(violations) == {ViolationType.AM_GT_PM, ViolationType.MIN_PM}

    async def test_validate_week(self, session, settings, cache, test_employees):
        validator = CoverageValidator(session, settings=settings, cache=cache)

        week = await validator.validate_week(WEEK_START, [BOUTIQUE])

        assert len(week) == 7
        assert week[FRIDAY] == []
        # Saturday: only Eve works
        assert _types(week[WEEK_START]) == {ViolationType.MIN_PM}


class TestValidationCache:
    """Memoization until invalidate()."""

    async def test_validator_keeps_empty_cache_it_was_given(self, session, settings):
        cache = CoverageValidationCache(ttl_seconds=None)

        validator = CoverageValidator(session, settings=settings, cache=cache)

        assert validator.cache is cache

    async def test_team_change_visible_on_next_validate(
        self, session, settings, cache, test_employees
    ):
        validator = CoverageValidator(session, settings=settings, cache=cache)
        teams = TeamReassignmentService(session, cache, today=lambda: MONDAY)
        assert await validator.validate(TUESDAY, [BOUTIQUE]) == []

        await teams.change_team("E003", "A", TUESDAY, "Rebalance", "manager")
        await teams.change_team("E004", "A", TUESDAY, "Rebalance", "manager")

        violations = await validator.validate(TUESDAY, [BOUTIQUE])
        assert _types(violations) == {ViolationType.AM_GT_PM, ViolationType.MIN_PM}

    async def test_results_memoized_until_invalidated(
        self, session, settings, cache, test_employees
    ):
        validator = CoverageValidator(session, settings=settings, cache=cache)
        assert await validator.validate(MONDAY, [BOUTIQUE]) == []

        # Write behind the validator's back: the cached result stands
        session.add(
            ShiftOverride(
                emp_id="E003",
                override_date=MONDAY,
                override_shift="MORNING",
                reason="test",
                is_active=True,
            )
        )
        await session.flush()
        assert await validator.validate(MONDAY, [BOUTIQUE]) == []

        cache.invalidate(MONDAY)
        violations = await validator.validate(MONDAY, [BOUTIQUE])
        assert _types(violations) == {ViolationType.AM_GT_PM}

    def test_scope_order_does_not_matter(self):
        cache = CoverageValidationCache(ttl_seconds=None)
        cache.set(MONDAY, ["S02", "S01"], [])

        assert cache.get(MONDAY, ["S01", "S02"]) == []
        assert cache.get(MONDAY, None) is None

    def test_ttl_expiry(self):
        now = [100.0]
        cache = CoverageValidationCache(ttl_seconds=60, clock=lambda: now[0])
        cache.set(MONDAY, None, [])

        now[0] = 150.0
        assert cache.get(MONDAY, None) == []

        now[0] = 161.0
        assert cache.get(MONDAY, None) is None
        assert len(cache) == 0

    def test_invalidate_single_date(self):
        cache = CoverageValidationCache(ttl_seconds=None)
        cache.set(MONDAY, None, [])
        cache.set(date(2026, 2, 3), None, [])

        cache.invalidate(MONDAY)

        assert cache.get(MONDAY, None) is None
        assert cache.get(date(2026, 2, 3), None) == []
        assert cache.invalidations == 1

    def test_invalidate_all(self):
        cache = CoverageValidationCache(ttl_seconds=None)
        cache.set(MONDAY, None, [])
        cache.set(FRIDAY, ["S01"], [])

        cache.invalidate()

        assert len(cache) == 0
