"""Per-date shift overrides, including applying coverage suggestions."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roster_engine.config import Settings, get_settings
from roster_engine.coverage.cache import CoverageValidationCache
from roster_engine.coverage.dates import is_friday, week_start_for
from roster_engine.coverage.suggestion import CoverageSuggestionEngine
from roster_engine.coverage.types import ShiftType
from roster_engine.coverage.validator import CoverageValidator
from roster_engine.models import Employee, ShiftOverride
from roster_engine.schemas import OverrideResult
from roster_engine.services.audit import AuditContext, AuditSink, DatabaseAuditSink
from roster_engine.services.lock_service import ScheduleLockService

logger = logging.getLogger(__name__)

SUGGESTION_REASON = "Coverage suggestion"


class OverrideError(Exception):
    """Raised when an override write fails validation."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


def parse_shift(value: str | ShiftType) -> ShiftType:
    try:
        return ShiftType(value)
    except ValueError:
        raise OverrideError("INVALID_SHIFT", f"Unknown shift '{value}'") from None


def _snapshot(override: ShiftOverride) -> dict[str, Any]:
    return {
        "override_shift": override.override_shift,
        "cover_boutique_id": override.cover_boutique_id,
        "is_active": override.is_active,
        "reason": override.reason,
    }


class ShiftOverrideService:
    """Creates, updates and retires shift overrides.

    One override row per (employee, date). Writing to a retired row
    reactivates it. Every write checks editability first and invalidates
    the coverage cache for the date.
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: CoverageValidationCache,
        settings: Settings | None = None,
        audit: AuditSink | None = None,
        locks: ScheduleLockService | None = None,
        suggestions: CoverageSuggestionEngine | None = None,
    ):
        self.session = session
        self.cache = cache
        self.settings = settings or get_settings()
        self.audit = audit or DatabaseAuditSink(session)
        self.locks = locks or ScheduleLockService(session, audit=self.audit)
        self.suggestions = suggestions or CoverageSuggestionEngine(
            session,
            settings=self.settings,
            validator=CoverageValidator(session, settings=self.settings, cache=cache),
        )

    async def apply_override(
        self,
        emp_id: str,
        on_date: date,
        shift: str | ShiftType,
        reason: str,
        actor: str,
        cover_boutique_id: str | None = None,
    ) -> OverrideResult:
        if not reason or not reason.strip():
            raise OverrideError("REASON_REQUIRED", "reason is required")
        shift = parse_shift(shift)

        employee = await self._get_employee(emp_id)
        await self.locks.assert_schedule_editable(employee.boutique_id, dates=[on_date])
        self._check_friday(shift, on_date)

        override, created, before = await self._upsert(
            employee, on_date, shift, reason.strip(), actor, cover_boutique_id
        )
        await self.audit.write(
            actor,
            "OVERRIDE_CREATED" if created else "OVERRIDE_UPDATED",
            "ShiftOverride",
            str(override.shift_override_id),
            before,
            _snapshot(override),
            reason=override.reason,
            context=_override_context(employee, on_date),
        )
        logger.info("Override %s for %s on %s by %s", shift.value, emp_id, on_date, actor)
        return OverrideResult.model_validate(override).model_copy(update={"created": created})

    async def deactivate_override(
        self,
        override_id: UUID,
        actor: str,
        reason: str | None = None,
    ) -> OverrideResult:
        """Retire an override. Retiring a retired override is a no-op."""
        override = await self.session.get(ShiftOverride, override_id)
        if override is None:
            raise OverrideError("OVERRIDE_NOT_FOUND", f"Override {override_id} not found")

        employee = await self._get_employee(override.emp_id)
        await self.locks.assert_schedule_editable(
            employee.boutique_id, dates=[override.override_date]
        )
        if not override.is_active:
            return OverrideResult.model_validate(override)

        before = _snapshot(override)
        override.is_active = False
        await self.session.flush()
        self.cache.invalidate(override.override_date)

        await self.audit.write(
            actor,
            "OVERRIDE_DEACTIVATED",
            "ShiftOverride",
            str(override.shift_override_id),
            before,
            _snapshot(override),
            reason=reason,
            context=_override_context(employee, override.override_date),
        )
        logger.info("Override %s deactivated by %s", override_id, actor)
        return OverrideResult.model_validate(override)

    async def apply_coverage_suggestion(
        self,
        on_date: date,
        emp_id: str,
        actor: str,
        location_scope: Sequence[str] | None = None,
    ) -> OverrideResult:
        """Write the current suggestion for a date, if it names this employee.

        The scope defaults to the employee's own location.
        """
        employee = await self._get_employee(emp_id)
        await self.locks.assert_schedule_editable(employee.boutique_id, dates=[on_date])

        scope = location_scope if location_scope is not None else [employee.boutique_id]
        result = await self.suggestions.suggest(on_date, scope)
        suggestion = result.suggestion
        if suggestion is None:
            raise OverrideError("NO_SUGGESTION", result.explanation)
        if suggestion.emp_id != emp_id:
            raise OverrideError(
                "NOT_SUGGESTED_CANDIDATE",
                f"Employee {emp_id} is not the suggested candidate ({suggestion.emp_id})",
            )
        self._check_friday(suggestion.to_shift, on_date)

        override, created, before = await self._upsert(
            employee,
            on_date,
            suggestion.to_shift,
            SUGGESTION_REASON,
            actor,
            suggestion.cover_boutique_id,
        )
        await self.audit.write(
            actor,
            "COVERAGE_SUGGESTION_APPLY",
            "ShiftOverride",
            str(override.shift_override_id),
            before or {"override_shift": suggestion.from_shift.value},
            {
                **_snapshot(override),
                "impact": {
                    "am_before": suggestion.impact.am_before,
                    "pm_before": suggestion.impact.pm_before,
                    "am_after": suggestion.impact.am_after,
                    "pm_after": suggestion.impact.pm_after,
                },
            },
            reason=suggestion.reason,
            context=_override_context(employee, on_date),
        )
        logger.info(
            "Coverage suggestion applied on %s: %s %s -> %s",
            on_date,
            emp_id,
            suggestion.from_shift.value,
            suggestion.to_shift.value,
        )
        return OverrideResult.model_validate(override).model_copy(update={"created": created})

    async def _upsert(
        self,
        employee: Employee,
        on_date: date,
        shift: ShiftType,
        reason: str,
        actor: str,
        cover_boutique_id: str | None,
    ) -> tuple[ShiftOverride, bool, dict[str, Any] | None]:
        cover = cover_boutique_id if shift.is_cover else None
        result = await self.session.execute(
            select(ShiftOverride).where(
                ShiftOverride.emp_id == employee.emp_id,
                ShiftOverride.override_date == on_date,
            )
        )
        override = result.scalar_one_or_none()

        if override is None:
            override = ShiftOverride(
                emp_id=employee.emp_id,
                override_date=on_date,
                override_shift=shift.value,
                cover_boutique_id=cover,
                reason=reason,
                is_active=True,
                created_by=actor,
            )
            self.session.add(override)
            created, before = True, None
        else:
            before = _snapshot(override)
            override.override_shift = shift.value
            override.cover_boutique_id = cover
            override.reason = reason
            override.is_active = True
            override.created_by = actor
            created = False

        await self.session.flush()
        self.cache.invalidate(on_date)
        return override, created, before

    def _check_friday(self, shift: ShiftType, on_date: date) -> None:
        if self.settings.friday_pm_only and shift.is_am and is_friday(on_date):
            raise OverrideError(
                "FRIDAY_PM_ONLY",
                "Friday is PM-only; morning shifts cannot be assigned",
            )

    async def _get_employee(self, emp_id: str) -> Employee:
        employee = await self.session.get(Employee, emp_id)
        if employee is None:
            raise OverrideError("EMPLOYEE_NOT_FOUND", "Employee not found")
        return employee


def _override_context(employee: Employee, on_date: date) -> AuditContext:
    return AuditContext(
        module="SCHEDULE",
        boutique_id=employee.boutique_id,
        target_emp_id=employee.emp_id,
        target_date=on_date,
        week_start=week_start_for(on_date),
    )
