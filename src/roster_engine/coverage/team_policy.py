"""Team to default-shift policies.

A policy is any callable ``(team, date) -> ShiftType``. The resolver takes
one by injection; ``get_team_shift_policy`` builds the configured one.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import date

from roster_engine.coverage.dates import is_friday, week_index_in_year
from roster_engine.coverage.types import ShiftType, Team

TeamShiftPolicy = Callable[[Team, date], ShiftType]

DEFAULT_TEAM_SHIFTS: Mapping[Team, ShiftType] = {
    Team.A: ShiftType.MORNING,
    Team.B: ShiftType.EVENING,
}


def fixed_team_shifts(
    mapping: Mapping[Team, ShiftType] | None = None,
    friday_pm_only: bool = True,
) -> TeamShiftPolicy:
    """Each team always works the same shift (A morning, B evening by default)."""
    shifts = dict(mapping or DEFAULT_TEAM_SHIFTS)

    def policy(team: Team, on_date: date) -> ShiftType:
        if friday_pm_only and is_friday(on_date):
            return ShiftType.EVENING
        return shifts[team]

    return policy


def alternating_weekly_team_shifts(friday_pm_only: bool = True) -> TeamShiftPolicy:
    """Teams swap shifts every week.

    Even week index (from the first Saturday of the year): A morning,
    B evening. Odd week index: the reverse.
    """

    def policy(team: Team, on_date: date) -> ShiftType:
        if friday_pm_only and is_friday(on_date):
            return ShiftType.EVENING
        even_week = week_index_in_year(on_date) % 2 == 0
        if team == Team.A:
            return ShiftType.MORNING if even_week else ShiftType.EVENING
        return ShiftType.EVENING if even_week else ShiftType.MORNING

    return policy


_POLICIES: dict[str, Callable[..., TeamShiftPolicy]] = {
    "fixed": fixed_team_shifts,
    "alternating": alternating_weekly_team_shifts,
}


def get_team_shift_policy(name: str, friday_pm_only: bool = True) -> TeamShiftPolicy:
    """Build a named policy ('fixed' or 'alternating')."""
    try:
        factory = _POLICIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown team shift policy '{name}' (expected one of {sorted(_POLICIES)})"
        ) from None
    return factory(friday_pm_only=friday_pm_only)
