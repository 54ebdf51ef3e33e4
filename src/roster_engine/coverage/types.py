"""Type definitions for roster resolution and coverage checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from uuid import UUID


class ShiftType(str, Enum):
    """Effective shift values, shared with ShiftOverride.override_shift."""

    MORNING = "MORNING"
    EVENING = "EVENING"
    COVER_AM = "COVER_AM"
    COVER_PM = "COVER_PM"
    NONE = "NONE"

    @property
    def is_am(self) -> bool:
        return self in (ShiftType.MORNING, ShiftType.COVER_AM)

    @property
    def is_pm(self) -> bool:
        return self in (ShiftType.EVENING, ShiftType.COVER_PM)

    @property
    def is_cover(self) -> bool:
        return self in (ShiftType.COVER_AM, ShiftType.COVER_PM)


class Team(str, Enum):
    """Rotation teams."""

    A = "A"
    B = "B"


class RosterBucket(str, Enum):
    """The four disjoint roster buckets."""

    MORNING = "morning"
    EVENING = "evening"
    OFF = "off"
    ON_LEAVE = "on_leave"


class ShiftSource(str, Enum):
    """Which resolution rule decided an employee's shift."""

    LEAVE = "LEAVE"
    OVERRIDE = "OVERRIDE"
    WEEKLY_OFF = "WEEKLY_OFF"
    TEAM = "TEAM"
    NO_TEAM = "NO_TEAM"


class ViolationType(str, Enum):
    """Coverage policy violation types."""

    AM_GT_PM = "AM_GT_PM"
    MIN_PM = "MIN_PM"
    AM_ON_FRIDAY = "AM_ON_FRIDAY"


def bucket_for_shift(shift: ShiftType) -> RosterBucket:
    """Map a working shift to its roster bucket (NONE means off)."""
    if shift.is_am:
        return RosterBucket.MORNING
    if shift.is_pm:
        return RosterBucket.EVENING
    return RosterBucket.OFF


@dataclass(frozen=True)
class RosterEntry:
    """One employee's resolved position in the roster for a date."""

    emp_id: str
    name: str
    boutique_id: str
    bucket: RosterBucket
    shift: ShiftType
    source: ShiftSource
    team: Team | None = None
    override_id: UUID | None = None
    cover_boutique_id: str | None = None

    @property
    def has_active_override(self) -> bool:
        return self.override_id is not None


@dataclass
class RosterResult:
    """Roster for one date: every in-scope employee in exactly one bucket."""

    date: date
    morning: list[RosterEntry] = field(default_factory=list)
    evening: list[RosterEntry] = field(default_factory=list)
    off: list[RosterEntry] = field(default_factory=list)
    on_leave: list[RosterEntry] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def am_count(self) -> int:
        return len(self.morning)

    @property
    def pm_count(self) -> int:
        return len(self.evening)

    def add(self, entry: RosterEntry) -> None:
        """Place an entry into the bucket it names."""
        self.bucket_list(entry.bucket).append(entry)

    def bucket_list(self, bucket: RosterBucket) -> list[RosterEntry]:
        if bucket == RosterBucket.MORNING:
            return self.morning
        if bucket == RosterBucket.EVENING:
            return self.evening
        if bucket == RosterBucket.ON_LEAVE:
            return self.on_leave
        return self.off

    def entries(self) -> list[RosterEntry]:
        """All entries across the four buckets."""
        return [*self.morning, *self.evening, *self.off, *self.on_leave]

    def find(self, emp_id: str) -> RosterEntry | None:
        for entry in self.entries():
            if entry.emp_id == emp_id:
                return entry
        return None


@dataclass(frozen=True)
class CoverageRequirement:
    """Effective minimum headcounts for a (weekday, location) pair."""

    min_am: int
    min_pm: int
    source: str  # 'boutique', 'global' or 'default'


@dataclass(frozen=True)
class Violation:
    """A single coverage policy violation."""

    type: ViolationType
    message: str
    am_count: int
    pm_count: int
    min_am: int
    min_pm: int


@dataclass(frozen=True)
class SuggestionImpact:
    """Headcounts before and after a suggested move."""

    am_before: int
    pm_before: int
    am_after: int
    pm_after: int


@dataclass(frozen=True)
class Suggestion:
    """A single-employee shift move proposed to fix coverage."""

    date: date
    emp_id: str
    employee_name: str
    from_shift: ShiftType
    to_shift: ShiftType
    reason: str
    impact: SuggestionImpact
    cover_boutique_id: str | None = None


@dataclass(frozen=True)
class SuggestionResult:
    """Outcome of a suggestion request. Advisory only."""

    suggestion: Suggestion | None
    explanation: str
