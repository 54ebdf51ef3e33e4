"""Effective-dated team timelines with "latest effective_from <= date" lookup."""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from roster_engine.coverage.types import Team


class TeamRow(Protocol):
    """Anything shaped like a TeamAssignment / TeamHistory row."""

    team: str
    effective_from: date


@dataclass(frozen=True)
class TimelineEntry:
    """A team membership effective from a date until superseded."""

    effective_from: date
    team: Team


class TeamTimeline:
    """Sorted, immutable team timeline for one employee.

    Entries with the same effective date keep their input order; the last
    one wins on lookup.
    """

    def __init__(self, entries: Iterable[TimelineEntry] = ()):
        self._entries: tuple[TimelineEntry, ...] = tuple(
            sorted(entries, key=lambda e: e.effective_from)
        )
        self._dates: list[date] = [e.effective_from for e in self._entries]

    @classmethod
    def from_rows(cls, rows: Iterable[TeamRow]) -> TeamTimeline:
        return cls(TimelineEntry(r.effective_from, Team(r.team)) for r in rows)

    def as_of(self, on_date: date) -> Team | None:
        """Team in effect on a date, or None if no entry has started yet."""
        idx = bisect_right(self._dates, on_date)
        if idx == 0:
            return None
        return self._entries[idx - 1].team

    @property
    def latest_effective_from(self) -> date | None:
        return self._dates[-1] if self._dates else None

    def __iter__(self) -> Iterator[TimelineEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class EmployeeTeamTimeline:
    """Assignment timeline with history as fallback."""

    emp_id: str
    assignments: TeamTimeline
    history: TeamTimeline

    def team_as_of(self, on_date: date) -> Team | None:
        team = self.assignments.as_of(on_date)
        if team is not None:
            return team
        return self.history.as_of(on_date)

    @property
    def latest_effective_from(self) -> date | None:
        """Latest effective date across assignment and history rows."""
        candidates = [
            d
            for d in (self.assignments.latest_effective_from, self.history.latest_effective_from)
            if d is not None
        ]
        return max(candidates) if candidates else None

    def accepts(self, effective_from: date) -> bool:
        """A new entry must land strictly after every existing one."""
        latest = self.latest_effective_from
        return latest is None or effective_from > latest

    @classmethod
    def empty(cls, emp_id: str) -> EmployeeTeamTimeline:
        return cls(emp_id=emp_id, assignments=TeamTimeline(), history=TeamTimeline())
