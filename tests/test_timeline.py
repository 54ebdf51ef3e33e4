"""Tests for effective-dated team timelines."""

from datetime import date

from roster_engine.coverage.timeline import EmployeeTeamTimeline, TeamTimeline, TimelineEntry
from roster_engine.coverage.types import Team


def _timeline(*entries: tuple[date, Team]) -> TeamTimeline:
    return TeamTimeline(TimelineEntry(d, t) for d, t in entries)


class TestTeamTimeline:
    """Test 'latest effective_from <= date' lookups."""

    def test_as_of_picks_latest_started_entry(self):
        timeline = _timeline(
            (date(2026, 1, 1), Team.A),
            (date(2026, 3, 1), Team.B),
        )

        assert timeline.as_of(date(2026, 2, 28)) == Team.A
        assert timeline.as_of(date(2026, 3, 1)) == Team.B
        assert timeline.as_of(date(2026, 12, 31)) == Team.B

    def test_as_of_before_first_entry(self):
        timeline = _timeline((date(2026, 1, 1), Team.A))
        assert timeline.as_of(date(2025, 12, 31)) is None

    def test_entries_sorted_regardless_of_input_order(self):
        timeline = _timeline(
            (date(2026, 3, 1), Team.B),
            (date(2026, 1, 1), Team.A),
        )

        assert [e.effective_from for e in timeline] == [date(2026, 1, 1), date(2026, 3, 1)]
        assert timeline.latest_effective_from == date(2026, 3, 1)

    def test_empty_timeline(self):
        timeline = TeamTimeline()

        assert len(timeline) == 0
        assert timeline.as_of(date(2026, 1, 1)) is None
        assert timeline.latest_effective_from is None


class TestEmployeeTeamTimeline:
    """Assignments first, history as fallback."""

    def test_assignment_wins_over_history(self):
        timeline = EmployeeTeamTimeline(
            emp_id="E001",
            assignments=_timeline((date(2026, 1, 1), Team.B)),
            history=_timeline((date(2025, 6, 1), Team.A)),
        )

        assert timeline.team_as_of(date(2026, 2, 1)) == Team.B

    def test_history_used_before_first_assignment(self):
        timeline = EmployeeTeamTimeline(
            emp_id="E001",
            assignments=_timeline((date(2026, 1, 1), Team.B)),
            history=_timeline((date(2025, 6, 1), Team.A)),
        )

        assert timeline.team_as_of(date(2025, 7, 1)) == Team.A

    def test_latest_effective_from_spans_both(self):
        timeline = EmployeeTeamTimeline(
            emp_id="E001",
            assignments=_timeline((date(2026, 1, 1), Team.A)),
            history=_timeline((date(2026, 4, 1), Team.B)),
        )

        assert timeline.latest_effective_from == date(2026, 4, 1)
        assert timeline.accepts(date(2026, 4, 1)) is False
        assert timeline.accepts(date(2026, 4, 2)) is True

    def test_empty_accepts_anything(self):
        timeline = EmployeeTeamTimeline.empty("E001")

        assert timeline.team_as_of(date(2026, 1, 1)) is None
        assert timeline.accepts(date(2020, 1, 1)) is True
