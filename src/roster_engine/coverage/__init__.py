"""Roster resolution and coverage rules."""

from roster_engine.coverage.cache import CoverageValidationCache
from roster_engine.coverage.resolver import RosterResolver, resolve_entry
from roster_engine.coverage.suggestion import CoverageSuggestionEngine, build_suggestion
from roster_engine.coverage.team_policy import TeamShiftPolicy, get_team_shift_policy
from roster_engine.coverage.types import (
    CoverageRequirement,
    RosterBucket,
    RosterEntry,
    RosterResult,
    ShiftSource,
    ShiftType,
    Suggestion,
    SuggestionImpact,
    SuggestionResult,
    Team,
    Violation,
    ViolationType,
)
from roster_engine.coverage.validator import (
    CoverageRuleRepository,
    CoverageValidator,
    evaluate_coverage,
    format_violation_summary,
)

__all__ = [
    "CoverageRequirement",
    "CoverageRuleRepository",
    "CoverageSuggestionEngine",
    "CoverageValidationCache",
    "CoverageValidator",
    "RosterBucket",
    "RosterEntry",
    "RosterResolver",
    "RosterResult",
    "ShiftSource",
    "ShiftType",
    "Suggestion",
    "SuggestionImpact",
    "SuggestionResult",
    "Team",
    "TeamShiftPolicy",
    "Violation",
    "ViolationType",
    "build_suggestion",
    "evaluate_coverage",
    "format_violation_summary",
    "get_team_shift_policy",
    "resolve_entry",
]
