"""Week approval state machine with transition validation."""

from __future__ import annotations

from enum import Enum


class WeekStatus(str, Enum):
    """Week approval status values."""

    DRAFT = "DRAFT"
    APPROVED = "APPROVED"


class LockScope(str, Enum):
    """Schedule lock scopes."""

    DAY = "DAY"
    WEEK = "WEEK"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(
        self,
        from_status: str,
        to_status: str,
        reason: str | None = None,
        code: str | None = None,
    ):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        self.code = code or "INVALID_TRANSITION"
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class WeekStateMachine:
    """State machine for week approval and week locking.

    Allowed transitions:
    - DRAFT → APPROVED
    - APPROVED → DRAFT (unapprove, only while the week is unlocked)

    Locking is orthogonal to status but only an APPROVED week may be locked.
    Day locks do not depend on week status at all.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        WeekStatus.DRAFT: [WeekStatus.APPROVED],
        WeekStatus.APPROVED: [WeekStatus.DRAFT],
    }

    # Statuses where a week lock may be taken
    LOCKABLE = {WeekStatus.APPROVED}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def can_lock(cls, status: str) -> bool:
        """Check if the week may be locked in this status."""
        return status in cls.LOCKABLE

    @classmethod
    def validate_lock(cls, status: str) -> None:
        if not cls.can_lock(status):
            raise InvalidTransitionError(
                status,
                "LOCKED",
                reason="week must be APPROVED before it can be locked",
                code="WEEK_NOT_APPROVED",
            )

    @classmethod
    def validate_unapprove(cls, status: str, week_locked: bool) -> None:
        """Unapproving requires the week lock to be released first."""
        if week_locked:
            raise InvalidTransitionError(
                status,
                WeekStatus.DRAFT.value,
                reason="week is locked; unlock it first",
                code="WEEK_LOCKED",
            )
        cls.validate_transition(status, WeekStatus.DRAFT.value)

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])
