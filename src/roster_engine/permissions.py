"""Role stratification for schedule operations.

Enforced by the caller's authorization layer; exposed here so every caller
applies the same contract.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    EMPLOYEE = "EMPLOYEE"
    ASSISTANT_MANAGER = "ASSISTANT_MANAGER"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


DAY_LOCK_ROLES = frozenset(
    {Role.ASSISTANT_MANAGER, Role.MANAGER, Role.ADMIN, Role.SUPER_ADMIN}
)
WEEK_APPROVAL_ROLES = frozenset({Role.MANAGER, Role.ADMIN, Role.SUPER_ADMIN})
WEEK_LOCK_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


def can_lock_day(role: str) -> bool:
    return role in DAY_LOCK_ROLES


def can_unlock_day(role: str) -> bool:
    return role in DAY_LOCK_ROLES


def can_approve_week(role: str) -> bool:
    return role in WEEK_APPROVAL_ROLES


def can_unapprove_week(role: str) -> bool:
    return role in WEEK_LOCK_ROLES


def can_lock_week(role: str) -> bool:
    return role in WEEK_LOCK_ROLES


def can_unlock_week(role: str) -> bool:
    return role in WEEK_LOCK_ROLES
