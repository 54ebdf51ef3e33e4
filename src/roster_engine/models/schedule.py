"""Shift override, leave, coverage rule, lock and week status models."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from roster_engine.models.base import Base, TimestampMixin


# ===== Overrides =====


class ShiftOverride(Base, TimestampMixin):
    """Per-date shift override for one employee. Soft-deleted via is_active."""

    __tablename__ = "shift_override"

    shift_override_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    emp_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("employee.emp_id", ondelete="CASCADE"),
        nullable=False,
    )
    override_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    override_shift: Mapped[str] = mapped_column(String, nullable=False)
    # Location being covered for COVER_AM / COVER_PM; None = unspecified
    cover_boutique_id: Mapped[str | None] = mapped_column(String, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("emp_id", "date", name="shift_override_emp_date_unique"),
        CheckConstraint(
            "override_shift IN ('MORNING', 'EVENING', 'COVER_AM', 'COVER_PM', 'NONE')",
            name="shift_override_shift_check",
        ),
    )


# ===== Leave =====


class Leave(Base, TimestampMixin):
    """Leave record. Only APPROVED leave removes an employee from the roster."""

    __tablename__ = "leave"

    leave_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    emp_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("employee.emp_id", ondelete="CASCADE"),
        nullable=False,
    )
    leave_type: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="PENDING")
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="leave_dates_check"),
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED', 'CANCELLED')",
            name="leave_status_check",
        ),
        Index("leave_emp_dates_idx", "emp_id", "start_date", "end_date"),
    )


# ===== Coverage policy =====


class CoverageRule(Base, TimestampMixin):
    """Minimum headcount rule per weekday, globally or for one location."""

    __tablename__ = "coverage_rule"

    coverage_rule_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    # 0 = Sunday ... 6 = Saturday
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    boutique_id: Mapped[str | None] = mapped_column(String, nullable=True)
    min_am: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_pm: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("day_of_week", "boutique_id", name="coverage_rule_day_boutique_unique"),
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="coverage_rule_day_check"),
        CheckConstraint("min_am >= 0 AND min_pm >= 0", name="coverage_rule_min_check"),
    )


# ===== Locks & approval =====


class ScheduleLock(Base):
    """Day or week lock. Toggled active/inactive, never deleted."""

    __tablename__ = "schedule_lock"

    schedule_lock_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    scope_type: Mapped[str] = mapped_column(String, nullable=False)
    # ISO date: the day itself, or the Saturday that starts the week
    scope_value: Mapped[str] = mapped_column(String(10), nullable=False)
    boutique_id: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    locked_by: Mapped[str] = mapped_column(String, nullable=False)
    locked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_by: Mapped[str | None] = mapped_column(String, nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("scope_type IN ('DAY', 'WEEK')", name="schedule_lock_scope_check"),
        Index(
            "schedule_lock_lookup_idx",
            "scope_type",
            "scope_value",
            "boutique_id",
            "is_active",
        ),
    )


class ScheduleWeekStatus(Base, TimestampMixin):
    """Approval status of one Saturday-aligned week for one location."""

    __tablename__ = "schedule_week_status"

    week_start: Mapped[date] = mapped_column(Date, primary_key=True)
    boutique_id: Mapped[str] = mapped_column(String, primary_key=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="DRAFT")
    approved_by: Mapped[str | None] = mapped_column(String, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('DRAFT', 'APPROVED')", name="schedule_week_status_check"),
    )
