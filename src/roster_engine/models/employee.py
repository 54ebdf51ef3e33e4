"""Employee and effective-dated team models."""

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
)
from sqlalchemy.orm import Mapped, mapped_column

from roster_engine.models.base import Base, TimestampMixin, utcnow


class Employee(Base, TimestampMixin):
    """Employee record (provisioned by HR onboarding, read-only here)."""

    __tablename__ = "employee"

    emp_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    # 0 = Sunday ... 6 = Saturday
    weekly_off_day: Mapped[int] = mapped_column(Integer, nullable=False)
    boutique_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "weekly_off_day >= 0 AND weekly_off_day <= 6",
            name="employee_weekly_off_day_check",
        ),
    )


class TeamAssignment(Base):
    """Effective-dated team membership. Append-only."""

    __tablename__ = "team_assignment"

    team_assignment_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    emp_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("employee.emp_id", ondelete="CASCADE"),
        nullable=False,
    )
    team: Mapped[str] = mapped_column(String(1), nullable=False)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("team IN ('A', 'B')", name="team_assignment_team_check"),
        Index("team_assignment_emp_effective_idx", "emp_id", "effective_from"),
    )


class TeamHistory(Base):
    """Immutable audit mirror of team assignments (also holds imported history)."""

    __tablename__ = "team_history"

    team_history_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    emp_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("employee.emp_id", ondelete="CASCADE"),
        nullable=False,
    )
    team: Mapped[str] = mapped_column(String(1), nullable=False)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_by: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("team IN ('A', 'B')", name="team_history_team_check"),
        Index("team_history_emp_effective_idx", "emp_id", "effective_from"),
    )
