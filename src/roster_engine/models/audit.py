"""Audit trail model."""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Date, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from roster_engine.models.base import Base, JSONType, TimestampMixin


class AuditEvent(Base, TimestampMixin):
    """Audit trail entry with before/after snapshots."""

    __tablename__ = "audit_event"

    audit_event_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    actor: Mapped[str | None] = mapped_column(String, nullable=True)
    action: Mapped[str] = mapped_column(String, nullable=False)
    entity_type: Mapped[str] = mapped_column(String, nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String, nullable=True)
    before_json: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    after_json: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    module: Mapped[str | None] = mapped_column(String, nullable=True)
    boutique_id: Mapped[str | None] = mapped_column(String, nullable=True)
    target_emp_id: Mapped[str | None] = mapped_column(String, nullable=True)
    target_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    week_start: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        Index("audit_event_entity_idx", "entity_type", "entity_id"),
    )
