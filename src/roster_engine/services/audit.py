"""Audit sink for schedule transitions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from roster_engine.models import AuditEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditContext:
    """Optional indexing fields attached to an audit record."""

    module: str | None = None
    boutique_id: str | None = None
    target_emp_id: str | None = None
    target_date: date | None = None
    week_start: date | None = None


class AuditSink(Protocol):
    """Destination for before/after audit records."""

    async def write(
        self,
        actor: str | None,
        action: str,
        entity_type: str,
        entity_id: str | None,
        before: dict[str, Any] | None,
        after: dict[str, Any] | None,
        reason: str | None = None,
        context: AuditContext | None = None,
    ) -> None:
        ...


def _jsonable(data: dict[str, Any] | None) -> dict[str, Any] | None:
    """Dates, UUIDs and enums become strings."""
    if data is None:
        return None
    return json.loads(json.dumps(data, default=str))


class DatabaseAuditSink:
    """Stores audit records as AuditEvent rows in the caller's transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def write(
        self,
        actor: str | None,
        action: str,
        entity_type: str,
        entity_id: str | None,
        before: dict[str, Any] | None,
        after: dict[str, Any] | None,
        reason: str | None = None,
        context: AuditContext | None = None,
    ) -> None:
        context = context or AuditContext()
        event = AuditEvent(
            actor=actor,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            before_json=_jsonable(before),
            after_json=_jsonable(after),
            reason=reason,
            module=context.module,
            boutique_id=context.boutique_id,
            target_emp_id=context.target_emp_id,
            target_date=context.target_date,
            week_start=context.week_start,
        )
        self.session.add(event)
        await self.session.flush()
        logger.debug("Audit %s on %s %s by %s", action, entity_type, entity_id, actor)
