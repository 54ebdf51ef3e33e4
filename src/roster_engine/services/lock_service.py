"""Schedule day/week locks and week approval."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roster_engine.coverage.dates import require_week_start, week_dates, week_start_for
from roster_engine.database import acquire_advisory_lock
from roster_engine.models import ScheduleLock, ScheduleWeekStatus
from roster_engine.models.base import utcnow
from roster_engine.schemas import LockInfo, WeekLockDetails, WeekStatusInfo
from roster_engine.services.audit import AuditContext, AuditSink, DatabaseAuditSink
from roster_engine.services.state_machine import LockScope, WeekStateMachine, WeekStatus

logger = logging.getLogger(__name__)


class ScheduleLockedError(Exception):
    """Raised when a mutation targets a locked day or week."""

    def __init__(self, code: str, message: str, lock_info: LockInfo | None = None):
        self.code = code
        self.message = message
        self.lock_info = lock_info
        detail = message
        if lock_info is not None:
            detail += f" by {lock_info.locked_by} at {lock_info.locked_at.isoformat()}"
            if lock_info.reason:
                detail += f" ({lock_info.reason})"
        super().__init__(detail)


class ScheduleLockService:
    """Service for week approval and day/week locks, per location.

    Operations:
    - approve_week / unapprove_week: DRAFT <-> APPROVED
    - lock_week / unlock_week: week lock, only on an APPROVED week
    - lock_day / unlock_day: day lock, independent of week status
    - assert_schedule_editable: gate for every schedule mutation

    Locks are toggled inactive on unlock, never deleted. Every transition
    writes one audit record; no-ops write none.
    """

    def __init__(
        self,
        session: AsyncSession,
        audit: AuditSink | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.audit = audit or DatabaseAuditSink(session)
        self._clock = clock

    # ----- week status -----

    async def get_week_status(self, week_start: date, boutique_id: str) -> WeekStatusInfo:
        """Week status, lazily created as DRAFT on first query."""
        row = await self._get_or_create_week_status(week_start, boutique_id)
        return WeekStatusInfo.model_validate(row)

    async def approve_week(
        self,
        week_start: date,
        boutique_id: str,
        actor: str,
    ) -> WeekStatusInfo:
        """DRAFT -> APPROVED. Approving an approved week is a no-op."""
        await acquire_advisory_lock(self.session, _week_status_key(week_start, boutique_id))
        row = await self._get_or_create_week_status(week_start, boutique_id)
        if row.status == WeekStatus.APPROVED:
            return WeekStatusInfo.model_validate(row)

        WeekStateMachine.validate_transition(row.status, WeekStatus.APPROVED.value)
        before = {"status": row.status}
        row.status = WeekStatus.APPROVED.value
        row.approved_by = actor
        row.approved_at = self._clock()
        await self.session.flush()

        await self.audit.write(
            actor,
            "APPROVE_WEEK",
            "ScheduleWeekStatus",
            _week_entity_id(week_start, boutique_id),
            before,
            {"status": row.status, "approved_at": row.approved_at},
            context=_week_context(week_start, boutique_id),
        )
        logger.info("Week %s approved for %s by %s", week_start, boutique_id, actor)
        return WeekStatusInfo.model_validate(row)

    async def unapprove_week(
        self,
        week_start: date,
        boutique_id: str,
        actor: str,
        reason: str | None = None,
    ) -> WeekStatusInfo:
        """APPROVED -> DRAFT. Fails with WEEK_LOCKED while the week lock is active."""
        await acquire_advisory_lock(self.session, _week_status_key(week_start, boutique_id))
        row = await self._get_or_create_week_status(week_start, boutique_id)
        locked = await self.is_week_locked(week_start, boutique_id)
        if row.status == WeekStatus.DRAFT and not locked:
            return WeekStatusInfo.model_validate(row)

        WeekStateMachine.validate_unapprove(row.status, locked)
        before = {"status": row.status, "approved_by": row.approved_by}
        row.status = WeekStatus.DRAFT.value
        row.approved_by = None
        row.approved_at = None
        await self.session.flush()

        await self.audit.write(
            actor,
            "UNAPPROVE_WEEK",
            "ScheduleWeekStatus",
            _week_entity_id(week_start, boutique_id),
            before,
            {"status": row.status},
            reason=reason,
            context=_week_context(week_start, boutique_id),
        )
        logger.info("Week %s unapproved for %s by %s", week_start, boutique_id, actor)
        return WeekStatusInfo.model_validate(row)

    # ----- locks -----

    async def lock_week(
        self,
        week_start: date,
        boutique_id: str,
        actor: str,
        reason: str | None = None,
    ) -> LockInfo:
        """Lock an APPROVED week. Locking a locked week returns the existing lock."""
        require_week_start(week_start)
        # Serialized with approve/unapprove on the week-status key
        await acquire_advisory_lock(self.session, _week_status_key(week_start, boutique_id))
        status = await self._get_or_create_week_status(week_start, boutique_id)
        WeekStateMachine.validate_lock(status.status)
        return await self._lock(LockScope.WEEK, week_start, boutique_id, actor, reason)

    async def unlock_week(
        self,
        week_start: date,
        boutique_id: str,
        actor: str,
    ) -> LockInfo | None:
        """Release the week lock. Approval status is left unchanged."""
        require_week_start(week_start)
        return await self._unlock(LockScope.WEEK, week_start, boutique_id, actor)

    async def lock_day(
        self,
        on_date: date,
        boutique_id: str,
        actor: str,
        reason: str | None = None,
    ) -> LockInfo:
        return await self._lock(LockScope.DAY, on_date, boutique_id, actor, reason)

    async def unlock_day(
        self,
        on_date: date,
        boutique_id: str,
        actor: str,
    ) -> LockInfo | None:
        return await self._unlock(LockScope.DAY, on_date, boutique_id, actor)

    async def is_week_locked(self, week_start: date, boutique_id: str) -> bool:
        return await self._get_active_lock(LockScope.WEEK, week_start, boutique_id) is not None

    async def is_day_locked(self, on_date: date, boutique_id: str) -> bool:
        return await self._get_active_lock(LockScope.DAY, on_date, boutique_id) is not None

    async def get_week_lock_info(self, week_start: date, boutique_id: str) -> LockInfo | None:
        lock = await self._get_active_lock(LockScope.WEEK, week_start, boutique_id)
        return LockInfo.model_validate(lock) if lock is not None else None

    async def get_day_lock_info(self, on_date: date, boutique_id: str) -> LockInfo | None:
        lock = await self._get_active_lock(LockScope.DAY, on_date, boutique_id)
        return LockInfo.model_validate(lock) if lock is not None else None

    async def get_week_lock_details(self, week_start: date, boutique_id: str) -> WeekLockDetails:
        """Week lock (if any) and the day-locked dates of the week."""
        days = week_dates(week_start)
        result = await self.session.execute(
            select(ScheduleLock.scope_value).where(
                ScheduleLock.scope_type == LockScope.DAY.value,
                ScheduleLock.scope_value.in_([d.isoformat() for d in days]),
                ScheduleLock.boutique_id == boutique_id,
                ScheduleLock.is_active.is_(True),
            )
        )
        locked = set(result.scalars().all())
        return WeekLockDetails(
            week_start=week_start,
            boutique_id=boutique_id,
            week_lock=await self.get_week_lock_info(week_start, boutique_id),
            locked_days=[d for d in days if d.isoformat() in locked],
        )

    async def assert_schedule_editable(
        self,
        boutique_id: str,
        dates: Iterable[date] | None = None,
        week_start: date | None = None,
    ) -> None:
        """Raise ScheduleLockedError if any target is locked.

        With week_start only the week lock is checked. With dates, the week
        lock of every containing week is checked before any day lock.
        """
        if week_start is not None:
            lock_info = await self.get_week_lock_info(require_week_start(week_start), boutique_id)
            if lock_info is not None:
                raise ScheduleLockedError("WEEK_LOCKED", "Schedule week is locked", lock_info)
            return

        targets = sorted(set(dates or ()))
        for ws in sorted({week_start_for(d) for d in targets}):
            lock_info = await self.get_week_lock_info(ws, boutique_id)
            if lock_info is not None:
                raise ScheduleLockedError("WEEK_LOCKED", "Schedule week is locked", lock_info)
        for d in targets:
            lock_info = await self.get_day_lock_info(d, boutique_id)
            if lock_info is not None:
                raise ScheduleLockedError("DAY_LOCKED", "Schedule day is locked", lock_info)

    # ----- internals -----

    async def _lock(
        self,
        scope: LockScope,
        target: date,
        boutique_id: str,
        actor: str,
        reason: str | None,
    ) -> LockInfo:
        await acquire_advisory_lock(self.session, _lock_key(scope, target, boutique_id))
        existing = await self._get_active_lock(scope, target, boutique_id)
        if existing is not None:
            logger.debug("%s %s already locked for %s", scope.value, target, boutique_id)
            return LockInfo.model_validate(existing)

        lock = ScheduleLock(
            scope_type=scope.value,
            scope_value=target.isoformat(),
            boutique_id=boutique_id,
            is_active=True,
            reason=reason,
            locked_by=actor,
            locked_at=self._clock(),
            revoked_by=None,
            revoked_at=None,
        )
        self.session.add(lock)
        await self.session.flush()
        info = LockInfo.model_validate(lock)

        await self.audit.write(
            actor,
            f"LOCK_{scope.value}",
            "ScheduleLock",
            str(lock.schedule_lock_id),
            {"locked": False},
            {"locked": True, "scope_value": lock.scope_value, "locked_at": lock.locked_at},
            reason=reason,
            context=_lock_context(scope, target, boutique_id),
        )
        logger.info("Locked %s %s for %s by %s", scope.value, target, boutique_id, actor)
        return info

    async def _unlock(
        self,
        scope: LockScope,
        target: date,
        boutique_id: str,
        actor: str,
    ) -> LockInfo | None:
        await acquire_advisory_lock(self.session, _lock_key(scope, target, boutique_id))
        result = await self.session.execute(
            self._active_lock_query(scope, target, boutique_id)
        )
        locks = list(result.scalars().all())
        if not locks:
            return None

        revoked_at = self._clock()
        for lock in locks:
            lock.is_active = False
            lock.revoked_by = actor
            lock.revoked_at = revoked_at
        await self.session.flush()

        released = locks[0]
        await self.audit.write(
            actor,
            f"UNLOCK_{scope.value}",
            "ScheduleLock",
            str(released.schedule_lock_id),
            {"locked": True, "locked_by": released.locked_by, "locked_at": released.locked_at},
            {"locked": False, "revoked_at": revoked_at},
            context=_lock_context(scope, target, boutique_id),
        )
        logger.info("Unlocked %s %s for %s by %s", scope.value, target, boutique_id, actor)
        return LockInfo.model_validate(released)

    def _active_lock_query(self, scope: LockScope, target: date, boutique_id: str):
        return (
            select(ScheduleLock)
            .where(
                ScheduleLock.scope_type == scope.value,
                ScheduleLock.scope_value == target.isoformat(),
                ScheduleLock.boutique_id == boutique_id,
                ScheduleLock.is_active.is_(True),
            )
            .order_by(ScheduleLock.locked_at)
        )

    async def _get_active_lock(
        self,
        scope: LockScope,
        target: date,
        boutique_id: str,
    ) -> ScheduleLock | None:
        result = await self.session.execute(
            self._active_lock_query(scope, target, boutique_id).limit(1)
        )
        return result.scalar_one_or_none()

    async def _get_or_create_week_status(
        self,
        week_start: date,
        boutique_id: str,
    ) -> ScheduleWeekStatus:
        require_week_start(week_start)
        row = await self.session.get(ScheduleWeekStatus, (week_start, boutique_id))
        if row is None:
            row = ScheduleWeekStatus(
                week_start=week_start,
                boutique_id=boutique_id,
                status=WeekStatus.DRAFT.value,
                approved_by=None,
                approved_at=None,
            )
            self.session.add(row)
            await self.session.flush()
            logger.debug("Created DRAFT status for week %s at %s", week_start, boutique_id)
        return row


def _lock_key(scope: LockScope, target: date, boutique_id: str) -> str:
    return f"lock:{scope.value}:{target.isoformat()}:{boutique_id}"


def _week_status_key(week_start: date, boutique_id: str) -> str:
    return f"week-status:{week_start.isoformat()}:{boutique_id}"


def _week_entity_id(week_start: date, boutique_id: str) -> str:
    return f"{week_start.isoformat()}:{boutique_id}"


def _week_context(week_start: date, boutique_id: str) -> AuditContext:
    return AuditContext(module="SCHEDULE", boutique_id=boutique_id, week_start=week_start)


def _lock_context(scope: LockScope, target: date, boutique_id: str) -> AuditContext:
    if scope == LockScope.WEEK:
        return _week_context(target, boutique_id)
    return AuditContext(
        module="SCHEDULE",
        boutique_id=boutique_id,
        target_date=target,
        week_start=week_start_for(target),
    )
