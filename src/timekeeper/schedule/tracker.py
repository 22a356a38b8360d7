"""Store-bound schedule operations."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable

from ..errors import AlreadyActiveError, InvalidInputError
from .models import ScheduleRecord
from .progress import (
    ScheduleCheck,
    apply_adjustment,
    apply_completion,
    apply_note,
    apply_session_complete,
    check_schedule,
    new_schedule,
    unique_schedule_id,
)
from .store import ScheduleStore, resolve

logger = logging.getLogger(__name__)


class ScheduleTracker:
    """Apply schedule lifecycle operations against a store.

    Each mutation is one locked read-modify-write cycle. ``ref`` arguments
    accept a schedule id or ``"current"``.
    """

    def __init__(
        self,
        store: ScheduleStore,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or (lambda: datetime.now().astimezone())

    @property
    def store(self) -> ScheduleStore:
        return self._store

    def _today(self) -> date:
        return self._clock().date()

    def init(
        self,
        work_item: str,
        total_days: int,
        total_sessions: int,
        *,
        avg_session_uptime_minutes: int | None = None,
        total_uptime_hours: float | None = None,
    ) -> ScheduleRecord:
        with self._store.locked():
            active = self._store.list_active()
            wanted = work_item.strip().casefold()
            for existing in active:
                if existing.work_item.casefold() == wanted and not existing.is_completed:
                    raise AlreadyActiveError(
                        f"Work item '{work_item}' already has an active schedule "
                        f"('{existing.schedule_id}', {existing.status})"
                    )
            taken = [record.schedule_id for record in active + self._store.list_history()]
            record = new_schedule(
                schedule_id=unique_schedule_id(work_item, taken),
                work_item=work_item,
                total_days=total_days,
                total_sessions=total_sessions,
                today=self._today(),
                avg_session_uptime_minutes=avg_session_uptime_minutes,
                total_uptime_hours=total_uptime_hours,
            )
            self._store.save(record)
            self._store.set_current(record.schedule_id)
        logger.info("schedule created", extra={"schedule_id": record.schedule_id})
        return record

    def record_session_complete(self, ref: str, actual_uptime_hours: float) -> ScheduleRecord:
        with self._store.locked():
            record = apply_session_complete(resolve(self._store, ref), actual_uptime_hours, self._today())
            self._store.save(record)
        logger.info(
            "session recorded",
            extra={
                "schedule_id": record.schedule_id,
                "sessions_completed": record.progress.sessions_completed,
            },
        )
        return record

    def adjust(self, ref: str, delta_days: int, reason: str) -> ScheduleRecord:
        with self._store.locked():
            record = apply_adjustment(resolve(self._store, ref), delta_days, reason, self._today())
            self._store.save(record)
        logger.info(
            "schedule adjusted",
            extra={"schedule_id": record.schedule_id, "delta_days": delta_days},
        )
        return record

    def add_note(self, ref: str, note: str) -> ScheduleRecord:
        with self._store.locked():
            record = apply_note(resolve(self._store, ref), note)
            self._store.save(record)
        return record

    def complete(self, ref: str) -> ScheduleRecord:
        with self._store.locked():
            record = apply_completion(resolve(self._store, ref), self._today())
            self._store.archive(record)
        logger.info("schedule completed", extra={"schedule_id": record.schedule_id})
        return record

    def update(
        self,
        ref: str,
        *,
        session_uptime: float | None = None,
        adjust_days: int | None = None,
        reason: str | None = None,
        note: str | None = None,
        complete: bool = False,
    ) -> ScheduleRecord:
        """Apply several changes to one record and persist them together.

        Changes run in order: session, adjustment, note, completion. If any of
        them is rejected nothing is written.
        """

        if session_uptime is None and adjust_days is None and note is None and not complete:
            raise InvalidInputError("Nothing to update")
        today = self._today()
        with self._store.locked():
            record = resolve(self._store, ref)
            if session_uptime is not None:
                record = apply_session_complete(record, session_uptime, today)
            if adjust_days is not None:
                record = apply_adjustment(
                    record, adjust_days, reason or f"Timeline adjusted by {adjust_days:+d} days", today
                )
            if note is not None:
                record = apply_note(record, note)
            if complete:
                record = apply_completion(record, today)
                self._store.archive(record)
            else:
                self._store.save(record)
        logger.info(
            "schedule updated",
            extra={
                "schedule_id": record.schedule_id,
                "status": record.status,
                "sessions_completed": record.progress.sessions_completed,
            },
        )
        return record

    def check(self, ref: str) -> ScheduleCheck:
        return check_schedule(resolve(self._store, ref), self._today())


__all__ = ["ScheduleTracker"]
