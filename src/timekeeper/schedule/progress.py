"""Pure schedule transitions, drift projection and pace status.

Every ``apply_*`` helper takes a record and returns a new one; nothing here
touches storage.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Literal

from ..errors import ConfigurationError, InvalidInputError, ScheduleCompletedError
from .models import Adjustment, Estimates, Progress, ScheduleRecord, Velocity

PaceStatus = Literal["ahead", "behind", "on_track"]

DEFAULT_SESSION_MINUTES = 60
VELOCITY_PRECISION = 2
UPTIME_PRECISION = 4
PACE_TOLERANCE_PERCENT = 10.0

_SLUG_STRIP = re.compile(r"[^a-z0-9-]+")


def slugify(name: str) -> str:
    slug = _SLUG_STRIP.sub("", name.strip().lower().replace(" ", "-"))
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug or "schedule"


def unique_schedule_id(name: str, existing: Iterable[str]) -> str:
    taken = set(existing)
    base = slugify(name)
    candidate = base
    suffix = 2
    while candidate in taken:
        candidate = f"{base}-{suffix}"
        suffix += 1
    return candidate


def new_schedule(
    *,
    schedule_id: str,
    work_item: str,
    total_days: int,
    total_sessions: int,
    today: date,
    avg_session_uptime_minutes: int | None = None,
    total_uptime_hours: float | None = None,
) -> ScheduleRecord:
    """Build a fresh ``planned`` record starting ``today``."""

    if not work_item or not work_item.strip():
        raise ConfigurationError("Work item name must not be empty")
    if total_days <= 0:
        raise ConfigurationError(f"total_days must be positive, got {total_days}")
    if total_sessions <= 0:
        raise ConfigurationError(f"total_sessions must be positive, got {total_sessions}")
    if total_uptime_hours is not None and total_uptime_hours <= 0:
        raise ConfigurationError(f"total_uptime_hours must be positive, got {total_uptime_hours}")

    if avg_session_uptime_minutes is None:
        if total_uptime_hours is not None:
            avg_session_uptime_minutes = round(total_uptime_hours * 60 / total_sessions)
        else:
            avg_session_uptime_minutes = DEFAULT_SESSION_MINUTES
    if avg_session_uptime_minutes <= 0:
        raise ConfigurationError(
            f"avg_session_uptime_minutes must be positive, got {avg_session_uptime_minutes}"
        )
    if total_uptime_hours is None:
        total_uptime_hours = total_sessions * avg_session_uptime_minutes / 60

    return ScheduleRecord(
        schedule_id=schedule_id,
        work_item=work_item.strip(),
        status="planned",
        start_date=today,
        estimated_end_date=today + timedelta(days=total_days),
        estimates=Estimates(
            total_days=total_days,
            total_sessions=total_sessions,
            total_uptime_hours=round(total_uptime_hours, VELOCITY_PRECISION),
            avg_session_uptime_minutes=avg_session_uptime_minutes,
        ),
        progress=Progress(),
        velocity=Velocity(
            planned_sessions_per_week=round(total_sessions * 7 / total_days, VELOCITY_PRECISION),
            planned_uptime_per_session=round(avg_session_uptime_minutes / 60, VELOCITY_PRECISION),
        ),
    )


def _ensure_open(record: ScheduleRecord) -> None:
    if record.is_completed:
        raise ScheduleCompletedError(
            f"Schedule '{record.schedule_id}' is completed and no longer accepts changes"
        )


def _days_since_start(record: ScheduleRecord, today: date) -> int:
    return max((today - record.start_date).days, 0)


def apply_session_complete(
    record: ScheduleRecord, actual_uptime_hours: float, today: date
) -> ScheduleRecord:
    _ensure_open(record)
    if actual_uptime_hours < 0:
        raise InvalidInputError(f"Session uptime cannot be negative, got {actual_uptime_hours}")
    progress = record.progress
    if progress.sessions_completed >= record.estimates.total_sessions:
        raise InvalidInputError(
            f"All {record.estimates.total_sessions} planned sessions are already recorded; "
            "complete the schedule instead"
        )

    sessions = progress.sessions_completed + 1
    uptime = round(progress.uptime_hours_actual + actual_uptime_hours, UPTIME_PRECISION)
    days_elapsed = max(progress.days_elapsed, _days_since_start(record, today))

    new_progress = progress.model_copy(
        update={
            "sessions_completed": sessions,
            "current_session_number": progress.current_session_number + 1,
            "uptime_hours_actual": uptime,
            "days_elapsed": days_elapsed,
        }
    )
    new_velocity = record.velocity.model_copy(
        update={
            "actual_uptime_per_session": round(uptime / sessions, VELOCITY_PRECISION),
            "actual_sessions_per_week": round(sessions * 7 / max(days_elapsed, 1), VELOCITY_PRECISION),
        }
    )
    status = "in_progress" if record.status == "planned" else record.status
    return record.model_copy(
        update={"progress": new_progress, "velocity": new_velocity, "status": status}
    )


def apply_adjustment(
    record: ScheduleRecord, delta_days: int, reason: str, today: date
) -> ScheduleRecord:
    _ensure_open(record)
    if delta_days == 0:
        raise InvalidInputError("Adjustment must move the end date by at least one day")
    if not reason or not reason.strip():
        raise InvalidInputError("Adjustment reason must not be empty")

    old_end = record.estimated_end_date
    new_end = old_end + timedelta(days=delta_days)
    if new_end < record.start_date:
        raise InvalidInputError(
            f"Adjusted end date {new_end.isoformat()} would precede start {record.start_date.isoformat()}"
        )
    entry = Adjustment(
        date=today,
        reason=reason.strip(),
        adjustment=f"Estimated end {old_end.isoformat()} -> {new_end.isoformat()} ({delta_days:+d} days)",
        revised_estimate=new_end.isoformat(),
    )
    return record.model_copy(
        update={"estimated_end_date": new_end, "adjustments": (*record.adjustments, entry)}
    )


def apply_note(record: ScheduleRecord, note: str) -> ScheduleRecord:
    _ensure_open(record)
    if not note or not note.strip():
        raise InvalidInputError("Note must not be empty")
    return record.model_copy(update={"notes": (*record.notes, note.strip())})


def apply_completion(record: ScheduleRecord, today: date) -> ScheduleRecord:
    _ensure_open(record)
    progress = record.progress.model_copy(
        update={"days_elapsed": max(record.progress.days_elapsed, _days_since_start(record, today))}
    )
    return record.model_copy(
        update={"status": "completed", "actual_end_date": today, "progress": progress}
    )


@dataclass(frozen=True, slots=True)
class DriftReport:
    """Advisory projection of when the remaining sessions will be done."""

    projected_days: float
    projected_end_date: date
    estimated_end_date: date

    @property
    def days_over(self) -> int:
        return max((self.projected_end_date - self.estimated_end_date).days, 0)

    @property
    def is_drifting(self) -> bool:
        return self.days_over > 0

    @property
    def warning(self) -> str | None:
        if not self.is_drifting:
            return None
        return (
            f"Projected completion {self.projected_end_date.isoformat()} is {self.days_over} day(s) "
            f"past the estimated end {self.estimated_end_date.isoformat()}"
        )


def detect_drift(record: ScheduleRecord, today: date) -> DriftReport:
    """Project completion from the remaining sessions and the observed pace.

    ``projected_days = remaining * (actual / planned uptime per session)
    / planned sessions per week * 7``; the ratio is 1 until actual data exists.
    """

    if record.is_completed:
        end = record.actual_end_date or today
        return DriftReport(projected_days=0.0, projected_end_date=end, estimated_end_date=record.estimated_end_date)

    estimates = record.estimates
    planned_per_session = estimates.avg_session_uptime_minutes / 60
    planned_per_week = estimates.total_sessions * 7 / estimates.total_days
    actual = record.velocity.actual_uptime_per_session
    ratio = actual / planned_per_session if actual is not None else 1.0

    projected_days = record.sessions_remaining * ratio / planned_per_week * 7
    return DriftReport(
        projected_days=round(projected_days, VELOCITY_PRECISION),
        projected_end_date=today + timedelta(days=math.ceil(projected_days)),
        estimated_end_date=record.estimated_end_date,
    )


def pace_status(record: ScheduleRecord, days_elapsed: int) -> PaceStatus:
    percent_time = days_elapsed / record.estimates.total_days * 100
    percent_done = record.percent_complete
    if percent_done > percent_time + PACE_TOLERANCE_PERCENT:
        return "ahead"
    if percent_done < percent_time - PACE_TOLERANCE_PERCENT:
        return "behind"
    return "on_track"


@dataclass(frozen=True, slots=True)
class ScheduleCheck:
    """Read-only view of a record as of ``today``."""

    record: ScheduleRecord
    today: date
    days_elapsed: int
    days_remaining: int
    pace: PaceStatus
    drift: DriftReport

    @property
    def percent_complete(self) -> float:
        return self.record.percent_complete

    def as_dict(self) -> dict:
        return {
            "schedule": self.record.to_json_dict(),
            "today": self.today.isoformat(),
            "days_elapsed": self.days_elapsed,
            "days_remaining": self.days_remaining,
            "percent_complete": round(self.percent_complete, 1),
            "pace": self.pace,
            "drift": {
                "projected_days": self.drift.projected_days,
                "projected_end_date": self.drift.projected_end_date.isoformat(),
                "estimated_end_date": self.drift.estimated_end_date.isoformat(),
                "days_over": self.drift.days_over,
                "warning": self.drift.warning,
            },
        }


def check_schedule(record: ScheduleRecord, today: date) -> ScheduleCheck:
    if record.is_completed:
        days_elapsed = record.progress.days_elapsed
    else:
        days_elapsed = max(record.progress.days_elapsed, _days_since_start(record, today))
    return ScheduleCheck(
        record=record,
        today=today,
        days_elapsed=days_elapsed,
        days_remaining=(record.estimated_end_date - today).days,
        pace=pace_status(record, days_elapsed),
        drift=detect_drift(record, today),
    )


__all__ = [
    "DriftReport",
    "PaceStatus",
    "ScheduleCheck",
    "apply_adjustment",
    "apply_completion",
    "apply_note",
    "apply_session_complete",
    "check_schedule",
    "detect_drift",
    "new_schedule",
    "pace_status",
    "slugify",
    "unique_schedule_id",
]
