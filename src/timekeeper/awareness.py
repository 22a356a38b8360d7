"""Assemble a session's time breakdown with planner and schedule context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Sequence

from .calendar import CalendarDate, calendar_date, time_of_day
from .planner import Planner
from .schedule import ScheduleCheck
from .sessiontime import ActivityEvent, SessionTimeSummary, TimeSegment, segment, summarize
from .sessiontime.segmenter import DEFAULT_IDLE_THRESHOLD


@dataclass(frozen=True, slots=True)
class IdleGap:
    segment: TimeSegment
    expected: bool
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class SessionAwareness:
    session_start: datetime
    now: datetime
    idle_threshold: timedelta
    segments: tuple[TimeSegment, ...]
    summary: SessionTimeSummary
    last_activity: datetime
    idle_gaps: tuple[IdleGap, ...]
    calendar: CalendarDate
    time_of_day: str
    schedule: ScheduleCheck | None = field(default=None)

    def as_dict(self) -> dict[str, Any]:
        summary = self.summary
        payload: dict[str, Any] = {
            "session_start": self.session_start.isoformat(),
            "now": self.now.isoformat(),
            "idle_threshold_seconds": int(self.idle_threshold.total_seconds()),
            "wall_clock_seconds": int(summary.wall_clock_duration.total_seconds()),
            "uptime_seconds": int(summary.uptime_duration.total_seconds()),
            "semi_downtime_seconds": int(summary.semi_downtime_duration.total_seconds()),
            "current_state": summary.current_state.label,
            "last_activity": self.last_activity.isoformat(),
            "segments": [
                {"kind": seg.kind.value, "start": seg.start.isoformat(), "end": seg.end.isoformat()}
                for seg in self.segments
            ],
            "idle_gaps": [
                {
                    "start": gap.segment.start.isoformat(),
                    "end": gap.segment.end.isoformat(),
                    "duration_seconds": int(gap.segment.duration.total_seconds()),
                    "expected": gap.expected,
                    "reason": gap.reason,
                }
                for gap in self.idle_gaps
            ],
            "calendar": self.calendar.as_dict(),
            "time_of_day": self.time_of_day,
        }
        if self.schedule is not None:
            payload["schedule"] = self.schedule.as_dict()
        return payload


def classify_gap(gap: TimeSegment, planner: Planner | None) -> IdleGap:
    if planner is None:
        return IdleGap(segment=gap, expected=False)
    block = planner.classify(gap.start)
    if block is None:
        return IdleGap(segment=gap, expected=False)
    label = block.description or block.type
    return IdleGap(segment=gap, expected=True, reason=f"{label} ({block.type})")


def build_awareness(
    events: Sequence[ActivityEvent],
    session_start: datetime,
    now: datetime,
    *,
    idle_threshold: timedelta = DEFAULT_IDLE_THRESHOLD,
    planner: Planner | None = None,
    schedule: ScheduleCheck | None = None,
) -> SessionAwareness:
    segments = segment(events, session_start, now, idle_threshold)
    summary = summarize(segments)
    return SessionAwareness(
        session_start=session_start,
        now=now,
        idle_threshold=idle_threshold,
        segments=tuple(segments),
        summary=summary,
        last_activity=events[-1].timestamp if events else session_start,
        idle_gaps=tuple(classify_gap(gap, planner) for gap in summary.idle_gaps),
        calendar=calendar_date(now.date()),
        time_of_day=time_of_day(now),
        schedule=schedule,
    )


__all__ = ["IdleGap", "SessionAwareness", "build_awareness", "classify_gap"]
