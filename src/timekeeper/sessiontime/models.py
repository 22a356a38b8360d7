"""Data models for session time tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum


class SegmentKind(str, Enum):
    UPTIME = "uptime"
    SEMI_DOWNTIME = "semi_downtime"

    @property
    def label(self) -> str:
        """Upper-case display label, e.g. ``SEMI-DOWNTIME``."""

        return self.value.upper().replace("_", "-")


@dataclass(frozen=True, slots=True)
class ActivityEvent:
    """A single observed unit of work."""

    timestamp: datetime
    tool: str | None = None


@dataclass(frozen=True, slots=True)
class TimeSegment:
    kind: SegmentKind
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class SessionTimeSummary:
    """Totals for one session; ``wall_clock == uptime + semi_downtime``."""

    wall_clock_duration: timedelta
    uptime_duration: timedelta
    semi_downtime_duration: timedelta
    current_state: SegmentKind
    idle_gaps: tuple[TimeSegment, ...] = field(default_factory=tuple)

    @property
    def uptime_percent(self) -> float:
        return _percent(self.uptime_duration, self.wall_clock_duration)

    @property
    def semi_downtime_percent(self) -> float:
        return _percent(self.semi_downtime_duration, self.wall_clock_duration)


@dataclass(frozen=True, slots=True)
class SessionState:
    """Identity and start instant of the session being observed."""

    session_id: str
    start_time: datetime


def _percent(part: timedelta, whole: timedelta) -> float:
    if whole <= timedelta(0):
        return 0.0
    return part / whole * 100


__all__ = [
    "ActivityEvent",
    "SegmentKind",
    "SessionState",
    "SessionTimeSummary",
    "TimeSegment",
]
