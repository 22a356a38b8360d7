"""Partition a session's wall-clock window into uptime and semi-downtime."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Sequence

from ..errors import ConfigurationError, InvalidInputError
from .models import ActivityEvent, SegmentKind, TimeSegment

DEFAULT_IDLE_THRESHOLD = timedelta(minutes=30)


def _validate(
    events: Sequence[ActivityEvent],
    session_start: datetime,
    now: datetime,
    idle_threshold: timedelta,
) -> None:
    if idle_threshold <= timedelta(0):
        raise ConfigurationError(f"Idle threshold must be positive, got {idle_threshold}")
    if now < session_start:
        raise InvalidInputError(
            f"now ({now.isoformat()}) is before session start ({session_start.isoformat()})"
        )
    if not events:
        return
    if events[0].timestamp < session_start:
        raise InvalidInputError(
            f"First activity ({events[0].timestamp.isoformat()}) precedes session start "
            f"({session_start.isoformat()})"
        )
    for index in range(1, len(events)):
        if events[index].timestamp < events[index - 1].timestamp:
            raise InvalidInputError(
                f"Activity #{index} ({events[index].timestamp.isoformat()}) is earlier than "
                f"activity #{index - 1} ({events[index - 1].timestamp.isoformat()})"
            )
    if events[-1].timestamp > now:
        raise InvalidInputError(
            f"Last activity ({events[-1].timestamp.isoformat()}) is after now ({now.isoformat()})"
        )


def segment(
    events: Sequence[ActivityEvent],
    session_start: datetime,
    now: datetime,
    idle_threshold: timedelta = DEFAULT_IDLE_THRESHOLD,
) -> list[TimeSegment]:
    """Split ``[session_start, now]`` into contiguous segments.

    Every gap between consecutive boundary points (session start, each event,
    now) longer than ``idle_threshold`` is semi-downtime; shorter or equal gaps
    are uptime. Adjacent segments of the same kind are merged. A session with
    no recorded activity is a single uptime segment.
    """

    _validate(events, session_start, now, idle_threshold)

    if not events:
        return [TimeSegment(SegmentKind.UPTIME, session_start, now)]

    points = [session_start, *(event.timestamp for event in events), now]
    segments: list[TimeSegment] = []
    for prev, nxt in zip(points, points[1:]):
        if nxt == prev:
            continue
        kind = SegmentKind.SEMI_DOWNTIME if nxt - prev > idle_threshold else SegmentKind.UPTIME
        if segments and segments[-1].kind is kind:
            segments[-1] = TimeSegment(kind, segments[-1].start, nxt)
        else:
            segments.append(TimeSegment(kind, prev, nxt))

    if not segments:
        # session_start == every event == now
        segments.append(TimeSegment(SegmentKind.UPTIME, session_start, now))
    return segments


__all__ = ["DEFAULT_IDLE_THRESHOLD", "segment"]
