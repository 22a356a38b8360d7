"""Aggregate time segments into the published session totals."""

from __future__ import annotations

from datetime import timedelta
from typing import Sequence

from ..errors import InvariantViolationError
from .models import SegmentKind, SessionTimeSummary, TimeSegment


def summarize(segments: Sequence[TimeSegment]) -> SessionTimeSummary:
    """Sum segment durations by kind.

    The input must be contiguous and non-overlapping, as produced by
    :func:`timekeeper.sessiontime.segmenter.segment`.
    """

    if not segments:
        return SessionTimeSummary(
            wall_clock_duration=timedelta(0),
            uptime_duration=timedelta(0),
            semi_downtime_duration=timedelta(0),
            current_state=SegmentKind.UPTIME,
        )

    uptime = timedelta(0)
    semi_downtime = timedelta(0)
    previous: TimeSegment | None = None
    for seg in segments:
        if seg.end < seg.start:
            raise InvariantViolationError(
                f"Segment ends ({seg.end.isoformat()}) before it starts ({seg.start.isoformat()})"
            )
        if previous is not None and seg.start != previous.end:
            raise InvariantViolationError(
                f"Segments are not contiguous: {previous.end.isoformat()} -> {seg.start.isoformat()}"
            )
        if seg.kind is SegmentKind.UPTIME:
            uptime += seg.duration
        else:
            semi_downtime += seg.duration
        previous = seg

    wall_clock = segments[-1].end - segments[0].start
    return SessionTimeSummary(
        wall_clock_duration=wall_clock,
        uptime_duration=uptime,
        semi_downtime_duration=semi_downtime,
        current_state=segments[-1].kind,
        idle_gaps=tuple(seg for seg in segments if seg.kind is SegmentKind.SEMI_DOWNTIME),
    )


__all__ = ["summarize"]
