"""Session time segmentation and reporting."""

from .activity import ActivityLog, SessionStateFile, parse_timestamp
from .models import ActivityEvent, SegmentKind, SessionState, SessionTimeSummary, TimeSegment
from .reporter import summarize
from .segmenter import DEFAULT_IDLE_THRESHOLD, segment

__all__ = [
    "ActivityEvent",
    "ActivityLog",
    "DEFAULT_IDLE_THRESHOLD",
    "SegmentKind",
    "SessionState",
    "SessionStateFile",
    "SessionTimeSummary",
    "TimeSegment",
    "parse_timestamp",
    "segment",
    "summarize",
]
