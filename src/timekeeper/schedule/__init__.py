"""Work-schedule records, persistence and progress tracking."""

from .models import Adjustment, Estimates, Progress, ScheduleRecord, Velocity
from .progress import DriftReport, ScheduleCheck, check_schedule, detect_drift
from .store import CURRENT_REF, InMemoryScheduleStore, JsonScheduleStore, ScheduleStore, resolve
from .tracker import ScheduleTracker

__all__ = [
    "Adjustment",
    "CURRENT_REF",
    "DriftReport",
    "Estimates",
    "InMemoryScheduleStore",
    "JsonScheduleStore",
    "Progress",
    "ScheduleCheck",
    "ScheduleRecord",
    "ScheduleStore",
    "ScheduleTracker",
    "Velocity",
    "check_schedule",
    "detect_drift",
    "resolve",
]
