"""Plain-text rendering for CLI output."""

from __future__ import annotations

from datetime import timedelta

from .awareness import SessionAwareness
from .calendar import CalendarDate
from .schedule import ScheduleCheck, ScheduleRecord

RULE = "-" * 60
MAX_LISTED_GAPS = 5

_PACE_MESSAGES = {
    "ahead": "Ahead of schedule",
    "behind": "Behind schedule - consider an adjustment",
    "on_track": "On track with the estimated timeline",
}


def format_duration(value: timedelta) -> str:
    """Short duration string: ``45s``, ``12m5s``, ``3h20m``, ``2d4h``."""

    seconds = max(int(value.total_seconds()), 0)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m{seconds % 60}s"
    if seconds < 86400:
        return f"{seconds // 3600}h{(seconds % 3600) // 60}m"
    return f"{seconds // 86400}d{(seconds % 86400) // 3600}h"


def render_awareness(awareness: SessionAwareness) -> str:
    summary = awareness.summary
    threshold_minutes = int(awareness.idle_threshold.total_seconds() // 60)
    lines = [
        "Session Time Awareness",
        RULE,
        f"Wall-clock elapsed:  {format_duration(summary.wall_clock_duration)}",
        f"  started {awareness.session_start.strftime('%a %b %d, %Y at %H:%M:%S')}",
        f"Uptime:              {format_duration(summary.uptime_duration)} ({summary.uptime_percent:.0f}%)",
        f"Semi-downtime:       {format_duration(summary.semi_downtime_duration)} "
        f"({summary.semi_downtime_percent:.0f}%, gaps > {threshold_minutes}m)",
        f"Current state:       {summary.current_state.label}",
        f"  last activity {awareness.last_activity.strftime('%H:%M:%S')}, "
        f"{format_duration(awareness.now - awareness.last_activity)} ago",
    ]

    if awareness.idle_gaps:
        lines.append("")
        lines.append(f"Idle periods: {len(awareness.idle_gaps)}")
        for index, gap in enumerate(awareness.idle_gaps[:MAX_LISTED_GAPS], start=1):
            label = f"expected: {gap.reason}" if gap.expected else "unexpected"
            lines.append(
                f"  {index}. {gap.segment.start.strftime('%H:%M')} "
                f"for {format_duration(gap.segment.duration)} ({label})"
            )
        if len(awareness.idle_gaps) > MAX_LISTED_GAPS:
            lines.append(f"  ... and {len(awareness.idle_gaps) - MAX_LISTED_GAPS} more")

    cal = awareness.calendar
    lines.append("")
    lines.append(
        f"Today: {cal.day_of_week} {cal.date.isoformat()}, ISO week {cal.iso_week_number} "
        f"({awareness.time_of_day})"
    )
    if awareness.schedule is not None:
        lines.append(f"Schedule: {render_brief(awareness.schedule)}")
    lines.append(RULE)
    return "\n".join(lines)


def render_created(record: ScheduleRecord) -> str:
    est = record.estimates
    return "\n".join(
        [
            "Schedule created",
            RULE,
            f"Work item:      {record.work_item}",
            f"Schedule id:    {record.schedule_id}",
            f"Start date:     {record.start_date.isoformat()}",
            f"Est. end date:  {record.estimated_end_date.isoformat()}",
            f"Estimates:      {est.total_days} days, {est.total_sessions} sessions, "
            f"{est.total_uptime_hours:g} hours ({est.avg_session_uptime_minutes} min/session)",
            f"Velocity:       ~{record.velocity.planned_sessions_per_week:g} sessions/week",
            RULE,
        ]
    )


def render_brief(check: ScheduleCheck) -> str:
    record = check.record
    return (
        f"{record.work_item}: session {record.progress.current_session_number} of "
        f"{record.estimates.total_sessions} | day {check.days_elapsed + 1} of "
        f"{record.estimates.total_days} | {check.percent_complete:.0f}% complete"
    )


def render_velocity(check: ScheduleCheck) -> str:
    velocity = check.record.velocity
    lines = [
        "Velocity",
        RULE,
        f"Sessions/week:   planned {velocity.planned_sessions_per_week:g}, actual "
        + (f"{velocity.actual_sessions_per_week:g}" if velocity.actual_sessions_per_week is not None else "n/a"),
        f"Hours/session:   planned {velocity.planned_uptime_per_session:g}, actual "
        + (f"{velocity.actual_uptime_per_session:g}" if velocity.actual_uptime_per_session is not None else "n/a"),
    ]
    if check.record.adjustments:
        lines.append("Adjustments:")
        for adjustment in check.record.adjustments:
            lines.append(f"  {adjustment.date.isoformat()}: {adjustment.reason} ({adjustment.adjustment})")
    if check.drift.warning:
        lines.append(f"WARNING: {check.drift.warning}")
    lines.append(RULE)
    return "\n".join(lines)


def render_check(check: ScheduleCheck) -> str:
    record = check.record
    progress = record.progress
    est = record.estimates
    lines = [
        f"Schedule: {record.work_item} [{record.status}]",
        RULE,
        f"Start:           {record.start_date.isoformat()}",
        f"Est. end:        {record.estimated_end_date.isoformat()}",
    ]
    if record.actual_end_date is not None:
        lines.append(f"Actual end:      {record.actual_end_date.isoformat()}")
    lines.extend(
        [
            f"Days elapsed:    {check.days_elapsed} of {est.total_days}",
            f"Days remaining:  {check.days_remaining}",
            f"Sessions:        {progress.sessions_completed} of {est.total_sessions} completed "
            f"(current: {progress.current_session_number})",
            f"Uptime:          {progress.uptime_hours_actual:g} of {est.total_uptime_hours:g} hours",
            f"Complete:        {check.percent_complete:.0f}%",
            f"Pace:            {_PACE_MESSAGES[check.pace]}",
            f"Projection:      {check.drift.projected_end_date.isoformat()} "
            f"({check.drift.projected_days:g} days of work left)",
        ]
    )
    if record.notes:
        lines.append("Notes:")
        lines.extend(f"  - {note}" for note in record.notes)
    if check.drift.warning:
        lines.append(f"WARNING: {check.drift.warning}")
    lines.append(RULE)
    return "\n".join(lines)


def render_calendar(cal: CalendarDate) -> str:
    return (
        f"{cal.date.isoformat()} {cal.day_of_week}, ISO week {cal.iso_week_number} of {cal.iso_year} "
        f"(week starts {cal.week_start.isoformat()})"
    )


__all__ = [
    "format_duration",
    "render_awareness",
    "render_brief",
    "render_calendar",
    "render_check",
    "render_created",
    "render_velocity",
]
