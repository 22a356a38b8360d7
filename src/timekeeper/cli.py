"""Timekeeper command-line interface."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime, timedelta

from .awareness import SessionAwareness, build_awareness
from .calendar import calendar_date
from .config import TimekeeperSettings, get_settings
from .errors import InvalidInputError, NotFoundError, TimekeeperError, UsageError
from .planner import Planner, load_planner
from .render import (
    render_awareness,
    render_brief,
    render_calendar,
    render_check,
    render_created,
    render_velocity,
)
from .schedule import CURRENT_REF, JsonScheduleStore, ScheduleCheck, ScheduleTracker
from .sessiontime import ActivityEvent, ActivityLog, SessionStateFile, parse_timestamp

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure root logging for the CLI; log lines go to stderr."""

    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def current_time() -> datetime:
    return datetime.now().astimezone()


def load_settings() -> TimekeeperSettings:
    """Fresh settings per invocation so environment changes are picked up."""

    get_settings.cache_clear()
    return get_settings()


def load_tracker(settings: TimekeeperSettings) -> ScheduleTracker:
    store = JsonScheduleStore(settings.schedule_path, lock_timeout=settings.lock_timeout_seconds)
    return ScheduleTracker(store, clock=current_time)


def _emit(payload: dict) -> None:
    print(json.dumps(payload, indent=2))


# -- session time -----------------------------------------------------------


def _load_planner(settings: TimekeeperSettings, planner_id: str | None) -> Planner | None:
    planner_id = planner_id or settings.planner_id
    if not planner_id:
        return None
    return load_planner(settings.planner_paths, planner_id)


def _schedule_context(settings: TimekeeperSettings) -> ScheduleCheck | None:
    tracker = load_tracker(settings)
    try:
        check = tracker.check(CURRENT_REF)
    except NotFoundError:
        return None
    return None if check.record.is_completed else check


def measure_session(
    args: argparse.Namespace,
    settings: TimekeeperSettings,
    *,
    with_schedule: bool = False,
) -> SessionAwareness:
    session_file = SessionStateFile(
        args.session_file if getattr(args, "session_file", None) else settings.session_path / "current.json"
    )
    session_start_raw = getattr(args, "session_start", None)
    activity_path = getattr(args, "activity_log", None)
    if session_start_raw:
        session_start = parse_timestamp(session_start_raw)
        if activity_path is None and session_file.exists():
            activity_path = settings.session_path / "activity" / f"{session_file.read().session_id}.jsonl"
    else:
        state = session_file.read()
        session_start = state.start_time
        if activity_path is None:
            activity_path = settings.session_path / "activity" / f"{state.session_id}.jsonl"

    events = ActivityLog(activity_path).read() if activity_path is not None else []
    now_raw = getattr(args, "now", None)
    now = parse_timestamp(now_raw) if now_raw else current_time()

    threshold_minutes = getattr(args, "idle_threshold_minutes", None)
    if threshold_minutes is None:
        threshold = settings.idle_threshold
    else:
        threshold = timedelta(minutes=threshold_minutes)

    return build_awareness(
        events,
        session_start,
        now,
        idle_threshold=threshold,
        planner=_load_planner(settings, getattr(args, "planner", None)),
        schedule=_schedule_context(settings) if with_schedule else None,
    )


def cmd_session_time_awareness(args: argparse.Namespace) -> int:
    settings = load_settings()
    awareness = measure_session(args, settings, with_schedule=True)
    if args.json:
        _emit(awareness.as_dict())
    else:
        print(render_awareness(awareness))
    return 0


def cmd_record_activity(args: argparse.Namespace) -> int:
    settings = load_settings()
    session_file = SessionStateFile(settings.session_path / "current.json")
    state = session_file.read() if session_file.exists() else session_file.start(current_time)
    timestamp = parse_timestamp(args.at) if args.at else current_time()
    log = ActivityLog(settings.session_path / "activity" / f"{state.session_id}.jsonl")
    log.append(ActivityEvent(timestamp=timestamp, tool=args.tool))
    return 0


# -- schedule ---------------------------------------------------------------


def cmd_schedule_init(args: argparse.Namespace) -> int:
    settings = load_settings()
    tracker = load_tracker(settings)
    record = tracker.init(
        args.name,
        args.days,
        args.sessions,
        avg_session_uptime_minutes=args.avg_session_minutes,
        total_uptime_hours=args.uptime_hours,
    )
    if args.json:
        _emit(record.to_json_dict())
    else:
        print(render_created(record))
    return 0


def cmd_schedule_check(args: argparse.Namespace) -> int:
    settings = load_settings()
    check = load_tracker(settings).check(args.schedule)
    if args.json:
        _emit(check.as_dict())
    elif args.brief:
        print(render_brief(check))
        if check.drift.warning:
            print(f"WARNING: {check.drift.warning}")
    elif args.velocity:
        print(render_velocity(check))
    else:
        print(render_check(check))
    return 0


def _session_uptime_hours(args: argparse.Namespace, settings: TimekeeperSettings) -> float:
    if args.uptime_hours is not None:
        return args.uptime_hours
    if args.uptime_minutes is not None:
        return args.uptime_minutes / 60
    try:
        awareness = measure_session(argparse.Namespace(), settings)
    except NotFoundError as exc:
        raise InvalidInputError(
            "No session to measure uptime from; pass --uptime-hours or --uptime-minutes"
        ) from exc
    hours = awareness.summary.uptime_duration.total_seconds() / 3600
    logger.info("using measured session uptime", extra={"uptime_hours": hours})
    return hours


def cmd_schedule_update(args: argparse.Namespace) -> int:
    if not (args.session_complete or args.adjust_days is not None or args.note or args.complete):
        raise UsageError(
            "no update action given (use --session-complete, --adjust-days, --note or --complete)"
        )

    settings = load_settings()
    record = load_tracker(settings).update(
        args.schedule,
        session_uptime=_session_uptime_hours(args, settings) if args.session_complete else None,
        adjust_days=args.adjust_days,
        reason=args.reason,
        note=args.note or None,
        complete=args.complete,
    )

    if args.json:
        _emit(record.to_json_dict())
    else:
        progress = record.progress
        print(
            f"Schedule '{record.schedule_id}' updated [{record.status}]: "
            f"{progress.sessions_completed}/{record.estimates.total_sessions} sessions, "
            f"{progress.uptime_hours_actual:g}h uptime, est. end {record.estimated_end_date.isoformat()}"
        )
    return 0


def cmd_week_of(args: argparse.Namespace) -> int:
    if args.date:
        try:
            day = date.fromisoformat(args.date)
        except ValueError as exc:
            raise InvalidInputError(f"Invalid date {args.date!r}; expected YYYY-MM-DD") from exc
    else:
        day = current_time().date()
    cal = calendar_date(day)
    if args.json:
        _emit(cal.as_dict())
    else:
        print(render_calendar(cal))
    return 0


# -- entry points -----------------------------------------------------------


class _ArgumentParser(argparse.ArgumentParser):
    """Report command-line mistakes as :class:`UsageError` instead of exiting."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="timekeeper", description="Session time and schedule tracking")
    parser.add_argument("--log-level", default=None, help="Override TIMEKEEPER_LOG_LEVEL")
    sub = parser.add_subparsers(dest="cmd")

    p_aware = sub.add_parser("session-time-awareness", help="Uptime vs. semi-downtime for the current session")
    p_aware.add_argument("--activity-log", help="Path to the session's JSONL activity stream")
    p_aware.add_argument("--session-file", help="Path to the session state JSON (start_time, session_id)")
    p_aware.add_argument("--session-start", help="Session start instant (ISO-8601); overrides the session file")
    p_aware.add_argument("--now", help="Evaluate as of this instant instead of the clock")
    p_aware.add_argument("--idle-threshold-minutes", type=float, default=None)
    p_aware.add_argument("--planner", help="Planner id used to label idle gaps as expected")
    p_aware.add_argument("--json", action="store_true", help="Output JSON")
    p_aware.set_defaults(func=cmd_session_time_awareness)

    p_activity = sub.add_parser("record-activity", help="Append an activity event to the current session")
    p_activity.add_argument("--tool", default=None)
    p_activity.add_argument("--at", default=None, help="Event instant (ISO-8601); defaults to now")
    p_activity.set_defaults(func=cmd_record_activity)

    p_init = sub.add_parser("schedule-init", help="Create a work schedule")
    p_init.add_argument("--name", required=True, help="Work item name")
    p_init.add_argument("--days", type=int, required=True, help="Estimated total days")
    p_init.add_argument("--sessions", type=int, required=True, help="Estimated total sessions")
    sizing = p_init.add_mutually_exclusive_group()
    sizing.add_argument("--avg-session-minutes", type=int, default=None)
    sizing.add_argument("--uptime-hours", type=float, default=None, help="Estimated total uptime hours")
    p_init.add_argument("--json", action="store_true", help="Output JSON")
    p_init.set_defaults(func=cmd_schedule_init)

    p_check = sub.add_parser("schedule-check", help="Show schedule progress and drift")
    p_check.add_argument("schedule", nargs="?", default=CURRENT_REF, help="Schedule id or 'current'")
    view = p_check.add_mutually_exclusive_group()
    view.add_argument("--brief", action="store_true")
    view.add_argument("--velocity", action="store_true")
    view.add_argument("--json", action="store_true", help="Output JSON")
    p_check.set_defaults(func=cmd_schedule_check)

    p_update = sub.add_parser("schedule-update", help="Record progress or adjust a schedule")
    p_update.add_argument("schedule", nargs="?", default=CURRENT_REF, help="Schedule id or 'current'")
    p_update.add_argument("--session-complete", action="store_true")
    uptime = p_update.add_mutually_exclusive_group()
    uptime.add_argument("--uptime-hours", type=float, default=None)
    uptime.add_argument("--uptime-minutes", type=float, default=None)
    p_update.add_argument("--adjust-days", type=int, default=None)
    p_update.add_argument("--reason", default=None)
    p_update.add_argument("--note", default=None)
    p_update.add_argument("--complete", action="store_true")
    p_update.add_argument("--json", action="store_true", help="Output JSON")
    p_update.set_defaults(func=cmd_schedule_update)

    p_week = sub.add_parser("week-of", help="ISO week and weekday for a date")
    p_week.add_argument("date", nargs="?", default=None, help="YYYY-MM-DD (defaults to today)")
    p_week.add_argument("--json", action="store_true", help="Output JSON")
    p_week.set_defaults(func=cmd_week_of)

    return parser


def run(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        if not hasattr(args, "func"):
            parser.print_help()
            return 0
        if args.log_level:
            configure_logging(args.log_level.upper())
        else:
            configure_logging(load_settings().log_level)
        return args.func(args)
    except TimekeeperError as exc:
        message = str(exc).splitlines()[0] if str(exc) else type(exc).__name__
        print(f"error: {message}", file=sys.stderr)
        return exc.exit_code


def main(argv: list[str] | None = None) -> None:
    exit_code = run(argv)
    if exit_code:
        raise SystemExit(exit_code)


def _command(name: str):
    def entry() -> None:
        main([name, *sys.argv[1:]])

    entry.__name__ = name.replace("-", "_")
    return entry


schedule_init = _command("schedule-init")
schedule_check = _command("schedule-check")
schedule_update = _command("schedule-update")
session_time_awareness = _command("session-time-awareness")


if __name__ == "__main__":
    main()
