from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from timekeeper.awareness import build_awareness
from timekeeper.planner import Planner, TimeBlock
from timekeeper.schedule import check_schedule
from timekeeper.schedule.progress import new_schedule
from timekeeper.sessiontime import ActivityEvent, SegmentKind

# Monday
START = datetime(2025, 1, 6, 11, 0, tzinfo=timezone.utc)


def _at(hour: int, minute: int) -> datetime:
    return START.replace(hour=hour, minute=minute)


def _planner() -> Planner:
    return Planner(
        id="sample",
        daily=[TimeBlock(start="12:00", end="13:00", type="meal", description="Lunch")],
    )


def test_idle_gap_inside_planner_block_is_expected() -> None:
    events = [ActivityEvent(timestamp=_at(h, m)) for h, m in ((11, 30), (11, 55), (12, 5), (13, 10))]

    awareness = build_awareness(events, START, _at(13, 20), planner=_planner())

    assert [gap.expected for gap in awareness.idle_gaps] == [True]
    assert awareness.idle_gaps[0].reason == "Lunch (meal)"
    assert awareness.idle_gaps[0].segment.duration == timedelta(minutes=65)
    assert awareness.summary.current_state is SegmentKind.UPTIME
    assert awareness.last_activity == _at(13, 10)


def test_idle_gap_without_planner_is_unexpected() -> None:
    events = [ActivityEvent(timestamp=_at(11, 5))]

    awareness = build_awareness(events, START, _at(14, 0))

    assert len(awareness.idle_gaps) == 1
    assert awareness.idle_gaps[0].expected is False
    assert awareness.idle_gaps[0].reason is None
    assert awareness.summary.current_state is SegmentKind.SEMI_DOWNTIME


def test_as_dict_payload() -> None:
    record = new_schedule(
        schedule_id="x", work_item="X", total_days=14, total_sessions=12, today=date(2025, 1, 1)
    )
    awareness = build_awareness(
        [ActivityEvent(timestamp=_at(11, 10), tool="Edit")],
        START,
        _at(11, 20),
        idle_threshold=timedelta(minutes=5),
        schedule=check_schedule(record, date(2025, 1, 6)),
    )

    payload = awareness.as_dict()

    assert payload["wall_clock_seconds"] == 20 * 60
    assert payload["uptime_seconds"] + payload["semi_downtime_seconds"] == 20 * 60
    assert payload["semi_downtime_seconds"] == 20 * 60
    assert payload["current_state"] == "SEMI-DOWNTIME"
    assert payload["idle_threshold_seconds"] == 300
    assert payload["calendar"]["day_of_week"] == "Monday"
    assert payload["time_of_day"] == "morning"
    assert payload["schedule"]["schedule"]["schedule_id"] == "x"
