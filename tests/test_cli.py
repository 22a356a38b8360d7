from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from timekeeper import cli

T0 = datetime(2025, 11, 4, 9, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self) -> None:
        self.now = T0

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock(tmp_path: Path, monkeypatch) -> Clock:
    for name in (
        "TIMEKEEPER_IDLE_THRESHOLD_MINUTES",
        "TIMEKEEPER_LOCK_TIMEOUT_SECONDS",
        "TIMEKEEPER_PLANNER_PATHS",
        "TIMEKEEPER_PLANNER_ID",
        "TIMEKEEPER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TIMEKEEPER_DATA_PATH", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)
    fake = Clock()
    monkeypatch.setattr(cli, "current_time", fake)
    return fake


def _json_output(capsys) -> dict:
    return json.loads(capsys.readouterr().out)


def test_schedule_init_and_check(clock: Clock, capsys) -> None:
    assert cli.run(["schedule-init", "--name", "Feature X", "--days", "14", "--sessions", "12"]) == 0
    out = capsys.readouterr().out
    assert "Schedule created" in out
    assert "2025-11-18" in out

    assert cli.run(["schedule-check", "--json"]) == 0
    payload = _json_output(capsys)
    assert payload["schedule"]["schedule_id"] == "feature-x"
    assert payload["pace"] == "on_track"
    assert payload["drift"]["warning"] is None


def test_session_complete_then_brief(clock: Clock, capsys) -> None:
    cli.run(["schedule-init", "--name", "X", "--days", "14", "--sessions", "12"])
    capsys.readouterr()

    assert cli.run(["schedule-update", "--session-complete", "--uptime-hours", "1.5"]) == 0
    assert "1/12 sessions" in capsys.readouterr().out

    assert cli.run(["schedule-check", "x", "--brief"]) == 0
    assert "session 2 of 12" in capsys.readouterr().out


def test_duplicate_init_exits_already_active(clock: Clock, capsys) -> None:
    args = ["schedule-init", "--name", "X", "--days", "14", "--sessions", "12"]
    assert cli.run(args) == 0
    assert cli.run(args) == 2
    assert "already has an active schedule" in capsys.readouterr().err


def test_check_without_schedule_exits_not_found(clock: Clock, capsys) -> None:
    assert cli.run(["schedule-check"]) == 1
    assert capsys.readouterr().err.startswith("error: ")


def test_update_after_completion_exits_completed(clock: Clock, capsys) -> None:
    cli.run(["schedule-init", "--name", "X", "--days", "14", "--sessions", "12"])
    assert cli.run(["schedule-update", "--complete"]) == 0
    assert cli.run(["schedule-update", "x", "--adjust-days", "2"]) == 3


def test_update_requires_an_action(clock: Clock, capsys) -> None:
    assert cli.run(["schedule-update"]) == 64
    assert "no update action" in capsys.readouterr().err


def test_adjust_uses_default_reason(clock: Clock, capsys) -> None:
    cli.run(["schedule-init", "--name", "X", "--days", "14", "--sessions", "12"])
    capsys.readouterr()

    assert cli.run(["schedule-update", "--adjust-days", "3", "--json"]) == 0
    payload = _json_output(capsys)
    assert payload["estimated_end_date"] == "2025-11-21"
    assert payload["adjustments"][0]["reason"] == "Timeline adjusted by +3 days"


def test_awareness_from_explicit_window(clock: Clock, capsys) -> None:
    code = cli.run(
        [
            "session-time-awareness",
            "--session-start",
            "2025-11-04T08:00:00+00:00",
            "--now",
            "2025-11-04T09:00:00+00:00",
            "--json",
        ]
    )

    assert code == 0
    payload = _json_output(capsys)
    assert payload["wall_clock_seconds"] == 3600
    assert payload["uptime_seconds"] == 3600
    assert payload["current_state"] == "UPTIME"


def test_recorded_activity_drives_awareness_and_session_uptime(clock: Clock, capsys) -> None:
    cli.run(["schedule-init", "--name", "X", "--days", "14", "--sessions", "12"])
    for offset in (5, 50):
        at = (T0 + timedelta(minutes=offset)).isoformat()
        assert cli.run(["record-activity", "--tool", "Edit", "--at", at]) == 0
    clock.now = T0 + timedelta(minutes=60)
    capsys.readouterr()

    assert cli.run(["session-time-awareness", "--json"]) == 0
    payload = _json_output(capsys)
    assert payload["wall_clock_seconds"] == 3600
    assert payload["uptime_seconds"] == 15 * 60
    assert payload["semi_downtime_seconds"] == 45 * 60
    assert payload["schedule"]["schedule"]["schedule_id"] == "x"

    assert cli.run(["schedule-update", "--session-complete", "--json"]) == 0
    record = _json_output(capsys)
    assert record["progress"]["uptime_hours_actual"] == 0.25


def test_awareness_text_output(clock: Clock, capsys) -> None:
    cli.run(["record-activity"])
    clock.now = T0 + timedelta(minutes=10)
    capsys.readouterr()

    assert cli.run(["session-time-awareness"]) == 0
    out = capsys.readouterr().out
    assert "Session Time Awareness" in out
    assert "Current state:       UPTIME" in out


def test_awareness_without_session_exits_not_found(clock: Clock, capsys) -> None:
    assert cli.run(["session-time-awareness"]) == 1


def test_week_of(clock: Clock, capsys) -> None:
    assert cli.run(["week-of", "2025-12-31", "--json"]) == 0
    payload = _json_output(capsys)
    assert payload["iso_week_number"] == 1
    assert payload["iso_year"] == 2026
    assert payload["day_of_week"] == "Wednesday"

    assert cli.run(["week-of", "yesterday"]) == 4


def test_invalid_configuration_exits_with_configuration_code(clock: Clock, monkeypatch, capsys) -> None:
    monkeypatch.setenv("TIMEKEEPER_IDLE_THRESHOLD_MINUTES", "0")

    assert cli.run(["week-of", "2025-01-01"]) == 5
    assert "Invalid configuration" in capsys.readouterr().err


def test_main_raises_system_exit_on_error(clock: Clock) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["schedule-check"])
    assert exc.value.code == 1


def test_check_text_views(clock: Clock, capsys) -> None:
    cli.run(["schedule-init", "--name", "X", "--days", "14", "--sessions", "12"])
    cli.run(["schedule-update", "--session-complete", "--uptime-hours", "2", "--note", "slow start"])
    capsys.readouterr()

    assert cli.run(["schedule-check"]) == 0
    out = capsys.readouterr().out
    assert "Schedule: X [in_progress]" in out
    assert "  - slow start" in out
    assert "WARNING: Projected completion" in out

    assert cli.run(["schedule-check", "--velocity"]) == 0
    out = capsys.readouterr().out
    assert "Hours/session:   planned 1, actual 2" in out


def test_rejected_combined_update_saves_nothing(clock: Clock, tmp_path: Path, capsys) -> None:
    cli.run(["schedule-init", "--name", "X", "--days", "14", "--sessions", "12"])

    code = cli.run(["schedule-update", "--session-complete", "--uptime-hours", "1.5", "--adjust-days", "0"])

    assert code == 4
    stored = json.loads((tmp_path / "data" / "schedule" / "active" / "x.json").read_text(encoding="utf-8"))
    assert stored["progress"]["sessions_completed"] == 0
    assert stored["adjustments"] == []


def test_combined_update_with_completion_archives_once(clock: Clock, tmp_path: Path, capsys) -> None:
    cli.run(["schedule-init", "--name", "X", "--days", "14", "--sessions", "12"])
    capsys.readouterr()

    code = cli.run(
        ["schedule-update", "--session-complete", "--uptime-hours", "1", "--note", "wrapped up", "--complete", "--json"]
    )

    assert code == 0
    payload = _json_output(capsys)
    assert payload["status"] == "completed"
    assert payload["progress"]["sessions_completed"] == 1
    assert payload["notes"] == ["wrapped up"]
    assert not (tmp_path / "data" / "schedule" / "active" / "x.json").exists()


def test_measured_uptime_without_session_is_invalid_input(clock: Clock, capsys) -> None:
    cli.run(["schedule-init", "--name", "X", "--days", "14", "--sessions", "12"])
    capsys.readouterr()

    assert cli.run(["schedule-update", "--session-complete"]) == 4
    assert "--uptime-hours" in capsys.readouterr().err


def test_bad_arguments_exit_with_usage_code(clock: Clock, capsys) -> None:
    assert cli.run(["schedule-init", "--name", "X"]) == 64
    assert cli.run(["schedule-update", "--uptime-hours", "1", "--uptime-minutes", "5"]) == 64
    assert "error: " in capsys.readouterr().err
