from __future__ import annotations

import json
import threading
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from timekeeper.errors import ConcurrentUpdateError, InvalidInputError, NotFoundError
from timekeeper.schedule import InMemoryScheduleStore, JsonScheduleStore, ScheduleTracker, resolve
from timekeeper.schedule.progress import apply_completion, new_schedule


def _record(schedule_id: str = "feature-x", work_item: str = "Feature X"):
    return new_schedule(
        schedule_id=schedule_id,
        work_item=work_item,
        total_days=14,
        total_sessions=12,
        today=date(2025, 11, 4),
    )


def test_json_store_round_trip(tmp_path: Path) -> None:
    store = JsonScheduleStore(tmp_path)
    record = _record()

    store.save(record)

    assert store.get("feature-x") == record
    payload = json.loads((tmp_path / "active" / "feature-x.json").read_text(encoding="utf-8"))
    assert payload["estimated_end_date"] == "2025-11-18"
    assert payload["adjustments"] == []
    assert [item.schedule_id for item in store.list_active()] == ["feature-x"]


def test_json_store_archive_keeps_record_findable(tmp_path: Path) -> None:
    store = JsonScheduleStore(tmp_path)
    record = _record()
    store.save(record)

    store.archive(apply_completion(record, date(2025, 11, 10)))

    assert not (tmp_path / "active" / "feature-x.json").exists()
    assert store.list_active() == []
    assert store.get("feature-x").status == "completed"
    assert [item.schedule_id for item in store.list_history()] == ["feature-x"]


def test_json_store_missing_record(tmp_path: Path) -> None:
    with pytest.raises(NotFoundError):
        JsonScheduleStore(tmp_path).get("nope")


def test_json_store_rejects_corrupt_file(tmp_path: Path) -> None:
    (tmp_path / "active").mkdir()
    (tmp_path / "active" / "bad.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(InvalidInputError):
        JsonScheduleStore(tmp_path).get("bad")


def test_current_pointer(tmp_path: Path) -> None:
    store = JsonScheduleStore(tmp_path)
    with pytest.raises(NotFoundError):
        resolve(store, "current")

    store.save(_record())
    store.set_current("feature-x")

    assert store.current_id() == "feature-x"
    assert resolve(store, "current").schedule_id == "feature-x"
    assert resolve(store, "feature-x").schedule_id == "feature-x"


def test_lock_timeout_raises_concurrent_update(tmp_path: Path) -> None:
    holder = JsonScheduleStore(tmp_path)
    waiter = JsonScheduleStore(tmp_path, lock_timeout=0.1)

    with holder.locked():
        with pytest.raises(ConcurrentUpdateError):
            with waiter.locked():
                pass

    with waiter.locked():
        pass


def test_concurrent_session_updates_are_serialized(tmp_path: Path) -> None:
    clock = lambda: datetime(2025, 11, 4, 10, 0, tzinfo=timezone.utc)  # noqa: E731
    ScheduleTracker(JsonScheduleStore(tmp_path), clock=clock).init("Feature X", 14, 12)

    barrier = threading.Barrier(2)
    errors: list[BaseException] = []

    def worker(hours: float) -> None:
        tracker = ScheduleTracker(JsonScheduleStore(tmp_path), clock=clock)
        barrier.wait()
        try:
            tracker.record_session_complete("current", hours)
        except BaseException as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(hours,)) for hours in (1.0, 2.0)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    record = JsonScheduleStore(tmp_path).get("feature-x")
    assert record.progress.sessions_completed == 2
    assert record.progress.uptime_hours_actual == 3.0


def test_in_memory_store_contract() -> None:
    store = InMemoryScheduleStore(lock_timeout=0.05)
    record = _record()
    store.save(record)
    store.set_current(record.schedule_id)

    assert resolve(store, "current") == record

    store.archive(apply_completion(record, date(2025, 11, 5)))
    assert store.list_active() == []
    assert store.get("feature-x").is_completed

    with store.locked():
        with pytest.raises(ConcurrentUpdateError):
            with store.locked():
                pass
