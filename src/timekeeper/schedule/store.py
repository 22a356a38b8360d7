"""Persistence for schedule records."""

from __future__ import annotations

import errno
import fcntl
import json
import logging
import os
import tempfile
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Protocol

from pydantic import ValidationError

from ..errors import ConcurrentUpdateError, InvalidInputError, NotFoundError
from .models import ScheduleRecord

logger = logging.getLogger(__name__)

CURRENT_REF = "current"
DEFAULT_LOCK_TIMEOUT_SECONDS = 5.0
_LOCK_POLL_SECONDS = 0.05


class ScheduleStore(Protocol):
    """Minimal store API used by the schedule tracker."""

    def locked(self) -> Any:
        ...

    def get(self, schedule_id: str) -> ScheduleRecord:
        ...

    def list_active(self) -> list[ScheduleRecord]:
        ...

    def list_history(self) -> list[ScheduleRecord]:
        ...

    def save(self, record: ScheduleRecord) -> None:
        ...

    def archive(self, record: ScheduleRecord) -> None:
        ...

    def current_id(self) -> str | None:
        ...

    def set_current(self, schedule_id: str) -> None:
        ...


def resolve(store: ScheduleStore, ref: str) -> ScheduleRecord:
    """Look up a record by id, or the store's current record for ``"current"``."""

    if ref == CURRENT_REF:
        schedule_id = store.current_id()
        if schedule_id is None:
            raise NotFoundError("No current schedule; use schedule-init to create one")
        return store.get(schedule_id)
    return store.get(ref)


def _atomic_write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(prefix=f"{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as file_handle:
            json.dump(payload, file_handle, indent=2)
            file_handle.write("\n")
        os.replace(temp_path, path)
    finally:
        if os.path.exists(temp_path):
            os.unlink(temp_path)


class JsonScheduleStore:
    """One JSON file per schedule under ``root``.

    Layout::

        root/active/<schedule_id>.json
        root/history/<schedule_id>.json
        root/current.json
        root/.schedule.lock

    Writes go through a temp file and ``os.replace``; read-modify-write cycles
    run inside :meth:`locked`, an exclusive ``flock`` with a bounded wait.
    """

    def __init__(self, root: Path, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS) -> None:
        self._root = Path(root)
        self._lock_timeout = lock_timeout
        self._active_dir = self._root / "active"
        self._history_dir = self._root / "history"
        self._current_path = self._root / "current.json"
        self._lock_path = self._root / ".schedule.lock"

    @property
    def root(self) -> Path:
        return self._root

    @contextmanager
    def locked(self) -> Iterator[None]:
        self._root.mkdir(parents=True, exist_ok=True)
        handle = open(self._lock_path, "a+", encoding="utf-8")
        try:
            deadline = time.monotonic() + self._lock_timeout
            attempts = 0
            while True:
                try:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except OSError as exc:
                    if exc.errno not in (errno.EAGAIN, errno.EACCES):
                        raise
                    attempts += 1
                    if time.monotonic() >= deadline:
                        logger.warning(
                            "schedule store lock timed out",
                            extra={"lock_path": str(self._lock_path), "attempts": attempts},
                        )
                        raise ConcurrentUpdateError(
                            f"Timed out after {self._lock_timeout:g}s waiting for {self._lock_path}"
                        ) from exc
                    time.sleep(_LOCK_POLL_SECONDS)
            logger.debug("schedule store locked", extra={"lock_path": str(self._lock_path)})
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        finally:
            handle.close()

    def _load(self, path: Path) -> ScheduleRecord:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise InvalidInputError(f"Schedule file {path} is not valid JSON: {exc}") from exc
        try:
            return ScheduleRecord.model_validate(payload)
        except ValidationError as exc:
            raise InvalidInputError(f"Schedule file {path} failed validation: {exc}") from exc

    def _load_dir(self, directory: Path) -> list[ScheduleRecord]:
        if not directory.exists():
            return []
        return [self._load(path) for path in sorted(directory.glob("*.json"))]

    def get(self, schedule_id: str) -> ScheduleRecord:
        for directory in (self._active_dir, self._history_dir):
            path = directory / f"{schedule_id}.json"
            if path.exists():
                return self._load(path)
        raise NotFoundError(f"Schedule '{schedule_id}' not found")

    def list_active(self) -> list[ScheduleRecord]:
        return self._load_dir(self._active_dir)

    def list_history(self) -> list[ScheduleRecord]:
        return self._load_dir(self._history_dir)

    def save(self, record: ScheduleRecord) -> None:
        path = self._active_dir / f"{record.schedule_id}.json"
        _atomic_write_json(path, record.to_json_dict())
        logger.info("schedule saved", extra={"schedule_id": record.schedule_id, "status": record.status})

    def archive(self, record: ScheduleRecord) -> None:
        _atomic_write_json(self._history_dir / f"{record.schedule_id}.json", record.to_json_dict())
        (self._active_dir / f"{record.schedule_id}.json").unlink(missing_ok=True)
        logger.info("schedule archived", extra={"schedule_id": record.schedule_id})

    def current_id(self) -> str | None:
        if not self._current_path.exists():
            return None
        try:
            payload = json.loads(self._current_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise InvalidInputError(f"{self._current_path} is not valid JSON") from exc
        value = payload.get("schedule_id") if isinstance(payload, dict) else None
        return str(value) if value else None

    def set_current(self, schedule_id: str) -> None:
        _atomic_write_json(self._current_path, {"schedule_id": schedule_id})


class InMemoryScheduleStore:
    """Dictionary-backed store with the same locking contract, for tests and embedding."""

    def __init__(self, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS) -> None:
        self._lock_timeout = lock_timeout
        self._lock = threading.Lock()
        self._active: dict[str, dict[str, Any]] = {}
        self._history: dict[str, dict[str, Any]] = {}
        self._current: str | None = None

    @contextmanager
    def locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise ConcurrentUpdateError(
                f"Timed out after {self._lock_timeout:g}s waiting for the schedule store"
            )
        try:
            yield
        finally:
            self._lock.release()

    def get(self, schedule_id: str) -> ScheduleRecord:
        payload = self._active.get(schedule_id) or self._history.get(schedule_id)
        if payload is None:
            raise NotFoundError(f"Schedule '{schedule_id}' not found")
        return ScheduleRecord.model_validate(payload)

    def list_active(self) -> list[ScheduleRecord]:
        return [ScheduleRecord.model_validate(self._active[key]) for key in sorted(self._active)]

    def list_history(self) -> list[ScheduleRecord]:
        return [ScheduleRecord.model_validate(self._history[key]) for key in sorted(self._history)]

    def save(self, record: ScheduleRecord) -> None:
        self._active[record.schedule_id] = record.to_json_dict()

    def archive(self, record: ScheduleRecord) -> None:
        self._history[record.schedule_id] = record.to_json_dict()
        self._active.pop(record.schedule_id, None)

    def current_id(self) -> str | None:
        return self._current

    def set_current(self, schedule_id: str) -> None:
        self._current = schedule_id


__all__ = [
    "CURRENT_REF",
    "InMemoryScheduleStore",
    "JsonScheduleStore",
    "ScheduleStore",
    "resolve",
]
