"""File-backed activity stream and session state."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable

from ..errors import InvalidInputError, NotFoundError
from .models import ActivityEvent, SessionState

logger = logging.getLogger(__name__)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 / RFC 3339 instant.

    Naive values are interpreted in the local timezone so they can be compared
    with the clock source.
    """

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise InvalidInputError(f"Invalid timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        return parsed.astimezone()
    return parsed


class ActivityLog:
    """Append-only JSONL stream of activity events for one session.

    Each line is ``{"ts": "<iso instant>", "tool": "<name>"}``.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> list[ActivityEvent]:
        """Return events in file order.

        A missing file is an empty session. Unparseable lines abort the read
        rather than being skipped.
        """

        if not self._path.exists():
            return []

        events: list[ActivityEvent] = []
        with self._path.open("r", encoding="utf-8") as handle:
            for lineno, line in enumerate(handle, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    payload = json.loads(line)
                except json.JSONDecodeError as exc:
                    raise InvalidInputError(
                        f"{self._path}:{lineno}: malformed activity line"
                    ) from exc
                if not isinstance(payload, dict) or not isinstance(payload.get("ts"), str):
                    raise InvalidInputError(f"{self._path}:{lineno}: activity line has no 'ts'")
                try:
                    timestamp = parse_timestamp(payload["ts"])
                except InvalidInputError as exc:
                    raise InvalidInputError(f"{self._path}:{lineno}: {exc}") from exc
                tool = payload.get("tool")
                events.append(ActivityEvent(timestamp=timestamp, tool=str(tool) if tool else None))
        return events

    def append(self, event: ActivityEvent) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        record: dict[str, Any] = {"ts": event.timestamp.isoformat()}
        if event.tool:
            record["tool"] = event.tool
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")
        logger.debug("activity recorded", extra={"path": str(self._path), "tool": event.tool})

    def extend(self, events: Iterable[ActivityEvent]) -> None:
        for event in events:
            self.append(event)


class SessionStateFile:
    """Reads and writes ``current.json`` describing the open session."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def read(self) -> SessionState:
        if not self._path.exists():
            raise NotFoundError(f"No session state at {self._path}")
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise InvalidInputError(f"Session state {self._path} is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise InvalidInputError(f"Session state {self._path} must be a JSON object")
        start_raw = payload.get("start_time")
        if not isinstance(start_raw, str):
            raise InvalidInputError(f"Session state {self._path} has no start_time")
        start_time = parse_timestamp(start_raw)
        session_id = str(payload.get("session_id") or start_time.strftime("%Y-%m-%d_%H%M"))
        return SessionState(session_id=session_id, start_time=start_time)

    def write(self, state: SessionState) -> None:
        payload = {"session_id": state.session_id, "start_time": state.start_time.isoformat()}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            prefix=f"{self._path.name}.", suffix=".tmp", dir=str(self._path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2)
            os.replace(temp_path, self._path)
        finally:
            if os.path.exists(temp_path):
                os.unlink(temp_path)

    def start(self, clock: Callable[[], datetime]) -> SessionState:
        """Open a new session starting now and persist it."""

        now = clock()
        state = SessionState(session_id=now.strftime("%Y-%m-%d_%H%M"), start_time=now)
        self.write(state)
        logger.info("session started", extra={"session_id": state.session_id})
        return state


__all__ = ["ActivityLog", "SessionStateFile", "parse_timestamp"]
