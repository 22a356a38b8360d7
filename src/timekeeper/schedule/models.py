"""Schedule record models."""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ScheduleStatus = Literal["planned", "in_progress", "completed"]

STATUS_ORDER: dict[str, int] = {"planned": 0, "in_progress": 1, "completed": 2}


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Estimates(_Frozen):
    """Plan fixed at creation time."""

    total_days: int = Field(..., gt=0)
    total_sessions: int = Field(..., gt=0)
    total_uptime_hours: float = Field(..., ge=0)
    avg_session_uptime_minutes: int = Field(..., gt=0)


class Progress(_Frozen):
    days_elapsed: int = Field(default=0, ge=0)
    sessions_completed: int = Field(default=0, ge=0)
    uptime_hours_actual: float = Field(default=0.0, ge=0)
    current_session_number: int = Field(default=1, ge=1)


class Velocity(_Frozen):
    """Planned vs. actual pace; per-session uptime figures are in hours."""

    planned_sessions_per_week: float = Field(..., ge=0)
    planned_uptime_per_session: float = Field(..., gt=0)
    actual_uptime_per_session: float | None = None
    actual_sessions_per_week: float | None = None


class Adjustment(_Frozen):
    date: dt.date
    reason: str
    adjustment: str
    revised_estimate: str = ""


class ScheduleRecord(_Frozen):
    """One tracked work item's plan and progress.

    Records are immutable values; the progress helpers return updated copies.
    """

    schedule_id: str = Field(..., description="Unique, immutable identifier.")
    work_item: str = Field(..., description="Name of the tracked work item.")
    status: ScheduleStatus = "planned"
    start_date: dt.date
    estimated_end_date: dt.date
    actual_end_date: dt.date | None = None
    estimates: Estimates
    progress: Progress = Field(default_factory=Progress)
    velocity: Velocity
    adjustments: tuple[Adjustment, ...] = ()
    notes: tuple[str, ...] = ()

    @field_validator("schedule_id", "work_item")
    @classmethod
    def _require_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("schedule_id and work_item must not be empty")
        return normalized

    @field_validator("adjustments", "notes", mode="before")
    @classmethod
    def _ensure_sequence(cls, value):
        if value is None:
            return ()
        return value

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def sessions_remaining(self) -> int:
        return max(self.estimates.total_sessions - self.progress.sessions_completed, 0)

    @property
    def percent_complete(self) -> float:
        return self.progress.sessions_completed / self.estimates.total_sessions * 100

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json")


__all__ = [
    "Adjustment",
    "Estimates",
    "Progress",
    "STATUS_ORDER",
    "ScheduleRecord",
    "ScheduleStatus",
    "Velocity",
]
