"""Planner models describing recurring expected downtime."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class TimeBlock(BaseModel):
    """A recurring block of the day, e.g. ``23:00``-``07:00`` sleep."""

    start: str = Field(..., description="Block start as HH:MM (24h).")
    end: str = Field(..., description="Block end as HH:MM (24h); may wrap past midnight.")
    type: str = Field(default="flex", description="Block category such as sleep, meal, work.")
    description: str = Field(default="", description="Human-friendly description.")

    @field_validator("start", "end", mode="before")
    @classmethod
    def _validate_clock_time(cls, value: Any) -> str:
        if isinstance(value, int) and not isinstance(value, bool):
            # YAML 1.1 reads unquoted 23:00 as the sexagesimal integer 1380
            value = f"{value // 60}:{value % 60}"
        text = str(value).strip()
        parts = text.split(":")
        if len(parts) != 2 or not all(part.isdigit() for part in parts):
            raise ValueError(f"Time {value!r} must be HH:MM")
        hours, minutes = int(parts[0]), int(parts[1])
        if not (0 <= hours <= 23 and 0 <= minutes <= 59):
            raise ValueError(f"Time {value!r} is out of range")
        return f"{hours:02d}:{minutes:02d}"

    def contains(self, minute_of_day: int) -> bool:
        start = _to_minutes(self.start)
        end = _to_minutes(self.end)
        if end < start:
            return minute_of_day >= start or minute_of_day < end
        return start <= minute_of_day < end


class Planner(BaseModel):
    """Recurring daily and weekly blocks for one person."""

    id: str = Field(..., description="Unique identifier for the planner.")
    title: str = Field(default="", description="Display title.")
    daily: list[TimeBlock] = Field(default_factory=list)
    weekly: dict[str, list[TimeBlock]] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def _normalize_id(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Planner id must not be empty")
        return normalized

    @field_validator("daily", mode="before")
    @classmethod
    def _ensure_list(cls, value: Any):
        if value is None:
            return []
        return value

    @field_validator("weekly", mode="before")
    @classmethod
    def _normalize_weekdays(cls, value: Any):
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise TypeError("weekly must map weekday names to lists of blocks")
        normalized: dict[str, Any] = {}
        for key, blocks in value.items():
            day = str(key).strip().lower()
            if day not in WEEKDAYS:
                raise ValueError(f"Unknown weekday {key!r}")
            normalized[day] = blocks or []
        return normalized

    def classify(self, moment: datetime) -> TimeBlock | None:
        """Return the block covering ``moment``; daily blocks win over weekly ones."""

        minute_of_day = moment.hour * 60 + moment.minute
        for block in self.daily:
            if block.contains(minute_of_day):
                return block
        for block in self.weekly.get(WEEKDAYS[moment.weekday()], []):
            if block.contains(minute_of_day):
                return block
        return None


__all__ = ["Planner", "TimeBlock", "WEEKDAYS"]
