"""ISO-8601 week arithmetic and calendar context for a single date."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

_DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


@dataclass(frozen=True, slots=True)
class IsoWeek:
    iso_year: int
    week: int
    day_of_week: str
    week_start: date


@dataclass(frozen=True, slots=True)
class CalendarDate:
    date: date
    day_of_week: str
    iso_week_number: int
    iso_year: int
    week_start: date
    month_name: str
    day_of_month: int

    def as_dict(self) -> dict[str, object]:
        return {
            "date": self.date.isoformat(),
            "day_of_week": self.day_of_week,
            "iso_week_number": self.iso_week_number,
            "iso_year": self.iso_year,
            "week_start": self.week_start.isoformat(),
            "month_name": self.month_name,
            "day_of_month": self.day_of_month,
        }


def week_of(day: date) -> IsoWeek:
    """Return the ISO week containing ``day``.

    Weeks start on Monday and week 1 is the week holding the year's first
    Thursday, so late December can fall in week 1 of the next ISO year and
    early January in week 52/53 of the previous one.
    """

    if isinstance(day, datetime):
        day = day.date()
    iso_year, week, weekday = day.isocalendar()
    return IsoWeek(
        iso_year=iso_year,
        week=week,
        day_of_week=_DAY_NAMES[weekday - 1],
        week_start=day - timedelta(days=weekday - 1),
    )


def calendar_date(day: date) -> CalendarDate:
    if isinstance(day, datetime):
        day = day.date()
    iso = week_of(day)
    return CalendarDate(
        date=day,
        day_of_week=iso.day_of_week,
        iso_week_number=iso.week,
        iso_year=iso.iso_year,
        week_start=iso.week_start,
        month_name=_MONTH_NAMES[day.month - 1],
        day_of_month=day.day,
    )


def time_of_day(moment: datetime) -> str:
    hour = moment.hour
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "night"


__all__ = ["CalendarDate", "IsoWeek", "calendar_date", "time_of_day", "week_of"]
