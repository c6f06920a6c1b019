"""Reporting windows and their comparison windows.

Every window is an inclusive calendar-day range ``[start, end]``. Resolving a
preset always yields the requested window together with the window it is
compared against for period-over-period deltas.
"""
from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterator

from django.utils import timezone

from analytics.exceptions import InvalidRange


class Preset(str, Enum):
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    THIS_QUARTER = "this_quarter"
    YTD = "ytd"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: "Preset | str") -> "Preset":
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown period preset {value!r} (expected one of: {choices}).") from None


@dataclass(frozen=True)
class Window:
    """Inclusive day range."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidRange(f"Window start {self.start} is after its end {self.end}.")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def iter_days(self) -> Iterator[date]:
        day = self.start
        while day <= self.end:
            yield day
            day += timedelta(days=1)

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    def as_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class PeriodWindows:
    """A requested window and the equal-purpose window preceding it."""

    preset: Preset
    current: Window
    previous: Window

    def as_dict(self) -> dict:
        return {
            "preset": self.preset.value,
            "start": self.current.start.isoformat(),
            "end": self.current.end.isoformat(),
            "prev_start": self.previous.start.isoformat(),
            "prev_end": self.previous.end.isoformat(),
        }


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def month_bounds(day: date) -> tuple[date, date]:
    start = day.replace(day=1)
    last_day = monthrange(start.year, start.month)[1]
    return start, start.replace(day=last_day)


def quarter_start(day: date) -> date:
    first_month = 3 * ((day.month - 1) // 3) + 1
    return date(day.year, first_month, 1)


def shift_years(day: date, years: int) -> date:
    """Same calendar day ``years`` away; 29 February falls back to the 28th."""
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return day.replace(year=day.year + years, day=28)


def _as_date(value: date | datetime | None) -> date:
    if value is None:
        return timezone.localdate()
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    return value


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def resolve_period(
    preset: Preset | str,
    *,
    now: date | datetime | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> PeriodWindows:
    """Return the window for ``preset`` and its comparison window.

    ``now`` defaults to today in the active time zone. ``date_from`` and
    ``date_to`` are only read for the ``custom`` preset, where both are
    required.
    """
    preset = Preset.parse(preset)
    today = _as_date(now)

    if preset is Preset.THIS_MONTH:
        start, _ = month_bounds(today)
        current = Window(start, today)
        previous = Window(*month_bounds(start - timedelta(days=1)))

    elif preset is Preset.LAST_MONTH:
        first_of_month, _ = month_bounds(today)
        current = Window(*month_bounds(first_of_month - timedelta(days=1)))
        previous = Window(*month_bounds(current.start - timedelta(days=1)))

    elif preset is Preset.THIS_QUARTER:
        start = quarter_start(today)
        current = Window(start, today)
        previous_end = start - timedelta(days=1)
        previous = Window(quarter_start(previous_end), previous_end)

    elif preset is Preset.YTD:
        current = Window(date(today.year, 1, 1), today)
        previous = Window(date(today.year - 1, 1, 1), shift_years(today, -1))

    else:
        if date_from is None or date_to is None:
            raise InvalidRange("A custom range needs both a start and an end date.")
        if date_from > date_to:
            raise InvalidRange(f"Range start {date_from} is after its end {date_to}.")
        current = Window(date_from, date_to)
        previous_end = date_from - timedelta(days=1)
        previous = Window(previous_end - (date_to - date_from), previous_end)

    return PeriodWindows(preset=preset, current=current, previous=previous)
