from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from scheduleguard.schemas.common import minutes_to_time, normalize_day, parse_time_range, parse_time_to_minutes

LAST_MINUTE_OF_DAY = 23 * 60 + 59


@dataclass(frozen=True, order=True)
class TimeInterval:
    start_minutes: int
    end_minutes: int

    def __post_init__(self) -> None:
        if not 0 <= self.start_minutes < self.end_minutes <= LAST_MINUTE_OF_DAY:
            raise ValueError(
                f"Invalid interval {self.start_minutes}-{self.end_minutes}: "
                f"expected 0 <= start < end <= {LAST_MINUTE_OF_DAY}"
            )

    @classmethod
    def from_times(cls, start: str, end: str) -> "TimeInterval":
        return cls(parse_time_to_minutes(start), parse_time_to_minutes(end))

    @classmethod
    def from_range(cls, value: str) -> "TimeInterval":
        start, end = parse_time_range(value)
        return cls(start, end)

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start_minutes)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end_minutes)

    def to_range(self) -> str:
        return f"{self.start_time}-{self.end_time}"

    def __str__(self) -> str:
        return self.to_range()


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    # Touching boundaries (a.end == b.start) are not an overlap.
    return a.start_minutes < b.end_minutes and b.start_minutes < a.end_minutes


def contains(window: TimeInterval, interval: TimeInterval) -> bool:
    return window.start_minutes <= interval.start_minutes and interval.end_minutes <= window.end_minutes


@dataclass(frozen=True)
class AvailabilityCalendar:
    """Free windows per day for one faculty member or one room.

    Windows are kept sorted by start time. The calendar is owned by the
    availability screens; everything in this package only reads it.
    """

    days: Mapping[str, tuple[TimeInterval, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalized: dict[str, tuple[TimeInterval, ...]] = {}
        for day, windows in self.days.items():
            key = normalize_day(day)
            merged = normalized.get(key, ()) + tuple(windows)
            normalized[key] = tuple(sorted(set(merged)))
        object.__setattr__(self, "days", MappingProxyType(normalized))

    @classmethod
    def from_entries(cls, entries: Iterable[tuple[str, TimeInterval]]) -> "AvailabilityCalendar":
        grouped: dict[str, list[TimeInterval]] = {}
        for day, interval in entries:
            grouped.setdefault(day, []).append(interval)
        return cls({day: tuple(windows) for day, windows in grouped.items()})

    def windows_for(self, day: str) -> tuple[TimeInterval, ...]:
        return self.days.get(normalize_day(day), ())

    def containing_window(self, day: str, interval: TimeInterval) -> TimeInterval | None:
        for window in self.windows_for(day):
            if contains(window, interval):
                return window
        return None

    def is_free(self, day: str, interval: TimeInterval) -> bool:
        return self.containing_window(day, interval) is not None

    def is_empty(self) -> bool:
        return not any(self.days.values())
