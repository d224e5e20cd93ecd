from __future__ import annotations

import re
from enum import Enum


class DayOfWeek(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"


class SessionKind(str, Enum):
    lec = "LEC"
    lab = "LAB"


DAY_VALUES = {day.value for day in DayOfWeek}

DAY_SHORT_MAP = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
    "Sun": "Sunday",
}

# The persistence backend stores TIME columns and returns "HH:MM:SS".
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


def normalize_day(value: str) -> str:
    day = value.strip()
    day = DAY_SHORT_MAP.get(day, day)
    if day not in DAY_VALUES:
        raise ValueError(f"Invalid day value: {value!r}")
    return day


def parse_time_to_minutes(value: str) -> int:
    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def parse_time_range(value: str) -> tuple[int, int]:
    """Split a "HH:MM-HH:MM" range into start/end minutes."""
    parts = value.split("-")
    if len(parts) != 2:
        raise ValueError("Time range must look like HH:MM-HH:MM")
    return parse_time_to_minutes(parts[0]), parse_time_to_minutes(parts[1])
