from __future__ import annotations

from pydantic import BaseModel, Field, RootModel, field_validator, model_validator

from scheduleguard.schemas.common import TIME_PATTERN, normalize_day, parse_time_to_minutes
from scheduleguard.services.timeslots import AvailabilityCalendar, TimeInterval, overlaps


class AvailabilityWindow(BaseModel):
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        if not TIME_PATTERN.match(value.strip()):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value.strip()

    @model_validator(mode="after")
    def validate_order(self) -> "AvailabilityWindow":
        if parse_time_to_minutes(self.end) <= parse_time_to_minutes(self.start):
            raise ValueError("end must be after start")
        return self

    def to_interval(self) -> TimeInterval:
        return TimeInterval.from_times(self.start, self.end)


class FacultyAvailabilityPayload(RootModel[dict[str, list[AvailabilityWindow]]]):
    """Weekly availability of one faculty member, as `{Day: [{start, end}]}`.

    The same shape is read and written; a write replaces the whole mapping.
    """

    @field_validator("root")
    @classmethod
    def validate_days(cls, value: dict[str, list[AvailabilityWindow]]) -> dict[str, list[AvailabilityWindow]]:
        normalized: dict[str, list[AvailabilityWindow]] = {}
        for day, windows in value.items():
            key = normalize_day(day)
            if key in normalized:
                raise ValueError(f"Duplicate day entry: {key}")
            normalized[key] = windows
        return normalized

    @model_validator(mode="after")
    def validate_disjoint(self) -> "FacultyAvailabilityPayload":
        for day, windows in self.root.items():
            intervals = sorted(window.to_interval() for window in windows)
            for previous, current in zip(intervals, intervals[1:]):
                if overlaps(previous, current):
                    raise ValueError(f"Overlapping availability windows on {day}: {previous} and {current}")
        return self

    def to_calendar(self) -> AvailabilityCalendar:
        return AvailabilityCalendar(
            {day: tuple(window.to_interval() for window in windows) for day, windows in self.root.items()}
        )


class RoomAvailabilityEntry(BaseModel):
    day: str
    start_time: str
    end_time: str

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        if not TIME_PATTERN.match(value.strip()):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value.strip()

    @model_validator(mode="after")
    def validate_order(self) -> "RoomAvailabilityEntry":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self

    def to_interval(self) -> TimeInterval:
        return TimeInterval.from_times(self.start_time, self.end_time)


class RoomAvailabilityResponse(BaseModel):
    availabilities: list[RoomAvailabilityEntry] = Field(default_factory=list)

    def to_calendar(self) -> AvailabilityCalendar:
        return AvailabilityCalendar.from_entries((entry.day, entry.to_interval()) for entry in self.availabilities)
