from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from scheduleguard.schemas.availability import FacultyAvailabilityPayload, RoomAvailabilityEntry
from scheduleguard.schemas.common import TIME_PATTERN, SessionKind, normalize_day, parse_time_range, parse_time_to_minutes
from scheduleguard.services.entities import (
    AssignmentContext,
    AssignmentRequest,
    ProposedSlot,
    Room,
    ScheduleSlot,
)
from scheduleguard.services.timeslots import AvailabilityCalendar, TimeInterval


class AssignmentErrorCode(str, Enum):
    outside_availability = "OutsideAvailability"
    duration_exceeded = "DurationExceeded"
    room_unavailable = "RoomUnavailable"
    faculty_conflict = "FacultyConflict"
    room_conflict = "RoomConflict"
    section_conflict = "SectionConflict"
    load_exceeded = "LoadExceeded"
    already_assigned = "AlreadyAssigned"
    subject_limit_reached = "SubjectLimitReached"
    server_rejection = "ServerRejection"
    general = "General"


class AssignmentIssue(BaseModel):
    code: AssignmentErrorCode
    component: SessionKind | None = None
    message: str
    source: Literal["local", "server"] = "local"
    conflicting_slot_id: str | None = Field(default=None, alias="conflictingSlotId")

    model_config = {"populate_by_name": True}


class AssignmentNotice(BaseModel):
    code: Literal["OverloadApplied"]
    message: str


class _BoundaryModel(BaseModel):
    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class ProposedSlotPayload(_BoundaryModel):
    kind: SessionKind
    day: str
    time: str
    room_id: str = Field(alias="roomId", min_length=1, max_length=36)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day(value)

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        start, end = parse_time_range(value)
        if end <= start:
            raise ValueError("End time must be after start time")
        return value.strip()

    def to_domain(self) -> ProposedSlot:
        return ProposedSlot(
            kind=self.kind,
            day=self.day,
            interval=TimeInterval.from_range(self.time),
            room_id=self.room_id,
        )


class AssignmentContextPayload(_BoundaryModel):
    section_id: str | None = Field(default=None, alias="sectionId")
    program_id: str | None = Field(default=None, alias="programId")
    year_level: str | None = Field(default=None, alias="yearLevel")

    def to_domain(self) -> AssignmentContext:
        return AssignmentContext(
            section_id=self.section_id,
            program_id=self.program_id,
            year_level=self.year_level,
        )


class AssignmentRequestPayload(_BoundaryModel):
    """Body of the assignment commit call: one schedule entry per LEC/LAB component."""

    faculty_id: str = Field(alias="facultyId", min_length=1, max_length=36)
    subject_id: str = Field(alias="subjectId", min_length=1, max_length=36)
    schedules: list[ProposedSlotPayload] = Field(min_length=1, max_length=2)

    @model_validator(mode="after")
    def validate_components(self) -> "AssignmentRequestPayload":
        kinds = [slot.kind for slot in self.schedules]
        if len(kinds) != len(set(kinds)):
            raise ValueError("Only one schedule per component (LEC/LAB) is allowed")
        return self

    def to_domain(self, context: AssignmentContext | None = None) -> AssignmentRequest:
        return AssignmentRequest(
            faculty_id=self.faculty_id,
            subject_id=self.subject_id,
            proposed_slots=tuple(slot.to_domain() for slot in self.schedules),
            context=context or AssignmentContext(),
        )


class SubjectRecord(_BoundaryModel):
    """Raw subject as the curriculum endpoints return it."""

    id: str
    subject_code: str | None = None
    des_title: str | None = None
    total_units: float | None = Field(default=None, ge=0)
    lec_units: float | None = Field(default=None, ge=0)
    lab_units: float | None = Field(default=None, ge=0)
    total_lec_hrs: float = Field(default=0, ge=0)
    total_lab_hrs: float = Field(default=0, ge=0)
    expertise: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: object) -> str:
        return str(value)


class FacultyLoadPayload(_BoundaryModel):
    current_assigned_units: float = Field(alias="currentAssignedUnits", ge=0)
    assigned_subject_ids: list[str] = Field(default_factory=list, alias="assignedSubjectIds")
    normal_cap_units: float | None = Field(default=None, alias="normalCapUnits", ge=0)
    overload_cap_units: float | None = Field(default=None, alias="overloadCapUnits", ge=0)
    max_subjects: int | None = Field(default=None, alias="maxSubjects", ge=1)

    @field_validator("assigned_subject_ids", mode="before")
    @classmethod
    def coerce_ids(cls, value: object) -> object:
        if isinstance(value, list):
            return [str(item) for item in value]
        return value


class FacultyRecord(_BoundaryModel):
    id: str
    name: str | None = None
    expertise: list[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: object) -> str:
        return str(value)

    @field_validator("expertise", mode="before")
    @classmethod
    def split_expertise(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


class ScheduleSlotPayload(_BoundaryModel):
    id: str | None = None
    faculty_id: str = Field(alias="facultyId", min_length=1, max_length=36)
    day: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    kind: SessionKind = Field(alias="type")
    room_id: str = Field(alias="roomId", min_length=1, max_length=36)
    subject_id: str = Field(alias="subjectId", min_length=1, max_length=36)
    section_id: str | None = Field(default=None, alias="sectionId")
    program_id: str | None = Field(default=None, alias="programId")
    year_level: str | None = Field(default=None, alias="yearLevel")

    @field_validator("id", "faculty_id", "room_id", "subject_id", "section_id", "program_id", "year_level", mode="before")
    @classmethod
    def coerce_identifiers(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

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
    def validate_time_order(self) -> "ScheduleSlotPayload":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("End time must be after start time")
        return self

    def to_domain(self) -> ScheduleSlot:
        return ScheduleSlot(
            owner_faculty_id=self.faculty_id,
            day=self.day,
            interval=TimeInterval.from_times(self.start_time, self.end_time),
            kind=self.kind,
            room_id=self.room_id,
            subject_id=self.subject_id,
            section_id=self.section_id,
            program_id=self.program_id,
            year_level=self.year_level,
            slot_id=self.id,
        )


class RoomPayload(_BoundaryModel):
    id: str = Field(min_length=1, max_length=36)
    name: str | None = Field(default=None, alias="roomNumber", max_length=100)
    type: str = Field(min_length=1, max_length=100)
    capacity: int = Field(default=0, ge=0, le=2000)
    availability: list[RoomAvailabilityEntry] = Field(default_factory=list, alias="availabilities")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    def to_domain(self) -> Room:
        return Room(
            id=self.id,
            type=self.type,
            capacity=self.capacity,
            availability=AvailabilityCalendar.from_entries(
                (entry.day, entry.to_interval()) for entry in self.availability
            ),
            name=self.name,
        )


class ValidateAssignmentRequest(_BoundaryModel):
    request: AssignmentRequestPayload
    subject: SubjectRecord
    faculty_availability: FacultyAvailabilityPayload = Field(alias="facultyAvailability")
    load: FacultyLoadPayload
    existing_slots: list[ScheduleSlotPayload] = Field(default_factory=list, alias="existingSlots")
    rooms: list[RoomPayload] = Field(default_factory=list)
    context: AssignmentContextPayload = Field(default_factory=AssignmentContextPayload)

    @model_validator(mode="after")
    def validate_subject_matches(self) -> "ValidateAssignmentRequest":
        if self.subject.id != self.request.subject_id:
            raise ValueError(
                f"Subject {self.subject.id} does not match requested subjectId {self.request.subject_id}"
            )
        return self


class RoomMatchRequest(_BoundaryModel):
    kind: SessionKind
    day: str
    time: str
    rooms: list[RoomPayload] = Field(default_factory=list)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day(value)

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        start, end = parse_time_range(value)
        if end <= start:
            raise ValueError("End time must be after start time")
        return value.strip()


class LoadAssessmentRequest(_BoundaryModel):
    normal_cap_units: float | None = Field(default=None, alias="normalCapUnits", ge=0)
    overload_cap_units: float | None = Field(default=None, alias="overloadCapUnits", ge=0)
    current_assigned_units: float = Field(alias="currentAssignedUnits", ge=0)
    new_units: float = Field(alias="newUnits", ge=0)


class RoomMatchOut(BaseModel):
    room_id: str = Field(serialization_alias="roomId")
    name: str | None = None
    type: str
    capacity: int
    selectable: bool
    reason: str | None = None


class LoadAssessmentOut(BaseModel):
    normal_cap_units: float = Field(serialization_alias="normalCapUnits")
    total_cap_units: float = Field(serialization_alias="totalCapUnits")
    current_assigned_units: float = Field(serialization_alias="currentAssignedUnits")
    new_units: float = Field(serialization_alias="newUnits")
    potential_total_units: float = Field(serialization_alias="potentialTotalUnits")
    exceeded: bool
    overload_applied: bool = Field(serialization_alias="overloadApplied")
    overload_units_used: float = Field(serialization_alias="overloadUnitsUsed")
    remaining_units: float = Field(serialization_alias="remainingUnits")


class SlotReportOut(BaseModel):
    kind: SessionKind
    day: str
    time: str
    room_id: str = Field(serialization_alias="roomId")
    required_minutes: int = Field(serialization_alias="requiredMinutes")
    issues: list[AssignmentIssue] = Field(default_factory=list)
    rooms: list[RoomMatchOut] = Field(default_factory=list)


class ValidationReportOut(BaseModel):
    accepted: bool
    issues: list[AssignmentIssue] = Field(default_factory=list)
    notices: list[AssignmentNotice] = Field(default_factory=list)
    load: LoadAssessmentOut
    slots: list[SlotReportOut] = Field(default_factory=list)


class CommitResult(BaseModel):
    message: str = "Assignment saved"
    slot_ids: list[str] = Field(default_factory=list, serialization_alias="slotIds")


class SubmitAssignmentRequest(_BoundaryModel):
    request: AssignmentRequestPayload
    context: AssignmentContextPayload = Field(default_factory=AssignmentContextPayload)


class SubmitAssignmentResponse(BaseModel):
    report: ValidationReportOut
    result: CommitResult
