from __future__ import annotations

from dataclasses import dataclass, field

from scheduleguard.schemas.common import SessionKind, normalize_day
from scheduleguard.services.timeslots import AvailabilityCalendar, TimeInterval


@dataclass(frozen=True)
class SubjectLoadKey:
    subject_id: str
    kind: SessionKind

    def __str__(self) -> str:
        return f"{self.subject_id}/{self.kind.value}"


@dataclass(frozen=True)
class ScheduleSlot:
    owner_faculty_id: str
    day: str
    interval: TimeInterval
    kind: SessionKind
    room_id: str
    subject_id: str
    section_id: str | None = None
    program_id: str | None = None
    year_level: str | None = None
    slot_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "day", normalize_day(self.day))

    @property
    def load_key(self) -> SubjectLoadKey:
        return SubjectLoadKey(self.subject_id, self.kind)

    def describe(self) -> str:
        return f"{self.load_key} {self.day} {self.interval} in room {self.room_id}"


@dataclass(frozen=True)
class Room:
    id: str
    type: str
    capacity: int = 0
    availability: AvailabilityCalendar = field(default_factory=AvailabilityCalendar)
    name: str | None = None

    @property
    def label(self) -> str:
        return self.name or self.id


@dataclass(frozen=True)
class ProposedSlot:
    kind: SessionKind
    day: str
    interval: TimeInterval
    room_id: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "day", normalize_day(self.day))


@dataclass(frozen=True)
class AssignmentContext:
    """The class section an assignment is being scheduled for, when known."""

    section_id: str | None = None
    program_id: str | None = None
    year_level: str | None = None

    def same_section(self, slot: ScheduleSlot) -> bool:
        if self.section_id is None or self.year_level is None or self.program_id is None:
            return False
        return (
            slot.section_id == self.section_id
            and slot.year_level == self.year_level
            and slot.program_id == self.program_id
        )


@dataclass(frozen=True)
class AssignmentRequest:
    faculty_id: str
    subject_id: str
    proposed_slots: tuple[ProposedSlot, ...]
    context: AssignmentContext = field(default_factory=AssignmentContext)

    def slot_for(self, kind: SessionKind) -> ProposedSlot | None:
        for slot in self.proposed_slots:
            if slot.kind == kind:
                return slot
        return None
