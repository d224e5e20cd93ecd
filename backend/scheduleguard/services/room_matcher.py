from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from scheduleguard.schemas.common import SessionKind
from scheduleguard.services.entities import Room
from scheduleguard.services.timeslots import TimeInterval

RoomTypeMatch = Literal["exact", "substring"]


class RoomType(str, Enum):
    lecture = "Lecture"
    laboratory = "Laboratory"


def expected_room_type(kind: SessionKind) -> RoomType:
    if kind == SessionKind.lab:
        return RoomType.laboratory
    return RoomType.lecture


def room_type_matches(room_type: str, expected: RoomType, mode: RoomTypeMatch = "exact") -> bool:
    actual = room_type.strip().lower()
    wanted = expected.value.lower()
    if mode == "substring":
        return wanted in actual
    return actual == wanted


@dataclass(frozen=True)
class RoomCandidate:
    room: Room
    selectable: bool
    reason: str | None = None


def match_rooms(
    rooms: Iterable[Room],
    day: str,
    interval: TimeInterval,
    expected_type: RoomType,
    *,
    mode: RoomTypeMatch = "exact",
) -> list[RoomCandidate]:
    """Rooms of `expected_type`, each flagged by whether it is free for the slot.

    Rooms of another type are dropped regardless of their availability, even
    if an upstream query already filtered by type. Rooms of the right type
    that are not free are still listed, with `selectable=False`.
    """
    candidates: list[RoomCandidate] = []
    for room in rooms:
        if not room_type_matches(room.type, expected_type, mode):
            continue
        if room.availability.is_free(day, interval):
            candidates.append(RoomCandidate(room=room, selectable=True))
            continue
        windows = room.availability.windows_for(day)
        if windows:
            listed = ", ".join(str(window) for window in windows)
            reason = f"{room.label} is only free {listed} on {day}"
        else:
            reason = f"{room.label} has no availability on {day}"
        candidates.append(RoomCandidate(room=room, selectable=False, reason=reason))
    return candidates


def selectable_room_ids(candidates: Iterable[RoomCandidate]) -> set[str]:
    return {candidate.room.id for candidate in candidates if candidate.selectable}
