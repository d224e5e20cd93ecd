from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping

from scheduleguard.schemas.assignment import AssignmentErrorCode, AssignmentIssue
from scheduleguard.services.entities import AssignmentContext, ProposedSlot, ScheduleSlot
from scheduleguard.services.timeslots import overlaps


class ConflictService:
    """Checks proposed slots of one request against the committed schedule.

    Proposed slots of the same request are never compared with each other.
    """

    def __init__(self, existing_slots: Iterable[ScheduleSlot], room_names: Mapping[str, str] | None = None):
        self.room_names = dict(room_names or {})
        self.slots_by_day: dict[str, list[ScheduleSlot]] = defaultdict(list)
        for slot in existing_slots:
            self.slots_by_day[slot.day].append(slot)
        for day_slots in self.slots_by_day.values():
            day_slots.sort(key=lambda item: item.interval)

    def first_conflict(
        self,
        proposed: ProposedSlot,
        faculty_id: str,
        context: AssignmentContext | None = None,
    ) -> AssignmentIssue | None:
        context = context or AssignmentContext()
        for existing in self.slots_by_day.get(proposed.day, []):
            if not overlaps(proposed.interval, existing.interval):
                continue
            # Priority: room, then faculty, then section/year/program.
            if existing.room_id == proposed.room_id:
                room_name = self.room_names.get(existing.room_id, existing.room_id)
                return self._issue(
                    AssignmentErrorCode.room_conflict,
                    proposed,
                    existing,
                    f"Room overlap in {room_name}: {existing.describe()}",
                )
            if existing.owner_faculty_id == faculty_id:
                return self._issue(
                    AssignmentErrorCode.faculty_conflict,
                    proposed,
                    existing,
                    f"Faculty already teaches {existing.describe()}",
                )
            if context.same_section(existing):
                return self._issue(
                    AssignmentErrorCode.section_conflict,
                    proposed,
                    existing,
                    f"Section {context.section_id} ({context.program_id}, {context.year_level}) "
                    f"already has {existing.describe()}",
                )
        return None

    def detect_conflicts(
        self,
        proposed_slots: Iterable[ProposedSlot],
        faculty_id: str,
        context: AssignmentContext | None = None,
    ) -> list[AssignmentIssue]:
        conflicts: list[AssignmentIssue] = []
        for proposed in proposed_slots:
            issue = self.first_conflict(proposed, faculty_id, context)
            if issue is not None:
                conflicts.append(issue)
        return conflicts

    @staticmethod
    def _issue(
        code: AssignmentErrorCode,
        proposed: ProposedSlot,
        existing: ScheduleSlot,
        description: str,
    ) -> AssignmentIssue:
        return AssignmentIssue(
            code=code,
            component=proposed.kind,
            message=f"{proposed.kind.value} {proposed.day} {proposed.interval}: {description}",
            conflicting_slot_id=existing.slot_id,
        )
