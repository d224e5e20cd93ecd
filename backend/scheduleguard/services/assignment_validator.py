from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from dataclasses import dataclass

from scheduleguard.schemas.assignment import (
    AssignmentErrorCode,
    AssignmentIssue,
    AssignmentNotice,
    LoadAssessmentOut,
    RoomMatchOut,
    SlotReportOut,
    ValidationReportOut,
)
from scheduleguard.services.conflict_service import ConflictService
from scheduleguard.services.entities import AssignmentRequest, ProposedSlot, Room, ScheduleSlot
from scheduleguard.services.room_matcher import (
    RoomCandidate,
    RoomType,
    RoomTypeMatch,
    expected_room_type,
    match_rooms,
)
from scheduleguard.services.subjects import SubjectRequirement
from scheduleguard.services.timeslots import AvailabilityCalendar
from scheduleguard.services.workload import LoadAccount, LoadAssessment, assess_load

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignmentInputs:
    """Everything the validator needs; it reads nothing else."""

    request: AssignmentRequest
    requirement: SubjectRequirement
    faculty_availability: AvailabilityCalendar
    load_account: LoadAccount
    new_units: float
    existing_slots: Sequence[ScheduleSlot] = ()
    rooms: Sequence[Room] = ()
    room_type_match: RoomTypeMatch = "exact"
    assigned_subject_ids: Collection[str] = ()
    max_subjects: int | None = None


def load_assessment_out(assessment: LoadAssessment) -> LoadAssessmentOut:
    return LoadAssessmentOut(
        normal_cap_units=assessment.normal_cap_units,
        total_cap_units=assessment.total_cap_units,
        current_assigned_units=assessment.current_assigned_units,
        new_units=assessment.new_units,
        potential_total_units=assessment.potential_total_units,
        exceeded=assessment.exceeded,
        overload_applied=assessment.overload_applied,
        overload_units_used=assessment.overload_units_used,
        remaining_units=assessment.remaining_units,
    )


def room_match_out(candidate: RoomCandidate) -> RoomMatchOut:
    return RoomMatchOut(
        room_id=candidate.room.id,
        name=candidate.room.name,
        type=candidate.room.type,
        capacity=candidate.room.capacity,
        selectable=candidate.selectable,
        reason=candidate.reason,
    )


class AssignmentValidator:
    def __init__(self, inputs: AssignmentInputs):
        self.inputs = inputs
        self.rooms_by_id = {room.id: room for room in inputs.rooms}
        self.conflicts = ConflictService(
            inputs.existing_slots,
            room_names={room.id: room.label for room in inputs.rooms},
        )

    def validate(self) -> ValidationReportOut:
        request = self.inputs.request
        issues: list[AssignmentIssue] = []
        notices: list[AssignmentNotice] = []
        slot_reports: list[SlotReportOut] = []

        for kind in self.inputs.requirement.components():
            if request.slot_for(kind) is None:
                issues.append(
                    AssignmentIssue(
                        code=AssignmentErrorCode.general,
                        component=kind,
                        message=f"Subject requires a {kind.value} schedule",
                    )
                )

        subject_issue = self._check_subject()
        if subject_issue is not None:
            issues.append(subject_issue)

        for proposed in request.proposed_slots:
            report = self._check_slot(proposed)
            slot_reports.append(report)
            issues.extend(report.issues)

        assessment = assess_load(self.inputs.load_account, self.inputs.new_units)
        if assessment.exceeded:
            issues.append(
                AssignmentIssue(
                    code=AssignmentErrorCode.load_exceeded,
                    message=(
                        f"Load would reach {assessment.potential_total_units:g} units, "
                        f"above the maximum of {assessment.total_cap_units:g}"
                    ),
                )
            )
        elif assessment.overload_applied:
            notices.append(
                AssignmentNotice(
                    code="OverloadApplied",
                    message=(
                        f"Load of {assessment.potential_total_units:g} units uses "
                        f"{assessment.overload_units_used:g} overload units"
                    ),
                )
            )

        accepted = not issues
        if not accepted:
            logger.info(
                "Rejected assignment of subject %s to faculty %s: %s",
                request.subject_id,
                request.faculty_id,
                ", ".join(issue.code.value for issue in issues),
            )
        return ValidationReportOut(
            accepted=accepted,
            issues=issues,
            notices=notices,
            load=load_assessment_out(assessment),
            slots=slot_reports,
        )

    def _check_subject(self) -> AssignmentIssue | None:
        request = self.inputs.request
        assigned = {str(subject_id) for subject_id in self.inputs.assigned_subject_ids}
        if request.subject_id in assigned:
            return AssignmentIssue(
                code=AssignmentErrorCode.already_assigned,
                message=f"Subject {request.subject_id} is already assigned to faculty {request.faculty_id}",
            )
        limit = self.inputs.max_subjects
        if limit is not None and len(assigned) >= limit:
            return AssignmentIssue(
                code=AssignmentErrorCode.subject_limit_reached,
                message=f"Faculty {request.faculty_id} already teaches {len(assigned)} subjects, the maximum is {limit}",
            )
        return None

    def _check_slot(self, proposed: ProposedSlot) -> SlotReportOut:
        required = self.inputs.requirement.required_minutes(proposed.kind)
        expected_type = expected_room_type(proposed.kind)
        candidates = match_rooms(
            self.inputs.rooms,
            proposed.day,
            proposed.interval,
            expected_type,
            mode=self.inputs.room_type_match,
        )
        report = SlotReportOut(
            kind=proposed.kind,
            day=proposed.day,
            time=proposed.interval.to_range(),
            room_id=proposed.room_id,
            required_minutes=required,
            rooms=[room_match_out(candidate) for candidate in candidates],
        )
        issue = (
            self._check_availability(proposed)
            or self._check_duration(proposed, required)
            or self._check_room(proposed, candidates, expected_type)
            or self.conflicts.first_conflict(proposed, self.inputs.request.faculty_id, self.inputs.request.context)
        )
        if issue is not None:
            report.issues.append(issue)
        return report

    def _check_availability(self, proposed: ProposedSlot) -> AssignmentIssue | None:
        calendar = self.inputs.faculty_availability
        if calendar.is_free(proposed.day, proposed.interval):
            return None
        windows = calendar.windows_for(proposed.day)
        if windows:
            detail = "available only " + ", ".join(str(window) for window in windows)
        else:
            detail = "not available"
        return AssignmentIssue(
            code=AssignmentErrorCode.outside_availability,
            component=proposed.kind,
            message=f"{proposed.kind.value} {proposed.day} {proposed.interval}: faculty is {detail} on {proposed.day}",
        )

    @staticmethod
    def _check_duration(proposed: ProposedSlot, required: int) -> AssignmentIssue | None:
        duration = proposed.interval.duration_minutes
        if duration <= required:
            return None
        if required == 0:
            message = f"Subject has no {proposed.kind.value} hours to schedule"
        else:
            message = (
                f"{proposed.kind.value} {proposed.day} {proposed.interval} lasts {duration} minutes, "
                f"more than the required {required}"
            )
        return AssignmentIssue(code=AssignmentErrorCode.duration_exceeded, component=proposed.kind, message=message)

    def _check_room(
        self,
        proposed: ProposedSlot,
        candidates: list[RoomCandidate],
        expected_type: RoomType,
    ) -> AssignmentIssue | None:
        for candidate in candidates:
            if candidate.room.id == proposed.room_id:
                if candidate.selectable:
                    return None
                message = candidate.reason or f"Room {candidate.room.label} is not free"
                break
        else:
            room = self.rooms_by_id.get(proposed.room_id)
            if room is None:
                message = f"Room {proposed.room_id} is not in the room inventory"
            else:
                # Matching-type rooms are always among the candidates.
                message = f"Room {room.label} is a {room.type} room, {expected_type.value} required"
        return AssignmentIssue(
            code=AssignmentErrorCode.room_unavailable,
            component=proposed.kind,
            message=f"{proposed.kind.value} {proposed.day} {proposed.interval}: {message}",
        )


def validate_assignment(inputs: AssignmentInputs) -> ValidationReportOut:
    return AssignmentValidator(inputs).validate()
