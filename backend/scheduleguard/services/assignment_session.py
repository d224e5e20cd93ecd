from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from scheduleguard.clients.backend import BackendClient
from scheduleguard.core.config import Settings
from scheduleguard.core.exceptions import AssignmentRejectedError
from scheduleguard.schemas.assignment import (
    AssignmentRequestPayload,
    CommitResult,
    FacultyLoadPayload,
    RoomPayload,
    SubjectRecord,
    ValidationReportOut,
)
from scheduleguard.schemas.common import SessionKind
from scheduleguard.services.assignment_validator import AssignmentInputs, validate_assignment
from scheduleguard.services.draft import AssignmentDraft, WorkflowStage, can_submit
from scheduleguard.services.entities import AssignmentContext, AssignmentRequest, Room, ScheduleSlot
from scheduleguard.services.fetch_generation import LatestOnlyFetcher
from scheduleguard.services.room_matcher import RoomCandidate, expected_room_type, match_rooms
from scheduleguard.services.subjects import subject_requirement, subject_unit_cost
from scheduleguard.services.timeslots import AvailabilityCalendar, TimeInterval
from scheduleguard.services.workload import LoadAccount, account_with_defaults

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FacultySnapshot:
    """Backend state fetched for one faculty member at one point in time."""

    availability: AvailabilityCalendar
    load_account: LoadAccount
    assigned_subject_ids: tuple[str, ...]
    existing_slots: tuple[ScheduleSlot, ...]
    rooms: tuple[Room, ...]
    max_subjects: int | None = None


def max_subjects_for(load: FacultyLoadPayload, settings: Settings) -> int | None:
    if load.max_subjects is not None:
        return load.max_subjects
    return settings.max_subjects_per_faculty


async def _room_with_availability(client: BackendClient, room: RoomPayload) -> Room:
    if room.availability:
        return room.to_domain()
    availability = await client.get_room_availability(room.id)
    return room.model_copy(update={"availability": availability.availabilities}).to_domain()


async def fetch_rooms(client: BackendClient, slots: Iterable[tuple[SessionKind, str, TimeInterval]]) -> tuple[Room, ...]:
    """Candidate rooms for each slot, using the backend's coarse filter."""
    slots = list(slots)
    listings = await asyncio.gather(
        *(
            client.list_rooms(day=day, interval=interval, room_type=expected_room_type(kind).value)
            for kind, day, interval in slots
        )
    )
    unique: dict[str, RoomPayload] = {}
    for listing in listings:
        for room in listing:
            unique.setdefault(room.id, room)
    rooms = await asyncio.gather(*(_room_with_availability(client, room) for room in unique.values()))
    return tuple(rooms)


async def fetch_snapshot(
    client: BackendClient,
    faculty_id: str,
    slots: Iterable[tuple[SessionKind, str, TimeInterval]],
    settings: Settings,
) -> FacultySnapshot:
    slots = list(slots)
    days = sorted({day for _, day, _ in slots})
    availability, load, rooms, *slot_lists = await asyncio.gather(
        client.get_faculty_availability(faculty_id),
        client.get_faculty_load(faculty_id),
        fetch_rooms(client, slots),
        *(client.list_schedule_slots(day=day) for day in days),
    )
    existing = tuple(item.to_domain() for listing in slot_lists for item in listing)
    return FacultySnapshot(
        availability=availability.to_calendar(),
        load_account=account_with_defaults(
            load.current_assigned_units,
            load.normal_cap_units,
            load.overload_cap_units,
            default_normal_cap_units=settings.default_normal_cap_units,
            default_overload_cap_units=settings.default_overload_cap_units,
        ),
        assigned_subject_ids=tuple(load.assigned_subject_ids),
        existing_slots=existing,
        rooms=rooms,
        max_subjects=max_subjects_for(load, settings),
    )


def build_inputs(
    request: AssignmentRequest,
    subject: SubjectRecord,
    snapshot: FacultySnapshot,
    settings: Settings,
) -> AssignmentInputs:
    return AssignmentInputs(
        request=request,
        requirement=subject_requirement(subject),
        faculty_availability=snapshot.availability,
        load_account=snapshot.load_account,
        new_units=subject_unit_cost(subject),
        existing_slots=snapshot.existing_slots,
        rooms=snapshot.rooms,
        room_type_match=settings.room_type_match,
        assigned_subject_ids=snapshot.assigned_subject_ids,
        max_subjects=snapshot.max_subjects,
    )


async def validate_and_commit(
    client: BackendClient,
    payload: AssignmentRequestPayload,
    subject: SubjectRecord,
    settings: Settings,
    context: AssignmentContext | None = None,
) -> tuple[ValidationReportOut, CommitResult]:
    """Validate `payload` against fresh backend state and commit it if accepted.

    Local acceptance is advisory; the backend may still reject the commit,
    which surfaces as `AssignmentRejectedError`.
    """
    request = payload.to_domain(context)
    snapshot = await fetch_snapshot(
        client,
        request.faculty_id,
        ((slot.kind, slot.day, slot.interval) for slot in request.proposed_slots),
        settings,
    )
    report = validate_assignment(build_inputs(request, subject, snapshot, settings))
    if not report.accepted:
        raise AssignmentRejectedError("The assignment did not pass validation", issues=report.issues, status_code=422)
    result = await client.commit_assignment(payload)
    logger.info("Committed subject %s for faculty %s", request.subject_id, request.faculty_id)
    return report, result


class AssignmentSession:
    """Interactive assignment workflow for one faculty member.

    Holds the current immutable draft and the latest backend snapshot. Every
    edit that changes what must be fetched starts a new generation; a
    snapshot that arrives for an older generation is dropped.
    """

    def __init__(self, client: BackendClient, settings: Settings, faculty_id: str):
        self.client = client
        self.settings = settings
        self.draft = AssignmentDraft(faculty_id=faculty_id)
        self.snapshot: FacultySnapshot | None = None
        self._fetcher: LatestOnlyFetcher[FacultySnapshot] = LatestOnlyFetcher(self._apply_snapshot, name="snapshot")

    @property
    def generation(self) -> int:
        return self._fetcher.tracker.current

    def _apply_snapshot(self, snapshot: FacultySnapshot) -> None:
        self.snapshot = snapshot

    def _scheduled_slots(self) -> list[tuple[SessionKind, str, TimeInterval]]:
        return [
            (component.kind, component.day, component.interval)
            for component in self.draft.components
            if component.has_schedule
        ]

    def refresh(self) -> asyncio.Task:
        slots = self._scheduled_slots()
        self.snapshot = None
        return self._fetcher.start(lambda: fetch_snapshot(self.client, self.draft.faculty_id, slots, self.settings))

    async def wait_for_snapshot(self) -> bool:
        return await self._fetcher.wait()

    def select_subject(self, subject: SubjectRecord, context: AssignmentContext | None = None) -> asyncio.Task:
        draft = self.draft.with_subject(subject)
        if context is not None:
            draft = draft.with_context(context)
        self.draft = draft
        return self.refresh()

    def set_schedule(self, kind: SessionKind, day: str, interval: TimeInterval) -> asyncio.Task:
        self.draft = self.draft.with_schedule(kind, day, interval)
        return self.refresh()

    def select_room(self, kind: SessionKind, room_id: str) -> None:
        # Room choice is checked against the current snapshot; nothing to refetch.
        self.draft = self.draft.with_room(kind, room_id)

    def validate(self) -> ValidationReportOut | None:
        if self.snapshot is None or self.draft.stage != WorkflowStage.submit:
            return None
        return validate_assignment(build_inputs(self.draft.to_request(), self.draft.subject, self.snapshot, self.settings))

    def rooms_for(self, kind: SessionKind) -> list[RoomCandidate]:
        component = self.draft.component(kind)
        if self.snapshot is None or not component.has_schedule:
            return []
        return match_rooms(
            self.snapshot.rooms,
            component.day,
            component.interval,
            expected_room_type(kind),
            mode=self.settings.room_type_match,
        )

    async def submit(self) -> CommitResult:
        """Commit the draft.

        On a server rejection the mapped issues are attached to the draft. On
        a transport failure the draft is left exactly as it was.
        """
        report = self.validate()
        if report is None:
            raise AssignmentRejectedError("The assignment is not ready to submit", status_code=422)
        if not report.accepted:
            raise AssignmentRejectedError("The assignment did not pass validation", issues=report.issues, status_code=422)
        if not can_submit(self.draft, report):
            raise AssignmentRejectedError(
                "Resolve the errors reported by the server first",
                issues=list(self.draft.server_issues),
            )
        draft = self.draft
        try:
            result = await self.client.commit_assignment(draft.to_payload())
        except AssignmentRejectedError as exc:
            if self.draft is draft:
                self.draft = draft.with_server_issues(exc.issues)
            raise
        self.draft = AssignmentDraft(faculty_id=draft.faculty_id, context=draft.context)
        self.snapshot = None
        return result

