from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from scheduleguard.schemas.assignment import (
    AssignmentIssue,
    AssignmentRequestPayload,
    ProposedSlotPayload,
    SubjectRecord,
    ValidationReportOut,
)
from scheduleguard.schemas.common import SessionKind, normalize_day
from scheduleguard.services.entities import AssignmentContext, AssignmentRequest, ProposedSlot
from scheduleguard.services.subjects import SubjectRequirement, subject_requirement
from scheduleguard.services.timeslots import TimeInterval


class WorkflowStage(str, Enum):
    select_subject = "SelectSubject"
    set_schedule = "SetSchedule"
    select_room = "SelectRoom"
    submit = "Submit"


@dataclass(frozen=True)
class ComponentDraft:
    kind: SessionKind
    day: str | None = None
    interval: TimeInterval | None = None
    room_id: str | None = None

    @property
    def has_schedule(self) -> bool:
        return self.day is not None and self.interval is not None

    def to_proposed(self) -> ProposedSlot:
        if not self.has_schedule or self.room_id is None:
            raise ValueError(f"{self.kind.value} component is incomplete")
        return ProposedSlot(kind=self.kind, day=self.day, interval=self.interval, room_id=self.room_id)


@dataclass(frozen=True)
class AssignmentDraft:
    """What the user has picked so far for one faculty assignment.

    Every edit returns a new draft. Server errors stay attached to the
    component they were reported for until that component is edited;
    errors not tied to a component go away on any edit.
    """

    faculty_id: str
    subject: SubjectRecord | None = None
    components: tuple[ComponentDraft, ...] = ()
    context: AssignmentContext = field(default_factory=AssignmentContext)
    server_issues: tuple[AssignmentIssue, ...] = ()

    @property
    def requirement(self) -> SubjectRequirement | None:
        if self.subject is None:
            return None
        return subject_requirement(self.subject)

    @property
    def stage(self) -> WorkflowStage:
        if self.subject is None or not self.components:
            return WorkflowStage.select_subject
        if not all(component.has_schedule for component in self.components):
            return WorkflowStage.set_schedule
        if not all(component.room_id for component in self.components):
            return WorkflowStage.select_room
        return WorkflowStage.submit

    def component(self, kind: SessionKind) -> ComponentDraft:
        for item in self.components:
            if item.kind == kind:
                return item
        raise KeyError(f"Subject has no {kind.value} component")

    def with_subject(self, subject: SubjectRecord) -> "AssignmentDraft":
        kinds = subject_requirement(subject).components()
        return replace(
            self,
            subject=subject,
            components=tuple(ComponentDraft(kind=kind) for kind in kinds),
            server_issues=(),
        )

    def with_context(self, context: AssignmentContext) -> "AssignmentDraft":
        return replace(self, context=context, server_issues=())

    def with_schedule(self, kind: SessionKind, day: str, interval: TimeInterval) -> "AssignmentDraft":
        # The room list depends on the slot, so a new slot drops the room pick.
        updated = ComponentDraft(kind=kind, day=normalize_day(day), interval=interval, room_id=None)
        return self._replace_component(updated)

    def with_room(self, kind: SessionKind, room_id: str) -> "AssignmentDraft":
        updated = replace(self.component(kind), room_id=room_id)
        return self._replace_component(updated)

    def with_server_issues(self, issues: list[AssignmentIssue]) -> "AssignmentDraft":
        return replace(self, server_issues=tuple(issues))

    def server_issues_for(self, kind: SessionKind | None) -> list[AssignmentIssue]:
        return [issue for issue in self.server_issues if issue.component == kind]

    def to_request(self) -> AssignmentRequest:
        if self.stage != WorkflowStage.submit:
            raise ValueError(f"Draft is not ready to submit (stage {self.stage.value})")
        return AssignmentRequest(
            faculty_id=self.faculty_id,
            subject_id=self.subject.id,
            proposed_slots=tuple(component.to_proposed() for component in self.components),
            context=self.context,
        )

    def to_payload(self) -> AssignmentRequestPayload:
        request = self.to_request()
        return AssignmentRequestPayload(
            faculty_id=request.faculty_id,
            subject_id=request.subject_id,
            schedules=[
                ProposedSlotPayload(kind=slot.kind, day=slot.day, time=slot.interval.to_range(), room_id=slot.room_id)
                for slot in request.proposed_slots
            ],
        )

    def _replace_component(self, updated: ComponentDraft) -> "AssignmentDraft":
        self.component(updated.kind)
        components = tuple(updated if item.kind == updated.kind else item for item in self.components)
        remaining = tuple(
            issue for issue in self.server_issues if issue.component is not None and issue.component != updated.kind
        )
        return replace(self, components=components, server_issues=remaining)


def can_submit(draft: AssignmentDraft, report: ValidationReportOut | None) -> bool:
    if draft.stage != WorkflowStage.submit or report is None:
        return False
    return report.accepted and not draft.server_issues
