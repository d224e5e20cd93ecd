import pytest

from scheduleguard.schemas.assignment import (
    AssignmentErrorCode,
    AssignmentIssue,
    LoadAssessmentOut,
    SubjectRecord,
    ValidationReportOut,
)
from scheduleguard.schemas.common import SessionKind
from scheduleguard.services.draft import AssignmentDraft, WorkflowStage, can_submit
from scheduleguard.services.entities import AssignmentContext
from scheduleguard.services.timeslots import TimeInterval

SUBJECT = SubjectRecord(id=42, subject_code="CS101", total_units=3, total_lec_hrs=1.5, total_lab_hrs=3)


def server_issue(component, message="Rejected by server"):
    code = AssignmentErrorCode.server_rejection if component else AssignmentErrorCode.general
    return AssignmentIssue(code=code, component=component, message=message, source="server")


def accepted_report(accepted=True):
    load = LoadAssessmentOut(
        normal_cap_units=18,
        total_cap_units=24,
        current_assigned_units=12,
        new_units=3,
        potential_total_units=15,
        exceeded=False,
        overload_applied=False,
        overload_units_used=0,
        remaining_units=9,
    )
    return ValidationReportOut(accepted=accepted, load=load)


@pytest.fixture
def ready_draft():
    return (
        AssignmentDraft(faculty_id="f1")
        .with_subject(SUBJECT)
        .with_schedule(SessionKind.lec, "Mon", TimeInterval.from_range("09:00-10:30"))
        .with_room(SessionKind.lec, "r101")
        .with_schedule(SessionKind.lab, "Wednesday", TimeInterval.from_range("09:00-12:00"))
        .with_room(SessionKind.lab, "lab1")
    )


def test_stages_follow_the_workflow():
    draft = AssignmentDraft(faculty_id="f1")
    assert draft.stage == WorkflowStage.select_subject

    draft = draft.with_subject(SUBJECT)
    assert [component.kind for component in draft.components] == [SessionKind.lec, SessionKind.lab]
    assert draft.stage == WorkflowStage.set_schedule

    draft = draft.with_schedule(SessionKind.lec, "Monday", TimeInterval.from_range("09:00-10:30"))
    draft = draft.with_schedule(SessionKind.lab, "Wednesday", TimeInterval.from_range("09:00-12:00"))
    assert draft.stage == WorkflowStage.select_room

    draft = draft.with_room(SessionKind.lec, "r101").with_room(SessionKind.lab, "lab1")
    assert draft.stage == WorkflowStage.submit


def test_edits_return_new_drafts(ready_draft):
    edited = ready_draft.with_room(SessionKind.lec, "r202")

    assert ready_draft.component(SessionKind.lec).room_id == "r101"
    assert edited.component(SessionKind.lec).room_id == "r202"


def test_new_schedule_drops_room_pick(ready_draft):
    edited = ready_draft.with_schedule(SessionKind.lec, "Monday", TimeInterval.from_range("10:00-11:30"))

    assert edited.component(SessionKind.lec).room_id is None
    assert edited.component(SessionKind.lab).room_id == "lab1"
    assert edited.stage == WorkflowStage.select_room


def test_unknown_component_is_rejected():
    draft = AssignmentDraft(faculty_id="f1").with_subject(
        SubjectRecord(id=7, total_units=2, total_lec_hrs=2)
    )
    with pytest.raises(KeyError):
        draft.with_room(SessionKind.lab, "lab1")


def test_server_issues_persist_until_their_component_is_edited(ready_draft):
    draft = ready_draft.with_server_issues(
        [server_issue(SessionKind.lec), server_issue(SessionKind.lab), server_issue(None)]
    )

    edited = draft.with_room(SessionKind.lab, "lab2")

    assert edited.server_issues_for(SessionKind.lec) == draft.server_issues_for(SessionKind.lec)
    assert edited.server_issues_for(SessionKind.lab) == []
    assert edited.server_issues_for(None) == []


def test_changing_subject_or_context_clears_server_issues(ready_draft):
    draft = ready_draft.with_server_issues([server_issue(SessionKind.lec)])

    assert draft.with_subject(SUBJECT).server_issues == ()
    assert draft.with_context(AssignmentContext(section_id="A")).server_issues == ()


def test_payload_matches_commit_shape(ready_draft):
    payload = ready_draft.to_payload()

    assert payload.model_dump(mode="json", by_alias=True) == {
        "facultyId": "f1",
        "subjectId": "42",
        "schedules": [
            {"kind": "LEC", "day": "Monday", "time": "09:00-10:30", "roomId": "r101"},
            {"kind": "LAB", "day": "Wednesday", "time": "09:00-12:00", "roomId": "lab1"},
        ],
    }


def test_incomplete_draft_cannot_build_a_request():
    draft = AssignmentDraft(faculty_id="f1").with_subject(SUBJECT)
    with pytest.raises(ValueError):
        draft.to_request()


def test_can_submit_requires_accepted_report_and_no_server_issues(ready_draft):
    assert can_submit(ready_draft, accepted_report())
    assert not can_submit(ready_draft, accepted_report(accepted=False))
    assert not can_submit(ready_draft, None)
    assert not can_submit(ready_draft.with_server_issues([server_issue(None)]), accepted_report())
    assert not can_submit(AssignmentDraft(faculty_id="f1").with_subject(SUBJECT), accepted_report())
