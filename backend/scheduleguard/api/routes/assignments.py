import asyncio

from fastapi import APIRouter, Depends, Query

from scheduleguard.api.deps import get_app_settings, get_backend_client
from scheduleguard.clients.backend import BackendClient
from scheduleguard.core.config import Settings
from scheduleguard.schemas.assignment import (
    LoadAssessmentOut,
    LoadAssessmentRequest,
    RoomMatchOut,
    RoomMatchRequest,
    SubjectRecord,
    SubmitAssignmentRequest,
    SubmitAssignmentResponse,
    ValidateAssignmentRequest,
    ValidationReportOut,
)
from scheduleguard.services.assignment_session import max_subjects_for, validate_and_commit
from scheduleguard.services.assignment_validator import (
    AssignmentInputs,
    load_assessment_out,
    room_match_out,
    validate_assignment,
)
from scheduleguard.services.room_matcher import expected_room_type, match_rooms
from scheduleguard.services.subjects import subject_pick_list, subject_requirement, subject_unit_cost
from scheduleguard.services.timeslots import TimeInterval
from scheduleguard.services.workload import account_with_defaults, assess_load

router = APIRouter()


@router.post("/validate", response_model=ValidationReportOut)
def validate(
    payload: ValidateAssignmentRequest,
    settings: Settings = Depends(get_app_settings),
) -> ValidationReportOut:
    inputs = AssignmentInputs(
        request=payload.request.to_domain(payload.context.to_domain()),
        requirement=subject_requirement(payload.subject),
        faculty_availability=payload.faculty_availability.to_calendar(),
        load_account=account_with_defaults(
            payload.load.current_assigned_units,
            payload.load.normal_cap_units,
            payload.load.overload_cap_units,
            default_normal_cap_units=settings.default_normal_cap_units,
            default_overload_cap_units=settings.default_overload_cap_units,
        ),
        new_units=subject_unit_cost(payload.subject),
        existing_slots=[slot.to_domain() for slot in payload.existing_slots],
        rooms=[room.to_domain() for room in payload.rooms],
        room_type_match=settings.room_type_match,
        assigned_subject_ids=payload.load.assigned_subject_ids,
        max_subjects=max_subjects_for(payload.load, settings),
    )
    return validate_assignment(inputs)


@router.post("/rooms/match", response_model=list[RoomMatchOut])
def match(
    payload: RoomMatchRequest,
    settings: Settings = Depends(get_app_settings),
) -> list[RoomMatchOut]:
    candidates = match_rooms(
        [room.to_domain() for room in payload.rooms],
        payload.day,
        TimeInterval.from_range(payload.time),
        expected_room_type(payload.kind),
        mode=settings.room_type_match,
    )
    return [room_match_out(candidate) for candidate in candidates]


@router.post("/load", response_model=LoadAssessmentOut)
def load(
    payload: LoadAssessmentRequest,
    settings: Settings = Depends(get_app_settings),
) -> LoadAssessmentOut:
    account = account_with_defaults(
        payload.current_assigned_units,
        payload.normal_cap_units,
        payload.overload_cap_units,
        default_normal_cap_units=settings.default_normal_cap_units,
        default_overload_cap_units=settings.default_overload_cap_units,
    )
    return load_assessment_out(assess_load(account, payload.new_units))


@router.post("/submit", response_model=SubmitAssignmentResponse)
async def submit(
    payload: SubmitAssignmentRequest,
    settings: Settings = Depends(get_app_settings),
    client: BackendClient = Depends(get_backend_client),
) -> SubmitAssignmentResponse:
    subject = await client.get_subject(payload.request.subject_id)
    report, result = await validate_and_commit(
        client,
        payload.request,
        subject,
        settings,
        context=payload.context.to_domain(),
    )
    return SubmitAssignmentResponse(report=report, result=result)


@router.get("/subjects", response_model=list[SubjectRecord])
async def subjects_for_faculty(
    faculty_id: str = Query(alias="facultyId", min_length=1, max_length=36),
    client: BackendClient = Depends(get_backend_client),
) -> list[SubjectRecord]:
    faculty, subjects, load = await asyncio.gather(
        client.get_faculty(faculty_id),
        client.list_subjects(),
        client.get_faculty_load(faculty_id),
    )
    return subject_pick_list(subjects, faculty.expertise, load.assigned_subject_ids)
