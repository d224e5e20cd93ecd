from scheduleguard.schemas.assignment import AssignmentErrorCode
from scheduleguard.schemas.common import SessionKind
from scheduleguard.services.assignment_validator import AssignmentInputs, validate_assignment
from scheduleguard.services.entities import AssignmentRequest, ProposedSlot, Room, ScheduleSlot
from scheduleguard.services.subjects import SubjectRequirement
from scheduleguard.services.timeslots import AvailabilityCalendar, TimeInterval
from scheduleguard.services.workload import LoadAccount


def calendar(**windows):
    return AvailabilityCalendar(
        {day: tuple(TimeInterval.from_range(value) for value in values) for day, values in windows.items()}
    )


ALL_WEEK = {day: ["07:00-20:00"] for day in ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")}

ROOMS = (
    Room(id="r101", type="Lecture", capacity=40, availability=calendar(**ALL_WEEK), name="Room 101"),
    Room(id="r202", type="Lecture", capacity=40, availability=calendar(**ALL_WEEK), name="Room 202"),
    Room(id="r303", type="Lecture", capacity=40, availability=calendar(Monday=["13:00-17:00"]), name="Room 303"),
    Room(id="lab1", type="Laboratory", capacity=30, availability=calendar(**ALL_WEEK), name="Lab 1"),
)


def slot(kind, day, time, room_id):
    return ProposedSlot(kind=kind, day=day, interval=TimeInterval.from_range(time), room_id=room_id)


def make_inputs(
    *slots,
    availability=None,
    lec_minutes=90,
    lab_minutes=0,
    current_units=12,
    new_units=3,
    existing=(),
    assigned=(),
    max_subjects=None,
):
    return AssignmentInputs(
        request=AssignmentRequest(faculty_id="faculty-x", subject_id="42", proposed_slots=tuple(slots)),
        requirement=SubjectRequirement(lec_minutes_per_week=lec_minutes, lab_minutes_per_week=lab_minutes),
        faculty_availability=availability if availability is not None else calendar(Monday=["08:00-12:00"]),
        load_account=LoadAccount(normal_cap_units=18, overload_cap_units=6, current_assigned_units=current_units),
        new_units=new_units,
        existing_slots=existing,
        rooms=ROOMS,
        assigned_subject_ids=assigned,
        max_subjects=max_subjects,
    )


def test_lecture_inside_availability_is_accepted():
    report = validate_assignment(make_inputs(slot(SessionKind.lec, "Monday", "09:00-10:30", "r101")))

    assert report.accepted
    assert report.issues == []
    assert report.notices == []
    assert report.slots[0].required_minutes == 90
    assert {room.room_id for room in report.slots[0].rooms} == {"r101", "r202", "r303"}
    assert report.load.potential_total_units == 15


def test_slot_overlapping_but_not_inside_availability_is_rejected():
    report = validate_assignment(
        make_inputs(
            slot(SessionKind.lec, "Monday", "09:00-11:00", "r101"),
            availability=calendar(Monday=["08:00-10:00"]),
            lec_minutes=120,
        )
    )

    assert not report.accepted
    assert [issue.code for issue in report.issues] == [AssignmentErrorCode.outside_availability]
    assert report.issues[0].component == SessionKind.lec
    assert "available only 08:00-10:00" in report.issues[0].message


def test_day_without_availability_is_rejected():
    report = validate_assignment(make_inputs(slot(SessionKind.lec, "Friday", "09:00-10:00", "r101")))

    assert report.issues[0].code == AssignmentErrorCode.outside_availability
    assert "not available" in report.issues[0].message


def test_slot_longer_than_required_minutes_is_rejected():
    report = validate_assignment(make_inputs(slot(SessionKind.lec, "Monday", "09:00-11:00", "r101")))

    assert [issue.code for issue in report.issues] == [AssignmentErrorCode.duration_exceeded]
    assert "more than the required 90" in report.issues[0].message


def test_component_without_hours_cannot_be_scheduled():
    report = validate_assignment(
        make_inputs(
            slot(SessionKind.lec, "Monday", "09:00-10:30", "r101"),
            slot(SessionKind.lab, "Monday", "10:30-11:30", "lab1"),
        )
    )

    assert [(issue.component, issue.code) for issue in report.issues] == [
        (SessionKind.lab, AssignmentErrorCode.duration_exceeded)
    ]
    assert "no LAB hours" in report.issues[0].message


def test_missing_required_component_is_reported():
    report = validate_assignment(
        make_inputs(slot(SessionKind.lec, "Monday", "09:00-10:30", "r101"), lab_minutes=180)
    )

    assert not report.accepted
    assert [(issue.component, issue.code) for issue in report.issues] == [
        (SessionKind.lab, AssignmentErrorCode.general)
    ]


def test_room_checks():
    unknown = validate_assignment(make_inputs(slot(SessionKind.lec, "Monday", "09:00-10:00", "r999")))
    assert unknown.issues[0].code == AssignmentErrorCode.room_unavailable
    assert "not in the room inventory" in unknown.issues[0].message

    wrong_type = validate_assignment(make_inputs(slot(SessionKind.lec, "Monday", "09:00-10:00", "lab1")))
    assert wrong_type.issues[0].code == AssignmentErrorCode.room_unavailable
    assert "Laboratory room, Lecture required" in wrong_type.issues[0].message

    busy = validate_assignment(make_inputs(slot(SessionKind.lec, "Monday", "09:00-10:00", "r303")))
    assert busy.issues[0].code == AssignmentErrorCode.room_unavailable
    assert "Room 303 is only free 13:00-17:00" in busy.issues[0].message


def test_faculty_conflict_in_a_different_room():
    existing = (
        ScheduleSlot(
            owner_faculty_id="faculty-x",
            day="Wednesday",
            interval=TimeInterval.from_range("10:00-11:30"),
            kind=SessionKind.lec,
            room_id="r101",
            subject_id="7",
            slot_id="77",
        ),
    )

    report = validate_assignment(
        make_inputs(
            slot(SessionKind.lec, "Wednesday", "11:00-12:00", "r202"),
            availability=calendar(Wednesday=["08:00-17:00"]),
            existing=existing,
        )
    )

    assert not report.accepted
    assert [issue.code for issue in report.issues] == [AssignmentErrorCode.faculty_conflict]
    assert report.issues[0].conflicting_slot_id == "77"


def test_first_failing_check_wins_per_slot():
    report = validate_assignment(
        make_inputs(slot(SessionKind.lec, "Monday", "11:00-13:00", "r999"), lec_minutes=60)
    )

    assert [issue.code for issue in report.issues] == [AssignmentErrorCode.outside_availability]


def test_load_exceeded_blocks_even_when_slots_are_valid():
    report = validate_assignment(
        make_inputs(slot(SessionKind.lec, "Monday", "09:00-10:30", "r101"), current_units=22)
    )

    assert not report.accepted
    assert [issue.code for issue in report.issues] == [AssignmentErrorCode.load_exceeded]
    assert report.issues[0].component is None
    assert report.load.exceeded
    assert report.slots[0].issues == []


def test_overload_is_a_notice_not_an_issue():
    report = validate_assignment(
        make_inputs(slot(SessionKind.lec, "Monday", "09:00-10:30", "r101"), current_units=20)
    )

    assert report.accepted
    assert [notice.code for notice in report.notices] == ["OverloadApplied"]
    assert report.load.overload_applied
    assert report.load.overload_units_used == 5


def test_subject_already_assigned_is_rejected():
    report = validate_assignment(
        make_inputs(slot(SessionKind.lec, "Monday", "09:00-10:30", "r101"), assigned=["7", "42"])
    )

    assert not report.accepted
    assert [issue.code for issue in report.issues] == [AssignmentErrorCode.already_assigned]
    assert report.issues[0].component is None


def test_subject_limit_blocks_a_new_subject():
    inputs = make_inputs(slot(SessionKind.lec, "Monday", "09:00-10:30", "r101"), assigned=["7", "8"], max_subjects=2)

    report = validate_assignment(inputs)

    assert not report.accepted
    assert [issue.code for issue in report.issues] == [AssignmentErrorCode.subject_limit_reached]
    assert "maximum is 2" in report.issues[0].message


def test_subject_limit_leaves_room_for_one_more():
    inputs = make_inputs(slot(SessionKind.lec, "Monday", "09:00-10:30", "r101"), assigned=["7"], max_subjects=2)

    assert validate_assignment(inputs).accepted
