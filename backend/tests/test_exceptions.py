from scheduleguard.core.exceptions import (
    AppError,
    AssignmentRejectedError,
    BackendUnavailableError,
    ResourceNotFoundError,
)
from scheduleguard.schemas.assignment import AssignmentErrorCode, AssignmentIssue
from scheduleguard.schemas.common import SessionKind


def test_assignment_rejected_error_structure():
    issue = AssignmentIssue(
        code=AssignmentErrorCode.room_conflict,
        component=SessionKind.lec,
        message="Room overlap",
        conflicting_slot_id="s1",
    )
    err = AssignmentRejectedError("Rejected", issues=[issue])

    assert err.status_code == 409
    assert err.issues == [issue]
    assert err.details == {
        "issues": [
            {
                "code": "RoomConflict",
                "component": "LEC",
                "message": "Room overlap",
                "source": "local",
                "conflictingSlotId": "s1",
            }
        ]
    }
    assert isinstance(err, AppError)


def test_backend_errors():
    unavailable = BackendUnavailableError("down", details={"status": 503})
    assert unavailable.status_code == 502
    assert unavailable.details == {"status": 503}

    missing = ResourceNotFoundError("Subject", "42")
    assert missing.status_code == 404
    assert missing.message == "Subject with id 42 not found"


def test_app_error_defaults():
    err = AppError("Generic error")
    assert err.status_code == 500
    assert err.details == {}
