import json

import httpx
import pytest
from fastapi.testclient import TestClient

from scheduleguard.api.deps import get_backend_client
from scheduleguard.clients.backend import BackendClient
from scheduleguard.core.config import Settings
from scheduleguard.main import app


class FakeBackend:
    """In-memory stand-in for the persistence backend, served through httpx.MockTransport."""

    def __init__(self):
        self.availability = {
            "f1": {
                "Monday": [{"start": "08:00", "end": "12:00"}],
                "Wednesday": [{"start": "09:00", "end": "13:00"}],
            },
        }
        self.faculties = {
            "f1": {"id": "f1", "name": "Dr. Reed", "expertise": ["Programming"]},
        }
        self.loads = {
            "f1": {"currentAssignedUnits": 12, "assignedSubjectIds": [7], "normalCapUnits": 18, "overloadCapUnits": 6},
        }
        self.rooms = [
            {"id": "r101", "roomNumber": "Room 101", "type": "Lecture", "capacity": 40},
            {"id": "r202", "roomNumber": "Room 202", "type": "Lecture", "capacity": 40},
            {"id": "lab1", "roomNumber": "Lab 1", "type": "Laboratory", "capacity": 30},
        ]
        self.room_availability = {
            "r101": [
                {"day": "Monday", "start_time": "07:00:00", "end_time": "18:00:00"},
                {"day": "Wednesday", "start_time": "07:00:00", "end_time": "18:00:00"},
            ],
            "r202": [
                {"day": "Monday", "start_time": "07:00:00", "end_time": "18:00:00"},
                {"day": "Wednesday", "start_time": "07:00:00", "end_time": "18:00:00"},
            ],
            "lab1": [
                {"day": "Wednesday", "start_time": "09:00:00", "end_time": "17:00:00"},
            ],
        }
        self.schedules = [
            {
                "id": 55,
                "facultyId": "f2",
                "day": "Monday",
                "startTime": "13:00:00",
                "endTime": "15:00:00",
                "type": "LEC",
                "roomId": "r101",
                "subjectId": 9,
            },
        ]
        self.subjects = {
            "42": {
                "id": 42,
                "subject_code": "CS101",
                "des_title": "Introduction to Programming",
                "total_units": 3,
                "lec_units": 2,
                "lab_units": 1,
                "total_lec_hrs": 1.5,
                "total_lab_hrs": 3,
            },
            "7": {
                "id": 7,
                "subject_code": "CS102",
                "des_title": "Programming Fundamentals",
                "total_units": 3,
                "total_lec_hrs": 3,
                "expertise": "Programming",
            },
            "51": {
                "id": 51,
                "subject_code": "MATH201",
                "des_title": "Linear Algebra",
                "total_units": 3,
                "total_lec_hrs": 3,
            },
        }
        self.commit_response = (201, {"message": "Assignment saved", "slotIds": [301, 302]})
        self.commits = []
        self.requests = []
        self.offline = False

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("backend is down", request=request)
        parts = request.url.path.removeprefix("/api").strip("/").split("/")
        method = request.method

        if parts[0] == "faculties" and len(parts) == 2:
            if parts[1] not in self.faculties:
                return httpx.Response(404, json={"message": "Faculty not found"})
            return httpx.Response(200, json={"faculty": self.faculties[parts[1]]})

        if parts[0] == "faculties" and len(parts) == 3:
            faculty_id, resource = parts[1], parts[2]
            if resource == "availability" and method == "PUT":
                if faculty_id not in self.loads:
                    return httpx.Response(404, json={"message": "Faculty not found"})
                self.availability[faculty_id] = json.loads(request.content)
                return httpx.Response(200, json={"message": "Availability saved"})
            store = self.availability if resource == "availability" else self.loads
            if faculty_id not in store:
                return httpx.Response(404, json={"message": "Faculty not found"})
            return httpx.Response(200, json=store[faculty_id])

        if parts == ["rooms"]:
            return httpx.Response(200, json={"rooms": self.rooms})

        if parts[0] == "rooms" and len(parts) == 3 and parts[2] == "availabilities":
            return httpx.Response(200, json={"availabilities": self.room_availability.get(parts[1], [])})

        if parts == ["faculty-loading", "schedules"]:
            day = request.url.params.get("day")
            schedules = [slot for slot in self.schedules if day is None or slot["day"] == day]
            return httpx.Response(200, json=schedules)

        if parts == ["subjects"]:
            return httpx.Response(200, json={"subjects": list(self.subjects.values())})

        if parts[0] == "subjects" and len(parts) == 2:
            if parts[1] not in self.subjects:
                return httpx.Response(404, json={"message": "Subject not found"})
            return httpx.Response(200, json=self.subjects[parts[1]])

        if parts == ["faculty-loading"] and method == "POST":
            self.commits.append(json.loads(request.content))
            status_code, body = self.commit_response
            return httpx.Response(status_code, json=body)

        return httpx.Response(404, json={"message": "Not found"})


@pytest.fixture()
def fake_backend():
    return FakeBackend()


@pytest.fixture()
def settings():
    return Settings(_env_file=None, backend_base_url="http://backend.test/api")


@pytest.fixture()
def make_backend_client(fake_backend, settings):
    def factory():
        return BackendClient.from_settings(settings, transport=httpx.MockTransport(fake_backend.handle))

    return factory


@pytest.fixture()
def client(fake_backend, settings):
    async def override_get_backend_client():
        backend = BackendClient.from_settings(settings, transport=httpx.MockTransport(fake_backend.handle))
        try:
            yield backend
        finally:
            await backend.aclose()

    app.dependency_overrides[get_backend_client] = override_get_backend_client

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
