from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from scheduleguard.core.config import Settings
from scheduleguard.core.exceptions import AssignmentRejectedError, BackendUnavailableError, ResourceNotFoundError
from scheduleguard.schemas.assignment import (
    AssignmentRequestPayload,
    CommitResult,
    FacultyLoadPayload,
    FacultyRecord,
    RoomPayload,
    ScheduleSlotPayload,
    SubjectRecord,
)
from scheduleguard.schemas.availability import FacultyAvailabilityPayload, RoomAvailabilityResponse
from scheduleguard.services.server_errors import map_server_rejection
from scheduleguard.services.timeslots import TimeInterval

logger = logging.getLogger(__name__)

REJECTION_STATUSES = {400, 409, 422}


class BackendClient:
    """Async client for the persistence backend that owns faculty, rooms and schedules.

    Reads return boundary DTOs. `commit_assignment` sends every component of
    one request in a single call; the backend either records all of them or
    none.
    """

    def __init__(self, http: httpx.AsyncClient):
        self._http = http

    @classmethod
    def from_settings(cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> "BackendClient":
        headers = {"Accept": "application/json"}
        if settings.backend_api_token:
            headers["Authorization"] = f"Bearer {settings.backend_api_token}"
        http = httpx.AsyncClient(
            base_url=settings.backend_base_url,
            headers=headers,
            timeout=settings.backend_timeout_seconds,
            transport=transport,
        )
        return cls(http)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Backend %s %s failed: %s", method, url, exc)
            raise BackendUnavailableError(
                "Could not reach the scheduling backend",
                details={"method": method, "url": url, "error": str(exc)},
            ) from exc

    async def _get_json(self, url: str, *, resource: str, resource_id: str, params: dict | None = None) -> Any:
        response = await self._request("GET", url, params=params)
        if response.status_code == 404:
            raise ResourceNotFoundError(resource, resource_id)
        if response.is_error:
            raise BackendUnavailableError(
                f"Backend answered {response.status_code} for {url}",
                details={"status": response.status_code},
            )
        try:
            return response.json()
        except ValueError as exc:
            raise BackendUnavailableError(f"Backend returned invalid JSON for {url}") from exc

    @staticmethod
    def _parse(model, data: Any, url: str):
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            logger.warning("Unexpected payload from %s: %s", url, exc)
            raise BackendUnavailableError(
                f"Backend returned an unexpected payload for {url}",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

    async def get_faculty_availability(self, faculty_id: str) -> FacultyAvailabilityPayload:
        url = f"/faculties/{faculty_id}/availability"
        data = await self._get_json(url, resource="Faculty", resource_id=faculty_id)
        return self._parse(FacultyAvailabilityPayload, data or {}, url)

    async def put_faculty_availability(self, faculty_id: str, availability: FacultyAvailabilityPayload) -> None:
        url = f"/faculties/{faculty_id}/availability"
        response = await self._request("PUT", url, json=availability.model_dump(mode="json"))
        if response.status_code == 404:
            raise ResourceNotFoundError("Faculty", faculty_id)
        if response.is_error:
            raise BackendUnavailableError(
                f"Backend answered {response.status_code} when saving availability",
                details={"status": response.status_code},
            )

    async def list_rooms(
        self,
        *,
        day: str | None = None,
        interval: TimeInterval | None = None,
        room_type: str | None = None,
    ) -> list[RoomPayload]:
        """Rooms from the backend's coarse day/time/type filter.

        The filter is only a pre-selection; callers must still run the room
        matcher on the result.
        """
        params: dict[str, str] = {}
        if day:
            params["day"] = day
        if interval is not None:
            params["start"] = interval.start_time
            params["end"] = interval.end_time
        if room_type:
            params["type"] = room_type
        data = await self._get_json("/rooms", resource="Rooms", resource_id="*", params=params or None)
        items = data.get("rooms", []) if isinstance(data, dict) else data
        return [self._parse(RoomPayload, item, "/rooms") for item in items or []]

    async def get_room_availability(self, room_id: str) -> RoomAvailabilityResponse:
        url = f"/rooms/{room_id}/availabilities"
        data = await self._get_json(url, resource="Room", resource_id=room_id)
        return self._parse(RoomAvailabilityResponse, data or {}, url)

    async def get_faculty_load(self, faculty_id: str) -> FacultyLoadPayload:
        url = f"/faculties/{faculty_id}/load"
        data = await self._get_json(url, resource="Faculty", resource_id=faculty_id)
        return self._parse(FacultyLoadPayload, data, url)

    async def list_schedule_slots(self, *, day: str | None = None) -> list[ScheduleSlotPayload]:
        url = "/faculty-loading/schedules"
        data = await self._get_json(url, resource="Schedules", resource_id="*", params={"day": day} if day else None)
        items = data.get("schedules", []) if isinstance(data, dict) else data
        return [self._parse(ScheduleSlotPayload, item, url) for item in items or []]

    async def get_subject(self, subject_id: str) -> SubjectRecord:
        url = f"/subjects/{subject_id}"
        data = await self._get_json(url, resource="Subject", resource_id=subject_id)
        if isinstance(data, dict) and isinstance(data.get("subject"), dict):
            data = data["subject"]
        return self._parse(SubjectRecord, data, url)

    async def list_subjects(self) -> list[SubjectRecord]:
        url = "/subjects"
        data = await self._get_json(url, resource="Subjects", resource_id="*")
        items = data.get("subjects", []) if isinstance(data, dict) else data
        return [self._parse(SubjectRecord, item, url) for item in items or []]

    async def get_faculty(self, faculty_id: str) -> FacultyRecord:
        url = f"/faculties/{faculty_id}"
        data = await self._get_json(url, resource="Faculty", resource_id=faculty_id)
        if isinstance(data, dict) and isinstance(data.get("faculty"), dict):
            data = data["faculty"]
        return self._parse(FacultyRecord, data, url)

    async def commit_assignment(self, payload: AssignmentRequestPayload) -> CommitResult:
        response = await self._request(
            "POST",
            "/faculty-loading",
            json=payload.model_dump(mode="json", by_alias=True),
        )
        if response.status_code in REJECTION_STATUSES:
            try:
                body = response.json()
            except ValueError:
                body = None
            issues = map_server_rejection(body)
            logger.info(
                "Backend rejected subject %s for faculty %s: %s",
                payload.subject_id,
                payload.faculty_id,
                "; ".join(issue.message for issue in issues),
            )
            raise AssignmentRejectedError("The server rejected the assignment", issues=issues)
        if response.is_error:
            raise BackendUnavailableError(
                f"Backend answered {response.status_code} when saving the assignment",
                details={"status": response.status_code},
            )
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return CommitResult(
            message=str(body.get("message") or "Assignment saved"),
            slot_ids=[str(item) for item in body.get("slotIds", body.get("ids", [])) or []],
        )
