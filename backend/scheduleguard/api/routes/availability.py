from fastapi import APIRouter, Depends

from scheduleguard.api.deps import get_backend_client
from scheduleguard.clients.backend import BackendClient
from scheduleguard.schemas.availability import FacultyAvailabilityPayload, RoomAvailabilityResponse

router = APIRouter()


@router.get("/faculty/{faculty_id}/availability", response_model=FacultyAvailabilityPayload)
async def get_faculty_availability(
    faculty_id: str,
    client: BackendClient = Depends(get_backend_client),
) -> FacultyAvailabilityPayload:
    return await client.get_faculty_availability(faculty_id)


@router.put("/faculty/{faculty_id}/availability", response_model=FacultyAvailabilityPayload)
async def replace_faculty_availability(
    faculty_id: str,
    payload: FacultyAvailabilityPayload,
    client: BackendClient = Depends(get_backend_client),
) -> FacultyAvailabilityPayload:
    # Overlapping windows are rejected by the payload model before this point.
    await client.put_faculty_availability(faculty_id, payload)
    return payload


@router.get("/rooms/{room_id}/availability", response_model=RoomAvailabilityResponse)
async def get_room_availability(
    room_id: str,
    client: BackendClient = Depends(get_backend_client),
) -> RoomAvailabilityResponse:
    return await client.get_room_availability(room_id)
