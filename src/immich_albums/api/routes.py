"""JSON endpoints for labeling devices, managing homes and editing trips."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status

from immich_albums.api.models import (
    DeviceLabelRequest,
    HomeRequest,
    TripExcludeRequest,
    TripRenameRequest,
)

if TYPE_CHECKING:
    from immich_albums.containers import AppContainer

router = APIRouter(prefix="/api", tags=["albums"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.get("/devices")
async def list_devices(request: Request) -> dict[str, object]:
    """Return devices, most used first."""
    devices = _container(request).device_service.list_devices()
    return {"devices": [asdict(device) for device in devices]}


@router.post("/devices/{device_id}/label")
async def label_device(
    device_id: str, payload: DeviceLabelRequest, request: Request
) -> dict[str, object]:
    """Assign a photographer to a device."""
    try:
        device = _container(request).device_service.label_device(
            device_id, payload.photographer
        )
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return asdict(device)


@router.get("/homes")
async def list_homes(request: Request) -> dict[str, object]:
    """Return home locations."""
    homes = _container(request).home_service.list_homes()
    return {"homes": [asdict(home) for home in homes]}


@router.post("/homes", status_code=status.HTTP_201_CREATED)
async def add_home(payload: HomeRequest, request: Request) -> dict[str, object]:
    """Create a home location."""
    try:
        home = _container(request).home_service.add_home(
            payload.name, payload.latitude, payload.longitude, payload.radius_km
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return asdict(home)


@router.delete("/homes/{home_id}")
async def delete_home(home_id: int, request: Request) -> dict[str, str]:
    """Delete a home location."""
    if not _container(request).home_service.delete_home(home_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {"status": "deleted"}


@router.get("/sessions")
async def list_sessions(request: Request) -> dict[str, object]:
    """Return detected sessions ordered by start time."""
    sessions = _container(request).session_service.list_sessions()
    return {"sessions": [asdict(session) for session in sessions]}


@router.get("/trips")
async def list_trips(request: Request) -> dict[str, object]:
    """Return detected trips, newest first."""
    trips = _container(request).trip_service.list_trips()
    return {"trips": [asdict(trip) for trip in trips]}


@router.patch("/trips/{trip_id}")
async def rename_trip(
    trip_id: int, payload: TripRenameRequest, request: Request
) -> dict[str, object]:
    """Rename a trip."""
    try:
        trip = _container(request).trip_service.rename_trip(trip_id, payload.name)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    return asdict(trip)


@router.post("/trips/{trip_id}/exclude")
async def exclude_trip(
    trip_id: int, payload: TripExcludeRequest, request: Request
) -> dict[str, object]:
    """Include or exclude a trip from album creation."""
    try:
        trip = _container(request).trip_service.set_excluded(trip_id, payload.excluded)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
    return asdict(trip)


@router.get("/coverage")
async def coverage(request: Request) -> dict[str, object]:
    """Return the photo coverage report."""
    return asdict(_container(request).analysis_service.coverage())
