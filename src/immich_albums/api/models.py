"""Pydantic request models for the editing API."""

from pydantic import BaseModel, Field


class DeviceLabelRequest(BaseModel):
    """Photographer label for a device."""

    photographer: str = Field(min_length=1)


class HomeRequest(BaseModel):
    """New home location."""

    name: str = "Home"
    latitude: float
    longitude: float
    radius_km: float = 1.0


class TripRenameRequest(BaseModel):
    name: str = Field(min_length=1)


class TripExcludeRequest(BaseModel):
    excluded: bool = True
