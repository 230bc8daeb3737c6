"""Domain models for effective and inferred locations."""

from dataclasses import dataclass
from enum import StrEnum


class LocationSource(StrEnum):
    """Where a photo's effective location came from."""

    EXIF = "exif"
    NEARBY = "nearby"
    INTERPOLATED = "interpolated"


@dataclass(frozen=True)
class LocationInference:
    """A location inferred for a photo without GPS."""

    photo_id: str
    latitude: float
    longitude: float
    confidence: float
    source: LocationSource
    method: str


@dataclass(frozen=True)
class EffectiveLocation:
    """Best known location for a photo."""

    latitude: float
    longitude: float
    confidence: float
    source: LocationSource
