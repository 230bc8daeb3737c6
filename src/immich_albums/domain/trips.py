"""Domain models for trips and home locations."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from immich_albums.domain.sessions import Session


class TripEnd(StrEnum):
    """Why a trip boundary was drawn."""

    FORCED_SPLIT = "forced_split"
    SESSION_GAP = "session_gap"
    HOME_STAY = "home_stay"
    END_OF_INPUT = "end_of_input"


@dataclass(frozen=True)
class HomeLocation:
    """A user-declared home base; radius is in kilometres."""

    name: str
    latitude: float
    longitude: float
    radius_km: float
    id: int | None = None


@dataclass(frozen=True)
class Trip:
    """An ordered group of sessions forming one journey."""

    name: str
    start_time: datetime
    end_time: datetime
    sessions: list[Session]
    photo_ids: list[str]
    photographers: list[str]
    home_distance_km: float | None
    total_distance_km: float
    center_lat: float
    center_lon: float
    session_count: int
    ended_by: TripEnd
    id: int | None = None
    album_id: str | None = None
    exclude_from_album: bool = False

    @property
    def duration(self) -> timedelta:
        """Return the time between the first and last photo."""
        return self.end_time - self.start_time
