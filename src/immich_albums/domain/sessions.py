"""Domain models for photo sessions."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Session:
    """Photos taken close together in time and space."""

    start_time: datetime
    end_time: datetime
    photo_ids: list[str]
    center_lat: float
    center_lon: float
    radius_km: float
    photographer: str
    id: int | None = None

    @property
    def photographer_names(self) -> list[str]:
        """Split a merged ``"A, B"`` photographer string into names."""
        return [name.strip() for name in self.photographer.split(",") if name.strip()]
