"""Home location management."""

from dataclasses import dataclass
from typing import Protocol

from immich_albums.domain.trips import HomeLocation


class HomeRepository(Protocol):
    """Persistence interface for home locations."""

    def list_homes(self) -> list[HomeLocation]:
        """Return all home locations."""

    def add_home(self, home: HomeLocation) -> HomeLocation:
        """Store a home location and return it with its id."""

    def delete_home(self, home_id: int) -> bool:
        """Delete a home location; return False when it did not exist."""

    def replace_homes(self, homes: list[HomeLocation]) -> None:
        """Replace every stored home location."""


@dataclass
class HomeService:
    """Application service for home locations."""

    repository: HomeRepository

    def list_homes(self) -> list[HomeLocation]:
        """Return all home locations."""
        return self.repository.list_homes()

    def add_home(
        self, name: str, latitude: float, longitude: float, radius_km: float
    ) -> HomeLocation:
        """Validate and store a new home location."""
        if not -90 <= latitude <= 90:
            raise ValueError(f"Latitude out of range: {latitude}")
        if not -180 <= longitude <= 180:
            raise ValueError(f"Longitude out of range: {longitude}")
        if radius_km <= 0:
            raise ValueError("Radius must be positive")
        home = HomeLocation(
            name=name.strip() or "Home",
            latitude=latitude,
            longitude=longitude,
            radius_km=radius_km,
        )
        return self.repository.add_home(home)

    def delete_home(self, home_id: int) -> bool:
        """Delete a home location by id."""
        return self.repository.delete_home(home_id)
