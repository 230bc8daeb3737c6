"""Supabase-backed home location repository."""

from dataclasses import dataclass
from typing import Any

from supabase import Client

from immich_albums.adapters.supabase_tables import (
    clear_table,
    fetch_all,
    insert_batches,
)
from immich_albums.domain.trips import HomeLocation
from immich_albums.services.homes import HomeRepository

_TABLE = "home_locations"


@dataclass
class SupabaseHomeRepository(HomeRepository):
    """Supabase implementation for home locations."""

    client: Client

    def list_homes(self) -> list[HomeLocation]:
        """Return all home locations."""
        return [_parse_home(row) for row in fetch_all(self.client, _TABLE, "id")]

    def add_home(self, home: HomeLocation) -> HomeLocation:
        """Store a home location and return it with its id."""
        response = self.client.table(_TABLE).insert(_to_row(home)).execute()
        if not response.data:
            raise RuntimeError("Failed to create home location")
        return _parse_home(response.data[0])

    def delete_home(self, home_id: int) -> bool:
        """Delete a home location."""
        response = self.client.table(_TABLE).delete().eq("id", home_id).execute()
        return bool(response.data)

    def replace_homes(self, homes: list[HomeLocation]) -> None:
        """Replace every stored home location."""
        clear_table(self.client, _TABLE, "id", -1)
        if homes:
            insert_batches(self.client, _TABLE, [_to_row(home) for home in homes])


def _to_row(home: HomeLocation) -> dict[str, Any]:
    return {
        "name": home.name,
        "latitude": home.latitude,
        "longitude": home.longitude,
        "radius_km": home.radius_km,
    }


def _parse_home(row: dict[str, Any]) -> HomeLocation:
    return HomeLocation(
        id=int(row["id"]),
        name=str(row.get("name") or "Home"),
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        radius_km=float(row["radius_km"]),
    )
