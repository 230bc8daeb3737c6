"""Supabase-backed trip repository."""

from dataclasses import dataclass
from typing import Any

from supabase import Client

from immich_albums.adapters.supabase_session_repository import (
    parse_session,
    session_to_row,
)
from immich_albums.adapters.supabase_tables import (
    clear_table,
    fetch_all,
    insert_batches,
    parse_timestamp,
)
from immich_albums.domain.trips import Trip, TripEnd
from immich_albums.services.trips import TripRepository

_TABLE = "trips"


@dataclass
class SupabaseTripRepository(TripRepository):
    """Supabase implementation for detected trips.

    Each trip row embeds its sessions as JSON so a trip can be loaded
    without the sessions table.
    """

    client: Client

    def replace_trips(self, trips: list[Trip]) -> list[Trip]:
        """Replace every stored trip and return them with ids."""
        clear_table(self.client, _TABLE, "id", -1)
        if not trips:
            return []
        rows = insert_batches(self.client, _TABLE, [_to_row(trip) for trip in trips])
        return [_parse_trip(row) for row in rows]

    def list_trips(self) -> list[Trip]:
        """Return all stored trips, newest first."""
        rows = fetch_all(self.client, _TABLE, "start_time", desc=True)
        return [_parse_trip(row) for row in rows]

    def get_trip(self, trip_id: int) -> Trip | None:
        """Return a trip by id, if present."""
        response = (
            self.client.table(_TABLE).select("*").eq("id", trip_id).limit(1).execute()
        )
        if not response.data:
            return None
        return _parse_trip(response.data[0])

    def update_name(self, trip_id: int, name: str) -> None:
        """Rename a trip."""
        self.client.table(_TABLE).update({"name": name}).eq("id", trip_id).execute()

    def set_excluded(self, trip_id: int, excluded: bool) -> None:
        """Flag a trip as excluded from album creation."""
        self.client.table(_TABLE).update({"exclude_from_album": excluded}).eq(
            "id", trip_id
        ).execute()

    def set_album_id(self, trip_id: int, album_id: str | None) -> None:
        """Record the album created for a trip."""
        self.client.table(_TABLE).update({"album_id": album_id}).eq(
            "id", trip_id
        ).execute()


def _to_row(trip: Trip) -> dict[str, Any]:
    return {
        "name": trip.name,
        "start_time": trip.start_time.isoformat(),
        "end_time": trip.end_time.isoformat(),
        "sessions": [
            {**session_to_row(session), "id": session.id} for session in trip.sessions
        ],
        "photo_ids": list(trip.photo_ids),
        "photographers": list(trip.photographers),
        "home_distance_km": trip.home_distance_km,
        "total_distance_km": trip.total_distance_km,
        "center_lat": trip.center_lat,
        "center_lon": trip.center_lon,
        "session_count": trip.session_count,
        "ended_by": trip.ended_by.value,
        "album_id": trip.album_id,
        "exclude_from_album": trip.exclude_from_album,
    }


def _parse_trip(row: dict[str, Any]) -> Trip:
    """Parse a trip row into a domain model."""
    home_distance = row.get("home_distance_km")
    return Trip(
        id=int(row["id"]),
        name=str(row.get("name", "")),
        start_time=parse_timestamp(row["start_time"]),
        end_time=parse_timestamp(row["end_time"]),
        sessions=[parse_session(item) for item in row.get("sessions") or []],
        photo_ids=[str(pid) for pid in row.get("photo_ids") or []],
        photographers=list(row.get("photographers") or []),
        home_distance_km=float(home_distance) if home_distance is not None else None,
        total_distance_km=float(row.get("total_distance_km") or 0.0),
        center_lat=float(row["center_lat"]),
        center_lon=float(row["center_lon"]),
        session_count=int(row.get("session_count") or 0),
        ended_by=TripEnd(row.get("ended_by") or TripEnd.END_OF_INPUT),
        album_id=row.get("album_id") or None,
        exclude_from_album=bool(row.get("exclude_from_album", False)),
    )
