"""Supabase-backed session repository."""

from dataclasses import dataclass
from typing import Any

from supabase import Client

from immich_albums.adapters.supabase_tables import (
    clear_table,
    fetch_all,
    insert_batches,
    parse_timestamp,
)
from immich_albums.domain.sessions import Session
from immich_albums.services.clustering import SessionRepository

_TABLE = "sessions"


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for detected sessions."""

    client: Client

    def replace_sessions(self, sessions: list[Session]) -> list[Session]:
        """Replace every stored session and return them with ids."""
        clear_table(self.client, _TABLE, "id", -1)
        if not sessions:
            return []
        rows = insert_batches(
            self.client, _TABLE, [session_to_row(session) for session in sessions]
        )
        return [parse_session(row) for row in rows]

    def list_sessions(self) -> list[Session]:
        """Return all stored sessions ordered by start time."""
        rows = fetch_all(self.client, _TABLE, "start_time")
        return [parse_session(row) for row in rows]


def session_to_row(session: Session) -> dict[str, Any]:
    """Serialize a session; the id is left to the database."""
    return {
        "start_time": session.start_time.isoformat(),
        "end_time": session.end_time.isoformat(),
        "photo_ids": list(session.photo_ids),
        "center_lat": session.center_lat,
        "center_lon": session.center_lon,
        "radius_km": session.radius_km,
        "photographer": session.photographer,
    }


def parse_session(row: dict[str, Any]) -> Session:
    """Parse a session row, or a session embedded in a trip row."""
    return Session(
        id=int(row["id"]) if row.get("id") is not None else None,
        start_time=parse_timestamp(row["start_time"]),
        end_time=parse_timestamp(row["end_time"]),
        photo_ids=[str(pid) for pid in row.get("photo_ids") or []],
        center_lat=float(row["center_lat"]),
        center_lon=float(row["center_lon"]),
        radius_km=float(row.get("radius_km") or 0.0),
        photographer=row.get("photographer") or "",
    )
