"""Supabase-backed photo repository."""

from dataclasses import dataclass
from typing import Any

from supabase import Client

from immich_albums.adapters.supabase_tables import (
    clear_table,
    fetch_all,
    insert_batches,
    parse_timestamp,
)
from immich_albums.domain.photos import PhotoRecord
from immich_albums.services.photos import PhotoRepository

_TABLE = "photos"


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for fetched photo metadata."""

    client: Client

    def replace_photos(self, photos: list[PhotoRecord]) -> None:
        """Replace every stored photo."""
        clear_table(self.client, _TABLE, "id", "")
        if photos:
            insert_batches(self.client, _TABLE, [_to_row(photo) for photo in photos])

    def list_photos(self) -> list[PhotoRecord]:
        """Return all stored photos ordered by capture time."""
        return [_parse_photo(row) for row in fetch_all(self.client, _TABLE, "taken_at")]


def _to_row(photo: PhotoRecord) -> dict[str, Any]:
    return {
        "id": photo.id,
        "taken_at": photo.taken_at.isoformat(),
        "original_file_name": photo.original_file_name,
        "make": photo.make,
        "model": photo.model,
        "latitude": photo.latitude,
        "longitude": photo.longitude,
        "city": photo.city,
        "state": photo.state,
        "country": photo.country,
    }


def _parse_photo(row: dict[str, Any]) -> PhotoRecord:
    """Parse a photo row into a domain model."""
    return PhotoRecord(
        id=str(row["id"]),
        taken_at=parse_timestamp(row["taken_at"]),
        original_file_name=row.get("original_file_name") or "",
        make=row.get("make") or "",
        model=row.get("model") or "",
        latitude=row.get("latitude"),
        longitude=row.get("longitude"),
        city=row.get("city"),
        state=row.get("state"),
        country=row.get("country"),
    )
