"""Supabase-backed location inference repository."""

from dataclasses import dataclass

from supabase import Client

from immich_albums.adapters.supabase_tables import (
    clear_table,
    fetch_all,
    insert_batches,
)
from immich_albums.domain.locations import LocationInference, LocationSource
from immich_albums.services.inference import InferenceRepository

_TABLE = "location_inferences"


@dataclass
class SupabaseInferenceRepository(InferenceRepository):
    """Supabase implementation for inferred locations."""

    client: Client

    def replace_inferences(self, inferences: list[LocationInference]) -> None:
        """Replace every stored inference."""
        clear_table(self.client, _TABLE, "photo_id", "")
        rows = [
            {
                "photo_id": inference.photo_id,
                "latitude": inference.latitude,
                "longitude": inference.longitude,
                "confidence": inference.confidence,
                "source": inference.source.value,
                "method": inference.method,
            }
            for inference in inferences
        ]
        if rows:
            insert_batches(self.client, _TABLE, rows)

    def list_inferences(self) -> list[LocationInference]:
        """Return all stored inferences."""
        return [
            LocationInference(
                photo_id=str(row["photo_id"]),
                latitude=float(row["latitude"]),
                longitude=float(row["longitude"]),
                confidence=float(row["confidence"]),
                source=LocationSource(row["source"]),
                method=row.get("method") or "",
            )
            for row in fetch_all(self.client, _TABLE, "photo_id")
        ]
