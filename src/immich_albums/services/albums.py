"""Album creation for detected trips."""

import logging
from dataclasses import dataclass
from datetime import timedelta

import httpx

from immich_albums.adapters.immich_client import PhotoLibraryClient
from immich_albums.domain.trips import Trip
from immich_albums.services.trips import TripRepository

_logger = logging.getLogger(__name__)


@dataclass
class AlbumSummary:
    """Outcome of an album creation run."""

    trips: int = 0
    created: int = 0
    recreated: int = 0
    skipped: int = 0
    errors: int = 0


@dataclass
class AlbumService:
    """Creates one library album per trip."""

    client: PhotoLibraryClient
    trip_repository: TripRepository

    async def create_albums(self, recreate: bool = False) -> AlbumSummary:
        """Create albums for stored trips.

        Excluded trips are skipped. Trips that already have an album are
        skipped unless ``recreate`` is set, in which case the old album is
        deleted first.
        """
        trips = self.trip_repository.list_trips()
        summary = AlbumSummary(trips=len(trips))
        for trip in trips:
            if trip.exclude_from_album:
                _logger.info("Skipping excluded trip: %s", trip.name)
                summary.skipped += 1
                continue

            replacing = trip.album_id is not None
            if replacing and not recreate:
                _logger.info("Album already exists for %s, skipping", trip.name)
                summary.skipped += 1
                continue
            if replacing:
                await self._delete_quietly(trip.album_id)

            album_id = await self._create_album(trip)
            if album_id is None:
                summary.errors += 1
                continue
            if trip.id is not None:
                self.trip_repository.set_album_id(trip.id, album_id)
            if replacing:
                summary.recreated += 1
            else:
                summary.created += 1
        return summary

    async def _create_album(self, trip: Trip) -> str | None:
        try:
            album_id = await self.client.create_album(
                trip.name, album_description(trip)
            )
        except httpx.HTTPError as exc:
            _logger.error("Failed to create album for %s: %s", trip.name, exc)
            return None

        if trip.photo_ids:
            try:
                await self.client.add_assets_to_album(album_id, trip.photo_ids)
            except httpx.HTTPError as exc:
                # The album exists, so its id is still recorded.
                _logger.warning("Failed to add photos to %s: %s", album_id, exc)
        _logger.info("Created album %s for %s", album_id, trip.name)
        return album_id

    async def _delete_quietly(self, album_id: str | None) -> None:
        if album_id is None:
            return
        try:
            await self.client.delete_album(album_id)
        except httpx.HTTPError as exc:
            _logger.warning("Failed to delete album %s: %s", album_id, exc)


def album_description(trip: Trip) -> str:
    """Describe a trip for its album."""
    lines = [
        f"{trip.start_time:%b} {trip.start_time.day}, {trip.start_time.year} - "
        f"{trip.end_time:%b} {trip.end_time.day}, {trip.end_time.year} "
        f"({format_duration(trip.duration)})",
        f"{len(trip.photo_ids)} photos by {', '.join(trip.photographers) or 'unknown'}",
    ]
    if trip.home_distance_km is None:
        lines.append(f"Distance: {trip.total_distance_km:.0f}km traveled")
    else:
        lines.append(
            f"Distance: {trip.home_distance_km:.0f}km from home, "
            f"{trip.total_distance_km:.0f}km traveled"
        )
    return "\n".join(lines)


def format_duration(duration: timedelta) -> str:
    hours = duration.total_seconds() / 3600
    if hours > 24:
        return f"{hours / 24:.1f} days"
    return f"{hours:.1f} hours"
