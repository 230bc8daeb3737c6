"""Immich REST API client."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Protocol

import httpx

from immich_albums.domain.photos import PhotoRecord

_logger = logging.getLogger(__name__)


class PhotoLibraryClient(Protocol):
    """Interface for the photo library holding the user's photos."""

    async def fetch_photos(self, start: date, end: date) -> list[PhotoRecord]:
        """Return every photo taken on or between ``start`` and ``end``."""

    async def create_album(self, name: str, description: str) -> str:
        """Create an album and return its id."""

    async def add_assets_to_album(
        self, album_id: str, asset_ids: Sequence[str]
    ) -> None:
        """Add photos to an album."""

    async def delete_album(self, album_id: str) -> None:
        """Delete an album."""


@dataclass
class HttpxImmichClient(PhotoLibraryClient):
    """HTTPX-backed Immich client."""

    http_client: httpx.AsyncClient
    page_size: int = 1000

    @classmethod
    def create(
        cls,
        base_url: str,
        api_key: str,
        timeout: float = 30,
        page_size: int = 1000,
    ) -> "HttpxImmichClient":
        """Create an Immich client with a managed httpx session."""
        http_client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"x-api-key": api_key, "Accept": "application/json"},
            timeout=timeout,
        )
        return cls(http_client=http_client, page_size=page_size)

    async def fetch_photos(self, start: date, end: date) -> list[PhotoRecord]:
        """Page through metadata search until a short page is returned."""
        photos: list[PhotoRecord] = []
        page = 1
        while True:
            response = await self.http_client.post(
                "/api/search/metadata",
                json={
                    "takenAfter": _timestamp(start),
                    "takenBefore": _timestamp(end + timedelta(days=1)),
                    "page": page,
                    "size": self.page_size,
                    "withExif": True,
                },
            )
            response.raise_for_status()
            items = response.json().get("assets", {}).get("items", [])
            photos.extend(parse_asset(item) for item in items)
            _logger.info(
                "Fetched page %s: %s photos (total so far: %s)",
                page,
                len(items),
                len(photos),
            )
            if len(items) < self.page_size:
                return photos
            page += 1

    async def create_album(self, name: str, description: str) -> str:
        """Create an album."""
        response = await self.http_client.post(
            "/api/albums", json={"albumName": name, "description": description}
        )
        response.raise_for_status()
        return str(response.json()["id"])

    async def add_assets_to_album(
        self, album_id: str, asset_ids: Sequence[str]
    ) -> None:
        """Add photos to an album."""
        response = await self.http_client.put(
            f"/api/albums/{album_id}/assets", json={"ids": list(asset_ids)}
        )
        response.raise_for_status()

    async def delete_album(self, album_id: str) -> None:
        """Delete an album."""
        response = await self.http_client.delete(f"/api/albums/{album_id}")
        response.raise_for_status()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def parse_asset(item: dict[str, Any]) -> PhotoRecord:
    """Convert an Immich asset payload into a photo record.

    ``localDateTime`` carries the wall-clock capture time; any offset it
    declares is dropped.
    """
    exif = item.get("exifInfo") or {}
    return PhotoRecord(
        id=str(item["id"]),
        taken_at=_parse_local(item["localDateTime"]),
        original_file_name=item.get("originalFileName") or "",
        make=exif.get("make") or "",
        model=exif.get("model") or "",
        latitude=exif.get("latitude"),
        longitude=exif.get("longitude"),
        city=exif.get("city") or None,
        state=exif.get("state") or None,
        country=exif.get("country") or None,
    )


def _parse_local(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=None)


def _timestamp(day: date) -> str:
    return datetime.combine(day, time.min).strftime("%Y-%m-%dT%H:%M:%SZ")
