"""Photo discovery: fetch photos from the library and resolve devices."""

import logging
from dataclasses import dataclass, replace
from datetime import date

from immich_albums.adapters.immich_client import PhotoLibraryClient
from immich_albums.domain.devices import Device, DeviceCatalog
from immich_albums.domain.photos import PhotoRecord
from immich_albums.services.devices import DeviceRepository, resolve_devices
from immich_albums.services.photos import PhotoRepository

MIN_VALID_YEAR = 1900
MAX_VALID_YEAR = 2100

_logger = logging.getLogger(__name__)


@dataclass
class DiscoverySummary:
    """Outcome of a discovery run."""

    fetched: int
    invalid: int
    stored: int
    devices: list[Device]


@dataclass
class DiscoveryService:
    """Fetches photos, validates them and resolves devices."""

    client: PhotoLibraryClient
    photo_repository: PhotoRepository
    device_repository: DeviceRepository

    async def discover(self, start: date, end: date) -> DiscoverySummary:
        """Fetch photos taken between ``start`` and ``end`` and resolve devices."""
        fetched = await self.client.fetch_photos(start, end)
        valid = filter_valid_photos(fetched)
        invalid = len(fetched) - len(valid)
        if invalid:
            _logger.warning("Skipped %s photos with invalid timestamps", invalid)
        self.photo_repository.replace_photos(valid)

        previous = self.device_repository.load_catalog()
        catalog = _carry_labels(resolve_devices(valid), previous)
        self.device_repository.replace_catalog(catalog)
        _logger.info(
            "Discovery stored %s photos and %s devices",
            len(valid),
            len(catalog.devices),
        )
        return DiscoverySummary(
            fetched=len(fetched),
            invalid=invalid,
            stored=len(valid),
            devices=list(catalog.devices),
        )


def filter_valid_photos(photos: list[PhotoRecord]) -> list[PhotoRecord]:
    """Drop photos whose capture year is implausible."""
    return [
        photo
        for photo in photos
        if MIN_VALID_YEAR <= photo.taken_at.year <= MAX_VALID_YEAR
    ]


def _carry_labels(catalog: DeviceCatalog, previous: DeviceCatalog) -> DeviceCatalog:
    devices = []
    for device in catalog.devices:
        old = previous.get(device.id)
        if old is not None and old.photographer:
            device = replace(device, photographer=old.photographer)
        devices.append(device)
    return DeviceCatalog(devices=tuple(devices), counter_ranges=catalog.counter_ranges)
