"""Export and import of user-provided seed data (homes and device labels)."""

import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, TypeAdapter

from immich_albums.domain.trips import HomeLocation
from immich_albums.services.devices import DeviceRepository
from immich_albums.services.homes import HomeRepository

HOMES_FILE = "home_locations.json"
DEVICE_LABELS_FILE = "device_labels.json"

_logger = logging.getLogger(__name__)


class HomeSeed(BaseModel):
    """Serialized home location."""

    name: str
    latitude: float
    longitude: float
    radius_km: float


class DeviceLabelSeed(BaseModel):
    """Serialized photographer label for one device."""

    id: str
    make: str = ""
    model: str = ""
    photographer: str


_HOMES = TypeAdapter(list[HomeSeed])
_LABELS = TypeAdapter(list[DeviceLabelSeed])


@dataclass
class SeedCounts:
    homes: int
    device_labels: int


@dataclass
class SeedService:
    """Backs up and restores the data users enter by hand."""

    device_repository: DeviceRepository
    home_repository: HomeRepository

    def export_seeds(self, directory: Path) -> SeedCounts:
        """Write home locations and labeled devices to ``directory``."""
        directory.mkdir(parents=True, exist_ok=True)
        homes = [
            HomeSeed(
                name=home.name,
                latitude=home.latitude,
                longitude=home.longitude,
                radius_km=home.radius_km,
            )
            for home in self.home_repository.list_homes()
        ]
        labels = [
            DeviceLabelSeed(
                id=device.id,
                make=device.make,
                model=device.model,
                photographer=device.photographer,
            )
            for device in self.device_repository.load_catalog().devices
            if device.photographer
        ]
        (directory / HOMES_FILE).write_bytes(_HOMES.dump_json(homes, indent=2))
        (directory / DEVICE_LABELS_FILE).write_bytes(
            _LABELS.dump_json(labels, indent=2)
        )
        _logger.info(
            "Exported %s home locations and %s device labels to %s",
            len(homes),
            len(labels),
            directory,
        )
        return SeedCounts(homes=len(homes), device_labels=len(labels))

    def import_seeds(self, directory: Path) -> SeedCounts:
        """Replace home locations and re-apply device labels from ``directory``.

        Raises FileNotFoundError when a seed file is missing and
        pydantic.ValidationError when one is malformed.
        """
        homes = _HOMES.validate_json((directory / HOMES_FILE).read_bytes())
        labels = _LABELS.validate_json((directory / DEVICE_LABELS_FILE).read_bytes())

        self.home_repository.replace_homes(
            [
                HomeLocation(
                    name=home.name,
                    latitude=home.latitude,
                    longitude=home.longitude,
                    radius_km=home.radius_km,
                )
                for home in homes
            ]
        )
        catalog = self.device_repository.load_catalog()
        for label in labels:
            if catalog.get(label.id) is None:
                _logger.warning("Device %s not discovered yet; skipping", label.id)
                continue
            self.device_repository.update_photographer(label.id, label.photographer)
        _logger.info(
            "Imported %s home locations and %s device labels",
            len(homes),
            len(labels),
        )
        return SeedCounts(homes=len(homes), device_labels=len(labels))
