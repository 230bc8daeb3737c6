"""Device discovery and matching based on make/model and filename counters."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Protocol

from immich_albums.domain.devices import CounterRange, Device, DeviceCatalog
from immich_albums.domain.photos import PhotoRecord

MIN_PHOTOS_TO_SPLIT = 20
MIN_COUNTERS_TO_SPLIT = 10
MIN_COUNTER_GAP = 1000
RELATIVE_GAP_FACTOR = 20
MIN_CLUSTER_SIZE = 5

_SUB_DEVICE_SUFFIX = "-device"

# Order matters: the first pattern that matches wins.
_COUNTER_PATTERNS = (
    re.compile(r"IMG_(\d+)"),
    re.compile(r"DSC_(\d+)"),
    re.compile(r"_MG_(\d+)"),
    re.compile(r"DSCF(\d+)"),
    re.compile(r"P\d+_(\d+)"),
    re.compile(r"PXL_(\d{8})_(\d{6})"),
    re.compile(r"(\d{8})_(\d{6})"),
)

_logger = logging.getLogger(__name__)


class DeviceRepository(Protocol):
    """Persistence interface for resolved devices and their labels."""

    def load_catalog(self) -> DeviceCatalog:
        """Return all stored devices with their counter ranges."""

    def replace_catalog(self, catalog: DeviceCatalog) -> None:
        """Replace every stored device with the given catalog."""

    def update_photographer(self, device_id: str, photographer: str) -> None:
        """Set the photographer label of a device."""


@dataclass
class DeviceService:
    """Application service for listing and labeling devices."""

    repository: DeviceRepository

    def list_devices(self) -> list[Device]:
        """Return all devices, most used first."""
        catalog = self.repository.load_catalog()
        return sorted(
            catalog.devices, key=lambda device: (-device.photo_count, device.id)
        )

    def unlabeled_devices(self) -> list[Device]:
        """Return devices still waiting for a photographer."""
        return [device for device in self.list_devices() if not device.photographer]

    def label_device(self, device_id: str, photographer: str) -> Device:
        """Assign a photographer to a device and return the updated device."""
        name = photographer.strip()
        if not name:
            raise ValueError("Photographer name must not be empty")
        device = self.repository.load_catalog().get(device_id)
        if device is None:
            raise LookupError(f"Unknown device: {device_id}")
        self.repository.update_photographer(device_id, name)
        return replace(device, photographer=name)


def device_key(make: str, model: str) -> str:
    """Return the normalized make/model key used as a base device id."""
    make = make.strip().lower()
    model = model.strip().lower()
    if not make and not model:
        return "unknown"
    return f"{make}-{model}"


def extract_filename_counter(filename: str) -> int | None:
    """Extract the camera's running counter from a filename.

    ``IMG_1234.jpg`` -> 1234, ``DSC_5678.NEF`` -> 5678,
    ``PXL_20240101_123456.jpg`` -> 20240101123456.
    """
    for pattern in _COUNTER_PATTERNS:
        match = pattern.search(filename or "")
        if match:
            return int("".join(match.groups()))
    return None


def resolve_devices(photos: Iterable[PhotoRecord]) -> DeviceCatalog:
    """Group photos into physical devices.

    Photos sharing a make/model are split into sub-devices when their
    filename counters form well separated ranges.
    """
    groups: dict[str, list[PhotoRecord]] = {}
    skipped = 0
    for photo in photos:
        if not photo.has_device_info:
            skipped += 1
            continue
        groups.setdefault(device_key(photo.make, photo.model), []).append(photo)

    devices: list[Device] = []
    counter_ranges: dict[str, CounterRange] = {}
    for key in sorted(groups):
        group_devices, group_ranges = _identify_sub_devices(key, groups[key])
        devices.extend(group_devices)
        counter_ranges.update(group_ranges)

    _logger.info(
        "Device discovery: %s photos skipped without make/model, "
        "%s make/model groups, %s devices",
        skipped,
        len(groups),
        len(devices),
    )
    return DeviceCatalog(devices=tuple(devices), counter_ranges=counter_ranges)


def match_device(photo: PhotoRecord, catalog: DeviceCatalog) -> str | None:
    """Return the id of the device that most likely took the photo."""
    if not photo.has_device_info:
        return None
    base_id = device_key(photo.make, photo.model)
    if catalog.get(base_id) is not None:
        return base_id

    candidates = _sub_devices(base_id, catalog)
    if not candidates:
        return None

    counter = extract_filename_counter(photo.original_file_name)
    if counter is not None:
        for device in candidates:
            counter_range = catalog.counter_ranges.get(device.id)
            if counter_range is not None and counter_range.accepts(counter):
                return device.id
    return candidates[0].id


def resolve_photographer(photo: PhotoRecord, catalog: DeviceCatalog) -> str | None:
    """Return the photographer labeled on the photo's device, if any."""
    device_id = match_device(photo, catalog)
    if device_id is None:
        return None
    device = catalog.get(device_id)
    if device is None or not device.photographer:
        return None
    return device.photographer


@dataclass
class _CounterCluster:
    minimum: int
    maximum: int
    photos: list[PhotoRecord] = field(default_factory=list)

    @property
    def typical_increment(self) -> int:
        return (self.maximum - self.minimum) // max(len(self.photos), 1)


def _identify_sub_devices(
    key: str, photos: list[PhotoRecord]
) -> tuple[list[Device], dict[str, CounterRange]]:
    single = [
        Device(
            id=key,
            make=photos[0].make,
            model=photos[0].model,
            photo_count=len(photos),
        )
    ]
    if len(photos) < MIN_PHOTOS_TO_SPLIT:
        return single, {}

    counted: list[tuple[int, PhotoRecord]] = []
    for photo in photos:
        counter = extract_filename_counter(photo.original_file_name)
        if counter is not None:
            counted.append((counter, photo))
    if len(counted) < MIN_COUNTERS_TO_SPLIT:
        return single, {}

    counted.sort(key=lambda item: (item[0], item[1].id))
    clusters = _cluster_counters(counted)
    significant = [c for c in clusters if len(c.photos) >= MIN_CLUSTER_SIZE]
    if not significant:
        return single, {}

    if len(significant) == 1:
        cluster = significant[0]
        return single, {key: CounterRange(cluster.minimum, cluster.maximum)}

    devices: list[Device] = []
    ranges: dict[str, CounterRange] = {}
    for ordinal, cluster in enumerate(significant, start=1):
        device_id = f"{key}{_SUB_DEVICE_SUFFIX}{ordinal}"
        ranges[device_id] = CounterRange(cluster.minimum, cluster.maximum)
        devices.append(
            Device(
                id=device_id,
                make=cluster.photos[0].make,
                model=cluster.photos[0].model,
                photo_count=len(cluster.photos),
            )
        )
        _logger.info(
            "%s: counters %s-%s (%s photos)",
            device_id,
            cluster.minimum,
            cluster.maximum,
            len(cluster.photos),
        )
    _logger.info("%s split into %s devices by counter range", key, len(devices))
    return devices, ranges


def _cluster_counters(counted: list[tuple[int, PhotoRecord]]) -> list[_CounterCluster]:
    first_counter, first_photo = counted[0]
    clusters = [_CounterCluster(first_counter, first_counter, [first_photo])]
    previous = first_counter
    for counter, photo in counted[1:]:
        current = clusters[-1]
        gap = counter - previous
        increment = current.typical_increment
        if gap > MIN_COUNTER_GAP and (
            increment == 0 or gap > increment * RELATIVE_GAP_FACTOR
        ):
            clusters.append(_CounterCluster(counter, counter, [photo]))
        else:
            current.maximum = counter
            current.photos.append(photo)
        previous = counter
    return clusters


def _sub_devices(base_id: str, catalog: DeviceCatalog) -> list[Device]:
    prefix = f"{base_id}{_SUB_DEVICE_SUFFIX}"
    candidates = []
    for device in catalog.devices:
        suffix = device.id.removeprefix(prefix)
        if device.id.startswith(prefix) and suffix.isdigit():
            candidates.append((int(suffix), device))
    candidates.sort(key=lambda item: item[0])
    return [device for _, device in candidates]
