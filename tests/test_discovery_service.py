import asyncio
from dataclasses import replace
from datetime import date, datetime

from immich_albums.domain.devices import Device, DeviceCatalog
from immich_albums.services.discovery import DiscoveryService, filter_valid_photos
from tests.conftest import (
    FakePhotoLibraryClient,
    InMemoryDeviceRepository,
    InMemoryPhotoRepository,
    make_photo,
)


def test_filter_valid_photos_drops_implausible_years() -> None:
    good = make_photo("p1", 0)
    bad = replace(make_photo("p2", 0), taken_at=datetime(1850, 1, 1))

    assert filter_valid_photos([good, bad]) == [good]


def test_discover_stores_photos_and_devices() -> None:
    client = FakePhotoLibraryClient(
        photos=[
            make_photo("p1", 0),
            make_photo("p2", 1),
            make_photo("p3", 2, make="Google", model="Pixel 7"),
            replace(make_photo("p4", 3), taken_at=datetime(1850, 1, 1)),
        ]
    )
    photo_repository = InMemoryPhotoRepository()
    device_repository = InMemoryDeviceRepository()
    service = DiscoveryService(client, photo_repository, device_repository)

    summary = asyncio.run(service.discover(date(2024, 7, 1), date(2024, 7, 31)))

    assert client.fetched_ranges == [(date(2024, 7, 1), date(2024, 7, 31))]
    assert summary.fetched == 4
    assert summary.invalid == 1
    assert summary.stored == 3
    assert [photo.id for photo in photo_repository.photos] == ["p1", "p2", "p3"]
    assert {device.id: device.photo_count for device in summary.devices} == {
        "apple-iphone 12": 2,
        "google-pixel 7": 1,
    }


def test_discover_keeps_existing_labels() -> None:
    client = FakePhotoLibraryClient(photos=[make_photo("p1", 0)])
    device_repository = InMemoryDeviceRepository(
        DeviceCatalog(
            devices=(
                Device(
                    id="apple-iphone 12",
                    make="Apple",
                    model="iPhone 12",
                    photo_count=9,
                    photographer="Alice",
                ),
            )
        )
    )
    service = DiscoveryService(client, InMemoryPhotoRepository(), device_repository)

    summary = asyncio.run(service.discover(date(2024, 7, 1), date(2024, 7, 2)))

    assert summary.devices[0].photographer == "Alice"
    assert summary.devices[0].photo_count == 1
    assert device_repository.catalog.get("apple-iphone 12").photographer == "Alice"
