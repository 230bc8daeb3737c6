"""Shared test fixtures."""

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta

import httpx
import pytest

from immich_albums.adapters.immich_client import PhotoLibraryClient
from immich_albums.config import Settings
from immich_albums.containers import AppContainer
from immich_albums.domain.devices import Device, DeviceCatalog
from immich_albums.domain.locations import LocationInference
from immich_albums.domain.photos import PhotoRecord
from immich_albums.domain.sessions import Session
from immich_albums.domain.trips import HomeLocation, Trip, TripEnd
from immich_albums.services.albums import AlbumService
from immich_albums.services.analysis import AnalysisService
from immich_albums.services.clustering import SessionRepository, SessionService
from immich_albums.services.devices import DeviceRepository, DeviceService
from immich_albums.services.discovery import DiscoveryService
from immich_albums.services.homes import HomeRepository, HomeService
from immich_albums.services.inference import InferenceRepository, LocationService
from immich_albums.services.photos import PhotoRepository
from immich_albums.services.seeds import SeedService
from immich_albums.services.trips import TripRepository, TripService

BASE_TIME = datetime(2024, 7, 1, 8, 0)


def make_photo(  # noqa: PLR0913
    photo_id: str,
    hours: float,
    lat: float | None = None,
    lon: float | None = None,
    make: str = "Apple",
    model: str = "iPhone 12",
    file_name: str = "",
    city: str | None = None,
    country: str | None = None,
) -> PhotoRecord:
    """Build a photo taken ``hours`` after ``BASE_TIME``."""
    return PhotoRecord(
        id=photo_id,
        taken_at=BASE_TIME + timedelta(hours=hours),
        original_file_name=file_name or f"{photo_id}.jpg",
        make=make,
        model=model,
        latitude=lat,
        longitude=lon,
        city=city,
        country=country,
    )


def make_session(  # noqa: PLR0913
    start_hours: float,
    end_hours: float,
    lat: float,
    lon: float,
    photographer: str = "Alice",
    photo_ids: list[str] | None = None,
    session_id: int | None = None,
) -> Session:
    """Build a session spanning ``start_hours`` to ``end_hours``."""
    return Session(
        id=session_id,
        start_time=BASE_TIME + timedelta(hours=start_hours),
        end_time=BASE_TIME + timedelta(hours=end_hours),
        photo_ids=photo_ids or [f"p{start_hours:g}a", f"p{start_hours:g}b"],
        center_lat=lat,
        center_lon=lon,
        radius_km=0.1,
        photographer=photographer,
    )


def make_trip(
    trip_id: int,
    name: str = "Paris, France - Jul 1-3, 2024",
    album_id: str | None = None,
    excluded: bool = False,
) -> Trip:
    session = make_session(0, 48, 48.85, 2.35, session_id=trip_id)
    return Trip(
        id=trip_id,
        name=name,
        start_time=session.start_time,
        end_time=session.end_time,
        sessions=[session],
        photo_ids=list(session.photo_ids),
        photographers=["Alice"],
        home_distance_km=340.0,
        total_distance_km=0.0,
        center_lat=session.center_lat,
        center_lon=session.center_lon,
        session_count=1,
        ended_by=TripEnd.END_OF_INPUT,
        album_id=album_id,
        exclude_from_album=excluded,
    )


@dataclass
class InMemoryPhotoRepository(PhotoRepository):
    """In-memory photo repository for tests."""

    photos: list[PhotoRecord] = field(default_factory=list)

    def replace_photos(self, photos: list[PhotoRecord]) -> None:
        self.photos = list(photos)

    def list_photos(self) -> list[PhotoRecord]:
        return list(self.photos)


@dataclass
class InMemoryDeviceRepository(DeviceRepository):
    """In-memory device repository for tests."""

    catalog: DeviceCatalog = field(default_factory=DeviceCatalog)

    def load_catalog(self) -> DeviceCatalog:
        return self.catalog

    def replace_catalog(self, catalog: DeviceCatalog) -> None:
        self.catalog = catalog

    def update_photographer(self, device_id: str, photographer: str) -> None:
        devices = tuple(
            replace(device, photographer=photographer)
            if device.id == device_id
            else device
            for device in self.catalog.devices
        )
        self.catalog = DeviceCatalog(
            devices=devices, counter_ranges=self.catalog.counter_ranges
        )


@dataclass
class InMemoryInferenceRepository(InferenceRepository):
    """In-memory inference repository for tests."""

    inferences: list[LocationInference] = field(default_factory=list)

    def replace_inferences(self, inferences: list[LocationInference]) -> None:
        self.inferences = list(inferences)

    def list_inferences(self) -> list[LocationInference]:
        return list(self.inferences)


@dataclass
class InMemorySessionRepository(SessionRepository):
    """In-memory session repository that assigns sequential ids."""

    sessions: list[Session] = field(default_factory=list)

    def replace_sessions(self, sessions: list[Session]) -> list[Session]:
        self.sessions = [
            replace(session, id=index) for index, session in enumerate(sessions, 1)
        ]
        return list(self.sessions)

    def list_sessions(self) -> list[Session]:
        return sorted(self.sessions, key=lambda session: session.start_time)


@dataclass
class InMemoryTripRepository(TripRepository):
    """In-memory trip repository that assigns sequential ids."""

    trips: dict[int, Trip] = field(default_factory=dict)

    def replace_trips(self, trips: list[Trip]) -> list[Trip]:
        self.trips = {
            index: replace(trip, id=index) for index, trip in enumerate(trips, 1)
        }
        return list(self.trips.values())

    def list_trips(self) -> list[Trip]:
        return sorted(self.trips.values(), key=lambda t: t.start_time, reverse=True)

    def get_trip(self, trip_id: int) -> Trip | None:
        return self.trips.get(trip_id)

    def update_name(self, trip_id: int, name: str) -> None:
        self.trips[trip_id] = replace(self.trips[trip_id], name=name)

    def set_excluded(self, trip_id: int, excluded: bool) -> None:
        self.trips[trip_id] = replace(
            self.trips[trip_id], exclude_from_album=excluded
        )

    def set_album_id(self, trip_id: int, album_id: str | None) -> None:
        self.trips[trip_id] = replace(self.trips[trip_id], album_id=album_id)


@dataclass
class InMemoryHomeRepository(HomeRepository):
    """In-memory home repository that assigns sequential ids."""

    homes: dict[int, HomeLocation] = field(default_factory=dict)
    next_id: int = 1

    def list_homes(self) -> list[HomeLocation]:
        return list(self.homes.values())

    def add_home(self, home: HomeLocation) -> HomeLocation:
        stored = replace(home, id=self.next_id)
        self.homes[self.next_id] = stored
        self.next_id += 1
        return stored

    def delete_home(self, home_id: int) -> bool:
        return self.homes.pop(home_id, None) is not None

    def replace_homes(self, homes: list[HomeLocation]) -> None:
        self.homes = {}
        for home in homes:
            self.add_home(home)


@dataclass
class FakePhotoLibraryClient(PhotoLibraryClient):
    """Fake photo library that records album calls."""

    photos: list[PhotoRecord] = field(default_factory=list)
    albums: dict[str, tuple[str, str]] = field(default_factory=dict)
    album_assets: dict[str, list[str]] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)
    fetched_ranges: list[tuple[date, date]] = field(default_factory=list)
    fail_create_for: set[str] = field(default_factory=set)
    closed: bool = False

    async def fetch_photos(self, start: date, end: date) -> list[PhotoRecord]:
        self.fetched_ranges.append((start, end))
        return list(self.photos)

    async def create_album(self, name: str, description: str) -> str:
        if name in self.fail_create_for:
            raise httpx.ConnectError("library unavailable")
        album_id = f"album-{len(self.albums) + 1}"
        self.albums[album_id] = (name, description)
        return album_id

    async def add_assets_to_album(
        self, album_id: str, asset_ids: Sequence[str]
    ) -> None:
        self.album_assets.setdefault(album_id, []).extend(asset_ids)

    async def delete_album(self, album_id: str) -> None:
        self.deleted.append(album_id)

    async def close(self) -> None:
        self.closed = True


def labeled_catalog(*devices: tuple[str, str]) -> DeviceCatalog:
    """Catalog of single devices given as ``(device_id, photographer)``."""
    return DeviceCatalog(
        devices=tuple(
            Device(id=device_id, make="", model="", photo_count=1, photographer=name)
            for device_id, name in devices
        )
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        immich_url="https://photos.example.com",
        immich_api_key="immich-key",
        supabase_url="https://example.supabase.co",
        supabase_service_key="test.service.key",
    )


@pytest.fixture
def photo_library_client() -> FakePhotoLibraryClient:
    return FakePhotoLibraryClient()


@pytest.fixture
def container(
    settings: Settings, photo_library_client: FakePhotoLibraryClient
) -> AppContainer:
    photo_repository = InMemoryPhotoRepository()
    device_repository = InMemoryDeviceRepository()
    inference_repository = InMemoryInferenceRepository()
    session_repository = InMemorySessionRepository()
    trip_repository = InMemoryTripRepository()
    home_repository = InMemoryHomeRepository()

    async def close_resources() -> None:
        await photo_library_client.close()

    return AppContainer(
        settings=settings,
        photo_library_client=photo_library_client,
        discovery_service=DiscoveryService(
            photo_library_client, photo_repository, device_repository
        ),
        device_service=DeviceService(device_repository),
        location_service=LocationService(
            photo_repository, device_repository, inference_repository
        ),
        session_service=SessionService(
            photo_repository,
            device_repository,
            inference_repository,
            session_repository,
        ),
        home_service=HomeService(home_repository),
        trip_service=TripService(
            session_repository, home_repository, photo_repository, trip_repository
        ),
        album_service=AlbumService(photo_library_client, trip_repository),
        analysis_service=AnalysisService(
            photo_repository, session_repository, trip_repository, home_repository
        ),
        seed_service=SeedService(device_repository, home_repository),
        close_resources=close_resources,
    )
