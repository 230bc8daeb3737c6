"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from immich_albums.adapters.immich_client import HttpxImmichClient, PhotoLibraryClient
from immich_albums.adapters.supabase_device_repository import SupabaseDeviceRepository
from immich_albums.adapters.supabase_home_repository import SupabaseHomeRepository
from immich_albums.adapters.supabase_inference_repository import (
    SupabaseInferenceRepository,
)
from immich_albums.adapters.supabase_photo_repository import SupabasePhotoRepository
from immich_albums.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from immich_albums.adapters.supabase_trip_repository import SupabaseTripRepository
from immich_albums.config import Settings
from immich_albums.services.albums import AlbumService
from immich_albums.services.analysis import AnalysisService
from immich_albums.services.clustering import SessionService
from immich_albums.services.devices import DeviceService
from immich_albums.services.discovery import DiscoveryService
from immich_albums.services.homes import HomeService
from immich_albums.services.inference import LocationService
from immich_albums.services.seeds import SeedService
from immich_albums.services.trips import TripService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    photo_library_client: PhotoLibraryClient
    discovery_service: DiscoveryService
    device_service: DeviceService
    location_service: LocationService
    session_service: SessionService
    home_service: HomeService
    trip_service: TripService
    album_service: AlbumService
    analysis_service: AnalysisService
    seed_service: SeedService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    photo_repository = SupabasePhotoRepository(supabase_client)
    device_repository = SupabaseDeviceRepository(supabase_client)
    inference_repository = SupabaseInferenceRepository(supabase_client)
    session_repository = SupabaseSessionRepository(supabase_client)
    trip_repository = SupabaseTripRepository(supabase_client)
    home_repository = SupabaseHomeRepository(supabase_client)

    immich_client = HttpxImmichClient.create(
        base_url=resolved_settings.immich_url,
        api_key=resolved_settings.immich_api_key,
        timeout=resolved_settings.immich_timeout_seconds,
        page_size=resolved_settings.immich_page_size,
    )

    async def close_resources() -> None:
        await immich_client.close()

    return AppContainer(
        settings=resolved_settings,
        photo_library_client=immich_client,
        discovery_service=DiscoveryService(
            immich_client, photo_repository, device_repository
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
        album_service=AlbumService(immich_client, trip_repository),
        analysis_service=AnalysisService(
            photo_repository, session_repository, trip_repository, home_repository
        ),
        seed_service=SeedService(device_repository, home_repository),
        close_resources=close_resources,
    )
