from dataclasses import replace

from immich_albums.domain.trips import HomeLocation
from immich_albums.services.analysis import AnalysisService
from tests.conftest import (
    InMemoryHomeRepository,
    InMemoryPhotoRepository,
    InMemorySessionRepository,
    InMemoryTripRepository,
    make_photo,
    make_session,
    make_trip,
)

BERLIN = (52.52, 13.405)
PARIS = (48.85, 2.35)


def _service(with_home: bool = True) -> AnalysisService:
    photos = InMemoryPhotoRepository(
        [
            make_photo("p1", 0, *BERLIN),
            make_photo("p2", 24, *PARIS),
            make_photo("p3", 25, *PARIS),
            make_photo("p4", 60, *PARIS),
            make_photo("p5", 61),
        ]
    )
    sessions = InMemorySessionRepository()
    sessions.replace_sessions([make_session(24, 25, *PARIS, photo_ids=["p2", "p3"])])
    trips = InMemoryTripRepository({1: replace(make_trip(1), photo_ids=["p2"])})
    homes = InMemoryHomeRepository()
    if with_home:
        homes.add_home(HomeLocation("Home", *BERLIN, radius_km=1.0))
    return AnalysisService(photos, sessions, trips, homes)


def test_coverage_categorises_photos() -> None:
    report = _service().coverage()

    assert report.total_photos == 5
    assert report.with_gps == 4
    assert report.without_gps == 1
    assert report.at_home == 1
    assert report.in_trips == 1
    assert report.in_sessions_not_trips == 1
    assert report.away_not_in_trips == 1
    assert report.not_in_sessions == 2
    assert (report.sessions, report.trips, report.homes) == (1, 1, 1)
    assert report.share(report.not_in_sessions) == 50.0
    assert len(report.recommendations) == 2


def test_coverage_without_homes() -> None:
    report = _service(with_home=False).coverage()

    assert report.at_home is None
    assert report.away_not_in_trips == 0
    assert any("No home locations" in tip for tip in report.recommendations)
