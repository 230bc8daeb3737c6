"""Coverage analysis: how photos are split between home, sessions and trips."""

from dataclasses import dataclass, field

from immich_albums.services.clustering import SessionRepository
from immich_albums.services.geo import haversine_km
from immich_albums.services.homes import HomeRepository
from immich_albums.services.photos import PhotoRepository
from immich_albums.services.trips import TripRepository


@dataclass
class CoverageReport:
    """Photo categorisation counts.

    Location-based counts only consider photos with their own GPS data.
    ``at_home`` is None when no home locations are defined.
    """

    total_photos: int
    with_gps: int
    without_gps: int
    at_home: int | None
    in_trips: int
    in_sessions_not_trips: int
    away_not_in_trips: int
    not_in_sessions: int
    sessions: int
    trips: int
    homes: int
    recommendations: list[str] = field(default_factory=list)

    def share(self, count: int) -> float:
        """Percentage of GPS-tagged photos represented by ``count``."""
        return count * 100 / self.with_gps if self.with_gps else 0.0


@dataclass
class AnalysisService:
    photo_repository: PhotoRepository
    session_repository: SessionRepository
    trip_repository: TripRepository
    home_repository: HomeRepository

    def coverage(self) -> CoverageReport:
        """Categorise every stored photo."""
        photos = self.photo_repository.list_photos()
        sessions = self.session_repository.list_sessions()
        trips = self.trip_repository.list_trips()
        homes = self.home_repository.list_homes()

        in_sessions = {pid for session in sessions for pid in session.photo_ids}
        in_trips = {pid for trip in trips for pid in trip.photo_ids}

        with_gps = at_home = trip_count = session_only = away = loose = 0
        for photo in photos:
            if photo.latitude is None or photo.longitude is None:
                continue
            with_gps += 1
            home = any(
                haversine_km(photo.latitude, photo.longitude, h.latitude, h.longitude)
                <= h.radius_km
                for h in homes
            )
            if home:
                at_home += 1
            if photo.id in in_trips:
                trip_count += 1
            elif photo.id in in_sessions:
                session_only += 1
                if not home:
                    away += 1
            else:
                loose += 1

        report = CoverageReport(
            total_photos=len(photos),
            with_gps=with_gps,
            without_gps=len(photos) - with_gps,
            at_home=at_home if homes else None,
            in_trips=trip_count,
            in_sessions_not_trips=session_only,
            away_not_in_trips=away if homes else 0,
            not_in_sessions=loose,
            sessions=len(sessions),
            trips=len(trips),
            homes=len(homes),
        )
        report.recommendations = _recommendations(report)
        return report


def _recommendations(report: CoverageReport) -> list[str]:
    tips = []
    if report.homes and report.away_not_in_trips:
        tips.append(
            f"{report.away_not_in_trips} photos are away from home but not in "
            "trips; consider lowering --min-distance or --min-duration, or "
            "adding home locations for regular places."
        )
    if report.not_in_sessions:
        tips.append(
            f"{report.not_in_sessions} photos are not grouped into any session; "
            "consider lowering --min-photos or raising the time and distance "
            "thresholds."
        )
    if not report.homes:
        tips.append("No home locations defined; add one to separate trips from home.")
    return tips
