"""Trip segmentation over time-sorted sessions."""

import logging
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Protocol

from immich_albums.domain.photos import PhotoRecord
from immich_albums.domain.sessions import Session
from immich_albums.domain.trips import HomeLocation, Trip, TripEnd
from immich_albums.services.clustering import SessionRepository
from immich_albums.services.geo import haversine_km, mean_point
from immich_albums.services.homes import HomeRepository
from immich_albums.services.photos import PhotoRepository

_logger = logging.getLogger(__name__)


class TripRepository(Protocol):
    """Persistence interface for detected trips."""

    def replace_trips(self, trips: list[Trip]) -> list[Trip]:
        """Replace every stored trip and return them with ids."""

    def list_trips(self) -> list[Trip]:
        """Return all stored trips, newest first."""

    def get_trip(self, trip_id: int) -> Trip | None:
        """Return a trip by id, if present."""

    def update_name(self, trip_id: int, name: str) -> None:
        """Rename a trip."""

    def set_excluded(self, trip_id: int, excluded: bool) -> None:
        """Flag a trip as excluded from album creation."""

    def set_album_id(self, trip_id: int, album_id: str | None) -> None:
        """Record the album created for a trip."""


@dataclass(frozen=True)
class TripCriteria:
    """Rules that decide where trips start and end."""

    min_distance_from_home_km: float = 50.0
    max_session_gap: timedelta = timedelta(hours=48)
    min_duration: timedelta = timedelta(hours=2)
    min_sessions: int = 1
    max_home_stay: timedelta = timedelta(hours=36)
    split_dates: tuple[date, ...] = ()


@dataclass
class TripSummary:
    """Outcome of a trip detection run."""

    sessions: int
    away_sessions: int
    homes: int
    trips: list[Trip]


@dataclass
class TripService:
    """Detects and edits trips."""

    session_repository: SessionRepository
    home_repository: HomeRepository
    photo_repository: PhotoRepository
    repository: TripRepository

    def detect(self, criteria: TripCriteria) -> TripSummary:
        """Detect trips from stored sessions and replace stored trips."""
        sessions = self.session_repository.list_sessions()
        homes = self.home_repository.list_homes()
        if not homes:
            _logger.warning("No home locations defined; every session counts as away")
        away = sum(1 for s in sessions if not is_at_home(s, homes, criteria))
        trips = detect_trips(
            sessions, homes, criteria, self.photo_repository.list_photos()
        )
        stored = self.repository.replace_trips(trips)
        return TripSummary(
            sessions=len(sessions), away_sessions=away, homes=len(homes), trips=stored
        )

    def list_trips(self) -> list[Trip]:
        """Return stored trips."""
        return self.repository.list_trips()

    def rename_trip(self, trip_id: int, name: str) -> Trip:
        """Rename a trip and return it."""
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("Trip name must not be empty")
        self._require(trip_id)
        self.repository.update_name(trip_id, cleaned)
        return self._require(trip_id)

    def set_excluded(self, trip_id: int, excluded: bool) -> Trip:
        """Include or exclude a trip from album creation."""
        self._require(trip_id)
        self.repository.set_excluded(trip_id, excluded)
        return self._require(trip_id)

    def _require(self, trip_id: int) -> Trip:
        trip = self.repository.get_trip(trip_id)
        if trip is None:
            raise LookupError(f"Unknown trip: {trip_id}")
        return trip


def nearest_home_distance(
    lat: float, lon: float, homes: Sequence[HomeLocation]
) -> tuple[float, HomeLocation] | None:
    """Return the distance to the nearest home and that home."""
    best: tuple[float, HomeLocation] | None = None
    for home in homes:
        distance = haversine_km(lat, lon, home.latitude, home.longitude)
        if best is None or distance < best[0]:
            best = (distance, home)
    return best


def is_at_home(
    session: Session, homes: Sequence[HomeLocation], criteria: TripCriteria
) -> bool:
    """Return True if the session lies near one of the homes.

    A session is at home when it is inside a home's radius or closer than
    the minimum trip distance.
    """
    for home in homes:
        distance = haversine_km(
            session.center_lat, session.center_lon, home.latitude, home.longitude
        )
        if distance <= home.radius_km or distance < criteria.min_distance_from_home_km:
            return True
    return False


def detect_trips(
    sessions: Iterable[Session],
    homes: Sequence[HomeLocation],
    criteria: TripCriteria,
    photos: Iterable[PhotoRecord] = (),
) -> list[Trip]:
    """Group time-sorted sessions into trips."""
    ordered = sorted(sessions, key=lambda s: (s.start_time, s.end_time))
    builder = _TripBuilder(
        homes=homes,
        criteria=criteria,
        photos={photo.id: photo for photo in photos},
    )
    for session in ordered:
        builder.feed(session, is_at_home(session, homes, criteria))
    builder.finish()
    _logger.info("Detected %s trips from %s sessions", len(builder.trips), len(ordered))
    return builder.trips


def trip_name(
    sessions: Sequence[Session],
    start: datetime,
    end: datetime,
    photos: Mapping[str, PhotoRecord],
) -> str:
    """Name a trip after its most photographed place and its dates."""
    location = _dominant_place(sessions, photos)
    return f"{location or 'Trip'} - {_format_date_range(start, end)}"


@dataclass
class _TripBuilder:
    homes: Sequence[HomeLocation]
    criteria: TripCriteria
    photos: Mapping[str, PhotoRecord]
    trips: list[Trip] = field(default_factory=list)
    current: list[Session] = field(default_factory=list)
    pending_home_return: datetime | None = None

    def feed(self, session: Session, at_home: bool) -> None:
        if self.current and self._crosses_split_date(session):
            self._finalize(TripEnd.FORCED_SPLIT)
            self._open(session)
            return

        if at_home:
            if self.current and self.pending_home_return is None:
                self.pending_home_return = session.start_time
            return

        if not self.current:
            self._open(session)
            return

        if self.pending_home_return is not None:
            home_stay = session.start_time - self.pending_home_return
            if home_stay > self.criteria.max_home_stay:
                self._finalize(TripEnd.HOME_STAY)
                self._open(session)
            else:
                self.current.append(session)
                self.pending_home_return = None
            return

        gap = session.start_time - self.current[-1].end_time
        if gap <= self.criteria.max_session_gap:
            self.current.append(session)
        else:
            self._finalize(TripEnd.SESSION_GAP)
            self._open(session)

    def finish(self) -> None:
        if self.current:
            self._finalize(TripEnd.END_OF_INPUT)
        self.current = []
        self.pending_home_return = None

    def _open(self, session: Session) -> None:
        self.current = [session]
        self.pending_home_return = None

    def _crosses_split_date(self, session: Session) -> bool:
        previous_end = self.current[-1].end_time
        for split_date in self.criteria.split_dates:
            boundary = datetime.combine(split_date, time.min)
            if previous_end <= boundary < session.start_time:
                _logger.info("Forcing trip split at %s", split_date.isoformat())
                return True
        return False

    def _finalize(self, ended_by: TripEnd) -> None:
        sessions = self.current
        self.current = []
        self.pending_home_return = None
        if len(sessions) < self.criteria.min_sessions:
            return
        trip = _build_trip(sessions, self.homes, self.photos, ended_by)
        if trip.duration < self.criteria.min_duration:
            return
        _logger.info("Trip ended (%s): %s", ended_by.value, trip.name)
        self.trips.append(trip)


def _build_trip(
    sessions: list[Session],
    homes: Sequence[HomeLocation],
    photos: Mapping[str, PhotoRecord],
    ended_by: TripEnd,
) -> Trip:
    start = sessions[0].start_time
    end = max(session.end_time for session in sessions)
    center_lat, center_lon = mean_point((s.center_lat, s.center_lon) for s in sessions)
    nearest = nearest_home_distance(
        sessions[0].center_lat, sessions[0].center_lon, homes
    )
    total_distance = sum(
        haversine_km(a.center_lat, a.center_lon, b.center_lat, b.center_lon)
        for a, b in zip(sessions, sessions[1:], strict=False)
    )
    photographers = sorted(
        {name for session in sessions for name in session.photographer_names}
    )
    return Trip(
        name=trip_name(sessions, start, end, photos),
        start_time=start,
        end_time=end,
        sessions=list(sessions),
        photo_ids=[pid for session in sessions for pid in session.photo_ids],
        photographers=photographers,
        home_distance_km=nearest[0] if nearest else None,
        total_distance_km=total_distance,
        center_lat=center_lat,
        center_lon=center_lon,
        session_count=len(sessions),
        ended_by=ended_by,
    )


def _dominant_place(
    sessions: Sequence[Session], photos: Mapping[str, PhotoRecord]
) -> str:
    cities: Counter[str] = Counter()
    countries: Counter[str] = Counter()
    for session in sessions:
        for photo_id in session.photo_ids:
            photo = photos.get(photo_id)
            if photo is None:
                continue
            if photo.city:
                cities[photo.city] += 1
            if photo.country:
                countries[photo.country] += 1
    parts = [_most_common(cities), _most_common(countries)]
    return ", ".join(part for part in parts if part)


def _most_common(counts: Counter[str]) -> str | None:
    if not counts:
        return None
    # Ties break alphabetically.
    return min(counts.items(), key=lambda item: (-item[1], item[0]))[0]


def _format_date_range(start: datetime, end: datetime) -> str:
    if start.date() == end.date():
        return f"{start:%b} {start.day}, {start.year}"
    if (start.year, start.month) == (end.year, end.month):
        return f"{start:%b} {start.day}-{end.day}, {start.year}"
    return f"{start:%b} {start.day} - {end:%b} {end.day}, {end.year}"
