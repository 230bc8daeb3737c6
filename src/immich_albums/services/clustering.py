"""Spatio-temporal clustering of photos into sessions."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from immich_albums.domain.devices import DeviceCatalog
from immich_albums.domain.locations import EffectiveLocation, LocationInference
from immich_albums.domain.photos import PhotoRecord
from immich_albums.domain.sessions import Session
from immich_albums.services.devices import DeviceRepository, resolve_photographer
from immich_albums.services.geo import haversine_km, mean_point
from immich_albums.services.inference import InferenceRepository, effective_location
from immich_albums.services.photos import PhotoRepository

MAX_MERGED_RADIUS_KM = 50.0

_logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Persistence interface for detected sessions."""

    def replace_sessions(self, sessions: list[Session]) -> list[Session]:
        """Replace every stored session and return them with ids."""

    def list_sessions(self) -> list[Session]:
        """Return all stored sessions ordered by start time."""


@dataclass(frozen=True)
class ClusteringParams:
    """Thresholds for grouping one photographer's photos."""

    max_time_gap_hours: float = 6.0
    max_distance_km: float = 5.0
    min_photos: int = 2
    min_confidence: float = 0.3


@dataclass(frozen=True)
class MergeParams:
    """Thresholds for merging sessions across photographers."""

    max_time_gap_hours: float = 2.0
    max_distance_km: float = 1.0


@dataclass
class SessionSummary:
    """Outcome of a session detection run."""

    located_photos: int
    detected: int
    stored: int
    photos_in_sessions: int

    @property
    def average_photos(self) -> float:
        """Average number of photos per stored session."""
        return self.photos_in_sessions / self.stored if self.stored else 0.0


@dataclass
class SessionService:
    """Detects sessions from stored photos, devices and inferences."""

    photo_repository: PhotoRepository
    device_repository: DeviceRepository
    inference_repository: InferenceRepository
    repository: SessionRepository

    def detect(
        self, params: ClusteringParams, merge: MergeParams | None = None
    ) -> SessionSummary:
        """Detect sessions, optionally merge them and replace stored ones."""
        photos = self.photo_repository.list_photos()
        catalog = self.device_repository.load_catalog()
        inferences = {
            inference.photo_id: inference
            for inference in self.inference_repository.list_inferences()
        }
        sessions = detect_sessions(photos, inferences, catalog, params)
        detected = len(sessions)
        if merge is not None and len(sessions) > 1:
            sessions = merge_sessions(sessions, merge)
            _logger.info("Merged %s sessions into %s", detected, len(sessions))

        stored = self.repository.replace_sessions(sessions)
        located = sum(
            1
            for photo in photos
            if _located(photo, inferences, params.min_confidence) is not None
        )
        return SessionSummary(
            located_photos=located,
            detected=detected,
            stored=len(stored),
            photos_in_sessions=sum(len(session.photo_ids) for session in stored),
        )

    def list_sessions(self) -> list[Session]:
        """Return stored sessions ordered by start time."""
        return self.repository.list_sessions()


def detect_sessions(
    photos: Iterable[PhotoRecord],
    inferences: Mapping[str, LocationInference],
    catalog: DeviceCatalog,
    params: ClusteringParams,
) -> list[Session]:
    """Group each labeled photographer's located photos into sessions."""
    located: list[tuple[PhotoRecord, EffectiveLocation]] = []
    for photo in photos:
        location = _located(photo, inferences, params.min_confidence)
        if location is not None:
            located.append((photo, location))
    located.sort(key=lambda item: (item[0].taken_at, item[0].id))

    by_photographer: dict[str, list[tuple[PhotoRecord, EffectiveLocation]]] = {}
    for photo, location in located:
        photographer = resolve_photographer(photo, catalog)
        if photographer:
            by_photographer.setdefault(photographer, []).append((photo, location))

    sessions: list[Session] = []
    for photographer in sorted(by_photographer):
        found = _cluster_photographer(
            by_photographer[photographer], photographer, params
        )
        _logger.info("%s: %s sessions", photographer, len(found))
        sessions.extend(found)

    _logger.info(
        "Detected %s sessions from %s located photos", len(sessions), len(located)
    )
    return sessions


def merge_sessions(sessions: list[Session], params: MergeParams) -> list[Session]:
    """Greedily merge overlapping sessions from different photographers."""
    if len(sessions) <= 1:
        return list(sessions)

    ordered = sorted(sessions, key=lambda s: (s.start_time, s.photographer))
    merged: list[Session] = []
    group = [ordered[0]]
    for session in ordered[1:]:
        # Sessions are time-sorted, so a gap from the earliest member ends the group.
        gap = _gap_hours(group[0].end_time, session.start_time)
        if gap > params.max_time_gap_hours:
            merged.append(_combine(group))
            group = [session]
            continue

        if _can_join(group, session, params):
            group.append(session)
        else:
            merged.append(_combine(group))
            group = [session]
    merged.append(_combine(group))
    return merged


def _located(
    photo: PhotoRecord,
    inferences: Mapping[str, LocationInference],
    min_confidence: float,
) -> EffectiveLocation | None:
    location = effective_location(photo, inferences)
    if location is None or location.confidence < min_confidence:
        return None
    return location


def _cluster_photographer(
    located: list[tuple[PhotoRecord, EffectiveLocation]],
    photographer: str,
    params: ClusteringParams,
) -> list[Session]:
    if not located:
        return []

    sessions: list[Session] = []
    current = [located[0]]
    for previous, item in zip(located, located[1:], strict=False):
        gap = _gap_hours(previous[0].taken_at, item[0].taken_at)
        distance = haversine_km(
            previous[1].latitude,
            previous[1].longitude,
            item[1].latitude,
            item[1].longitude,
        )
        if gap <= params.max_time_gap_hours and distance <= params.max_distance_km:
            current.append(item)
            continue
        if len(current) >= params.min_photos:
            sessions.append(_session_from_photos(current, photographer))
        current = [item]

    if len(current) >= params.min_photos:
        sessions.append(_session_from_photos(current, photographer))
    return sessions


def _session_from_photos(
    located: list[tuple[PhotoRecord, EffectiveLocation]], photographer: str
) -> Session:
    center_lat, center_lon = mean_point(
        (location.latitude, location.longitude) for _, location in located
    )
    radius = max(
        haversine_km(center_lat, center_lon, location.latitude, location.longitude)
        for _, location in located
    )
    return Session(
        start_time=located[0][0].taken_at,
        end_time=located[-1][0].taken_at,
        photo_ids=[photo.id for photo, _ in located],
        center_lat=center_lat,
        center_lon=center_lon,
        radius_km=radius,
        photographer=photographer,
    )


def _can_join(group: list[Session], session: Session, params: MergeParams) -> bool:
    close = any(
        _gap_hours(member.end_time, session.start_time) <= params.max_time_gap_hours
        and haversine_km(
            member.center_lat, member.center_lon, session.center_lat, session.center_lon
        )
        <= params.max_distance_km
        for member in group
    )
    if not close:
        return False
    return _group_radius([*group, session]) <= MAX_MERGED_RADIUS_KM


def _group_radius(sessions: list[Session]) -> float:
    center_lat, center_lon = mean_point(
        (session.center_lat, session.center_lon) for session in sessions
    )
    return max(
        haversine_km(center_lat, center_lon, session.center_lat, session.center_lon)
        + session.radius_km
        for session in sessions
    )


def _combine(group: list[Session]) -> Session:
    if len(group) == 1:
        return group[0]
    photo_ids = list(
        dict.fromkeys(pid for session in group for pid in session.photo_ids)
    )
    names = sorted({name for session in group for name in session.photographer_names})
    center_lat, center_lon = mean_point(
        (session.center_lat, session.center_lon) for session in group
    )
    return Session(
        start_time=min(session.start_time for session in group),
        end_time=max(session.end_time for session in group),
        photo_ids=photo_ids,
        center_lat=center_lat,
        center_lon=center_lon,
        radius_km=_group_radius(group),
        photographer=", ".join(names),
    )


def _gap_hours(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / 3600
