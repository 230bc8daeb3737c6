"""Location inference for photos without GPS."""

import logging
from bisect import bisect_left
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from immich_albums.domain.devices import DeviceCatalog
from immich_albums.domain.locations import (
    EffectiveLocation,
    LocationInference,
    LocationSource,
)
from immich_albums.domain.photos import PhotoRecord
from immich_albums.services.devices import DeviceRepository, resolve_photographer
from immich_albums.services.photos import PhotoRepository

INTERPOLATION_PENALTY = 0.9
MINIMUM_CONFIDENCE = 0.1

# (upper bound in hours, confidence), checked in order.
_DECAY_TABLE = (
    (1.0, 1.0),
    (6.0, 0.9),
    (24.0, 0.7),
    (72.0, 0.5),
    (168.0, 0.3),
    (336.0, 0.15),
)
_DECAY_FLOOR = 0.1

_CONFIDENCE_BUCKETS = (
    (0.9, "Very High (0.9-1.0)"),
    (0.7, "High (0.7-0.9)"),
    (0.5, "Good (0.5-0.7)"),
    (0.3, "Moderate (0.3-0.5)"),
    (0.0, "Low (0.1-0.3)"),
)

_logger = logging.getLogger(__name__)


class InferenceRepository(Protocol):
    """Persistence interface for inferred locations."""

    def replace_inferences(self, inferences: list[LocationInference]) -> None:
        """Replace every stored inference."""

    def list_inferences(self) -> list[LocationInference]:
        """Return all stored inferences."""


@dataclass
class InferenceSummary:
    """Outcome of a location inference run."""

    labeled_devices: int
    photos_with_gps: int
    photos_without_gps: int
    inferred: int
    stored: int
    buckets: dict[str, int] = field(default_factory=dict)


@dataclass
class LocationService:
    """Runs inference against stored photos and devices."""

    photo_repository: PhotoRepository
    device_repository: DeviceRepository
    repository: InferenceRepository

    def infer(self, min_confidence: float = 0.3) -> InferenceSummary:
        """Infer locations and store those at or above ``min_confidence``."""
        photos = self.photo_repository.list_photos()
        catalog = self.device_repository.load_catalog()
        with_gps = sum(1 for photo in photos if photo.has_gps)
        labeled = catalog.labeled_count()
        if labeled == 0:
            _logger.warning("No labeled devices; skipping location inference")
            return InferenceSummary(
                labeled_devices=0,
                photos_with_gps=with_gps,
                photos_without_gps=len(photos) - with_gps,
                inferred=0,
                stored=0,
            )

        inferences = infer_locations(photos, catalog)
        accepted = [inf for inf in inferences if inf.confidence >= min_confidence]
        self.repository.replace_inferences(accepted)
        _logger.info(
            "Stored %s of %s inferences with confidence >= %.2f",
            len(accepted),
            len(inferences),
            min_confidence,
        )
        return InferenceSummary(
            labeled_devices=labeled,
            photos_with_gps=with_gps,
            photos_without_gps=len(photos) - with_gps,
            inferred=len(inferences),
            stored=len(accepted),
            buckets=_bucket_confidences(inferences),
        )


def confidence_for_gap(hours: float) -> float:
    """Return the confidence for a location anchored ``hours`` away."""
    for upper_bound, confidence in _DECAY_TABLE:
        if hours < upper_bound:
            return confidence
    return _DECAY_FLOOR


def infer_locations(
    photos: Iterable[PhotoRecord], catalog: DeviceCatalog
) -> list[LocationInference]:
    """Infer coordinates for GPS-less photos from the same photographer."""
    with_gps: list[PhotoRecord] = []
    without_gps: list[PhotoRecord] = []
    for photo in photos:
        (with_gps if photo.has_gps else without_gps).append(photo)
    with_gps.sort(key=lambda photo: photo.taken_at)
    without_gps.sort(key=lambda photo: photo.taken_at)

    anchors: dict[str, _Timeline] = {}
    for photo in with_gps:
        photographer = resolve_photographer(photo, catalog)
        if photographer:
            anchors.setdefault(photographer, _Timeline()).append(photo)
    _logger.info(
        "Inference: %s photos with GPS, %s without, anchors for %s photographers",
        len(with_gps),
        len(without_gps),
        len(anchors),
    )

    inferences: list[LocationInference] = []
    for photo in without_gps:
        photographer = resolve_photographer(photo, catalog)
        if not photographer:
            continue
        timeline = anchors.get(photographer)
        if timeline is None:
            continue
        inference = _infer_single(photo, timeline)
        if inference is not None:
            inferences.append(inference)

    _logger.info("Inferred %s locations", len(inferences))
    return inferences


def effective_location(
    photo: PhotoRecord, inferences: Mapping[str, LocationInference]
) -> EffectiveLocation | None:
    """Return the photo's own GPS, else its inferred location, else None."""
    if photo.latitude is not None and photo.longitude is not None:
        return EffectiveLocation(
            latitude=photo.latitude,
            longitude=photo.longitude,
            confidence=1.0,
            source=LocationSource.EXIF,
        )
    inference = inferences.get(photo.id)
    if inference is None:
        return None
    return EffectiveLocation(
        latitude=inference.latitude,
        longitude=inference.longitude,
        confidence=inference.confidence,
        source=inference.source,
    )


@dataclass
class _Timeline:
    photos: list[PhotoRecord] = field(default_factory=list)
    times: list[datetime] = field(default_factory=list)

    def append(self, photo: PhotoRecord) -> None:
        self.photos.append(photo)
        self.times.append(photo.taken_at)


def _infer_single(photo: PhotoRecord, timeline: _Timeline) -> LocationInference | None:
    # Interpolate only when both bracketing anchors fall in the same decay band.
    bracket = _bracket(photo, timeline)
    if bracket is not None:
        before, after = bracket
        hours_before = _hours_between(photo.taken_at, before.taken_at)
        hours_after = _hours_between(after.taken_at, photo.taken_at)
        if confidence_for_gap(hours_before) == confidence_for_gap(hours_after):
            interpolated = _interpolate(photo, before, after)
            if interpolated is not None:
                return interpolated

    nearest = _nearest_in_time(photo, timeline)
    if nearest is None:
        return None
    hours = _hours_between(photo.taken_at, nearest.taken_at)
    confidence = confidence_for_gap(hours)
    if confidence <= MINIMUM_CONFIDENCE:
        return None
    return LocationInference(
        photo_id=photo.id,
        latitude=nearest.latitude,
        longitude=nearest.longitude,
        confidence=confidence,
        source=LocationSource.NEARBY,
        method=f"nearest photo {hours:.1f} hours away",
    )


def _nearest_in_time(photo: PhotoRecord, timeline: _Timeline) -> PhotoRecord | None:
    index = bisect_left(timeline.times, photo.taken_at)
    nearest = None
    best = float("inf")
    if index > 0:
        candidate = timeline.photos[index - 1]
        best = _hours_between(photo.taken_at, candidate.taken_at)
        nearest = candidate
    if index < len(timeline.photos):
        candidate = timeline.photos[index]
        if _hours_between(photo.taken_at, candidate.taken_at) < best:
            nearest = candidate
    return nearest


def _bracket(
    photo: PhotoRecord, timeline: _Timeline
) -> tuple[PhotoRecord, PhotoRecord] | None:
    index = bisect_left(timeline.times, photo.taken_at)
    if index == 0 or index >= len(timeline.photos):
        return None
    before = timeline.photos[index - 1]
    after = timeline.photos[index]
    if not before.taken_at < photo.taken_at < after.taken_at:
        return None
    return before, after


def _interpolate(
    photo: PhotoRecord, before: PhotoRecord, after: PhotoRecord
) -> LocationInference | None:
    total = (after.taken_at - before.taken_at).total_seconds()
    weight = (photo.taken_at - before.taken_at).total_seconds() / total
    latitude = before.latitude + (after.latitude - before.latitude) * weight
    longitude = before.longitude + (after.longitude - before.longitude) * weight

    hours_before = _hours_between(photo.taken_at, before.taken_at)
    hours_after = _hours_between(after.taken_at, photo.taken_at)
    confidence = (
        confidence_for_gap(max(hours_before, hours_after)) * INTERPOLATION_PENALTY
    )
    if confidence < MINIMUM_CONFIDENCE:
        return None
    return LocationInference(
        photo_id=photo.id,
        latitude=latitude,
        longitude=longitude,
        confidence=confidence,
        source=LocationSource.INTERPOLATED,
        method=(
            f"interpolated between photos {hours_before:.1f}h before "
            f"and {hours_after:.1f}h after"
        ),
    )


def _hours_between(first: datetime, second: datetime) -> float:
    return abs((first - second).total_seconds()) / 3600


def _bucket_confidences(inferences: list[LocationInference]) -> dict[str, int]:
    buckets: dict[str, int] = {}
    for inference in inferences:
        for threshold, label in _CONFIDENCE_BUCKETS:
            if inference.confidence >= threshold:
                buckets[label] = buckets.get(label, 0) + 1
                break
    return buckets
