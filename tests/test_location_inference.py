"""Tests for location inference."""

import pytest

from immich_albums.domain.locations import LocationSource
from immich_albums.services.inference import (
    LocationService,
    confidence_for_gap,
    effective_location,
    infer_locations,
)
from tests.conftest import (
    InMemoryDeviceRepository,
    InMemoryInferenceRepository,
    InMemoryPhotoRepository,
    labeled_catalog,
    make_photo,
)


def _alice_catalog():
    return labeled_catalog(("apple-iphone 12", "Alice"))


def test_confidence_decay_is_non_increasing() -> None:
    hours = [0, 0.5, 1, 3, 6, 12, 24, 48, 72, 100, 168, 200, 336, 1000]
    confidences = [confidence_for_gap(h) for h in hours]

    assert confidences == sorted(confidences, reverse=True)
    assert confidences[0] == 1.0
    assert confidences[-1] == 0.1


def test_bracketed_photo_is_interpolated() -> None:
    photos = [
        make_photo("g1", 0, lat=10.0, lon=10.0),
        make_photo("g2", 10, lat=10.1, lon=10.1),
        make_photo("n1", 5),
    ]

    inferences = infer_locations(photos, _alice_catalog())

    assert len(inferences) == 1
    inference = inferences[0]
    assert inference.photo_id == "n1"
    assert inference.source is LocationSource.INTERPOLATED
    assert inference.latitude == pytest.approx(10.05)
    assert inference.longitude == pytest.approx(10.05)
    assert inference.confidence == pytest.approx(0.81)


def test_unbracketed_photo_uses_nearest_in_time() -> None:
    photos = [
        make_photo("g1", 0, lat=10.0, lon=10.0),
        make_photo("g2", 10, lat=10.1, lon=10.1),
        make_photo("n1", 12),
    ]

    inferences = infer_locations(photos, _alice_catalog())

    assert len(inferences) == 1
    assert inferences[0].source is LocationSource.NEARBY
    assert (inferences[0].latitude, inferences[0].longitude) == (10.1, 10.1)
    assert inferences[0].confidence == pytest.approx(0.9)


def test_close_anchor_wins_over_distant_bracket() -> None:
    photos = [
        make_photo("g1", 0, lat=10.0, lon=10.0),
        make_photo("g2", 200, lat=40.0, lon=40.0),
        make_photo("n1", 0.5),
    ]

    inferences = infer_locations(photos, _alice_catalog())

    assert len(inferences) == 1
    inference = inferences[0]
    assert inference.source is LocationSource.NEARBY
    assert inference.confidence == 1.0
    assert (inference.latitude, inference.longitude) == (10.0, 10.0)


def test_close_anchor_is_kept_by_location_service() -> None:
    repository = InMemoryInferenceRepository()
    service = LocationService(
        InMemoryPhotoRepository(
            [
                make_photo("g1", 0, lat=10.0, lon=10.0),
                make_photo("g2", 200, lat=40.0, lon=40.0),
                make_photo("n1", 0.5),
            ]
        ),
        InMemoryDeviceRepository(_alice_catalog()),
        repository,
    )

    summary = service.infer()

    assert summary.stored == 1
    assert repository.inferences[0].photo_id == "n1"


def test_interpolated_confidence_never_exceeds_nearest() -> None:
    for gap in [0.5, 3, 10, 50, 100, 200]:
        photos = [
            make_photo("g1", 0, lat=1.0, lon=1.0),
            make_photo("g2", 2 * gap, lat=1.0, lon=1.0),
            make_photo("n1", gap),
        ]
        inferences = infer_locations(photos, _alice_catalog())
        if inferences:
            assert inferences[0].confidence <= confidence_for_gap(gap)


def test_distant_photos_are_not_inferred() -> None:
    photos = [
        make_photo("g1", 0, lat=10.0, lon=10.0),
        make_photo("n1", 400),
    ]

    assert infer_locations(photos, _alice_catalog()) == []


def test_other_photographers_are_not_used_as_anchors() -> None:
    catalog = labeled_catalog(("apple-iphone 12", "Alice"), ("google-pixel 7", "Bob"))
    photos = [
        make_photo("g1", 0, lat=10.0, lon=10.0, make="Google", model="Pixel 7"),
        make_photo("n1", 1),
    ]

    assert infer_locations(photos, catalog) == []


def test_unlabeled_photos_are_ignored() -> None:
    photos = [
        make_photo("g1", 0, lat=10.0, lon=10.0),
        make_photo("n1", 1),
    ]

    assert infer_locations(photos, labeled_catalog()) == []


def test_effective_location_prefers_own_gps() -> None:
    photos = [
        make_photo("g1", 0, lat=10.0, lon=10.0),
        make_photo("n1", 2),
    ]
    found = infer_locations(photos, _alice_catalog())
    inferences = {inference.photo_id: inference for inference in found}

    own = effective_location(photos[0], inferences)
    inferred = effective_location(photos[1], inferences)

    assert own is not None
    assert own.source is LocationSource.EXIF
    assert own.confidence == 1.0
    assert inferred is not None
    assert inferred.source is LocationSource.NEARBY
    assert effective_location(make_photo("n2", 3), {}) is None


def test_location_service_filters_by_confidence() -> None:
    photo_repository = InMemoryPhotoRepository(
        [
            make_photo("g1", 0, lat=10.0, lon=10.0),
            make_photo("g2", 10, lat=10.1, lon=10.1),
            make_photo("n1", 5),
            make_photo("n2", 11),
        ]
    )
    repository = InMemoryInferenceRepository()
    service = LocationService(
        photo_repository, InMemoryDeviceRepository(_alice_catalog()), repository
    )

    summary = service.infer(min_confidence=0.85)

    assert summary.labeled_devices == 1
    assert summary.photos_with_gps == 2
    assert summary.photos_without_gps == 2
    assert summary.inferred == 2
    assert summary.stored == 1
    assert [inf.photo_id for inf in repository.inferences] == ["n2"]
    assert summary.buckets == {"Very High (0.9-1.0)": 1, "High (0.7-0.9)": 1}


def test_location_service_requires_labeled_devices() -> None:
    repository = InMemoryInferenceRepository()
    service = LocationService(
        InMemoryPhotoRepository([make_photo("n1", 0)]),
        InMemoryDeviceRepository(),
        repository,
    )

    summary = service.infer()

    assert summary.labeled_devices == 0
    assert summary.stored == 0
    assert repository.inferences == []
