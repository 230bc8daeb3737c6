"""Storage interface for fetched photo records."""

from typing import Protocol

from immich_albums.domain.photos import PhotoRecord


class PhotoRepository(Protocol):
    """Persistence interface for fetched photo records."""

    def replace_photos(self, photos: list[PhotoRecord]) -> None:
        """Replace every stored photo."""

    def list_photos(self) -> list[PhotoRecord]:
        """Return all stored photos."""
