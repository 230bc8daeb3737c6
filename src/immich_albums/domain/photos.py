"""Domain models for photo records."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PhotoRecord:
    """A photo as fetched from the photo library.

    ``taken_at`` is the naive local capture time reported by the library.
    """

    id: str
    taken_at: datetime
    original_file_name: str = ""
    make: str = ""
    model: str = ""
    latitude: float | None = None
    longitude: float | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None

    @property
    def has_gps(self) -> bool:
        """Return True when the photo carries its own coordinates."""
        return self.latitude is not None and self.longitude is not None

    @property
    def has_device_info(self) -> bool:
        """Return True when make or model is known."""
        return bool(self.make.strip() or self.model.strip())
