"""Domain models for resolved devices."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType


@dataclass(frozen=True)
class Device:
    """A physical camera or phone."""

    id: str
    make: str
    model: str
    photo_count: int
    photographer: str | None = None


@dataclass(frozen=True)
class CounterRange:
    """Filename counter range observed for a sub-device."""

    minimum: int
    maximum: int

    @property
    def tolerance(self) -> int:
        """Slack allowed on each side, a quarter of the range."""
        return (self.maximum - self.minimum) // 4

    def accepts(self, counter: int) -> bool:
        """Return True if the counter falls inside the tolerant range."""
        return (
            self.minimum - self.tolerance <= counter <= self.maximum + self.tolerance
        )


@dataclass(frozen=True)
class DeviceCatalog:
    """Resolved devices together with their accepted counter ranges."""

    devices: tuple[Device, ...] = ()
    counter_ranges: Mapping[str, CounterRange] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "devices", tuple(self.devices))
        object.__setattr__(
            self, "counter_ranges", MappingProxyType(dict(self.counter_ranges))
        )

    @cached_property
    def _by_id(self) -> dict[str, Device]:
        return {device.id: device for device in self.devices}

    def get(self, device_id: str) -> Device | None:
        """Return a device by id, if present."""
        return self._by_id.get(device_id)

    def labeled_count(self) -> int:
        """Return how many devices carry a photographer label."""
        return sum(1 for device in self.devices if device.photographer)
