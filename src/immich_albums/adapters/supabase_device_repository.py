"""Supabase-backed device repository."""

from dataclasses import dataclass
from typing import Any

from supabase import Client

from immich_albums.adapters.supabase_tables import (
    clear_table,
    fetch_all,
    insert_batches,
)
from immich_albums.domain.devices import CounterRange, Device, DeviceCatalog
from immich_albums.services.devices import DeviceRepository

_TABLE = "devices"


@dataclass
class SupabaseDeviceRepository(DeviceRepository):
    """Supabase implementation for devices and their counter ranges."""

    client: Client

    def load_catalog(self) -> DeviceCatalog:
        """Load every device and its counter range, if any."""
        devices = []
        ranges = {}
        for row in fetch_all(self.client, _TABLE, "id"):
            device = Device(
                id=str(row["id"]),
                make=row.get("make") or "",
                model=row.get("model") or "",
                photo_count=int(row.get("photo_count") or 0),
                photographer=row.get("photographer") or None,
            )
            devices.append(device)
            low, high = row.get("counter_min"), row.get("counter_max")
            if low is not None and high is not None:
                ranges[device.id] = CounterRange(minimum=int(low), maximum=int(high))
        return DeviceCatalog(devices=tuple(devices), counter_ranges=ranges)

    def replace_catalog(self, catalog: DeviceCatalog) -> None:
        """Replace every stored device."""
        clear_table(self.client, _TABLE, "id", "")
        rows = [_to_row(device, catalog) for device in catalog.devices]
        if rows:
            insert_batches(self.client, _TABLE, rows)

    def update_photographer(self, device_id: str, photographer: str) -> None:
        """Label a device with its photographer."""
        self.client.table(_TABLE).update({"photographer": photographer}).eq(
            "id", device_id
        ).execute()


def _to_row(device: Device, catalog: DeviceCatalog) -> dict[str, Any]:
    counter_range = catalog.counter_ranges.get(device.id)
    return {
        "id": device.id,
        "make": device.make,
        "model": device.model,
        "photo_count": device.photo_count,
        "photographer": device.photographer,
        "counter_min": counter_range.minimum if counter_range else None,
        "counter_max": counter_range.maximum if counter_range else None,
    }
