"""Application configuration."""

import os
from collections.abc import Iterable
from datetime import date

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    immich_url: str
    immich_api_key: str
    supabase_url: str
    supabase_service_key: str
    immich_page_size: int = 1000
    immich_timeout_seconds: float = 30
    seeds_dir: str = "seeds"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_split_dates(values: Iterable[str] | None) -> tuple[date, ...]:
    """Parse ``YYYY-MM-DD`` split dates, sorted and without duplicates."""
    if not values:
        return ()
    dates: set[date] = set()
    for raw in values:
        value = raw.strip()
        if not value:
            continue
        try:
            dates.add(date.fromisoformat(value))
        except ValueError as exc:
            raise ValueError(
                f"Invalid split date {value!r}; expected YYYY-MM-DD"
            ) from exc
    return tuple(sorted(dates))
