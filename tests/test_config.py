from datetime import date

import pytest

from immich_albums.config import Settings, parse_split_dates


def test_settings_defaults(settings: Settings) -> None:
    assert settings.immich_page_size == 1000
    assert settings.immich_timeout_seconds == 30
    assert settings.seeds_dir == "seeds"


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("IMMICH_URL", "https://photos.example.com")
    monkeypatch.setenv("IMMICH_API_KEY", "key")
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_KEY", "service")
    monkeypatch.setenv("IMMICH_PAGE_SIZE", "250")

    settings = Settings()

    assert settings.immich_page_size == 250
    assert settings.immich_api_key == "key"


def test_parse_split_dates_sorts_and_deduplicates() -> None:
    parsed = parse_split_dates(["2024-07-10", " 2024-07-02 ", "2024-07-10", ""])

    assert parsed == (date(2024, 7, 2), date(2024, 7, 10))
    assert parse_split_dates(None) == ()


def test_parse_split_dates_rejects_bad_values() -> None:
    with pytest.raises(ValueError, match="expected YYYY-MM-DD"):
        parse_split_dates(["July 4th"])
