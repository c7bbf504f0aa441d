import pytest
from pydantic import ValidationError

from core.config import DEFAULT_BASE_URL, AppSettings


def test_defaults_match_mobile_client():
    settings = AppSettings(_env_file=None)

    assert settings.api_base_url == DEFAULT_BASE_URL
    assert settings.page_size == 20
    assert settings.search_min_length == 2
    assert settings.http_timeout_seconds == 30.0


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DIGI_CATALOG_PAGE_SIZE", "50")
    monkeypatch.setenv("DIGI_CATALOG_IMAGE_CACHE_MAX_ENTRIES", "10")

    settings = AppSettings(_env_file=None)

    assert settings.page_size == 50
    assert settings.image_cache_max_entries == 10


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        AppSettings(_env_file=None, page_size=0)
