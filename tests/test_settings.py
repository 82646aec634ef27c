"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from torchcast.config.settings import (
    DEFAULT_SPONSOR,
    EpisodeSettings,
    FeedSettings,
    ProviderSettings,
    RouterSettings,
    ShortenerSettings,
    StorageSettings,
)


def test_provider_aliases_from_environment(monkeypatch):
    monkeypatch.setenv("OPENROUTER_GOOGLE", "google/gemini-2.0-flash-001")
    monkeypatch.setenv("OPENROUTER_API_KEY_GOOGLE", "g-key")

    providers = ProviderSettings()

    assert providers.google == "google/gemini-2.0-flash-001"
    assert providers.api_key_google.get_secret_value() == "g-key"


def test_feed_settings_from_environment(monkeypatch):
    monkeypatch.setenv("FEED_FEEDS_PER_RUN", "3")
    monkeypatch.setenv("FEED_AI_ONLY", "true")

    settings = FeedSettings()

    assert settings.feeds_per_run == 3
    assert settings.ai_only is True


def test_feeds_per_run_must_be_positive():
    with pytest.raises(ValidationError):
        FeedSettings(feeds_per_run=0)


def test_shortener_enabled_needs_key_and_domain():
    assert not ShortenerSettings().enabled
    assert ShortenerSettings(api_key="k", domain="sho.rt").enabled


def test_storage_backend_is_restricted():
    with pytest.raises(ValidationError):
        StorageSettings(backend="ftp")


def test_sponsors_default_and_from_environment(monkeypatch):
    assert EpisodeSettings().sponsors == [DEFAULT_SPONSOR]

    monkeypatch.setenv("PODCAST_SPONSORS", '[{"title": "Book A", "url": "https://a.example"}, {"title": "Book B"}]')
    sponsors = EpisodeSettings().sponsors

    assert [s.title for s in sponsors] == ["Book A", "Book B"]
    assert sponsors[1].url == DEFAULT_SPONSOR.url


def test_router_temperature_from_environment(monkeypatch):
    monkeypatch.setenv("ROUTER_TEMPERATURE", "0.25")

    assert RouterSettings().temperature == 0.25
