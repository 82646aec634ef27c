"""Application settings."""

from .settings import (
    EpisodeSettings,
    FeedSettings,
    ProviderSettings,
    RouterSettings,
    Settings,
    ShortenerSettings,
    Sponsor,
    StorageSettings,
    load_settings,
)

__all__ = [
    "EpisodeSettings",
    "FeedSettings",
    "ProviderSettings",
    "RouterSettings",
    "Settings",
    "ShortenerSettings",
    "Sponsor",
    "StorageSettings",
    "load_settings",
]
