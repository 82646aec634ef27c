"""
Configuration settings for Torchcast - AI news podcast and condensed feed automation.
Uses pydantic-settings for environment variable management.
"""
from datetime import date
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseSettings):
    """OpenRouter model aliases and their credentials.

    Each alias maps to a model identifier and its own API key. An alias with either
    value unset is treated as "not configured" by the router.
    """

    model_config = SettingsConfigDict(env_prefix="OPENROUTER_")

    base_url: str = Field(default="https://openrouter.ai/api/v1")
    app_url: str = Field(default="https://turingstorch.example", description="HTTP-Referer header")
    app_title: str = Field(default="AI Podcast Suite", description="X-Title header")

    google: str | None = Field(default=None, description="e.g. google/gemini-2.0-flash-001")
    api_key_google: SecretStr | None = Field(default=None)
    chatgpt: str | None = Field(default=None, description="e.g. openai/gpt-4o-mini")
    api_key_chatgpt: SecretStr | None = Field(default=None)
    deepseek: str | None = Field(default=None)
    api_key_deepseek: SecretStr | None = Field(default=None)
    anthropic: str | None = Field(default=None)
    api_key_anthropic: SecretStr | None = Field(default=None)
    meta: str | None = Field(default=None)
    api_key_meta: SecretStr | None = Field(default=None)

    def table(self) -> dict[str, tuple[str | None, str | None]]:
        """Alias -> (model identifier, credential)."""
        aliases = ("google", "chatgpt", "deepseek", "anthropic", "meta")
        out = {}
        for alias in aliases:
            key: SecretStr | None = getattr(self, f"api_key_{alias}")
            out[alias] = (getattr(self, alias), key.get_secret_value() if key else None)
        return out


class RouterSettings(BaseSettings):
    """Defaults applied to every generation call unless a task overrides them."""

    model_config = SettingsConfigDict(env_prefix="ROUTER_")

    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1200, ge=1)
    timeout_seconds: float = Field(default=60.0, gt=0)


class FeedSettings(BaseSettings):
    """Condensed news feed configuration."""

    model_config = SettingsConfigDict(env_prefix="FEED_")

    # Rotation
    feeds_per_run: int = Field(default=5, ge=1, le=100)
    max_items_per_run: int = Field(default=20, ge=1)

    # Filtering
    cutoff_hours: float = Field(default=24.0, gt=0)
    ai_only: bool = Field(default=False, description="Apply the AI relevance gate")

    # Clamping
    title_max_words: int = Field(default=12, ge=1)
    summary_min_chars: int = Field(default=300, ge=0)
    summary_max_chars: int = Field(default=1100, ge=1)

    # Fetching
    fetch_timeout_seconds: float = Field(default=30.0, gt=0)
    user_agent: str = Field(default="torchcast/0.1 (RSS reader)")

    # Published channel
    channel_title: str = Field(default="AI News - AI Condensed")
    channel_description: str = Field(
        default="Daily summarized headlines from various sources."
    )

    # Used to seed storage when the source lists are missing
    seed_feeds: list[str] = Field(
        default_factory=lambda: [
            "https://feeds.bbci.co.uk/news/technology/rss.xml",
            "https://www.wired.com/feed/category/ai/latest/rss",
        ]
    )
    seed_sites: list[str] = Field(
        default_factory=lambda: ["https://www.bbc.co.uk/news/technology"]
    )


class ShortenerSettings(BaseSettings):
    """Short.io link shortening. Disabled unless both values are set."""

    model_config = SettingsConfigDict(env_prefix="SHORTIO_")

    api_key: SecretStr | None = Field(default=None)
    domain: str | None = Field(default=None)
    timeout_seconds: float = Field(default=10.0, gt=0)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.domain)


class StorageSettings(BaseSettings):
    """Blob storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: Literal["s3", "sqlite"] = Field(default="sqlite")

    # S3-compatible endpoint (Cloudflare R2 in production)
    endpoint_url: str | None = Field(default=None)
    region: str = Field(default="auto")
    access_key_id: SecretStr | None = Field(default=None)
    secret_access_key: SecretStr | None = Field(default=None)

    # Local backend
    db_path: Path = Field(default=Path("data/torchcast.db"))

    # Buckets
    bucket_transcripts: str = Field(default="transcripts")
    bucket_chunks: str = Field(default="raw-text")
    bucket_meta: str = Field(default="meta")
    bucket_rss_feeds: str = Field(default="rss-feeds")
    bucket_podcast_rss: str = Field(default="podcast-rss")

    # Public URLs
    public_base_url_rss: str = Field(default="")
    public_base_url_podcast: str = Field(default="")


class Sponsor(BaseModel):
    """A book or product mentioned in the episode outro."""

    title: str
    url: str = Field(default="https://jonathan-harris.online")


DEFAULT_SPONSOR = Sponsor(title="Digital Diagnosis: How AI Is Revolutionizing Healthcare")


class EpisodeSettings(BaseSettings):
    """Episode generation configuration."""

    model_config = SettingsConfigDict(env_prefix="PODCAST_")

    show_name: str = Field(default="Turing's Torch: AI Weekly")
    host_name: str = Field(default="Jonathan Harris")
    site_link: str = Field(default="https://jonathan-harris.online")
    language: str = Field(default="en-gb")

    # Outro
    sponsors: list[Sponsor] = Field(default_factory=lambda: [DEFAULT_SPONSOR], description="JSON list of {title, url}")

    # Recent stories from the condensed feed
    article_limit: int = Field(default=5, ge=0, le=20, description="Recent stories fed into the script")
    article_hours: float = Field(default=24.0, gt=0)

    chunk_max_chars: int = Field(default=2800, ge=200)
    cleanup_delay_seconds: float = Field(default=240.0, ge=0)

    # Episode numbering
    sequential_numbers: bool = Field(default=False, description="Derive numbers from session date")
    numbering_epoch: date = Field(default=date(2025, 1, 1))

    # Podcast RSS
    feed_key: str = Field(default="turing-torch.xml")

    # Scheduling
    generation_hour: int = Field(default=6, ge=0, le=23, description="Hour to generate the episode")
    feed_interval_minutes: int = Field(default=60, ge=5, le=1440)
    timezone: str = Field(default="UTC")


class Settings(BaseSettings):
    """Main configuration aggregating all settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Sub-configurations
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    router: RouterSettings = Field(default_factory=RouterSettings)
    feed: FeedSettings = Field(default_factory=FeedSettings)
    shortener: ShortenerSettings = Field(default_factory=ShortenerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    episode: EpisodeSettings = Field(default_factory=EpisodeSettings)

    # Application settings
    debug: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


def load_settings() -> Settings:
    """Build settings from the environment and the .env file."""
    from dotenv import load_dotenv

    load_dotenv()
    return Settings()
