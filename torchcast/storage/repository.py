"""
Repository pattern over the blob store.

Each repository owns one key layout so the pipelines never build keys
themselves.
"""

import json
from datetime import datetime, timezone
from typing import Optional

import structlog
from pydantic import ValidationError

from ..config.settings import StorageSettings
from ..errors import BlobNotFound
from ..feeds.models import FeedSources, RotationState
from ..processors.models import EpisodeMetadata
from .base import BlobStore, public_url

logger = structlog.get_logger()

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
RSS_CONTENT_TYPE = "application/rss+xml; charset=utf-8"


class EpisodeRepository:
    """Chunks, transcripts and metadata for generated episodes."""

    def __init__(self, store: BlobStore, settings: StorageSettings):
        self.store = store
        self.settings = settings

    @staticmethod
    def chunk_key(session_id: str, index: int) -> str:
        return f"{session_id}/chunk-{index:03d}"

    @staticmethod
    def transcript_key(session_id: str) -> str:
        return f"{session_id}.txt"

    @staticmethod
    def metadata_key(session_id: str) -> str:
        return f"{session_id}.json"

    async def save_chunks(self, session_id: str, chunks: list[str]) -> list[str]:
        """Write chunks in order; returns their keys."""
        keys = []
        for index, chunk in enumerate(chunks, start=1):
            key = self.chunk_key(session_id, index)
            await self.store.put_text(self.settings.bucket_chunks, key, chunk, TEXT_CONTENT_TYPE)
            keys.append(key)
        logger.info(f"Saved {len(keys)} chunks", session_id=session_id)
        return keys

    async def save_transcript(self, session_id: str, text: str) -> str:
        key = self.transcript_key(session_id)
        await self.store.put_text(self.settings.bucket_transcripts, key, text, TEXT_CONTENT_TYPE)
        logger.info("Saved transcript", session_id=session_id, key=key, chars=len(text))
        return key

    async def save_metadata(self, metadata: EpisodeMetadata) -> str:
        key = self.metadata_key(metadata.session_id)
        await self.store.put_text(self.settings.bucket_meta, key, metadata.to_json(), JSON_CONTENT_TYPE)
        return key

    async def get_metadata(self, session_id: str) -> Optional[EpisodeMetadata]:
        try:
            text = await self.store.get_text(self.settings.bucket_meta, self.metadata_key(session_id))
        except BlobNotFound:
            return None
        return EpisodeMetadata.model_validate_json(text)

    async def list_metadata(self) -> list[EpisodeMetadata]:
        """Every parseable metadata record in the meta bucket."""
        episodes = []
        for key in await self.store.list_keys(self.settings.bucket_meta):
            if not key.endswith(".json"):
                continue
            try:
                text = await self.store.get_text(self.settings.bucket_meta, key)
                episodes.append(EpisodeMetadata.model_validate_json(text))
            except (BlobNotFound, ValidationError, ValueError) as e:
                logger.warning("Skipping unreadable metadata", key=key, error=str(e))
        return episodes

    async def save_podcast_feed(self, key: str, xml: str) -> str:
        await self.store.put_text(self.settings.bucket_podcast_rss, key, xml, RSS_CONTENT_TYPE)
        return public_url(self.settings.public_base_url_podcast, key)


class FeedStateRepository:
    """Rotation state, source lists and the published condensed feed."""

    ROTATION_KEY = "data/feed-rotation.json"
    FEEDS_KEY = "data/rss-feeds.txt"
    SITES_KEY = "data/url-feeds.txt"
    FEED_XML_KEY = "feed.xml"
    FEED_JSON_KEY = "feed.json"

    def __init__(self, store: BlobStore, settings: StorageSettings):
        self.store = store
        self.settings = settings

    @property
    def bucket(self) -> str:
        return self.settings.bucket_rss_feeds

    async def load_rotation(self) -> RotationState:
        """Stored state, or zeroed cursors when missing or corrupt."""
        try:
            text = await self.store.get_text(self.bucket, self.ROTATION_KEY)
        except BlobNotFound:
            logger.info("Rotation state not found, starting at 0")
            return RotationState()

        try:
            return RotationState.model_validate_json(text)
        except (ValidationError, ValueError) as e:
            logger.warning("Rotation state unreadable, starting at 0", error=str(e))
            return RotationState()

    async def save_rotation(self, state: RotationState) -> None:
        state = state.model_copy(update={"updated_at": datetime.now(timezone.utc)})
        await self.store.put_text(
            self.bucket,
            self.ROTATION_KEY,
            state.model_dump_json(by_alias=True),
            JSON_CONTENT_TYPE,
        )
        logger.info(
            "Saved rotation state",
            feed_cursor=state.feed_cursor,
            site_cursor=state.site_cursor,
        )

    async def _load_list(self, key: str, seed: list[str]) -> list[str]:
        try:
            text = await self.store.get_text(self.bucket, key)
        except BlobNotFound:
            text = "\n".join(seed)
            await self.store.put_text(self.bucket, key, text, TEXT_CONTENT_TYPE)
            logger.info(f"Seeded {key} with {len(seed)} entries")
        return [line.strip() for line in text.splitlines() if line.strip()]

    async def load_sources(self, seed_feeds: list[str], seed_sites: list[str]) -> FeedSources:
        """Source lists from storage, seeding them on first use."""
        feeds = await self._load_list(self.FEEDS_KEY, seed_feeds)
        sites = await self._load_list(self.SITES_KEY, seed_sites)
        logger.info(f"Loaded {len(feeds)} feeds and {len(sites)} sites")
        return FeedSources(feeds=feeds, sites=sites)

    async def load_feed(self) -> Optional[str]:
        """The last published feed.xml, or None before the first publish."""
        try:
            return await self.store.get_text(self.bucket, self.FEED_XML_KEY)
        except BlobNotFound:
            return None

    async def save_feed(self, xml: str, item_count: int) -> tuple[str, str]:
        """Write feed.xml plus its JSON sidecar; returns (key, public url)."""
        base = self.settings.public_base_url_rss
        await self.store.put_text(self.bucket, self.FEED_XML_KEY, xml, RSS_CONTENT_TYPE)

        sidecar = {
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "publicBase": base,
            "items": item_count,
        }
        await self.store.put_text(
            self.bucket, self.FEED_JSON_KEY, json.dumps(sidecar, indent=2), JSON_CONTENT_TYPE
        )
        return self.FEED_XML_KEY, public_url(base, self.FEED_XML_KEY)
