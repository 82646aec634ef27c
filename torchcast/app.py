"""
Application wiring.

Builds the route table, provider client, storage and both pipelines from
one Settings object. Used by the CLI and the scheduler.
"""

from typing import Optional

import structlog

from .config.settings import Settings
from .feeds.fetcher import HttpFeedFetcher
from .feeds.shortener import LinkShortener, NoopShortener, ShortIoShortener
from .pipeline.articles import FeedArticleSource
from .pipeline.feed_pipeline import FeedRewritePipeline
from .pipeline.orchestrator import EpisodeOrchestrator
from .pipeline.podcast_feed import PodcastFeedBuilder
from .pipeline.scheduler import CleanupScheduler, PipelineScheduler
from .pipeline.session import SessionCache
from .processors.metadata import MetadataSynthesizer
from .processors.script_stages import RoutedScriptWriter
from .routing import OpenRouterClient, RequestRouter, build_route_config
from .storage import BlobStore, EpisodeRepository, FeedStateRepository, open_blob_store

logger = structlog.get_logger()


class Application:
    """
    Owns every long-lived resource.

    Usage:
        async with Application(load_settings()) as app:
            result = await app.feed_pipeline.run()
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.store: Optional[BlobStore] = None
        self.client = OpenRouterClient(
            base_url=settings.providers.base_url,
            app_url=settings.providers.app_url,
            app_title=settings.providers.app_title,
        )
        self.router = RequestRouter(build_route_config(settings), self.client)
        self.fetcher = HttpFeedFetcher(
            timeout_seconds=settings.feed.fetch_timeout_seconds,
            user_agent=settings.feed.user_agent,
        )
        self.shortener = self._build_shortener()
        self.cache = SessionCache()
        self.cleanup = CleanupScheduler(self.cache)

    def _build_shortener(self) -> LinkShortener:
        shortener = self.settings.shortener
        if not shortener.enabled:
            return NoopShortener()
        return ShortIoShortener(
            api_key=shortener.api_key.get_secret_value(),
            domain=shortener.domain,
            timeout_seconds=shortener.timeout_seconds,
        )

    async def open(self) -> None:
        self.store = await open_blob_store(self.settings.storage)
        storage = self.settings.storage
        episode = self.settings.episode

        self.episodes = EpisodeRepository(self.store, storage)
        self.feed_state = FeedStateRepository(self.store, storage)

        self.feed_pipeline = FeedRewritePipeline(
            self.router, self.feed_state, self.fetcher, self.settings.feed, self.shortener
        )
        self.orchestrator = EpisodeOrchestrator(
            RoutedScriptWriter(self.router, episode.host_name, episode.show_name, episode.sponsors),
            MetadataSynthesizer(self.router, episode.sequential_numbers, episode.numbering_epoch),
            self.episodes,
            self.cache,
            self.cleanup,
            chunk_max_chars=episode.chunk_max_chars,
            cleanup_delay_seconds=episode.cleanup_delay_seconds,
            articles=FeedArticleSource(self.feed_state, episode.article_limit, episode.article_hours),
        )
        self.podcast_feed = PodcastFeedBuilder(self.episodes, episode)
        logger.info("Application ready", storage_backend=storage.backend, tasks=len(self.router.config.tasks))

    def scheduler(self) -> PipelineScheduler:
        episode = self.settings.episode
        return PipelineScheduler(
            self.feed_pipeline.run,
            self.orchestrator.run,
            self.podcast_feed.build,
            feed_interval_minutes=episode.feed_interval_minutes,
            generation_hour=episode.generation_hour,
            timezone=episode.timezone,
        )

    async def close(self) -> None:
        self.cleanup.shutdown()
        await self.fetcher.close()
        await self.shortener.close()
        await self.client.close()
        if self.store:
            await self.store.close()

    async def __aenter__(self) -> "Application":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
