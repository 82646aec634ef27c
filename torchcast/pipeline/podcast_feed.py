"""Podcast episode feed built from the stored metadata records."""

import structlog

from ..config.settings import EpisodeSettings
from ..feeds.models import FeedRunResult
from ..feeds.publisher import render_podcast_feed
from ..storage.repository import EpisodeRepository

logger = structlog.get_logger()

SHOW_DESCRIPTION = "Artificial intelligence news, explained without the hype."


class PodcastFeedBuilder:
    """Lists every episode's metadata and publishes the podcast RSS document."""

    def __init__(self, repository: EpisodeRepository, settings: EpisodeSettings):
        self.repository = repository
        self.settings = settings

    async def build(self) -> FeedRunResult:
        episodes = await self.repository.list_metadata()
        if not episodes:
            logger.warning("No episode metadata found, podcast feed not generated")
            return FeedRunResult.empty()

        settings = self.settings
        xml = render_podcast_feed(
            episodes,
            show_name=settings.show_name,
            link=settings.site_link,
            description=SHOW_DESCRIPTION,
            host_name=settings.host_name,
            language=settings.language,
        )
        url = await self.repository.save_podcast_feed(settings.feed_key, xml)
        logger.info(f"Podcast feed published with {len(episodes)} episodes", key=settings.feed_key)
        return FeedRunResult(key=settings.feed_key, public_url=url, count=len(episodes))
