"""
Recent stories for episode scripts.

Reads the condensed feed the rewrite pipeline last published and turns its
freshest items into one-line briefs for the outline and section prompts.
"""

from datetime import datetime
from typing import Callable, Protocol

import structlog

from ..errors import FeedParseFailure
from ..feeds.models import utcnow
from ..feeds.normalizer import normalize_feed
from ..processors.text import clamp_summary, strip_html
from ..storage.repository import FeedStateRepository
from .feed_pipeline import is_recent

logger = structlog.get_logger()


class ArticleSource(Protocol):
    async def recent(self) -> list[str]:
        ...


def article_line(title: str, content: str, max_chars: int = 280) -> str:
    summary = clamp_summary(strip_html(content), 0, max_chars)
    return f"{title}: {summary}" if summary else title


class FeedArticleSource:
    """
    Newest items of the published condensed feed.

    Usage:
        source = FeedArticleSource(FeedStateRepository(store, settings.storage))
        lines = await source.recent()
    """

    def __init__(
        self,
        state: FeedStateRepository,
        limit: int = 5,
        cutoff_hours: float = 24.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.state = state
        self.limit = limit
        self.cutoff_hours = cutoff_hours
        self.clock = clock

    async def recent(self) -> list[str]:
        """Up to ``limit`` briefs, newest first; [] when nothing is published yet."""
        if self.limit <= 0:
            return []

        xml = await self.state.load_feed()
        if not xml:
            logger.info("No condensed feed published yet, scripting without articles")
            return []

        try:
            items = normalize_feed(xml, self.state.FEED_XML_KEY)
        except FeedParseFailure as e:
            logger.warning("Condensed feed unreadable, scripting without articles", error=e.reason)
            return []

        now = self.clock()
        fresh = [item for item in items if item.title and is_recent(item, now, self.cutoff_hours)]
        fresh.sort(key=lambda item: item.published_at or now, reverse=True)

        lines = [article_line(item.title, item.content) for item in fresh[: self.limit]]
        logger.info(f"Loaded {len(lines)} recent articles", available=len(items))
        return lines
