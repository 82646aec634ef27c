"""
Feed rotation and rewrite pipeline.

Each run picks the next slice of feed sources, fetches and normalises them,
keeps recent items, rewrites them through the router and publishes one
condensed RSS 2.0 document.

Rotation state is read, advanced and written once per run. Runs inside one
process are serialised by a lock; separate processes are assumed not to run
the feed job concurrently, and a changed state at write time is logged.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable

import structlog

from ..config.settings import FeedSettings
from ..errors import FeedFetchFailure, FeedParseFailure, Recovered, TorchcastError
from ..feeds.fetcher import FeedFetcher
from ..feeds.models import FeedItem, FeedRunResult, RewrittenItem, RotationState, utcnow
from ..feeds.normalizer import normalize_feed
from ..feeds.prompts import build_rewrite_request
from ..feeds.publisher import render_news_feed
from ..feeds.relevance import is_ai_relevant
from ..feeds.rotation import select_rotation
from ..feeds.shortener import LinkShortener, NoopShortener
from ..processors.text import clamp_summary, clamp_title, extract_json_object, strip_html
from ..routing import RequestRouter
from ..storage.base import public_url
from ..storage.repository import FeedStateRepository

logger = structlog.get_logger()


def is_recent(item: FeedItem, now: datetime, cutoff_hours: float) -> bool:
    """Kept iff now - published <= cutoff. A missing date counts as now."""
    published = item.published_at or now
    return now - published <= timedelta(hours=cutoff_hours)


class FeedRewritePipeline:
    """
    Rotating feed rewrite and publish.

    Usage:
        pipeline = FeedRewritePipeline(router, state_repo, HttpFeedFetcher(), settings.feed)
        result = await pipeline.run()
    """

    def __init__(
        self,
        router: RequestRouter,
        state: FeedStateRepository,
        fetcher: FeedFetcher,
        settings: FeedSettings,
        shortener: LinkShortener | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.router = router
        self.state = state
        self.fetcher = fetcher
        self.settings = settings
        self.shortener = shortener or NoopShortener()
        self.clock = clock
        self._lock = asyncio.Lock()

    async def run(self) -> FeedRunResult:
        """One full run. Never raises for a single bad source."""
        async with self._lock:
            return await self._run()

    async def _run(self) -> FeedRunResult:
        settings = self.settings
        sources = await self.state.load_sources(settings.seed_feeds, settings.seed_sites)
        loaded_state = await self.state.load_rotation()
        selection = select_rotation(sources.feeds, sources.sites, loaded_state, settings.feeds_per_run)
        logger.info(
            f"Rotation selected {len(selection.feeds)} feeds",
            feed_cursor=loaded_state.feed_cursor,
            next_feed_cursor=selection.next_state.feed_cursor,
            site=selection.site,
        )

        items, failures = await self._collect(selection.feeds)
        await self._save_rotation(loaded_state, selection.next_state)

        if not selection.feeds:
            logger.info("No feed sources configured")
            return FeedRunResult.empty(site=selection.site)

        now = self.clock()
        recent = [item for item in items if is_recent(item, now, settings.cutoff_hours)]
        logger.info(f"{len(recent)} of {len(items)} items within {settings.cutoff_hours}h")

        if settings.ai_only:
            recent = [item for item in recent if is_ai_relevant(item.title, strip_html(item.content))]
            logger.info(f"{len(recent)} items passed the AI relevance gate")

        recent.sort(key=lambda item: item.published_at or now, reverse=True)
        recent = recent[: settings.max_items_per_run]

        if not recent:
            return FeedRunResult.empty(site=selection.site, failures=failures)

        rewritten = [await self._rewrite(item, now) for item in recent]
        if all(r.defaulted for r in rewritten):
            logger.warning("No item was rewritten, nothing published")
            return FeedRunResult.empty(site=selection.site, failures=failures)

        published = [r.value for r in rewritten if r.value.title and r.value.description]
        if not published:
            return FeedRunResult.empty(site=selection.site, failures=failures)

        feed_link = public_url(self.state.settings.public_base_url_rss, self.state.FEED_XML_KEY)
        xml = render_news_feed(
            published,
            title=settings.channel_title,
            link=feed_link,
            description=settings.channel_description,
            build_date=now,
        )
        key, url = await self.state.save_feed(xml, len(published))
        logger.info(f"Published {len(published)} items", key=key, public_url=url)

        return FeedRunResult(
            key=key,
            public_url=url,
            count=len(published),
            site=selection.site,
            failures=failures,
        )

    async def _collect(self, feeds: list[str]) -> tuple[list[FeedItem], dict[str, str]]:
        """Fetch and normalise each source; a failing source is recorded and skipped."""
        items: list[FeedItem] = []
        failures: dict[str, str] = {}
        for url in feeds:
            try:
                document = await self.fetcher.fetch(url)
                parsed = normalize_feed(document.body, url)
            except (FeedFetchFailure, FeedParseFailure) as e:
                logger.warning("feed.source.failed", url=url, error=str(e))
                failures[url] = str(e)
                continue
            items.extend(parsed)
        return items, failures

    async def _save_rotation(self, loaded: RotationState, next_state: RotationState) -> None:
        current = await self.state.load_rotation()
        if (current.feed_cursor, current.site_cursor) != (loaded.feed_cursor, loaded.site_cursor):
            logger.warning(
                "Rotation state changed during run, overwriting",
                loaded_feed_cursor=loaded.feed_cursor,
                current_feed_cursor=current.feed_cursor,
            )
        await self.state.save_rotation(next_state)

    async def _rewrite(self, item: FeedItem, now: datetime) -> Recovered[RewrittenItem]:
        """Rewritten item, or the stripped original when the rewrite fails."""
        settings = self.settings
        plain = strip_html(item.content)
        original_title = strip_html(item.title)

        title, summary, reason = original_title, plain, None
        try:
            reply = await self.router.generate("rssRewrite", build_rewrite_request(item, plain))
        except TorchcastError as e:
            reason = str(e)
            logger.warning("Rewrite failed, keeping original", link=item.link, error=reason)
        else:
            parsed = extract_json_object(reply)
            if parsed is not None:
                title = str(parsed.get("title") or "").strip() or original_title
                summary = str(parsed.get("summary") or "").strip() or plain
            else:
                summary = reply.strip()

        link = await self.shortener.shorten(item.link) if item.link else item.link

        value = RewrittenItem(
            title=clamp_title(title, settings.title_max_words),
            description=clamp_summary(summary, settings.summary_min_chars, settings.summary_max_chars),
            link=link,
            pub_date=item.published_at or now,
            rewritten=reason is None,
        )
        if reason is not None:
            return Recovered.fallback(value, reason)
        return Recovered.ok(value)
