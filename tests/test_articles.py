"""Tests for recent-article briefs read from the condensed feed."""

from datetime import timedelta

import pytest

from torchcast.feeds.models import RewrittenItem
from torchcast.feeds.publisher import render_news_feed
from torchcast.pipeline.articles import FeedArticleSource, article_line
from torchcast.storage.repository import FeedStateRepository

BUCKET = "rss-feeds"


async def publish(state: FeedStateRepository, now, ages_in_hours: list[int]) -> None:
    items = [
        RewrittenItem(
            title=f"Story {age}",
            description=f"<p>Summary of story {age}.</p>",
            link=f"https://a.example/{age}",
            pub_date=now - timedelta(hours=age),
        )
        for age in ages_in_hours
    ]
    xml = render_news_feed(items, "Feed", "https://rss.example.com/feed.xml", "D", now)
    await state.save_feed(xml, len(items))


class TestFeedArticleSource:
    @pytest.mark.asyncio
    async def test_newest_recent_items_first_and_capped(self, store, storage_settings, now):
        state = FeedStateRepository(store, storage_settings)
        await publish(state, now, [5, 1, 30, 3, 2, 4, 6])
        source = FeedArticleSource(state, limit=5, cutoff_hours=24, clock=lambda: now)

        lines = await source.recent()

        assert lines == [f"Story {age}: Summary of story {age}." for age in (1, 2, 3, 4, 5)]

    @pytest.mark.asyncio
    async def test_nothing_published_yet(self, store, storage_settings, now):
        source = FeedArticleSource(FeedStateRepository(store, storage_settings), clock=lambda: now)

        assert await source.recent() == []

    @pytest.mark.asyncio
    async def test_unreadable_feed_gives_no_articles(self, store, storage_settings, now):
        store.blobs[(BUCKET, "feed.xml")] = "<rss><channel>"
        source = FeedArticleSource(FeedStateRepository(store, storage_settings), clock=lambda: now)

        assert await source.recent() == []

    @pytest.mark.asyncio
    async def test_zero_limit_skips_the_store(self, store, storage_settings):
        store.blobs[(BUCKET, "feed.xml")] = "not read"
        source = FeedArticleSource(FeedStateRepository(store, storage_settings), limit=0)

        assert await source.recent() == []


def test_article_line_trims_long_summaries():
    line = article_line("Title", "<b>First sentence.</b> " + "More words here. " * 40, max_chars=120)

    assert line.startswith("Title: First sentence.")
    assert len(line) <= len("Title: ") + 120


def test_article_line_without_summary_is_title():
    assert article_line("Title", "") == "Title"
