"""Tests for the SQLite blob store and the repositories on top of it."""

import json

import pytest
import pytest_asyncio

from torchcast.errors import BlobNotFound
from torchcast.feeds.models import RotationState
from torchcast.processors.models import EpisodeMetadata
from torchcast.storage import EpisodeRepository, FeedStateRepository, init_blob_database, public_url


@pytest_asyncio.fixture
async def sqlite_store():
    store = await init_blob_database(":memory:")
    yield store
    await store.close()


def metadata(session_id: str, number: int = 1) -> EpisodeMetadata:
    return EpisodeMetadata(
        session_id=session_id,
        date=session_id[3:],
        title=f"Episode {number}",
        description="About AI.",
        keywords=["ai"],
        artwork_prompt="A calm abstract scene",
        episode_number=number,
    )


class TestSQLiteBlobStore:
    @pytest.mark.asyncio
    async def test_put_get_overwrite(self, sqlite_store):
        await sqlite_store.put_text("b", "k", "one")
        await sqlite_store.put_text("b", "k", "two")

        assert await sqlite_store.get_text("b", "k") == "two"

    @pytest.mark.asyncio
    async def test_missing_key_raises(self, sqlite_store):
        with pytest.raises(BlobNotFound):
            await sqlite_store.get_text("b", "missing")

    @pytest.mark.asyncio
    async def test_buckets_are_separate(self, sqlite_store):
        await sqlite_store.put_text("a", "k", "in a")

        with pytest.raises(BlobNotFound):
            await sqlite_store.get_text("b", "k")

    @pytest.mark.asyncio
    async def test_list_by_prefix_is_literal(self, sqlite_store):
        for key in ("s1/chunk-001", "s1/chunk-002", "s2/chunk-001", "s%/x"):
            await sqlite_store.put_text("chunks", key, "text")

        assert await sqlite_store.list_keys("chunks", "s1/") == ["s1/chunk-001", "s1/chunk-002"]
        assert await sqlite_store.list_keys("chunks", "s%") == ["s%/x"]
        assert len(await sqlite_store.list_keys("chunks")) == 4

    @pytest.mark.asyncio
    async def test_delete(self, sqlite_store):
        await sqlite_store.put_text("b", "k", "v")
        await sqlite_store.delete_key("b", "k")
        await sqlite_store.delete_key("b", "k")

        assert await sqlite_store.list_keys("b") == []


class TestEpisodeRepository:
    @pytest.mark.asyncio
    async def test_chunk_and_transcript_layout(self, sqlite_store, storage_settings):
        repo = EpisodeRepository(sqlite_store, storage_settings)

        keys = await repo.save_chunks("TT-2025-06-01", ["a", "b"])
        transcript = await repo.save_transcript("TT-2025-06-01", "a\n\nb")

        assert keys == ["TT-2025-06-01/chunk-001", "TT-2025-06-01/chunk-002"]
        assert transcript == "TT-2025-06-01.txt"
        assert await sqlite_store.get_text("raw-text", keys[1]) == "b"

    @pytest.mark.asyncio
    async def test_metadata_round_trip_uses_camel_case(self, sqlite_store, storage_settings):
        repo = EpisodeRepository(sqlite_store, storage_settings)
        await repo.save_metadata(metadata("TT-2025-06-01", 3))

        raw = json.loads(await sqlite_store.get_text("meta", "TT-2025-06-01.json"))
        assert raw["sessionId"] == "TT-2025-06-01"
        assert raw["episodeNumber"] == 3
        assert (await repo.get_metadata("TT-2025-06-01")).episode_number == 3
        assert await repo.get_metadata("TT-1999-01-01") is None

    @pytest.mark.asyncio
    async def test_list_metadata_skips_unreadable(self, sqlite_store, storage_settings):
        repo = EpisodeRepository(sqlite_store, storage_settings)
        await repo.save_metadata(metadata("TT-2025-06-01"))
        await sqlite_store.put_text("meta", "broken.json", "{")
        await sqlite_store.put_text("meta", "notes.txt", "ignored")

        episodes = await repo.list_metadata()

        assert [e.session_id for e in episodes] == ["TT-2025-06-01"]

    @pytest.mark.asyncio
    async def test_podcast_feed_public_url(self, sqlite_store, storage_settings):
        repo = EpisodeRepository(sqlite_store, storage_settings)
        url = await repo.save_podcast_feed("show.xml", "<rss/>")

        assert url == "https://pod.example.com/show.xml"


class TestFeedStateRepository:
    @pytest.mark.asyncio
    async def test_missing_rotation_starts_at_zero(self, store, storage_settings):
        state = await FeedStateRepository(store, storage_settings).load_rotation()
        assert (state.feed_cursor, state.site_cursor) == (0, 0)

    @pytest.mark.asyncio
    async def test_corrupt_rotation_starts_at_zero(self, store, storage_settings):
        store.blobs[("rss-feeds", "data/feed-rotation.json")] = '{"feedCursor": -4}'
        state = await FeedStateRepository(store, storage_settings).load_rotation()
        assert state.feed_cursor == 0

    @pytest.mark.asyncio
    async def test_rotation_saved_with_aliases(self, store, storage_settings):
        repo = FeedStateRepository(store, storage_settings)
        await repo.save_rotation(RotationState(feed_cursor=2, site_cursor=1))

        raw = json.loads(store.blobs[("rss-feeds", "data/feed-rotation.json")])
        assert raw["feedCursor"] == 2 and raw["siteCursor"] == 1
        assert raw["updatedAt"]
        assert (await repo.load_rotation()).feed_cursor == 2

    @pytest.mark.asyncio
    async def test_sources_seeded_once(self, store, storage_settings):
        repo = FeedStateRepository(store, storage_settings)

        first = await repo.load_sources(["https://a.example/rss"], ["https://s.example"])
        second = await repo.load_sources(["https://other.example/rss"], [])

        assert first.feeds == second.feeds == ["https://a.example/rss"]
        assert second.sites == ["https://s.example"]

    @pytest.mark.asyncio
    async def test_stored_list_ignores_blank_lines(self, store, storage_settings):
        store.blobs[("rss-feeds", "data/rss-feeds.txt")] = "https://a.example\n\n  https://b.example  \n"
        sources = await FeedStateRepository(store, storage_settings).load_sources([], [])
        assert sources.feeds == ["https://a.example", "https://b.example"]

    @pytest.mark.asyncio
    async def test_published_feed_read_back(self, store, storage_settings):
        repo = FeedStateRepository(store, storage_settings)
        assert await repo.load_feed() is None

        await repo.save_feed("<rss/>", 0)

        assert await repo.load_feed() == "<rss/>"


def test_public_url_joins_and_falls_back_to_key():
    assert public_url("https://cdn.example/", "/feed.xml") == "https://cdn.example/feed.xml"
    assert public_url("", "feed.xml") == "feed.xml"
