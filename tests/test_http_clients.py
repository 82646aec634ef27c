"""Tests for the feed fetcher and link shortener against mocked transports."""

import json

import httpx
import pytest

from torchcast.errors import FeedFetchFailure
from torchcast.feeds.fetcher import HttpFeedFetcher
from torchcast.feeds.shortener import SHORTIO_API_URL, ShortIoShortener


def mock_client(handler, **kwargs) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), **kwargs)


class TestHttpFeedFetcher:
    @pytest.mark.asyncio
    async def test_returns_body_of_requested_url(self):
        def handler(request):
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "https://feeds.example/new"})
            return httpx.Response(200, text="<rss/>")

        fetcher = HttpFeedFetcher(client=mock_client(handler, follow_redirects=True))
        document = await fetcher.fetch("https://feeds.example/old")

        assert document.url == "https://feeds.example/old"
        assert document.status == 200
        assert document.body == "<rss/>"

    @pytest.mark.asyncio
    async def test_http_status_is_fetch_failure(self):
        fetcher = HttpFeedFetcher(client=mock_client(lambda request: httpx.Response(404)))

        with pytest.raises(FeedFetchFailure) as exc_info:
            await fetcher.fetch("https://feeds.example/missing")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_timeout_is_fetch_failure(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        fetcher = HttpFeedFetcher(client=mock_client(handler))

        with pytest.raises(FeedFetchFailure) as exc_info:
            await fetcher.fetch("https://feeds.example/slow")

        assert exc_info.value.status_code is None


class TestShortIoShortener:
    @pytest.mark.asyncio
    async def test_returns_short_url(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"shortURL": "https://sho.rt/abc"})

        shortener = ShortIoShortener("secret", "sho.rt", client=mock_client(handler))

        assert await shortener.shorten("https://example.com/long") == "https://sho.rt/abc"
        assert seen["url"] == SHORTIO_API_URL
        assert seen["auth"] == "secret"
        assert seen["body"] == {"domain": "sho.rt", "originalURL": "https://example.com/long"}

    @pytest.mark.asyncio
    async def test_failure_keeps_original(self):
        shortener = ShortIoShortener("secret", "sho.rt", client=mock_client(lambda r: httpx.Response(500)))
        assert await shortener.shorten("https://example.com/long") == "https://example.com/long"

    @pytest.mark.asyncio
    async def test_malformed_reply_keeps_original(self):
        shortener = ShortIoShortener("secret", "sho.rt", client=mock_client(lambda r: httpx.Response(200, json={})))
        assert await shortener.shorten("https://example.com/long") == "https://example.com/long"
