"""Feed download over HTTP."""

from typing import Optional, Protocol

import httpx
import structlog

from ..errors import FeedFetchFailure
from .models import FetchedDocument

logger = structlog.get_logger()

DEFAULT_USER_AGENT = "torchcast/0.1 (RSS reader)"


class FeedFetcher(Protocol):
    """fetch(url) -> document, raising FeedFetchFailure on any failure."""

    async def fetch(self, url: str) -> FetchedDocument:
        ...


class HttpFeedFetcher:
    """Fetches feed documents with a bounded timeout, following redirects."""

    def __init__(
        self,
        timeout_seconds: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=timeout_seconds,
            follow_redirects=True,
            headers={
                "User-Agent": user_agent,
                "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml, */*",
            },
        )

    async def fetch(self, url: str) -> FetchedDocument:
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise FeedFetchFailure(url, f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise FeedFetchFailure(
                url, f"HTTP {response.status_code}", status_code=response.status_code
            )

        logger.debug("feed.fetched", url=url, status=response.status_code, size=len(response.content))
        return FetchedDocument(url=url, status=response.status_code, body=response.text)

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "HttpFeedFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
