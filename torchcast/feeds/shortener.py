"""Best-effort link shortening through Short.io."""

from typing import Optional, Protocol

import httpx
import structlog

logger = structlog.get_logger()

SHORTIO_API_URL = "https://api.short.io/links"


class LinkShortener(Protocol):
    """shorten(url) -> url. Must never raise; returns the input on failure."""

    async def shorten(self, url: str) -> str:
        ...

    async def close(self) -> None:
        ...


class NoopShortener:
    """Used when no shortener is configured."""

    async def shorten(self, url: str) -> str:
        return url

    async def close(self) -> None:
        pass


class ShortIoShortener:
    """Short.io client. Any failure keeps the original link."""

    def __init__(
        self,
        api_key: str,
        domain: str,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.domain = domain
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self.headers = {"authorization": api_key, "content-type": "application/json"}

    async def shorten(self, url: str) -> str:
        if not url:
            return url
        try:
            response = await self.client.post(
                SHORTIO_API_URL,
                json={"domain": self.domain, "originalURL": url},
                headers=self.headers,
            )
            response.raise_for_status()
            short = response.json().get("shortURL")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("link.shorten.failed", url=url, error=str(e))
            return url

        if not isinstance(short, str) or not short.startswith("http"):
            logger.warning("link.shorten.malformed", url=url)
            return url
        return short

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()
