"""Blob storage contract shared by all backends."""

from typing import Protocol


class BlobStore(Protocol):
    """Key/value text storage grouped into buckets.

    Implementations must be safe to call concurrently from independent runs.
    ``get_text`` raises BlobNotFound for a missing key.
    """

    async def get_text(self, bucket: str, key: str) -> str:
        ...

    async def put_text(
        self,
        bucket: str,
        key: str,
        text: str,
        content_type: str = "text/plain; charset=utf-8",
    ) -> None:
        ...

    async def list_keys(self, bucket: str, prefix: str = "") -> list[str]:
        ...

    async def delete_key(self, bucket: str, key: str) -> None:
        ...

    async def close(self) -> None:
        ...


def public_url(base_url: str, key: str) -> str:
    """Public URL of a key, or the bare key when no public base is configured."""
    if not base_url:
        return key
    return f"{base_url.rstrip('/')}/{key.lstrip('/')}"
