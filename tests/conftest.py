"""Shared fakes for the test suite."""

from datetime import datetime, timezone
from typing import Callable, Union

import pytest

from torchcast.config.settings import FeedSettings, StorageSettings
from torchcast.errors import BlobNotFound, FeedFetchFailure, ProviderCallFailed
from torchcast.feeds.models import FetchedDocument
from torchcast.routing import CallParams, Message, ProviderCandidate, RequestRouter, RouteConfig, TaskRoute
from torchcast.routing.config import DEFAULT_TASK_ROUTES

Reply = Union[str, Exception, Callable[[list[Message]], str]]


class MemoryBlobStore:
    """BlobStore held in a dict, with optional write failures per bucket."""

    def __init__(self, fail_puts: tuple[str, ...] = ()):
        self.blobs: dict[tuple[str, str], str] = {}
        self.content_types: dict[tuple[str, str], str] = {}
        self.fail_puts = set(fail_puts)

    async def get_text(self, bucket: str, key: str) -> str:
        try:
            return self.blobs[(bucket, key)]
        except KeyError:
            raise BlobNotFound(bucket, key) from None

    async def put_text(self, bucket, key, text, content_type="text/plain; charset=utf-8"):
        if bucket in self.fail_puts:
            raise OSError(f"write refused for {bucket}")
        self.blobs[(bucket, key)] = text
        self.content_types[(bucket, key)] = content_type

    async def list_keys(self, bucket: str, prefix: str = "") -> list[str]:
        return sorted(k for b, k in self.blobs if b == bucket and k.startswith(prefix))

    async def delete_key(self, bucket: str, key: str) -> None:
        self.blobs.pop((bucket, key), None)

    async def close(self) -> None:
        pass

    def keys(self, bucket: str) -> list[str]:
        return sorted(k for b, k in self.blobs if b == bucket)


class ScriptedClient:
    """ProviderClient whose replies are scripted per model id.

    A reply may be a string, an exception to raise, or a callable taking the
    messages. A list of replies is consumed in order, repeating the last one.
    """

    def __init__(self, replies: dict[str, Union[Reply, list[Reply]]]):
        self.replies = {model: r if isinstance(r, list) else [r] for model, r in replies.items()}
        self.calls: list[tuple[str, list[Message], CallParams]] = []

    async def call(self, model: str, credential: str, messages: list[Message], params: CallParams) -> str:
        self.calls.append((model, messages, params))
        queue = self.replies.get(model)
        if not queue:
            raise ProviderCallFailed(model, "no scripted reply", kind="transport")
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(messages)
        return reply

    def models_called(self) -> list[str]:
        return [model for model, _, _ in self.calls]


class ScriptedFetcher:
    """FeedFetcher serving fixed bodies; unknown URLs fail like a 404."""

    def __init__(self, bodies: dict[str, str]):
        self.bodies = bodies
        self.fetched: list[str] = []

    async def fetch(self, url: str) -> FetchedDocument:
        self.fetched.append(url)
        if url not in self.bodies:
            raise FeedFetchFailure(url, "HTTP 404", status_code=404)
        return FetchedDocument(url=url, status=200, body=self.bodies[url])


def single_model_routes(tasks=None) -> RouteConfig:
    """Every task routed to one configured model named after the task."""
    tasks = tasks or list(DEFAULT_TASK_ROUTES)
    return RouteConfig(
        routes={
            task: TaskRoute(
                task=task,
                candidates=(ProviderCandidate(alias="test", model=task, credential="key"),),
            )
            for task in tasks
        }
    )


def rss_document(items: list[dict]) -> str:
    """Minimal RSS 2.0 document from dicts with title/link/description/pubDate."""
    body = "".join(
        "<item>"
        f"<title>{i['title']}</title>"
        f"<link>{i['link']}</link>"
        f"<description>{i.get('description', '')}</description>"
        f"<pubDate>{i['pubDate']}</pubDate>"
        "</item>"
        for i in items
    )
    return f'<?xml version="1.0"?><rss version="2.0"><channel><title>T</title>{body}</channel></rss>'


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def storage_settings() -> StorageSettings:
    return StorageSettings(public_base_url_rss="https://rss.example.com", public_base_url_podcast="https://pod.example.com")


@pytest.fixture
def feed_settings() -> FeedSettings:
    return FeedSettings(seed_feeds=[], seed_sites=[])


@pytest.fixture
def make_router():
    def _make(replies: dict, tasks=None) -> tuple[RequestRouter, ScriptedClient]:
        client = ScriptedClient(replies)
        return RequestRouter(single_model_routes(tasks), client), client

    return _make
