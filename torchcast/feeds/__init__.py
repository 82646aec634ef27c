"""Feed fetching, normalisation, rotation and publishing."""

from .fetcher import FeedFetcher, HttpFeedFetcher
from .models import (
    FeedItem,
    FeedRunResult,
    FeedSources,
    FetchedDocument,
    RewrittenItem,
    RotationSelection,
    RotationState,
)
from .normalizer import FeedVariant, normalize_feed
from .rotation import select_rotation
from .shortener import LinkShortener, NoopShortener, ShortIoShortener

__all__ = [
    "FeedFetcher",
    "FeedItem",
    "FeedRunResult",
    "FeedSources",
    "FeedVariant",
    "FetchedDocument",
    "HttpFeedFetcher",
    "LinkShortener",
    "NoopShortener",
    "RewrittenItem",
    "RotationSelection",
    "RotationState",
    "ShortIoShortener",
    "normalize_feed",
    "select_rotation",
]
