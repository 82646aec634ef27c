"""Pipeline module for episode generation, feed rewriting and scheduling."""

from .articles import ArticleSource, FeedArticleSource
from .feed_pipeline import FeedRewritePipeline, is_recent
from .orchestrator import EpisodeOrchestrator
from .podcast_feed import PodcastFeedBuilder
from .scheduler import CleanupScheduler, PipelineScheduler, run_scheduler_forever
from .session import SessionArtifacts, SessionCache, new_session_id

__all__ = [
    "ArticleSource",
    "CleanupScheduler",
    "EpisodeOrchestrator",
    "FeedArticleSource",
    "FeedRewritePipeline",
    "PipelineScheduler",
    "PodcastFeedBuilder",
    "SessionArtifacts",
    "SessionCache",
    "is_recent",
    "new_session_id",
    "run_scheduler_forever",
]
