"""
Schedulers for the automated runs and the deferred session cleanup.

Both use APScheduler's AsyncIOScheduler so jobs run on the application's
event loop.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

import structlog
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..feeds.models import FeedRunResult
from ..processors.models import EpisodeRequest, EpisodeResult
from .session import SessionCache, new_session_id

logger = structlog.get_logger()

CLEANUP_JOB_PREFIX = "session-cleanup:"


class CleanupScheduler:
    """
    Owns the delayed purge of Session Artifact Sets.

    One job per session id; scheduling again replaces the pending job.

    Usage:
        cleanup = CleanupScheduler(cache)
        cleanup.schedule("TT-2025-06-01", delay_seconds=240)
        ...
        cleanup.shutdown()
    """

    def __init__(self, cache: SessionCache, scheduler: Optional[AsyncIOScheduler] = None):
        self.cache = cache
        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler or AsyncIOScheduler(timezone="UTC")

    def _ensure_running(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()

    @staticmethod
    def job_id(session_id: str) -> str:
        return f"{CLEANUP_JOB_PREFIX}{session_id}"

    def schedule(self, session_id: str, delay_seconds: float) -> None:
        self._ensure_running()
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay_seconds)
        self.scheduler.add_job(
            self.cache.purge,
            DateTrigger(run_date=run_date),
            args=[session_id],
            id=self.job_id(session_id),
            name=f"Purge session {session_id}",
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.info(f"Cleanup scheduled in {delay_seconds:.0f}s", session_id=session_id)

    def cancel(self, session_id: str) -> bool:
        """Drop the pending purge for a session. Returns False if none was pending."""
        try:
            self.scheduler.remove_job(self.job_id(session_id))
        except JobLookupError:
            return False
        logger.info("Cleanup cancelled", session_id=session_id)
        return True

    def pending(self) -> list[str]:
        """Session ids with a purge still scheduled."""
        if not self.scheduler.running:
            return []
        return [
            job.id[len(CLEANUP_JOB_PREFIX):]
            for job in self.scheduler.get_jobs()
            if job.id.startswith(CLEANUP_JOB_PREFIX)
        ]

    def shutdown(self) -> None:
        """Cancel every pending purge, stopping the scheduler if this instance owns it."""
        for session_id in self.pending():
            self.cancel(session_id)
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)


class PipelineScheduler:
    """
    Scheduler for the feed rewrite and the daily episode.

    Usage:
        scheduler = PipelineScheduler(feed_pipeline.run, orchestrator.run, podcast_feed.build)
        await scheduler.start()

        # Or run manually
        await scheduler.run_feed()
        await scheduler.run_episode()
    """

    def __init__(
        self,
        run_feed: Callable[[], Awaitable[FeedRunResult]],
        run_episode: Callable[[EpisodeRequest], Awaitable[EpisodeResult]],
        build_podcast_feed: Callable[[], Awaitable[FeedRunResult]],
        feed_interval_minutes: int = 60,
        generation_hour: int = 6,
        generation_minute: int = 0,
        timezone: str = "UTC",
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self._run_feed = run_feed
        self._run_episode = run_episode
        self._build_podcast_feed = build_podcast_feed
        self.feed_interval = feed_interval_minutes
        self.generation_hour = generation_hour
        self.generation_minute = generation_minute
        self.timezone = timezone

        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone)

        self._on_error: Optional[Callable[[str, Exception], Awaitable[None]]] = None

    def on_error(self, callback: Callable[[str, Exception], Awaitable[None]]):
        """Set callback for errors."""
        self._on_error = callback

    async def start(self):
        """Start the scheduler with the feed and episode jobs."""
        # A single feed run at a time keeps rotation state consistent
        self.scheduler.add_job(
            self._run_feed_job,
            IntervalTrigger(minutes=self.feed_interval),
            id="feed_rewrite",
            name="Condensed Feed Rewrite",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        self.scheduler.add_job(
            self._run_episode_job,
            CronTrigger(
                hour=self.generation_hour,
                minute=self.generation_minute,
                timezone=self.timezone,
            ),
            id="episode_generation",
            name="Daily Episode Generation",
            replace_existing=True,
            max_instances=1,
        )

        self.scheduler.start()
        logger.info(
            f"Scheduler started: "
            f"Feed rewrite every {self.feed_interval} min, "
            f"Episode at {self.generation_hour:02d}:{self.generation_minute:02d} {self.timezone}"
        )

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")

    async def run_feed(self) -> Optional[FeedRunResult]:
        """Manually trigger a feed rewrite."""
        return await self._run_feed_job()

    async def run_episode(self, request: Optional[EpisodeRequest] = None) -> Optional[EpisodeResult]:
        """Manually trigger episode generation and the podcast feed refresh."""
        return await self._run_episode_job(request)

    async def _report(self, job: str, error: Exception) -> None:
        logger.error(f"{job} failed: {error}")
        if self._on_error:
            await self._on_error(job, error)

    async def _run_feed_job(self) -> Optional[FeedRunResult]:
        """Internal: Run the feed rewrite with error handling."""
        logger.info("Starting scheduled feed rewrite...")
        try:
            result = await self._run_feed()
            logger.info(f"Feed rewrite complete: {result.count} items", key=result.key)
            return result
        except Exception as e:
            await self._report("feed_rewrite", e)
            return None

    async def _run_episode_job(self, request: Optional[EpisodeRequest] = None) -> Optional[EpisodeResult]:
        """Internal: Run episode generation with error handling."""
        request = request or EpisodeRequest(session_id=new_session_id())
        logger.info("Starting scheduled episode generation...", session_id=request.session_id)
        try:
            result = await self._run_episode(request)
        except Exception as e:
            await self._report("episode_generation", e)
            return None

        try:
            feed = await self._build_podcast_feed()
            logger.info(f"Podcast feed refreshed: {feed.count} episodes", key=feed.key)
        except Exception as e:
            await self._report("podcast_feed", e)

        return result

    def get_next_runs(self) -> dict:
        """Get next scheduled run times."""
        jobs = {}
        for job in self.scheduler.get_jobs():
            jobs[job.id] = {
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
            }
        return jobs


async def run_scheduler_forever(scheduler: PipelineScheduler, cleanup: Optional[CleanupScheduler] = None):
    """Run the scheduler until cancelled, then cancel pending cleanups."""
    await scheduler.start()
    try:
        while True:
            await asyncio.sleep(60)
    finally:
        scheduler.stop()
        if cleanup:
            cleanup.shutdown()
