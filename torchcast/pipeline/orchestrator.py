"""
Episode generation orchestrator.

Stages run strictly in order, each consuming the previous one's output:

    recent articles -> outline -> expand/tighten per section -> join
            -> editorial pass -> format + TTS cleanup -> chunk -> persist
            -> metadata -> deferred cleanup

Outline, editorial, format and persistence failures abort the run with a
StageFailure carrying the session id, as does any unexpected exception.
Individual sections may be skipped. An editorial or format pass that comes
back empty keeps the text it was given. Missing articles and metadata never
fail the run.
"""

from datetime import datetime, timezone
from typing import Awaitable, Optional, TypeVar

import structlog

from ..errors import AllProvidersExhausted, StageFailure
from ..processors.metadata import MetadataSynthesizer
from ..processors.models import EpisodeRequest, EpisodeResult
from ..processors.script_stages import ScriptContext, ScriptStages
from ..processors.text import chunk_text, cleanup_for_tts
from ..storage.repository import EpisodeRepository
from .articles import ArticleSource
from .scheduler import CleanupScheduler
from .session import SessionCache

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_TOPIC = "the latest artificial intelligence news"


class EpisodeOrchestrator:
    """
    Drives one episode from session id to persisted transcript, chunks and metadata.

    Usage:
        orchestrator = EpisodeOrchestrator(writer, synthesizer, repository, cache, cleanup)
        result = await orchestrator.run(EpisodeRequest(session_id="TT-2025-06-01"))
    """

    def __init__(
        self,
        stages: ScriptStages,
        synthesizer: MetadataSynthesizer,
        repository: EpisodeRepository,
        cache: SessionCache,
        cleanup: Optional[CleanupScheduler] = None,
        chunk_max_chars: int = 2800,
        cleanup_delay_seconds: float = 240.0,
        articles: Optional[ArticleSource] = None,
    ):
        self.stages = stages
        self.synthesizer = synthesizer
        self.repository = repository
        self.cache = cache
        self.cleanup = cleanup
        self.chunk_max_chars = chunk_max_chars
        self.cleanup_delay_seconds = cleanup_delay_seconds
        self.articles = articles

    @staticmethod
    async def _stage(name: str, session_id: str, step: Awaitable[T]) -> T:
        try:
            return await step
        except StageFailure:
            raise
        except Exception as e:
            raise StageFailure(name, session_id, e) from e

    async def _rewrite_or_keep(self, name: str, session_id: str, step: Awaitable[str], previous: str) -> str:
        """Output of an editing pass, or ``previous`` when the pass returns nothing."""
        try:
            text = await self._stage(name, session_id, step)
        except StageFailure as e:
            if not (isinstance(e.cause, AllProvidersExhausted) and e.cause.all_empty):
                raise
            text = ""
        if not (text or "").strip():
            logger.warning(f"{name} came back empty, keeping previous text", session_id=session_id)
            return previous
        return text

    async def _abort(self, failure: StageFailure) -> None:
        logger.error(
            "episode.failed",
            session_id=failure.session_id,
            stage=failure.stage,
            error=str(failure.cause),
        )
        if self.cleanup:
            self.cleanup.cancel(failure.session_id)
        await self.cache.purge(failure.session_id)

    async def run(self, request: EpisodeRequest) -> EpisodeResult:
        """Run every stage; raises StageFailure on a fatal stage error."""
        try:
            return await self._run(request)
        except StageFailure as e:
            await self._abort(e)
            raise
        except Exception as e:
            failure = StageFailure("unexpected", request.session_id, e)
            await self._abort(failure)
            raise failure from e

    async def _recent_articles(self, session_id: str) -> list[str]:
        if self.articles is None:
            return []
        try:
            return await self.articles.recent()
        except Exception as e:
            logger.warning("Recent articles unavailable", session_id=session_id, error=str(e))
            return []

    async def _run(self, request: EpisodeRequest) -> EpisodeResult:
        session_id = request.session_id
        date = request.date or datetime.now(timezone.utc).date().isoformat()
        articles = await self._recent_articles(session_id)
        ctx = self.stages.context(session_id, date, request.topic or DEFAULT_TOPIC, articles)
        logger.info("Starting episode generation...", session_id=session_id, date=date, articles=len(articles))

        # 1. Outline
        outline = await self._stage("outline", session_id, self.stages.outline(ctx))
        if not outline.sections:
            raise StageFailure("outline", session_id, ValueError("outline has no sections"))
        await self.cache.store(session_id, "outline", outline)

        # 2. Expand and tighten each section
        sections: list[str] = []
        skipped: list[str] = []
        total = len(outline.sections)
        for index, section in enumerate(outline.sections, start=1):
            text = await self._write_section(ctx, section, index, total)
            if text:
                sections.append(text)
            else:
                logger.warning("Section skipped", session_id=session_id, section=section.title)
                skipped.append(section.title)

        if not sections:
            raise StageFailure("sections", session_id, ValueError("every section came back empty"))
        await self.cache.store(session_id, "sections", sections)

        # 3. Join in outline order
        draft = "\n\n".join(sections)

        # 4. Editorial pass, keeping the draft if nothing comes back
        edited = await self._rewrite_or_keep(
            "editorialPass", session_id, self.stages.editorial(ctx, draft), draft
        )

        # 5. Format for speech, keeping the edited text if nothing comes back
        formatted = await self._rewrite_or_keep(
            "editAndFormat", session_id, self.stages.format(ctx, edited), edited
        )
        final_text = cleanup_for_tts(formatted) or formatted.strip()
        await self.cache.store(session_id, "transcript", final_text)

        # 6. Chunk
        chunks = chunk_text(final_text, self.chunk_max_chars)

        # 7. Persist chunks and transcript
        chunk_keys = await self._stage(
            "persist", session_id, self.repository.save_chunks(session_id, chunks)
        )
        transcript_key = await self._stage(
            "persist", session_id, self.repository.save_transcript(session_id, final_text)
        )

        # 8. Metadata
        metadata = await self.synthesizer.synthesize(
            session_id, final_text, date=date, episode_number=request.episode_number
        )
        await self.cache.store(session_id, "artworkPrompt", metadata.artwork_prompt)

        metadata_key = None
        try:
            metadata_key = await self.repository.save_metadata(metadata)
        except Exception as e:
            logger.warning("Metadata not persisted", session_id=session_id, error=str(e))

        # 9. Deferred cleanup, only once chunks and transcript are stored
        if self.cleanup:
            self.cleanup.schedule(session_id, self.cleanup_delay_seconds)

        logger.info(
            f"Episode generated: {len(chunk_keys)} chunks",
            session_id=session_id,
            transcript_key=transcript_key,
            skipped_sections=len(skipped),
        )

        return EpisodeResult(
            session_id=session_id,
            chunk_keys=chunk_keys,
            transcript_key=transcript_key,
            metadata=metadata,
            metadata_key=metadata_key,
            artwork_prompt=metadata.artwork_prompt or None,
            skipped_sections=skipped,
        )

    async def _write_section(self, ctx: ScriptContext, section, index: int, total: int) -> str:
        """Expanded and tightened text, or "" when the section has to be skipped."""
        try:
            expanded = await self.stages.expand(ctx, section, index, total)
        except Exception as e:
            logger.warning("Section expansion failed", session_id=ctx.session_id, section=section.title, error=str(e))
            return ""
        if not (expanded or "").strip():
            return ""

        try:
            tightened = await self.stages.tighten(ctx, expanded)
        except Exception as e:
            logger.warning("Section tightening failed", session_id=ctx.session_id, section=section.title, error=str(e))
            return ""
        return (tightened or "").strip()
