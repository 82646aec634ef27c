"""
Metadata Synthesizer.

Builds a complete EpisodeMetadata record from the final transcript. Every
step is guarded on its own and yields a Recovered value, so a failing model
call only swaps in that step's default. ``synthesize`` never raises.
"""

import re
from datetime import date as date_type
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from ..routing import GenerationRequest, RequestRouter
from ..errors import Recovered
from .models import EpisodeMetadata
from .prompts import ARTWORK_PROMPT, SEO_KEYWORDS_PROMPT, TITLE_DESCRIPTION_PROMPT
from .text import extract_json_object, extract_main_content, sanitize_for_speech

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_KEYWORDS = [
    "ai",
    "artificial intelligence",
    "machine learning",
    "technology",
    "innovation",
    "automation",
    "tech news",
    "future tech",
]
DEFAULT_DESCRIPTION = "A deep dive into the latest AI and technology news."
DEFAULT_ARTWORK_PROMPT = (
    "Professional editorial illustration of artificial intelligence concepts, "
    "elegant gradients, flowing organic shapes, sophisticated composition, no text"
)

TITLE_MAX_CHARS = 160
DESCRIPTION_MAX_CHARS = 4000
KEYWORDS_MIN = 10
KEYWORDS_MAX = 14
MAIN_CONTENT_MIN_CHARS = 40
ARTWORK_MIN_CHARS = 10  # exclusive
ARTWORK_MAX_CHARS = 250

_SESSION_DATE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")


def default_title(date: str) -> str:
    return f"AI News — {date[:10]}"


def normalize_keywords(raw, max_count: int = KEYWORDS_MAX) -> list[str]:
    """Lower-cased, deduplicated keywords, padded from the defaults below 10."""
    if not raw:
        return []
    text = ",".join(raw) if isinstance(raw, list) else str(raw)
    text = re.sub(r"\s*\n+\s*", ",", text)

    keywords = []
    for part in text.split(","):
        keyword = part.strip().strip("\"'`#").strip().lower()
        if len(keyword) > 2 and keyword not in keywords:
            keywords.append(keyword)

    if len(keywords) < KEYWORDS_MIN:
        keywords.extend(k for k in DEFAULT_KEYWORDS if k not in keywords)

    return keywords[:max_count]


def episode_number_from_session(session_id: str, epoch: date_type) -> Optional[int]:
    """Days since ``epoch`` plus one, from a YYYY-MM-DD embedded in the session id."""
    match = _SESSION_DATE.search(session_id or "")
    if not match:
        return None
    try:
        episode_date = date_type(*(int(part) for part in match.groups()))
    except ValueError:
        return None
    return max(1, (episode_date - epoch).days + 1)


def resolve_episode_number(
    session_id: str,
    override: Optional[int],
    sequential: bool,
    epoch: date_type,
) -> tuple[int, str]:
    """Returns (number, source). The number is always >= 1."""
    if override is not None:
        return max(1, int(override)), "explicit"
    if sequential:
        derived = episode_number_from_session(session_id, epoch)
        if derived is not None:
            return derived, "derived"
        return 1, "underived"
    return 1, "disabled"


class MetadataSynthesizer:
    """Derives title, description, keywords, artwork prompt and episode number."""

    def __init__(
        self,
        router: RequestRouter,
        sequential_numbers: bool = False,
        numbering_epoch: date_type = date_type(2025, 1, 1),
    ):
        self.router = router
        self.sequential_numbers = sequential_numbers
        self.numbering_epoch = numbering_epoch

    async def _guard(
        self,
        step: str,
        session_id: str,
        run: Callable[[], Awaitable[Recovered[T]]],
        default: T,
    ) -> Recovered[T]:
        # Metadata must always be produced; any step error degrades to its default
        try:
            return await run()
        except Exception as e:
            logger.warning("metadata.step.failed", step=step, session_id=session_id, error=str(e))
            return Recovered.fallback(default, f"{type(e).__name__}: {e}")

    def main_text(self, transcript: str) -> Recovered[str]:
        """Sanitized main section, or the sanitized whole transcript."""
        try:
            extracted = extract_main_content(transcript)
            if len(extracted) >= MAIN_CONTENT_MIN_CHARS:
                return Recovered.ok(sanitize_for_speech(extracted))
            reason = "main content too short"
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
        return Recovered.fallback(sanitize_for_speech(transcript or ""), reason)

    async def title_and_description(self, main_text: str, date: str) -> Recovered[tuple[str, str]]:
        reply = await self.router.generate(
            "podcastHelper", GenerationRequest.prompt(TITLE_DESCRIPTION_PROMPT.format(text=main_text))
        )
        parsed = extract_json_object(reply)
        if parsed is None:
            return Recovered.fallback((default_title(date), DEFAULT_DESCRIPTION), "unparseable reply")

        title = str(parsed.get("title") or "").strip()[:TITLE_MAX_CHARS]
        description = str(parsed.get("description") or "").strip()[:DESCRIPTION_MAX_CHARS]
        if not title or not description:
            return Recovered.fallback(
                (title or default_title(date), description or DEFAULT_DESCRIPTION),
                "missing title or description",
            )
        return Recovered.ok((title, description))

    async def keywords(self, description: str) -> Recovered[list[str]]:
        reply = await self.router.generate(
            "seoKeywords", GenerationRequest.prompt(SEO_KEYWORDS_PROMPT.format(text=description))
        )
        keywords = normalize_keywords(reply)
        if not keywords:
            return Recovered.fallback(DEFAULT_KEYWORDS[:KEYWORDS_MIN], "no keywords")
        return Recovered.ok(keywords)

    async def artwork_prompt(self, description: str) -> Recovered[str]:
        reply = await self.router.generate(
            "artworkPrompt", GenerationRequest.prompt(ARTWORK_PROMPT.format(text=description))
        )
        prompt = reply.strip().strip("\"'`").strip()
        if ARTWORK_MIN_CHARS < len(prompt) <= ARTWORK_MAX_CHARS:
            return Recovered.ok(prompt)
        return Recovered.fallback(DEFAULT_ARTWORK_PROMPT, f"length {len(prompt)} out of range")

    async def synthesize(
        self,
        session_id: str,
        transcript: str,
        date: Optional[str] = None,
        episode_number: Optional[int] = None,
    ) -> EpisodeMetadata:
        """Always returns a fully populated record."""
        date = date or datetime.now(timezone.utc).date().isoformat()

        main = self.main_text(transcript)

        title_desc = await self._guard(
            "title_description",
            session_id,
            lambda: self.title_and_description(main.value, date),
            (default_title(date), DEFAULT_DESCRIPTION),
        )
        title, description = title_desc.value
        safe_description = sanitize_for_speech(description)

        keywords = await self._guard(
            "keywords", session_id, lambda: self.keywords(safe_description), DEFAULT_KEYWORDS[:KEYWORDS_MIN]
        )
        artwork = await self._guard(
            "artwork", session_id, lambda: self.artwork_prompt(safe_description), DEFAULT_ARTWORK_PROMPT
        )

        try:
            number, number_source = resolve_episode_number(
                session_id, episode_number, self.sequential_numbers, self.numbering_epoch
            )
        except (TypeError, ValueError) as e:
            number, number_source = 1, f"error: {e}"

        logger.info(
            "metadata.status",
            session_id=session_id,
            main_extract=main.fallback_reason or "ok",
            title_description=title_desc.fallback_reason or "ok",
            keywords=keywords.fallback_reason or "ok",
            artwork=artwork.fallback_reason or "ok",
            episode_number=number,
            episode_number_source=number_source,
        )

        return EpisodeMetadata(
            session_id=session_id,
            date=date,
            title=title,
            description=description,
            keywords=keywords.value,
            artwork_prompt=artwork.value,
            episode_number=number,
        )
