"""
Script stages contract and its router-backed implementation.

The orchestrator depends only on ScriptStages, so tests and alternative
writers can plug in without touching the pipeline.
"""

import re
from typing import Optional, Protocol, Sequence

import structlog
from pydantic import BaseModel, Field, ValidationError

from ..config.settings import Sponsor
from ..routing import GenerationRequest, RequestRouter
from .models import EpisodeOutline, OutlineSection
from .prompts import (
    CLOSING_TAGLINE,
    EDITORIAL_PROMPT,
    EXPAND_PROMPT,
    FORMAT_PROMPT,
    OUTLINE_PROMPT,
    TIGHTEN_PROMPT,
    build_outro,
    build_persona,
    format_articles,
    sponsor_for_session,
)
from .text import extract_json_object

logger = structlog.get_logger()

_LIST_LINE = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s+(.+?)\s*$")


class ScriptContext(BaseModel):
    """Per-episode values every stage sees."""

    session_id: str
    date: str
    topic: str
    persona: str = ""
    articles: list[str] = Field(default_factory=list, description="Recent story briefs, newest first")
    sponsor: Optional[Sponsor] = None


class ScriptStages(Protocol):
    """The five script-writing stages, in pipeline order, plus their shared context."""

    def context(self, session_id: str, date: str, topic: str, articles: Sequence[str] = ()) -> ScriptContext:
        ...

    async def outline(self, ctx: ScriptContext) -> EpisodeOutline:
        ...

    async def expand(self, ctx: ScriptContext, section: OutlineSection, index: int, total: int) -> str:
        ...

    async def tighten(self, ctx: ScriptContext, text: str) -> str:
        ...

    async def editorial(self, ctx: ScriptContext, text: str) -> str:
        ...

    async def format(self, ctx: ScriptContext, text: str) -> str:
        ...


def parse_outline(reply: str) -> EpisodeOutline:
    """Outline from a JSON reply, or from a numbered/bulleted list as a fallback.

    Returns an outline with no sections when nothing usable is found.
    """
    data = extract_json_object(reply)
    if data and isinstance(data.get("sections"), list):
        sections = []
        for raw in data["sections"]:
            try:
                if isinstance(raw, str):
                    raw = {"title": raw}
                section = OutlineSection.model_validate(raw)
            except ValidationError:
                continue
            if section.title.strip():
                sections.append(section)
        if sections:
            return EpisodeOutline(sections=sections)

    sections = []
    for line in (reply or "").splitlines():
        match = _LIST_LINE.match(line)
        if match:
            title, _, brief = match.group(1).partition(":")
            sections.append(OutlineSection(title=title.strip(), brief=brief.strip()))
    return EpisodeOutline(sections=sections)


class RoutedScriptWriter:
    """ScriptStages implementation that sends every stage through the router."""

    def __init__(
        self,
        router: RequestRouter,
        host_name: str,
        show_name: str,
        sponsors: Sequence[Sponsor] = (),
    ):
        self.router = router
        self.host_name = host_name
        self.show_name = show_name
        self.sponsors = list(sponsors)

    def context(self, session_id: str, date: str, topic: str, articles: Sequence[str] = ()) -> ScriptContext:
        return ScriptContext(
            session_id=session_id,
            date=date,
            topic=topic,
            persona=build_persona(session_id, self.host_name, self.show_name),
            articles=list(articles),
            sponsor=sponsor_for_session(session_id, self.sponsors),
        )

    async def _run(self, task: str, ctx: ScriptContext, prompt: str) -> str:
        request = GenerationRequest.prompt(prompt, system=ctx.persona or None)
        return await self.router.generate(task, request)

    async def outline(self, ctx: ScriptContext) -> EpisodeOutline:
        prompt = OUTLINE_PROMPT.format(date=ctx.date, topic=ctx.topic, articles=format_articles(ctx.articles))
        reply = await self._run("outline", ctx, prompt)
        outline = parse_outline(reply)
        logger.info(f"Outline has {len(outline.sections)} sections", session_id=ctx.session_id)
        return outline

    async def expand(self, ctx: ScriptContext, section: OutlineSection, index: int, total: int) -> str:
        prompt = EXPAND_PROMPT.format(
            index=index,
            total=total,
            date=ctx.date,
            title=section.title,
            brief=section.brief or section.title,
            articles=format_articles(ctx.articles),
        )
        return await self._run("expand", ctx, prompt)

    async def tighten(self, ctx: ScriptContext, text: str) -> str:
        return await self._run("tighten", ctx, TIGHTEN_PROMPT.format(text=text))

    async def editorial(self, ctx: ScriptContext, text: str) -> str:
        return await self._run("editorialPass", ctx, EDITORIAL_PROMPT.format(text=text))

    async def format(self, ctx: ScriptContext, text: str) -> str:
        tagline = CLOSING_TAGLINE.format(show_name=self.show_name)
        prompt = FORMAT_PROMPT.format(text=text, outro=build_outro(ctx.sponsor), tagline=tagline)
        return await self._run("editAndFormat", ctx, prompt)
