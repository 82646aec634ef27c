"""Prompts for rewriting feed items into short news briefs."""

from ..routing import GenerationRequest
from .models import FeedItem

REWRITE_SYSTEM_PROMPT = """You are an AI news editor rewriting RSS items into concise, factual briefs
for a daily AI industry digest, in a dry Gen-X voice.

Rules:
1. Title: at most 12 words, factual, no sensationalism, no emojis.
2. Summary: 300 to 1100 characters. Say what happened and why it matters.
   No hype adjectives, no speculation, no commentary or disclaimers.
3. No Markdown, HTML tags or XML entities.
4. Return one JSON object and nothing else:
   {"title": "...", "summary": "...", "link": "...", "publishedAt": "ISO 8601 UTC"}
"""

REWRITE_USER_TEMPLATE = """Original RSS item:
- Title: {title}
- Summary: {summary}
- Link: {link}
- Published At: {published}

Rewrite this into a short, factual news brief following the rules.
Return ONLY valid JSON for one item."""


def build_rewrite_request(item: FeedItem, plain_summary: str) -> GenerationRequest:
    prompt = REWRITE_USER_TEMPLATE.format(
        title=item.title or "(none)",
        summary=plain_summary or "(none)",
        link=item.link or "(none)",
        published=item.published_at.isoformat() if item.published_at else "(unknown)",
    )
    return GenerationRequest.prompt(prompt, system=REWRITE_SYSTEM_PROMPT)
