"""
Prompt templates for episode scripts and metadata.

The host tone and the outro sponsor are picked deterministically from the
session id, so reruns of a session sound the same.
"""

from typing import Optional, Sequence

from ..config.settings import Sponsor
from .text import url_to_speech

TONES = [
    "sarcastic",
    "witty",
    "dry",
    "skeptical",
    "quietly optimistic",
    "casual",
    "playful",
    "no-nonsense",
]


def tone_for_session(session_id: str) -> str:
    if not session_id:
        return "witty"
    return TONES[sum(ord(c) for c in session_id) % len(TONES)]


PERSONA_PROMPT = """You are {host_name}, a British Gen X host of the podcast "{show_name}".
Your tone is {tone}, intelligent, and conversational.
You cut through hype and nonsense but stay fair and grounded.
You never include stage directions, sound cues, section headings, or bullet points.
Everything you write must sound like natural spoken dialogue."""


def build_persona(session_id: str, host_name: str, show_name: str) -> str:
    return PERSONA_PROMPT.format(
        host_name=host_name, show_name=show_name, tone=tone_for_session(session_id)
    )


OUTLINE_PROMPT = """Plan today's episode of an artificial intelligence news podcast.

Date: {date}
Topic: {topic}

RECENT STORIES:
{articles}

Produce an intro, four to six main segments on distinct recent stories, and an outro.
Build the main segments from the recent stories above where there are any.
For each section give a short title and a one or two sentence brief of what it covers.

Return STRICT JSON ONLY:
{{"sections": [{{"title": "", "brief": ""}}]}}"""


EXPAND_PROMPT = """Write section {index} of {total} of today's episode.

Date: {date}
Section title: {title}
What it covers: {brief}

RECENT STORIES:
{articles}

Stay factual: use only claims the brief or the stories above support.
Write one to three short spoken paragraphs. No markdown, no music cues,
no scene instructions, no headings. Plain spoken text only."""


TIGHTEN_PROMPT = """Tighten this podcast section for listening.

- Cut filler and repetition, keep every fact.
- Break up long sentences.
- Keep it plain spoken text: no markdown, no lists, no headings.

SECTION:
{text}

Return ONLY the revised section."""


EDITORIAL_PROMPT = """You are a human editor polishing a spoken podcast script.

GOALS:
- Make the script sound naturally spoken, not written.
- Maintain the British Gen-X tone: dry, wry, understated.
- Improve flow, pacing, and clarity between sections.
- Avoid repetitive phrasing.
- Keep meaning exact and the order of sections unchanged.
- Do NOT add new facts.

SCRIPT TO EDIT:
{text}

Return ONLY the revised script as plain text."""


FORMAT_PROMPT = """Prepare this podcast script for text-to-speech.

- Short paragraphs separated by a blank line.
- Spell out symbols and abbreviations the way a presenter would say them.
- No markdown, no lists, no stage directions, no emojis.
{outro}
- End with: "{tagline}"

SCRIPT:
{text}

Return ONLY the final script."""


CLOSING_TAGLINE = "This is {show_name}: keeping you just ahead of the machines."


NO_ARTICLES = "None supplied. Cover widely reported developments only."


def format_articles(articles: list[str]) -> str:
    if not articles:
        return NO_ARTICLES
    return "\n".join(f"{i}. {line}" for i, line in enumerate(articles, start=1))


NEWSLETTER_CTA = (
    "And while you're there, you can sign up for the daily artificial intelligence "
    "newsletter. It's quick, sharp, and blissfully free of fluff."
)

SPONSOR_OUTRO = (
    "- Close with a line tying together the sense of the week.\n"
    '- Then thank this week\'s sponsor, the book "{title}", available at {spoken_url}.\n'
    '- Then say: "{cta}"'
)

PLAIN_OUTRO = "- Close with a line tying together the sense of the week."


def sponsor_for_session(session_id: str, sponsors: Sequence[Sponsor]) -> Optional[Sponsor]:
    """Same sponsor on every rerun of a session, like the tone."""
    if not sponsors:
        return None
    return sponsors[sum(ord(c) for c in session_id or "") % len(sponsors)]


def build_outro(sponsor: Optional[Sponsor]) -> str:
    if sponsor is None:
        return PLAIN_OUTRO
    spoken_url = url_to_speech(sponsor.url).replace("-", " dash ")
    return SPONSOR_OUTRO.format(title=sponsor.title, spoken_url=spoken_url, cta=NEWSLETTER_CTA)


TITLE_DESCRIPTION_PROMPT = """You are a creative copywriter for a premium artificial intelligence news podcast.
Using ONLY the main section of the script, generate:

1. A compact, compelling title (<= 80 characters)
2. A rich, engaging description (<= 300 words)

Return STRICT JSON ONLY:
{{"title": "", "description": ""}}

MAIN SECTION CONTENT:
{text}"""


SEO_KEYWORDS_PROMPT = """Generate 10-14 relevant SEO keywords (comma-separated, lower case, no hashtags).
Base them ONLY on this description:

{text}

Return ONLY the comma-separated keywords."""


ARTWORK_PROMPT = """Write a single image-generation prompt (under 200 characters) for this
podcast episode's cover art. Editorial illustration, abstract and cinematic,
with a subtle torch motif. No text, no logos, no faces.

Episode description:
{text}

Return ONLY the prompt."""
