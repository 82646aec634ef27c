"""
Feed normalisation.

A fetched document is resolved once into one of three variants (RSS 2.0,
Atom, RDF/RSS 1.0), and each variant has its own item extractor that
produces canonical FeedItems.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from html.entities import name2codepoint
from typing import Callable, Optional
from xml.etree.ElementTree import Element

import structlog
from dateutil.parser import ParserError
from dateutil.parser import parse as parse_date
from defusedxml import DefusedXmlException
from defusedxml.ElementTree import ParseError
from defusedxml.ElementTree import fromstring as safe_fromstring

from ..errors import FeedParseFailure
from .models import FeedItem

logger = structlog.get_logger()

# Common timezone abbreviations seen in pubDate values
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
}

_XML_ENTITIES = {"amp", "lt", "gt", "quot", "apos"}
_LEADING_JUNK = re.compile(r"^[﻿\x00-\x20]+")
_BARE_AMPERSAND = re.compile(r"&(?!(?:[a-zA-Z][a-zA-Z0-9]*|#\d+|#x[0-9a-fA-F]+);)")
_NAMED_ENTITY = re.compile(r"&([a-zA-Z][a-zA-Z0-9]*);")


class FeedVariant(str, Enum):
    RSS2 = "rss2"
    ATOM = "atom"
    RDF = "rdf"


@dataclass(frozen=True)
class ResolvedFeed:
    """A parsed document with its variant and item elements."""

    variant: FeedVariant
    items: list[Element]


def _local(tag) -> str:
    """Tag name without its namespace."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _children(element: Element, *names: str) -> list[Element]:
    return [child for child in element if _local(child.tag) in names]


def _first(element: Element, *names: str) -> Optional[Element]:
    # Names are tried in priority order, not document order
    for name in names:
        for child in element:
            if _local(child.tag) == name:
                return child
    return None


def _text(element: Optional[Element]) -> str:
    if element is None:
        return ""
    return "".join(element.itertext()).strip()


def _first_text(element: Element, *names: str) -> str:
    for name in names:
        value = _text(_first(element, name))
        if value:
            return value
    return ""


def _attr(element: Element, name: str) -> Optional[str]:
    for key, value in element.attrib.items():
        if _local(key) == name:
            return value
    return None


# ---------------------------------------------------------------------------
# Document level
# ---------------------------------------------------------------------------

def sanitize_document(body: str) -> str:
    """Make a sloppy feed document acceptable to a strict XML parser.

    Drops a BOM and leading control characters, turns HTML-only named entities
    into numeric references and escapes bare ampersands.
    """
    out = _LEADING_JUNK.sub("", body or "")

    def _entity(match: re.Match) -> str:
        name = match.group(1)
        if name in _XML_ENTITIES or name not in name2codepoint:
            return match.group(0)
        return f"&#{name2codepoint[name]};"

    out = _NAMED_ENTITY.sub(_entity, out)
    return _BARE_AMPERSAND.sub("&amp;", out)


def resolve_feed(root: Element, url: str = "") -> ResolvedFeed:
    """Decide the document variant once and collect its item elements."""
    name = _local(root.tag)

    if name == "rss":
        channel = _first(root, "channel")
        if channel is None:
            raise FeedParseFailure(url, "rss document without channel")
        return ResolvedFeed(FeedVariant.RSS2, _children(channel, "item", "entry"))

    if name == "channel":
        return ResolvedFeed(FeedVariant.RSS2, _children(root, "item", "entry"))

    if name == "feed":
        return ResolvedFeed(FeedVariant.ATOM, _children(root, "entry", "item"))

    if name == "RDF":
        # RSS 1.0 puts items beside the channel; some producers nest them
        items = _children(root, "item")
        channel = _first(root, "channel")
        if channel is not None:
            items.extend(_children(channel, "item"))
        return ResolvedFeed(FeedVariant.RDF, items)

    raise FeedParseFailure(url, f"unrecognised root element <{name or root.tag}>")


# ---------------------------------------------------------------------------
# Item level
# ---------------------------------------------------------------------------

def parse_published(value: str) -> Optional[datetime]:
    """Timezone-aware datetime, or None when missing or unparseable."""
    if not value:
        return None
    try:
        dt = parse_date(value, tzinfos=TZINFOS)
    except (ParserError, ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _is_absolute_url(value: Optional[str]) -> bool:
    return bool(value) and value.startswith(("http://", "https://"))


def resolve_link(item: Element, guid: str = "") -> str:
    """Explicit href, then text link, then first link of a list, then a URL-shaped guid."""
    links = _children(item, "link")

    for link in links:
        href = link.get("href")
        if href and link.get("rel", "alternate") == "alternate":
            return href.strip()

    for link in links:
        if _text(link):
            return _text(link)

    if links:
        href = links[0].get("href")
        if href:
            return href.strip()

    if _is_absolute_url(guid):
        return guid
    return ""


def _rss2_item(item: Element) -> dict:
    guid = _first_text(item, "guid")
    return {
        "title": _first_text(item, "title"),
        "link": resolve_link(item, guid),
        "content": _first_text(item, "description", "encoded", "summary", "content"),
        "published": _first_text(item, "pubDate", "date", "published", "updated"),
    }


def _atom_entry(entry: Element) -> dict:
    entry_id = _first_text(entry, "id")
    return {
        "title": _first_text(entry, "title"),
        "link": resolve_link(entry, entry_id),
        "content": _first_text(entry, "summary", "content"),
        "published": _first_text(entry, "published", "updated", "date"),
    }


def _rdf_item(item: Element) -> dict:
    return {
        "title": _first_text(item, "title"),
        "link": resolve_link(item, _attr(item, "about") or ""),
        "content": _first_text(item, "description", "encoded"),
        "published": _first_text(item, "date", "pubDate"),
    }


EXTRACTORS: dict[FeedVariant, Callable[[Element], dict]] = {
    FeedVariant.RSS2: _rss2_item,
    FeedVariant.ATOM: _atom_entry,
    FeedVariant.RDF: _rdf_item,
}


def normalize_feed(body: str, url: str = "") -> list[FeedItem]:
    """Parse a feed document into canonical items.

    Raises:
        FeedParseFailure: when the document cannot be parsed or has no known shape.
    """
    if not body or not body.strip():
        raise FeedParseFailure(url, "empty document")

    try:
        root = safe_fromstring(sanitize_document(body))
    except (ParseError, DefusedXmlException) as e:
        raise FeedParseFailure(url, f"invalid XML: {e}") from e

    resolved = resolve_feed(root, url)
    extract = EXTRACTORS[resolved.variant]

    items = []
    for element in resolved.items:
        fields = extract(element)
        if not fields["title"] and not fields["link"]:
            continue
        items.append(
            FeedItem(
                title=fields["title"],
                link=fields["link"],
                content=fields["content"],
                published_at=parse_published(fields["published"]),
                source_url=url,
            )
        )

    logger.debug("feed.normalized", url=url, variant=resolved.variant.value, items=len(items))
    return items
