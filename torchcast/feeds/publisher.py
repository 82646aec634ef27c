"""
RSS 2.0 serialisation.

ElementTree handles escaping, so text from feeds and models is written
as-is.
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional

from ..processors.models import EpisodeMetadata
from .models import RewrittenItem, utcnow

ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"
ET.register_namespace("itunes", ITUNES_NS)


def rfc2822(dt: datetime) -> str:
    """RFC 2822 date in GMT; naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return format_datetime(dt.astimezone(timezone.utc), usegmt=True)


def _sub(parent: ET.Element, tag: str, text: Optional[str]) -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = text or ""
    return element


def _channel(title: str, link: str, description: str, build_date: datetime) -> tuple[ET.Element, ET.Element]:
    rss = ET.Element("rss", {"version": "2.0"})
    channel = ET.SubElement(rss, "channel")
    _sub(channel, "title", title)
    _sub(channel, "link", link)
    _sub(channel, "description", description)
    _sub(channel, "lastBuildDate", rfc2822(build_date))
    return rss, channel


def _serialize(rss: ET.Element) -> str:
    ET.indent(rss, space="  ")
    body = ET.tostring(rss, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'


def render_news_feed(
    items: list[RewrittenItem],
    title: str,
    link: str,
    description: str,
    build_date: Optional[datetime] = None,
) -> str:
    """rss/channel/{title,link,description,lastBuildDate,item*}."""
    rss, channel = _channel(title, link, description, build_date or utcnow())

    for item in items:
        node = ET.SubElement(channel, "item")
        _sub(node, "title", item.title)
        _sub(node, "link", item.link)
        _sub(node, "description", item.description)
        _sub(node, "pubDate", rfc2822(item.pub_date))

    return _serialize(rss)


def render_podcast_feed(
    episodes: list[EpisodeMetadata],
    show_name: str,
    link: str,
    description: str,
    host_name: str,
    language: str = "en-gb",
    build_date: Optional[datetime] = None,
) -> str:
    """Podcast feed with iTunes episode numbers and keywords, newest first."""
    rss, channel = _channel(show_name, link, description, build_date or utcnow())
    _sub(channel, "language", language)
    _sub(channel, f"{{{ITUNES_NS}}}author", host_name)

    ordered = sorted(episodes, key=lambda e: (e.episode_number, e.created_at), reverse=True)
    for episode in ordered:
        node = ET.SubElement(channel, "item")
        _sub(node, "title", episode.title)
        _sub(node, "link", link)
        _sub(node, "description", episode.description)
        _sub(node, "pubDate", rfc2822(episode.created_at))
        guid = _sub(node, "guid", episode.session_id)
        guid.set("isPermaLink", "false")
        _sub(node, f"{{{ITUNES_NS}}}episode", str(episode.episode_number))
        _sub(node, f"{{{ITUNES_NS}}}keywords", ",".join(episode.keywords))

    return _serialize(rss)
