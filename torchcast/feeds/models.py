"""Data models for the condensed news feed."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FeedItem(BaseModel):
    """Canonical feed entry, whatever the source document shape."""

    title: str = Field(default="")
    link: str = Field(default="")
    content: str = Field(default="", description="Raw summary/content, may contain HTML")
    published_at: Optional[datetime] = Field(None, description="None when missing or unparseable")
    source_url: str = Field(default="", description="Feed the item came from")


class RewrittenItem(BaseModel):
    """An item ready for publication."""

    title: str
    description: str
    link: str
    pub_date: datetime
    rewritten: bool = Field(default=True, description="False when the original text was kept")


class RotationState(BaseModel):
    """Persisted cursors over the feed and site lists."""

    feed_cursor: int = Field(default=0, ge=0, alias="feedCursor")
    site_cursor: int = Field(default=0, ge=0, alias="siteCursor")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    model_config = {"populate_by_name": True}


class FeedSources(BaseModel):
    """Configured source lists, one URL per entry."""

    feeds: list[str] = Field(default_factory=list)
    sites: list[str] = Field(default_factory=list)


class RotationSelection(BaseModel):
    """Outcome of one rotation step."""

    feeds: list[str]
    site: Optional[str] = None
    next_state: RotationState


class FetchedDocument(BaseModel):
    """Raw response of a feed download."""

    url: str
    status: int
    body: str


class FeedRunResult(BaseModel):
    """Result of one publish run. All-null/zero is the expected-empty outcome."""

    key: Optional[str] = None
    public_url: Optional[str] = Field(None, alias="publicUrl")
    count: int = 0
    site: Optional[str] = None
    failures: dict[str, str] = Field(default_factory=dict, description="source url -> reason")

    model_config = {"populate_by_name": True}

    @classmethod
    def empty(cls, **extra) -> "FeedRunResult":
        return cls(key=None, public_url=None, count=0, **extra)

    @property
    def is_empty(self) -> bool:
        return self.count == 0 and self.key is None
