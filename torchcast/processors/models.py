"""Data models for episode generation."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OutlineSection(BaseModel):
    """One section of an episode outline."""

    title: str
    brief: str = ""


class EpisodeOutline(BaseModel):
    """Ordered outline returned by the outline stage."""

    sections: list[OutlineSection]


class EpisodeRequest(BaseModel):
    """Input to the episode pipeline."""

    session_id: str
    topic: Optional[str] = None
    date: Optional[str] = Field(None, description="ISO date; defaults to today")
    episode_number: Optional[int] = Field(None, description="Explicit override, clamped to >= 1")


class EpisodeMetadata(BaseModel):
    """Always-complete episode metadata record, stored as <session>.json."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    date: str
    title: str
    description: str
    keywords: list[str]
    artwork_prompt: str = Field(alias="artworkPrompt")
    episode_number: int = Field(ge=1, alias="episodeNumber")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


class EpisodeResult(BaseModel):
    """What the episode pipeline hands back to its caller."""

    session_id: str
    chunk_keys: list[str]
    transcript_key: str
    metadata: EpisodeMetadata
    metadata_key: Optional[str] = None
    artwork_prompt: Optional[str] = None
    skipped_sections: list[str] = Field(default_factory=list)
