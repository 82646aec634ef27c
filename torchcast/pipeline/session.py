"""In-memory Session Artifact Set, keyed by session id."""

import asyncio
from datetime import date, datetime, timezone
from typing import Any, Optional

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger()


class SessionArtifacts(BaseModel):
    """Intermediate parts produced while an episode is being built."""

    session_id: str
    parts: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SessionCache:
    """Holds artifacts until the deferred cleanup purges them."""

    def __init__(self):
        self._sessions: dict[str, SessionArtifacts] = {}
        self._lock = asyncio.Lock()

    async def store(self, session_id: str, name: str, value: Any) -> None:
        async with self._lock:
            artifacts = self._sessions.setdefault(session_id, SessionArtifacts(session_id=session_id))
            artifacts.parts[name] = value

    def get(self, session_id: str) -> Optional[SessionArtifacts]:
        return self._sessions.get(session_id)

    def get_part(self, session_id: str, name: str, default: Any = None) -> Any:
        artifacts = self._sessions.get(session_id)
        return artifacts.parts.get(name, default) if artifacts else default

    async def purge(self, session_id: str) -> bool:
        async with self._lock:
            removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.info("Purged session artifacts", session_id=session_id)
        return removed

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


def new_session_id(day: Optional[date] = None) -> str:
    """Session id carrying the episode date, e.g. TT-2025-06-01."""
    day = day or datetime.now(timezone.utc).date()
    return f"TT-{day.isoformat()}"
