"""
Error taxonomy shared by the router and both pipelines.

Skipped providers and expected-empty pipeline runs are not errors and have no
class here; they are reported as values.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class TorchcastError(Exception):
    """Base class for all torchcast errors."""


class ConfigurationError(TorchcastError):
    """Route table or settings are inconsistent."""


class ProviderCallFailed(TorchcastError):
    """A single provider attempt failed."""

    def __init__(
        self,
        model: str,
        message: str,
        kind: str = "transport",
        status_code: Optional[int] = None,
    ):
        self.model = model
        self.kind = kind  # http, transport, malformed, empty
        self.status_code = status_code
        self.message = message
        super().__init__(f"{model}: {message}")


@dataclass(frozen=True)
class ProviderAttempt:
    """Record of one candidate in a fallback chain."""

    alias: str
    model: Optional[str]
    outcome: str  # skipped, failed, succeeded
    error: Optional[str] = None
    kind: Optional[str] = None  # ProviderCallFailed.kind for failed attempts


class AllProvidersExhausted(TorchcastError):
    """Every candidate for a task was skipped or failed."""

    def __init__(self, task: str, attempts: list[ProviderAttempt]):
        self.task = task
        self.attempts = attempts
        tried = [a for a in attempts if a.outcome == "failed"]
        self.last_provider = tried[-1].model if tried else None
        self.last_error = tried[-1].error if tried else "no configured providers"
        self.all_empty = bool(tried) and all(a.kind == "empty" for a in tried)
        super().__init__(
            f"All providers failed for task '{task}'. "
            f"Last provider: {self.last_provider or 'none'}. Last error: {self.last_error}"
        )


class StageFailure(TorchcastError):
    """A fatal pipeline stage failure, carrying the session it happened in."""

    def __init__(self, stage: str, session_id: str, cause: Optional[BaseException] = None):
        self.stage = stage
        self.session_id = session_id
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Stage '{stage}' failed for session {session_id}{detail}")


class FeedFetchFailure(TorchcastError):
    """A feed source could not be downloaded."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {reason}")


class FeedParseFailure(TorchcastError):
    """A fetched feed document could not be interpreted."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to parse {url}: {reason}")


class BlobNotFound(TorchcastError):
    """Requested key does not exist in the blob store."""

    def __init__(self, bucket: str, key: str):
        self.bucket = bucket
        self.key = key
        super().__init__(f"No such key: {bucket}/{key}")


@dataclass(frozen=True)
class Recovered(Generic[T]):
    """A value that may have been substituted by a documented default.

    ``fallback_reason`` is None when the value is a real result.
    """

    value: T
    fallback_reason: Optional[str] = None

    @property
    def defaulted(self) -> bool:
        return self.fallback_reason is not None

    @classmethod
    def ok(cls, value: T) -> "Recovered[T]":
        return cls(value=value)

    @classmethod
    def fallback(cls, value: T, reason: str) -> "Recovered[T]":
        return cls(value=value, fallback_reason=reason)
