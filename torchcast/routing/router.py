"""
Resilient multi-provider request router.

Executes a named task against its configured fallback chain, strictly in
order, returning the first non-empty reply:

    Idle -> Trying(0) -> Success
                      -> Trying(1) -> ... -> Failed
"""

from typing import Optional

import structlog
from pydantic import BaseModel, Field, field_validator

from ..errors import AllProvidersExhausted, ProviderAttempt, ProviderCallFailed
from .client import CallParams, Message, ProviderClient
from .config import RouteConfig

logger = structlog.get_logger()


class GenerationRequest(BaseModel):
    """Messages plus optional overrides of the route's call parameters."""

    messages: list[Message] = Field(min_length=1)
    temperature: Optional[float] = None
    timeout_seconds: Optional[float] = None
    max_tokens: Optional[int] = None

    @field_validator("messages")
    @classmethod
    def _require_content(cls, messages: list[Message]) -> list[Message]:
        if not any(m.content.strip() for m in messages):
            raise ValueError("at least one message must have content")
        return messages

    @classmethod
    def prompt(cls, text: str, system: Optional[str] = None, **overrides) -> "GenerationRequest":
        """Shortcut for a single user prompt with an optional system message."""
        messages = []
        if system:
            messages.append(Message(role="system", content=system))
        messages.append(Message(role="user", content=text))
        return cls(messages=messages, **overrides)


class GenerationResult(BaseModel):
    """Successful router output."""

    task: str
    text: str
    model: str
    alias: str
    attempts: list[ProviderAttempt]


class RequestRouter:
    """
    Routes generation tasks through provider fallback chains.

    Usage:
        router = RequestRouter(build_route_config(settings), OpenRouterClient())
        text = await router.generate("outline", GenerationRequest.prompt("..."))
    """

    def __init__(self, config: RouteConfig, client: ProviderClient):
        self.config = config
        self.client = client

    async def generate(self, task: str, request: GenerationRequest) -> str:
        """Run a task and return the trimmed text."""
        result = await self.execute(task, request)
        return result.text

    async def execute(self, task: str, request: GenerationRequest) -> GenerationResult:
        """Run a task and return the text together with the attempt record."""
        route = self.config.get(task)
        params = CallParams(
            temperature=route.temperature if request.temperature is None else request.temperature,
            max_tokens=request.max_tokens or route.max_tokens,
            timeout_seconds=request.timeout_seconds or route.timeout_seconds,
        )

        attempts: list[ProviderAttempt] = []

        for candidate in route.candidates:
            if not candidate.configured:
                logger.debug("provider.skipped", task=task, alias=candidate.alias)
                attempts.append(ProviderAttempt(candidate.alias, candidate.model, "skipped"))
                continue

            logger.info("provider.call", task=task, alias=candidate.alias, model=candidate.model)
            try:
                raw = await self.client.call(
                    candidate.model, candidate.credential, request.messages, params
                )
                text = raw.strip() if isinstance(raw, str) else ""
                if not text:
                    raise ProviderCallFailed(candidate.model, "empty response", kind="empty")
            except ProviderCallFailed as e:
                logger.warning(
                    "provider.failed",
                    task=task,
                    alias=candidate.alias,
                    model=candidate.model,
                    kind=e.kind,
                    error=e.message,
                )
                attempts.append(
                    ProviderAttempt(candidate.alias, candidate.model, "failed", e.message, e.kind)
                )
                continue

            attempts.append(ProviderAttempt(candidate.alias, candidate.model, "succeeded"))
            return GenerationResult(
                task=task,
                text=text,
                model=candidate.model,
                alias=candidate.alias,
                attempts=attempts,
            )

        error = AllProvidersExhausted(task, attempts)
        logger.error(
            "providers.exhausted",
            task=task,
            last_provider=error.last_provider,
            last_error=error.last_error,
        )
        raise error
