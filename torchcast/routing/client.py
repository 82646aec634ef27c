"""
Provider call layer.

OpenRouter exposes every model behind an OpenAI-compatible API, so one
AsyncOpenAI client per credential is enough to reach all providers.
"""

from typing import Optional, Protocol

import openai
import structlog
from openai import AsyncOpenAI
from pydantic import BaseModel

from ..errors import ProviderCallFailed

logger = structlog.get_logger()

# OpenRouter base URL
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class Message(BaseModel):
    """A single chat message."""

    role: str  # system, user, assistant
    content: str


class CallParams(BaseModel):
    """Per-call generation parameters."""

    temperature: float = 0.7
    max_tokens: int = 1200
    timeout_seconds: float = 60.0


class ProviderClient(Protocol):
    """Anything that can run one chat completion against one model."""

    async def call(
        self,
        model: str,
        credential: str,
        messages: list[Message],
        params: CallParams,
    ) -> str:
        """Return the raw text reply or raise ProviderCallFailed."""
        ...


class OpenRouterClient:
    """ProviderClient backed by OpenRouter's OpenAI-compatible endpoint."""

    def __init__(
        self,
        base_url: str = OPENROUTER_BASE_URL,
        app_url: Optional[str] = None,
        app_title: Optional[str] = None,
    ):
        self.base_url = base_url
        self.headers = {}
        if app_url:
            self.headers["HTTP-Referer"] = app_url
        if app_title:
            self.headers["X-Title"] = app_title
        self._clients: dict[str, AsyncOpenAI] = {}

    def _client_for(self, credential: str) -> AsyncOpenAI:
        client = self._clients.get(credential)
        if client is None:
            # Fallback happens across candidates, never by retrying the same one
            client = AsyncOpenAI(
                api_key=credential,
                base_url=self.base_url,
                default_headers=self.headers or None,
                max_retries=0,
            )
            self._clients[credential] = client
        return client

    async def call(
        self,
        model: str,
        credential: str,
        messages: list[Message],
        params: CallParams,
    ) -> str:
        client = self._client_for(credential)
        try:
            response = await client.chat.completions.create(
                model=model,
                messages=[m.model_dump() for m in messages],
                temperature=params.temperature,
                max_tokens=params.max_tokens,
                timeout=params.timeout_seconds,
            )
        except openai.APIStatusError as e:
            raise ProviderCallFailed(
                model, f"HTTP {e.status_code}: {e.message}", kind="http", status_code=e.status_code
            ) from e
        except openai.APIConnectionError as e:
            raise ProviderCallFailed(model, str(e) or type(e).__name__, kind="transport") from e
        except openai.OpenAIError as e:
            raise ProviderCallFailed(model, str(e), kind="malformed") from e

        return self._read_content(model, response)

    @staticmethod
    def _read_content(model: str, response) -> str:
        choices = getattr(response, "choices", None)
        if not choices:
            raise ProviderCallFailed(model, "response has no choices", kind="malformed")

        content = getattr(choices[0].message, "content", None)
        if not isinstance(content, str):
            raise ProviderCallFailed(model, "response has no text content", kind="malformed")
        return content

    async def close(self):
        """Close all underlying HTTP clients."""
        for client in self._clients.values():
            await client.close()
        self._clients.clear()
