"""Tests for the request router and route configuration."""

import httpx
import pytest
from openai import AsyncOpenAI
from pydantic import ValidationError

from torchcast.config.settings import ProviderSettings, RouterSettings, Settings
from torchcast.errors import AllProvidersExhausted, ConfigurationError, ProviderCallFailed
from torchcast.routing import (
    CallParams,
    GenerationRequest,
    Message,
    OpenRouterClient,
    ProviderCandidate,
    RequestRouter,
    RouteConfig,
    TaskRoute,
    build_route_config,
)
from torchcast.routing.config import DEFAULT_TASK_ROUTES

from .conftest import ScriptedClient


def chain(*candidates: ProviderCandidate, task: str = "outline") -> RouteConfig:
    return RouteConfig(routes={task: TaskRoute(task=task, candidates=candidates, temperature=0.3, max_tokens=50)})


A = ProviderCandidate(alias="a", model="model-a", credential="key-a")
B = ProviderCandidate(alias="b", model="model-b", credential="key-b")
C = ProviderCandidate(alias="c", model="model-c", credential="key-c")
UNSET = ProviderCandidate(alias="u", model="model-u", credential=None)


class TestRequestRouter:
    @pytest.mark.asyncio
    async def test_first_failure_falls_through_and_short_circuits(self):
        client = ScriptedClient({
            "model-a": ProviderCallFailed("model-a", "HTTP 503", kind="http", status_code=503),
            "model-b": "  from b  ",
            "model-c": "from c",
        })
        router = RequestRouter(chain(A, B, C), client)

        result = await router.execute("outline", GenerationRequest.prompt("hi"))

        assert result.text == "from b"
        assert result.model == "model-b"
        assert client.models_called() == ["model-a", "model-b"]
        assert [a.outcome for a in result.attempts] == ["failed", "succeeded"]

    @pytest.mark.asyncio
    async def test_unconfigured_candidates_are_skipped_not_called(self):
        client = ScriptedClient({"model-b": "ok"})
        router = RequestRouter(chain(UNSET, B), client)

        result = await router.execute("outline", GenerationRequest.prompt("hi"))

        assert result.text == "ok"
        assert client.models_called() == ["model-b"]
        assert result.attempts[0].outcome == "skipped"

    @pytest.mark.asyncio
    async def test_empty_reply_counts_as_failure(self):
        client = ScriptedClient({"model-a": "   ", "model-b": "real"})
        router = RequestRouter(chain(A, B), client)

        assert await router.generate("outline", GenerationRequest.prompt("hi")) == "real"

    @pytest.mark.asyncio
    async def test_all_blank_replies_mark_exhaustion_as_empty(self):
        client = ScriptedClient({"model-a": "   ", "model-b": ""})
        router = RequestRouter(chain(A, UNSET, B), client)

        with pytest.raises(AllProvidersExhausted) as exc_info:
            await router.generate("outline", GenerationRequest.prompt("hi"))

        error = exc_info.value
        assert error.all_empty
        assert [a.kind for a in error.attempts] == ["empty", None, "empty"]

    @pytest.mark.asyncio
    async def test_mixed_failures_are_not_all_empty(self):
        client = ScriptedClient({
            "model-a": "  ",
            "model-b": ProviderCallFailed("model-b", "HTTP 500", kind="http", status_code=500),
        })
        router = RequestRouter(chain(A, B), client)

        with pytest.raises(AllProvidersExhausted) as exc_info:
            await router.generate("outline", GenerationRequest.prompt("hi"))

        assert not exc_info.value.all_empty
        assert [a.kind for a in exc_info.value.attempts] == ["empty", "http"]

    @pytest.mark.asyncio
    async def test_exhaustion_reports_last_attempted_provider(self):
        client = ScriptedClient({
            "model-a": ProviderCallFailed("model-a", "timeout", kind="transport"),
            "model-b": ProviderCallFailed("model-b", "HTTP 429", kind="http", status_code=429),
        })
        router = RequestRouter(chain(A, B, UNSET), client)

        with pytest.raises(AllProvidersExhausted) as exc_info:
            await router.generate("outline", GenerationRequest.prompt("hi"))

        error = exc_info.value
        assert error.task == "outline"
        assert error.last_provider == "model-b"
        assert error.last_error == "HTTP 429"
        assert "HTTP 429" in str(error)
        assert [a.outcome for a in error.attempts] == ["failed", "failed", "skipped"]

    @pytest.mark.asyncio
    async def test_nothing_configured_is_exhaustion(self):
        router = RequestRouter(chain(UNSET), ScriptedClient({}))

        with pytest.raises(AllProvidersExhausted) as exc_info:
            await router.generate("outline", GenerationRequest.prompt("hi"))

        assert exc_info.value.last_provider is None
        assert exc_info.value.last_error == "no configured providers"

    @pytest.mark.asyncio
    async def test_route_params_apply_unless_overridden(self):
        client = ScriptedClient({"model-a": "ok"})
        router = RequestRouter(chain(A), client)

        await router.generate("outline", GenerationRequest.prompt("hi"))
        await router.generate("outline", GenerationRequest.prompt("hi", temperature=0.0, max_tokens=5))

        first, second = client.calls[0][2], client.calls[1][2]
        assert (first.temperature, first.max_tokens) == (0.3, 50)
        assert (second.temperature, second.max_tokens) == (0.0, 5)

    @pytest.mark.asyncio
    async def test_unknown_task_is_configuration_error(self):
        router = RequestRouter(chain(A), ScriptedClient({}))

        with pytest.raises(ConfigurationError):
            await router.generate("nope", GenerationRequest.prompt("hi"))

    def test_request_requires_content(self):
        with pytest.raises(ValidationError):
            GenerationRequest(messages=[Message(role="user", content="   ")])

    def test_prompt_adds_system_message_first(self):
        request = GenerationRequest.prompt("body", system="persona")
        assert [m.role for m in request.messages] == ["system", "user"]


class TestRouteConfig:
    def test_build_resolves_aliases_in_order(self):
        settings = Settings(
            providers=ProviderSettings(google="g-model", api_key_google="g-key", chatgpt="c-model")
        )

        config = build_route_config(settings)
        outline = config.get("outline")

        assert set(config.tasks) == set(DEFAULT_TASK_ROUTES)
        assert [c.alias for c in outline.candidates] == ["google", "chatgpt", "meta"]
        assert outline.candidates[0].configured
        assert not outline.candidates[1].configured  # model without credential
        assert outline.max_tokens == 900

    def test_router_defaults_fill_unset_task_params(self):
        settings = Settings(router=RouterSettings(temperature=0.2, max_tokens=333, timeout_seconds=9))
        table = {
            "outline": (("google",), None, None),
            "tighten": (("google",), 0.5, 700),
        }

        config = build_route_config(settings, table)

        outline, tighten = config.get("outline"), config.get("tighten")
        assert (outline.temperature, outline.max_tokens, outline.timeout_seconds) == (0.2, 333, 9)
        assert (tighten.temperature, tighten.max_tokens) == (0.5, 700)

    def test_unknown_alias_rejected(self):
        with pytest.raises(ConfigurationError):
            build_route_config(Settings(), {"outline": (("mistral",), 0.7, None)})

    def test_config_is_frozen(self):
        config = chain(A)
        with pytest.raises(ValidationError):
            config.routes = {}


def openrouter_client(handler) -> OpenRouterClient:
    client = OpenRouterClient(base_url="https://openrouter.test/api/v1")
    client._clients["key"] = AsyncOpenAI(
        api_key="key",
        base_url="https://openrouter.test/api/v1",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return client


PARAMS = CallParams(temperature=0.5, max_tokens=10, timeout_seconds=5)
MESSAGES = [Message(role="user", content="hi")]


class TestOpenRouterClient:
    @pytest.mark.asyncio
    async def test_returns_message_content(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "id": "x",
                "object": "chat.completion",
                "created": 0,
                "model": "m",
                "choices": [{"index": 0, "finish_reason": "stop", "message": {"role": "assistant", "content": "hello"}}],
            })

        client = openrouter_client(handler)
        assert await client.call("m", "key", MESSAGES, PARAMS) == "hello"

    @pytest.mark.asyncio
    async def test_http_error_is_distinguishable(self):
        client = openrouter_client(lambda request: httpx.Response(502, json={"error": {"message": "bad gateway"}}))

        with pytest.raises(ProviderCallFailed) as exc_info:
            await client.call("m", "key", MESSAGES, PARAMS)

        assert exc_info.value.kind == "http"
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_transport_error_is_distinguishable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = openrouter_client(handler)

        with pytest.raises(ProviderCallFailed) as exc_info:
            await client.call("m", "key", MESSAGES, PARAMS)

        assert exc_info.value.kind == "transport"

    @pytest.mark.asyncio
    async def test_missing_choices_is_malformed(self):
        client = openrouter_client(lambda request: httpx.Response(200, json={
            "id": "x", "object": "chat.completion", "created": 0, "model": "m", "choices": [],
        }))

        with pytest.raises(ProviderCallFailed) as exc_info:
            await client.call("m", "key", MESSAGES, PARAMS)

        assert exc_info.value.kind == "malformed"
