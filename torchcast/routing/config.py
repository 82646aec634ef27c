"""
Route configuration: task name -> ordered provider fallback chain.

Built once at startup from settings and passed explicitly into the router.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config.settings import Settings
from ..errors import ConfigurationError


class ProviderCandidate(BaseModel):
    """One entry in a fallback chain."""

    model_config = ConfigDict(frozen=True)

    alias: str
    model: Optional[str] = None
    credential: Optional[str] = Field(default=None, repr=False)

    @property
    def configured(self) -> bool:
        return bool(self.model and self.model.strip()) and bool(
            self.credential and self.credential.strip()
        )


class TaskRoute(BaseModel):
    """Fallback chain plus call parameters for a logical task."""

    model_config = ConfigDict(frozen=True)

    task: str
    candidates: tuple[ProviderCandidate, ...]
    temperature: float = 0.7
    max_tokens: int = 1200
    timeout_seconds: float = 60.0


class RouteConfig(BaseModel):
    """Immutable mapping of task name to route. Candidate order is fallback priority."""

    model_config = ConfigDict(frozen=True)

    routes: dict[str, TaskRoute]

    def get(self, task: str) -> TaskRoute:
        route = self.routes.get(task)
        if route is None:
            raise ConfigurationError(
                f"No route defined for task '{task}'. "
                f"Available: {', '.join(sorted(self.routes))}"
            )
        return route

    @property
    def tasks(self) -> list[str]:
        return sorted(self.routes)


# task -> (aliases in priority order, temperature override, max_tokens override)
DEFAULT_TASK_ROUTES: dict[str, tuple[tuple[str, ...], Optional[float], Optional[int]]] = {
    "outline": (("google", "chatgpt", "meta"), None, 900),
    "expand": (("google", "chatgpt", "deepseek"), None, 1600),
    "tighten": (("chatgpt", "google", "deepseek"), 0.5, 1600),
    "editorialPass": (("anthropic", "chatgpt", "google"), 0.6, 4000),
    "editAndFormat": (("chatgpt", "anthropic", "google"), 0.4, 4000),
    "podcastHelper": (("deepseek", "anthropic", "google"), 0.5, None),
    "seoKeywords": (("deepseek", "chatgpt", "google"), 0.3, 300),
    "artworkPrompt": (("chatgpt", "google", "anthropic"), 0.8, 300),
    "rssRewrite": (("chatgpt", "google", "meta"), None, 1600),
}


def build_route_config(
    settings: Settings,
    task_routes: Optional[dict[str, tuple[tuple[str, ...], Optional[float], Optional[int]]]] = None,
) -> RouteConfig:
    """Resolve the task table against the configured providers."""
    table = settings.providers.table()
    routes = {}

    for task, (aliases, temperature, max_tokens) in (task_routes or DEFAULT_TASK_ROUTES).items():
        candidates = []
        for alias in aliases:
            if alias not in table:
                raise ConfigurationError(
                    f"Route '{task}' references unknown provider '{alias}'. "
                    f"Available: {', '.join(table)}"
                )
            model, credential = table[alias]
            candidates.append(ProviderCandidate(alias=alias, model=model, credential=credential))

        routes[task] = TaskRoute(
            task=task,
            candidates=tuple(candidates),
            temperature=settings.router.temperature if temperature is None else temperature,
            max_tokens=max_tokens or settings.router.max_tokens,
            timeout_seconds=settings.router.timeout_seconds,
        )

    return RouteConfig(routes=routes)
