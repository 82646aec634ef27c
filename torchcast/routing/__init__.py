"""Multi-provider request routing for generation tasks."""

from .client import CallParams, Message, OpenRouterClient, ProviderClient
from .config import ProviderCandidate, RouteConfig, TaskRoute, build_route_config
from .router import GenerationRequest, GenerationResult, RequestRouter

__all__ = [
    "CallParams",
    "GenerationRequest",
    "GenerationResult",
    "Message",
    "OpenRouterClient",
    "ProviderCandidate",
    "ProviderClient",
    "RequestRouter",
    "RouteConfig",
    "TaskRoute",
    "build_route_config",
]
