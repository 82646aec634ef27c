"""Processors module for script writing, metadata and text handling."""

from .metadata import MetadataSynthesizer, normalize_keywords, resolve_episode_number
from .models import EpisodeMetadata, EpisodeOutline, EpisodeRequest, EpisodeResult, OutlineSection
from .script_stages import RoutedScriptWriter, ScriptContext, ScriptStages, parse_outline

__all__ = [
    "EpisodeMetadata",
    "EpisodeOutline",
    "EpisodeRequest",
    "EpisodeResult",
    "MetadataSynthesizer",
    "OutlineSection",
    "RoutedScriptWriter",
    "ScriptContext",
    "ScriptStages",
    "normalize_keywords",
    "parse_outline",
    "resolve_episode_number",
]
