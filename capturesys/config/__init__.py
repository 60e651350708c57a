"""Configuration namespace for capturesys."""

from __future__ import annotations

from .app import AppConfig
from .base import BaseConfig, load_config
from .enrichment import EnrichmentConfig, ServiceConfig
from .links import LinkConfig
from .pipeline import PipelineConfig
from .queue import QueueConfig
from .utils import resolve_env_reference

__all__ = [
    "BaseConfig",
    "AppConfig",
    "load_config",
    "EnrichmentConfig",
    "ServiceConfig",
    "LinkConfig",
    "PipelineConfig",
    "QueueConfig",
    "resolve_env_reference",
]
