"""Application-level configuration models."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field

from capturesys.config.base import BaseConfig
from capturesys.config.enrichment import EnrichmentConfig
from capturesys.config.links import LinkConfig
from capturesys.config.pipeline import PipelineConfig
from capturesys.config.queue import QueueConfig


class AppConfig(BaseConfig):
    """Top-level runtime configuration for the entire application."""

    data_root: Path | None = Field(None, description="Root directory for relative queue/item/asset paths")
    logging_level: str = Field("INFO", description="Log level: DEBUG, INFO, WARNING, ERROR")

    links: LinkConfig | None = Field(None, description="Opaque link signing configuration")
    queue: QueueConfig | None = Field(None, description="Capture queue configuration")
    pipeline: PipelineConfig | None = Field(None, description="Enrichment pipeline configuration")
    enrichment: EnrichmentConfig | None = Field(None, description="Enrichment collaborator configuration")


__all__ = ["AppConfig"]
