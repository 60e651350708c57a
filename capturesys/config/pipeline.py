"""Configuration models for the enrichment pipeline."""

from __future__ import annotations

from pydantic import Field

from .base import BaseConfig


class PipelineConfig(BaseConfig):
    """Storage locations and behaviour of the drain pass."""

    items_dir: str = Field("items", description="Directory for processed item records")
    assets_dir: str = Field("assets", description="Directory for persisted capture payloads")
    resume_stalled: bool = Field(
        True,
        description="Reset items left in 'processing' by an interrupted drain before draining",
    )
    wrap_links: bool = Field(True, description="Attach a signed wrapped link to processed web items")


__all__ = ["PipelineConfig"]
