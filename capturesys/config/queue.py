"""Configuration models for the durable capture queue."""

from __future__ import annotations

from pydantic import Field

from .base import BaseConfig


class QueueConfig(BaseConfig):
    """Location of the file-per-item capture queue."""

    directory: str = Field("queue", description="Directory holding pending <millis>-<uuid>.json files")


__all__ = ["QueueConfig"]
