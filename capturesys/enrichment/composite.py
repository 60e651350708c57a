"""Chain several link lookups, first useful answer wins."""

from __future__ import annotations

from typing import Iterable

from loguru import logger

from .base import LinkEnrichmentService
from .models import EnrichmentData


class CompositeLinkService(LinkEnrichmentService):
    """Try each member in order until one returns non-empty data.

    A member that raises is logged and skipped; the chain only yields
    ``None`` when every member came back empty or failed.
    """

    def __init__(self, services: Iterable[LinkEnrichmentService]) -> None:
        self.services = list(services)
        self.name = " / ".join(service.name for service in self.services) or "link metadata"

    def enrich(self, url: str) -> EnrichmentData | None:
        for service in self.services:
            try:
                data = service.enrich(url)
            except Exception as exc:
                logger.warning("{} lookup failed for {}: {}", service.name, url, exc)
                continue
            if data is not None and not data.is_empty:
                logger.debug("{} answered for {}", service.name, url)
                return data
        return None


__all__ = ["CompositeLinkService"]
