"""Collaborator interfaces consumed by the enrichment pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import Coordinates, EnrichmentData


class EnrichmentError(RuntimeError):
    """Raised when a collaborator cannot produce enrichment data."""


class LinkEnrichmentService(ABC):
    """Looks up metadata for a URL."""

    name = "link metadata"

    @abstractmethod
    def enrich(self, url: str) -> EnrichmentData | None:
        raise NotImplementedError


class ContextualEnrichmentService(ABC):
    """Looks up context by location or free-text query."""

    name = "contextual lookup"

    @abstractmethod
    def enrich_location(self, coordinates: Coordinates) -> EnrichmentData | None:
        raise NotImplementedError

    @abstractmethod
    def enrich_query(self, query: str, coordinates: Coordinates | None = None) -> EnrichmentData | None:
        raise NotImplementedError

    @abstractmethod
    def search_nearby(self, coordinates: Coordinates, limit: int = 5) -> list[EnrichmentData]:
        raise NotImplementedError

    @abstractmethod
    def search(self, query: str, coordinates: Coordinates, limit: int = 5) -> list[EnrichmentData]:
        raise NotImplementedError


__all__ = ["ContextualEnrichmentService", "EnrichmentError", "LinkEnrichmentService"]
