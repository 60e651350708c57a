"""DuckDuckGo Instant Answer lookup (query-based, no coordinates)."""

from __future__ import annotations

from typing import Any

from .base import ContextualEnrichmentService, EnrichmentError
from .client import HttpClient
from .models import Coordinates, EnrichmentData

DEFAULT_BASE_URL = "https://api.duckduckgo.com/"


class DuckDuckGoService(ContextualEnrichmentService):
    """General web lookup that supplies narrative descriptions."""

    name = "duckduckgo"

    def __init__(self, client: HttpClient | None = None, base_url: str | None = None) -> None:
        self.client = client or HttpClient()
        self.base_url = base_url or DEFAULT_BASE_URL

    def enrich_location(self, coordinates: Coordinates) -> EnrichmentData | None:
        return None

    def search_nearby(self, coordinates: Coordinates, limit: int = 5) -> list[EnrichmentData]:
        return []

    def search(self, query: str, coordinates: Coordinates, limit: int = 5) -> list[EnrichmentData]:
        result = self.enrich_query(query, coordinates)
        return [result][:limit] if result else []

    def enrich_query(self, query: str, coordinates: Coordinates | None = None) -> EnrichmentData | None:
        query = query.strip()
        if not query:
            return None
        payload = self.client.get_json(
            self.base_url,
            params={"q": query, "format": "json", "no_redirect": 1, "no_html": 1, "t": "capturesys"},
        )
        if not isinstance(payload, dict):
            raise EnrichmentError("Unexpected DuckDuckGo response shape")
        return _parse_answer(payload, query)


def _parse_answer(payload: dict[str, Any], query: str) -> EnrichmentData | None:
    heading = (payload.get("Heading") or "").strip()
    description = (payload.get("AbstractText") or "").strip() or heading
    if not description:
        for topic in payload.get("RelatedTopics") or []:
            text = (topic.get("Text") or "").strip() if isinstance(topic, dict) else ""
            if text:
                description = text
                break
    if not description:
        return None

    entity = (payload.get("Entity") or "").strip()
    image = (payload.get("Image") or "").strip()
    if image.startswith("/"):
        image = "https://duckduckgo.com" + image
    return EnrichmentData(
        title=heading or query,
        description_text=description,
        image=image or None,
        style_tags=[entity.lower()] if entity else [],
        site_name=f"DuckDuckGo: {heading or query}",
    )


__all__ = ["DuckDuckGoService"]
