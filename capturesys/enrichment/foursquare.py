"""Foursquare Places venue lookup (coordinate-based)."""

from __future__ import annotations

from typing import Any

from loguru import logger

from .base import ContextualEnrichmentService, EnrichmentError
from .client import HttpClient
from .models import Coordinates, EnrichmentData

DEFAULT_BASE_URL = "https://api.foursquare.com/v3/places"
_FIELDS = "fsq_id,name,categories,location,geocodes,price,rating,website"


class FoursquareService(ContextualEnrichmentService):
    """Venue lookup whose results are treated as background truth."""

    name = "foursquare"

    def __init__(
        self,
        api_key: str | None,
        client: HttpClient | None = None,
        base_url: str | None = None,
    ) -> None:
        self.api_key = api_key
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = api_key
        self.client = client or HttpClient()
        self.client.session.headers.update(headers)
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")

    def enrich_location(self, coordinates: Coordinates) -> EnrichmentData | None:
        candidates = self.search_nearby(coordinates, limit=1)
        return candidates[0] if candidates else None

    def enrich_query(self, query: str, coordinates: Coordinates | None = None) -> EnrichmentData | None:
        params: dict[str, Any] = {"query": query, "limit": 1, "fields": _FIELDS}
        if coordinates is not None:
            params["ll"] = coordinates.as_param()
        candidates = self._search(params)
        return candidates[0] if candidates else None

    def search_nearby(self, coordinates: Coordinates, limit: int = 5) -> list[EnrichmentData]:
        return self._search(
            {"ll": coordinates.as_param(), "limit": limit, "sort": "DISTANCE", "fields": _FIELDS}
        )

    def search(self, query: str, coordinates: Coordinates, limit: int = 5) -> list[EnrichmentData]:
        return self._search(
            {
                "query": query,
                "ll": coordinates.as_param(),
                "limit": limit,
                "sort": "DISTANCE",
                "fields": _FIELDS,
            }
        )

    def _search(self, params: dict[str, Any]) -> list[EnrichmentData]:
        if not self.api_key:
            logger.debug("Foursquare API key not configured; skipping venue lookup")
            return []
        payload = self.client.get_json(f"{self.base_url}/search", params=params)
        if not isinstance(payload, dict):
            raise EnrichmentError("Unexpected Foursquare response shape")
        return [_to_enrichment(place) for place in payload.get("results") or [] if place.get("name")]


def _to_enrichment(place: dict[str, Any]) -> EnrichmentData:
    location = place.get("location") or {}
    main = (place.get("geocodes") or {}).get("main") or {}
    price = place.get("price")
    return EnrichmentData(
        title=place["name"],
        categories=[category["name"] for category in place.get("categories") or [] if category.get("name")],
        location=location.get("formatted_address") or location.get("address"),
        price=float(price) if price is not None else None,
        rating=place.get("rating"),
        place_id=place.get("fsq_id"),
        latitude=main.get("latitude"),
        longitude=main.get("longitude"),
        site_name=place.get("website"),
    )


__all__ = ["FoursquareService"]
