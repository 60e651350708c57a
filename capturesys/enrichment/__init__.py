"""Enrichment collaborators and the merge rule applied to their results."""

from capturesys.enrichment.base import (
    ContextualEnrichmentService,
    EnrichmentError,
    LinkEnrichmentService,
)
from capturesys.enrichment.client import HttpClient
from capturesys.enrichment.composite import CompositeLinkService
from capturesys.enrichment.duckduckgo import DuckDuckGoService
from capturesys.enrichment.foursquare import FoursquareService
from capturesys.enrichment.merge import (
    is_placeholder_title,
    merge_into_descriptor,
    merge_into_item,
    place_conflict,
)
from capturesys.enrichment.models import Coordinates, EnrichmentData
from capturesys.enrichment.web import WebMetadataService

__all__ = [
    "CompositeLinkService",
    "ContextualEnrichmentService",
    "Coordinates",
    "DuckDuckGoService",
    "EnrichmentData",
    "EnrichmentError",
    "FoursquareService",
    "HttpClient",
    "LinkEnrichmentService",
    "WebMetadataService",
    "is_placeholder_title",
    "merge_into_descriptor",
    "merge_into_item",
    "place_conflict",
]
