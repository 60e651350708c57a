"""Merge rule for combining enrichment results into canonical records.

Fill gaps, never regress, union collections: a field is only written when
the canonical value is empty (``None``, an empty string, a zero price or a
placeholder title). Tags, categories and purposes are merged as ordered set
unions and processing logs are only ever appended to.
"""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urlsplit

from capturesys.items.models import ProcessedItem
from capturesys.queue.models import ItemDescriptor, format_timestamp, utcnow

from .models import EnrichmentData

UNTITLED = "Untitled"

_FILL_FIELDS: tuple[str, ...] = (
    "url",
    "summary",
    "entity_type",
    "location",
    "rating",
    "source",
    "wrapped_link",
    "payload_ref",
    "attribution_id",
    "master_capture_id",
    "session_id",
    "cover_image_url",
    "place_id",
    "latitude",
    "longitude",
    "transcription",
    "media_type",
    "file_size",
    "filename",
)
_UNION_FIELDS: tuple[str, ...] = ("tags", "categories", "purposes", "themes")


def is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def is_placeholder_title(title: str | None, url: str | None = None) -> bool:
    """Return ``True`` for titles that carry no information of their own."""

    if is_empty(title):
        return True
    assert title is not None
    stripped = title.strip()
    if stripped == UNTITLED or "://" in stripped or stripped.startswith("www."):
        return True
    if url:
        host = urlsplit(url).hostname
        if host and stripped == host:
            return True
    return False


def union(existing: Iterable[str], incoming: Iterable[str]) -> list[str]:
    """Ordered set union: existing order first, new values appended."""

    result = list(dict.fromkeys(value for value in existing if value))
    seen = set(result)
    for value in incoming:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def log_line(message: str) -> str:
    return f"[{format_timestamp(utcnow())}] {message}"


def merge_into_descriptor(
    descriptor: ItemDescriptor,
    data: EnrichmentData,
    *,
    stage: str,
    overwrite_title: bool = False,
) -> ItemDescriptor:
    """Return a copy of ``descriptor`` with the gaps filled from ``data``."""

    changes: dict[str, object] = {}

    if data.title and (overwrite_title or is_placeholder_title(descriptor.title, descriptor.url)):
        changes["title"] = data.title
    if data.description_text and is_empty(descriptor.description_text):
        changes["description_text"] = data.description_text
    if data.location and is_empty(descriptor.location):
        changes["location"] = data.location
    if data.price is not None and not descriptor.price:
        changes["price"] = data.price
    if data.image and is_empty(descriptor.cover_image_url):
        changes["cover_image_url"] = data.image
    if data.place_id and is_empty(descriptor.place_id):
        changes["place_id"] = data.place_id
    if data.latitude is not None and data.longitude is not None and not descriptor.has_coordinates:
        changes["latitude"] = data.latitude
        changes["longitude"] = data.longitude

    changes["style_tags"] = union(descriptor.style_tags, data.style_tags)
    changes["categories"] = union(descriptor.categories, data.categories)
    changes["processing_log"] = [*descriptor.processing_log, log_line(f"Enriched with {stage}")]
    return descriptor.with_changes(**changes)


def merge_into_item(existing: ProcessedItem, incoming: ProcessedItem) -> ProcessedItem:
    """Merge ``incoming`` into ``existing`` in place and return it.

    Used by the idempotent upsert path: re-processing the same capture must
    never drop data an earlier pass already stored.
    """

    if incoming.title and is_placeholder_title(existing.title, existing.url) and not is_placeholder_title(
        incoming.title, incoming.url
    ):
        existing.title = incoming.title
    elif is_empty(existing.title):
        existing.title = incoming.title

    for name in _FILL_FIELDS:
        if is_empty(getattr(existing, name)) and not is_empty(getattr(incoming, name)):
            setattr(existing, name, getattr(incoming, name))
    if not existing.price and incoming.price:
        existing.price = incoming.price

    for name in _UNION_FIELDS:
        setattr(existing, name, union(getattr(existing, name), getattr(incoming, name)))

    if incoming.created_at < existing.created_at:
        existing.created_at = incoming.created_at

    known = set(existing.processing_log)
    existing.processing_log.extend(line for line in incoming.processing_log if line not in known)
    return existing


def place_conflict(existing: ProcessedItem, incoming: ProcessedItem) -> str | None:
    """Describe a place change between two passes over the same capture.

    Returns ``None`` when the stored place is unknown or unchanged. A new
    place id, or a known place id missing from ``incoming``, is a conflict
    the item should be reviewed for.
    """

    if is_empty(existing.place_id):
        return None
    previous = existing.title or existing.location or "Unknown"
    if is_empty(incoming.place_id):
        return f"Conflict: Lost place context (was '{previous}')"
    if incoming.place_id != existing.place_id:
        current = incoming.title or incoming.location or "Unknown"
        return f"Conflict: Place changed from '{previous}' to '{current}'"
    return None


__all__ = [
    "UNTITLED",
    "is_empty",
    "is_placeholder_title",
    "log_line",
    "merge_into_descriptor",
    "merge_into_item",
    "place_conflict",
    "union",
]
