"""Capture data model shared by producers, the queue and the pipeline."""

from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from capturesys.links.wrapper import link_id

DEFAULT_LIST_LABEL = "Capture"


class ItemType(str, Enum):
    """Kind of thing a capture describes."""

    WEB = "web"
    PLACE = "place"
    TEXT = "text"
    DOCUMENT = "document"
    IMAGE = "image"
    ACTIVITY = "activity"
    QR_CODE = "qrCode"
    WEATHER = "weather"
    PRODUCT = "product"
    MEDIA = "media"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Serialise ``value`` as ISO-8601 UTC with a ``Z`` suffix."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    if not isinstance(value, str):
        raise TypeError(f"Expected an ISO-8601 string, got {type(value).__name__}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


@dataclass(slots=True)
class ItemDescriptor:
    """Canonical structured representation of a single thing to save."""

    id: str
    url: str
    title: str
    description_text: str | None = None
    style_tags: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    location: str | None = None
    price: float | None = None
    created_at: datetime = field(default_factory=utcnow)
    type: ItemType = ItemType.WEB
    attribution_id: str | None = None
    purpose: str | None = None
    wrapped_link: str | None = None
    master_capture_id: str | None = None
    session_id: str | None = None
    cover_image_url: str | None = None
    place_id: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    purposes: list[str] = field(default_factory=list)
    processing_log: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        # Legacy single purpose is folded into the ordered purposes list.
        combined = list(self.purposes)
        if self.purpose and self.purpose not in combined:
            combined.append(self.purpose)
        self.purposes = _dedupe(combined)
        self.type = ItemType(self.type)

    @classmethod
    def from_url(cls, url: str, *, title: str = "Untitled", salt: str | None = None, **kwargs: Any) -> "ItemDescriptor":
        """Build a descriptor whose id is derived from ``url``."""

        return cls(id=link_id(url, salt=salt), url=url, title=title, **kwargs)

    @property
    def tags(self) -> list[str]:
        return self.style_tags

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def with_changes(self, **changes: Any) -> "ItemDescriptor":
        return replace(self, **changes)

    def preferred_list_label(self, preferred: str | None = None) -> str:
        """Pick the label a list view should file this capture under."""

        resolved = (preferred or "").strip()
        if resolved:
            return resolved
        for candidate in (*self.categories, *self.style_tags):
            if candidate.strip():
                return candidate.strip()
        return DEFAULT_LIST_LABEL

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "descriptionText": self.description_text,
            "styleTags": list(self.style_tags),
            "categories": list(self.categories),
            "location": self.location,
            "price": self.price,
            "createdAt": format_timestamp(self.created_at),
            "type": self.type.value,
            "attributionID": self.attribution_id,
            "purpose": self.purpose,
            "wrappedLink": self.wrapped_link,
            "masterCaptureID": self.master_capture_id,
            "sessionID": self.session_id,
            "coverImageURL": self.cover_image_url,
            "placeID": self.place_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "purposes": list(self.purposes),
            "processingLog": list(self.processing_log),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ItemDescriptor":
        if not isinstance(data, dict):
            raise TypeError(f"Expected a descriptor object, got {type(data).__name__}")
        return cls(
            id=data["id"],
            url=data["url"],
            title=data["title"],
            description_text=data.get("descriptionText"),
            style_tags=list(data.get("styleTags") or []),
            categories=list(data.get("categories") or []),
            location=data.get("location"),
            price=data.get("price"),
            created_at=parse_timestamp(data["createdAt"]) if data.get("createdAt") else utcnow(),
            type=ItemType(data.get("type") or ItemType.WEB.value),
            attribution_id=data.get("attributionID"),
            purpose=data.get("purpose"),
            wrapped_link=data.get("wrappedLink"),
            master_capture_id=data.get("masterCaptureID"),
            session_id=data.get("sessionID"),
            cover_image_url=data.get("coverImageURL"),
            place_id=data.get("placeID"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            purposes=list(data.get("purposes") or []),
            processing_log=list(data.get("processingLog") or []),
        )


@dataclass(slots=True)
class QueueItem:
    """Envelope persisted as one queue file per capture."""

    action: str
    descriptor: ItemDescriptor
    source: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    payload: bytes | None = None
    payload_url: str | None = None
    attachments: list[bytes] | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()).upper())

    @property
    def purposes(self) -> list[str]:
        return self.descriptor.purposes

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "action": self.action,
            "descriptor": self.descriptor.to_dict(),
            "createdAt": format_timestamp(self.created_at),
        }
        if self.source is not None:
            data["source"] = self.source
        if self.payload is not None:
            data["payload"] = base64.b64encode(self.payload).decode("ascii")
        if self.payload_url is not None:
            data["payloadURL"] = self.payload_url
        if self.attachments is not None:
            data["attachments"] = [base64.b64encode(blob).decode("ascii") for blob in self.attachments]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QueueItem":
        if not isinstance(data, dict):
            raise TypeError(f"Expected a JSON object, got {type(data).__name__}")
        payload = data.get("payload")
        attachments = data.get("attachments")
        return cls(
            id=data["id"],
            action=data["action"],
            descriptor=ItemDescriptor.from_dict(data["descriptor"]),
            source=data.get("source"),
            created_at=parse_timestamp(data["createdAt"]),
            payload=base64.b64decode(payload) if payload is not None else None,
            payload_url=data.get("payloadURL"),
            attachments=[base64.b64decode(blob) for blob in attachments] if attachments is not None else None,
        )


@dataclass(frozen=True, slots=True)
class QueueRecord:
    """A queue item together with the file that backs it."""

    item: QueueItem
    path: Path


__all__ = [
    "DEFAULT_LIST_LABEL",
    "ItemDescriptor",
    "ItemType",
    "QueueItem",
    "QueueRecord",
    "format_timestamp",
    "parse_timestamp",
    "utcnow",
]
