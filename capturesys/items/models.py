"""Durable, queryable record produced by the enrichment pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from capturesys.queue.models import ItemDescriptor, format_timestamp, parse_timestamp, utcnow


class ProcessingStatus(str, Enum):
    """Lifecycle of a processed item."""

    QUEUED = "queued"
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"
    REVIEW_REQUIRED = "reviewRequired"
    ARCHIVED = "archived"


@dataclass(slots=True)
class ProcessedItem:
    """Canonical stored record for a capture.

    Only the pipeline mutates these; presentation code reads them.
    """

    id: str
    url: str | None = None
    title: str | None = None
    summary: str | None = None
    entity_type: str | None = None
    tags: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    location: str | None = None
    price: float | None = None
    rating: float | None = None
    created_at: datetime = field(default_factory=utcnow)
    status: ProcessingStatus = ProcessingStatus.QUEUED
    source: str | None = None
    updated_at: datetime = field(default_factory=utcnow)
    reference_count: int = 0
    last_processed_at: datetime | None = None
    wrapped_link: str | None = None
    payload_ref: str | None = None
    attribution_id: str | None = None
    master_capture_id: str | None = None
    session_id: str | None = None
    cover_image_url: str | None = None
    place_id: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    purposes: list[str] = field(default_factory=list)
    processing_log: list[str] = field(default_factory=list)
    failure_count: int = 0
    transcription: str | None = None
    themes: list[str] = field(default_factory=list)
    media_type: str | None = None
    file_size: int | None = None
    filename: str | None = None

    def __post_init__(self) -> None:
        self.status = ProcessingStatus(self.status)

    @classmethod
    def from_descriptor(cls, descriptor: ItemDescriptor, *, source: str | None = None) -> "ProcessedItem":
        """Project a descriptor onto a fresh record in the ``queued`` state."""

        return cls(
            id=descriptor.id,
            url=descriptor.url,
            title=descriptor.title,
            summary=descriptor.description_text,
            entity_type=descriptor.type.value,
            tags=list(descriptor.style_tags),
            categories=list(descriptor.categories),
            location=descriptor.location,
            price=descriptor.price,
            created_at=descriptor.created_at,
            source=source,
            wrapped_link=descriptor.wrapped_link,
            attribution_id=descriptor.attribution_id,
            master_capture_id=descriptor.master_capture_id,
            session_id=descriptor.session_id,
            cover_image_url=descriptor.cover_image_url,
            place_id=descriptor.place_id,
            latitude=descriptor.latitude,
            longitude=descriptor.longitude,
            purposes=list(descriptor.purposes),
            processing_log=list(descriptor.processing_log),
        )

    def log(self, message: str, *, at: datetime | None = None) -> None:
        self.processing_log.append(f"[{format_timestamp(at or utcnow())}] {message}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "summary": self.summary,
            "entityType": self.entity_type,
            "tags": list(self.tags),
            "categories": list(self.categories),
            "location": self.location,
            "price": self.price,
            "rating": self.rating,
            "createdAt": format_timestamp(self.created_at),
            "status": self.status.value,
            "source": self.source,
            "updatedAt": format_timestamp(self.updated_at),
            "referenceCount": self.reference_count,
            "lastProcessedAt": format_timestamp(self.last_processed_at) if self.last_processed_at else None,
            "wrappedLink": self.wrapped_link,
            "payloadRef": self.payload_ref,
            "attributionID": self.attribution_id,
            "masterCaptureID": self.master_capture_id,
            "sessionID": self.session_id,
            "coverImageURL": self.cover_image_url,
            "placeID": self.place_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "purposes": list(self.purposes),
            "processingLog": list(self.processing_log),
            "failureCount": self.failure_count,
            "transcription": self.transcription,
            "themes": list(self.themes),
            "mediaType": self.media_type,
            "fileSize": self.file_size,
            "filename": self.filename,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProcessedItem":
        if not isinstance(data, dict):
            raise TypeError(f"Expected a JSON object, got {type(data).__name__}")
        last_processed = data.get("lastProcessedAt")
        return cls(
            id=data["id"],
            url=data.get("url"),
            title=data.get("title"),
            summary=data.get("summary"),
            entity_type=data.get("entityType"),
            tags=list(data.get("tags") or []),
            categories=list(data.get("categories") or []),
            location=data.get("location"),
            price=data.get("price"),
            rating=data.get("rating"),
            created_at=parse_timestamp(data["createdAt"]),
            status=ProcessingStatus(data.get("status", ProcessingStatus.QUEUED.value)),
            source=data.get("source"),
            updated_at=parse_timestamp(data["updatedAt"]),
            reference_count=int(data.get("referenceCount", 0)),
            last_processed_at=parse_timestamp(last_processed) if last_processed else None,
            wrapped_link=data.get("wrappedLink"),
            payload_ref=data.get("payloadRef"),
            attribution_id=data.get("attributionID"),
            master_capture_id=data.get("masterCaptureID"),
            session_id=data.get("sessionID"),
            cover_image_url=data.get("coverImageURL"),
            place_id=data.get("placeID"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            purposes=list(data.get("purposes") or []),
            processing_log=list(data.get("processingLog") or []),
            failure_count=int(data.get("failureCount", 0)),
            transcription=data.get("transcription"),
            themes=list(data.get("themes") or []),
            media_type=data.get("mediaType"),
            file_size=data.get("fileSize"),
            filename=data.get("filename"),
        )


__all__ = ["ProcessedItem", "ProcessingStatus"]
