"""Drain the capture queue: persist payloads, enrich, merge and upsert."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Sequence
from urllib.parse import urlsplit

from loguru import logger

from capturesys.config.enrichment import ServiceConfig
from capturesys.config.pipeline import PipelineConfig
from capturesys.config.queue import QueueConfig
from capturesys.enrichment.base import ContextualEnrichmentService, LinkEnrichmentService
from capturesys.enrichment.client import HttpClient
from capturesys.enrichment.composite import CompositeLinkService
from capturesys.enrichment.duckduckgo import DuckDuckGoService
from capturesys.enrichment.foursquare import FoursquareService
from capturesys.enrichment.merge import (
    is_placeholder_title,
    log_line,
    merge_into_descriptor,
    merge_into_item,
    place_conflict,
)
from capturesys.enrichment.models import Coordinates, EnrichmentData
from capturesys.enrichment.web import WebMetadataService
from capturesys.items.models import ProcessedItem, ProcessingStatus
from capturesys.items.store import ItemStore, JsonItemStore
from capturesys.links.errors import LinkError
from capturesys.links.wrapper import LinkWrapper
from capturesys.queue.models import ItemDescriptor, ItemType, QueueItem, QueueRecord, utcnow
from capturesys.queue.store import QueueStore

from .assets import AssetStore

if TYPE_CHECKING:
    from capturesys.config.app import AppConfig

SAVE_ACTION = "save"


class PipelineError(RuntimeError):
    """Raised when a queue record cannot be committed to the item store."""

    def __init__(self, item_id: str, message: str) -> None:
        super().__init__(f"{item_id}: {message}")
        self.item_id = item_id


@dataclass(slots=True)
class DrainReport:
    processed: int = 0
    failed: int = 0
    skipped: int = 0
    failed_ids: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.processed + self.failed + self.skipped


@dataclass(slots=True)
class _StoredPayload:
    ref: str
    size: int
    filename: str | None = None


class EnrichmentPipeline:
    """Single consumer of a :class:`QueueStore` feeding an :class:`ItemStore`.

    Records are processed one at a time, oldest first. A record leaves the
    queue only after its item (and any attachments) have been written; a
    structural failure marks the item ``failed`` and keeps the record queued
    for the next drain.
    """

    def __init__(
        self,
        queue: QueueStore,
        items: ItemStore,
        asset_store: AssetStore,
        link_service: LinkEnrichmentService | Sequence[LinkEnrichmentService] | None = None,
        venue_service: ContextualEnrichmentService | None = None,
        web_service: ContextualEnrichmentService | None = None,
        link_wrapper: LinkWrapper | None = None,
    ) -> None:
        self.queue = queue
        self.items = items
        self.asset_store = asset_store
        if isinstance(link_service, (list, tuple)):
            link_service = CompositeLinkService(link_service) if link_service else None
        self.link_service = link_service
        self.venue_service = venue_service
        self.web_service = web_service
        self.link_wrapper = link_wrapper

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def drain(self) -> DrainReport:
        report = DrainReport()
        records = self.queue.pending_entries()
        if not records:
            logger.debug("Queue is empty; nothing to drain")
            return report

        logger.info("Draining {} queued capture(s)", len(records))
        for record in records:
            try:
                item = self.process_record(record)
            except PipelineError as exc:
                report.failed += 1
                report.failed_ids.append(exc.item_id)
                logger.error("Capture {} left in queue: {}", record.path.name, exc)
                continue
            if item is None:
                report.skipped += 1
            else:
                report.processed += 1

        logger.info(
            "Drain complete: processed={}, failed={}, skipped={}",
            report.processed,
            report.failed,
            report.skipped,
        )
        return report

    def process_record(self, record: QueueRecord) -> ProcessedItem | None:
        """Process one queue record, returning the stored item.

        Returns ``None`` for records whose action is not understood; those are
        dropped from the queue. Raises :class:`PipelineError` when the item
        could not be stored.
        """

        queue_item = record.item
        if queue_item.action != SAVE_ACTION:
            logger.warning("Skipping capture {} with unsupported action '{}'", queue_item.id, queue_item.action)
            self.queue.remove(record)
            return None

        descriptor = queue_item.descriptor
        logger.debug("Processing capture {} ({})", descriptor.id, descriptor.url)
        try:
            descriptor, stored = self._store_payload(descriptor, queue_item)
            descriptor = self._enrich_link(descriptor)
            descriptor = self._enrich_context(descriptor)
            item, conflict = self._upsert(descriptor, queue_item, stored)
            self._store_attachments(item, queue_item)
            processed = self._commit(item, conflict)
        except Exception as exc:
            self._mark_failed(descriptor, queue_item, exc)
            raise PipelineError(descriptor.id, str(exc)) from exc

        self.queue.remove(record)
        return processed

    def resume_stalled(self) -> list[str]:
        """Return items left in ``processing`` by an interrupted drain to ``queued``."""

        resumed: list[str] = []
        for item in self.items.query(ProcessingStatus.PROCESSING):
            item.status = ProcessingStatus.QUEUED
            item.updated_at = utcnow()
            item.log("Reset after interrupted processing")
            self.items.put(item)
            resumed.append(item.id)
        if resumed:
            logger.info("Reset {} stalled item(s) to queued", len(resumed))
        return resumed

    def archive(self, item_id: str) -> ProcessedItem:
        item = self.items.get(item_id)
        if item is None:
            raise KeyError(item_id)
        if item.status != ProcessingStatus.READY:
            raise PipelineError(item_id, f"only ready items can be archived (status is {item.status.value})")
        item.status = ProcessingStatus.ARCHIVED
        item.updated_at = utcnow()
        item.log("Archived")
        self.items.put(item)
        logger.info("Archived item {}", item_id)
        return item

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def _store_payload(
        self, descriptor: ItemDescriptor, queue_item: QueueItem
    ) -> tuple[ItemDescriptor, _StoredPayload | None]:
        if queue_item.payload is not None:
            path = self.asset_store.save(descriptor.id, queue_item.payload)
            stored = _StoredPayload(ref=str(path), size=len(queue_item.payload), filename=path.name)
            descriptor = descriptor.with_changes(cover_image_url=path.resolve().as_uri())
            return descriptor, stored
        if queue_item.payload_url:
            return descriptor, _StoredPayload(ref=queue_item.payload_url, size=0)
        return descriptor, None

    def _enrich_link(self, descriptor: ItemDescriptor) -> ItemDescriptor:
        if self.link_service is None or urlsplit(descriptor.url).scheme.lower() not in {"http", "https"}:
            return descriptor
        try:
            data = self.link_service.enrich(descriptor.url)
        except Exception as exc:
            logger.warning("{} lookup failed for {}: {}", self.link_service.name, descriptor.url, exc)
            return descriptor
        if data is None or data.is_empty:
            return descriptor
        return merge_into_descriptor(descriptor, data, stage=self.link_service.name)

    def _enrich_context(self, descriptor: ItemDescriptor) -> ItemDescriptor:
        venue = self._lookup_venue(descriptor)
        if venue is not None and self.venue_service is not None:
            descriptor = merge_into_descriptor(descriptor, venue, stage=self.venue_service.name)

        if self.web_service is None:
            return descriptor
        if venue is not None:
            query = venue.title
        elif self.venue_service is None and not _is_web_url(descriptor.url):
            # Without a venue lookup, free-text captures query by their own title.
            query = None if is_placeholder_title(descriptor.title, descriptor.url) else descriptor.title
        else:
            query = None
        if not query:
            return descriptor

        coordinates = _coordinates(descriptor)
        try:
            web = self.web_service.enrich_query(query, coordinates)
        except Exception as exc:
            logger.warning("{} lookup failed for '{}': {}", self.web_service.name, query, exc)
            return descriptor
        if web is None or web.is_empty:
            return descriptor
        return merge_into_descriptor(descriptor, web, stage=self.web_service.name)

    def _lookup_venue(self, descriptor: ItemDescriptor) -> EnrichmentData | None:
        if self.venue_service is None:
            return None
        coordinates = _coordinates(descriptor)
        try:
            if coordinates is not None:
                data = self.venue_service.enrich_location(coordinates)
            elif not is_placeholder_title(descriptor.title, descriptor.url):
                data = self.venue_service.enrich_query(descriptor.title)
            else:
                return None
        except Exception as exc:
            logger.warning("{} lookup failed for {}: {}", self.venue_service.name, descriptor.id, exc)
            return None
        if data is None or data.is_empty:
            return None
        return data

    def _upsert(
        self,
        descriptor: ItemDescriptor,
        queue_item: QueueItem,
        stored: _StoredPayload | None,
    ) -> tuple[ProcessedItem, str | None]:
        incoming = ProcessedItem.from_descriptor(descriptor, source=queue_item.source)
        if stored is not None:
            incoming.payload_ref = stored.ref
            incoming.file_size = stored.size or None
            incoming.filename = stored.filename

        existing = self.items.get(descriptor.id)
        conflict = None
        if existing is None:
            item = incoming
        else:
            conflict = place_conflict(existing, incoming)
            item = merge_into_item(existing, incoming)
        item.status = ProcessingStatus.PROCESSING
        item.updated_at = utcnow()
        self.items.put(item)

        if item.wrapped_link is None and self.link_wrapper is not None and item.url:
            try:
                item.wrapped_link = self.link_wrapper.wrap(item.url, title=item.title)
            except LinkError as exc:
                logger.warning("Could not wrap link for {}: {}", item.id, exc)
        return item, conflict

    def _commit(self, item: ProcessedItem, conflict: str | None) -> ProcessedItem:
        now = utcnow()
        item.status = ProcessingStatus.REVIEW_REQUIRED if conflict else ProcessingStatus.READY
        item.reference_count += 1
        item.last_processed_at = now
        item.updated_at = now
        item.processing_log.append(log_line("Processed"))
        if conflict:
            item.processing_log.append(log_line(conflict))
            logger.warning("Capture {} needs review: {}", item.id, conflict)
        self.items.put(item)
        logger.debug("Stored capture {} as {} (references={})", item.id, item.status.value, item.reference_count)
        return item

    def _store_attachments(self, parent: ProcessedItem, queue_item: QueueItem) -> None:
        for index, blob in enumerate(queue_item.attachments or [], start=1):
            child_id = f"{parent.id}-attachment-{index}"
            path = self.asset_store.save(child_id, blob)
            now = utcnow()
            child = self.items.get(child_id) or ProcessedItem(id=child_id, created_at=now)
            child.url = child.url or path.resolve().as_uri()
            child.title = child.title or f"{parent.title or 'Capture'} (attachment {index})"
            child.entity_type = ItemType.IMAGE.value
            child.source = queue_item.source
            child.master_capture_id = parent.id
            child.session_id = parent.session_id or parent.id
            child.cover_image_url = path.resolve().as_uri()
            child.payload_ref = str(path)
            child.file_size = len(blob)
            child.filename = path.name
            child.status = ProcessingStatus.READY
            child.last_processed_at = now
            child.updated_at = now
            self.items.put(child)
        if queue_item.attachments:
            logger.debug("Stored {} attachment(s) for {}", len(queue_item.attachments), parent.id)

    def _mark_failed(self, descriptor: ItemDescriptor, queue_item: QueueItem, exc: Exception) -> None:
        try:
            item = self.items.get(descriptor.id)
            if item is None:
                item = ProcessedItem.from_descriptor(descriptor, source=queue_item.source)
            item.status = ProcessingStatus.FAILED
            item.failure_count += 1
            item.updated_at = utcnow()
            item.log(f"Processing failed: {exc}")
            self.items.put(item)
        except Exception:
            logger.exception("Could not record failure for capture {}", descriptor.id)


def _is_web_url(url: str) -> bool:
    return urlsplit(url).scheme.lower() in {"http", "https"}


def _coordinates(descriptor: ItemDescriptor) -> Coordinates | None:
    if not descriptor.has_coordinates:
        return None
    assert descriptor.latitude is not None and descriptor.longitude is not None
    return Coordinates(descriptor.latitude, descriptor.longitude)


def build_pipeline(config: "AppConfig", base_path: Path | None = None) -> EnrichmentPipeline:
    """Wire a pipeline from configuration, resolving paths under ``data_root``."""

    root = resolve_data_root(config, base_path)
    queue_config = config.queue or QueueConfig()
    pipeline_config = config.pipeline or PipelineConfig()

    queue = QueueStore(_resolve(root, queue_config.directory))
    items = JsonItemStore(_resolve(root, pipeline_config.items_dir))
    assets = AssetStore(_resolve(root, pipeline_config.assets_dir))

    link_services: list[LinkEnrichmentService] = []
    venue_service = web_service = None
    enrichment = config.enrichment
    if enrichment is not None:
        if enrichment.web_metadata is not None and enrichment.web_metadata.enabled:
            link_services.append(WebMetadataService(_client(enrichment.web_metadata)))
        if enrichment.foursquare is not None and enrichment.foursquare.enabled:
            venue_service = FoursquareService(
                enrichment.foursquare.api_key_secret,
                _client(enrichment.foursquare),
                base_url=enrichment.foursquare.base_url,
            )
        if enrichment.duckduckgo is not None and enrichment.duckduckgo.enabled:
            web_service = DuckDuckGoService(
                _client(enrichment.duckduckgo),
                base_url=enrichment.duckduckgo.base_url,
            )

    wrapper = None
    if config.links is not None and pipeline_config.wrap_links:
        wrapper = LinkWrapper.from_config(config.links)

    return EnrichmentPipeline(
        queue,
        items,
        assets,
        link_service=link_services,
        venue_service=venue_service,
        web_service=web_service,
        link_wrapper=wrapper,
    )


def resolve_data_root(config: "AppConfig", base_path: Path | None = None) -> Path:
    base = Path(base_path) if base_path is not None else Path.cwd()
    if config.data_root is None:
        return base
    return _resolve(base, config.data_root)


def _resolve(root: Path, value: Path | str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else root / path


def _client(service_config: ServiceConfig) -> HttpClient:
    return HttpClient(
        timeout=service_config.timeout,
        max_retries=service_config.max_retries,
        retry_delay=service_config.retry_delay,
    )


__all__ = [
    "DrainReport",
    "EnrichmentPipeline",
    "PipelineError",
    "SAVE_ACTION",
    "build_pipeline",
    "resolve_data_root",
]
