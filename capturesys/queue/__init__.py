"""Durable capture queue and the capture data model."""

from capturesys.queue.models import (
    ItemDescriptor,
    ItemType,
    QueueItem,
    QueueRecord,
    format_timestamp,
    parse_timestamp,
)
from capturesys.queue.store import QueueDecodeError, QueueStore

__all__ = [
    "ItemDescriptor",
    "ItemType",
    "QueueItem",
    "QueueRecord",
    "QueueDecodeError",
    "QueueStore",
    "format_timestamp",
    "parse_timestamp",
]
