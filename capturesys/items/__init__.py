"""Processed item records and their stores."""

from capturesys.items.models import ProcessedItem, ProcessingStatus
from capturesys.items.store import InMemoryItemStore, ItemStore, JsonItemStore

__all__ = [
    "ProcessedItem",
    "ProcessingStatus",
    "ItemStore",
    "InMemoryItemStore",
    "JsonItemStore",
]
