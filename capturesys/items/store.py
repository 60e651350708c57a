"""Key-indexed upsert stores for processed items."""

from __future__ import annotations

import copy
import json
from abc import ABC, abstractmethod
from pathlib import Path

from loguru import logger

from capturesys.queue.store import atomic_write

from .models import ProcessedItem, ProcessingStatus

_SORTABLE_FIELDS = {"created_at", "updated_at", "last_processed_at", "title", "id"}


class ItemStore(ABC):
    """Put-by-id, get-by-id and query-by-status over processed items."""

    @abstractmethod
    def get(self, item_id: str) -> ProcessedItem | None:
        raise NotImplementedError

    @abstractmethod
    def put(self, item: ProcessedItem) -> None:
        """Create or replace the record stored under ``item.id``."""
        raise NotImplementedError

    @abstractmethod
    def all(self) -> list[ProcessedItem]:
        raise NotImplementedError

    def query(
        self,
        status: ProcessingStatus | None = None,
        *,
        sort_by: str = "created_at",
        descending: bool = False,
    ) -> list[ProcessedItem]:
        if sort_by not in _SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort items by '{sort_by}'")
        items = self.all()
        if status is not None:
            items = [item for item in items if item.status == status]

        def _key(item: ProcessedItem) -> tuple[bool, object]:
            value = getattr(item, sort_by)
            return (value is None, value if value is not None else "")

        return sorted(items, key=_key, reverse=descending)


class InMemoryItemStore(ItemStore):
    """Dict-backed store used for tests and dry runs."""

    def __init__(self) -> None:
        self._items: dict[str, ProcessedItem] = {}

    def get(self, item_id: str) -> ProcessedItem | None:
        item = self._items.get(item_id)
        return copy.deepcopy(item) if item is not None else None

    def put(self, item: ProcessedItem) -> None:
        self._items[item.id] = copy.deepcopy(item)

    def all(self) -> list[ProcessedItem]:
        return [copy.deepcopy(item) for item in self._items.values()]

    def __len__(self) -> int:
        return len(self._items)


class JsonItemStore(ItemStore):
    """One ``<id>.json`` file per item; last writer wins per id."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def get(self, item_id: str) -> ProcessedItem | None:
        path = self._path(item_id)
        if not path.exists():
            return None
        return ProcessedItem.from_dict(json.loads(path.read_text(encoding="utf-8")))

    def put(self, item: ProcessedItem) -> None:
        data = json.dumps(item.to_dict(), sort_keys=True, ensure_ascii=False, indent=2)
        atomic_write(self._path(item.id), data.encode("utf-8"))
        logger.debug("Stored item {} ({})", item.id, item.status.value)

    def all(self) -> list[ProcessedItem]:
        items: list[ProcessedItem] = []
        for path in sorted(self.directory.glob("*.json")):
            try:
                items.append(ProcessedItem.from_dict(json.loads(path.read_text(encoding="utf-8"))))
            except (ValueError, KeyError, TypeError, AttributeError) as exc:
                logger.warning("Skipping unreadable item file {}: {}", path.name, exc)
        return items

    def __len__(self) -> int:
        return sum(1 for _ in self.directory.glob("*.json"))

    def _path(self, item_id: str) -> Path:
        if not item_id or "/" in item_id or "\\" in item_id or item_id.startswith("."):
            raise ValueError(f"Invalid item id: {item_id!r}")
        return self.directory / f"{item_id}.json"


__all__ = ["ItemStore", "InMemoryItemStore", "JsonItemStore"]
