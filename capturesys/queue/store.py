"""Crash-safe, file-per-item capture queue.

Each pending capture lives in ``<directory>/<epochMillis>-<uuid>.json``.
Writes go to a temporary file in the same directory and are renamed into
place, so a reader never sees a partially written entry. The store does not
lock the directory: it assumes a single drainer per directory and relies on
distinct timestamp+uuid filenames to keep concurrent producers apart.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from loguru import logger

from .models import ItemDescriptor, QueueItem, QueueRecord


class QueueDecodeError(RuntimeError):
    """Raised when a pending queue file cannot be decoded."""

    def __init__(self, path: Path, reason: Exception) -> None:
        super().__init__(f"Cannot decode queue entry {path.name}: {reason}")
        self.path = path


class QueueStore:
    """Durable queue of pending ingestion items."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def enqueue(self, item: QueueItem) -> QueueRecord:
        """Persist ``item`` atomically and return a record pointing at it."""

        path = self.directory / self._filename(item)
        data = json.dumps(item.to_dict(), sort_keys=True, ensure_ascii=False)
        atomic_write(path, data.encode("utf-8"))
        logger.debug("Enqueued {} ({}) at {}", item.id, item.action, path.name)
        return QueueRecord(item=item, path=path)

    def enqueue_descriptor(
        self,
        descriptor: ItemDescriptor,
        *,
        action: str = "save",
        source: str | None = None,
        payload: bytes | None = None,
        payload_url: str | None = None,
        attachments: list[bytes] | None = None,
    ) -> QueueRecord:
        item = QueueItem(
            action=action,
            descriptor=descriptor,
            source=source,
            payload=payload,
            payload_url=payload_url,
            attachments=attachments,
        )
        return self.enqueue(item)

    def pending_entries(self) -> list[QueueRecord]:
        """Return every pending entry, oldest ``created_at`` first.

        A file that cannot be read or decoded raises :class:`QueueDecodeError`
        rather than being skipped, so a corrupt capture is never lost silently.
        """

        records: list[QueueRecord] = []
        for path in self._pending_files():
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                item = QueueItem.from_dict(raw)
            except FileNotFoundError:
                # Removed by a concurrent drain between listing and reading.
                continue
            except (ValueError, KeyError, TypeError, AttributeError) as exc:
                raise QueueDecodeError(path, exc) from exc
            records.append(QueueRecord(item=item, path=path))
        return sorted(records, key=lambda record: record.item.created_at)

    def remove(self, record: QueueRecord) -> None:
        """Delete the file backing ``record``; a missing file is not an error."""

        try:
            record.path.unlink()
        except FileNotFoundError:
            logger.debug("Queue entry {} already removed", record.path.name)

    def remove_all(self) -> None:
        for record in self.pending_entries():
            self.remove(record)

    def __len__(self) -> int:
        return len(self._pending_files())

    def _pending_files(self) -> list[Path]:
        return [
            path
            for path in self.directory.iterdir()
            if path.is_file() and not path.name.startswith(".") and path.suffix.lower() == ".json"
        ]

    @staticmethod
    def _filename(item: QueueItem) -> str:
        millis = int(item.created_at.timestamp() * 1000)
        return f"{millis}-{item.id}.json"


def atomic_write(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` via a temporary sibling file and rename."""

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as fp:
            fp.write(data)
            fp.flush()
            os.fsync(fp.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


__all__ = ["QueueDecodeError", "QueueStore", "atomic_write"]
