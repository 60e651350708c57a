"""Tests for processed item stores."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from capturesys.items import InMemoryItemStore, ItemStore, JsonItemStore, ProcessedItem, ProcessingStatus
from capturesys.queue import ItemDescriptor


@pytest.fixture(params=["memory", "json"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> ItemStore:
    if request.param == "memory":
        return InMemoryItemStore()
    return JsonItemStore(tmp_path / "items")


def test_put_then_get(store: ItemStore) -> None:
    item = ProcessedItem(id="a", url="https://example.com", title="Example", tags=["news"])
    store.put(item)

    loaded = store.get("a")
    assert loaded is not None
    assert loaded.title == "Example"
    assert loaded.tags == ["news"]
    assert store.get("missing") is None


def test_put_replaces_existing(store: ItemStore) -> None:
    store.put(ProcessedItem(id="a", title="First"))
    store.put(ProcessedItem(id="a", title="Second"))

    assert [item.title for item in store.all()] == ["Second"]


def test_query_filters_and_sorts(store: ItemStore) -> None:
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    store.put(ProcessedItem(id="b", created_at=base + timedelta(days=2), status=ProcessingStatus.READY))
    store.put(ProcessedItem(id="a", created_at=base + timedelta(days=1), status=ProcessingStatus.READY))
    store.put(ProcessedItem(id="c", created_at=base, status=ProcessingStatus.FAILED))

    assert [item.id for item in store.query(ProcessingStatus.READY)] == ["a", "b"]
    assert [item.id for item in store.query(sort_by="created_at", descending=True)] == ["b", "a", "c"]
    assert [item.id for item in store.query(ProcessingStatus.ARCHIVED)] == []


def test_query_rejects_unknown_sort(store: ItemStore) -> None:
    with pytest.raises(ValueError):
        store.query(sort_by="price")


def test_memory_store_returns_copies() -> None:
    store = InMemoryItemStore()
    store.put(ProcessedItem(id="a", tags=["one"]))

    loaded = store.get("a")
    assert loaded is not None
    loaded.tags.append("two")
    assert store.get("a").tags == ["one"]  # type: ignore[union-attr]


def test_json_store_round_trips_every_field(tmp_path: Path) -> None:
    store = JsonItemStore(tmp_path)
    now = datetime(2024, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    item = ProcessedItem(
        id="full",
        url="https://example.com",
        title="Full",
        summary="Summary",
        entity_type="place",
        categories=["Cafe"],
        location="1 Main St",
        price=2.0,
        rating=8.5,
        created_at=now,
        status=ProcessingStatus.REVIEW_REQUIRED,
        updated_at=now,
        reference_count=3,
        last_processed_at=now,
        purposes=["visit"],
        processing_log=["[2024-03-04T05:06:07Z] Processed"],
        failure_count=1,
        themes=["coffee"],
        file_size=42,
        filename="full.jpg",
    )
    store.put(item)

    assert store.get("full") == item
    assert (tmp_path / "full.json").exists()


def test_json_store_skips_unreadable_files(tmp_path: Path) -> None:
    store = JsonItemStore(tmp_path)
    store.put(ProcessedItem(id="ok"))
    (tmp_path / "broken.json").write_text("{", encoding="utf-8")
    (tmp_path / "list.json").write_text("[]", encoding="utf-8")
    (tmp_path / "stamp.json").write_text('{"id": "stamp", "createdAt": 5}', encoding="utf-8")

    assert [item.id for item in store.all()] == ["ok"]


def test_json_store_rejects_path_like_ids(tmp_path: Path) -> None:
    store = JsonItemStore(tmp_path)

    with pytest.raises(ValueError):
        store.put(ProcessedItem(id="../escape"))


def test_from_descriptor_projects_fields() -> None:
    descriptor = ItemDescriptor.from_url(
        "https://example.com/page",
        title="Page",
        style_tags=["news"],
        categories=["Media"],
        purposes=["read"],
    )
    item = ProcessedItem.from_descriptor(descriptor, source="cli")

    assert item.id == descriptor.id
    assert item.status is ProcessingStatus.QUEUED
    assert item.entity_type == "web"
    assert item.tags == ["news"]
    assert item.categories == ["Media"]
    assert item.purposes == ["read"]
    assert item.source == "cli"
