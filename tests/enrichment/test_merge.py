"""Tests for the gap-filling merge rule."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from capturesys.enrichment import EnrichmentData, is_placeholder_title, merge_into_descriptor, merge_into_item
from capturesys.items import ProcessedItem
from capturesys.queue import ItemDescriptor


def _descriptor(**overrides: object) -> ItemDescriptor:
    values: dict[str, object] = {"title": "Original", "style_tags": ["existing"]}
    values.update(overrides)
    return ItemDescriptor.from_url("https://example.com/page", **values)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        (None, True),
        ("", True),
        ("   ", True),
        ("Untitled", True),
        ("https://example.com/page", True),
        ("www.example.com", True),
        ("example.com", True),
        ("Example Page", False),
    ],
)
def test_placeholder_titles(title: str | None, expected: bool) -> None:
    assert is_placeholder_title(title, "https://example.com/page") is expected


def test_existing_title_is_not_overwritten() -> None:
    merged = merge_into_descriptor(_descriptor(), EnrichmentData(title="New"), stage="test")

    assert merged.title == "Original"


def test_placeholder_title_is_filled() -> None:
    merged = merge_into_descriptor(_descriptor(title="Untitled"), EnrichmentData(title="New"), stage="test")

    assert merged.title == "New"


def test_tags_and_categories_are_unioned() -> None:
    merged = merge_into_descriptor(
        _descriptor(categories=["Cafe"]),
        EnrichmentData(style_tags=["existing", "fresh"], categories=["Bakery", "Cafe"]),
        stage="test",
    )

    assert merged.style_tags == ["existing", "fresh"]
    assert merged.categories == ["Cafe", "Bakery"]


def test_filled_fields_are_kept() -> None:
    merged = merge_into_descriptor(
        _descriptor(description_text="Mine", location="Here", price=3.0, latitude=1.0, longitude=2.0),
        EnrichmentData(description_text="Theirs", location="There", price=4.0, latitude=9.0, longitude=9.0),
        stage="test",
    )

    assert merged.description_text == "Mine"
    assert merged.location == "Here"
    assert merged.price == 3.0
    assert (merged.latitude, merged.longitude) == (1.0, 2.0)


def test_empty_fields_are_filled() -> None:
    merged = merge_into_descriptor(
        _descriptor(),
        EnrichmentData(
            description_text="Theirs",
            image="https://example.com/a.png",
            place_id="fsq-1",
            latitude=9.0,
            longitude=8.0,
        ),
        stage="test",
    )

    assert merged.description_text == "Theirs"
    assert merged.cover_image_url == "https://example.com/a.png"
    assert merged.place_id == "fsq-1"
    assert (merged.latitude, merged.longitude) == (9.0, 8.0)


def test_processing_log_is_appended() -> None:
    descriptor = _descriptor(processing_log=["[2024-01-01T00:00:00Z] Created"])
    merged = merge_into_descriptor(descriptor, EnrichmentData(title="x"), stage="web metadata")

    assert merged.processing_log[0] == "[2024-01-01T00:00:00Z] Created"
    assert merged.processing_log[1].endswith("Enriched with web metadata")
    assert descriptor.processing_log == ["[2024-01-01T00:00:00Z] Created"]


def test_merge_into_item_never_regresses() -> None:
    now = datetime(2024, 1, 2, tzinfo=timezone.utc)
    existing = ProcessedItem(
        id="a",
        url="https://example.com/page",
        title="Original",
        summary="Kept",
        tags=["news"],
        created_at=now,
        processing_log=["[x] first"],
    )
    incoming = ProcessedItem(
        id="a",
        url="https://example.com/page",
        title="New",
        summary="Replaced?",
        location="Somewhere",
        tags=["sport", "news"],
        created_at=now - timedelta(days=1),
        processing_log=["[x] first", "[y] second"],
    )

    merged = merge_into_item(existing, incoming)

    assert merged.title == "Original"
    assert merged.summary == "Kept"
    assert merged.location == "Somewhere"
    assert merged.tags == ["news", "sport"]
    assert merged.created_at == now - timedelta(days=1)
    assert merged.processing_log == ["[x] first", "[y] second"]


def test_merge_into_item_replaces_placeholder_title() -> None:
    existing = ProcessedItem(id="a", url="https://example.com/page", title="example.com")
    incoming = ProcessedItem(id="a", url="https://example.com/page", title="Real Title")

    assert merge_into_item(existing, incoming).title == "Real Title"
