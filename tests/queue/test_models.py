"""Tests for the capture descriptor model."""

from __future__ import annotations

from datetime import datetime, timezone

from capturesys.links import link_id
from capturesys.queue import ItemDescriptor, ItemType
from capturesys.queue.models import format_timestamp, parse_timestamp


def test_from_url_derives_id() -> None:
    descriptor = ItemDescriptor.from_url("https://example.com/page", salt="tenant")

    assert descriptor.id == link_id("https://example.com/page", salt="tenant")
    assert descriptor.title == "Untitled"
    assert descriptor.type is ItemType.WEB


def test_legacy_purpose_folds_into_purposes() -> None:
    descriptor = ItemDescriptor(
        id="abc",
        url="https://example.com",
        title="Example",
        purpose="research",
        purposes=["reading", "research"],
    )

    assert descriptor.purposes == ["reading", "research"]


def test_preferred_list_label() -> None:
    descriptor = ItemDescriptor(id="abc", url="u", title="t", categories=["", "Coffee"], style_tags=["cozy"])

    assert descriptor.preferred_list_label("  Trips ") == "Trips"
    assert descriptor.preferred_list_label() == "Coffee"
    assert ItemDescriptor(id="x", url="u", title="t").preferred_list_label() == "Capture"


def test_dict_round_trip_uses_wire_keys() -> None:
    descriptor = ItemDescriptor(
        id="abc",
        url="https://example.com",
        title="Example",
        description_text="Body",
        type=ItemType.QR_CODE,
        master_capture_id="parent",
        cover_image_url="file:///tmp/a.jpg",
        processing_log=["[2024-01-01T00:00:00Z] Created"],
    )
    data = descriptor.to_dict()

    assert data["type"] == "qrCode"
    assert data["descriptionText"] == "Body"
    assert data["masterCaptureID"] == "parent"
    assert data["coverImageURL"] == "file:///tmp/a.jpg"
    assert ItemDescriptor.from_dict(data) == descriptor


def test_timestamps_use_z_suffix() -> None:
    value = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    assert format_timestamp(value) == "2024-01-02T03:04:05Z"
    assert parse_timestamp("2024-01-02T03:04:05Z") == value
