"""Pytest helpers for path configuration and shared fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from loguru import logger

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


@pytest.fixture(autouse=True)
def _isolate_link_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's exported link secret out of config tests."""
    monkeypatch.delenv("CAPTURESYS_LINK_SECRET", raising=False)


@pytest.fixture
def log_messages():
    """Collect Loguru messages emitted during a test."""

    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    try:
        yield messages
    finally:
        logger.remove(handler_id)
