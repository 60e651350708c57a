from __future__ import annotations

from pathlib import Path

import pytest

from capturesys.pipeline import AssetStore
from capturesys.pipeline.assets import guess_extension


@pytest.mark.parametrize(
    ("data", "extension"),
    [
        (b"\xff\xd8\xff\xe0rest", ".jpg"),
        (b"\x89PNG\r\n\x1a\nrest", ".png"),
        (b"GIF89a", ".gif"),
        (b"%PDF-1.7", ".pdf"),
        (b"\x00\x00\x00\x18ftypheic", ".heic"),
        (b"\x00\x00\x00\x18ftypisom", ".mp4"),
        (b"plain bytes", ".bin"),
    ],
)
def test_guess_extension(data: bytes, extension: str) -> None:
    assert guess_extension(data) == extension


def test_save_writes_atomically(tmp_path: Path) -> None:
    store = AssetStore(tmp_path / "assets")

    path = store.save("abc", b"%PDF-1.7 body")

    assert path == tmp_path / "assets" / "abc.pdf"
    assert path.read_bytes() == b"%PDF-1.7 body"
    assert store.path_for("abc") == path
    assert store.path_for("missing") is None
    assert [entry.name for entry in store.directory.iterdir()] == ["abc.pdf"]


def test_save_rejects_path_like_names(tmp_path: Path) -> None:
    store = AssetStore(tmp_path)

    with pytest.raises(ValueError):
        store.save("../escape", b"data")
