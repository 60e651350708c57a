"""Flat directory of binary payloads referenced by processed items."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from capturesys.queue.store import atomic_write

_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\xff\xd8\xff", ".jpg"),
    (b"\x89PNG\r\n\x1a\n", ".png"),
    (b"GIF8", ".gif"),
    (b"%PDF", ".pdf"),
)


def guess_extension(data: bytes) -> str:
    for magic, extension in _SIGNATURES:
        if data.startswith(magic):
            return extension
    if data[4:8] == b"ftyp":
        return ".heic" if data[8:12] in {b"heic", b"heix", b"mif1"} else ".mp4"
    return ".bin"


class AssetStore:
    """Writes payloads atomically under ``<directory>/<name><ext>``."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def save(self, name: str, data: bytes) -> Path:
        if not name or "/" in name or "\\" in name or name.startswith("."):
            raise ValueError(f"Invalid asset name: {name!r}")
        path = self.directory / f"{name}{guess_extension(data)}"
        atomic_write(path, data)
        logger.debug("Saved asset {} ({} bytes)", path.name, len(data))
        return path

    def path_for(self, name: str) -> Path | None:
        matches = sorted(self.directory.glob(f"{name}.*"))
        return matches[0] if matches else None


__all__ = ["AssetStore", "guess_extension"]
