"""Link metadata lookup from a page's HTML head."""

from __future__ import annotations

from html.parser import HTMLParser
from urllib.parse import urljoin

import requests
from loguru import logger

from .base import LinkEnrichmentService
from .client import HttpClient
from .models import EnrichmentData

_MAX_BYTES = 512 * 1024
_CHUNK_SIZE = 16 * 1024


class _HeadParser(HTMLParser):
    """Collects ``<title>`` and ``<meta>`` values until ``</head>``."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.meta: dict[str, str] = {}
        self.title_parts: list[str] = []
        self._in_title = False
        self.done = False

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if self.done:
            return
        if tag == "title":
            self._in_title = True
        elif tag == "meta":
            values = {key.lower(): (value or "") for key, value in attrs}
            key = (values.get("property") or values.get("name") or "").lower()
            content = values.get("content", "").strip()
            if key and content:
                if key == "article:tag" and key in self.meta:
                    self.meta[key] = f"{self.meta[key]},{content}"
                else:
                    self.meta.setdefault(key, content)

    def handle_endtag(self, tag: str) -> None:
        if tag == "title":
            self._in_title = False
        elif tag == "head":
            self.done = True

    def handle_data(self, data: str) -> None:
        if self._in_title and not self.done:
            self.title_parts.append(data)

    @property
    def title(self) -> str | None:
        value = " ".join("".join(self.title_parts).split())
        return value or None


def parse_html_metadata(html: str, base_url: str) -> EnrichmentData | None:
    """Extract OpenGraph / standard meta tags from ``html``."""

    parser = _HeadParser()
    parser.feed(html)
    parser.close()
    meta = parser.meta

    title = meta.get("og:title") or meta.get("twitter:title") or parser.title
    description = meta.get("og:description") or meta.get("description") or meta.get("twitter:description")
    image = meta.get("og:image") or meta.get("twitter:image")
    keywords = meta.get("keywords", "") + "," + meta.get("article:tag", "")
    tags = [keyword.strip().lower() for keyword in keywords.split(",") if keyword.strip()]
    section = meta.get("article:section")

    data = EnrichmentData(
        title=title,
        description_text=description,
        image=urljoin(base_url, image) if image else None,
        categories=[section] if section else [],
        style_tags=list(dict.fromkeys(tags)),
        site_name=meta.get("og:site_name"),
    )
    return None if data.is_empty else data


class WebMetadataService(LinkEnrichmentService):
    """Fetches a page and reads its title, description, image and tags."""

    name = "web metadata"

    def __init__(self, client: HttpClient | None = None) -> None:
        self.client = client or HttpClient()

    def enrich(self, url: str) -> EnrichmentData | None:
        response = self.client.get(url, stream=True)
        try:
            content_type = response.headers.get("Content-Type", "")
            if "html" not in content_type.lower():
                logger.debug("Skipping metadata for {}: content type {}", url, content_type or "unknown")
                return None
            body = _read_head(response, _MAX_BYTES)
        finally:
            response.close()
        html = body.decode(response.encoding or "utf-8", errors="replace")
        return parse_html_metadata(html, response.url or url)


def _read_head(response: requests.Response, limit: int) -> bytes:
    """Read at most ``limit`` bytes of a streamed body."""

    chunks: list[bytes] = []
    size = 0
    for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
        chunks.append(chunk)
        size += len(chunk)
        if size >= limit:
            break
    return b"".join(chunks)[:limit]

__all__ = ["WebMetadataService", "parse_html_metadata"]
