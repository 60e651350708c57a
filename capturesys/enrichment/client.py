"""Shared HTTP session with retries for enrichment collaborators."""

from __future__ import annotations

import time
from typing import Any

import requests
from loguru import logger

from .base import EnrichmentError

USER_AGENT = "capturesys/0.1 (+enrichment)"


class HttpClient:
    """Thin wrapper around :class:`requests.Session` with a retry loop."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        headers: dict[str, str] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        if headers:
            self.session.headers.update(headers)

    def get(self, url: str, *, params: dict[str, Any] | None = None, stream: bool = False) -> requests.Response:
        """GET ``url``, retrying transport and HTTP errors.

        With ``stream`` the body is left unread; the caller must close the
        response.

        Raises :class:`EnrichmentError` once every attempt has failed.
        """

        last_error: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout, stream=stream)
                response.raise_for_status()
                return response
            except requests.RequestException as exc:
                last_error = exc
                logger.warning(
                    "Request to {} failed (attempt {}/{}): {}",
                    url,
                    attempt,
                    self.max_retries,
                    exc,
                )
                if attempt < self.max_retries:
                    time.sleep(self.retry_delay)
        raise EnrichmentError(f"Request to {url} failed after {self.max_retries} attempts") from last_error

    def get_json(self, url: str, *, params: dict[str, Any] | None = None) -> Any:
        response = self.get(url, params=params)
        try:
            return response.json()
        except ValueError as exc:
            raise EnrichmentError(f"Invalid JSON from {url}") from exc


__all__ = ["HttpClient", "USER_AGENT"]
