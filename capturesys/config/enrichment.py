"""Configuration models for enrichment collaborators."""

from __future__ import annotations

from pydantic import Field

from capturesys.config.base import BaseConfig
from capturesys.config.utils import resolve_env_reference


class ServiceConfig(BaseConfig):
    """HTTP settings shared by every enrichment collaborator."""

    enabled: bool = Field(True, description="Whether the collaborator is used during drains")
    base_url: str | None = Field(None, description="Override for the service endpoint")
    timeout: float = Field(10.0, gt=0, description="Request timeout (seconds)")
    max_retries: int = Field(2, ge=1, description="Attempts per request before giving up")
    retry_delay: float = Field(1.0, ge=0, description="Delay between retries (seconds)")
    api_key: str | None = Field(None, description="API key, can use 'env:VAR_NAME' format")

    @property
    def api_key_secret(self) -> str | None:
        return resolve_env_reference(self.api_key, required=False)


class EnrichmentConfig(BaseConfig):
    """Collaborators queried by the enrichment pipeline."""

    web_metadata: ServiceConfig | None = Field(None, description="HTML link metadata lookup")
    duckduckgo: ServiceConfig | None = Field(None, description="DuckDuckGo instant answer lookup")
    foursquare: ServiceConfig | None = Field(None, description="Foursquare venue lookup")


__all__ = ["EnrichmentConfig", "ServiceConfig"]
