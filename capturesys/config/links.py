"""Configuration models for opaque link signing."""

from __future__ import annotations

from pydantic import Field, field_validator

from capturesys.config.base import BaseConfig
from capturesys.config.utils import resolve_env_reference


class LinkConfig(BaseConfig):
    """Signing settings for wrapped links."""

    base_url: str = Field("https://secretatomics.com", description="Host that serves /w/<id> links")
    secret: str = Field(..., description="HMAC secret, can use 'env:VAR_NAME' format")
    previous_secrets: list[str] = Field(
        default_factory=list,
        description="Retired secrets still accepted during verification",
    )
    salt: str | None = Field(None, description="Optional salt namespacing link identifiers")
    include_payload: bool = Field(True, description="Embed the signed destination payload in links")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return value.rstrip("/")

    @property
    def secret_bytes(self) -> bytes:
        """Return the resolved primary secret as bytes."""

        resolved = resolve_env_reference(self.secret)
        assert resolved is not None  # guarded by resolve_env_reference
        return resolved.encode("utf-8")

    @property
    def previous_secret_bytes(self) -> list[bytes]:
        secrets: list[bytes] = []
        for value in self.previous_secrets:
            resolved = resolve_env_reference(value, required=False)
            if resolved:
                secrets.append(resolved.encode("utf-8"))
        return secrets


__all__ = ["LinkConfig"]
