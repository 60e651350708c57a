"""Opaque link wrapping: stable ids, signed payloads and verification."""

from capturesys.links.errors import (
    InvalidPathError,
    InvalidPayloadError,
    InvalidSignatureError,
    InvalidURLError,
    InvalidVersionError,
    LinkError,
    MissingSignatureError,
)
from capturesys.links.wrapper import (
    CURRENT_VERSION,
    DEFAULT_BASE_URL,
    DiverLink,
    LinkPayload,
    LinkWrapper,
    link_id,
    parse,
    resolve_payload,
    verify,
    wrap,
)

__all__ = [
    "CURRENT_VERSION",
    "DEFAULT_BASE_URL",
    "DiverLink",
    "LinkPayload",
    "LinkWrapper",
    "link_id",
    "parse",
    "resolve_payload",
    "verify",
    "wrap",
    "LinkError",
    "InvalidURLError",
    "InvalidPathError",
    "MissingSignatureError",
    "InvalidVersionError",
    "InvalidSignatureError",
    "InvalidPayloadError",
]
