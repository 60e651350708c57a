"""Errors raised while wrapping, parsing or resolving opaque links."""

from __future__ import annotations


class LinkError(ValueError):
    """Base class for opaque link protocol failures."""

    code = "linkError"


class InvalidURLError(LinkError):
    """The input cannot be read as a URL."""

    code = "invalidURL"


class InvalidPathError(LinkError):
    """The URL path is not of the form ``/w/<id>``."""

    code = "invalidPath"


class MissingSignatureError(LinkError):
    """The ``sig`` query parameter is absent or empty."""

    code = "missingSignature"


class InvalidVersionError(LinkError):
    """The ``v`` query parameter is absent or not an integer."""

    code = "invalidVersion"


class InvalidSignatureError(LinkError):
    """The signature does not match the link contents."""

    code = "invalidSignature"


class InvalidPayloadError(LinkError):
    """The embedded payload cannot be decoded."""

    code = "invalidPayload"


__all__ = [
    "LinkError",
    "InvalidURLError",
    "InvalidPathError",
    "MissingSignatureError",
    "InvalidVersionError",
    "InvalidSignatureError",
    "InvalidPayloadError",
]
