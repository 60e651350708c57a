"""Stateless signing and verification of opaque ``/w/<id>`` links.

A wrapped link hides its destination behind a short content-derived id and
optionally carries a signed, base64url-encoded JSON payload with the
original URL and title, so it can be resolved without a database lookup::

    https://<host>/w/<24-hex-id>?v=<version>[&p=<base64url>]&sig=<base64url>

The signature is an HMAC-SHA256 over ``v=<version>&id=<id>&p=<payload>``
(empty payload when absent). It does not cover the destination URL directly.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .errors import (
    InvalidPathError,
    InvalidPayloadError,
    InvalidSignatureError,
    InvalidURLError,
    InvalidVersionError,
    MissingSignatureError,
)

if TYPE_CHECKING:
    from capturesys.config.links import LinkConfig

DEFAULT_BASE_URL = "https://secretatomics.com"
CURRENT_VERSION = 1
ID_LENGTH = 24


@dataclass(frozen=True, slots=True)
class LinkPayload:
    """Destination bundle embedded in a wrapped link."""

    url: str
    title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"url": self.url}
        if self.title is not None:
            data["title"] = self.title
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "LinkPayload":
        if not isinstance(data, dict) or not isinstance(data.get("url"), str):
            raise InvalidPayloadError("Payload must be an object with a string 'url'")
        title = data.get("title")
        if title is not None and not isinstance(title, str):
            raise InvalidPayloadError("Payload 'title' must be a string")
        return cls(url=data["url"], title=title)


@dataclass(frozen=True, slots=True)
class DiverLink:
    """Parsed wire representation of a wrapped link."""

    id: str
    version: int
    signature: str
    payload: str | None = None


def link_id(url: str, salt: str | None = None, length: int = ID_LENGTH) -> str:
    """Return the truncated SHA-256 hex digest identifying ``url``.

    A non-empty ``salt`` is appended as ``"|<salt>"`` before hashing so the
    same URL yields distinct ids across namespaces.
    """

    value = url
    if salt:
        value += "|" + salt
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:length]


def wrap(
    url: str,
    secret: bytes,
    payload: LinkPayload | None = None,
    salt: str | None = None,
    include_payload: bool = True,
    *,
    base_url: str = DEFAULT_BASE_URL,
    version: int = CURRENT_VERSION,
) -> str:
    """Build a signed wrapped link for ``url``."""

    base = urlsplit(base_url)
    if not base.scheme or not base.netloc:
        raise InvalidURLError(f"Base URL must be absolute: {base_url!r}")

    identifier = link_id(url, salt=salt)
    query: list[tuple[str, str]] = [("v", str(version))]

    payload_value: str | None = None
    if include_payload and payload is not None:
        encoded = json.dumps(payload.to_dict(), sort_keys=True, separators=(",", ":"))
        payload_value = _b64url_encode(encoded.encode("utf-8"))
        query.append(("p", payload_value))

    query.append(("sig", _sign(identifier, version, payload_value, secret)))
    return urlunsplit((base.scheme, base.netloc, f"/w/{identifier}", urlencode(query), ""))


def parse(url: str) -> DiverLink:
    """Split a wrapped link into its id, version, signature and payload.

    Host-relative links (``/w/<id>?v=..&sig=..``) are accepted; only the
    path shape and query are checked.
    """

    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise InvalidURLError(f"Cannot parse URL: {url!r}") from exc
    if not url.strip() or any(character.isspace() for character in url):
        raise InvalidURLError(f"Not a URL: {url!r}")
    if parts.scheme and not parts.netloc:
        raise InvalidURLError(f"Wrapped link has a scheme but no host: {url!r}")

    segments = [segment for segment in parts.path.split("/") if segment]
    if len(segments) != 2 or segments[0] != "w":
        raise InvalidPathError(f"Expected /w/<id>, got {parts.path!r}")

    params = dict(parse_qsl(parts.query, keep_blank_values=True))

    signature = params.get("sig")
    if not signature:
        raise MissingSignatureError("Wrapped link has no signature")

    try:
        version = int(params["v"])
    except (KeyError, ValueError) as exc:
        raise InvalidVersionError("Wrapped link has a missing or non-integer version") from exc

    return DiverLink(
        id=segments[1],
        version=version,
        signature=signature,
        payload=params.get("p"),
    )


def verify(link: DiverLink, secret: bytes) -> bool:
    """Return ``True`` when ``link`` was signed with ``secret``."""

    expected = _sign(link.id, link.version, link.payload, secret)
    return hmac.compare_digest(expected.encode("ascii"), link.signature.encode("utf-8"))


def resolve_payload(url: str, secret: bytes) -> LinkPayload | None:
    """Verify ``url`` and decode its embedded payload.

    Returns ``None`` for a valid link that carries no payload.
    """

    return _resolve(parse(url), [secret])


def _resolve(link: DiverLink, secrets: Iterable[bytes]) -> LinkPayload | None:
    if not any(verify(link, secret) for secret in secrets):
        raise InvalidSignatureError(f"Signature mismatch for link {link.id}")

    if link.payload is None:
        return None

    try:
        raw = _b64url_decode(link.payload)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise InvalidPayloadError(f"Cannot decode payload for link {link.id}") from exc
    return LinkPayload.from_dict(data)


def _sign(identifier: str, version: int, payload: str | None, secret: bytes) -> str:
    message = f"v={version}&id={identifier}&p={payload or ''}"
    digest = hmac.new(secret, message.encode("utf-8"), hashlib.sha256).digest()
    return _b64url_encode(digest)


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(value: str) -> bytes:
    padded = value + "=" * (-len(value) % 4)
    return base64.b64decode(padded.replace("-", "+").replace("_", "/"), validate=True)


@dataclass(slots=True)
class LinkWrapper:
    """Binds signing settings so callers need not pass secrets around.

    ``previous_secrets`` are accepted during verification only, which lets a
    deployment rotate its secret without invalidating outstanding links.
    """

    secret: bytes
    base_url: str = DEFAULT_BASE_URL
    salt: str | None = None
    include_payload: bool = True
    previous_secrets: list[bytes] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: "LinkConfig") -> "LinkWrapper":
        return cls(
            secret=config.secret_bytes,
            base_url=config.base_url,
            salt=config.salt,
            include_payload=config.include_payload,
            previous_secrets=config.previous_secret_bytes,
        )

    def id_for(self, url: str) -> str:
        return link_id(url, salt=self.salt)

    def wrap(self, url: str, title: str | None = None, include_payload: bool | None = None) -> str:
        embed = self.include_payload if include_payload is None else include_payload
        return wrap(
            url,
            self.secret,
            payload=LinkPayload(url=url, title=title),
            salt=self.salt,
            include_payload=embed,
            base_url=self.base_url,
        )

    def verify(self, url: str) -> bool:
        link = parse(url)
        return any(verify(link, secret) for secret in self._secrets())

    def resolve(self, url: str) -> LinkPayload | None:
        return _resolve(parse(url), self._secrets())

    def unwrap(self, url: str) -> str | None:
        """Return the destination URL of a wrapped link, if it carries one."""

        payload = self.resolve(url)
        return payload.url if payload else None

    def _secrets(self) -> list[bytes]:
        return [self.secret, *self.previous_secrets]


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
]
