"""Tests for opaque link wrapping and verification."""

from __future__ import annotations

import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import pytest

from capturesys.links import (
    DiverLink,
    InvalidPathError,
    InvalidPayloadError,
    InvalidSignatureError,
    InvalidURLError,
    InvalidVersionError,
    LinkPayload,
    LinkWrapper,
    MissingSignatureError,
    link_id,
    parse,
    resolve_payload,
    verify,
    wrap,
)
from capturesys.links.wrapper import _sign

SECRET = b"test-secret"


def _replace_query(url: str, **changes: str) -> str:
    parts = urlsplit(url)
    params = dict(parse_qsl(parts.query))
    params.update(changes)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(params), ""))


def test_link_id_is_stable_and_hex() -> None:
    first = link_id("https://example.com/page?x=1")
    second = link_id("https://example.com/page?x=1")

    assert first == second
    assert re.fullmatch(r"[0-9a-f]{24}", first)


def test_link_id_changes_with_url_and_salt() -> None:
    url = "https://example.com/page?x=1"

    assert link_id(url, salt="a") != link_id(url, salt="b")
    assert link_id(url, salt="a") != link_id(url)
    assert link_id(url) != link_id("https://example.com/page?x=2")


def test_wrap_emits_expected_shape() -> None:
    payload = LinkPayload(url="https://example.com/page", title="Example")
    wrapped = wrap("https://example.com/page", SECRET, payload=payload)

    parts = urlsplit(wrapped)
    assert parts.scheme == "https"
    assert parts.netloc == "secretatomics.com"
    assert parts.path == f"/w/{link_id('https://example.com/page')}"
    assert [key for key, _ in parse_qsl(parts.query)] == ["v", "p", "sig"]
    assert "=" not in dict(parse_qsl(parts.query))["sig"]


def test_round_trip_returns_payload() -> None:
    payload = LinkPayload(url="https://example.com/a?b=c&d=é", title="Ünïcode title")
    wrapped = wrap(payload.url, SECRET, payload=payload)

    assert resolve_payload(wrapped, SECRET) == payload


def test_wrap_without_payload_resolves_to_none() -> None:
    payload = LinkPayload(url="https://example.com/page", title="Example")
    wrapped = wrap(payload.url, SECRET, payload=payload, include_payload=False)

    assert "p=" not in urlsplit(wrapped).query
    assert resolve_payload(wrapped, SECRET) is None


def test_tampered_payload_is_rejected() -> None:
    payload = LinkPayload(url="https://example.com/page", title="Example")
    wrapped = wrap(payload.url, SECRET, payload=payload)
    forged = LinkPayload(url="https://evil.example/", title="Example")
    tampered = _replace_query(wrapped, p=_replace_payload(forged))

    with pytest.raises(InvalidSignatureError):
        resolve_payload(tampered, SECRET)


def _replace_payload(payload: LinkPayload) -> str:
    wrapped = wrap(payload.url, b"other-secret", payload=payload)
    return dict(parse_qsl(urlsplit(wrapped).query))["p"]


def test_version_downgrade_is_detected() -> None:
    wrapped = wrap("https://example.com/page", SECRET, payload=LinkPayload(url="https://example.com/page"))
    downgraded = _replace_query(wrapped, v="0")

    with pytest.raises(InvalidSignatureError):
        resolve_payload(downgraded, SECRET)


def test_wrong_secret_fails_verification() -> None:
    wrapped = wrap("https://example.com/page", SECRET)
    link = parse(wrapped)

    assert verify(link, SECRET)
    assert not verify(link, b"another-secret")


@pytest.mark.parametrize(
    ("url", "error"),
    [
        ("not a url", InvalidURLError),
        ("https:///w/abc?v=1&sig=abc", InvalidURLError),
        ("/x/abc?v=1&sig=abc", InvalidPathError),
        ("https://secretatomics.com/x/abc?v=1&sig=abc", InvalidPathError),
        ("https://secretatomics.com/w/abc/extra?v=1&sig=abc", InvalidPathError),
        ("https://secretatomics.com/w/abc?v=1", MissingSignatureError),
        ("https://secretatomics.com/w/abc?sig=abc", InvalidVersionError),
        ("https://secretatomics.com/w/abc?v=one&sig=abc", InvalidVersionError),
    ],
)
def test_parse_rejects_malformed_links(url: str, error: type[Exception]) -> None:
    with pytest.raises(error):
        parse(url)


def test_parse_accepts_any_query_order() -> None:
    wrapped = wrap("https://example.com/page", SECRET, payload=LinkPayload(url="https://example.com/page"))
    parts = urlsplit(wrapped)
    reordered = urlunsplit(
        (parts.scheme, parts.netloc, parts.path, urlencode(list(reversed(parse_qsl(parts.query)))), "")
    )

    link = parse(reordered)
    assert isinstance(link, DiverLink)
    assert link.version == 1
    assert resolve_payload(reordered, SECRET) == LinkPayload(url="https://example.com/page")


def test_signed_garbage_payload_is_invalid_payload() -> None:
    wrapped = wrap("https://example.com/page", SECRET, include_payload=False)
    link = parse(wrapped)

    bad_payload = "bm90LWpzb24"  # base64url("not-json")
    signature = _sign(link.id, link.version, bad_payload, SECRET)
    forged = _replace_query(wrapped, p=bad_payload, sig=signature)

    with pytest.raises(InvalidPayloadError):
        resolve_payload(forged, SECRET)


def test_wrapper_accepts_previous_secrets() -> None:
    old = LinkWrapper(secret=b"old-secret")
    rotated = LinkWrapper(secret=b"new-secret", previous_secrets=[b"old-secret"])
    wrapped = old.wrap("https://example.com/page", title="Page")

    assert rotated.verify(wrapped)
    assert rotated.unwrap(wrapped) == "https://example.com/page"
    assert not LinkWrapper(secret=b"new-secret").verify(wrapped)


def test_wrapper_uses_base_url_and_salt() -> None:
    wrapper = LinkWrapper(secret=SECRET, base_url="https://links.example.org", salt="tenant")
    wrapped = wrapper.wrap("https://example.com/page")

    assert wrapped.startswith(f"https://links.example.org/w/{link_id('https://example.com/page', salt='tenant')}?")
    assert wrapper.id_for("https://example.com/page") == link_id("https://example.com/page", salt="tenant")
    assert wrapper.resolve(wrapped) == LinkPayload(url="https://example.com/page")


def test_host_relative_link_parses_and_verifies() -> None:
    wrapped = wrap("https://example.com/a", SECRET, payload=LinkPayload(url="https://example.com/a"))
    parts = urlsplit(wrapped)
    relative = f"{parts.path}?{parts.query}"

    link = parse(relative)

    assert link.id == parse(wrapped).id
    assert verify(link, SECRET)
    assert resolve_payload(relative, SECRET) == LinkPayload(url="https://example.com/a")
