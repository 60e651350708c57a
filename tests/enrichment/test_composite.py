from __future__ import annotations

from capturesys.enrichment import CompositeLinkService, EnrichmentData, EnrichmentError, LinkEnrichmentService


class _StaticLinkService(LinkEnrichmentService):
    def __init__(self, name: str, data: EnrichmentData | None = None, error: Exception | None = None) -> None:
        self.name = name
        self.data = data
        self.error = error
        self.calls = 0

    def enrich(self, url: str) -> EnrichmentData | None:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.data


def test_first_failure_falls_through_to_next_service(log_messages: list[str]) -> None:
    failing = _StaticLinkService("primary", error=EnrichmentError("HTTP 503"))
    fallback = _StaticLinkService("fallback", EnrichmentData(title="Recovered"))
    composite = CompositeLinkService([failing, fallback])

    data = composite.enrich("https://example.com")

    assert data is not None
    assert data.title == "Recovered"
    assert failing.calls == fallback.calls == 1
    assert any("primary lookup failed" in message for message in log_messages)


def test_stops_at_first_useful_answer() -> None:
    first = _StaticLinkService("first", EnrichmentData(title="First"))
    second = _StaticLinkService("second", EnrichmentData(title="Second"))

    assert CompositeLinkService([first, second]).enrich("https://example.com").title == "First"  # type: ignore[union-attr]
    assert second.calls == 0


def test_empty_answers_and_errors_yield_none() -> None:
    composite = CompositeLinkService(
        [
            _StaticLinkService("none"),
            _StaticLinkService("blank", EnrichmentData()),
            _StaticLinkService("broken", error=ValueError("bad html")),
        ]
    )

    assert composite.enrich("https://example.com") is None
    assert composite.name == "none / blank / broken"
