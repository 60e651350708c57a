"""Data returned by enrichment collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Coordinates:
    latitude: float
    longitude: float

    def as_param(self) -> str:
        return f"{self.latitude},{self.longitude}"


@dataclass(slots=True)
class EnrichmentData:
    """Partial item data produced by one enrichment stage."""

    title: str | None = None
    description_text: str | None = None
    image: str | None = None
    categories: list[str] = field(default_factory=list)
    style_tags: list[str] = field(default_factory=list)
    location: str | None = None
    price: float | None = None
    rating: float | None = None
    place_id: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    site_name: str | None = None
    questions: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not any(
            (
                self.title,
                self.description_text,
                self.image,
                self.categories,
                self.style_tags,
                self.location,
                self.price is not None,
                self.rating is not None,
                self.place_id,
            )
        )


__all__ = ["Coordinates", "EnrichmentData"]
