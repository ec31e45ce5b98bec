from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SourceType(str, Enum):
    vacancy = "vacancy"
    availability = "availability"


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    def __post_init__(self) -> None:
        lat = float(self.lat)
        lng = float(self.lng)
        if not -90.0 <= lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= lng <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lng}")
        object.__setattr__(self, "lat", lat)
        object.__setattr__(self, "lng", lng)

    def as_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Coordinate":
        return cls(lat=float(raw["lat"]), lng=float(raw["lng"]))


@dataclass(frozen=True)
class Listing:
    """
    A candidate record from one of the listing providers.

    Vacancies carry a single league; availability records list every league the
    player would join, so `leagues` is a tuple in both cases.
    """

    id: str
    source_type: SourceType
    coordinate: Coordinate | None
    leagues: tuple[str, ...]
    age_group: str
    # Contact-routing identifier (the user who posted the listing).
    posted_by: str
    title: str = ""
    props: dict[str, Any] = field(default_factory=dict)
