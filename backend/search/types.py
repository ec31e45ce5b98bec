from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Sequence

from geo.ops import format_distance
from listings.types import Coordinate, Listing, SourceType


class SearchMode(str, Enum):
    proximity = "proximity"
    containment = "containment"


class SearchType(str, Enum):
    vacancies = "vacancies"
    availability = "availability"
    both = "both"

    def source_types(self) -> tuple[SourceType, ...]:
        if self == SearchType.vacancies:
            return (SourceType.vacancy,)
        if self == SearchType.availability:
            return (SourceType.availability,)
        return (SourceType.vacancy, SourceType.availability)


@dataclass(frozen=True)
class SearchFilters:
    """
    Equality filters; an empty string means "no constraint".
    """

    search_type: SearchType = SearchType.both
    league: str = ""
    age_group: str = ""

    def matches(self, listing: Listing) -> bool:
        if self.league and self.league not in listing.leagues:
            return False
        if self.age_group and listing.age_group != self.age_group:
            return False
        return True

    def as_dict(self) -> dict[str, str]:
        return {
            "searchType": self.search_type.value,
            "league": self.league,
            "ageGroup": self.age_group,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> "SearchFilters":
        raw = raw or {}
        return cls(
            search_type=SearchType(raw.get("searchType") or SearchType.both.value),
            league=str(raw.get("league") or ""),
            age_group=str(raw.get("ageGroup") or ""),
        )


@dataclass(frozen=True)
class SearchRequest:
    mode: SearchMode
    filters: SearchFilters = field(default_factory=SearchFilters)
    center: Coordinate | None = None
    radius_km: float | None = None
    polygon: tuple[Coordinate, ...] | None = None

    def __post_init__(self) -> None:
        if self.mode == SearchMode.proximity:
            if self.center is None or self.radius_km is None:
                raise ValueError("Proximity search needs a center and a radius")
            if float(self.radius_km) < 0:
                raise ValueError(f"Radius must not be negative: {self.radius_km}")
        else:
            if self.polygon is None or len(self.polygon) < 3:
                raise ValueError("Containment search needs a polygon with at least 3 vertices")

    @classmethod
    def proximity(
        cls, center: Coordinate, radius_km: float, filters: SearchFilters | None = None
    ) -> "SearchRequest":
        return cls(
            mode=SearchMode.proximity,
            filters=filters or SearchFilters(),
            center=center,
            radius_km=float(radius_km),
        )

    @classmethod
    def containment(
        cls, polygon: Sequence[Coordinate], filters: SearchFilters | None = None
    ) -> "SearchRequest":
        return cls(
            mode=SearchMode.containment,
            filters=filters or SearchFilters(),
            polygon=tuple(polygon),
        )


class ResultKey(NamedTuple):
    """
    Selection key: the listing's own identity, stable across re-searches.
    """

    source_type: SourceType
    source_id: str


@dataclass(frozen=True)
class SearchResultItem:
    listing: Listing
    # Only set in proximity mode.
    distance_km: float | None = None

    @property
    def source_id(self) -> str:
        return self.listing.id

    @property
    def source_type(self) -> SourceType:
        return self.listing.source_type

    @property
    def key(self) -> ResultKey:
        return ResultKey(self.listing.source_type, self.listing.id)

    def as_dict(self) -> dict[str, Any]:
        coord = self.listing.coordinate
        return {
            "sourceId": self.listing.id,
            "sourceType": self.listing.source_type.value,
            "coordinate": coord.as_dict() if coord is not None else None,
            "distanceKm": self.distance_km,
            "distanceLabel": format_distance(self.distance_km) if self.distance_km is not None else None,
            "title": self.listing.title,
            "leagues": list(self.listing.leagues),
            "ageGroup": self.listing.age_group,
            "postedBy": self.listing.posted_by,
        }


@dataclass(frozen=True)
class SearchOutcome:
    """
    An accepted (non-stale) search result.
    """

    request_id: int
    request: SearchRequest
    items: list[SearchResultItem]
    # Source types whose fetch failed, with a user-facing message.
    source_errors: dict[SourceType, str] = field(default_factory=dict)

    @property
    def partial(self) -> bool:
        return bool(self.source_errors)
