from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ListingLocation(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    address: str | None = None
    postcode: str | None = None


class VacancyRecord(BaseModel):
    id: str
    title: str = ""
    league: str = ""
    ageGroup: str = ""
    position: str = ""
    postedBy: str
    # Listings without a location are kept; the search drops them.
    location: ListingLocation | None = None
    props: dict[str, Any] = Field(default_factory=dict)


class AvailabilityRecord(BaseModel):
    id: str
    title: str = ""
    preferredLeagues: list[str] = Field(default_factory=list)
    ageGroup: str = ""
    positions: list[str] = Field(default_factory=list)
    postedBy: str
    location: ListingLocation | None = None
    props: dict[str, Any] = Field(default_factory=dict)


class ListingsFile(BaseModel):
    """
    Root of a listings YAML file (fixture data or an export of the REST backend).
    """

    vacancies: list[VacancyRecord] = Field(default_factory=list)
    availability: list[AvailabilityRecord] = Field(default_factory=list)
