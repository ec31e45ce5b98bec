from __future__ import annotations

from pathlib import Path

import yaml

from listings.schema import AvailabilityRecord, ListingLocation, ListingsFile, VacancyRecord
from listings.types import Coordinate, Listing, SourceType


def load_listings_file(path: Path) -> ListingsFile:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid listings yaml root: {path}")
    return ListingsFile.model_validate(data)


def vacancy_listing(rec: VacancyRecord) -> Listing:
    props = dict(rec.props)
    if rec.position:
        props.setdefault("position", rec.position)
    return Listing(
        id=str(rec.id),
        source_type=SourceType.vacancy,
        coordinate=_coordinate(rec.location),
        leagues=(rec.league,) if rec.league else (),
        age_group=rec.ageGroup,
        posted_by=str(rec.postedBy),
        title=rec.title,
        props=props,
    )


def availability_listing(rec: AvailabilityRecord) -> Listing:
    props = dict(rec.props)
    if rec.positions:
        props.setdefault("positions", list(rec.positions))
    return Listing(
        id=str(rec.id),
        source_type=SourceType.availability,
        coordinate=_coordinate(rec.location),
        leagues=tuple(rec.preferredLeagues),
        age_group=rec.ageGroup,
        posted_by=str(rec.postedBy),
        title=rec.title,
        props=props,
    )


def load_listings(path: Path) -> dict[SourceType, list[Listing]]:
    parsed = load_listings_file(path)
    return {
        SourceType.vacancy: [vacancy_listing(r) for r in parsed.vacancies],
        SourceType.availability: [availability_listing(r) for r in parsed.availability],
    }


def _coordinate(loc: ListingLocation | None) -> Coordinate | None:
    if loc is None:
        return None
    return Coordinate(lat=loc.lat, lng=loc.lng)
