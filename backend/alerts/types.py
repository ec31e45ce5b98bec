from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from geo.ops import is_within_radius, polygon_contains
from listings.types import Coordinate, Listing
from search.types import SearchFilters


class AlertType(str, Enum):
    proximity = "proximity"
    region = "region"


@dataclass(frozen=True)
class ProximitySpec:
    center: Coordinate
    radius_km: float


@dataclass(frozen=True)
class AlertRegion:
    name: str
    coordinates: tuple[Coordinate, ...]


@dataclass(frozen=True)
class AlertSubscription:
    """
    A standing "notify me" rule. Exactly one of `proximity` / `region` is set,
    matching `alert_type`.
    """

    id: str
    alert_type: AlertType
    filters: SearchFilters
    proximity: ProximitySpec | None = None
    region: AlertRegion | None = None
    is_active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def matches(self, listing: Listing) -> bool:
        """
        Would `listing` trigger this alert? Delivery is handled elsewhere.
        """
        if not self.is_active or listing.coordinate is None:
            return False
        if listing.source_type not in self.filters.search_type.source_types():
            return False
        if not self.filters.matches(listing):
            return False
        if self.proximity is not None:
            return is_within_radius(self.proximity.center, listing.coordinate, self.proximity.radius_km)
        if self.region is not None:
            return polygon_contains(self.region.coordinates, listing.coordinate)
        return False

    def payload(self) -> dict[str, Any]:
        """
        JSON body without the record metadata (id, active flag, timestamps).
        """
        out: dict[str, Any] = {"filters": self.filters.as_dict()}
        if self.proximity is not None:
            out["proximitySpec"] = {
                "center": self.proximity.center.as_dict(),
                "radiusKm": self.proximity.radius_km,
            }
        if self.region is not None:
            out["region"] = {
                "name": self.region.name,
                "coordinates": [c.as_dict() for c in self.region.coordinates],
            }
        return out

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "alertType": self.alert_type.value,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat(),
            **self.payload(),
        }

    @classmethod
    def from_payload(
        cls,
        *,
        alert_id: str,
        alert_type: str,
        payload: dict[str, Any],
        is_active: bool,
        created_at: datetime,
    ) -> "AlertSubscription":
        prox = payload.get("proximitySpec")
        reg = payload.get("region")
        return cls(
            id=alert_id,
            alert_type=AlertType(alert_type),
            filters=SearchFilters.from_dict(payload.get("filters")),
            proximity=(
                ProximitySpec(
                    center=Coordinate.from_dict(prox["center"]),
                    radius_km=float(prox["radiusKm"]),
                )
                if prox
                else None
            ),
            region=(
                AlertRegion(
                    name=str(reg.get("name") or ""),
                    coordinates=tuple(Coordinate.from_dict(c) for c in reg["coordinates"]),
                )
                if reg
                else None
            ),
            is_active=bool(is_active),
            created_at=created_at,
        )
