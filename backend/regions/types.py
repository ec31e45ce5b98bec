from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from listings.types import Coordinate

MIN_REGION_VERTICES = 3


@dataclass(frozen=True)
class Region:
    """
    A named, persisted polygon usable for repeated containment searches.
    """

    id: str
    name: str
    coordinates: tuple[Coordinate, ...]
    created_at: datetime
    is_visible: bool = True

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            # Plain floats: json emits the shortest repr, which round-trips exactly.
            "coordinates": [c.as_dict() for c in self.coordinates],
            "createdAt": self.created_at.isoformat(),
            "isVisible": self.is_visible,
        }

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> "Region":
        coords = tuple(Coordinate.from_dict(c) for c in raw["coordinates"])
        name = str(raw["name"]).strip()
        if not name:
            raise ValueError("Region name is empty")
        if len(coords) < MIN_REGION_VERTICES:
            raise ValueError(f"Region has {len(coords)} vertices, need {MIN_REGION_VERTICES}")
        return cls(
            id=str(raw["id"]),
            name=name,
            coordinates=coords,
            created_at=datetime.fromisoformat(str(raw["createdAt"])),
            is_visible=bool(raw.get("isVisible", True)),
        )
