from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from listings.types import Coordinate


@dataclass(frozen=True)
class BBox:
    """
    WGS84 bounding box in lon/lat degrees (a map viewport or a region's extent).
    """

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    def normalized(self) -> "BBox":
        min_lon = min(self.min_lon, self.max_lon)
        max_lon = max(self.min_lon, self.max_lon)
        min_lat = min(self.min_lat, self.max_lat)
        max_lat = max(self.min_lat, self.max_lat)
        return BBox(min_lon=min_lon, min_lat=min_lat, max_lon=max_lon, max_lat=max_lat)

    def contains(self, point: Coordinate) -> bool:
        b = self.normalized()
        return b.min_lat <= point.lat <= b.max_lat and b.min_lon <= point.lng <= b.max_lon


def bbox_for_coordinates(coords: Iterable[Coordinate]) -> BBox | None:
    """
    Smallest box containing every coordinate (what a map "fit bounds" call needs).

    Returns None for an empty input.
    """
    pts = list(coords)
    if not pts:
        return None
    lats = [p.lat for p in pts]
    lngs = [p.lng for p in pts]
    return BBox(min_lon=min(lngs), min_lat=min(lats), max_lon=max(lngs), max_lat=max(lats))
