from __future__ import annotations

from functools import lru_cache
from typing import Sequence

from pyproj import Geod
from shapely.geometry import GeometryCollection, MultiPolygon, Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.validation import make_valid

from listings.types import Coordinate

EARTH_RADIUS_KM = 6371.0


@lru_cache(maxsize=1)
def spherical_geod() -> Geod:
    # A sphere (a == b) makes the geodesic a great circle, matching the haversine
    # distances users see elsewhere in the product.
    r_m = EARTH_RADIUS_KM * 1000.0
    return Geod(a=r_m, b=r_m)


def great_circle_km(a: Coordinate, b: Coordinate) -> float:
    """
    Great-circle distance in kilometres.

    pyproj takes lon/lat order (always_xy style).
    """
    if a == b:
        return 0.0
    _az12, _az21, dist_m = spherical_geod().inv(a.lng, a.lat, b.lng, b.lat)
    return abs(float(dist_m)) / 1000.0


def is_within_radius(center: Coordinate, point: Coordinate, radius_km: float) -> bool:
    return great_circle_km(center, point) <= float(radius_km)


def polygon_from_coordinates(vertices: Sequence[Coordinate]) -> Polygon | MultiPolygon:
    """
    Closed shapely polygon in EPSG:4326 (x = lng, y = lat).

    Degenerate input (<3 vertices, or a ring with no area such as collinear or
    repeated points) yields an empty polygon. Hand-drawn rings may self-intersect;
    those are repaired into their lobes so every enclosed area still counts.
    """
    if len(vertices) < 3:
        return Polygon()
    poly = Polygon([(v.lng, v.lat) for v in vertices])
    if poly.is_valid:
        return poly
    # make_valid collapses zero-area rings to lines or points; keep areas only.
    parts = _polygonal_parts(make_valid(poly))
    if not parts:
        return Polygon()
    if len(parts) == 1:
        return parts[0]
    return MultiPolygon(parts)


def _polygonal_parts(geom: BaseGeometry) -> list[Polygon]:
    if isinstance(geom, Polygon):
        return [] if geom.is_empty else [geom]
    if isinstance(geom, (MultiPolygon, GeometryCollection)):
        out: list[Polygon] = []
        for g in geom.geoms:
            out.extend(_polygonal_parts(g))
        return out
    return []


def polygon_contains(
    vertices: Sequence[Coordinate] | BaseGeometry, point: Coordinate
) -> bool:
    """
    Point-in-polygon membership.

    Boundary policy: a point on an edge or exactly on a vertex counts as inside
    (`covers`, not `contains`).
    """
    poly = (
        vertices
        if isinstance(vertices, BaseGeometry)
        else polygon_from_coordinates(vertices)
    )
    if poly.is_empty:
        return False
    return bool(poly.covers(Point(point.lng, point.lat)))


def format_distance(distance_km: float) -> str:
    if distance_km < 1:
        return f"{round(distance_km * 1000)}m"
    return f"{distance_km:.1f}km"
