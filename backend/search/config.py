from __future__ import annotations

import os

from listings.types import Coordinate

# London, the product's home market.
_DEFAULT_CENTER = Coordinate(lat=51.5074, lng=-0.1278)
# Wide enough for the first search to cover the whole UK.
_DEFAULT_RADIUS_KM = 500.0
_DEFAULT_GEOLOCATION_TIMEOUT_S = 15.0


def _float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if raw:
        try:
            return float(raw)
        except ValueError:
            pass
    return default


def default_center() -> Coordinate:
    lat = _float_env("PITCHMAP_DEFAULT_LAT", _DEFAULT_CENTER.lat)
    lng = _float_env("PITCHMAP_DEFAULT_LNG", _DEFAULT_CENTER.lng)
    try:
        return Coordinate(lat=lat, lng=lng)
    except ValueError:
        return _DEFAULT_CENTER


def default_radius_km() -> float:
    return max(0.0, _float_env("PITCHMAP_DEFAULT_RADIUS_KM", _DEFAULT_RADIUS_KM))


def geolocation_timeout_s() -> float:
    return max(0.1, _float_env("PITCHMAP_GEOLOCATION_TIMEOUT_S", _DEFAULT_GEOLOCATION_TIMEOUT_S))
