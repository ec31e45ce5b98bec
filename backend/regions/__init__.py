from .store import SAVED_REGIONS_KEY, RegionStore
from .types import MIN_REGION_VERTICES, Region

__all__ = [
    "MIN_REGION_VERTICES",
    "Region",
    "RegionStore",
    "SAVED_REGIONS_KEY",
]
