from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from listings.loaders import load_listings
from listings.types import Listing, SourceType
from providers.in_memory import InMemoryProvider

logger = logging.getLogger(__name__)


def _repo_root() -> Path:
    # .../backend/providers/registry.py -> repo root is 2 levels up
    return Path(__file__).resolve().parents[2]


def listings_path() -> Path:
    return Path(
        os.getenv("PITCHMAP_LISTINGS_PATH")
        or (_repo_root() / "data" / "listings.yaml")
    )


@lru_cache(maxsize=1)
def _load() -> dict[SourceType, list[Listing]]:
    path = listings_path()
    if not path.exists():
        logger.warning("Listings file not found: %s (serving empty sets)", path)
        return {SourceType.vacancy: [], SourceType.availability: []}
    out = load_listings(path)
    logger.info(
        "Loaded %d vacancies and %d availability listings from %s",
        len(out[SourceType.vacancy]),
        len(out[SourceType.availability]),
        path,
    )
    return out


def get_providers() -> dict[SourceType, InMemoryProvider]:
    data = _load()
    return {st: InMemoryProvider(data.get(st, [])) for st in SourceType}


def clear_registry_cache() -> None:
    """
    Forget loaded listings so the next call re-reads the YAML file.
    """
    _load.cache_clear()
