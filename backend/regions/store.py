from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Sequence

import duckdb

from listings.types import Coordinate
from regions.types import MIN_REGION_VERTICES, Region
from storage.store import KeyValueStore

logger = logging.getLogger(__name__)

SAVED_REGIONS_KEY = "pitchmap-saved-regions"


class RegionStore:
    """
    Named polygons persisted as one JSON array under a fixed key.

    Every operation is synchronous. Missing, corrupt or unreadable storage reads
    as an empty list; malformed entries are skipped rather than failing the list.
    """

    def __init__(self, kv: KeyValueStore, *, key: str = SAVED_REGIONS_KEY) -> None:
        self._kv = kv
        self._key = key

    def save(self, name: str, coordinates: Sequence[Coordinate]) -> Region | None:
        clean_name = (name or "").strip()
        if not clean_name:
            logger.info("Region not saved: empty name")
            return None
        if len(coordinates) < MIN_REGION_VERTICES:
            logger.info("Region %r not saved: only %d vertices", clean_name, len(coordinates))
            return None

        region = Region(
            id=uuid.uuid4().hex,
            name=clean_name,
            coordinates=tuple(coordinates),
            created_at=datetime.now(timezone.utc),
            is_visible=True,
        )
        self._write([*self.list(), region])
        logger.info("Saved region %r (%s) with %d vertices", region.name, region.id, len(region.coordinates))
        return region

    def list(self) -> list[Region]:
        raw = self._read_raw()
        if raw is None:
            return []
        try:
            entries = json.loads(raw)
        except ValueError as e:
            logger.warning("Saved regions are corrupt (%s); treating as empty", e)
            return []
        if not isinstance(entries, list):
            logger.warning("Saved regions have unexpected shape %s; treating as empty", type(entries).__name__)
            return []

        out: list[Region] = []
        for entry in entries:
            region = _parse_entry(entry)
            if region is not None:
                out.append(region)
        return out

    def get(self, region_id: str) -> Region | None:
        for region in self.list():
            if region.id == region_id:
                return region
        return None

    def load(self, region_id: str) -> list[Coordinate] | None:
        region = self.get(region_id)
        if region is None:
            return None
        return list(region.coordinates)

    def delete(self, region_id: str) -> None:
        regions = self.list()
        kept = [r for r in regions if r.id != region_id]
        if len(kept) == len(regions):
            return
        # One write of the filtered array: the region disappears atomically.
        self._write(kept)
        logger.info("Deleted region %s", region_id)

    def _read_raw(self) -> str | None:
        try:
            raw = self._kv.get(self._key)
        except duckdb.Error as e:
            logger.warning("Reading saved regions failed (%s); treating as empty", e)
            return None
        if raw is None or not raw.strip():
            return None
        return raw

    def _write(self, regions: list[Region]) -> None:
        self._kv.set(self._key, json.dumps([r.to_json() for r in regions]))


def _parse_entry(entry: Any) -> Region | None:
    if not isinstance(entry, dict):
        logger.warning("Skipping malformed saved region entry: %r", entry)
        return None
    try:
        return Region.from_json(entry)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Skipping malformed saved region %r: %s", entry.get("id"), e)
        return None
