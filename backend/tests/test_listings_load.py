from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from pydantic import ValidationError

from listings.loaders import load_listings, load_listings_file
from listings.types import SourceType
from providers.registry import clear_registry_cache, get_providers

REPO_ROOT = Path(__file__).resolve().parents[2]


def test_sample_listings_load():
    data = load_listings(REPO_ROOT / "data" / "listings.yaml")
    vacancies = data[SourceType.vacancy]
    players = data[SourceType.availability]
    assert len(vacancies) >= 1
    assert len(players) >= 1
    assert all(v.source_type == SourceType.vacancy for v in vacancies)
    # Availability keeps every preferred league.
    assert any(len(p.leagues) > 1 for p in players)
    # A listing without a location still loads; search just skips it.
    assert any(v.coordinate is None for v in vacancies)


def test_out_of_range_location_is_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text(
        "vacancies:\n  - id: x\n    postedBy: u\n    location: {lat: 91, lng: 0}\n",
        encoding="utf-8",
    )
    with pytest.raises(ValidationError):
        load_listings_file(path)


def test_missing_listings_file_serves_empty_providers(tmp_path, monkeypatch):
    monkeypatch.setenv("PITCHMAP_LISTINGS_PATH", str(tmp_path / "nope.yaml"))
    clear_registry_cache()
    try:
        providers = get_providers()
        assert set(providers) == set(SourceType)
        assert asyncio.run(providers[SourceType.vacancy].fetch_all()) == []
    finally:
        clear_registry_cache()
