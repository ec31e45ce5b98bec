from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from main import app
from providers.registry import clear_registry_cache

LISTINGS_YAML = """
vacancies:
  - id: "inside"
    league: "Sunday League"
    ageGroup: "U12"
    postedBy: "coach-1"
    location: { lat: 51.50, lng: -0.12 }
  - id: "outside"
    league: "Sunday League"
    ageGroup: "U12"
    postedBy: "coach-2"
    location: { lat: 52.00, lng: -0.12 }
availability:
  - id: "player"
    preferredLeagues: ["Sunday League"]
    ageGroup: "U14"
    postedBy: "parent-1"
    location: { lat: 51.505, lng: -0.12 }
"""

SQUARE = [
    {"lat": 51.49, "lng": -0.13},
    {"lat": 51.49, "lng": -0.11},
    {"lat": 51.51, "lng": -0.11},
    {"lat": 51.51, "lng": -0.13},
]


@pytest.fixture
def client(tmp_path, monkeypatch):
    listings = tmp_path / "listings.yaml"
    listings.write_text(LISTINGS_YAML, encoding="utf-8")
    monkeypatch.setenv("PITCHMAP_LISTINGS_PATH", str(listings))
    monkeypatch.setenv("PITCHMAP_STORE_PATH", str(tmp_path / "store.duckdb"))
    monkeypatch.setenv("PITCHMAP_STORE", "1")
    clear_registry_cache()
    yield TestClient(app)
    clear_registry_cache()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_proximity_search_sorted_by_distance(client):
    resp = client.post(
        "/search",
        json={"mode": "proximity", "center": {"lat": 51.50, "lng": -0.12}, "radiusKm": 100},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [r["sourceId"] for r in body["results"]] == ["inside", "player", "outside"]
    assert body["errors"] == {}
    assert body["results"][0]["distanceKm"] == 0.0
    assert body["results"][0]["distanceLabel"] == "0m"


def test_containment_search_with_filters(client):
    resp = client.post(
        "/search",
        json={"mode": "containment", "polygon": SQUARE, "filters": {"ageGroup": "U12"}},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [r["sourceId"] for r in body["results"]] == ["inside"]
    assert body["results"][0]["distanceKm"] is None


def test_bad_search_requests_answer_422(client):
    assert client.post("/search", json={"mode": "containment", "polygon": SQUARE[:2]}).status_code == 422
    assert client.post("/search", json={"mode": "proximity"}).status_code == 422
    resp = client.post(
        "/search", json={"mode": "proximity", "center": {"lat": 95, "lng": 0}, "radiusKm": 1}
    )
    assert resp.status_code == 422


def test_regions_crud(client):
    resp = client.post("/regions", json={"name": "Test Square", "coordinates": SQUARE})
    assert resp.status_code == 200
    region = resp.json()
    assert region["coordinates"] == SQUARE

    listed = client.get("/regions").json()["regions"]
    assert [r["id"] for r in listed] == [region["id"]]

    assert client.delete(f"/regions/{region['id']}").status_code == 200
    assert client.get("/regions").json()["regions"] == []


def test_invalid_region_answers_422(client):
    assert client.post("/regions", json={"name": "", "coordinates": SQUARE}).status_code == 422
    resp = client.post("/regions", json={"name": "Tiny", "coordinates": SQUARE[:2]})
    assert resp.status_code == 422
    assert client.get("/regions").json()["regions"] == []


def test_alerts_require_identity(client):
    assert client.get("/alerts").status_code == 403
    resp = client.post(
        "/alerts",
        json={
            "alertType": "proximity",
            "proximitySpec": {"center": {"lat": 51.5, "lng": -0.12}, "radiusKm": 5},
        },
    )
    assert resp.status_code == 403


def test_alerts_crud(client):
    headers = {"X-User-Id": "coach-1"}
    resp = client.post(
        "/alerts",
        headers=headers,
        json={"alertType": "region", "region": {"name": "Test Square", "coordinates": SQUARE}},
    )
    assert resp.status_code == 200
    alert = resp.json()
    assert alert["alertType"] == "region"
    assert alert["isActive"] is True

    resp = client.patch(f"/alerts/{alert['id']}", headers=headers, json={"isActive": False})
    assert resp.status_code == 200
    assert resp.json()["isActive"] is False

    # Other users see nothing and cannot touch it.
    assert client.get("/alerts", headers={"X-User-Id": "someone-else"}).json()["alerts"] == []
    assert client.delete(f"/alerts/{alert['id']}", headers={"X-User-Id": "someone-else"}).status_code == 404

    listed = client.get("/alerts", headers=headers).json()["alerts"]
    assert [a["id"] for a in listed] == [alert["id"]]

    assert client.delete(f"/alerts/{alert['id']}", headers=headers).status_code == 200
    assert client.get("/alerts", headers=headers).json()["alerts"] == []


def test_alert_spec_errors(client):
    headers = {"X-User-Id": "coach-1"}
    resp = client.post(
        "/alerts",
        headers=headers,
        json={"alertType": "region", "proximitySpec": {"center": {"lat": 51.5, "lng": -0.12}, "radiusKm": 5}},
    )
    assert resp.status_code == 422
    assert client.patch("/alerts/missing", headers=headers, json={"isActive": True}).status_code == 404


def test_zero_area_polygon_answers_empty_results(client):
    line = [{"lat": 51.50, "lng": -0.13}, {"lat": 51.50, "lng": -0.12}, {"lat": 51.50, "lng": -0.11}]
    resp = client.post("/search", json={"mode": "containment", "polygon": line})
    assert resp.status_code == 200
    assert resp.json()["results"] == []
