import logging

from fastapi import FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from alerts.backend import AlertBackend, DuckDBAlertBackend, MemoryAlertBackend
from alerts.manager import AlertManager, AlertPermissionError, AlertSpecError
from alerts.types import AlertRegion, AlertType, ProximitySpec
from listings.types import Coordinate
from providers.registry import get_providers
from regions.store import RegionStore
from search.controller import run_search
from search.types import SearchFilters, SearchMode, SearchRequest, SearchType
from storage.singleton import get_durable_store, get_store

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ApiCoordinate(BaseModel):
    lat: float
    lng: float


class ApiFilters(BaseModel):
    searchType: SearchType = SearchType.both
    league: str = ""
    ageGroup: str = ""


class ApiSearchRequest(BaseModel):
    mode: SearchMode
    filters: ApiFilters = ApiFilters()
    center: ApiCoordinate | None = None
    radiusKm: float | None = None
    polygon: list[ApiCoordinate] | None = None


class ApiRegionCreate(BaseModel):
    name: str
    coordinates: list[ApiCoordinate]


class ApiProximitySpec(BaseModel):
    center: ApiCoordinate
    radiusKm: float


class ApiAlertRegion(BaseModel):
    name: str = ""
    coordinates: list[ApiCoordinate]


class ApiAlertCreate(BaseModel):
    alertType: AlertType
    filters: ApiFilters = ApiFilters()
    proximitySpec: ApiProximitySpec | None = None
    region: ApiAlertRegion | None = None


class ApiAlertPatch(BaseModel):
    isActive: bool


def _coord(c: ApiCoordinate) -> Coordinate:
    try:
        return Coordinate(lat=c.lat, lng=c.lng)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


def _filters(f: ApiFilters) -> SearchFilters:
    return SearchFilters(search_type=f.searchType, league=f.league, age_group=f.ageGroup)


_MEMORY_ALERTS = MemoryAlertBackend()


def _alert_backend() -> AlertBackend:
    store = get_durable_store()
    if store is None:
        return _MEMORY_ALERTS
    return DuckDBAlertBackend(store)


def _alert_manager(user_id: str | None) -> AlertManager:
    return AlertManager(_alert_backend(), user_id=user_id)


@app.get("/health")
def health():
    return {"ok": True}


@app.post("/search")
async def search(body: ApiSearchRequest):
    try:
        request = SearchRequest(
            mode=body.mode,
            filters=_filters(body.filters),
            center=_coord(body.center) if body.center is not None else None,
            radius_km=body.radiusKm,
            polygon=tuple(_coord(c) for c in body.polygon) if body.polygon is not None else None,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    items, errors = await run_search(request, get_providers())
    return {
        "mode": request.mode.value,
        "results": [item.as_dict() for item in items],
        "errors": {st.value: msg for st, msg in errors.items()},
    }


@app.get("/regions")
def list_regions():
    return {"regions": [r.to_json() for r in RegionStore(get_store()).list()]}


@app.post("/regions")
def save_region(body: ApiRegionCreate):
    coords = [_coord(c) for c in body.coordinates]
    region = RegionStore(get_store()).save(body.name, coords)
    if region is None:
        raise HTTPException(status_code=422, detail="A region needs a name and at least 3 points")
    return region.to_json()


@app.delete("/regions/{region_id}")
def delete_region(region_id: str):
    RegionStore(get_store()).delete(region_id)
    return {"ok": True}


@app.get("/alerts")
async def list_alerts(x_user_id: str | None = Header(default=None)):
    try:
        alerts = await _alert_manager(x_user_id).list()
    except AlertPermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    return {"alerts": [a.as_dict() for a in alerts]}


@app.post("/alerts")
async def create_alert(body: ApiAlertCreate, x_user_id: str | None = Header(default=None)):
    proximity = None
    if body.proximitySpec is not None:
        proximity = ProximitySpec(
            center=_coord(body.proximitySpec.center), radius_km=body.proximitySpec.radiusKm
        )
    region = None
    if body.region is not None:
        region = AlertRegion(
            name=body.region.name, coordinates=tuple(_coord(c) for c in body.region.coordinates)
        )

    try:
        alert = await _alert_manager(x_user_id).create(
            body.alertType, _filters(body.filters), proximity=proximity, region=region
        )
    except AlertPermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    except AlertSpecError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return alert.as_dict()


@app.patch("/alerts/{alert_id}")
async def toggle_alert(
    alert_id: str, body: ApiAlertPatch, x_user_id: str | None = Header(default=None)
):
    try:
        alert = await _alert_manager(x_user_id).toggle(alert_id, body.isActive)
    except AlertPermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    except KeyError as e:
        raise HTTPException(status_code=404, detail=f"Unknown alert: {alert_id}") from e
    return alert.as_dict()


@app.delete("/alerts/{alert_id}")
async def delete_alert(alert_id: str, x_user_id: str | None = Header(default=None)):
    try:
        await _alert_manager(x_user_id).delete(alert_id)
    except AlertPermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    except KeyError as e:
        raise HTTPException(status_code=404, detail=f"Unknown alert: {alert_id}") from e
    return {"ok": True}
