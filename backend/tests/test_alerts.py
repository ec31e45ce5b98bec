from __future__ import annotations

import asyncio

import duckdb
import pytest

from alerts.backend import DuckDBAlertBackend, MemoryAlertBackend
from alerts.manager import AlertManager, AlertPermissionError, AlertSpecError
from alerts.types import AlertRegion, AlertSubscription, AlertType, ProximitySpec
from listings.types import Coordinate, Listing, SourceType
from search.types import SearchFilters, SearchType
from storage.store import DuckDBKeyValueStore

SQUARE = (
    Coordinate(51.49, -0.13),
    Coordinate(51.49, -0.11),
    Coordinate(51.51, -0.11),
    Coordinate(51.51, -0.13),
)
NEAR = ProximitySpec(center=Coordinate(51.50, -0.12), radius_km=5.0)


def _listing(id: str, coord: Coordinate, age="U12", source_type=SourceType.vacancy) -> Listing:
    return Listing(
        id=id,
        source_type=source_type,
        coordinate=coord,
        leagues=("Sunday League",),
        age_group=age,
        posted_by="someone",
    )


def _duckdb_backend(tmp_path):
    path = tmp_path / "alerts.duckdb"
    store = DuckDBKeyValueStore(path=path, conn=duckdb.connect(str(path)))
    store.ensure_schema()
    return store, DuckDBAlertBackend(store)


def test_create_without_user_persists_nothing(tmp_path):
    store, backend = _duckdb_backend(tmp_path)
    mgr = AlertManager(backend, user_id=None)
    with pytest.raises(AlertPermissionError):
        asyncio.run(mgr.create(AlertType.proximity, proximity=NEAR))
    with pytest.raises(PermissionError):
        asyncio.run(mgr.list())
    assert store.execute("select count(*) from alerts") == [(0,)]


@pytest.mark.parametrize(
    "alert_type,kwargs",
    [
        (AlertType.proximity, {}),
        (AlertType.proximity, {"proximity": NEAR, "region": AlertRegion("r", SQUARE)}),
        (AlertType.proximity, {"region": AlertRegion("r", SQUARE)}),
        (AlertType.region, {"proximity": NEAR}),
        (AlertType.region, {"region": AlertRegion("r", SQUARE[:2])}),
        (AlertType.proximity, {"proximity": ProximitySpec(NEAR.center, 0.0)}),
        ("weekly", {"proximity": NEAR}),
    ],
)
def test_bad_specs_are_rejected(alert_type, kwargs):
    backend = MemoryAlertBackend()
    mgr = AlertManager(backend, user_id="u1")
    with pytest.raises(AlertSpecError):
        asyncio.run(mgr.create(alert_type, **kwargs))
    assert asyncio.run(backend.list("u1")) == []


def test_alerts_are_scoped_per_user():
    backend = MemoryAlertBackend()
    alice = AlertManager(backend, user_id="alice")
    bob = AlertManager(backend, user_id="bob")

    alert = asyncio.run(alice.create(AlertType.proximity, proximity=NEAR))
    assert [a.id for a in asyncio.run(alice.list())] == [alert.id]
    assert asyncio.run(bob.list()) == []
    with pytest.raises(KeyError):
        asyncio.run(bob.toggle(alert.id, False))
    with pytest.raises(KeyError):
        asyncio.run(bob.delete(alert.id))


def test_duckdb_backend_round_trip(tmp_path):
    store, backend = _duckdb_backend(tmp_path)
    mgr = AlertManager(backend, user_id="u1")
    filters = SearchFilters(search_type=SearchType.availability, league="Sunday League", age_group="U12")

    async def scenario():
        region_alert = await mgr.create(AlertType.region, filters, region=AlertRegion(" ", SQUARE))
        prox_alert = await mgr.create(AlertType.proximity, proximity=NEAR)
        toggled = await mgr.toggle(prox_alert.id, False)
        listed = await mgr.list()
        await mgr.delete(region_alert.id)
        return region_alert, toggled, listed, await mgr.list()

    region_alert, toggled, listed, after_delete = asyncio.run(scenario())

    assert region_alert.region.name == "Custom area"
    assert not toggled.is_active
    by_id = {a.id: a for a in listed}
    assert by_id[region_alert.id].filters == filters
    assert by_id[region_alert.id].region.coordinates == SQUARE
    assert by_id[toggled.id].proximity == NEAR
    assert [a.id for a in after_delete] == [toggled.id]
    store.close()


def test_unknown_ids_raise_key_error():
    mgr = AlertManager(MemoryAlertBackend(), user_id="u1")
    with pytest.raises(KeyError):
        asyncio.run(mgr.toggle("nope", True))
    with pytest.raises(KeyError):
        asyncio.run(mgr.delete("nope"))


def test_alert_matching():
    mgr = AlertManager(MemoryAlertBackend(), user_id="u1")
    prox = asyncio.run(mgr.create(AlertType.proximity, SearchFilters(age_group="U12"), proximity=NEAR))
    region = asyncio.run(
        mgr.create(
            AlertType.region,
            SearchFilters(search_type=SearchType.vacancies),
            region=AlertRegion("Square", SQUARE),
        )
    )

    inside = _listing("in", Coordinate(51.50, -0.12))
    far = _listing("far", Coordinate(52.00, -0.12))
    wrong_age = _listing("u16", Coordinate(51.50, -0.12), age="U16")
    player = _listing("p", Coordinate(51.50, -0.12), source_type=SourceType.availability)

    assert prox.matches(inside)
    assert not prox.matches(far)
    assert not prox.matches(wrong_age)
    assert region.matches(inside)
    assert region.matches(_listing("edge", Coordinate(51.49, -0.12)))
    assert not region.matches(far)
    assert not region.matches(player)

    paused = asyncio.run(mgr.toggle(prox.id, False))
    assert not paused.matches(inside)


def test_created_at_is_timezone_aware(tmp_path):
    default = AlertSubscription(id="a1", alert_type=AlertType.proximity, filters=SearchFilters(), proximity=NEAR)
    assert default.created_at.tzinfo is not None
    assert default.created_at.utcoffset().total_seconds() == 0

    store, backend = _duckdb_backend(tmp_path)

    async def scenario():
        await backend.create("u1", default)
        return await backend.get("u1", "a1")

    stored = asyncio.run(scenario())
    assert stored.created_at.tzinfo is not None
    assert abs((stored.created_at - default.created_at).total_seconds()) < 0.002
    store.close()
