from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

import duckdb

from alerts.manager import AlertManager, AlertPermissionError, AlertSpecError
from alerts.types import AlertRegion, AlertSubscription, AlertType, ProximitySpec
from contact.selection import BulkContactResult, Messenger, SelectionManager
from drawing.controller import DrawingController, DrawingState
from drawing.surface import MapSurface
from geo.geolocation import Locator, locate
from listings.types import Coordinate, SourceType
from providers.types import CandidateProvider
from regions.store import RegionStore
from regions.types import Region
from search.config import default_center, default_radius_km, geolocation_timeout_s
from search.controller import SearchController
from search.types import SearchFilters, SearchMode, SearchOutcome, SearchRequest, SearchResultItem

logger = logging.getLogger(__name__)


class NoticeSeverity(str, Enum):
    success = "success"
    error = "error"
    info = "info"


@dataclass(frozen=True)
class Notice:
    severity: NoticeSeverity
    message: str


@dataclass
class SearchState:
    mode: SearchMode = SearchMode.proximity
    center: Coordinate = field(default_factory=default_center)
    radius_km: float = field(default_factory=default_radius_km)
    filters: SearchFilters = field(default_factory=SearchFilters)
    polygon: tuple[Coordinate, ...] | None = None


class MapSearchSession:
    """
    One user's map page: drawing, searching, selection, saved areas and alerts.

    Searches triggered by map events are scheduled on the running event loop;
    `wait_idle()` awaits everything in flight. Only accepted (non-stale) search
    results post notices.
    """

    def __init__(
        self,
        surface: MapSurface,
        providers: Mapping[SourceType, CandidateProvider],
        regions: RegionStore,
        *,
        alerts: AlertManager | None = None,
        messenger: Messenger | None = None,
        locator: Locator | None = None,
        state: SearchState | None = None,
    ) -> None:
        self.surface = surface
        self.state = state if state is not None else SearchState()
        self.regions = regions
        self.alerts = alerts
        self.messenger = messenger
        self.locator = locator
        self.notices: list[Notice] = []

        self.search = SearchController(providers)
        self.selection = SelectionManager()
        self.search.add_listener(self.selection.on_results)
        self.search.add_listener(self._on_results)

        self.drawing = DrawingController(surface, self._on_region_changed)
        # Lives as long as the session; it only acts while nothing is being drawn.
        self._click_listener = surface.on_click(self._on_map_click)
        self._pending: set[asyncio.Task] = set()
        self._closed = False

    # --- read side ---------------------------------------------------------------

    @property
    def mode(self) -> SearchMode:
        return self.state.mode

    @property
    def results(self) -> list[SearchResultItem]:
        return self.search.results

    def drain_notices(self) -> list[Notice]:
        out, self.notices = self.notices, []
        return out

    def notify(self, severity: NoticeSeverity, message: str) -> None:
        self.notices.append(Notice(severity=severity, message=message))

    # --- searching ---------------------------------------------------------------

    def current_request(self) -> SearchRequest:
        s = self.state
        if s.mode == SearchMode.containment and s.polygon:
            return SearchRequest.containment(s.polygon, s.filters)
        return SearchRequest.proximity(s.center, s.radius_km, s.filters)

    async def refresh(self) -> SearchOutcome | None:
        """
        Run the search for the current state and wait for it.
        """
        return await self._run_search(self.current_request())

    async def wait_idle(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _run_search(self, request: SearchRequest) -> SearchOutcome | None:
        try:
            return await self.search.search(request)
        except Exception:  # results stay as they were; the user gets a notice
            logger.exception("Search failed (%s)", request.mode.value)
            self.notify(NoticeSeverity.error, "Search failed. Please try again.")
            return None

    def _schedule_search(self) -> None:
        task = asyncio.get_running_loop().create_task(self._run_search(self.current_request()))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _on_results(self, outcome: SearchOutcome) -> None:
        for message in outcome.source_errors.values():
            self.notify(NoticeSeverity.error, message)

    def _on_region_changed(self, vertices: list[Coordinate] | None) -> None:
        if self._closed:
            return
        if vertices is None:
            self.state.mode = SearchMode.proximity
            self.state.polygon = None
        else:
            self.state.mode = SearchMode.containment
            self.state.polygon = tuple(vertices)
        self._schedule_search()

    def _on_map_click(self, at: Coordinate) -> None:
        if self.drawing.state != DrawingState.idle or self.state.mode != SearchMode.proximity:
            return
        self.state.center = at
        self._schedule_search()

    def set_radius(self, radius_km: float) -> bool:
        if radius_km is None or float(radius_km) < 0:
            self.notify(NoticeSeverity.error, "Search radius must be zero or more.")
            return False
        self.state.radius_km = float(radius_km)
        self._schedule_search()
        return True

    def set_filters(self, filters: SearchFilters) -> None:
        self.state.filters = filters
        self._schedule_search()

    async def use_my_location(self) -> bool:
        outcome = await locate(self.locator, timeout_s=geolocation_timeout_s())
        if not outcome.ok:
            self.notify(NoticeSeverity.error, outcome.message)
            return False
        assert outcome.coordinate is not None
        self.state.center = outcome.coordinate
        logger.info("Search center moved to %.5f,%.5f", outcome.coordinate.lat, outcome.coordinate.lng)
        if self.state.mode == SearchMode.proximity:
            await self.refresh()
        self.notify(NoticeSeverity.success, outcome.message)
        return True

    # --- saved areas -------------------------------------------------------------

    def save_current_region(self, name: str) -> Region | None:
        vertices = self.drawing.current_polygon()
        if vertices is None:
            self.notify(NoticeSeverity.error, "Draw a search area before saving it.")
            return None
        try:
            region = self.regions.save(name, vertices)
        except (duckdb.Error, OSError) as e:
            logger.warning("Saving region failed: %s: %s", type(e).__name__, e)
            self.notify(NoticeSeverity.error, "Failed to save this area. Please try again.")
            return None
        if region is None:
            self.notify(NoticeSeverity.error, "Please enter a name for this area.")
            return None
        self.notify(NoticeSeverity.success, f'Saved area "{region.name}".')
        return region

    def load_region(self, region_id: str) -> bool:
        region = self.regions.get(region_id)
        if region is None or not self.drawing.load_region(region.coordinates):
            self.notify(NoticeSeverity.error, "That saved area could not be found.")
            return False
        self.notify(NoticeSeverity.info, f'Showing saved area "{region.name}".')
        return True

    def delete_region(self, region_id: str) -> None:
        self.regions.delete(region_id)

    # --- alerts ------------------------------------------------------------------

    async def create_alert_for_current_search(self, name: str | None = None) -> AlertSubscription | None:
        if self.alerts is None:
            self.notify(NoticeSeverity.error, "Please sign in to create alerts.")
            return None

        s = self.state
        try:
            if s.mode == SearchMode.containment and s.polygon:
                alert = await self.alerts.create(
                    AlertType.region,
                    s.filters,
                    region=AlertRegion(name=name or "Custom area", coordinates=s.polygon),
                )
            else:
                alert = await self.alerts.create(
                    AlertType.proximity,
                    s.filters,
                    proximity=ProximitySpec(center=s.center, radius_km=s.radius_km),
                )
        except AlertPermissionError:
            self.notify(NoticeSeverity.error, "Please sign in to create alerts.")
            return None
        except AlertSpecError as e:
            self.notify(NoticeSeverity.error, f"Could not create alert: {e}")
            return None
        except Exception as e:  # backend failures are arbitrary (network, storage, ...)
            logger.warning("Creating alert failed: %s: %s", type(e).__name__, e)
            self.notify(NoticeSeverity.error, "Failed to create alert. Please try again.")
            return None

        self.notify(NoticeSeverity.success, "Alert created! You'll be notified about new matches.")
        return alert

    # --- contact -----------------------------------------------------------------

    async def contact_selected(self, subject: str, body: str) -> BulkContactResult | None:
        if len(self.selection) == 0:
            self.notify(NoticeSeverity.error, "Select at least one result to contact.")
            return None
        if self.messenger is None:
            self.notify(NoticeSeverity.error, "Messaging is not available right now.")
            return None
        try:
            result = await self.selection.bulk_contact(subject, body, self.messenger)
        except ValueError as e:
            self.notify(NoticeSeverity.error, str(e))
            return None

        self.notify(NoticeSeverity.success if result.ok else NoticeSeverity.error, result.summary())
        return result

    def close(self) -> None:
        self._closed = True
        self.drawing.clear()
        self.surface.remove_listener(self._click_listener)
