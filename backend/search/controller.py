from __future__ import annotations

import asyncio
import logging
from typing import Callable, Mapping

from geo.ops import great_circle_km, polygon_contains, polygon_from_coordinates
from listings.types import Listing, SourceType
from providers.types import CandidateProvider
from search.types import (
    SearchMode,
    SearchOutcome,
    SearchRequest,
    SearchResultItem,
)

logger = logging.getLogger(__name__)

ResultsListener = Callable[[SearchOutcome], None]

_SOURCE_LABELS: dict[SourceType, str] = {
    SourceType.vacancy: "team vacancies",
    SourceType.availability: "player availability",
}


class SearchController:
    """
    Runs proximity/containment searches over the candidate providers.

    Requests are numbered as they are issued; a response is only accepted if no
    newer request was issued while it was in flight (last-write-wins by request
    ordinal, not by arrival time). Stale responses are dropped silently.
    """

    def __init__(self, providers: Mapping[SourceType, CandidateProvider]) -> None:
        self._providers = dict(providers)
        self._issued = 0
        self._listeners: list[ResultsListener] = []
        self.latest: SearchOutcome | None = None

    @property
    def results(self) -> list[SearchResultItem]:
        return list(self.latest.items) if self.latest is not None else []

    def add_listener(self, listener: ResultsListener) -> None:
        self._listeners.append(listener)

    async def search(self, request: SearchRequest) -> SearchOutcome | None:
        self._issued += 1
        request_id = self._issued

        try:
            items, errors = await run_search(request, self._providers)
        except Exception:
            if request_id != self._issued:
                logger.debug("Stale search #%d failed; ignoring", request_id, exc_info=True)
                return None
            raise

        if request_id != self._issued:
            logger.debug(
                "Discarding stale search #%d (latest issued #%d)", request_id, self._issued
            )
            return None

        outcome = SearchOutcome(
            request_id=request_id, request=request, items=items, source_errors=errors
        )
        self.latest = outcome
        for listener in list(self._listeners):
            listener(outcome)
        return outcome


async def run_search(
    request: SearchRequest, providers: Mapping[SourceType, CandidateProvider]
) -> tuple[list[SearchResultItem], dict[SourceType, str]]:
    source_types = request.filters.search_type.source_types()
    fetched = await asyncio.gather(*(_fetch(st, providers.get(st)) for st in source_types))

    polygon = (
        polygon_from_coordinates(request.polygon or ())
        if request.mode == SearchMode.containment
        else None
    )

    items: list[SearchResultItem] = []
    errors: dict[SourceType, str] = {}
    for st, (candidates, error) in zip(source_types, fetched):
        if error is not None:
            errors[st] = error
        for listing in candidates:
            item = _evaluate(request, listing, polygon)
            if item is not None:
                items.append(item)

    if request.mode == SearchMode.proximity:
        # sort() is stable: ties keep provider order.
        items.sort(key=lambda r: r.distance_km or 0.0)
    return items, errors


def _evaluate(request: SearchRequest, listing: Listing, polygon) -> SearchResultItem | None:
    coord = listing.coordinate
    if coord is None:
        return None
    if not request.filters.matches(listing):
        return None

    if request.mode == SearchMode.proximity:
        assert request.center is not None and request.radius_km is not None
        d = great_circle_km(request.center, coord)
        if d <= request.radius_km:
            return SearchResultItem(listing=listing, distance_km=d)
        return None

    if polygon_contains(polygon, coord):
        return SearchResultItem(listing=listing, distance_km=None)
    return None


async def _fetch(
    source_type: SourceType, provider: CandidateProvider | None
) -> tuple[list[Listing], str | None]:
    label = _SOURCE_LABELS[source_type]
    if provider is None:
        logger.warning("No provider configured for %s", source_type.value)
        return [], f"Could not load {label}. Showing partial results."
    try:
        return list(await provider.fetch_all()), None
    except Exception as e:  # provider failures are arbitrary (network, decode, ...)
        logger.warning("Fetching %s failed: %s: %s", source_type.value, type(e).__name__, e)
        return [], f"Could not load {label}. Showing partial results."
