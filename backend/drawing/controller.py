from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence

from drawing.surface import (
    ListenerHandle,
    MapSurface,
    Marker,
    OverlayEvent,
    PolygonOverlay,
    Polyline,
)
from geo.aoi import bbox_for_coordinates
from listings.types import Coordinate

logger = logging.getLogger(__name__)

MIN_POLYGON_VERTICES = 3

# Called with the polygon's current vertices, or None when the drawn area is gone
# and search should fall back to proximity.
RegionChanged = Callable[[list[Coordinate] | None], None]


class DrawingState(str, Enum):
    idle = "idle"
    drawing = "drawing"
    editing = "editing"


@dataclass
class DrawingSession:
    """
    The one mutable state holder for a map's drawing/editing session.

    Map listeners live as long as the map surface; they read this object when an
    event arrives, never a copy taken when they were registered.
    """

    state: DrawingState = DrawingState.idle
    path: list[Coordinate] = field(default_factory=list)
    markers: list[Marker] = field(default_factory=list)
    polyline: Polyline | None = None
    polygon: PolygonOverlay | None = None
    drawing_listeners: list[ListenerHandle] = field(default_factory=list)
    polygon_listeners: list[ListenerHandle] = field(default_factory=list)


class DrawingController:
    """
    Idle -> Drawing -> Editing state machine for hand-drawn search regions.

    Only this controller creates or removes the polygon overlay; everything else
    reads vertices through `current_polygon()`.
    """

    def __init__(
        self,
        surface: MapSurface,
        on_region_changed: RegionChanged,
        *,
        session: DrawingSession | None = None,
    ) -> None:
        self.surface = surface
        self.session = session if session is not None else DrawingSession()
        self._on_region_changed = on_region_changed

    @property
    def state(self) -> DrawingState:
        return self.session.state

    def current_polygon(self) -> list[Coordinate] | None:
        poly = self.session.polygon
        if poly is None:
            return None
        return list(poly.path)

    # --- commands -----------------------------------------------------------

    def start_drawing(self) -> bool:
        s = self.session
        if s.state == DrawingState.drawing:
            return False
        if s.state == DrawingState.editing:
            # A new sketch replaces the current shape.
            self._remove_polygon()
            s.state = DrawingState.idle
            self._on_region_changed(None)

        s.path = []
        s.drawing_listeners = [
            self.surface.on_click(self.handle_click),
            self.surface.on_double_click(self.handle_double_click),
            self.surface.on_key(self.handle_key),
        ]
        s.state = DrawingState.drawing
        logger.debug("Drawing started")
        return True

    def commit(self, path: Sequence[Coordinate] | None = None) -> bool:
        s = self.session
        if s.state != DrawingState.drawing:
            return False
        vertices = list(path) if path is not None else list(s.path)
        if len(vertices) < MIN_POLYGON_VERTICES:
            logger.debug("Commit ignored: %d vertices", len(vertices))
            return False

        self._remove_drawing_artifacts()
        self._install_polygon(vertices)
        logger.info("Search area committed with %d vertices", len(vertices))
        self._on_region_changed(list(vertices))
        return True

    def cancel(self) -> bool:
        s = self.session
        if s.state != DrawingState.drawing:
            return False
        self._remove_drawing_artifacts()
        s.state = DrawingState.idle
        logger.debug("Drawing cancelled")
        return True

    def clear(self) -> bool:
        s = self.session
        if s.state == DrawingState.idle:
            return False
        self._remove_drawing_artifacts()
        self._remove_polygon()
        s.state = DrawingState.idle
        logger.debug("Drawn area cleared")
        self._on_region_changed(None)
        return True

    def load_region(self, coordinates: Sequence[Coordinate]) -> bool:
        vertices = list(coordinates)
        if len(vertices) < MIN_POLYGON_VERTICES:
            return False
        self._remove_drawing_artifacts()
        self._remove_polygon()
        self._install_polygon(vertices)
        bbox = bbox_for_coordinates(vertices)
        if bbox is not None:
            self.surface.fit_bounds(bbox)
        self._on_region_changed(list(vertices))
        return True

    # --- map listeners --------------------------------------------------------

    def handle_click(self, at: Coordinate) -> None:
        s = self.session
        if s.state != DrawingState.drawing:
            return
        s.path.append(at)

        marker = Marker(position=at)
        self.surface.add_overlay(marker)
        s.markers.append(marker)

        if s.polyline is not None:
            self.surface.remove_overlay(s.polyline)
            s.polyline = None
        if len(s.path) > 1:
            s.polyline = Polyline(path=list(s.path))
            self.surface.add_overlay(s.polyline)

    def handle_double_click(self, _at: Coordinate) -> None:
        if self.session.state == DrawingState.drawing:
            self.commit()

    def handle_key(self, key: str) -> None:
        if self.session.state != DrawingState.drawing:
            return
        if key == "Enter":
            self.commit()
        elif key == "Escape":
            self.cancel()

    def _on_polygon_edited(self) -> None:
        # Vertices are read at event time from the live overlay.
        vertices = self.current_polygon()
        if vertices is not None and self.session.state == DrawingState.editing:
            self._on_region_changed(vertices)

    # --- overlay lifecycle ------------------------------------------------------

    def _install_polygon(self, vertices: list[Coordinate]) -> None:
        s = self.session
        polygon = PolygonOverlay(path=list(vertices), editable=True, draggable=True)
        self.surface.add_overlay(polygon)
        s.polygon = polygon
        s.polygon_listeners = [
            self.surface.on_overlay_event(polygon, ev, self._on_polygon_edited)
            for ev in (OverlayEvent.vertex_set, OverlayEvent.vertex_insert, OverlayEvent.dragend)
        ]
        s.state = DrawingState.editing

    def _remove_polygon(self) -> None:
        s = self.session
        for h in s.polygon_listeners:
            self.surface.remove_listener(h)
        s.polygon_listeners = []
        if s.polygon is not None:
            self.surface.remove_overlay(s.polygon)
            s.polygon = None

    def _remove_drawing_artifacts(self) -> None:
        s = self.session
        for h in s.drawing_listeners:
            self.surface.remove_listener(h)
        s.drawing_listeners = []
        for m in s.markers:
            self.surface.remove_overlay(m)
        s.markers = []
        if s.polyline is not None:
            self.surface.remove_overlay(s.polyline)
            s.polyline = None
        s.path = []
