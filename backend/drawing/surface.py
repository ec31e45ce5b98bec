from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Protocol, Union

from geo.aoi import BBox
from listings.types import Coordinate

ClickHandler = Callable[[Coordinate], None]
KeyHandler = Callable[[str], None]
OverlayHandler = Callable[[], None]

_ids = itertools.count(1)


class OverlayEvent(str, Enum):
    vertex_set = "set_at"
    vertex_insert = "insert_at"
    dragend = "dragend"


@dataclass(eq=False)
class Marker:
    position: Coordinate
    id: int = field(default_factory=lambda: next(_ids))


@dataclass(eq=False)
class Polyline:
    path: list[Coordinate]
    id: int = field(default_factory=lambda: next(_ids))


@dataclass(eq=False)
class PolygonOverlay:
    """
    Closed shape on the map. The provider mutates `path` in place when the user
    drags a vertex, inserts one, or drags the whole shape.
    """

    path: list[Coordinate]
    editable: bool = True
    draggable: bool = True
    id: int = field(default_factory=lambda: next(_ids))


Overlay = Union[Marker, Polyline, PolygonOverlay]


@dataclass(frozen=True)
class ListenerHandle:
    id: int
    event: str
    overlay_id: int | None = None


class MapSurface(Protocol):
    """
    What the region-search engine needs from a mapping provider.

    Provider specifics (tiles, styling, projection) stay behind this interface.
    """

    def on_click(self, handler: ClickHandler) -> ListenerHandle: ...

    def on_double_click(self, handler: ClickHandler) -> ListenerHandle: ...

    def on_key(self, handler: KeyHandler) -> ListenerHandle: ...

    def on_overlay_event(
        self, overlay: PolygonOverlay, event: OverlayEvent, handler: OverlayHandler
    ) -> ListenerHandle: ...

    def remove_listener(self, handle: ListenerHandle) -> None: ...

    def add_overlay(self, overlay: Overlay) -> None: ...

    def remove_overlay(self, overlay: Overlay) -> None: ...

    def fit_bounds(self, bbox: BBox) -> None: ...


class InMemoryMapSurface(MapSurface):
    """
    Headless map surface.

    Keeps overlays and listeners in dicts and dispatches simulated pointer, key and
    polygon-edit events synchronously, one at a time (like a browser event queue).
    Used for server-side sessions and tests.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, dict[int, Callable]] = {}
        self._overlay_listeners: dict[tuple[int, str], dict[int, OverlayHandler]] = {}
        self.overlays: dict[int, Overlay] = {}
        self.viewport: BBox | None = None

    # --- MapSurface -------------------------------------------------------

    def on_click(self, handler: ClickHandler) -> ListenerHandle:
        return self._add("click", handler)

    def on_double_click(self, handler: ClickHandler) -> ListenerHandle:
        return self._add("dblclick", handler)

    def on_key(self, handler: KeyHandler) -> ListenerHandle:
        return self._add("keydown", handler)

    def on_overlay_event(
        self, overlay: PolygonOverlay, event: OverlayEvent, handler: OverlayHandler
    ) -> ListenerHandle:
        h = ListenerHandle(id=next(_ids), event=event.value, overlay_id=overlay.id)
        self._overlay_listeners.setdefault((overlay.id, event.value), {})[h.id] = handler
        return h

    def remove_listener(self, handle: ListenerHandle) -> None:
        if handle.overlay_id is None:
            self._listeners.get(handle.event, {}).pop(handle.id, None)
        else:
            key = (handle.overlay_id, handle.event)
            bucket = self._overlay_listeners.get(key)
            if bucket is not None:
                bucket.pop(handle.id, None)
                if not bucket:
                    self._overlay_listeners.pop(key, None)

    def add_overlay(self, overlay: Overlay) -> None:
        self.overlays[overlay.id] = overlay

    def remove_overlay(self, overlay: Overlay) -> None:
        self.overlays.pop(overlay.id, None)

    def fit_bounds(self, bbox: BBox) -> None:
        self.viewport = bbox.normalized()

    # --- inspection -------------------------------------------------------

    def listener_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, {}))
        return sum(len(b) for b in self._listeners.values())

    def overlay_listener_count(self) -> int:
        return sum(len(b) for b in self._overlay_listeners.values())

    def overlays_of(self, kind: type) -> list[Overlay]:
        return [o for o in self.overlays.values() if isinstance(o, kind)]

    # --- simulated user input ---------------------------------------------

    def click(self, at: Coordinate) -> None:
        self._dispatch("click", at)

    def double_click(self, at: Coordinate) -> None:
        self._dispatch("dblclick", at)

    def press_key(self, key: str) -> None:
        self._dispatch("keydown", key)

    def move_vertex(self, polygon: PolygonOverlay, index: int, to: Coordinate) -> None:
        polygon.path[index] = to
        self._dispatch_overlay(polygon, OverlayEvent.vertex_set)

    def insert_vertex(self, polygon: PolygonOverlay, index: int, at: Coordinate) -> None:
        polygon.path.insert(index, at)
        self._dispatch_overlay(polygon, OverlayEvent.vertex_insert)

    def drag(self, polygon: PolygonOverlay, *, d_lat: float, d_lng: float) -> None:
        polygon.path[:] = [Coordinate(lat=c.lat + d_lat, lng=c.lng + d_lng) for c in polygon.path]
        self._dispatch_overlay(polygon, OverlayEvent.dragend)

    def _add(self, event: str, handler: Callable) -> ListenerHandle:
        h = ListenerHandle(id=next(_ids), event=event)
        self._listeners.setdefault(event, {})[h.id] = handler
        return h

    def _dispatch(self, event: str, arg) -> None:
        # Snapshot: handlers may add/remove listeners while we dispatch.
        for handler in list(self._listeners.get(event, {}).values()):
            handler(arg)

    def _dispatch_overlay(self, polygon: PolygonOverlay, event: OverlayEvent) -> None:
        for handler in list(self._overlay_listeners.get((polygon.id, event.value), {}).values()):
            handler()
