from .controller import DrawingController, DrawingSession, DrawingState
from .surface import InMemoryMapSurface, MapSurface, OverlayEvent, PolygonOverlay

__all__ = [
    "DrawingController",
    "DrawingSession",
    "DrawingState",
    "InMemoryMapSurface",
    "MapSurface",
    "OverlayEvent",
    "PolygonOverlay",
]
