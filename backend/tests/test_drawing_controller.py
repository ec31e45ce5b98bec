from __future__ import annotations

from drawing.controller import DrawingController, DrawingState
from drawing.surface import InMemoryMapSurface, Marker, PolygonOverlay, Polyline
from geo.aoi import BBox
from listings.types import Coordinate

SQUARE = [
    Coordinate(51.49, -0.13),
    Coordinate(51.49, -0.11),
    Coordinate(51.51, -0.11),
    Coordinate(51.51, -0.13),
]


def _controller():
    surface = InMemoryMapSurface()
    changes: list = []
    return surface, DrawingController(surface, changes.append), changes


def _draw(surface: InMemoryMapSurface, vertices) -> None:
    for v in vertices:
        surface.click(v)


def test_commit_needs_three_vertices():
    surface, ctl, changes = _controller()
    ctl.start_drawing()
    _draw(surface, SQUARE[:2])

    surface.press_key("Enter")
    surface.double_click(SQUARE[1])
    assert ctl.state == DrawingState.drawing
    assert surface.overlays_of(PolygonOverlay) == []
    assert changes == []

    surface.click(SQUARE[2])
    surface.press_key("Enter")
    assert ctl.state == DrawingState.editing
    assert len(surface.overlays_of(PolygonOverlay)) == 1
    assert changes == [SQUARE[:3]]


def test_commit_outside_drawing_is_ignored():
    _surface, ctl, changes = _controller()
    assert not ctl.commit(SQUARE)
    assert ctl.state == DrawingState.idle
    assert changes == []


def test_polyline_is_replaced_not_stacked():
    surface, ctl, _changes = _controller()
    ctl.start_drawing()
    _draw(surface, SQUARE)

    lines = surface.overlays_of(Polyline)
    assert len(lines) == 1
    assert lines[0].path == SQUARE
    assert len(surface.overlays_of(Marker)) == 4


def test_commit_removes_markers_and_polyline():
    surface, ctl, _changes = _controller()
    ctl.start_drawing()
    _draw(surface, SQUARE)
    surface.double_click(SQUARE[-1])

    assert surface.overlays_of(Marker) == []
    assert surface.overlays_of(Polyline) == []
    assert ctl.current_polygon() == SQUARE


def test_clicks_in_editing_do_not_add_vertices():
    surface, ctl, _changes = _controller()
    ctl.start_drawing()
    _draw(surface, SQUARE)
    surface.double_click(SQUARE[-1])

    surface.click(Coordinate(51.0, 0.0))
    assert ctl.current_polygon() == SQUARE
    assert surface.overlays_of(Marker) == []


def test_no_listeners_leak_over_many_cycles():
    surface, ctl, _changes = _controller()
    for i in range(25):
        ctl.start_drawing()
        _draw(surface, SQUARE)
        if i % 3 == 0:
            surface.press_key("Escape")
            continue
        surface.double_click(SQUARE[-1])
        if i % 3 == 1:
            # Start over straight from Editing.
            ctl.start_drawing()
            _draw(surface, SQUARE[:3])
            surface.press_key("Enter")
        ctl.clear()

    assert ctl.state == DrawingState.idle
    assert surface.listener_count() == 0
    assert surface.overlay_listener_count() == 0
    assert surface.overlays == {}


def test_listener_counts_while_drawing_and_editing():
    surface, ctl, _changes = _controller()
    ctl.start_drawing()
    assert surface.listener_count("click") == 1
    assert surface.listener_count("dblclick") == 1
    assert surface.listener_count("keydown") == 1

    _draw(surface, SQUARE)
    surface.press_key("Enter")
    assert surface.listener_count() == 0
    assert surface.overlay_listener_count() == 3

    # A second start from Editing must not double-register.
    ctl.start_drawing()
    assert surface.listener_count("click") == 1
    assert surface.overlay_listener_count() == 0


def test_polygon_edits_report_current_vertices():
    surface, ctl, changes = _controller()
    ctl.start_drawing()
    _draw(surface, SQUARE)
    surface.press_key("Enter")
    polygon = surface.overlays_of(PolygonOverlay)[0]

    moved = Coordinate(51.52, -0.10)
    surface.move_vertex(polygon, 2, moved)
    assert changes[-1][2] == moved

    surface.insert_vertex(polygon, 1, Coordinate(51.48, -0.12))
    assert len(changes[-1]) == 5

    surface.drag(polygon, d_lat=0.01, d_lng=0.0)
    assert changes[-1][0].lat == SQUARE[0].lat + 0.01
    assert changes[-1] == ctl.current_polygon()


def test_clear_removes_polygon_and_reports_none():
    surface, ctl, changes = _controller()
    ctl.start_drawing()
    _draw(surface, SQUARE)
    surface.press_key("Enter")
    polygon = surface.overlays_of(PolygonOverlay)[0]

    assert ctl.clear()
    assert changes[-1] is None
    assert ctl.current_polygon() is None

    # Edits to the removed overlay no longer reach the controller.
    n = len(changes)
    surface.move_vertex(polygon, 0, Coordinate(51.0, 0.0))
    assert len(changes) == n


def test_clear_from_idle_is_a_no_op():
    _surface, ctl, changes = _controller()
    assert not ctl.clear()
    assert changes == []


def test_escape_cancels_without_callback():
    surface, ctl, changes = _controller()
    ctl.start_drawing()
    _draw(surface, SQUARE)
    surface.press_key("Escape")
    assert ctl.state == DrawingState.idle
    assert changes == []
    assert surface.overlays == {}


def test_start_from_editing_drops_the_old_polygon():
    surface, ctl, changes = _controller()
    ctl.start_drawing()
    _draw(surface, SQUARE)
    surface.press_key("Enter")

    assert ctl.start_drawing()
    assert ctl.state == DrawingState.drawing
    assert changes[-1] is None
    assert surface.overlays_of(PolygonOverlay) == []


def test_load_region_enters_editing_and_fits_viewport():
    surface, ctl, changes = _controller()
    assert ctl.load_region(SQUARE)
    assert ctl.state == DrawingState.editing
    assert changes == [SQUARE]
    assert surface.viewport == BBox(min_lon=-0.13, min_lat=51.49, max_lon=-0.11, max_lat=51.51)


def test_load_region_rejects_too_few_vertices():
    surface, ctl, changes = _controller()
    assert not ctl.load_region(SQUARE[:2])
    assert ctl.state == DrawingState.idle
    assert surface.viewport is None
    assert changes == []
