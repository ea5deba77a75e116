"""Tests for the editing state machine.

Covers:
- Polygon and rectangle drawing, finish/cancel/blur
- Vertex drag, shape drag and whole-polygon move
- Vertex deletion, midpoint insertion, densify/thin
- Packed vertex references, inversion flag, hit testing
- Listener notifications
"""

from __future__ import annotations

import logging

import pytest

from annotation_map.core.config import EditorConfig
from annotation_map.core.exceptions import EditConstraintViolation, GeometryError
from annotation_map.editing import (
    IDLE,
    DraggingShape,
    DraggingVertex,
    DrawingPolygon,
    DrawingRectangle,
    EditingSession,
    MovingPolygon,
)
from annotation_map.models.geometry import GeoPoint, MultiPolygon, Ring, VertexRef
from annotation_map.models.polygon import AnnotationPolygon
from annotation_map.models.view import PixelPoint
from annotation_map.projection.view_state import ViewStateTracker

CENTER_PIXEL = PixelPoint(400, 300)


def _pixel(session: EditingSession, lat: float, lng: float) -> PixelPoint:
    return session.tracker.project_live(GeoPoint(lat, lng))


# ---------------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------------


class TestDrawPolygon:
    def test_click_click_click_finish(self, session: EditingSession, recorder) -> None:
        session.start_polygon()
        for lat, lng in [(0, 0), (0, 10), (10, 10)]:
            assert session.click(GeoPoint(lat, lng)) is None
        ring = session.finish()

        assert ring.to_pairs() == [[0, 0], [0, 10], [10, 10]]
        assert recorder.emitted == [ring]
        assert session.state == IDLE

    def test_points_accumulate(self, session: EditingSession) -> None:
        session.start_polygon()
        session.click(GeoPoint(1, 2))
        session.click(GeoPoint(3, 4))
        assert session.state == DrawingPolygon((GeoPoint(1, 2), GeoPoint(3, 4)))

    def test_finish_with_two_points_refused(self, session: EditingSession, recorder) -> None:
        session.start_polygon()
        session.click(GeoPoint(0, 0))
        session.click(GeoPoint(0, 10))
        with pytest.raises(GeometryError, match="at least 3"):
            session.finish()
        assert isinstance(session.state, DrawingPolygon)
        assert len(session.state.points) == 2
        assert recorder.emitted == []

    def test_double_click_duplicate_collapsed(self, session: EditingSession) -> None:
        session.start_polygon()
        for lat, lng in [(0, 0), (0, 10), (10, 10), (10, 10)]:
            session.click(GeoPoint(lat, lng))
        assert len(session.finish()) == 3

    def test_click_pixel_inverse_projects(self, session: EditingSession) -> None:
        session.start_polygon()
        session.click_pixel(CENTER_PIXEL)
        point = session.state.points[0]
        assert point.lat == pytest.approx(0.0)
        assert point.lng == pytest.approx(0.0)

    def test_click_while_idle_ignored(self, session: EditingSession) -> None:
        assert session.click(GeoPoint(1, 1)) is None
        assert session.state == IDLE

    def test_finish_while_idle_raises(self, session: EditingSession) -> None:
        with pytest.raises(EditConstraintViolation):
            session.finish()

    def test_start_while_drawing_raises(self, session: EditingSession) -> None:
        session.start_polygon()
        with pytest.raises(EditConstraintViolation, match="start_rectangle"):
            session.start_rectangle()

    def test_cancel_discards_points(self, session: EditingSession, recorder) -> None:
        session.start_polygon()
        session.click(GeoPoint(0, 0))
        session.cancel()
        assert session.state == IDLE
        assert recorder.emitted == []

    def test_pointer_move_sets_hover(self, session: EditingSession) -> None:
        session.start_polygon()
        session.pointer_move(CENTER_PIXEL)
        assert session.state.hover is not None

    def test_self_intersecting_ring_warns(
        self, session: EditingSession, caplog: pytest.LogCaptureFixture
    ) -> None:
        session.start_polygon()
        for lat, lng in [(0, 0), (10, 10), (0, 10), (10, 0)]:
            session.click(GeoPoint(lat, lng))
        with caplog.at_level(logging.WARNING, logger="annotation_map.editing"):
            session.finish()
        assert "self-intersects" in caplog.text


class TestDrawRectangle:
    def test_two_clicks(self, session: EditingSession, recorder) -> None:
        session.start_rectangle()
        assert session.click(GeoPoint(10, 20)) is None
        assert session.state == DrawingRectangle(GeoPoint(10, 20))
        ring = session.click(GeoPoint(30, 40))

        assert ring is not None
        closed = [list(p.as_tuple()) for p in ring.closed()]
        assert closed == [[10, 20], [10, 40], [30, 40], [30, 20], [10, 20]]
        assert recorder.emitted == [ring]
        assert session.state == IDLE

    def test_degenerate_second_corner_refused(self, session: EditingSession) -> None:
        session.start_rectangle()
        session.click(GeoPoint(10, 20))
        with pytest.raises(GeometryError):
            session.click(GeoPoint(10, 40))
        assert session.state == DrawingRectangle(GeoPoint(10, 20))

    def test_finish_rectangle_refused(self, session: EditingSession) -> None:
        session.start_rectangle()
        session.click(GeoPoint(10, 20))
        with pytest.raises(GeometryError, match="two corners"):
            session.finish()

    def test_latitude_band(self, session: EditingSession, recorder) -> None:
        ring = session.create_latitude_band(-10, 10)
        assert len(ring) == 4
        assert recorder.emitted == [ring]


# ---------------------------------------------------------------------------
# Pointer gestures
# ---------------------------------------------------------------------------


class TestVertexDrag:
    def test_drag_commits_on_pointer_up(
        self, session: EditingSession, square: Ring, recorder
    ) -> None:
        session.add_polygon("a", square)
        session.begin_vertex_drag("a", VertexRef(0, 0))
        session.pointer_move(_pixel(session, -5, -5))

        assert session.geometry("a").ring(0) == square
        preview = session.display_geometry("a").ring(0)[0]
        assert preview.lat == pytest.approx(-5)
        assert preview.lng == pytest.approx(-5)

        committed = session.pointer_up()
        assert session.state == IDLE
        assert isinstance(committed, MultiPolygon)
        assert session.geometry("a").ring(0)[0].lng == pytest.approx(-5)
        assert len(recorder.changes) == 1
        assert recorder.changes[0][0] == "a"

    def test_packed_reference(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("a", square)
        session.begin_vertex_drag("a", 2)
        assert isinstance(session.state, DraggingVertex)
        assert session.state.ref == VertexRef(0, 2)

    def test_out_of_bounds_move_ignored(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("a", square)
        session.begin_vertex_drag("a", VertexRef(0, 0))
        session.pointer_move(PixelPoint(400 + 1100, 300))
        assert session.display_geometry("a").ring(0) == square

    def test_blur_rolls_back(self, session: EditingSession, square: Ring, recorder) -> None:
        session.add_polygon("a", square)
        session.begin_vertex_drag("a", VertexRef(0, 1))
        session.pointer_move(_pixel(session, 30, 30))
        session.blur()
        assert session.state == IDLE
        assert session.geometry("a").ring(0) == square
        assert recorder.changes == []

    def test_missing_vertex_refused(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("a", square)
        with pytest.raises(EditConstraintViolation):
            session.begin_vertex_drag("a", VertexRef(0, 9))
        assert session.state == IDLE

    def test_unknown_target_refused(self, session: EditingSession) -> None:
        with pytest.raises(EditConstraintViolation, match="Unknown polygon"):
            session.begin_vertex_drag("nope", VertexRef(0, 0))

    def test_drop_onto_neighbour_refused(self, session: EditingSession, recorder) -> None:
        triangle = Ring.from_pairs([[0, 0], [0, 10], [10, 10]])
        session.add_polygon("t", triangle)
        session.begin_vertex_drag("t", VertexRef(0, 0))
        session.pointer_move(session.tracker.project_live(GeoPoint(0, 10)))

        with pytest.raises(GeometryError, match="distinct"):
            session.pointer_up()

        assert session.state == IDLE
        assert session.geometry("t").ring(0) == triangle
        assert session.geometry("t").ring(0).is_valid
        assert recorder.changes == []


class TestShapeDrag:
    def test_short_drag_discarded(self, session: EditingSession, recorder) -> None:
        session.begin_shape_drag(CENTER_PIXEL)
        session.pointer_move(PixelPoint(403, 303))
        assert session.pointer_up() is None
        assert recorder.emitted == []
        assert session.state == IDLE

    def test_long_drag_emits_rectangle(self, session: EditingSession, recorder) -> None:
        session.begin_shape_drag(CENTER_PIXEL)
        assert isinstance(session.state, DraggingShape)
        session.pointer_move(PixelPoint(450, 250))
        ring = session.pointer_up()

        assert isinstance(ring, Ring)
        assert len(ring) == 4
        assert ring[0].lat == pytest.approx(0.0)
        assert ring[2].lat > 0
        assert ring[2].lng > 0
        assert recorder.emitted == [ring]

    def test_threshold_from_config(self, tracker: ViewStateTracker) -> None:
        session = EditingSession(tracker, EditorConfig(drag_threshold_px=100))
        session.begin_shape_drag(CENTER_PIXEL)
        session.pointer_move(PixelPoint(450, 250))
        assert session.pointer_up() is None

    def test_allowed_from_rectangle_tool(self, session: EditingSession) -> None:
        session.start_rectangle()
        session.begin_shape_drag(CENTER_PIXEL)
        assert isinstance(session.state, DraggingShape)

    def test_refused_while_drawing_polygon(self, session: EditingSession) -> None:
        session.start_polygon()
        with pytest.raises(EditConstraintViolation):
            session.begin_shape_drag(CENTER_PIXEL)


class TestPolygonMove:
    def test_move_translates_all_rings(
        self, session: EditingSession, two_squares: MultiPolygon, recorder
    ) -> None:
        session.add_polygon("a", two_squares)
        session.begin_polygon_move("a", CENTER_PIXEL)
        assert isinstance(session.state, MovingPolygon)
        session.pointer_move(_pixel(session, 0, 20))
        session.pointer_up()

        moved = session.geometry("a")
        assert moved.ring(0)[1].lng == pytest.approx(30)
        assert moved.ring(1)[1].lng == pytest.approx(50)
        assert moved.ring(0)[0].lat == pytest.approx(0, abs=1e-9)
        assert len(recorder.changes) == 1

    def test_move_out_of_bounds_ignored(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("a", square)
        session.begin_polygon_move("a", CENTER_PIXEL)
        session.pointer_move(_pixel(session, 0, 175))
        assert session.display_geometry("a").ring(0) == square
        session.pointer_up()
        assert session.geometry("a").ring(0) == square

    def test_cancel_restores(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("a", square)
        session.begin_polygon_move("a", CENTER_PIXEL)
        session.pointer_move(_pixel(session, 5, 5))
        session.cancel()
        assert session.geometry("a").ring(0) == square


# ---------------------------------------------------------------------------
# Vertex / edge edits
# ---------------------------------------------------------------------------


class TestVertexEdits:
    def test_delete_vertex(self, session: EditingSession, square: Ring, recorder) -> None:
        session.add_polygon("a", square)
        result = session.delete_vertex("a", VertexRef(0, 1))
        assert len(result.ring(0)) == 3
        assert recorder.changes == [("a", result)]

    def test_delete_from_triangle_refused(
        self,
        session: EditingSession,
        triangle: Ring,
        recorder,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        session.add_polygon("a", triangle)
        with (
            caplog.at_level(logging.WARNING, logger="annotation_map.editing"),
            pytest.raises(EditConstraintViolation) as exc_info,
        ):
            session.delete_vertex("a", VertexRef(0, 0))
        assert exc_info.value.code == "EDIT_CONSTRAINT_VIOLATED"
        assert session.geometry("a").ring(0) == triangle
        assert recorder.changes == []
        assert "Refused edit" in caplog.text

    def test_delete_with_packed_reference(
        self, session: EditingSession, two_squares: MultiPolygon
    ) -> None:
        session.add_polygon("a", two_squares)
        session.delete_vertex("a", 10_002)
        assert len(session.geometry("a").ring(1)) == 3
        assert len(session.geometry("a").ring(0)) == 4

    def test_insert_midpoint(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("a", square)
        result = session.insert_midpoint("a", VertexRef(0, 0))
        assert result.ring(0)[1] == GeoPoint(0, 5)

    def test_add_and_remove_midpoints(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("a", square)
        assert len(session.add_midpoints("a").ring(0)) == 8
        assert session.remove_midpoints("a").ring(0) == square

    def test_densify_limit_from_config(self, tracker: ViewStateTracker, square: Ring) -> None:
        session = EditingSession(tracker, EditorConfig(densify_max_vertices=4))
        session.add_polygon("a", square)
        assert session.add_midpoints("a").ring(0) == square

    def test_unchanged_edit_does_not_notify(
        self, session: EditingSession, square: Ring, recorder
    ) -> None:
        session.add_polygon("a", square)
        session.remove_midpoints("a")
        assert recorder.changes == []

    def test_edit_refused_during_drag(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("a", square)
        session.begin_vertex_drag("a", VertexRef(0, 0))
        with pytest.raises(EditConstraintViolation, match="during DraggingVertex"):
            session.insert_midpoint("a", VertexRef(0, 0))

    def test_bad_packed_reference(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("a", square)
        with pytest.raises(EditConstraintViolation):
            session.delete_vertex("a", -1)


# ---------------------------------------------------------------------------
# Targets, inversion, hit testing
# ---------------------------------------------------------------------------


class TestTargets:
    def test_add_invalid_ring_refused(self, session: EditingSession) -> None:
        with pytest.raises(GeometryError):
            session.add_polygon("a", Ring.from_pairs([[0, 0], [1, 1]]))
        assert session.target_ids == []

    def test_add_annotation_polygon(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("a", AnnotationPolygon(id="a", coordinates=square, inverted=True))
        assert session.is_inverted("a") is True
        assert session.geometry("a") == MultiPolygon.from_ring(square)

    def test_toggle_inverted(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("a", square)
        assert session.toggle_inverted("a") is True
        assert session.toggle_inverted("a") is False

    def test_remove_polygon_aborts_drag(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("a", square)
        session.begin_polygon_move("a", CENTER_PIXEL)
        session.remove_polygon("a")
        assert session.state == IDLE
        assert session.target_ids == []

    def test_remove_unknown_raises(self, session: EditingSession) -> None:
        with pytest.raises(EditConstraintViolation):
            session.remove_polygon("ghost")


class TestHitTest:
    def test_topmost_wins(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("bottom", square)
        session.add_polygon("top", square)
        assert session.hit_test(_pixel(session, 5, 5)) == "top"

    def test_miss(self, session: EditingSession, square: Ring) -> None:
        session.add_polygon("a", square)
        assert session.hit_test(_pixel(session, -20, -20)) is None

    def test_second_part_of_multipolygon(
        self, session: EditingSession, two_squares: MultiPolygon
    ) -> None:
        session.add_polygon("a", two_squares)
        assert session.hit_test(_pixel(session, 25, 25)) == "a"

    def test_inverted_polygon_hit_outside_ring(
        self, session: EditingSession, square: Ring
    ) -> None:
        session.add_polygon("inv", square, inverted=True)
        assert session.hit_test(_pixel(session, -20, -20)) == "inv"
        assert session.hit_test(_pixel(session, 5, 5)) is None

    def test_inverted_polygon_under_plain_one(
        self, session: EditingSession, square: Ring
    ) -> None:
        session.add_polygon("inv", square, inverted=True)
        session.add_polygon("plain", square)
        assert session.hit_test(_pixel(session, 5, 5)) == "plain"
        assert session.hit_test(_pixel(session, -20, -20)) == "inv"
