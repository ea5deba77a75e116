"""Editing state machine driven by host pointer events.

``EditingSession`` owns the current ``DragSession`` and the set of
registered target polygons.  Every public method is one host event;
each either moves the state machine, mutates a target, or raises
without touching anything.

Transitions::

    Idle --start_polygon--> DrawingPolygon --click--> DrawingPolygon
                                           --finish--> Idle (emit ring)
    Idle --start_rectangle--> DrawingRectangle(None) --click--> DrawingRectangle(c)
                                                     --click--> Idle (emit rectangle)
    Idle --begin_vertex_drag--> DraggingVertex --pointer_up--> Idle (commit)
    Idle --begin_shape_drag--> DraggingShape --pointer_up--> Idle (emit if > threshold)
    Idle --begin_polygon_move--> MovingPolygon --pointer_up--> Idle (commit)
    any --cancel/blur--> Idle (discard in-progress points and previews)

Committed target geometry goes to ``on_change(target_id, geometry)``;
finished shapes go to ``on_emit(ring)`` and are also returned.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from typing import TYPE_CHECKING

from annotation_map.core.config import EditorConfig
from annotation_map.core.exceptions import EditConstraintViolation, GeometryError
from annotation_map.editing import operations
from annotation_map.editing.drag import (
    DRAWING_STATES,
    IDLE,
    POINTER_DRAG_STATES,
    DraggingShape,
    DraggingVertex,
    DragSession,
    DrawingPolygon,
    DrawingRectangle,
    Idle,
    MovingPolygon,
)
from annotation_map.models.geometry import (
    GeoPoint,
    MultiPolygon,
    PolygonWithHoles,
    Ring,
    VertexRef,
    is_within_bounds,
    latitude_band_ring,
    rectangle_ring,
    world_boundary_ring,
)
from annotation_map.models.polygon import AnnotationPolygon
from annotation_map.projection import mercator

if TYPE_CHECKING:
    from annotation_map.models.view import PixelPoint
    from annotation_map.projection.view_state import ViewStateTracker

logger = logging.getLogger("annotation_map.editing")

ChangeListener = Callable[[str, MultiPolygon], None]
EmitListener = Callable[[Ring], None]


class EditingSession:
    """Pointer-event state machine over a set of target polygons.

    Args:
        tracker: Supplies the live view used to turn pixels into geo points.
        config: Drag threshold and densify/thin limits.
        on_change: Called with ``(target_id, geometry)`` after every
            committed edit to a registered polygon.
        on_emit: Called with every finished shape.

    Example::

        session = EditingSession(tracker, on_emit=shapes.append)
        session.start_rectangle()
        session.click(GeoPoint(10, 20))
        ring = session.click(GeoPoint(30, 40))
    """

    def __init__(
        self,
        tracker: ViewStateTracker,
        config: EditorConfig | None = None,
        *,
        on_change: ChangeListener | None = None,
        on_emit: EmitListener | None = None,
    ) -> None:
        self._tracker = tracker
        self._config = config or EditorConfig()
        self._on_change = on_change
        self._on_emit = on_emit
        self._state: DragSession = IDLE
        self._targets: dict[str, MultiPolygon] = {}
        self._inverted: dict[str, bool] = {}

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> DragSession:
        return self._state

    @property
    def tracker(self) -> ViewStateTracker:
        return self._tracker

    @property
    def is_idle(self) -> bool:
        return isinstance(self._state, Idle)

    @property
    def target_ids(self) -> list[str]:
        """Registered polygon ids, bottom-most first."""
        return list(self._targets)

    def geometry(self, target_id: str) -> MultiPolygon:
        """Committed geometry of a registered polygon."""
        self._require_target(target_id)
        return self._targets[target_id]

    def display_geometry(self, target_id: str) -> MultiPolygon:
        """Geometry to draw for *target_id*, including an in-flight drag preview."""
        state = self._state
        if isinstance(state, DraggingVertex | MovingPolygon) and state.target_id == target_id:
            return state.preview
        return self.geometry(target_id)

    def is_inverted(self, target_id: str) -> bool:
        self._require_target(target_id)
        return self._inverted[target_id]

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def add_polygon(
        self,
        target_id: str,
        geometry: MultiPolygon | PolygonWithHoles | Ring | AnnotationPolygon,
        *,
        inverted: bool = False,
    ) -> None:
        """Register (or replace) an editable polygon.

        An ``AnnotationPolygon`` brings its own ``inverted`` flag.

        Raises:
            GeometryError: If any ring has fewer than 3 distinct vertices.
        """
        if isinstance(geometry, AnnotationPolygon):
            inverted = geometry.inverted
            geometry = geometry.geometry
        elif isinstance(geometry, Ring):
            geometry = MultiPolygon.from_ring(geometry)
        elif isinstance(geometry, PolygonWithHoles):
            geometry = MultiPolygon((geometry,))
        if not geometry.polygons:
            msg = f"Polygon {target_id!r} has no rings"
            raise GeometryError(msg)
        for ring in geometry.rings():
            ring.require_valid(f"polygon {target_id!r}")
        self._targets[target_id] = geometry
        self._inverted[target_id] = inverted

    def remove_polygon(self, target_id: str) -> None:
        """Unregister a polygon, aborting any drag that targets it."""
        self._require_target(target_id)
        state = self._state
        if isinstance(state, DraggingVertex | MovingPolygon) and state.target_id == target_id:
            self._state = IDLE
        del self._targets[target_id]
        del self._inverted[target_id]

    def toggle_inverted(self, target_id: str) -> bool:
        """Flip the inversion flag of *target_id* and return the new value."""
        self._require_target(target_id)
        self._inverted[target_id] = not self._inverted[target_id]
        logger.info("Polygon %s inverted=%s", target_id, self._inverted[target_id])
        return self._inverted[target_id]

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def start_polygon(self) -> None:
        self._require_idle("start_polygon")
        self._state = DrawingPolygon()

    def start_rectangle(self) -> None:
        self._require_idle("start_rectangle")
        self._state = DrawingRectangle()

    def click(self, geo: GeoPoint) -> Ring | None:
        """Map click at *geo*.

        Adds a vertex while drawing a polygon, or places a rectangle
        corner; the second corner emits the rectangle and returns it.
        Clicks in any other state are ignored.

        Raises:
            GeometryError: If the second rectangle corner shares a
                latitude or longitude with the first.  The first corner
                is kept.
        """
        state = self._state
        if isinstance(state, DrawingPolygon):
            self._state = replace(state, points=(*state.points, geo))
            return None
        if isinstance(state, DrawingRectangle):
            if state.corner is None:
                self._state = replace(state, corner=geo)
                return None
            ring = rectangle_ring(state.corner, geo)
            if not ring.is_valid:
                msg = "Rectangle corners must differ in both latitude and longitude"
                logger.warning(msg)
                raise GeometryError(msg)
            self._state = IDLE
            return self._emit(ring)
        logger.debug("Ignoring click in state %s", type(state).__name__)
        return None

    def click_pixel(self, pixel: PixelPoint) -> Ring | None:
        """``click`` at a pointer pixel, inverse-projected with the live view."""
        return self.click(self._tracker.inverse_live(pixel))

    def finish(self) -> Ring:
        """Close the polygon being drawn and emit it.

        Consecutive duplicate clicks are collapsed first.

        Raises:
            GeometryError: If fewer than 3 distinct vertices were placed,
                or a rectangle has no second corner.  The state is kept
                so the user can keep clicking.
            EditConstraintViolation: If nothing is being drawn.
        """
        state = self._state
        if isinstance(state, DrawingRectangle):
            msg = "Rectangle needs two corners before it can be finished"
            logger.warning(msg)
            raise GeometryError(msg)
        if not isinstance(state, DrawingPolygon):
            msg = f"finish() is not valid in state {type(state).__name__}"
            raise EditConstraintViolation(msg)

        ring = Ring(tuple(operations.collapse_repeats(list(state.points))))
        if not ring.is_valid:
            msg = f"Polygon needs at least 3 distinct points, got {ring.distinct_count}"
            logger.warning(msg)
            raise GeometryError(msg)
        self._state = IDLE
        return self._emit(ring)

    def create_latitude_band(self, south: float, north: float) -> Ring:
        """Emit a full-width band between two latitudes.

        Raises:
            GeometryError: If the band is too thin.
        """
        self._require_idle("create_latitude_band")
        return self._emit(latitude_band_ring(south, north))

    def cancel(self) -> None:
        """Force ``Idle``, discarding drawn points and drag previews."""
        if not self.is_idle:
            logger.info("Cancelled %s", type(self._state).__name__)
        self._state = IDLE

    def blur(self) -> None:
        """Host lost focus mid-gesture; same as ``cancel``."""
        self.cancel()

    # ------------------------------------------------------------------
    # Pointer gestures
    # ------------------------------------------------------------------

    def begin_vertex_drag(self, target_id: str, ref: VertexRef | int) -> None:
        """Start dragging one vertex of a registered polygon.

        *ref* may be the packed integer form used by host UIs.

        Raises:
            EditConstraintViolation: If not idle, or the target or
                vertex does not exist.
        """
        self._require_idle("begin_vertex_drag")
        ref = self._decode(ref)
        geometry = self.geometry(target_id)
        operations.resolve_ring(geometry, ref)
        self._state = DraggingVertex(target_id, ref, geometry)

    def begin_shape_drag(self, pixel: PixelPoint) -> None:
        """Start a press-drag-release rectangle at *pixel*.

        Valid when idle or when the rectangle tool has no corner yet.
        """
        state = self._state
        rectangle_tool = isinstance(state, DrawingRectangle) and state.corner is None
        if not (isinstance(state, Idle) or rectangle_tool):
            msg = f"begin_shape_drag() is not valid in state {type(state).__name__}"
            raise EditConstraintViolation(msg)
        start = self._tracker.inverse_live(pixel)
        self._state = DraggingShape(start, start)

    def begin_polygon_move(self, target_id: str, pixel: PixelPoint) -> None:
        """Start moving a whole registered polygon with the pointer."""
        self._require_idle("begin_polygon_move")
        geometry = self.geometry(target_id)
        self._state = MovingPolygon(target_id, pixel, geometry, geometry)

    def pointer_move(self, pixel: PixelPoint) -> None:
        """Pointer moved to *pixel*.

        Positions outside the Web Mercator latitude range are ignored.
        """
        state = self._state
        geo = self._tracker.inverse_live(pixel)

        if isinstance(state, DraggingVertex):
            if not is_within_bounds(geo.lat, geo.lng):
                return
            preview = operations.move_vertex(state.preview, state.ref, geo)
            self._state = replace(state, preview=preview)
        elif isinstance(state, DraggingShape):
            if is_within_bounds(geo.lat, geo.lng):
                self._state = replace(state, current=geo)
        elif isinstance(state, MovingPolygon):
            start = self._tracker.inverse_live(state.start_pixel)
            moved = state.original.translate(geo.lat - start.lat, geo.lng - start.lng)
            if all(is_within_bounds(p.lat, p.lng) for p in moved.all_points()):
                self._state = replace(state, preview=moved)
        elif isinstance(state, DRAWING_STATES):
            self._state = replace(state, hover=geo)

    def pointer_up(self) -> Ring | MultiPolygon | None:
        """Pointer released: commit a drag or emit a dragged rectangle.

        Returns the committed geometry, the emitted ring, or ``None``.

        Raises:
            GeometryError: If the dragged geometry has a ring with fewer
                than 3 distinct vertices (e.g. a vertex dropped onto its
                neighbour).  The target keeps its previous geometry.
        """
        state = self._state
        if isinstance(state, DraggingVertex | MovingPolygon):
            self._state = IDLE
            try:
                for ring in state.preview.rings():
                    ring.require_valid(f"polygon {state.target_id!r}")
            except GeometryError as exc:
                logger.warning("Refused drag on %s: %s", state.target_id, exc.message)
                raise
            return self._commit(state.target_id, state.preview)
        if isinstance(state, DraggingShape):
            self._state = IDLE
            distance = mercator.pixel_distance(
                self._tracker.project_live(state.start),
                self._tracker.project_live(state.current),
            )
            if distance <= self._config.drag_threshold_px:
                logger.debug("Shape drag of %.1fpx below threshold, discarded", distance)
                return None
            ring = rectangle_ring(state.start, state.current)
            if not ring.is_valid:
                logger.debug("Shape drag along one axis only, discarded")
                return None
            return self._emit(ring)
        return None

    # ------------------------------------------------------------------
    # Vertex / edge edits
    # ------------------------------------------------------------------

    def delete_vertex(self, target_id: str, ref: VertexRef | int) -> MultiPolygon:
        """Remove one vertex.

        Raises:
            EditConstraintViolation: If the ring has only 3 vertices, the
                vertex does not exist, or a drag is in progress.
        """
        return self._edit(
            target_id,
            lambda geometry: operations.delete_vertex(geometry, self._decode(ref)),
        )

    def insert_midpoint(self, target_id: str, ref: VertexRef | int) -> MultiPolygon:
        """Insert the midpoint of the edge starting at *ref*."""
        return self._edit(
            target_id,
            lambda geometry: operations.insert_midpoint(geometry, self._decode(ref)),
        )

    def add_midpoints(self, target_id: str) -> MultiPolygon:
        """Densify every ring of *target_id*."""
        limit = self._config.densify_max_vertices
        return self._edit(target_id, lambda g: operations.densify(g, max_vertices=limit))

    def remove_midpoints(self, target_id: str) -> MultiPolygon:
        """Thin every ring of *target_id* to every other vertex."""
        limit = self._config.thin_min_vertices
        return self._edit(target_id, lambda g: operations.thin(g, min_vertices=limit))

    # ------------------------------------------------------------------
    # Hit testing
    # ------------------------------------------------------------------

    def hit_test(self, pixel: PixelPoint) -> str | None:
        """Id of the topmost registered polygon under *pixel*, or ``None``.

        An inverted polygon covers the world outside its rings, the same
        area the overlay renderer fills.
        """
        from shapely.geometry import Point

        geo = self._tracker.inverse_live(pixel)
        point = Point(geo.lng, geo.lat)
        for target_id in reversed(self._targets):
            area = self.display_geometry(target_id).to_shapely()
            if self._inverted[target_id]:
                area = world_boundary_ring().to_shapely().difference(area)
            if area.covers(point):
                return target_id
        return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _edit(
        self,
        target_id: str,
        operation: Callable[[MultiPolygon], MultiPolygon],
    ) -> MultiPolygon:
        if isinstance(self._state, POINTER_DRAG_STATES):
            msg = f"Cannot edit {target_id!r} during {type(self._state).__name__}"
            raise EditConstraintViolation(msg)
        try:
            updated = operation(self.geometry(target_id))
        except EditConstraintViolation as exc:
            logger.warning("Refused edit on %s: %s", target_id, exc.message)
            raise
        return self._commit(target_id, updated)

    def _commit(self, target_id: str, geometry: MultiPolygon) -> MultiPolygon:
        if geometry == self._targets.get(target_id):
            return geometry
        self._targets[target_id] = geometry
        logger.info(
            "Committed edit to %s (%d rings, %d vertices)",
            target_id,
            geometry.ring_count,
            sum(len(r) for r in geometry.rings()),
        )
        if self._on_change is not None:
            self._on_change(target_id, geometry)
        return geometry

    def _emit(self, ring: Ring) -> Ring:
        if not ring.to_shapely().exterior.is_simple:
            logger.warning("Emitted ring with %d vertices self-intersects", len(ring))
        logger.info("Emitted ring with %d vertices", len(ring))
        if self._on_emit is not None:
            self._on_emit(ring)
        return ring

    def _require_idle(self, operation: str) -> None:
        if not self.is_idle:
            msg = f"{operation}() is not valid in state {type(self._state).__name__}"
            raise EditConstraintViolation(msg)

    def _require_target(self, target_id: str) -> None:
        if target_id not in self._targets:
            msg = f"Unknown polygon {target_id!r}"
            raise EditConstraintViolation(msg)

    @staticmethod
    def _decode(ref: VertexRef | int) -> VertexRef:
        if isinstance(ref, VertexRef):
            return ref
        try:
            return VertexRef.decode(ref)
        except ValueError as exc:
            raise EditConstraintViolation(str(exc)) from exc
