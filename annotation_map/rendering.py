"""Overlay rendering: turns session state into draw requests.

Two layers are drawn:

- ``Layer.STABLE``: saved polygons, projected against the stable view
  snapshot.  While a pan is in progress the layer is only translated by
  ``ViewStateTracker.compute_transform_offset()``, never re-projected.
- ``Layer.LIVE``: everything that follows the pointer (polygon being
  drawn, rectangle previews, the polygon being edited and its vertex and
  edge-midpoint handles), projected against the live view.

Inverted polygons are drawn as a single even-odd path: the world
boundary ring followed by the polygon's rings, which become holes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from annotation_map.editing.drag import (
    DraggingShape,
    DraggingVertex,
    DrawingPolygon,
    DrawingRectangle,
    MovingPolygon,
)
from annotation_map.models.geometry import Ring, rectangle_ring, world_boundary_ring
from annotation_map.ports.base import Layer, RenderSurface, Style

if TYPE_CHECKING:
    from collections.abc import Callable

    from annotation_map.editing.session import EditingSession
    from annotation_map.models.geometry import GeoPoint, MultiPolygon
    from annotation_map.models.view import PixelPoint

logger = logging.getLogger("annotation_map.rendering")


@dataclass(frozen=True, slots=True)
class OverlayTheme:
    """Styles for every kind of draw request."""

    saved: Style = field(default_factory=lambda: Style(stroke="#0066cc", fill="#0066cc"))
    inverted: Style = field(
        default_factory=lambda: Style(stroke="#cc3300", fill="#cc3300", fill_opacity=0.3)
    )
    editing: Style = field(
        default_factory=lambda: Style(stroke="#ff9900", fill="#ff9900", stroke_width=3.0)
    )
    drawing: Style = field(default_factory=lambda: Style(stroke="#ff9900", stroke_width=2.0))
    rubber_band: Style = field(default_factory=lambda: Style(stroke="#ff9900", dashed=True))
    preview: Style = field(
        default_factory=lambda: Style(stroke="#ff9900", fill="#ff9900", dashed=True)
    )
    vertex: Style = field(
        default_factory=lambda: Style(stroke="#ffffff", fill="#ff9900", radius=6.0)
    )
    midpoint: Style = field(
        default_factory=lambda: Style(stroke="#ffffff", fill="#ffcc66", radius=4.0)
    )


class OverlayRenderer:
    """Issues draw requests for an ``EditingSession`` on a ``RenderSurface``.

    Args:
        surface: Host drawing target.
        theme: Styles; defaults to ``OverlayTheme()``.
    """

    def __init__(self, surface: RenderSurface, theme: OverlayTheme | None = None) -> None:
        self._surface = surface
        self._theme = theme or OverlayTheme()

    @property
    def theme(self) -> OverlayTheme:
        return self._theme

    def render(self, session: EditingSession, *, editing_id: str | None = None) -> None:
        """Redraw both layers.

        Args:
            session: Source of targets, drag state and view state.
            editing_id: Polygon selected for editing; it is drawn on the
                live layer with vertex and midpoint handles.  A polygon
                being dragged or moved is always treated as edited.
        """
        state = session.state
        if isinstance(state, DraggingVertex | MovingPolygon):
            editing_id = state.target_id

        self.render_stable(session, skip=editing_id)
        self._surface.clear(Layer.LIVE)
        if editing_id is not None and editing_id in session.target_ids:
            self._draw_edited(session, editing_id)
        self._draw_gesture(session)

    def render_stable(self, session: EditingSession, *, skip: str | None = None) -> None:
        """Redraw saved polygons against the stable snapshot and set the layer offset."""
        tracker = session.tracker
        surface = self._surface
        surface.clear(Layer.STABLE)
        surface.set_layer_offset(Layer.STABLE, tracker.compute_transform_offset())
        for target_id in session.target_ids:
            if target_id == skip:
                continue
            self._draw_polygon(
                Layer.STABLE,
                session.geometry(target_id),
                tracker.project_stable,
                inverted=session.is_inverted(target_id),
                style=self._theme.saved,
            )
        logger.debug("Rendered %d saved polygon(s)", len(session.target_ids))

    def update_offset(self, session: EditingSession) -> None:
        """Pan in progress: only move the stable layer."""
        self._surface.set_layer_offset(
            Layer.STABLE, session.tracker.compute_transform_offset()
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _draw_polygon(
        self,
        layer: Layer,
        geometry: MultiPolygon,
        project: Callable[[GeoPoint], PixelPoint],
        *,
        inverted: bool,
        style: Style,
    ) -> None:
        surface = self._surface
        if inverted:
            rings = [world_boundary_ring(), *geometry.rings()]
            surface.draw_path(
                layer,
                [_project(ring, project) for ring in rings],
                self._theme.inverted,
            )
            return
        for polygon in geometry.polygons:
            if polygon.holes:
                surface.draw_path(
                    layer, [_project(ring, project) for ring in polygon.rings()], style
                )
            else:
                surface.draw_ring(layer, _project(polygon.outer, project), style)

    def _draw_edited(self, session: EditingSession, target_id: str) -> None:
        tracker = session.tracker
        geometry = session.display_geometry(target_id)
        self._draw_polygon(
            Layer.LIVE,
            geometry,
            tracker.project_live,
            inverted=session.is_inverted(target_id),
            style=self._theme.editing,
        )
        for ring in geometry.rings():
            for index, vertex in enumerate(ring):
                self._surface.draw_point(
                    Layer.LIVE, tracker.project_live(vertex), self._theme.vertex
                )
                self._surface.draw_point(
                    Layer.LIVE,
                    tracker.project_live(ring.edge_midpoint(index)),
                    self._theme.midpoint,
                )

    def _draw_gesture(self, session: EditingSession) -> None:
        state = session.state
        project = session.tracker.project_live
        surface = self._surface
        theme = self._theme

        if isinstance(state, DrawingPolygon):
            pixels = [project(p) for p in state.points]
            for a, b in zip(pixels, pixels[1:], strict=False):
                surface.draw_line(Layer.LIVE, a, b, theme.drawing)
            if pixels and state.hover is not None:
                hover = project(state.hover)
                surface.draw_line(Layer.LIVE, pixels[-1], hover, theme.rubber_band)
                if len(pixels) >= 2:
                    surface.draw_line(Layer.LIVE, hover, pixels[0], theme.rubber_band)
            for pixel in pixels:
                surface.draw_point(Layer.LIVE, pixel, theme.vertex)
        elif isinstance(state, DrawingRectangle):
            if state.corner is not None and state.hover is not None:
                self._draw_preview(rectangle_ring(state.corner, state.hover), project)
        elif isinstance(state, DraggingShape):
            self._draw_preview(rectangle_ring(state.start, state.current), project)

    def _draw_preview(self, ring: Ring, project: Callable[[GeoPoint], PixelPoint]) -> None:
        if ring.is_valid:
            self._surface.draw_ring(Layer.LIVE, _project(ring, project), self._theme.preview)


def _project(ring: Ring, project: Callable[[GeoPoint], PixelPoint]) -> list[PixelPoint]:
    return [project(p) for p in ring]
