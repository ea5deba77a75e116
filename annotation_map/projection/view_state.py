"""Live/stable view-state tracking.

Saved polygons are projected against a *stable* snapshot of the view
instead of the live one.  During a pan gesture the snapshot stays
frozen and the host moves the whole stable layer with one translate
(``compute_transform_offset``) rather than re-projecting every vertex
on every frame.  When the gesture settles, or the zoom level changes,
the snapshot catches up and the offset returns to zero.
"""

from __future__ import annotations

import logging

from annotation_map.models.geometry import GeoPoint
from annotation_map.models.view import PixelPoint, ViewportSize, ViewState
from annotation_map.projection import mercator

logger = logging.getLogger("annotation_map.projection.view_state")


class ViewStateTracker:
    """Holds the live ``ViewState`` and the settled ``stable`` snapshot.

    Update rule:

    - zoom differs from the stable zoom → settle immediately;
    - host reports no active transform → settle;
    - otherwise the stable snapshot stays frozen.

    Example::

        tracker = ViewStateTracker(ViewState(GeoPoint(0, 0), 3), ViewportSize(800, 600))
        tracker.update(GeoPoint(1, 2), 3, transforming=True)   # pan in progress
        offset = tracker.compute_transform_offset()           # translate stable layer
        tracker.settle()                                      # gesture ended
    """

    def __init__(self, initial: ViewState, viewport: ViewportSize) -> None:
        self._live = initial
        self._stable = initial
        self._viewport = viewport

    # -- state --------------------------------------------------------------

    @property
    def live(self) -> ViewState:
        return self._live

    @property
    def stable(self) -> ViewState:
        return self._stable

    @property
    def viewport(self) -> ViewportSize:
        return self._viewport

    @property
    def is_settled(self) -> bool:
        """Whether the stable snapshot equals the live view."""
        return self._stable == self._live

    # -- host signals -------------------------------------------------------

    def update(self, center: GeoPoint, zoom: float, *, transforming: bool) -> None:
        """Record a new live view reported by the host.

        Args:
            center: New map center.
            zoom: New zoom level.
            transforming: ``True`` while a pan/drag gesture is in progress.
        """
        self._live = ViewState(center, zoom)
        if zoom != self._stable.zoom:
            logger.debug("Zoom changed %.3f -> %.3f, settling stable view", self._stable.zoom, zoom)
            self._stable = self._live
        elif not transforming:
            self._stable = self._live

    def settle(self) -> None:
        """Host signal: the gesture has ended.  Snapshot the live view."""
        if self._stable != self._live:
            logger.debug(
                "Stable view settled at (%.6f, %.6f) z%.3f",
                self._live.center.lat,
                self._live.center.lng,
                self._live.zoom,
            )
        self._stable = self._live

    def resize(self, viewport: ViewportSize) -> None:
        self._viewport = viewport

    # -- projection ---------------------------------------------------------

    def compute_transform_offset(self) -> PixelPoint:
        """Pixel translate to apply to the stable layer.

        ``-(world(live.center) - world(stable.center))`` at the stable zoom.
        Zero when settled.
        """
        zoom = self._stable.zoom
        live_world = mercator.forward(self._live.center, zoom)
        stable_world = mercator.forward(self._stable.center, zoom)
        return PixelPoint(-(live_world.x - stable_world.x), -(live_world.y - stable_world.y))

    def project_live(self, geo: GeoPoint) -> PixelPoint:
        """Project against the live view (active drawing feedback)."""
        return mercator.project(geo, self._live.center, self._live.zoom, self._viewport)

    def project_stable(self, geo: GeoPoint) -> PixelPoint:
        """Project against the stable snapshot (saved polygons)."""
        return mercator.project(geo, self._stable.center, self._stable.zoom, self._viewport)

    def inverse_live(self, pixel: PixelPoint) -> GeoPoint:
        """Turn a pointer pixel into a geographic point using the live view."""
        return mercator.inverse(pixel, self._live.center, self._live.zoom, self._viewport)
