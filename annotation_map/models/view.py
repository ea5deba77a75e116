"""Planar value types for the map view: pixels, world points, viewport, view state."""

from __future__ import annotations

from dataclasses import dataclass

from annotation_map.models.geometry import GeoPoint


@dataclass(frozen=True, slots=True)
class PixelPoint:
    """A position in viewport pixels (origin top-left, y down)."""

    x: float
    y: float

    def __add__(self, other: PixelPoint) -> PixelPoint:
        return PixelPoint(self.x + other.x, self.y + other.y)

    def __sub__(self, other: PixelPoint) -> PixelPoint:
        return PixelPoint(self.x - other.x, self.y - other.y)

    def __neg__(self) -> PixelPoint:
        return PixelPoint(-self.x, -self.y)

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True, slots=True)
class WorldPoint:
    """A position on the Web Mercator world plane at a given zoom.

    The plane is ``256 * 2**zoom`` pixels square with ``(0, 0)`` at the
    north-west corner.
    """

    x: float
    y: float


@dataclass(frozen=True, slots=True)
class ViewportSize:
    """Viewport dimensions in pixels."""

    width: float
    height: float

    @property
    def half(self) -> PixelPoint:
        return PixelPoint(self.width / 2, self.height / 2)


@dataclass(frozen=True, slots=True)
class ViewState:
    """Map center and fractional zoom level."""

    center: GeoPoint
    zoom: float
