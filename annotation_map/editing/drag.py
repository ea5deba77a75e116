"""Drag-session states for the editing state machine.

``DragSession`` is a tagged union: exactly one of these values is the
session's current state.  All of them are immutable; transitions build
a new state.
"""

from __future__ import annotations

from dataclasses import dataclass

from annotation_map.models.geometry import GeoPoint, MultiPolygon, VertexRef
from annotation_map.models.view import PixelPoint


@dataclass(frozen=True, slots=True)
class Idle:
    """No gesture in progress."""


@dataclass(frozen=True, slots=True)
class DrawingPolygon:
    """Freehand polygon: one vertex per click.

    Attributes:
        points: Vertices clicked so far.
        hover: Last pointer position, for the rubber-band preview edge.
    """

    points: tuple[GeoPoint, ...] = ()
    hover: GeoPoint | None = None


@dataclass(frozen=True, slots=True)
class DrawingRectangle:
    """Two-click rectangle; ``corner`` is set after the first click."""

    corner: GeoPoint | None = None
    hover: GeoPoint | None = None


@dataclass(frozen=True, slots=True)
class DraggingVertex:
    """A vertex of a registered polygon follows the pointer.

    Attributes:
        target_id: Polygon being edited.
        ref: Vertex being moved.
        preview: Geometry with the vertex at its current drag position;
            committed on pointer-up, discarded on cancel.
    """

    target_id: str
    ref: VertexRef
    preview: MultiPolygon


@dataclass(frozen=True, slots=True)
class DraggingShape:
    """Press-drag-release rectangle between ``start`` and ``current``."""

    start: GeoPoint
    current: GeoPoint


@dataclass(frozen=True, slots=True)
class MovingPolygon:
    """A whole registered polygon follows the pointer.

    Attributes:
        target_id: Polygon being moved.
        start_pixel: Pointer position where the move began.
        original: Geometry before the move.
        preview: Geometry at the current pointer position.
    """

    target_id: str
    start_pixel: PixelPoint
    original: MultiPolygon
    preview: MultiPolygon


DragSession = (
    Idle | DrawingPolygon | DrawingRectangle | DraggingVertex | DraggingShape | MovingPolygon
)

IDLE = Idle()

DRAWING_STATES = (DrawingPolygon, DrawingRectangle)
POINTER_DRAG_STATES = (DraggingVertex, DraggingShape, MovingPolygon)
