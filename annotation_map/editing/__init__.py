"""Vertex/edge editing: drag states, pure ring edits and the session."""

from annotation_map.editing.drag import (
    IDLE,
    DraggingShape,
    DraggingVertex,
    DragSession,
    DrawingPolygon,
    DrawingRectangle,
    Idle,
    MovingPolygon,
)
from annotation_map.editing.session import EditingSession

__all__ = [
    "IDLE",
    "DragSession",
    "DraggingShape",
    "DraggingVertex",
    "DrawingPolygon",
    "DrawingRectangle",
    "EditingSession",
    "Idle",
    "MovingPolygon",
]
