"""Shared pytest fixtures for the annotation-map test suite."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest

from annotation_map.core.config import EditorConfig
from annotation_map.editing import EditingSession
from annotation_map.models.geometry import GeoPoint, MultiPolygon, Ring
from annotation_map.models.view import PixelPoint, ViewportSize, ViewState
from annotation_map.ports.base import Layer, RenderSurface, Style
from annotation_map.projection.view_state import ViewStateTracker

# ---------------------------------------------------------------------------
# Geometry fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def square() -> Ring:
    """10° square with corners at (0,0) and (10,10), in (lat, lng)."""
    return Ring.from_pairs([[0, 0], [0, 10], [10, 10], [10, 0]])


@pytest.fixture()
def triangle() -> Ring:
    """Minimal 3-vertex ring."""
    return Ring.from_pairs([[0, 0], [0, 10], [10, 0]])


@pytest.fixture()
def two_squares(square: Ring) -> MultiPolygon:
    """Two disjoint squares as a two-part multipolygon."""
    return MultiPolygon.from_rings([square, square.translate(20, 20)])


# ---------------------------------------------------------------------------
# View fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def viewport() -> ViewportSize:
    return ViewportSize(800, 600)


@pytest.fixture()
def tracker(viewport: ViewportSize) -> ViewStateTracker:
    """Tracker centred on (0, 0) at zoom 3."""
    return ViewStateTracker(ViewState(GeoPoint(0, 0), 3), viewport)


# ---------------------------------------------------------------------------
# Editing fixtures
# ---------------------------------------------------------------------------


@dataclass
class Recorder:
    """Collects listener callbacks from an ``EditingSession``."""

    changes: list[tuple[str, MultiPolygon]] = field(default_factory=list)
    emitted: list[Ring] = field(default_factory=list)

    def on_change(self, target_id: str, geometry: MultiPolygon) -> None:
        self.changes.append((target_id, geometry))

    def on_emit(self, ring: Ring) -> None:
        self.emitted.append(ring)


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture()
def session(tracker: ViewStateTracker, recorder: Recorder) -> EditingSession:
    return EditingSession(
        tracker,
        EditorConfig(),
        on_change=recorder.on_change,
        on_emit=recorder.on_emit,
    )


# ---------------------------------------------------------------------------
# Render surface
# ---------------------------------------------------------------------------


class RecordingSurface(RenderSurface):
    """``RenderSurface`` that records every call as ``(method, layer, *args)``."""

    def __init__(self) -> None:
        self.calls: list[tuple[object, ...]] = []
        self.offsets: dict[Layer, PixelPoint] = {}

    def draw_ring(self, layer: Layer, pixels: Sequence[PixelPoint], style: Style) -> None:
        self.calls.append(("ring", layer, list(pixels), style))

    def draw_path(
        self, layer: Layer, rings: Sequence[Sequence[PixelPoint]], style: Style
    ) -> None:
        self.calls.append(("path", layer, [list(r) for r in rings], style))

    def draw_point(self, layer: Layer, pixel: PixelPoint, style: Style) -> None:
        self.calls.append(("point", layer, pixel, style))

    def draw_line(self, layer: Layer, a: PixelPoint, b: PixelPoint, style: Style) -> None:
        self.calls.append(("line", layer, a, b, style))

    def set_layer_offset(self, layer: Layer, offset: PixelPoint) -> None:
        self.offsets[layer] = offset

    def clear(self, layer: Layer) -> None:
        self.calls = [c for c in self.calls if c[1] != layer]

    def of(self, kind: str, layer: Layer | None = None) -> list[tuple[object, ...]]:
        return [c for c in self.calls if c[0] == kind and (layer is None or c[1] == layer)]


@pytest.fixture()
def surface() -> RecordingSurface:
    return RecordingSurface()
