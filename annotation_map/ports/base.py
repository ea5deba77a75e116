"""Host port contracts: the render surface and rule persistence.

The core never draws pixels or talks to storage directly.  A host
implements these two interfaces and hands them to the renderer and to
whatever code saves rules.

- ``RenderSurface``    — receives draw requests in pixel space.
- ``PersistencePort``  — stores WKT rule geometry plus its metadata.

Concrete stores: ``InMemoryRuleStore`` (``ports.memory``) and
``RuleApiStore`` (``ports.rules_api``).  ``ports.factory.get_store``
selects one by name.
"""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

from annotation_map.core.exceptions import TransientError
from annotation_map.models.polygon import AnnotationKind

if TYPE_CHECKING:
    from collections.abc import Sequence

    from annotation_map.models.view import PixelPoint

#: Registry names of the built-in stores.
MEMORY_STORE = "memory"
HTTP_STORE = "http"


# ---------------------------------------------------------------------------
# Render surface
# ---------------------------------------------------------------------------


class Layer(enum.StrEnum):
    """Overlay layers a host keeps separately."""

    STABLE = "stable"
    LIVE = "live"


@dataclass(frozen=True, slots=True)
class Style:
    """Stroke/fill description for a draw request.

    Colours are opaque strings the host understands (CSS, hex, ...).
    """

    stroke: str = "#0066cc"
    fill: str | None = None
    stroke_width: float = 2.0
    fill_opacity: float = 0.2
    dashed: bool = False
    radius: float = 0.0


class RenderSurface(abc.ABC):
    """Abstract drawing target.

    All coordinates are pixels relative to the viewport's top-left
    corner.  Rings are open; the surface closes them.
    """

    @abc.abstractmethod
    def draw_ring(self, layer: Layer, pixels: Sequence[PixelPoint], style: Style) -> None:
        """Draw one closed ring."""

    @abc.abstractmethod
    def draw_path(self, layer: Layer, rings: Sequence[Sequence[PixelPoint]], style: Style) -> None:
        """Draw several rings as one path filled with the even-odd rule."""

    @abc.abstractmethod
    def draw_point(self, layer: Layer, pixel: PixelPoint, style: Style) -> None:
        """Draw a handle (vertex or edge midpoint)."""

    @abc.abstractmethod
    def draw_line(self, layer: Layer, a: PixelPoint, b: PixelPoint, style: Style) -> None:
        """Draw a single segment."""

    @abc.abstractmethod
    def set_layer_offset(self, layer: Layer, offset: PixelPoint) -> None:
        """Translate a whole layer by *offset* pixels."""

    @abc.abstractmethod
    def clear(self, layer: Layer) -> None:
        """Remove everything drawn on *layer*."""


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RuleMetadata:
    """Everything stored beside a rule's WKT.

    Attributes:
        annotation_kind: Annotation category.
        species_ref: Species identifier (the REST API's ``taxonKey``).
        project_id: Optional owning project.
        ruleset_id: Optional owning ruleset.
        inverted: "Everywhere except this area".  Kept by stores that
            have a slot for it; never written into the WKT.
    """

    annotation_kind: AnnotationKind = AnnotationKind.SUSPICIOUS
    species_ref: str = ""
    project_id: int | None = None
    ruleset_id: int | None = None
    inverted: bool = False


@dataclass(frozen=True, slots=True)
class StoredRule:
    """A rule as returned by a store."""

    id: str
    wkt: str
    metadata: RuleMetadata
    created: str = ""
    created_by: str = ""


class PersistencePort(abc.ABC):
    """Abstract rule store.

    Example usage::

        store = get_store("memory")
        rule_id = store.save(wkt.serialize(ring), RuleMetadata(species_ref="2435099"))
        rule = store.load(rule_id)
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Registry name of the store."""

    @abc.abstractmethod
    def save(self, wkt: str, metadata: RuleMetadata) -> str:
        """Persist a rule and return its id.

        Raises:
            PersistenceError: If the store rejects or fails the write.
        """

    @abc.abstractmethod
    def load(self, rule_id: str) -> StoredRule:
        """Fetch one rule.

        Raises:
            PersistenceNotFoundError: If no rule has *rule_id*.
            PersistenceError: On any other store failure.
        """

    @abc.abstractmethod
    def delete(self, rule_id: str) -> None:
        """Remove one rule.

        Raises:
            PersistenceNotFoundError: If no rule has *rule_id*.
        """

    @abc.abstractmethod
    def list(self, species_ref: str | None = None) -> list[StoredRule]:
        """All rules, optionally only those for *species_ref*."""


# ---------------------------------------------------------------------------
# Persistence exceptions
# ---------------------------------------------------------------------------


class PersistenceError(TransientError):
    """Rule store failure.

    Attributes:
        store: Name of the store that raised the error.
        status_code: HTTP status when the store is remote, else ``None``.
    """

    default_stage = "persistence"
    default_code = "PERSISTENCE_FAILED"

    def __init__(
        self,
        store: str,
        message: str,
        *,
        retryable: bool = True,
        status_code: int | None = None,
    ) -> None:
        self.store = store
        self.status_code = status_code
        super().__init__(message, retryable=retryable)

    def __str__(self) -> str:
        return f"[{self.store}] {self.message}"

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["store"] = self.store
        payload["status_code"] = self.status_code
        return payload


class PersistenceNotFoundError(PersistenceError):
    """The requested rule does not exist."""

    default_code = "PERSISTENCE_NOT_FOUND"

    def __init__(self, store: str, rule_id: str) -> None:
        self.rule_id = rule_id
        super().__init__(store, f"Rule {rule_id!r} not found", retryable=False, status_code=404)
