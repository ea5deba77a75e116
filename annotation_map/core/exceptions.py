"""Unified exception taxonomy for the polygon-geometry engine.

Every domain exception inherits from ``AnnotationMapError`` and carries
structured context fields so that a host can decide how to surface a
failure (toast, retry, assertion) without string matching.

Taxonomy categories
-------------------
- ``ValidationError``   — bad input or a refused edit, never retryable.
- ``TransientError``    — temporary failures (network, throttle), retryable.
- ``PermanentError``    — unrecoverable internal failures, not retryable.

Concrete errors
---------------
- ``GeometryError``            — ring has <3 vertices at a finish/commit boundary.
- ``ParseError``               — malformed WKT text.
- ``EditConstraintViolation``  — an edit would break a ring or targets nothing.
- ``ProjectionError``          — non-finite projection output (assertion).

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging and host notification.
"""

from __future__ import annotations


class AnnotationMapError(Exception):
    """Base exception for all annotation-map domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Component where the error occurred
            (e.g. ``"wkt"``, ``"editing"``).
        code: Machine-readable error code (e.g. ``"WKT_PARSE_FAILED"``).
        retryable: Whether the caller may retry the operation.
        correlation_id: Host-supplied request/session identifier.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(AnnotationMapError):
    """Input or edit validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(AnnotationMapError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(AnnotationMapError):
    """Unrecoverable failure. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Geometry engine errors
# ---------------------------------------------------------------------------


class GeometryError(ValidationError):
    """A ring has fewer than 3 vertices at a finish or commit boundary."""

    default_stage = "geometry"
    default_code = "GEOMETRY_INVALID"


class ParseError(ValidationError):
    """WKT text is malformed.

    Attributes:
        position: Character offset of the offending token, or ``-1``
            when the failure is not tied to a single location.
    """

    default_stage = "wkt"
    default_code = "WKT_PARSE_FAILED"

    def __init__(self, message: str = "", *, position: int = -1, **kwargs: object) -> None:
        self.position = position
        super().__init__(message, **kwargs)

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["position"] = self.position
        return payload


class EditConstraintViolation(ValidationError):
    """An edit would leave a ring below 3 vertices, or is not applicable."""

    default_stage = "editing"
    default_code = "EDIT_CONSTRAINT_VIOLATED"


class ProjectionError(PermanentError):
    """Projection produced a non-finite value.

    Unreachable for clamped latitudes; treated as an internal assertion.
    """

    default_stage = "projection"
    default_code = "PROJECTION_NON_FINITE"
