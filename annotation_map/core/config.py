"""Editor configuration loaded from environment variables.

All configuration values have sensible defaults so a host can construct
``EditorConfig()`` directly in tests. ``from_env()`` is the production
entry point.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any numeric
    value is out of its valid range.  Bad configuration is caught when
    the editing session is built, not on the first pointer event.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from annotation_map.core.constants import (
    DEFAULT_DENSIFY_MAX_VERTICES,
    DEFAULT_DRAG_THRESHOLD_PX,
    DEFAULT_THIN_MIN_VERTICES,
    MIN_RING_VERTICES,
)
from annotation_map.core.exceptions import AnnotationMapError

DEFAULT_RULE_API_BASE_URL = "https://api.gbif.org/v1/occurrence/experimental/annotation"


class ConfigValidationError(AnnotationMapError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        self.message = message
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class EditorConfig:
    """Immutable editor configuration.

    Attributes:
        drag_threshold_px: Minimum pixel distance for a shape drag to
            produce a rectangle.
        viewport_width: Initial viewport width in pixels.
        viewport_height: Initial viewport height in pixels.
        densify_max_vertices: Rings at or above this size are not densified.
        thin_min_vertices: Rings at or below this size are not thinned.
        rule_store: Name of the persistence adapter (``memory`` or ``http``).
        rule_api_base_url: Base URL of the annotation rule REST API.
        rule_api_timeout_s: HTTP timeout for the rule API in seconds.
        rule_api_auth: Pre-encoded Basic auth token (empty for anonymous).
    """

    drag_threshold_px: float = DEFAULT_DRAG_THRESHOLD_PX
    viewport_width: float = 800.0
    viewport_height: float = 600.0
    densify_max_vertices: int = DEFAULT_DENSIFY_MAX_VERTICES
    thin_min_vertices: int = DEFAULT_THIN_MIN_VERTICES
    rule_store: str = "memory"
    rule_api_base_url: str = DEFAULT_RULE_API_BASE_URL
    rule_api_timeout_s: float = 30.0
    rule_api_auth: str = ""

    @classmethod
    def from_env(cls) -> EditorConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a numeric value is out of range
                or a required string value is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``ANNOTATION_DRAG_THRESHOLD_PX=abc``).
        """
        config = cls(
            drag_threshold_px=float(os.getenv("ANNOTATION_DRAG_THRESHOLD_PX", "5")),
            viewport_width=float(os.getenv("ANNOTATION_VIEWPORT_WIDTH", "800")),
            viewport_height=float(os.getenv("ANNOTATION_VIEWPORT_HEIGHT", "600")),
            densify_max_vertices=int(os.getenv("ANNOTATION_DENSIFY_MAX_VERTICES", "100")),
            thin_min_vertices=int(os.getenv("ANNOTATION_THIN_MIN_VERTICES", "6")),
            rule_store=os.getenv("ANNOTATION_RULE_STORE", "memory"),
            rule_api_base_url=os.getenv("ANNOTATION_API_BASE_URL", DEFAULT_RULE_API_BASE_URL),
            rule_api_timeout_s=float(os.getenv("ANNOTATION_API_TIMEOUT_S", "30")),
            rule_api_auth=os.getenv("ANNOTATION_API_AUTH", ""),
        )
        _validate(config)
        return config


def _validate(config: EditorConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.drag_threshold_px <= 0:
        raise ConfigValidationError(
            "ANNOTATION_DRAG_THRESHOLD_PX",
            config.drag_threshold_px,
            "must be > 0 (pixels)",
        )

    if config.viewport_width <= 0:
        raise ConfigValidationError(
            "ANNOTATION_VIEWPORT_WIDTH",
            config.viewport_width,
            "must be > 0 (pixels)",
        )

    if config.viewport_height <= 0:
        raise ConfigValidationError(
            "ANNOTATION_VIEWPORT_HEIGHT",
            config.viewport_height,
            "must be > 0 (pixels)",
        )

    if config.densify_max_vertices < MIN_RING_VERTICES:
        raise ConfigValidationError(
            "ANNOTATION_DENSIFY_MAX_VERTICES",
            config.densify_max_vertices,
            f"must be >= {MIN_RING_VERTICES}",
        )

    if config.thin_min_vertices < MIN_RING_VERTICES:
        raise ConfigValidationError(
            "ANNOTATION_THIN_MIN_VERTICES",
            config.thin_min_vertices,
            f"must be >= {MIN_RING_VERTICES}",
        )

    if not config.rule_store:
        raise ConfigValidationError(
            "ANNOTATION_RULE_STORE",
            config.rule_store,
            "must not be empty",
        )

    if not config.rule_api_base_url:
        raise ConfigValidationError(
            "ANNOTATION_API_BASE_URL",
            config.rule_api_base_url,
            "must not be empty",
        )

    if config.rule_api_timeout_s <= 0:
        raise ConfigValidationError(
            "ANNOTATION_API_TIMEOUT_S",
            config.rule_api_timeout_s,
            "must be > 0 (seconds)",
        )
