"""Tests for editor configuration.

Covers:
- Default values
- Loading from environment variables
- Type coercion (string env vars → numeric fields)
- Fail-fast range validation
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from annotation_map.core.config import (
    DEFAULT_RULE_API_BASE_URL,
    ConfigValidationError,
    EditorConfig,
)


class TestEditorConfigDefaults:
    """Verify default configuration values."""

    def test_default_drag_threshold(self) -> None:
        cfg = EditorConfig()
        assert cfg.drag_threshold_px == 5.0

    def test_default_viewport(self) -> None:
        cfg = EditorConfig()
        assert (cfg.viewport_width, cfg.viewport_height) == (800.0, 600.0)

    def test_default_vertex_limits(self) -> None:
        cfg = EditorConfig()
        assert cfg.densify_max_vertices == 100
        assert cfg.thin_min_vertices == 6

    def test_default_rule_store(self) -> None:
        cfg = EditorConfig()
        assert cfg.rule_store == "memory"
        assert cfg.rule_api_base_url == DEFAULT_RULE_API_BASE_URL
        assert cfg.rule_api_auth == ""


class TestEditorConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        """All env vars are read and coerced to correct types."""
        env = {
            "ANNOTATION_DRAG_THRESHOLD_PX": "8",
            "ANNOTATION_VIEWPORT_WIDTH": "1024",
            "ANNOTATION_VIEWPORT_HEIGHT": "768",
            "ANNOTATION_DENSIFY_MAX_VERTICES": "250",
            "ANNOTATION_THIN_MIN_VERTICES": "4",
            "ANNOTATION_RULE_STORE": "http",
            "ANNOTATION_API_BASE_URL": "https://rules.example.test/v1",
            "ANNOTATION_API_TIMEOUT_S": "12.5",
            "ANNOTATION_API_AUTH": "dXNlcjpwYXNz",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = EditorConfig.from_env()

        assert cfg.drag_threshold_px == 8.0
        assert cfg.viewport_width == 1024.0
        assert cfg.viewport_height == 768.0
        assert cfg.densify_max_vertices == 250
        assert cfg.thin_min_vertices == 4
        assert cfg.rule_store == "http"
        assert cfg.rule_api_base_url == "https://rules.example.test/v1"
        assert cfg.rule_api_timeout_s == 12.5
        assert cfg.rule_api_auth == "dXNlcjpwYXNz"

    def test_defaults_when_env_missing(self) -> None:
        """Missing environment variables fall back to defaults."""
        with patch.dict(os.environ, {}, clear=True):
            cfg = EditorConfig.from_env()

        assert cfg == EditorConfig()

    def test_frozen_immutability(self) -> None:
        """EditorConfig is frozen (immutable)."""
        cfg = EditorConfig()
        with pytest.raises(AttributeError):
            cfg.drag_threshold_px = 10.0  # type: ignore[misc]


class TestEditorConfigValidation:
    """Fail-fast range validation in from_env."""

    @pytest.mark.parametrize(
        ("key", "value", "message"),
        [
            ("ANNOTATION_DRAG_THRESHOLD_PX", "0", "must be > 0"),
            ("ANNOTATION_DRAG_THRESHOLD_PX", "-2", "must be > 0"),
            ("ANNOTATION_VIEWPORT_WIDTH", "0", "must be > 0"),
            ("ANNOTATION_VIEWPORT_HEIGHT", "-1", "must be > 0"),
            ("ANNOTATION_DENSIFY_MAX_VERTICES", "2", "must be >= 3"),
            ("ANNOTATION_THIN_MIN_VERTICES", "1", "must be >= 3"),
            ("ANNOTATION_RULE_STORE", "", "must not be empty"),
            ("ANNOTATION_API_BASE_URL", "", "must not be empty"),
            ("ANNOTATION_API_TIMEOUT_S", "0", "must be > 0"),
        ],
    )
    def test_out_of_range_rejected(self, key: str, value: str, message: str) -> None:
        with (
            patch.dict(os.environ, {key: value}, clear=True),
            pytest.raises(ConfigValidationError, match=message) as exc_info,
        ):
            EditorConfig.from_env()
        assert exc_info.value.key == key

    def test_minimum_vertex_limits_accepted(self) -> None:
        env = {"ANNOTATION_DENSIFY_MAX_VERTICES": "3", "ANNOTATION_THIN_MIN_VERTICES": "3"}
        with patch.dict(os.environ, env, clear=True):
            cfg = EditorConfig.from_env()
        assert cfg.thin_min_vertices == 3

    def test_non_numeric_env_raises_value_error(self) -> None:
        """Non-numeric string for a numeric field → ValueError."""
        with (
            patch.dict(os.environ, {"ANNOTATION_DRAG_THRESHOLD_PX": "abc"}, clear=True),
            pytest.raises(ValueError),
        ):
            EditorConfig.from_env()

    def test_error_contains_key_and_value(self) -> None:
        """ConfigValidationError includes key and value attributes."""
        with (
            patch.dict(os.environ, {"ANNOTATION_API_TIMEOUT_S": "-5"}, clear=True),
            pytest.raises(ConfigValidationError) as exc_info,
        ):
            EditorConfig.from_env()
        err = exc_info.value
        assert err.key == "ANNOTATION_API_TIMEOUT_S"
        assert err.value == -5.0
        assert err.code == "CONFIG_VALIDATION_FAILED"
