"""Rule store factory: selects the active ``PersistencePort`` by name.

Usage::

    from annotation_map.ports.factory import get_store

    store = get_store("memory")
    rule_id = store.save(wkt_text, RuleMetadata(species_ref="2435099"))

The store name normally comes from ``EditorConfig.rule_store``
(``ANNOTATION_RULE_STORE``).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from annotation_map.core.config import EditorConfig
from annotation_map.ports.base import HTTP_STORE, MEMORY_STORE, PersistenceError, PersistencePort

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("annotation_map.ports.factory")

# Each entry maps a store name to a thunk returning the store class, so
# httpx is only imported when the HTTP store is selected.
_STORE_REGISTRY: dict[str, Callable[[], type[PersistencePort]]] = {}


def _register_builtin_stores() -> None:
    def _memory() -> type[PersistencePort]:
        from annotation_map.ports.memory import InMemoryRuleStore

        return InMemoryRuleStore

    def _http() -> type[PersistencePort]:
        from annotation_map.ports.rules_api import RuleApiStore

        return RuleApiStore

    _STORE_REGISTRY[MEMORY_STORE] = _memory
    _STORE_REGISTRY[HTTP_STORE] = _http


def _ensure_registry() -> None:
    if not _STORE_REGISTRY:
        _register_builtin_stores()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def register_store(name: str, loader: Callable[[], type[PersistencePort]]) -> None:
    """Register a custom store class under *name*.

    Args:
        name: Store name (e.g. ``"sqlite"``).
        loader: Zero-argument callable returning the store class.  The
            class is constructed with an ``EditorConfig``.

    Raises:
        ValueError: If the name is empty.
    """
    if not name:
        msg = "Store name must be non-empty"
        raise ValueError(msg)
    _ensure_registry()
    _STORE_REGISTRY[name] = loader
    logger.debug("Registered rule store: %s", name)


def get_store(name: str | None = None, config: EditorConfig | None = None) -> PersistencePort:
    """Create the rule store registered under *name*.

    Args:
        name: Store name; defaults to ``config.rule_store``.
        config: Configuration handed to the store; defaults to
            ``EditorConfig()``.

    Raises:
        PersistenceError: If no store is registered under the name.
    """
    _ensure_registry()
    config = config or EditorConfig()
    name = name or config.rule_store

    loader = _STORE_REGISTRY.get(name)
    if loader is None:
        available = ", ".join(sorted(_STORE_REGISTRY))
        msg = f"Unknown rule store: {name!r}. Available: {available}"
        raise PersistenceError(name, msg, retryable=False)

    logger.info("Creating rule store: %s", name)
    return loader()(config)  # type: ignore[call-arg]


def list_stores() -> list[str]:
    """Names of all registered stores."""
    _ensure_registry()
    return sorted(_STORE_REGISTRY)
