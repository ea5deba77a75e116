"""Host ports: render surface and rule persistence contracts."""

from annotation_map.ports.base import (
    Layer,
    PersistenceError,
    PersistenceNotFoundError,
    PersistencePort,
    RenderSurface,
    RuleMetadata,
    StoredRule,
    Style,
)
from annotation_map.ports.factory import get_store, list_stores, register_store
from annotation_map.ports.memory import InMemoryRuleStore

__all__ = [
    "InMemoryRuleStore",
    "Layer",
    "PersistenceError",
    "PersistenceNotFoundError",
    "PersistencePort",
    "RenderSurface",
    "RuleMetadata",
    "StoredRule",
    "Style",
    "get_store",
    "list_stores",
    "register_store",
]
