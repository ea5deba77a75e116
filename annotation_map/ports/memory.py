"""In-process rule store.

Keeps rules in a dict for the lifetime of the object.  Used as the
default store and in tests; ids are sequential integers as strings,
like the REST API's.
"""

from __future__ import annotations

import itertools
import logging
from datetime import UTC, datetime

from annotation_map.core.config import EditorConfig
from annotation_map.ports.base import (
    MEMORY_STORE,
    PersistenceNotFoundError,
    PersistencePort,
    RuleMetadata,
    StoredRule,
)

logger = logging.getLogger("annotation_map.ports.memory")


class InMemoryRuleStore(PersistencePort):
    """Dict-backed ``PersistencePort``."""

    def __init__(self, config: EditorConfig | None = None) -> None:
        self._config = config or EditorConfig()
        self._rules: dict[str, StoredRule] = {}
        self._ids = itertools.count(1)

    @property
    def name(self) -> str:
        return MEMORY_STORE

    def save(self, wkt: str, metadata: RuleMetadata) -> str:
        rule_id = str(next(self._ids))
        self._rules[rule_id] = StoredRule(
            id=rule_id,
            wkt=wkt,
            metadata=metadata,
            created=datetime.now(UTC).isoformat(),
        )
        logger.info("Saved rule %s (%s)", rule_id, metadata.annotation_kind)
        return rule_id

    def load(self, rule_id: str) -> StoredRule:
        try:
            return self._rules[rule_id]
        except KeyError:
            raise PersistenceNotFoundError(self.name, rule_id) from None

    def delete(self, rule_id: str) -> None:
        if self._rules.pop(rule_id, None) is None:
            raise PersistenceNotFoundError(self.name, rule_id)
        logger.info("Deleted rule %s", rule_id)

    def list(self, species_ref: str | None = None) -> list[StoredRule]:
        rules = list(self._rules.values())
        if species_ref is None:
            return rules
        return [r for r in rules if r.metadata.species_ref == species_ref]
