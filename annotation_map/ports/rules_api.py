"""Rule store backed by the occurrence-annotation REST API.

Endpoints (relative to ``EditorConfig.rule_api_base_url``):

- ``POST   /rule``                create (``taxonKey``, ``geometry``, ``annotation``, ...)
- ``GET    /rule/{id}``           fetch one
- ``GET    /rule?taxonKey=...``   list
- ``DELETE /rule/{id}``           delete

Writes carry an ``Authorization: Basic <token>`` header when
``rule_api_auth`` is configured.  The API has no slot for the inversion
flag, so rules come back with ``inverted=False``.

Status mapping: 404 → ``PersistenceNotFoundError``; other 4xx →
``PersistenceError(retryable=False)``; 5xx and transport failures →
``PersistenceError(retryable=True)``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from annotation_map.core.config import EditorConfig
from annotation_map.models.polygon import AnnotationKind
from annotation_map.ports.base import (
    HTTP_STORE,
    PersistenceError,
    PersistenceNotFoundError,
    PersistencePort,
    RuleMetadata,
    StoredRule,
)

logger = logging.getLogger("annotation_map.ports.rules_api")

RULE_PATH = "/rule"


class RuleApiStore(PersistencePort):
    """``PersistencePort`` over HTTP using ``httpx``.

    Args:
        config: Supplies the base URL, timeout and auth token.
        transport: Optional ``httpx`` transport (``httpx.MockTransport``
            in tests).
    """

    def __init__(
        self,
        config: EditorConfig | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config or EditorConfig()
        self._transport = transport

    @property
    def name(self) -> str:
        return HTTP_STORE

    @property
    def config(self) -> EditorConfig:
        return self._config

    # ------------------------------------------------------------------
    # PersistencePort
    # ------------------------------------------------------------------

    def save(self, wkt: str, metadata: RuleMetadata) -> str:
        payload: dict[str, Any] = {
            "geometry": wkt,
            "annotation": metadata.annotation_kind.value,
            "taxonKey": _taxon_key(metadata.species_ref),
            "projectId": metadata.project_id,
            "rulesetId": metadata.ruleset_id,
        }
        data = self._request("POST", RULE_PATH, json=payload)
        rule_id = str(data.get("id", ""))
        if not rule_id:
            msg = "Rule API response has no id"
            raise PersistenceError(self.name, msg, retryable=False)
        logger.info("Saved rule %s (taxonKey=%s)", rule_id, payload["taxonKey"])
        return rule_id

    def load(self, rule_id: str) -> StoredRule:
        data = self._request("GET", f"{RULE_PATH}/{rule_id}", rule_id=rule_id)
        return _to_stored_rule(data)

    def delete(self, rule_id: str) -> None:
        self._request("DELETE", f"{RULE_PATH}/{rule_id}", rule_id=rule_id)
        logger.info("Deleted rule %s", rule_id)

    def list(self, species_ref: str | None = None) -> list[StoredRule]:
        params = {"taxonKey": species_ref} if species_ref is not None else None
        data = self._request("GET", RULE_PATH, params=params)
        if not isinstance(data, list):
            msg = f"Expected a JSON list of rules, got {type(data).__name__}"
            raise PersistenceError(self.name, msg, retryable=False)
        return [_to_stored_rule(item) for item in data]

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _client(self) -> httpx.Client:
        headers = {"Accept": "application/json"}
        if self._config.rule_api_auth:
            headers["Authorization"] = f"Basic {self._config.rule_api_auth}"
        return httpx.Client(
            base_url=self._config.rule_api_base_url.rstrip("/"),
            timeout=self._config.rule_api_timeout_s,
            headers=headers,
            transport=self._transport,
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        rule_id: str = "",
        **kwargs: Any,
    ) -> Any:
        try:
            with self._client() as client:
                response = client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            msg = f"{method} {path} timed out"
            raise PersistenceError(self.name, msg, retryable=True) from exc
        except httpx.TransportError as exc:
            msg = f"{method} {path} failed: {exc}"
            raise PersistenceError(self.name, msg, retryable=True) from exc

        _raise_for_status(self.name, response, rule_id)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            msg = f"{method} {path} returned invalid JSON"
            raise PersistenceError(self.name, msg, retryable=False) from exc


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def _raise_for_status(store: str, response: httpx.Response, rule_id: str) -> None:
    status = response.status_code
    if status < 400:
        return
    if status == 404 and rule_id:
        raise PersistenceNotFoundError(store, rule_id)
    method = response.request.method
    msg = f"{method} {response.request.url.path} returned HTTP {status}"
    logger.warning("Rule API error: %s", msg)
    raise PersistenceError(store, msg, retryable=status >= 500, status_code=status)


def _taxon_key(species_ref: str) -> int | str | None:
    if not species_ref:
        return None
    return int(species_ref) if species_ref.isdigit() else species_ref


def _optional_int(value: object) -> int | None:
    return int(value) if isinstance(value, int | str) and str(value).isdigit() else None


def _to_stored_rule(data: dict[str, Any]) -> StoredRule:
    """Map an API rule object onto ``StoredRule``."""
    annotation = str(data.get("annotation") or AnnotationKind.SUSPICIOUS.value).upper()
    try:
        kind = AnnotationKind(annotation)
    except ValueError:
        logger.warning("Unknown annotation %r on rule %s, using OTHER", annotation, data.get("id"))
        kind = AnnotationKind.OTHER
    taxon_key = data.get("taxonKey")
    metadata = RuleMetadata(
        annotation_kind=kind,
        species_ref="" if taxon_key is None else str(taxon_key),
        project_id=_optional_int(data.get("projectId")),
        ruleset_id=_optional_int(data.get("rulesetId")),
    )
    return StoredRule(
        id=str(data.get("id", "")),
        wkt=str(data.get("geometry", "")),
        metadata=metadata,
        created=str(data.get("created") or ""),
        created_by=str(data.get("createdBy") or ""),
    )

