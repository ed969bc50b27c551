"""Turn unmatched rows into new-record field payloads."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

import structlog

from linkrec.config import MaterializeConfig
from linkrec.types import ClassificationResult, MatchConfiguration, SchemaField, TargetSchema

log = structlog.get_logger()

_OMIT = object()


@dataclass
class ChangeSet:
    """Data prepared for the write-back collaborator."""

    links: list[str] = field(default_factory=list)
    creates: list[dict[str, Any]] = field(default_factory=list)
    unresolved: int = 0


def coerce_value(value: str, schema_field: SchemaField, config: MaterializeConfig) -> Any:
    """Coerce a trimmed row value for a field type; _OMIT drops the field."""
    if schema_field.type == "email":
        return value if "@" in value else _OMIT
    if schema_field.type == "number":
        try:
            number = float(value)
        except ValueError:
            return _OMIT
        if math.isnan(number) or math.isinf(number):
            return _OMIT
        return number
    if schema_field.type == "checkbox":
        return value.lower() in config.checkbox_true_values
    return value


def materialize(
    row: dict[str, str],
    field_mapping: dict[str, str],
    schema: TargetSchema,
    config: MaterializeConfig | None = None,
) -> dict[str, Any]:
    """Build a field payload (keyed by field id) for a new target record.

    Values that fail coercion are left out. The primary field always ends
    up with a value so every created record is nameable.
    """
    config = config or MaterializeConfig()
    payload: dict[str, Any] = {}

    for mapped_field, field_id in field_mapping.items():
        raw = row.get(mapped_field)
        value = "" if raw is None else str(raw).strip()
        if not value:
            continue
        schema_field = schema.field_by_id_if_exists(field_id)
        if schema_field is None:
            log.debug("materialize_field_missing", mapped_field=mapped_field, field_id=field_id)
            continue
        coerced = coerce_value(value, schema_field, config)
        if coerced is _OMIT:
            log.debug(
                "materialize_value_dropped",
                mapped_field=mapped_field,
                field_type=schema_field.type,
            )
            continue
        payload[field_id] = coerced

    primary = schema.primary_field
    if primary is not None and payload.get(primary.id) in (None, ""):
        payload[primary.id] = _fallback_name(row, config)

    return payload


def _fallback_name(row: dict[str, str], config: MaterializeConfig) -> str:
    for key in config.name_candidates:
        value = row.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return config.fallback_name


def prepare_changes(
    result: ClassificationResult,
    rules: MatchConfiguration,
    schema: TargetSchema,
    config: MaterializeConfig | None = None,
) -> ChangeSet:
    """Collect links for definite rows and payloads for missing rows."""
    changes = ChangeSet(unresolved=len(result.ambiguous))
    seen: set[str] = set()
    for item in result.definite:
        if item.record is None or item.record.id in seen:
            continue
        seen.add(item.record.id)
        changes.links.append(item.record.id)

    changes.creates = [
        materialize(item.row, rules.field_mapping, schema, config)
        for item in result.missing
    ]

    if changes.unresolved:
        log.warning("prepare_changes_unresolved", ambiguous=changes.unresolved)
    log.info(
        "prepare_changes_done",
        links=len(changes.links),
        creates=len(changes.creates),
    )
    return changes
