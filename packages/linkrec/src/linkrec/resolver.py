"""Resolve mapped row fields to target schema fields."""

from __future__ import annotations

from linkrec.types import SchemaField, TargetRecord, TargetSchema


def resolve(
    mapped_field: str | None,
    field_mapping: dict[str, str],
    schema: TargetSchema,
) -> SchemaField | None:
    """Return the schema field a mapped row field points at.

    None means the rule should be skipped: the field is unmapped or the
    mapped field id no longer exists in the schema.
    """
    if not mapped_field:
        return None
    field_id = field_mapping.get(mapped_field)
    if not field_id:
        return None
    return schema.field_by_id_if_exists(field_id)


def extract(record: TargetRecord, field: SchemaField) -> str:
    value = record.string_value(field)
    return "" if value is None else str(value)


def display_name(record: TargetRecord, schema: TargetSchema) -> str:
    """Primary field value of a record, used when presenting matches."""
    primary = schema.primary_field
    if primary is None:
        return ""
    return extract(record, primary)
