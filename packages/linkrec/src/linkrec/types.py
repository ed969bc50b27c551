"""Core types for the linkrec record-matching engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

Operator = Literal["AND", "OR"]
FieldType = Literal["text", "email", "number", "checkbox", "other"]
Bucket = Literal["definite", "ambiguous", "missing"]

BUCKETS: tuple[Bucket, ...] = ("definite", "ambiguous", "missing")

# Host type tags that fold into the closed FieldType set
_FIELD_TYPE_ALIASES: dict[str, FieldType] = {
    "text": "text",
    "singlelinetext": "text",
    "multilinetext": "text",
    "richtext": "text",
    "phonenumber": "text",
    "url": "text",
    "email": "email",
    "number": "number",
    "currency": "number",
    "percent": "number",
    "checkbox": "checkbox",
}


def field_type_from_tag(tag: str | None) -> FieldType:
    """Fold a host schema type tag into the closed FieldType set."""
    if not tag:
        return "other"
    return _FIELD_TYPE_ALIASES.get(str(tag).strip().lower(), "other")


@dataclass(frozen=True)
class SchemaField:
    """A field in the target collection's schema (a FieldRef)."""

    id: str
    name: str
    type: FieldType = "text"


@dataclass
class TargetSchema:
    fields: list[SchemaField]
    primary_field_id: str | None = None

    def __post_init__(self) -> None:
        self._by_id = {f.id: f for f in self.fields}
        self._by_name = {f.name: f for f in self.fields}
        if self.primary_field_id is None and self.fields:
            self.primary_field_id = self.fields[0].id

    def field_by_id_if_exists(self, field_id: str | None) -> SchemaField | None:
        if field_id is None:
            return None
        return self._by_id.get(field_id)

    def field_by_name_if_exists(self, name: str | None) -> SchemaField | None:
        if name is None:
            return None
        return self._by_name.get(name)

    @property
    def primary_field(self) -> SchemaField | None:
        return self.field_by_id_if_exists(self.primary_field_id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TargetSchema:
        fields = [
            SchemaField(
                id=str(f["id"]),
                name=str(f.get("name", f["id"])),
                type=field_type_from_tag(f.get("type")),
            )
            for f in data.get("fields", [])
        ]
        primary = data.get("primaryFieldId", data.get("primary_field_id"))
        return cls(fields=fields, primary_field_id=primary)


class TargetRecord(Protocol):
    """An existing record owned by the host collection."""

    @property
    def id(self) -> str: ...

    def string_value(self, field: SchemaField) -> str: ...


@dataclass
class DictRecord:
    """In-memory target record with values keyed by field id."""

    id: str
    values: dict[str, Any] = field(default_factory=dict)

    def string_value(self, field: SchemaField) -> str:
        value = self.values.get(field.id)
        if value is None:
            return ""
        if isinstance(value, bool):
            return "checked" if value else ""
        if isinstance(value, (list, tuple)):
            return ", ".join(str(v) for v in value)
        return str(value)


@dataclass(frozen=True)
class MatchRule:
    mapped_field: str
    match_type: str = "exact"


@dataclass(frozen=True)
class Combination:
    """Field-level rules joined by a single AND/OR operator."""

    fields: tuple[MatchRule, ...] = ()
    operator: Operator = "AND"
    id: str | None = None


@dataclass(frozen=True)
class Group:
    field_combinations: tuple[Combination, ...] = ()
    id: str | None = None


def _get(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


def _rule_from_dict(data: dict[str, Any]) -> MatchRule:
    return MatchRule(
        mapped_field=str(_get(data, "mappedField", "mapped_field", default="") or ""),
        match_type=str(_get(data, "matchType", "match_type", default="exact") or "exact"),
    )


def _combination_from_dict(data: dict[str, Any]) -> Combination:
    operator = str(data.get("operator", "AND")).upper()
    return Combination(
        fields=tuple(_rule_from_dict(f) for f in data.get("fields", []) or []),
        operator="OR" if operator == "OR" else "AND",
        id=None if data.get("id") is None else str(data["id"]),
    )


def _group_from_dict(data: dict[str, Any]) -> Group:
    combos = _get(data, "fieldCombinations", "field_combinations", default=[]) or []
    return Group(
        field_combinations=tuple(_combination_from_dict(c) for c in combos),
        id=None if data.get("id") is None else str(data["id"]),
    )


@dataclass(frozen=True)
class MatchConfiguration:
    """User-edited matching rules: mapping plus exact and fuzzy groups."""

    exact_match_groups: tuple[Group, ...] = ()
    fuzzy_match_groups: tuple[Group, ...] = ()
    fuzzy_enabled: bool = False
    field_mapping: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.exact_match_groups and not self.fuzzy_match_groups

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MatchConfiguration:
        mapping = _get(data, "fieldMapping", "csvToAirtable", "field_mapping", default={}) or {}
        exact = _get(data, "exactMatchGroups", "exact_match_groups", default=[]) or []
        fuzzy = _get(data, "fuzzyMatchGroups", "fuzzy_match_groups", default=[]) or []
        enabled = _get(data, "enableFuzzyMatching", "fuzzyEnabled", "fuzzy_enabled", default=False)
        return cls(
            exact_match_groups=tuple(_group_from_dict(g) for g in exact),
            fuzzy_match_groups=tuple(_group_from_dict(g) for g in fuzzy),
            fuzzy_enabled=bool(enabled),
            # Blank targets are treated as unmapped
            field_mapping={str(k): str(v) for k, v in mapping.items() if k and v},
        )

    def to_dict(self) -> dict[str, Any]:
        def group_dict(g: Group) -> dict[str, Any]:
            return {
                "id": g.id,
                "fieldCombinations": [
                    {
                        "id": c.id,
                        "operator": c.operator,
                        "fields": [
                            {"mappedField": r.mapped_field, "matchType": r.match_type}
                            for r in c.fields
                        ],
                    }
                    for c in g.field_combinations
                ],
            }

        return {
            "fieldMapping": dict(self.field_mapping),
            "exactMatchGroups": [group_dict(g) for g in self.exact_match_groups],
            "fuzzyMatchGroups": [group_dict(g) for g in self.fuzzy_match_groups],
            "enableFuzzyMatching": self.fuzzy_enabled,
        }


@dataclass
class FieldDetail:
    row_value: str | None
    record_value: str
    similarity: float
    match_type: str
    passes: bool
    required: bool


@dataclass
class EvaluationResult:
    matches: bool
    score: float
    details: dict[str, FieldDetail] = field(default_factory=dict)
    matched_combination: Combination | None = None


@dataclass(frozen=True)
class RecordRef:
    """Identity and display name of a matched target record."""

    id: str
    name: str = ""


@dataclass
class MatchItem:
    row_index: int
    row: dict[str, str]
    record: RecordRef | None = None
    match_type: str | None = None
    similarity: float | None = None
    details: dict[str, FieldDetail] = field(default_factory=dict)


@dataclass
class ClassificationResult:
    definite: list[MatchItem] = field(default_factory=list)
    ambiguous: list[MatchItem] = field(default_factory=list)
    missing: list[MatchItem] = field(default_factory=list)
    generation: int = 0

    def bucket(self, name: str) -> list[MatchItem]:
        if name not in BUCKETS:
            raise ValueError(f"Unknown bucket: {name!r}")
        return getattr(self, name)

    def counts(self) -> dict[str, int]:
        return {name: len(self.bucket(name)) for name in BUCKETS}

    @property
    def total(self) -> int:
        return len(self.definite) + len(self.ambiguous) + len(self.missing)

    def row_indices(self) -> list[int]:
        """All row indices across buckets, sorted."""
        return sorted(
            item.row_index
            for name in BUCKETS
            for item in self.bucket(name)
        )
