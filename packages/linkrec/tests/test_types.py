"""Tests for configuration parsing and record helpers."""

import pytest

from linkrec.types import (
    ClassificationResult,
    DictRecord,
    MatchConfiguration,
    MatchItem,
    SchemaField,
    TargetSchema,
    field_type_from_tag,
)

UI_CONFIG = {
    "csvToAirtable": {"Email": "fldEmail", "Name": "fldName", "Unused": ""},
    "exactMatchGroups": [
        {
            "id": 1,
            "fieldCombinations": [
                {"id": 2, "operator": "or", "fields": [
                    {"mappedField": "Email", "matchType": "exact"},
                    {"mappedField": "Name", "matchType": "exact"},
                ]}
            ],
        }
    ],
    "fuzzyMatchGroups": [
        {"id": 3, "fieldCombinations": [{"fields": [{"mappedField": "Name", "matchType": "soundex"}]}]}
    ],
    "enableFuzzyMatching": True,
}


class TestMatchConfiguration:
    def test_parse_ui_shape(self):
        config = MatchConfiguration.from_dict(UI_CONFIG)

        assert config.field_mapping == {"Email": "fldEmail", "Name": "fldName"}
        assert config.fuzzy_enabled is True
        combo = config.exact_match_groups[0].field_combinations[0]
        assert combo.operator == "OR"
        assert combo.id == "2"
        assert [r.mapped_field for r in combo.fields] == ["Email", "Name"]
        fuzzy_combo = config.fuzzy_match_groups[0].field_combinations[0]
        assert fuzzy_combo.operator == "AND"
        assert fuzzy_combo.fields[0].match_type == "soundex"

    def test_snake_case_shape(self):
        config = MatchConfiguration.from_dict({
            "field_mapping": {"email": "fldEmail"},
            "exact_match_groups": [{"field_combinations": [{"fields": [{"mapped_field": "email"}]}]}],
            "fuzzy_enabled": False,
        })
        rule = config.exact_match_groups[0].field_combinations[0].fields[0]
        assert rule.mapped_field == "email"
        assert rule.match_type == "exact"

    def test_empty(self):
        config = MatchConfiguration.from_dict({})
        assert config.is_empty
        assert config.fuzzy_enabled is False

    def test_to_dict_round_trip(self):
        config = MatchConfiguration.from_dict(UI_CONFIG)
        assert MatchConfiguration.from_dict(config.to_dict()) == config


class TestSchema:
    def test_from_dict(self):
        schema = TargetSchema.from_dict({
            "fields": [
                {"id": "f1", "name": "Name", "type": "singleLineText"},
                {"id": "f2", "name": "Paid", "type": "currency"},
                {"id": "f3", "name": "Tags", "type": "multipleSelects"},
            ],
            "primaryFieldId": "f1",
        })
        assert [f.type for f in schema.fields] == ["text", "number", "other"]
        assert schema.primary_field.name == "Name"
        assert schema.field_by_name_if_exists("Paid").id == "f2"
        assert schema.field_by_id_if_exists("nope") is None

    def test_primary_defaults_to_first_field(self):
        schema = TargetSchema([SchemaField("a", "A"), SchemaField("b", "B")])
        assert schema.primary_field.id == "a"

    @pytest.mark.parametrize("tag,expected", [
        ("email", "email"), ("Checkbox", "checkbox"), ("number", "number"),
        ("text", "text"), (None, "other"), ("formula", "other"),
    ])
    def test_field_type_from_tag(self, tag, expected):
        assert field_type_from_tag(tag) == expected


class TestDictRecord:
    def test_string_values(self):
        record = DictRecord("r", {"a": None, "b": ["x", "y"], "c": True, "d": 3})
        assert record.string_value(SchemaField("a", "A")) == ""
        assert record.string_value(SchemaField("b", "B")) == "x, y"
        assert record.string_value(SchemaField("c", "C")) == "checked"
        assert record.string_value(SchemaField("d", "D")) == "3"
        assert record.string_value(SchemaField("zz", "Z")) == ""


def test_bucket_lookup():
    result = ClassificationResult(missing=[MatchItem(0, {})])
    assert result.bucket("missing")[0].row_index == 0
    assert result.counts() == {"definite": 0, "ambiguous": 0, "missing": 1}
    with pytest.raises(ValueError):
        result.bucket("fuzzy")
