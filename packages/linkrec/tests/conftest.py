"""Shared fixtures: a small people schema and record collection."""

import pytest

from linkrec.types import DictRecord, SchemaField, TargetSchema


@pytest.fixture
def schema() -> TargetSchema:
    return TargetSchema(
        fields=[
            SchemaField("fldName", "Name", "text"),
            SchemaField("fldEmail", "Email", "email"),
            SchemaField("fldAge", "Age", "number"),
            SchemaField("fldActive", "Active", "checkbox"),
        ],
        primary_field_id="fldName",
    )


@pytest.fixture
def mapping() -> dict[str, str]:
    return {"name": "fldName", "email": "fldEmail", "age": "fldAge", "active": "fldActive"}


@pytest.fixture
def records() -> list[DictRecord]:
    return [
        DictRecord("rec1", {"fldName": "Jon Smith", "fldEmail": "jon@x.com"}),
        DictRecord("rec2", {"fldName": "Jane Doe", "fldEmail": "jane@y.org"}),
        DictRecord("rec3", {"fldName": "Jonathan Smith", "fldEmail": "jsmith@z.net"}),
    ]
