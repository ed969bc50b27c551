"""Tests for the HTTP service."""

import pytest
from fastapi.testclient import TestClient

from linkrec.review import ReviewSession
from linkrec.server import create_app

CONFIG = {
    "fieldMapping": {"name": "fldName", "email": "fldEmail"},
    "exactMatchGroups": [
        {"fieldCombinations": [{"operator": "AND", "fields": [{"mappedField": "email", "matchType": "exact"}]}]}
    ],
    "fuzzyMatchGroups": [
        {"fieldCombinations": [{"operator": "AND", "fields": [{"mappedField": "name", "matchType": "fuzzy"}]}]}
    ],
    "enableFuzzyMatching": True,
}

ROWS = [
    {"name": "Jon Smith", "email": "jon@x.com"},
    {"name": "Jonathon Smith", "email": "none@x.com"},
    {"name": "New Person", "email": "new@x.com"},
]


@pytest.fixture
def client(records, schema):
    return TestClient(create_app(records, schema))


def test_classify(client):
    resp = client.post("/api/classify", json={"rows": ROWS, "config": CONFIG})

    assert resp.status_code == 200
    body = resp.json()
    assert [i["row_index"] for i in body["definite"]] == [0]
    assert body["ambiguous"][0]["record_id"] == "rec3"
    assert body["summary"]["missing"] == 1
    assert body["summary"]["can_apply"] is False


def test_changes_blocked_until_reviewed(client):
    client.post("/api/classify", json={"rows": ROWS, "config": CONFIG})

    assert client.get("/api/changes").status_code == 409

    moved = client.post("/api/move", json={"from_bucket": "ambiguous", "to_bucket": "definite", "index": 0})
    assert moved.status_code == 200
    assert moved.json()["summary"]["frozen"] is True

    changes = client.get("/api/changes").json()
    assert changes["links"] == ["rec1", "rec3"]
    assert changes["creates"] == [{"fldName": "New Person", "fldEmail": "new@x.com"}]


def test_move_errors(client):
    client.post("/api/classify", json={"rows": ROWS, "config": CONFIG})
    assert client.post("/api/move", json={"from_bucket": "x", "to_bucket": "missing", "index": 0}).status_code == 400
    assert client.post(
        "/api/move", json={"from_bucket": "missing", "to_bucket": "definite", "index": 9}
    ).status_code == 404


def test_rerun_restores_automatic_result(client):
    client.post("/api/classify", json={"rows": ROWS, "config": CONFIG})
    client.post("/api/move", json={"from_bucket": "definite", "to_bucket": "missing", "index": 0})

    body = client.post("/api/rerun").json()

    assert body["summary"]["frozen"] is False
    assert body["summary"]["definite"] == 1


def test_rerun_before_classify(client):
    assert client.post("/api/rerun").status_code == 400


def test_config_valid(client):
    assert client.post("/api/config/valid", json=CONFIG).json() == {"hasValidExactRule": True}
    assert client.post("/api/config/valid", json={}).json() == {"hasValidExactRule": False}


def test_classify_superseded_run_conflicts(client, monkeypatch):
    monkeypatch.setattr(ReviewSession, "complete_run", lambda self, generation, result: False)

    resp = client.post("/api/classify", json={"rows": ROWS, "config": CONFIG})

    assert resp.status_code == 409
    assert client.get("/api/results").json()["summary"]["definite"] == 0
