"""FastAPI service exposing classification and manual review."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from linkrec.classifier import Classifier
from linkrec.config import ClassifierConfig, EngineConfig
from linkrec.groups import has_valid_exact_rule
from linkrec.materialize import prepare_changes
from linkrec.review import ReviewSession, RunSuperseded
from linkrec.types import (
    BUCKETS,
    MatchConfiguration,
    MatchItem,
    TargetRecord,
    TargetSchema,
)

log = structlog.get_logger()


class ClassifyRequest(BaseModel):
    """Request body for a classification run."""

    rows: list[dict[str, Any]]
    config: dict[str, Any]


class MoveRequest(BaseModel):
    from_bucket: str
    to_bucket: str
    index: int


class MatchItemResponse(BaseModel):
    row_index: int
    row: dict[str, str]
    record_id: str | None = None
    record_name: str | None = None
    match_type: str | None = None
    similarity: float | None = None
    details: dict[str, dict[str, Any]] = {}


class ResultsResponse(BaseModel):
    definite: list[MatchItemResponse]
    ambiguous: list[MatchItemResponse]
    missing: list[MatchItemResponse]
    summary: dict[str, Any]


class ChangesResponse(BaseModel):
    links: list[str]
    creates: list[dict[str, Any]]
    unresolved: int


def _item_response(item: MatchItem) -> MatchItemResponse:
    return MatchItemResponse(
        row_index=item.row_index,
        row=item.row,
        record_id=item.record.id if item.record else None,
        record_name=item.record.name if item.record else None,
        match_type=item.match_type,
        similarity=item.similarity,
        details={k: asdict(d) for k, d in item.details.items()},
    )


def create_app(
    records: list[TargetRecord],
    schema: TargetSchema,
    workers: int = 1,
) -> FastAPI:
    """Create the FastAPI application over an in-memory record collection."""
    app = FastAPI(title="linkrec")
    classifier = Classifier(EngineConfig(classifier=ClassifierConfig(max_workers=workers)))
    session = ReviewSession(classifier=classifier)
    state: dict[str, Any] = {"rows": [], "rules": None}

    def results() -> ResultsResponse:
        buckets = {
            name: [_item_response(item) for item in session.result.bucket(name)]
            for name in BUCKETS
        }
        return ResultsResponse(**buckets, summary=session.summary())

    @app.post("/api/classify")
    def classify(req: ClassifyRequest) -> ResultsResponse:
        """Classify a fresh batch of rows; clears any manual overrides."""
        rows = [
            {str(k): "" if v is None else str(v) for k, v in row.items()}
            for row in req.rows
        ]
        rules = MatchConfiguration.from_dict(req.config)
        state["rows"] = rows
        state["rules"] = rules
        log.info("api_classify", rows=len(rows), records=len(records))
        try:
            session.rerun(rows, records, schema, rules)
        except RunSuperseded as e:
            raise HTTPException(status_code=409, detail=str(e))
        return results()

    @app.get("/api/results")
    async def get_results() -> ResultsResponse:
        return results()

    @app.post("/api/move")
    async def move(req: MoveRequest) -> ResultsResponse:
        """Manually move one item between buckets."""
        try:
            session.move_record(req.from_bucket, req.to_bucket, req.index)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except IndexError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return results()

    @app.post("/api/rerun")
    def rerun() -> ResultsResponse:
        """Re-classify the last batch, discarding manual moves."""
        if state["rules"] is None:
            raise HTTPException(status_code=400, detail="Nothing has been classified yet")
        try:
            session.rerun(state["rows"], records, schema, state["rules"])
        except RunSuperseded as e:
            raise HTTPException(status_code=409, detail=str(e))
        return results()

    @app.get("/api/changes")
    async def changes() -> ChangesResponse:
        """Links and new-record payloads, once every ambiguous item is resolved."""
        if state["rules"] is None:
            raise HTTPException(status_code=400, detail="Nothing has been classified yet")
        if not session.can_apply():
            raise HTTPException(
                status_code=409,
                detail=f"{len(session.result.ambiguous)} ambiguous matches need review",
            )
        change_set = prepare_changes(session.result, state["rules"], schema)
        return ChangesResponse(**asdict(change_set))

    @app.post("/api/config/valid")
    async def config_valid(config: dict[str, Any]) -> dict[str, bool]:
        rules = MatchConfiguration.from_dict(config)
        return {"hasValidExactRule": has_valid_exact_rule(rules, schema)}

    return app
