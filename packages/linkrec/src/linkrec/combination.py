"""Evaluate one field combination against a (row, record) pair."""

from __future__ import annotations

import structlog

from linkrec.config import EXACT_PASS_THRESHOLD, FIELD_PASS_THRESHOLD
from linkrec.resolver import extract, resolve
from linkrec.similarity import similarity
from linkrec.types import (
    Combination,
    EvaluationResult,
    FieldDetail,
    TargetRecord,
    TargetSchema,
)

log = structlog.get_logger()


def pass_threshold(match_type: str) -> float:
    return EXACT_PASS_THRESHOLD if match_type == "exact" else FIELD_PASS_THRESHOLD


def evaluate_combination(
    row: dict[str, str],
    record: TargetRecord,
    combination: Combination,
    field_mapping: dict[str, str],
    schema: TargetSchema,
) -> EvaluationResult:
    """Apply a combination's field rules and join the votes with its operator.

    Unresolved fields cast no vote and are left out of the details. A
    combination with no resolved fields never matches. The score is the
    mean similarity of the fields actually compared and is diagnostic
    only.
    """
    if not combination.fields:
        return EvaluationResult(matches=False, score=0.0)

    details: dict[str, FieldDetail] = {}
    votes: list[bool] = []
    scores: list[float] = []
    required = combination.operator == "AND"

    for rule in combination.fields:
        schema_field = resolve(rule.mapped_field, field_mapping, schema)
        if schema_field is None:
            continue

        row_value = row.get(rule.mapped_field)
        try:
            record_value = extract(record, schema_field)
        except Exception:
            # A broken field read is a failing vote, not a batch failure
            log.error(
                "field_extract_error",
                field=rule.mapped_field,
                record_id=getattr(record, "id", None),
                exc_info=True,
            )
            record_value = ""
            score = 0.0
            passes = False
        else:
            score = similarity(row_value, record_value, rule.match_type)
            passes = score >= pass_threshold(rule.match_type)

        details[rule.mapped_field] = FieldDetail(
            row_value=row_value,
            record_value=record_value,
            similarity=score,
            match_type=rule.match_type,
            passes=passes,
            required=required,
        )
        votes.append(passes)
        scores.append(score)

    if not votes:
        return EvaluationResult(matches=False, score=0.0, details=details)

    if combination.operator == "OR":
        matches = any(votes)
    else:
        matches = all(votes)

    return EvaluationResult(
        matches=matches,
        score=sum(scores) / len(scores),
        details=details,
    )
