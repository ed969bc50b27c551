"""Group-level aggregation of combination results.

Exact-match groups are an OR over every combination in every group: the
first passing combination wins. Fuzzy-match groups are an AND across
groups with an OR over the combinations inside each group. The two
policies are intentionally asymmetric; changing either would change the
outcome of existing configurations.
"""

from __future__ import annotations

from collections.abc import Sequence

from linkrec.combination import evaluate_combination
from linkrec.resolver import resolve
from linkrec.types import (
    EvaluationResult,
    FieldDetail,
    Group,
    MatchConfiguration,
    TargetRecord,
    TargetSchema,
)


def evaluate_exact_groups(
    row: dict[str, str],
    record: TargetRecord,
    groups: Sequence[Group],
    field_mapping: dict[str, str],
    schema: TargetSchema,
) -> EvaluationResult:
    """Return the first matching combination across groups, in declared order."""
    for group in groups:
        for combination in group.field_combinations:
            result = evaluate_combination(row, record, combination, field_mapping, schema)
            if result.matches:
                return EvaluationResult(
                    matches=True,
                    score=result.score,
                    details=result.details,
                    matched_combination=combination,
                )
    return EvaluationResult(matches=False, score=0.0)


def evaluate_fuzzy_groups(
    row: dict[str, str],
    record: TargetRecord,
    groups: Sequence[Group],
    field_mapping: dict[str, str],
    schema: TargetSchema,
) -> EvaluationResult:
    """Every group must pass; a group passes if any of its combinations does.

    All combinations are evaluated so the diagnostic score can average
    the similarity of every mapped field read along the way.
    """
    if not groups:
        return EvaluationResult(matches=False, score=0.0)

    all_details: dict[str, FieldDetail] = {}
    group_passes: list[bool] = []

    for group in groups:
        passed = False
        for combination in group.field_combinations:
            result = evaluate_combination(row, record, combination, field_mapping, schema)
            all_details.update(result.details)
            passed = passed or result.matches
        group_passes.append(passed)

    # one value per mapped field, the last combination to read it wins
    scores = [d.similarity for d in all_details.values()]
    score = sum(scores) / len(scores) if scores else 0.0
    return EvaluationResult(
        matches=all(group_passes),
        score=score,
        details=all_details,
    )


def has_valid_exact_rule(config: MatchConfiguration | None, schema: TargetSchema | None) -> bool:
    """True when at least one exact rule resolves to a live schema field.

    Lets a caller tell "nothing configured yet" apart from "ran and
    found no matches".
    """
    if config is None or schema is None:
        return False
    for group in config.exact_match_groups:
        for combination in group.field_combinations:
            for rule in combination.fields:
                if resolve(rule.mapped_field, config.field_mapping, schema) is not None:
                    return True
    return False
