"""Main orchestration: scan target records per row and bucket the row."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum

import structlog

from linkrec.config import EngineConfig
from linkrec.groups import evaluate_exact_groups, evaluate_fuzzy_groups
from linkrec.resolver import display_name
from linkrec.types import (
    BUCKETS,
    Bucket,
    ClassificationResult,
    MatchConfiguration,
    MatchItem,
    RecordRef,
    TargetRecord,
    TargetSchema,
)

log = structlog.get_logger()


class ScanState(Enum):
    """Per-row scan state."""

    SCANNING = "scanning"
    DEFINITE_FOUND = "definite_found"
    SCANNED = "scanned"


@dataclass
class ClassifierStats:
    """Statistics collected during a classification run."""

    rows: int = 0
    records: int = 0
    comparisons: int = 0
    pair_errors: int = 0
    buckets: dict[str, int] = field(default_factory=lambda: {
        "definite": 0, "ambiguous": 0, "missing": 0
    })


@dataclass
class RowOutcome:
    bucket: Bucket
    item: MatchItem
    state: ScanState
    comparisons: int = 0
    pair_errors: int = 0


class Classifier:
    """Record matcher sorting incoming rows into definite, ambiguous and missing."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()
        # stats of the last completed run
        self.stats = ClassifierStats()

    def classify_row(
        self,
        row_index: int,
        row: dict[str, str],
        records: Sequence[TargetRecord],
        schema: TargetSchema,
        rules: MatchConfiguration,
    ) -> RowOutcome:
        """Classify one row against every target record.

        The first record passing the exact groups makes the row definite
        and ends the scan. Otherwise, with fuzzy matching enabled, every
        record is scored and the best passing fuzzy candidate is kept.
        """
        state = ScanState.SCANNING
        mapping = rules.field_mapping
        fuzzy_active = rules.fuzzy_enabled and bool(rules.fuzzy_match_groups)
        best: MatchItem | None = None
        best_score = 0.0
        comparisons = 0
        pair_errors = 0

        for record in records:
            comparisons += 1
            try:
                if rules.exact_match_groups:
                    exact = evaluate_exact_groups(
                        row, record, rules.exact_match_groups, mapping, schema
                    )
                    if exact.matches:
                        state = ScanState.DEFINITE_FOUND
                        item = MatchItem(
                            row_index=row_index,
                            row=row,
                            record=RecordRef(record.id, display_name(record, schema)),
                            match_type="exact",
                            similarity=exact.score,
                            details=exact.details,
                        )
                        log.debug(
                            "exact_match_found",
                            row_index=row_index,
                            record_id=record.id,
                            score=round(exact.score, 4),
                        )
                        break

                if fuzzy_active:
                    fuzzy = evaluate_fuzzy_groups(
                        row, record, rules.fuzzy_match_groups, mapping, schema
                    )
                    if fuzzy.matches and fuzzy.score > best_score:
                        best_score = fuzzy.score
                        best = MatchItem(
                            row_index=row_index,
                            row=row,
                            record=RecordRef(record.id, display_name(record, schema)),
                            match_type="fuzzy",
                            similarity=fuzzy.score,
                            details=fuzzy.details,
                        )
            except Exception:
                pair_errors += 1
                log.error(
                    "pair_evaluation_error",
                    row_index=row_index,
                    record_id=getattr(record, "id", None),
                    exc_info=True,
                )

        if state is ScanState.DEFINITE_FOUND:
            return RowOutcome("definite", item, state, comparisons, pair_errors)

        state = ScanState.SCANNED
        if best is not None:
            log.debug(
                "fuzzy_candidate_kept",
                row_index=row_index,
                record_id=best.record.id if best.record else None,
                score=round(best_score, 4),
            )
            return RowOutcome("ambiguous", best, state, comparisons, pair_errors)

        return RowOutcome(
            "missing", MatchItem(row_index=row_index, row=row), state, comparisons, pair_errors
        )

    def classify(
        self,
        rows: Sequence[dict[str, str]],
        records: Iterable[TargetRecord] | None,
        schema: TargetSchema | None,
        rules: MatchConfiguration | None,
        generation: int = 0,
    ) -> ClassificationResult:
        """Classify every row. Bucket order always follows row order."""
        result, self.stats = self.run(rows, records, schema, rules, generation=generation)
        return result

    def run(
        self,
        rows: Sequence[dict[str, str]],
        records: Iterable[TargetRecord] | None,
        schema: TargetSchema | None,
        rules: MatchConfiguration | None,
        generation: int = 0,
    ) -> tuple[ClassificationResult, ClassifierStats]:
        """Classify every row and return the result with this run's stats.

        Stats are local to the call; concurrent runs on one classifier
        each get their own counters.
        """
        rows = list(rows or [])
        stats = ClassifierStats(rows=len(rows))
        result = ClassificationResult(generation=generation)

        if records is None or schema is None or rules is None or rules.is_empty:
            log.warning(
                "classify_missing_inputs",
                has_records=records is not None,
                has_schema=schema is not None,
                has_rules=rules is not None and not rules.is_empty,
            )
            result.missing = [MatchItem(row_index=i, row=r) for i, r in enumerate(rows)]
            stats.buckets["missing"] = len(rows)
            return result, stats

        record_list = list(records)
        stats.records = len(record_list)
        workers = max(1, self.config.classifier.max_workers)
        log.info(
            "classify_start",
            rows=len(rows),
            records=len(record_list),
            workers=workers,
            generation=generation,
        )

        def classify_at(index: int) -> RowOutcome:
            return self.classify_row(index, rows[index], record_list, schema, rules)

        if workers == 1 or len(rows) < 2:
            outcomes = [classify_at(i) for i in range(len(rows))]
        else:
            # map() yields in submission order, keeping buckets deterministic
            with ThreadPoolExecutor(max_workers=workers) as executor:
                outcomes = list(executor.map(classify_at, range(len(rows))))

        for outcome in outcomes:
            result.bucket(outcome.bucket).append(outcome.item)
            stats.comparisons += outcome.comparisons
            stats.pair_errors += outcome.pair_errors

        for name in BUCKETS:
            stats.buckets[name] = len(result.bucket(name))

        log.info(
            "classify_done",
            definite=stats.buckets["definite"],
            ambiguous=stats.buckets["ambiguous"],
            missing=stats.buckets["missing"],
            comparisons=stats.comparisons,
            pair_errors=stats.pair_errors,
        )
        return result, stats


def classify(
    rows: Sequence[dict[str, str]],
    records: Iterable[TargetRecord] | None,
    schema: TargetSchema | None,
    rules: MatchConfiguration | None,
    config: EngineConfig | None = None,
) -> ClassificationResult:
    """Single synchronous engine call: rows in, categorized buckets out."""
    return Classifier(config).classify(rows, records, schema, rules)
