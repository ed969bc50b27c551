"""Manual review of a classification: moves, freezing and re-runs."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace

import structlog

from linkrec.classifier import Classifier
from linkrec.types import (
    BUCKETS,
    ClassificationResult,
    MatchConfiguration,
    MatchItem,
    TargetRecord,
    TargetSchema,
)


class RunSuperseded(RuntimeError):
    """A run finished after a newer run or a manual move and was dropped."""


@dataclass
class ReviewSession:
    """Holds the current classification and the user's manual overrides.

    Every automatic run is tagged with a generation. A manual move
    freezes the session so background runs cannot overwrite the user's
    edits; only an explicit rerun() clears the freeze.
    """

    classifier: Classifier = field(default_factory=Classifier)
    result: ClassificationResult = field(default_factory=ClassificationResult)
    generation: int = 0
    frozen: bool = False

    def __post_init__(self) -> None:
        self.log = structlog.get_logger()
        self._lock = threading.Lock()

    def begin_run(self) -> int:
        """Start a new generation and return its token."""
        with self._lock:
            self.generation += 1
            return self.generation

    def complete_run(self, generation: int, result: ClassificationResult) -> bool:
        """Install a run's result unless it is stale or the session is frozen."""
        with self._lock:
            if generation != self.generation:
                self.log.info(
                    "stale_result_dropped",
                    generation=generation,
                    current=self.generation,
                )
                return False
            if self.frozen:
                self.log.info("frozen_result_dropped", generation=generation)
                return False
            result.generation = generation
            self.result = result
            return True

    def auto_classify(
        self,
        rows: Sequence[dict[str, str]],
        records: Iterable[TargetRecord] | None,
        schema: TargetSchema | None,
        rules: MatchConfiguration | None,
    ) -> bool:
        """Automatic re-classification; skipped while frozen."""
        if self.frozen:
            self.log.info("auto_classify_skipped_frozen", generation=self.generation)
            return False
        generation = self.begin_run()
        result = self.classifier.classify(rows, records, schema, rules, generation=generation)
        return self.complete_run(generation, result)

    def rerun(
        self,
        rows: Sequence[dict[str, str]],
        records: Iterable[TargetRecord] | None,
        schema: TargetSchema | None,
        rules: MatchConfiguration | None,
    ) -> ClassificationResult:
        """Explicit re-run: drop manual overrides and classify from scratch.

        Raises RunSuperseded when the run's result was dropped because a
        newer run or a manual move landed before it completed.
        """
        with self._lock:
            self.frozen = False
        self.log.info("rerun_requested", previous_generation=self.generation)
        if not self.auto_classify(rows, records, schema, rules):
            raise RunSuperseded("Classification was superseded before it completed")
        return self.result

    def move_record(self, from_bucket: str, to_bucket: str, index: int) -> MatchItem:
        """Move one item between buckets and freeze the session."""
        if from_bucket not in BUCKETS or to_bucket not in BUCKETS:
            raise ValueError(f"Unknown bucket: {from_bucket!r} -> {to_bucket!r}")
        if from_bucket == to_bucket:
            raise ValueError(f"Item is already in {from_bucket!r}")

        with self._lock:
            source = self.result.bucket(from_bucket)
            if not 0 <= index < len(source):
                raise IndexError(f"No item {index} in {from_bucket!r} ({len(source)} items)")

            item = source.pop(index)
            if to_bucket == "missing":
                moved = replace(item, record=None, match_type=None, similarity=None, details={})
            elif to_bucket == "definite":
                moved = replace(item, match_type="exact", similarity=None, details={})
            else:
                moved = item
            self.result.bucket(to_bucket).append(moved)
            self.frozen = True

        self.log.info(
            "record_moved",
            from_bucket=from_bucket,
            to_bucket=to_bucket,
            index=index,
            row_index=moved.row_index,
        )
        return moved

    def can_apply(self) -> bool:
        """Changes can be written once every ambiguous item is resolved."""
        return not self.result.ambiguous

    def summary(self) -> dict[str, object]:
        return {
            **self.result.counts(),
            "frozen": self.frozen,
            "generation": self.generation,
            "can_apply": self.can_apply(),
        }
