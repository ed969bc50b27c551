"""Configuration for the linkrec matching engine."""

from __future__ import annotations

from dataclasses import dataclass, field

# Per-field pass thresholds. Fixed by the rule language, not user-tunable.
EXACT_PASS_THRESHOLD = 1.0
FIELD_PASS_THRESHOLD = 0.8

# Score reported by "contains" when one value strictly contains the other
CONTAINS_PARTIAL_SCORE = 0.9


@dataclass
class ClassifierConfig:
    max_workers: int = 1  # 1 = classify rows sequentially


@dataclass
class MaterializeConfig:
    name_candidates: list[str] = field(
        default_factory=lambda: ["name", "Name", "firstName", "First Name"]
    )
    fallback_name: str = "Unknown"
    checkbox_true_values: frozenset[str] = frozenset({"true", "yes", "1"})


@dataclass
class EngineConfig:
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    materialize: MaterializeConfig = field(default_factory=MaterializeConfig)
