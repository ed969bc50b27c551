"""linkrec - Match incoming rows against an existing record collection."""

from linkrec.classifier import Classifier, ClassifierStats, classify
from linkrec.config import EngineConfig
from linkrec.groups import has_valid_exact_rule
from linkrec.materialize import ChangeSet, materialize, prepare_changes
from linkrec.review import ReviewSession, RunSuperseded
from linkrec.similarity import similarity
from linkrec.types import (
    ClassificationResult,
    DictRecord,
    MatchConfiguration,
    MatchItem,
    SchemaField,
    TargetSchema,
)

__all__ = [
    "ChangeSet",
    "ClassificationResult",
    "Classifier",
    "ClassifierStats",
    "DictRecord",
    "EngineConfig",
    "MatchConfiguration",
    "MatchItem",
    "ReviewSession",
    "RunSuperseded",
    "SchemaField",
    "TargetSchema",
    "classify",
    "has_valid_exact_rule",
    "materialize",
    "prepare_changes",
    "similarity",
]
