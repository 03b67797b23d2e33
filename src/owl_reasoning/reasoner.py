"""
owl_reasoning/reasoner.py - Reasoning facade

The three operations the editor calls:

    validate(snapshot)            -> ValidationResult
    classify_and_infer(snapshot)  -> InferenceResult
    query(snapshot, text, mode)   -> list of entity ids

Each call rebuilds the index from the snapshot it is given. ``Reasoner``
adds settings and an explicit classification cache so repeated calls on
an unchanged snapshot skip re-classification.

Example:
    reasoner = Reasoner()
    result = reasoner.validate(snapshot)
    if result.is_valid:
        inferred = reasoner.classify_and_infer(snapshot).inferred
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .cache import ClassificationCache, snapshot_fingerprint
from .classification import classify
from .config import ReasonerSettings, get_settings
from .consistency import ConsistencyChecker, ValidationResult
from .index import OntologyIndex, build_index, coerce_snapshot
from .materializer import materialize
from .metrics import OntologyMetrics, compute_metrics
from .models import Relation, Snapshot
from .query import QueryMode, run_query

logger = logging.getLogger(__name__)

SnapshotLike = Snapshot | Mapping[str, Any]


@dataclass
class InferenceResult:
    """Classified index plus the relations to display."""

    index: OntologyIndex
    relations: list[Relation] = field(default_factory=list)  # explicit + inferred
    inferred: list[Relation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "relations": [r.model_dump(mode="json", by_alias=True) for r in self.relations],
            "inferredCount": len(self.inferred),
        }


class Reasoner:
    """Entry point holding settings and the classification cache."""

    def __init__(
        self,
        settings: ReasonerSettings | None = None,
        cache: ClassificationCache | None = None,
    ):
        self.settings = settings or get_settings()
        if cache is None and self.settings.cache_enabled:
            cache = ClassificationCache()
        self.cache = cache

    def classified_index(self, snapshot: SnapshotLike) -> OntologyIndex:
        """Build and classify, reusing the cached index for an unchanged snapshot.

        Relations flagged as inferred are dropped first, so the editor can
        pass back the relation list it displays.
        """
        snapshot = coerce_snapshot(snapshot).asserted()
        fingerprint = snapshot_fingerprint(snapshot) if self.cache is not None else None

        if self.cache is not None:
            cached = self.cache.get(fingerprint)
            if cached is not None:
                return cached

        index = classify(
            build_index(snapshot, case_insensitive_labels=self.settings.case_insensitive_labels),
            max_iterations=self.settings.max_closure_iterations,
        )
        if self.cache is not None:
            self.cache.put(fingerprint, index)
        return index

    def validate(self, snapshot: SnapshotLike) -> ValidationResult:
        index = self.classified_index(snapshot)
        return ConsistencyChecker(
            index,
            syntax_checks=self.settings.syntax_checks,
            duplicate_detection=self.settings.duplicate_detection,
        ).run()

    def classify_and_infer(self, snapshot: SnapshotLike) -> InferenceResult:
        """Classify and materialize.

        Previously inferred relations in the input are dropped first, so
        feeding a result back in yields the same relations.
        """
        asserted = coerce_snapshot(snapshot).asserted()
        index = self.classified_index(asserted)
        relations = materialize(index, list(asserted.relations))
        inferred = relations[len(asserted.relations):]
        logger.info(
            f"Classified {len(index.entities)} entities: "
            f"{len(inferred)} inferred relations"
        )
        return InferenceResult(index=index, relations=relations, inferred=inferred)

    def query(self, snapshot: SnapshotLike, text: str, mode: QueryMode | str) -> list[str]:
        return run_query(self.classified_index(snapshot), text, mode)

    def metrics(self, snapshot: SnapshotLike) -> OntologyMetrics:
        return compute_metrics(build_index(coerce_snapshot(snapshot).asserted()))


# =============================================================================
# MODULE-LEVEL SHORTCUTS
# =============================================================================


def validate(snapshot: SnapshotLike) -> ValidationResult:
    """Check a snapshot for logical and structural problems."""
    return Reasoner().validate(snapshot)


def classify_and_infer(snapshot: SnapshotLike) -> InferenceResult:
    """Classify a snapshot and return explicit plus inferred relations."""
    return Reasoner().classify_and_infer(snapshot)


def query(snapshot: SnapshotLike, text: str, mode: QueryMode | str) -> list[str]:
    """Answer a DL query against a snapshot."""
    return Reasoner().query(snapshot, text, mode)
