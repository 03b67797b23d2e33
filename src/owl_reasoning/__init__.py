"""
owl_reasoning - Reasoning core for a visual ontology editor

Validates, classifies and queries OWL-style ontology snapshots:
- Consistency checking (cycles, unsatisfiable classes, property misuse, ...)
- Subsumption classification and type realization
- Materialization of inferred relations
- DL queries in a Manchester-syntax subset

Example:
    from owl_reasoning import Reasoner

    snapshot = {
        "entities": [
            {"id": "c1", "label": "Animal", "kind": "Class"},
            {"id": "c2", "label": "Dog", "kind": "Class"},
            {"id": "i1", "label": "Rex", "kind": "NamedIndividual"},
        ],
        "relations": [
            {"source": "c2", "target": "c1", "label": "subClassOf"},
            {"source": "i1", "target": "c2", "label": "rdf:type"},
        ],
    }

    reasoner = Reasoner()
    print(reasoner.validate(snapshot).is_valid)          # True
    print(reasoner.query(snapshot, "Animal", "instances"))  # ['i1']
"""

from .cache import ClassificationCache, snapshot_fingerprint
from .classification import ClosureLimitExceeded, classify, transitive_closure
from .config import ReasonerSettings, get_settings
from .consistency import ConsistencyChecker, Issue, Severity, ValidationResult, check_consistency
from .errors import ExpressionSyntaxError, ReasonerError, SnapshotError
from .expressions import (
    And,
    Cardinality,
    CardinalityKind,
    ClassExpression,
    HasSelf,
    Named,
    Not,
    Only,
    Or,
    Some,
    Value,
)
from .index import OntologyIndex, build_index
from .materializer import materialize
from .metrics import OntologyMetrics, compute_metrics
from .models import Attribute, Axiom, Entity, EntityKind, Relation, Snapshot
from .normalization import normalize_snapshot
from .parser import parse_expression
from .query import QueryMode, run_query
from .reasoner import InferenceResult, Reasoner, classify_and_infer, query, validate
from .resolver import ExpressionResolver, resolve

__version__ = "0.1.0"

__all__ = [
    # Snapshot contract
    "Snapshot",
    "Entity",
    "EntityKind",
    "Attribute",
    "Axiom",
    "Relation",
    # Errors
    "ReasonerError",
    "SnapshotError",
    "ExpressionSyntaxError",
    "ClosureLimitExceeded",
    # Expressions
    "ClassExpression",
    "Named",
    "And",
    "Or",
    "Not",
    "Some",
    "Only",
    "Value",
    "Cardinality",
    "CardinalityKind",
    "HasSelf",
    "parse_expression",
    # Index and classification
    "OntologyIndex",
    "build_index",
    "classify",
    "transitive_closure",
    # Consistency
    "ConsistencyChecker",
    "check_consistency",
    "ValidationResult",
    "Issue",
    "Severity",
    # Queries and inference
    "ExpressionResolver",
    "resolve",
    "QueryMode",
    "run_query",
    "materialize",
    # Supplements
    "normalize_snapshot",
    "compute_metrics",
    "OntologyMetrics",
    # Facade
    "Reasoner",
    "InferenceResult",
    "validate",
    "classify_and_infer",
    "query",
    "ClassificationCache",
    "snapshot_fingerprint",
    "ReasonerSettings",
    "get_settings",
]
