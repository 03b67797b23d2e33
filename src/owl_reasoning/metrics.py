"""
owl_reasoning/metrics.py - Structural ontology metrics

OntoMetrics-style statistics over one snapshot:

- Complexity: class / individual / property counts and total axioms
  (entity axioms plus relations)
- Hierarchy: maximum depth from a root class and maximum branching factor
- Inheritance richness: subsumption edges per class
- Cohesion: share of non-taxonomic relations among all relations
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .index import OntologyIndex, build_index
from .models import SUBCLASS_LABELS, TYPE_LABELS, EntityKind, Snapshot

logger = logging.getLogger(__name__)

_TAXONOMIC_LABELS = SUBCLASS_LABELS | TYPE_LABELS
_TAXONOMIC_AXIOMS = frozenset({"subclassof", "disjointwith"})


@dataclass
class OntologyMetrics:
    num_classes: int = 0
    num_individuals: int = 0
    num_object_properties: int = 0
    num_data_properties: int = 0
    num_axioms: int = 0
    max_depth: int = 0
    max_breadth: int = 0
    inheritance_richness: float = 0.0
    cohesion: float = 0.0

    @property
    def inheritance_description(self) -> str:
        if self.inheritance_richness < 0.5 and self.num_classes > 1:
            return "Very flat hierarchy; lacks detail."
        if self.inheritance_richness > 3:
            return "Very deep/specific hierarchy."
        return "Balanced hierarchy."

    @property
    def cohesion_description(self) -> str:
        if self.cohesion < 0.2:
            return "Low cohesion; mainly taxonomic structure."
        if self.cohesion > 0.6:
            return "High cohesion; strongly interrelated entities."
        return "Moderate connectivity."

    def to_dict(self) -> dict[str, Any]:
        return {
            "complexity": {
                "classes": self.num_classes,
                "individuals": self.num_individuals,
                "objectProperties": self.num_object_properties,
                "dataProperties": self.num_data_properties,
                "axioms": self.num_axioms,
            },
            "hierarchy": {"maxDepth": self.max_depth, "maxBreadth": self.max_breadth},
            "inheritanceRichness": round(self.inheritance_richness, 2),
            "inheritanceDescription": self.inheritance_description,
            "cohesion": round(self.cohesion, 3),
            "cohesionDescription": self.cohesion_description,
        }


def _max_depth(index: OntologyIndex, children: dict[str, set[str]]) -> int:
    """Longest root-to-leaf path, counting classes. Cycles are cut on revisit."""
    classes = index.ids_of_kind(EntityKind.CLASS)
    if not classes:
        return 0
    roots = [c for c in classes if not index.sub_class_of.get(c)]
    if not roots:
        return 1

    best = 0
    stack = [(root, 1, frozenset({root})) for root in roots]
    depth_seen: dict[str, int] = {}
    while stack:
        node, depth, path = stack.pop()
        if depth_seen.get(node, 0) >= depth:
            continue
        depth_seen[node] = depth
        best = max(best, depth)
        for child in children.get(node, ()):
            if child not in path:
                stack.append((child, depth + 1, path | {child}))
    return best


def compute_metrics(source: OntologyIndex | Snapshot | Mapping[str, Any]) -> OntologyMetrics:
    """Compute structural metrics for a snapshot or an already built index."""
    index = source if isinstance(source, OntologyIndex) else build_index(source)

    children: dict[str, set[str]] = {}
    inheritance_edges = 0
    for child, parents in index.sub_class_of.items():
        inheritance_edges += len(parents)
        for parent in parents:
            children.setdefault(parent, set()).add(child)

    num_classes = len(index.ids_of_kind(EntityKind.CLASS))
    num_entity_axioms = sum(len(e.axioms) for e in index.entities.values())

    relationship_count = sum(1 for r in index.relations if r.label not in _TAXONOMIC_LABELS)
    relationship_count += sum(
        1
        for e in index.entities.values()
        for a in e.axioms
        if a.key not in _TAXONOMIC_AXIOMS
    )
    total = inheritance_edges + relationship_count

    metrics = OntologyMetrics(
        num_classes=num_classes,
        num_individuals=len(index.ids_of_kind(EntityKind.NAMED_INDIVIDUAL)),
        num_object_properties=len(index.ids_of_kind(EntityKind.OBJECT_PROPERTY)),
        num_data_properties=len(index.ids_of_kind(EntityKind.DATA_PROPERTY)),
        num_axioms=num_entity_axioms + len(index.relations),
        max_depth=_max_depth(index, children),
        max_breadth=max((len(c) for c in children.values()), default=0),
        inheritance_richness=inheritance_edges / num_classes if num_classes else 0.0,
        cohesion=relationship_count / total if total else 0.0,
    )
    logger.debug(f"Metrics: {metrics}")
    return metrics
