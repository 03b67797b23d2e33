"""
owl_reasoning/materializer.py - Inference Materializer

Turns a classified index into explicit relations the editor can draw:

SUBSUMPTION:   every closed ancestor of a class  -> rdfs:subClassOf
REALIZATION:   every closed type of an individual -> rdf:type
DOMAIN/RANGE:  p(a, b) with Domain D / Range R   -> a rdf:type D, b rdf:type R
INVERSES:      p(a, b) with p InverseOf q        -> q(b, a)
SYMMETRY:      p(a, b) with p Symmetric          -> p(b, a)

Nothing already present is emitted twice: relations are compared by
(source, target, label) with reserved-label synonyms collapsed, so an
asserted ``a`` edge suppresses an inferred ``rdf:type`` one. Running the
materializer over its own output adds nothing.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from .classification import classify
from .index import OntologyIndex
from .models import INFERRED_SUBCLASS_LABEL, INFERRED_TYPE_LABEL, EntityKind, Relation

logger = logging.getLogger(__name__)


class _Collector:
    """Accumulates inferred relations, skipping known keys."""

    def __init__(self, existing: Iterable[Relation]):
        self.seen = {r.key for r in existing}
        self.relations: list[Relation] = []

    def add(self, source: str, target: str, label: str) -> None:
        relation = Relation(
            source=source,
            target=target,
            label=label,
            is_inferred=True,
            id=f"inferred:{source}:{label}:{target}",
        )
        if relation.key in self.seen:
            return
        self.seen.add(relation.key)
        self.relations.append(relation)


def materialize(
    index: OntologyIndex, relations: list[Relation] | None = None
) -> list[Relation]:
    """Explicit relations followed by every newly inferred one.

    Args:
        index: Index to read (classified on demand)
        relations: Relations considered already present; defaults to the
            index's asserted relations

    Returns:
        ``relations`` unchanged, then the inferred relations in a
        deterministic order
    """
    if not index.is_classified:
        index = classify(index)
    explicit = list(index.relations if relations is None else relations)
    order = {entity_id: i for i, entity_id in enumerate(index.entities)}

    def ordered(ids: Iterable[str]) -> list[str]:
        return sorted(ids, key=order.__getitem__)

    collector = _Collector(explicit)

    for class_id in index.ids_of_kind(EntityKind.CLASS):
        for ancestor in ordered(index.ancestors(class_id)):
            if ancestor != class_id:
                collector.add(class_id, ancestor, INFERRED_SUBCLASS_LABEL)

    for individual in index.ids_of_kind(EntityKind.NAMED_INDIVIDUAL):
        for class_id in ordered(index.types_of.get(individual, ())):
            collector.add(individual, class_id, INFERRED_TYPE_LABEL)

    for rel in index.property_facts():
        meta = index.property_for_label(rel.label)
        if meta is None:
            continue

        if index.is_individual(rel.source):
            for domain in meta.domains:
                for class_id in [domain, *ordered(index.ancestors(domain))]:
                    collector.add(rel.source, class_id, INFERRED_TYPE_LABEL)

        if meta.kind == EntityKind.OBJECT_PROPERTY and index.is_individual(rel.target):
            for range_id in meta.ranges:
                for class_id in [range_id, *ordered(index.ancestors(range_id))]:
                    collector.add(rel.target, class_id, INFERRED_TYPE_LABEL)

        for inverse_label in meta.inverses:
            collector.add(rel.target, rel.source, inverse_label)

        if meta.has("Symmetric"):
            collector.add(rel.target, rel.source, rel.label)

    logger.debug(f"Materialized {len(collector.relations)} inferred relations")
    return explicit + collector.relations
