"""
owl_reasoning/index.py - Ontology Index Builder

Turns a raw snapshot into the normalized lookup structures every other
component reads:

- Label resolution (exact, prefix-stripped, case-insensitive)
- Direct subsumption graph (edges and single-name SubClassOf axioms)
- Disjointness pairs (edges, DisjointWith, DisjointUnionOf, AllDisjointClasses)
- Class <-> individual instantiation maps
- Property metadata (characteristics, domains, ranges, inverses)
- Outgoing relations per entity and parsed axiom expressions

An index is built fresh for every reasoning call and never mutated from
outside; classification returns a new index with the closed views filled in.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from .errors import SnapshotError
from .expressions import ClassExpression, Named
from .models import (
    CHARACTERISTICS,
    DISJOINT_LABELS,
    INVERSE_LABELS,
    SUBCLASS_LABELS,
    TYPE_LABELS,
    Axiom,
    Entity,
    EntityKind,
    Relation,
    Snapshot,
    local_name,
)
from .parser import split_operands, try_parse

logger = logging.getLogger(__name__)

# Axiom keys (see models.axiom_key)
SUBCLASS_AXIOMS = frozenset({"subclassof"})
DISJOINT_AXIOMS = frozenset({"disjointwith"})
DISJOINT_SET_AXIOMS = frozenset({"disjointunionof", "alldisjointclasses", "disjointclasses"})
EQUIVALENT_AXIOMS = frozenset({"equivalentto", "equivalentclass", "equivalentclasses"})
# Axioms whose expression is a list of names rather than a class expression
LIST_AXIOMS = DISJOINT_SET_AXIOMS | frozenset({
    "characteristics",
    "haskey",
    "sameas",
    "differentfrom",
    "propertychain",
    "propertychainaxiom",
    "alldisjointproperties",
    "unionof",
    "intersectionof",
    "oneof",
})


@dataclass
class PropertyMeta:
    """Declared metadata for an object or data property."""

    id: str
    kind: EntityKind
    characteristics: set[str] = field(default_factory=set)
    domains: list[str] = field(default_factory=list)
    ranges: list[str] = field(default_factory=list)
    inverses: list[str] = field(default_factory=list)  # inverse property labels

    def has(self, characteristic: str) -> bool:
        return characteristic in self.characteristics


@dataclass(frozen=True)
class OutgoingRelation:
    """Edge as seen from its source entity."""

    label: str
    target: str


@dataclass(frozen=True)
class ParsedAxiom:
    """Axiom paired with its parsed expression (None when unparsable or list-valued)."""

    axiom: Axiom
    expression: ClassExpression | None


@dataclass
class OntologyIndex:
    """Normalized, read-only view of one snapshot.

    ``sub_class_of`` always holds the direct (asserted + axiom) parents.
    ``closed_sub_class_of`` / ``super_class_of`` are only populated by
    ``classification.classify`` and are the only views that may be used
    for transitive questions.
    """

    entities: dict[str, Entity]
    relations: list[Relation]
    label_to_id: dict[str, str] = field(default_factory=dict)
    folded_label_to_id: dict[str, str] = field(default_factory=dict)

    # TBox
    sub_class_of: dict[str, set[str]] = field(default_factory=dict)
    disjoint_pairs: list[tuple[str, str]] = field(default_factory=list)
    disjoint_with: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    equivalents: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))

    # ABox
    types_of: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    instances_of: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))

    # RBox
    property_meta: dict[str, PropertyMeta] = field(default_factory=dict)

    outgoing_relations: dict[str, list[OutgoingRelation]] = field(
        default_factory=lambda: defaultdict(list)
    )
    parsed_axioms: dict[str, list[ParsedAxiom]] = field(default_factory=lambda: defaultdict(list))

    # Filled by classification
    closed_sub_class_of: dict[str, set[str]] | None = None
    super_class_of: dict[str, set[str]] | None = None

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def lookup(self, name: str) -> str | None:
        """Resolve a label, prefixed name or IRI to an entity id.

        Exact match wins, then the name without its prefix, then a
        case-insensitive match.
        """
        name = name.strip()
        if name.startswith("<") and name.endswith(">"):
            name = name[1:-1]
        if name in self.label_to_id:
            return self.label_to_id[name]
        if ":" in name and local_name(name) in self.label_to_id:
            return self.label_to_id[local_name(name)]
        return self.folded_label_to_id.get(name.lower())

    def label(self, entity_id: str) -> str:
        entity = self.entities.get(entity_id)
        return entity.label if entity else entity_id

    def kind(self, entity_id: str) -> EntityKind | None:
        entity = self.entities.get(entity_id)
        return entity.kind if entity else None

    def is_class(self, entity_id: str) -> bool:
        return self.kind(entity_id) == EntityKind.CLASS

    def is_individual(self, entity_id: str) -> bool:
        return self.kind(entity_id) == EntityKind.NAMED_INDIVIDUAL

    def ids_of_kind(self, kind: EntityKind) -> list[str]:
        """Entity ids of one kind, in snapshot order."""
        return [eid for eid, e in self.entities.items() if e.kind == kind]

    def property_for_label(self, label: str) -> PropertyMeta | None:
        """Property metadata for a relation label, tolerating prefixes."""
        for candidate in (label, local_name(label)):
            entity_id = self.label_to_id.get(candidate)
            if entity_id in self.property_meta:
                return self.property_meta[entity_id]
        return None

    def are_disjoint(self, a: str, b: str) -> bool:
        """True if ``a`` and ``b`` are a declared (symmetric) disjoint pair."""
        return b in self.disjoint_with.get(a, ())

    def property_facts(self) -> Iterator[Relation]:
        """Asserted, labelled relations whose label is not reserved vocabulary."""
        return (r for r in self.relations if r.label and not r.is_reserved)

    @property
    def is_classified(self) -> bool:
        return self.closed_sub_class_of is not None

    def ancestors(self, class_id: str) -> set[str]:
        """Closed ancestors of a class (requires classification)."""
        if self.closed_sub_class_of is None:
            raise RuntimeError("Index is not classified; call classification.classify first")
        return self.closed_sub_class_of.get(class_id, set())

    def descendants(self, class_id: str) -> set[str]:
        """Closed descendants of a class (requires classification)."""
        if self.super_class_of is None:
            raise RuntimeError("Index is not classified; call classification.classify first")
        return self.super_class_of.get(class_id, set())

    @property
    def stats(self) -> dict[str, int]:
        return {
            "entities": len(self.entities),
            "relations": len(self.relations),
            "subclass_edges": sum(len(p) for p in self.sub_class_of.values()),
            "disjoint_pairs": len(self.disjoint_pairs),
            "properties": len(self.property_meta),
        }

    def __repr__(self) -> str:
        s = self.stats
        return (
            f"OntologyIndex(entities={s['entities']}, relations={s['relations']}, "
            f"classified={self.is_classified})"
        )


# =============================================================================
# SNAPSHOT COERCION
# =============================================================================


def coerce_snapshot(snapshot: Snapshot | Mapping[str, Any]) -> Snapshot:
    """Validate a snapshot given as a model or a plain mapping.

    Raises:
        SnapshotError: naming the first offending field
    """
    if isinstance(snapshot, Snapshot):
        return snapshot
    if not isinstance(snapshot, Mapping):
        raise SnapshotError(f"Expected a mapping, got {type(snapshot).__name__}")
    try:
        return Snapshot.model_validate(snapshot)
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(part) for part in first["loc"])
        raise SnapshotError(first["msg"], field=loc) from e


# =============================================================================
# INDEX BUILDER
# =============================================================================


def build_index(
    snapshot: Snapshot | Mapping[str, Any], case_insensitive_labels: bool = True
) -> OntologyIndex:
    """Build a fresh index from a snapshot.

    Pure and deterministic for a given snapshot. Input relations must be
    asserted ones; previously materialized relations are rejected so
    inferred facts can never feed back into classification.

    Args:
        snapshot: Snapshot model or mapping with ``entities`` and ``relations``
        case_insensitive_labels: Fall back to case-insensitive label lookup

    Returns:
        Unclassified OntologyIndex

    Raises:
        SnapshotError: on duplicate ids, dangling relations or inferred input
    """
    snapshot = coerce_snapshot(snapshot)

    entities: dict[str, Entity] = {}
    for i, entity in enumerate(snapshot.entities):
        if entity.id in entities:
            raise SnapshotError(f"Duplicate entity id {entity.id!r}", field=f"entities.{i}.id")
        entities[entity.id] = entity

    for i, rel in enumerate(snapshot.relations):
        if rel.is_inferred:
            raise SnapshotError(
                "Inferred relations cannot be used as reasoner input",
                field=f"relations.{i}.isInferred",
            )
        for end in ("source", "target"):
            if getattr(rel, end) not in entities:
                raise SnapshotError(
                    f"Unknown entity {getattr(rel, end)!r}", field=f"relations.{i}.{end}"
                )

    index = OntologyIndex(entities=entities, relations=list(snapshot.relations))

    _register_labels(index, case_insensitive_labels)
    for entity_id, entity in entities.items():
        if entity.kind == EntityKind.CLASS:
            index.sub_class_of[entity_id] = set()
        if entity.kind.is_property:
            index.property_meta[entity_id] = PropertyMeta(
                id=entity_id,
                kind=entity.kind,
                characteristics=entity.characteristics,
            )

    for rel in index.relations:
        _index_relation(index, rel)

    for entity_id, entity in entities.items():
        for axiom in entity.axioms:
            _index_axiom(index, entity, axiom)

    logger.debug(f"Built {index!r}")
    return index


def _register_labels(index: OntologyIndex, case_insensitive: bool) -> None:
    """Populate the label tables; first entity with a given key wins."""
    # Exact labels first so a prefix-stripped fallback never shadows one
    for entity_id, entity in index.entities.items():
        index.label_to_id.setdefault(entity.label, entity_id)
        if entity.iri:
            index.label_to_id.setdefault(entity.iri, entity_id)

    for entity_id, entity in index.entities.items():
        if ":" in entity.label:
            index.label_to_id.setdefault(local_name(entity.label), entity_id)

    if not case_insensitive:
        return
    for key, entity_id in index.label_to_id.items():
        index.folded_label_to_id.setdefault(key.lower(), entity_id)


def _add_subclass(index: OntologyIndex, child: str, parent: str) -> None:
    # A self edge is kept so the cycle check can report it
    if not (index.is_class(child) and index.is_class(parent)):
        logger.debug(
            f"Ignoring subsumption {index.label(child)} -> {index.label(parent)}: not both classes"
        )
        return
    index.sub_class_of[child].add(parent)


def _add_disjoint(index: OntologyIndex, a: str, b: str) -> None:
    if a == b or not (index.is_class(a) and index.is_class(b)):
        return
    if b in index.disjoint_with[a]:
        return
    index.disjoint_with[a].add(b)
    index.disjoint_with[b].add(a)
    index.disjoint_pairs.append((a, b))


def _add_type(index: OntologyIndex, individual: str, class_id: str) -> None:
    if not index.is_class(class_id):
        logger.debug(f"Ignoring type assertion on non-class {index.label(class_id)}")
        return
    index.types_of[individual].add(class_id)
    index.instances_of[class_id].add(individual)


def _add_inverse(index: OntologyIndex, prop_id: str, inverse_label: str) -> None:
    meta = index.property_meta.get(prop_id)
    if meta is not None and inverse_label not in meta.inverses:
        meta.inverses.append(inverse_label)


def _index_relation(index: OntologyIndex, rel: Relation) -> None:
    index.outgoing_relations[rel.source].append(OutgoingRelation(rel.label, rel.target))

    if rel.label in SUBCLASS_LABELS:
        _add_subclass(index, rel.source, rel.target)
    elif rel.label in TYPE_LABELS:
        _add_type(index, rel.source, rel.target)
    elif rel.label in DISJOINT_LABELS:
        _add_disjoint(index, rel.source, rel.target)
    elif rel.label in INVERSE_LABELS:
        _add_inverse(index, rel.source, index.label(rel.target))
        _add_inverse(index, rel.target, index.label(rel.source))


def _single_entity(index: OntologyIndex, expression: ClassExpression | None) -> str | None:
    """Entity id if the expression is exactly one known name."""
    if isinstance(expression, Named):
        return index.lookup(expression.name)
    return None


def _index_axiom(index: OntologyIndex, entity: Entity, axiom: Axiom) -> None:
    key = axiom.key
    text = axiom.expression.strip()

    # Labels may contain spaces the grammar cannot express
    direct = index.lookup(text) if text and key not in LIST_AXIOMS else None

    if key in LIST_AXIOMS or not text:
        expression = None
    elif direct is not None:
        expression = Named(text)
    else:
        expression = try_parse(text)
    index.parsed_axioms[entity.id].append(ParsedAxiom(axiom, expression))

    if not text:
        return

    target = direct or _single_entity(index, expression)

    if key in SUBCLASS_AXIOMS and target:
        if target != entity.id:
            _add_subclass(index, entity.id, target)
    elif key in DISJOINT_AXIOMS:
        if target:
            _add_disjoint(index, entity.id, target)
        else:
            # "DisjointWith: Cat, Dog" lists several classes
            for name in split_operands(text):
                other = index.lookup(name)
                if other:
                    _add_disjoint(index, entity.id, other)
    elif key in DISJOINT_SET_AXIOMS:
        ids = [i for i in (index.lookup(name) for name in split_operands(text)) if i]
        for i, a in enumerate(ids):
            for b in ids[i + 1:]:
                _add_disjoint(index, a, b)
    elif key in EQUIVALENT_AXIOMS and target and target != entity.id:
        index.equivalents[entity.id].add(target)
        index.equivalents[target].add(entity.id)
    elif entity.id in index.property_meta:
        _index_property_axiom(index, index.property_meta[entity.id], key, text, target)


def _index_property_axiom(
    index: OntologyIndex, meta: PropertyMeta, key: str, text: str, target: str | None
) -> None:
    if key == "domain":
        if target:
            meta.domains.append(target)
        else:
            logger.debug(f"Unresolved domain {text!r} on {index.label(meta.id)}")
    elif key == "range":
        if target:
            meta.ranges.append(target)
        else:
            logger.debug(f"Unresolved range {text!r} on {index.label(meta.id)}")
    elif key == "inverseof":
        inverse_label = index.label(target) if target else text
        _add_inverse(index, meta.id, inverse_label)
        if target:
            _add_inverse(index, target, index.label(meta.id))
    elif key == "characteristics":
        meta.characteristics.update(c for c in split_operands(text) if c in CHARACTERISTICS)
