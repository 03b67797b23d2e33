"""
owl_reasoning/normalization.py - Set-axiom normalization

Removes repeated operands from axioms whose operands form a set in OWL 2
(UnionOf, IntersectionOf, OneOf, DisjointUnionOf, EquivalentTo,
DisjointWith, SameAs, DifferentFrom, HasKey, AllDisjointClasses,
AllDisjointProperties):

    DisjointUnionOf: Cat Dog Dog        -> Cat Dog
    EquivalentTo:    Person or Animal or Person -> Person or Animal

Axioms marked ordered (property chains) are left exactly as written, as
are expressions that are neither a plain name list nor a flat and/or.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .expressions import And, Or, conjunction, disjunction
from .index import DISJOINT_AXIOMS, LIST_AXIOMS, coerce_snapshot
from .models import Axiom, Entity, Snapshot
from .parser import split_operands, try_parse

logger = logging.getLogger(__name__)

SET_AXIOMS = frozenset({
    "unionof",
    "intersectionof",
    "oneof",
    "disjointunionof",
    "equivalentto",
    "equivalentclass",
    "equivalentclasses",
    "equivalentproperty",
    "disjointwith",
    "disjointclasses",
    "sameas",
    "differentfrom",
    "haskey",
    "alldisjointclasses",
    "alldisjointproperties",
})


def _unique(items):
    return list(dict.fromkeys(items))


def normalize_axiom(axiom: Axiom) -> Axiom:
    """Axiom with duplicate set operands removed (the same object if unchanged)."""
    if axiom.ordered or axiom.key not in SET_AXIOMS:
        return axiom
    text = axiom.expression.strip()
    if not text:
        return axiom

    name_list = axiom.key in LIST_AXIOMS or axiom.key in DISJOINT_AXIOMS
    parsed = None if name_list else try_parse(text)

    if isinstance(parsed, (And, Or)):
        operands = _unique(parsed.operands)
        if len(operands) == len(parsed.operands):
            return axiom
        combine = conjunction if isinstance(parsed, And) else disjunction
        normalized = repr(combine(*operands))
    elif parsed is None and not name_list:
        # Unparsable expression text is not a token list
        return axiom
    else:
        tokens = split_operands(text)
        operands = _unique(tokens)
        if len(operands) == len(tokens):
            return axiom
        separator = ", " if "," in text else " "
        normalized = separator.join(operands)

    logger.debug(f"Normalized {axiom.relation_name}: {text!r} -> {normalized!r}")
    return axiom.model_copy(update={"expression": normalized})


def normalize_entity(entity: Entity) -> Entity:
    axioms = [normalize_axiom(a) for a in entity.axioms]
    if all(new is old for new, old in zip(axioms, entity.axioms)):
        return entity
    return entity.model_copy(update={"axioms": axioms})


def normalize_snapshot(snapshot: Snapshot | Mapping[str, Any]) -> Snapshot:
    """Snapshot with every entity's set axioms de-duplicated.

    Relations are carried over unchanged.
    """
    snapshot = coerce_snapshot(snapshot)
    entities = [normalize_entity(e) for e in snapshot.entities]
    return Snapshot(entities=entities, relations=snapshot.relations)
