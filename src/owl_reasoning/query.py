"""
owl_reasoning/query.py - DL Query Evaluator

Answers "subclasses / superclasses / instances / equivalents of <expr>"
over a classified index, the way the editor's DL Query tab asks them.

Meta-queries (``Class``, ``NamedIndividual``, ``ObjectProperty``,
``DataProperty``, ``Datatype``) list every entity of that kind without
going through the resolver; ``Thing`` lists every individual for
``instances`` and every class otherwise.
"""
from __future__ import annotations

import logging
from enum import Enum

from .expressions import Named
from .index import EQUIVALENT_AXIOMS, OntologyIndex
from .models import EntityKind
from .parser import try_parse
from .resolver import ExpressionResolver

logger = logging.getLogger(__name__)


class QueryMode(str, Enum):
    """What to return for the resolved expression."""

    SUBCLASSES = "subclasses"
    SUPERCLASSES = "superclasses"
    INSTANCES = "instances"
    EQUIVALENT = "equivalent"


META_QUERIES: dict[str, EntityKind] = {
    "class": EntityKind.CLASS,
    "classes": EntityKind.CLASS,
    "owl:class": EntityKind.CLASS,
    "namedindividual": EntityKind.NAMED_INDIVIDUAL,
    "owl:namedindividual": EntityKind.NAMED_INDIVIDUAL,
    "individual": EntityKind.NAMED_INDIVIDUAL,
    "individuals": EntityKind.NAMED_INDIVIDUAL,
    "objectproperty": EntityKind.OBJECT_PROPERTY,
    "owl:objectproperty": EntityKind.OBJECT_PROPERTY,
    "object properties": EntityKind.OBJECT_PROPERTY,
    "dataproperty": EntityKind.DATA_PROPERTY,
    "datatypeproperty": EntityKind.DATA_PROPERTY,
    "owl:datatypeproperty": EntityKind.DATA_PROPERTY,
    "data properties": EntityKind.DATA_PROPERTY,
    "datatype": EntityKind.DATATYPE,
    "datatypes": EntityKind.DATATYPE,
    "owl:datatype": EntityKind.DATATYPE,
}

THING_QUERIES = frozenset({"thing", "owl:thing"})


def run_query(index: OntologyIndex, text: str, mode: QueryMode | str) -> list[str]:
    """Evaluate a DL query.

    Args:
        index: Classified (or unclassified) index
        text: Class expression or meta-query
        mode: One of QueryMode (or its string value)

    Returns:
        Matching entity ids in snapshot order; empty when the expression
        does not resolve

    Raises:
        ValueError: for an unknown mode
    """
    mode = QueryMode(mode)
    resolver = ExpressionResolver(index)
    index = resolver.index

    lowered = text.strip().lower()
    if lowered in META_QUERIES:
        return index.ids_of_kind(META_QUERIES[lowered])

    targets = resolver.resolve(text)

    if targets is None and lowered in THING_QUERIES:
        kind = EntityKind.NAMED_INDIVIDUAL if mode == QueryMode.INSTANCES else EntityKind.CLASS
        return index.ids_of_kind(kind)

    if mode == QueryMode.EQUIVALENT:
        result = _equivalents(index, text, targets)
    elif not targets:
        logger.debug(f"Query {text!r} did not resolve")
        return []
    elif _is_single_name(index, text):
        result = _expand(index, targets, mode)
    else:
        # A compound extension is already closed under subsumption and typing
        result = {entity_id for entity_id in targets if _matches_mode(index, entity_id, mode)}
        if mode == QueryMode.SUPERCLASSES:
            for entity_id in list(result):
                result |= index.ancestors(entity_id)

    logger.debug(f"Query {text!r} ({mode.value}) -> {len(result)} results")
    return [entity_id for entity_id in index.entities if entity_id in result]


def _is_single_name(index: OntologyIndex, text: str) -> bool:
    if index.lookup(text) is not None:
        return True
    return isinstance(try_parse(text.strip()), Named)


def _matches_mode(index: OntologyIndex, entity_id: str, mode: QueryMode) -> bool:
    if mode == QueryMode.INSTANCES:
        return index.is_individual(entity_id)
    return index.is_class(entity_id)


def _expand(index: OntologyIndex, targets: set[str], mode: QueryMode) -> set[str]:
    """Instances, subclasses or superclasses of a single named entity."""
    result: set[str] = set()
    for entity_id in targets:
        if mode == QueryMode.INSTANCES:
            if index.is_individual(entity_id):
                result.add(entity_id)
            result |= index.instances_of.get(entity_id, set())
        elif index.is_class(entity_id):
            result.add(entity_id)
            if mode == QueryMode.SUBCLASSES:
                result |= index.descendants(entity_id)
            else:
                result |= index.ancestors(entity_id)
    return result


def _equivalents(index: OntologyIndex, text: str, targets: set[str] | None) -> set[str]:
    """Entities declared equivalent to the query, by name or by identical expression."""
    result: set[str] = set()
    parsed = try_parse(text.strip())

    if targets and len(targets) == 1 and (parsed is None or isinstance(parsed, Named)):
        (entity_id,) = targets
        return set(index.equivalents.get(entity_id, set())) - {entity_id}
    if parsed is None or isinstance(parsed, Named):
        return result

    for entity_id, items in index.parsed_axioms.items():
        for item in items:
            if item.axiom.key in EQUIVALENT_AXIOMS and item.expression == parsed:
                result.add(entity_id)
    return result
