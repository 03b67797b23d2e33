"""
owl_reasoning/resolver.py - Expression Resolver

Evaluates class expressions against a classified index.

A bare name resolves to the singleton ``{id}`` (or None when nothing
matches). Inside a compound expression a name stands for its extension:
the entity itself plus, for a class, every subsumed class and every
instance. That is what makes ``Person and Teacher`` pick out the
individuals typed with both, and ``teaches some Course`` match a subject
whose object is merely an instance of Course.

    and      intersection (n-ary)
    or       union
    not X    universe (classes + individuals) minus extension(X)
    p some X subjects with a p-fact whose object is in extension(X),
             plus classes whose SubClassOf/EquivalentTo axiom asserts it
    p value N subjects with a p-fact pointing at N
    p only X subjects whose p-facts all point into extension(X)
    p min/max/exactly n [X]  counted over distinct matching objects
    p self   subjects related to themselves by p

None means "unresolved" and is never the same as an empty result.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from .classification import classify
from .expressions import (
    And,
    Cardinality,
    ClassExpression,
    HasSelf,
    Named,
    Not,
    Only,
    Or,
    Some,
    Value,
)
from .index import EQUIVALENT_AXIOMS, SUBCLASS_AXIOMS, OntologyIndex
from .models import EntityKind, local_name
from .parser import try_parse

logger = logging.getLogger(__name__)

_RESTRICTION_AXIOMS = SUBCLASS_AXIOMS | EQUIVALENT_AXIOMS


def same_property(label: str, prop: str) -> bool:
    """Relation label matches a property name, ignoring namespace prefixes."""
    return label == prop or local_name(label) == local_name(prop)


class ExpressionResolver:
    """Evaluates expressions against one classified index.

    Extensions of named entities are memoized for the lifetime of the
    resolver, which is bounded by the index it was created for.
    """

    def __init__(self, index: OntologyIndex):
        if not index.is_classified:
            index = classify(index)
        self.index = index
        self._extensions: dict[str, set[str]] = {}
        self._universe = set(index.ids_of_kind(EntityKind.CLASS)) | set(
            index.ids_of_kind(EntityKind.NAMED_INDIVIDUAL)
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def resolve(self, expression: str | ClassExpression) -> set[str] | None:
        """Resolve an expression to matching entity ids.

        Args:
            expression: Expression text or parsed tree

        Returns:
            Set of ids, or None if the expression could not be resolved
        """
        if isinstance(expression, str):
            text = expression.strip()
            if not text:
                return None
            # Labels may contain spaces the grammar cannot express
            direct = self.index.lookup(text)
            if direct is not None:
                return {direct}
            parsed = try_parse(text)
            if parsed is None:
                return None
            expression = parsed

        if isinstance(expression, Named):
            entity_id = self.index.lookup(expression.name)
            return {entity_id} if entity_id is not None else None

        return self.extension(expression)

    def extension(self, expression: ClassExpression) -> set[str] | None:
        """Entities satisfying an expression, with names read as extensions."""
        if isinstance(expression, Named):
            return self._named_extension(expression.name)
        if isinstance(expression, And):
            return self._intersection(expression.operands)
        if isinstance(expression, Or):
            return self._union(expression.operands)
        if isinstance(expression, Not):
            inner = self.extension(expression.operand)
            if inner is None:
                return None
            return self._universe - inner
        if isinstance(expression, Some):
            return self._some(expression)
        if isinstance(expression, Value):
            return self._value(expression)
        if isinstance(expression, Only):
            return self._only(expression)
        if isinstance(expression, Cardinality):
            return self._cardinality(expression)
        if isinstance(expression, HasSelf):
            return {
                source
                for source, label, target in self._facts(expression.prop)
                if source == target
            }
        raise TypeError(f"Unknown expression node: {type(expression).__name__}")

    # -------------------------------------------------------------------------
    # Names and boolean connectives
    # -------------------------------------------------------------------------

    def _named_extension(self, name: str) -> set[str] | None:
        entity_id = self.index.lookup(name)
        if entity_id is None:
            return None
        if entity_id not in self._extensions:
            self._extensions[entity_id] = self._entity_extension(entity_id)
        return self._extensions[entity_id]

    def _entity_extension(self, entity_id: str) -> set[str]:
        result = {entity_id}
        if self.index.is_class(entity_id):
            result |= self.index.descendants(entity_id)
            result |= self.index.instances_of.get(entity_id, set())
            for equivalent in self.index.equivalents.get(entity_id, ()):
                result.add(equivalent)
                result |= self.index.descendants(equivalent)
                result |= self.index.instances_of.get(equivalent, set())
        return result

    def _intersection(self, operands: Iterable[ClassExpression]) -> set[str] | None:
        result: set[str] | None = None
        for op in operands:
            ext = self.extension(op)
            if ext is None:
                logger.debug(f"Skipping unresolved conjunct {op!r}")
                continue
            result = set(ext) if result is None else result & ext
        return result

    def _union(self, operands: Iterable[ClassExpression]) -> set[str] | None:
        result: set[str] | None = None
        for op in operands:
            ext = self.extension(op)
            if ext is None:
                logger.debug(f"Skipping unresolved disjunct {op!r}")
                continue
            result = set(ext) if result is None else result | ext
        return result

    # -------------------------------------------------------------------------
    # Restrictions
    # -------------------------------------------------------------------------

    def _facts(self, prop: str) -> Iterator[tuple[str, str, str]]:
        """(source, label, target) for every outgoing relation labelled ``prop``."""
        for source, outgoing in self.index.outgoing_relations.items():
            for rel in outgoing:
                if same_property(rel.label, prop):
                    yield source, rel.label, rel.target

    def _axiom_restrictions(self) -> Iterator[tuple[str, ClassExpression]]:
        """(class id, restriction) for restrictions asserted in class axioms."""
        for entity_id, parsed in self.index.parsed_axioms.items():
            for item in parsed:
                if item.axiom.key not in _RESTRICTION_AXIOMS or item.expression is None:
                    continue
                if isinstance(item.expression, And):
                    for op in item.expression.operands:
                        yield entity_id, op
                else:
                    yield entity_id, item.expression

    def _axiom_matches(self, expression: ClassExpression, filler: set[str] | None) -> set[str]:
        """Extensions of classes whose axioms assert a restriction at least as strong."""
        result: set[str] = set()
        for class_id, restriction in self._axiom_restrictions():
            if type(restriction) is not type(expression):
                continue
            if not same_property(restriction.prop, expression.prop):
                continue
            if isinstance(expression, (Some, Only)):
                asserted = self.extension(restriction.filler)
                if not asserted or filler is None or not asserted <= filler:
                    continue
            elif isinstance(expression, Value):
                if self.index.lookup(restriction.individual) != self.index.lookup(
                    expression.individual
                ):
                    continue
            elif restriction != expression:
                continue
            result |= self._entity_extension(class_id)
        return result

    def _some(self, expression: Some) -> set[str]:
        filler = self.extension(expression.filler)
        if filler is None:
            logger.debug(f"Unresolved filler in {expression!r}")
            return set()
        result = {
            source for source, _, target in self._facts(expression.prop) if target in filler
        }
        return result | self._axiom_matches(expression, filler)

    def _value(self, expression: Value) -> set[str]:
        target_id = self.index.lookup(expression.individual)
        if target_id is None:
            return set()
        result = {
            source for source, _, target in self._facts(expression.prop) if target == target_id
        }
        return result | self._axiom_matches(expression, None)

    def _only(self, expression: Only) -> set[str]:
        filler = self.extension(expression.filler)
        if filler is None:
            return set()
        targets: dict[str, set[str]] = {}
        for source, _, target in self._facts(expression.prop):
            targets.setdefault(source, set()).add(target)
        result = {source for source, objs in targets.items() if objs <= filler}
        return result | self._axiom_matches(expression, filler)

    def _cardinality(self, expression: Cardinality) -> set[str]:
        filler = None
        if expression.filler is not None:
            filler = self.extension(expression.filler)
            if filler is None:
                return set()

        counts: dict[str, set[str]] = {
            i: set() for i in self.index.ids_of_kind(EntityKind.NAMED_INDIVIDUAL)
        }
        # Individuals are counted from facts; classes only match through axioms
        for source, _, target in self._facts(expression.prop):
            if source in counts and (filler is None or target in filler):
                counts[source].add(target)

        result = {source for source, objs in counts.items() if expression.admits(len(objs))}
        return result | self._axiom_matches(expression, filler)


def resolve(index: OntologyIndex, expression: str | ClassExpression) -> set[str] | None:
    """Resolve an expression against an index (classified on demand)."""
    return ExpressionResolver(index).resolve(expression)
