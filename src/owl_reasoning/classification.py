"""
owl_reasoning/classification.py - Classification Engine

Computes the subsumption hierarchy and realizes individuals:

1. TRANSITIVE CLOSURE (fixed point):
   Repeatedly union each class's parent set with its parents' parent
   sets until no set grows. Equivalent to reachability; a cycle simply
   closes into a finished set instead of looping forever.

2. TYPE PROPAGATION (realization):
   Every closed ancestor of a direct type becomes an inferred type, and
   the reverse instances-of map is updated symmetrically.

Example:
    index = classify(build_index(snapshot))
    index.ancestors(dog_id)      # {mammal_id, animal_id}
    index.types_of[rex_id]       # {dog_id, mammal_id, animal_id}
"""
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import replace

from .errors import ReasonerError
from .index import OntologyIndex

logger = logging.getLogger(__name__)


class ClosureLimitExceeded(ReasonerError):
    """The fixed point was not reached within the iteration bound."""


def transitive_closure(
    graph: Mapping[str, set[str]], max_iterations: int | None = None
) -> tuple[dict[str, set[str]], int]:
    """Transitive closure of a child -> parents mapping.

    The input is not modified. Closing an already closed mapping returns
    an identical mapping after a single iteration.

    Args:
        graph: Direct edges, child -> set of parents
        max_iterations: Optional bound on fixed-point rounds

    Returns:
        (closed, iterations) - closed mapping and rounds taken

    Raises:
        ClosureLimitExceeded: if ``max_iterations`` is reached before the
            fixed point (cannot happen for finite graphs when unbounded)
    """
    closed = {node: set(parents) for node, parents in graph.items()}

    iterations = 0
    changed = True

    while changed:
        if max_iterations is not None and iterations >= max_iterations:
            raise ClosureLimitExceeded(
                f"Subsumption closure did not converge in {max_iterations} iterations"
            )
        changed = False
        iterations += 1

        for node in closed:
            parents = closed[node]
            before = len(parents)
            for parent in list(parents):
                grandparents = closed.get(parent)
                if grandparents:
                    parents |= grandparents
            if len(parents) != before:
                changed = True

    return closed, iterations


def invert(graph: Mapping[str, set[str]]) -> dict[str, set[str]]:
    """Reverse a child -> parents mapping into parent -> children."""
    inverse: dict[str, set[str]] = defaultdict(set)
    for child, parents in graph.items():
        for parent in parents:
            inverse[parent].add(child)
    return dict(inverse)


def classify(index: OntologyIndex, max_iterations: int | None = None) -> OntologyIndex:
    """Classify an index: close subsumption and propagate types.

    Returns a new index; the direct ``sub_class_of`` view and the input
    index are left untouched. Classifying an already classified index
    yields the same closed maps.

    Args:
        index: Index from ``build_index`` (or a previous ``classify``)
        max_iterations: Optional bound on closure rounds

    Returns:
        Classified OntologyIndex
    """
    closed, iterations = transitive_closure(index.sub_class_of, max_iterations)

    types_of: dict[str, set[str]] = defaultdict(set)
    instances_of: dict[str, set[str]] = defaultdict(set)

    for individual, direct_types in index.types_of.items():
        for class_id in direct_types:
            for inferred in {class_id} | closed.get(class_id, set()):
                types_of[individual].add(inferred)
                instances_of[inferred].add(individual)

    classified = replace(
        index,
        closed_sub_class_of=closed,
        super_class_of=invert(closed),
        types_of=types_of,
        instances_of=instances_of,
    )

    logger.debug(
        f"Classified {len(closed)} classes in {iterations} iterations; "
        f"{sum(len(t) for t in types_of.values())} type memberships"
    )
    return classified
